"""
Order stores: id/date assignment and version-guarded updates.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from order_service.errors import ConflictError, OrderError, OrderNotFound
from order_service.models import Order, OrderStatus
from order_service.store import ORDER_COLUMNS, PostgresOrderStore


def accepted_order() -> Order:
    return Order.of("p1", "Widget", 9.99, 3, OrderStatus.ACCEPTED)


# ============================================================================
# In-memory store
# ============================================================================

class TestInMemoryOrderStore:

    @pytest.mark.asyncio
    async def test_insert_assigns_id_dates_and_version(self, store):
        saved = await store.insert(accepted_order())

        assert saved.id
        assert saved.version == 0
        assert saved.created_date is not None
        assert saved.created_date == saved.last_modified_date
        assert await store.find_by_id(saved.id) == saved

    @pytest.mark.asyncio
    async def test_insert_generates_distinct_ids(self, store):
        a = await store.insert(accepted_order())
        b = await store.insert(accepted_order())
        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_update_bumps_version_and_keeps_created_date(self, store):
        saved = await store.insert(accepted_order())

        updated = await store.update(saved.model_copy(update={"status": OrderStatus.CANCELLED}))

        assert updated.version == 1
        assert updated.status == OrderStatus.CANCELLED
        assert updated.created_date == saved.created_date
        assert updated.last_modified_date >= saved.last_modified_date

    @pytest.mark.asyncio
    async def test_update_with_stale_version_conflicts(self, store):
        saved = await store.insert(accepted_order())
        await store.update(saved.model_copy(update={"status": OrderStatus.CANCELLED}))

        with pytest.raises(ConflictError):
            await store.update(saved.model_copy(update={"quantity": 7}))

        current = await store.find_by_id(saved.id)
        assert current.version == 1
        assert current.quantity == 3

    @pytest.mark.asyncio
    async def test_update_unknown_order(self, store):
        ghost = accepted_order().model_copy(update={"id": "nope"})
        with pytest.raises(OrderNotFound):
            await store.update(ghost)

    @pytest.mark.asyncio
    async def test_concurrent_updates_exactly_one_wins(self, store):
        saved = await store.insert(accepted_order())
        change = saved.model_copy(update={"status": OrderStatus.CANCELLED})

        results = await asyncio.gather(
            store.update(change), store.update(change), return_exceptions=True
        )

        wins = [r for r in results if isinstance(r, Order)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(wins) == 1
        assert len(conflicts) == 1
        assert (await store.find_by_id(saved.id)).version == 1

    @pytest.mark.asyncio
    async def test_find_all_can_be_iterated_again(self, store):
        await store.insert(accepted_order())
        await store.insert(accepted_order())

        first = [o async for o in store.find_all()]
        second = [o async for o in store.find_all()]

        assert len(first) == 2
        assert first == second

    @pytest.mark.asyncio
    async def test_delete_all(self, store):
        await store.insert(accepted_order())
        await store.delete_all()
        assert [o async for o in store.find_all()] == []


# ============================================================================
# PostgreSQL store (driver faked)
# ============================================================================

class FakeDb:
    def __init__(self):
        self.executed = []
        self.fetchone_results = []
        self.fetchall_results = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = 0


class FakeCursor:
    def __init__(self, db: FakeDb):
        self.db = db

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.db.executed.append((" ".join(sql.split()), params))

    def fetchone(self):
        return self.db.fetchone_results.pop(0)

    def fetchall(self):
        return self.db.fetchall_results.pop(0)


class FakeConnection:
    def __init__(self, db: FakeDb):
        self.db = db

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.db.rollbacks += 1
        return False

    def cursor(self):
        return FakeCursor(self.db)

    def commit(self):
        self.db.commits += 1

    def close(self):
        self.db.closed += 1


def make_pg_store(db: FakeDb, page_size: int = 100) -> PostgresOrderStore:
    return PostgresOrderStore("postgres://test", connect=lambda dsn: FakeConnection(db), page_size=page_size)


def order_row(order_id: str, version: int = 0, status: str = "ACCEPTED"):
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return (order_id, "p1", "Widget", 9.99, 3, status, now, now, version)


class TestPostgresOrderStore:

    def test_init_schema_creates_orders_table(self):
        db = FakeDb()
        make_pg_store(db).init_schema()

        assert "CREATE TABLE IF NOT EXISTS orders" in db.executed[0][0]
        assert db.commits == 1
        assert db.closed == 1

    @pytest.mark.asyncio
    async def test_insert_writes_row(self):
        db = FakeDb()
        saved = await make_pg_store(db).insert(accepted_order())

        sql, params = db.executed[0]
        assert sql.startswith(f"INSERT INTO orders ({ORDER_COLUMNS})")
        assert params[0] == saved.id
        assert params[5] == "ACCEPTED"
        assert params[8] == 0
        assert db.commits >= 1

    @pytest.mark.asyncio
    async def test_update_is_version_guarded(self):
        db = FakeDb()
        db.fetchone_results = [order_row("o1", version=1, status="CANCELLED")]
        order = Order(**dict(zip(
            ["id", "product_id", "product_name", "product_price", "quantity", "status",
             "created_date", "last_modified_date", "version"],
            order_row("o1"),
        )))

        updated = await make_pg_store(db).update(order.model_copy(update={"status": OrderStatus.CANCELLED}))

        sql, params = db.executed[0]
        assert "WHERE id=%s AND version=%s" in sql
        assert params[-2:] == ("o1", 0)
        assert updated.version == 1
        assert updated.status == OrderStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_update_conflict_when_row_exists_with_other_version(self):
        db = FakeDb()
        db.fetchone_results = [None, (1,)]
        order = accepted_order().model_copy(update={"id": "o1"})

        with pytest.raises(ConflictError):
            await make_pg_store(db).update(order)
        assert db.rollbacks == 1

    @pytest.mark.asyncio
    async def test_update_missing_row_is_not_found(self):
        db = FakeDb()
        db.fetchone_results = [None, None]
        order = accepted_order().model_copy(update={"id": "gone"})

        with pytest.raises(OrderNotFound):
            await make_pg_store(db).update(order)

    @pytest.mark.asyncio
    async def test_find_by_id(self):
        db = FakeDb()
        db.fetchone_results = [order_row("o1"), None]
        store = make_pg_store(db)

        found = await store.find_by_id("o1")
        assert found.id == "o1" and found.status == OrderStatus.ACCEPTED
        assert await store.find_by_id("o2") is None

    @pytest.mark.asyncio
    async def test_find_all_pages_by_id(self):
        db = FakeDb()
        db.fetchall_results = [[order_row("a"), order_row("b")], [order_row("c")]]

        ids = [o.id async for o in make_pg_store(db, page_size=2).find_all()]

        assert ids == ["a", "b", "c"]
        assert db.executed[1][1] == ("b", 2)


def test_conflict_error_is_an_order_error():
    err = ConflictError("o1", 3)

    assert isinstance(err, OrderError)
    assert err.order_id == "o1"
    assert err.expected_version == 3
