"""
Order persistence.

Every store enforces optimistic concurrency: update() only succeeds when the
supplied version matches the stored one, and bumps it by one.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Dict, List, Optional

import psycopg2

from order_service.errors import ConflictError, OrderNotFound
from order_service.models import Order, OrderStatus

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_order_id() -> str:
    return uuid.uuid4().hex


class OrderStore(ABC):
    """Datastore contract used by the order workflow"""

    @abstractmethod
    async def insert(self, order: Order) -> Order:
        """Persist a new order; assigns id, dates and version 0"""
        pass

    @abstractmethod
    async def update(self, order: Order) -> Order:
        """
        Compare-and-swap on order.version.

        Raises:
            ConflictError: stored version differs from order.version
            OrderNotFound: no order with that id
        """
        pass

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    def find_all(self) -> AsyncIterator[Order]:
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        pass


# ============================================================================
# In-memory
# ============================================================================

class InMemoryOrderStore(OrderStore):

    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def insert(self, order: Order) -> Order:
        now = utcnow()
        saved = order.model_copy(update={
            "id": order.id or new_order_id(),
            "created_date": now,
            "last_modified_date": now,
            "version": 0,
        })
        async with self._lock:
            self._orders[saved.id] = saved
        return saved

    async def update(self, order: Order) -> Order:
        async with self._lock:
            current = self._orders.get(order.id)
            if current is None:
                raise OrderNotFound(order.id)
            if current.version != order.version:
                raise ConflictError(order.id, order.version)

            saved = order.model_copy(update={
                "created_date": current.created_date,
                "last_modified_date": utcnow(),
                "version": current.version + 1,
            })
            self._orders[saved.id] = saved
        return saved

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    async def find_all(self) -> AsyncIterator[Order]:
        # snapshot so concurrent inserts don't break iteration
        for order in list(self._orders.values()):
            yield order

    async def delete_all(self) -> None:
        async with self._lock:
            self._orders.clear()


# ============================================================================
# PostgreSQL
# ============================================================================

ORDER_COLUMNS = (
    "id, product_id, product_name, product_price, quantity, status, "
    "created_date, last_modified_date, version"
)


def row_to_order(row) -> Order:
    return Order(
        id=row[0],
        product_id=row[1],
        product_name=row[2],
        product_price=row[3],
        quantity=row[4],
        status=OrderStatus(row[5]),
        created_date=row[6],
        last_modified_date=row[7],
        version=row[8],
    )


class PostgresOrderStore(OrderStore):
    """
    psycopg2-backed store. Blocking driver calls run in a worker thread
    so the event loop stays free.
    """

    def __init__(self, dsn: str, connect: Callable = psycopg2.connect, page_size: int = 100):
        self.dsn = dsn
        self._connect = connect
        self.page_size = page_size

    @contextmanager
    def db_conn(self):
        conn = self._connect(self.dsn)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def init_schema(self):
        with self.db_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS orders (
                        id TEXT PRIMARY KEY,
                        product_id TEXT NOT NULL,
                        product_name TEXT,
                        product_price DOUBLE PRECISION,
                        quantity INTEGER NOT NULL,
                        status TEXT NOT NULL,
                        created_date TIMESTAMPTZ NOT NULL,
                        last_modified_date TIMESTAMPTZ NOT NULL,
                        version INTEGER NOT NULL DEFAULT 0
                    );
                    """
                )
            conn.commit()

    # ---------------- sync driver calls ----------------
    def _insert(self, order: Order) -> Order:
        now = utcnow()
        saved = order.model_copy(update={
            "id": order.id or new_order_id(),
            "created_date": now,
            "last_modified_date": now,
            "version": 0,
        })
        with self.db_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"INSERT INTO orders ({ORDER_COLUMNS}) VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                    (
                        saved.id,
                        saved.product_id,
                        saved.product_name,
                        saved.product_price,
                        saved.quantity,
                        saved.status.value,
                        saved.created_date,
                        saved.last_modified_date,
                        saved.version,
                    ),
                )
            conn.commit()
        return saved

    def _update(self, order: Order) -> Order:
        now = utcnow()
        with self.db_conn() as conn:
            with conn.cursor() as cur:
                # version guard: only the writer holding the current version wins
                cur.execute(
                    f"""
                    UPDATE orders
                    SET product_name=%s,
                        product_price=%s,
                        quantity=%s,
                        status=%s,
                        last_modified_date=%s,
                        version = version + 1
                    WHERE id=%s AND version=%s
                    RETURNING {ORDER_COLUMNS}
                    """,
                    (
                        order.product_name,
                        order.product_price,
                        order.quantity,
                        order.status.value,
                        now,
                        order.id,
                        order.version,
                    ),
                )
                row = cur.fetchone()
                if row is None:
                    cur.execute("SELECT 1 FROM orders WHERE id=%s", (order.id,))
                    exists = cur.fetchone() is not None
                    if not exists:
                        raise OrderNotFound(order.id)
                    raise ConflictError(order.id, order.version)
            conn.commit()
        return row_to_order(row)

    def _find_by_id(self, order_id: str) -> Optional[Order]:
        with self.db_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {ORDER_COLUMNS} FROM orders WHERE id=%s", (order_id,))
                row = cur.fetchone()
        return row_to_order(row) if row else None

    def _fetch_page(self, after_id: Optional[str]) -> List[Order]:
        with self.db_conn() as conn:
            with conn.cursor() as cur:
                if after_id is None:
                    cur.execute(
                        f"SELECT {ORDER_COLUMNS} FROM orders ORDER BY id ASC LIMIT %s",
                        (self.page_size,),
                    )
                else:
                    cur.execute(
                        f"SELECT {ORDER_COLUMNS} FROM orders WHERE id > %s ORDER BY id ASC LIMIT %s",
                        (after_id, self.page_size),
                    )
                rows = cur.fetchall()
        return [row_to_order(r) for r in rows]

    def _delete_all(self):
        with self.db_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM orders")
            conn.commit()

    # ---------------- async API ----------------
    async def insert(self, order: Order) -> Order:
        return await asyncio.to_thread(self._insert, order)

    async def update(self, order: Order) -> Order:
        return await asyncio.to_thread(self._update, order)

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        return await asyncio.to_thread(self._find_by_id, order_id)

    async def find_all(self) -> AsyncIterator[Order]:
        after_id = None
        while True:
            page = await asyncio.to_thread(self._fetch_page, after_id)
            for order in page:
                yield order
            if len(page) < self.page_size:
                return
            after_id = page[-1].id

    async def delete_all(self) -> None:
        await asyncio.to_thread(self._delete_all)
        logger.info("Deleted all orders")
