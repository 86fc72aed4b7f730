"""
Shared fixtures for the order service tests.
"""

from typing import Dict, List, Optional

import pytest

from order_service.models import Product
from order_service.service import OrderService
from order_service.store import InMemoryOrderStore


class FakeProductClient:
    """Catalog stand-in: returns whatever is in `products`, None otherwise"""

    def __init__(self, products: Optional[Dict[str, Product]] = None):
        self.products = products or {}
        self.calls: List[str] = []

    async def get_product(self, product_id: str) -> Optional[Product]:
        self.calls.append(product_id)
        return self.products.get(product_id)


class RecordingSleep:
    """Replacement for asyncio.sleep that records delays and returns at once"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def widget() -> Product:
    return Product(id="p1", name="Widget", price=9.99, units=5)


@pytest.fixture
def store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def product_client(widget) -> FakeProductClient:
    return FakeProductClient({widget.id: widget})


@pytest.fixture
def order_service(store, product_client) -> OrderService:
    return OrderService(store, product_client)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()
