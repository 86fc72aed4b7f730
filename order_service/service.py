"""
Order Workflow
Submit / query / cancel orders against the catalog and the order store.
"""

import logging
from typing import AsyncIterator

from order_service.catalog import ProductClient
from order_service.errors import InvalidTransition, OrderNotFound
from order_service.models import Order, OrderStatus, Product
from order_service.store import OrderStore

logger = logging.getLogger(__name__)


class OrderService:

    def __init__(self, store: OrderStore, product_client: ProductClient):
        self.store = store
        self.product_client = product_client

    @staticmethod
    def build_rejected_order(product_id: str, quantity: int) -> Order:
        return Order.of(product_id, None, None, quantity, OrderStatus.REJECTED)

    @staticmethod
    def build_accepted_order(product: Product, quantity: int) -> Order:
        return Order.of(product.id, product.name, product.price, quantity, OrderStatus.ACCEPTED)

    def find_all_orders(self) -> AsyncIterator[Order]:
        return self.store.find_all()

    async def find_by_order_id(self, order_id: str) -> Order:
        order = await self.store.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def submit_order(self, product_id: str, quantity: int) -> Order:
        """
        Accept when the catalog has the product with enough units, reject
        otherwise. Both outcomes are persisted.
        """
        product = await self.product_client.get_product(product_id)

        # TODO: decrease product units once payment integration exists
        if product is not None and product.available_units >= quantity:
            order = self.build_accepted_order(product, quantity)
        else:
            order = self.build_rejected_order(product_id, quantity)

        saved = await self.store.insert(order)
        logger.info(
            f"Order {saved.id} {saved.status.value} product={product_id} quantity={quantity}"
        )
        return saved

    async def cancel_order(self, order_id: str) -> Order:
        existing = await self.find_by_order_id(order_id)

        if existing.status != OrderStatus.ACCEPTED:
            raise InvalidTransition(order_id, existing.status, OrderStatus.CANCELLED)

        # version as read; the store rejects the write if someone got there first
        to_update = existing.model_copy(update={"status": OrderStatus.CANCELLED})
        cancelled = await self.store.update(to_update)

        logger.info(f"Order {order_id} CANCELLED (version {cancelled.version})")
        return cancelled
