from order_service.models import OrderStatus


class OrderError(Exception):
    """Base class for order workflow errors"""


class OrderNotFound(OrderError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order with ID '{order_id}' was not found.")


class ConflictError(OrderError):
    """Version-guarded update lost against a concurrent modification"""

    def __init__(self, order_id: str, expected_version: int):
        self.order_id = order_id
        self.expected_version = expected_version
        super().__init__(
            f"Order with ID '{order_id}' was modified concurrently "
            f"(expected version {expected_version})."
        )


class InvalidTransition(OrderError):
    def __init__(self, order_id: str, current: OrderStatus, target: OrderStatus):
        self.order_id = order_id
        self.current = current
        self.target = target
        super().__init__(
            f"Order with ID '{order_id}' cannot move from {current.value} to {target.value}."
        )
