"""Error kinds raised by the order store and the order lifecycle.

The store and the lifecycle never log. They raise one of these and leave
presentation to the caller (see ``app.py`` for the HTTP mapping).
"""


class OrderError(Exception):
    """Base class for every error raised by the ordering core."""


class OrderNotFound(OrderError):
    """No record is stored for the requested order id."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class StorageError(OrderError):
    """The backend was unreachable, timed out, or returned malformed data."""


class InvalidStatus(OrderError):
    """The requested status is not a transition target."""

    def __init__(self, status):
        self.status = status
        super().__init__(f"Unknown order status: {status!r}")


class InvalidTransition(OrderError):
    """The requested transition violates the created -> shipped -> completed ordering."""

    def __init__(self, current, target, reason: str):
        self.current = current
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot move order from {current.value} to {target.value}: {reason}")


class Conflict(OrderError):
    """The stored record changed underneath a conditional write."""


class DuplicateOrder(Conflict):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} already exists")
