"""Order lifecycle — validates status transitions.

State Machine:
    CREATED → SHIPPED → COMPLETED

No reverse transitions and no skipping SHIPPED. A transition stamps the
matching timestamp on a copy of the order; persisting the copy is the
caller's job (``OrderRepository.update``).
"""

from datetime import datetime

from ordering.exceptions import InvalidStatus, InvalidTransition
from ordering.order.order import Order, OrderStatus, as_utc, utcnow

# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.CREATED: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
}

# Timestamp stamped by each transition target
_TIMESTAMP_FIELDS = {
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.COMPLETED: "completed_at",
}

# Timestamp the new one must not precede
_PRECEDING_FIELDS = {
    OrderStatus.SHIPPED: "created_at",
    OrderStatus.COMPLETED: "shipped_at",
}


def parse_target(target: OrderStatus | str) -> OrderStatus:
    """Resolve a requested target into an ``OrderStatus`` that can be transitioned to."""
    if isinstance(target, OrderStatus):
        status = target
    else:
        try:
            status = OrderStatus(target)
        except ValueError:
            raise InvalidStatus(target) from None

    if status not in _TIMESTAMP_FIELDS:
        raise InvalidStatus(status.value)
    return status


def _rejection_reason(order: Order, target: OrderStatus) -> str:
    if target is OrderStatus.SHIPPED:
        return "order has already shipped"
    if order.completed_at is not None:
        return "order is already completed"
    return "order has not shipped yet"


def transition(order: Order, target: OrderStatus | str, now: datetime | None = None) -> Order:
    """Return a copy of ``order`` moved to ``target``.

    Raises ``InvalidStatus`` for anything other than ``shipped`` or
    ``completed`` and ``InvalidTransition`` when the order is not in the
    state that precedes ``target`` or when ``now`` is earlier than the
    order's previous timestamp. ``order`` itself is never modified.
    """
    target = parse_target(target)
    current = order.status

    if target not in _VALID_TRANSITIONS[current]:
        raise InvalidTransition(current, target, _rejection_reason(order, target))

    now = utcnow() if now is None else as_utc(now)
    field, preceding = _TIMESTAMP_FIELDS[target], _PRECEDING_FIELDS[target]
    if now < getattr(order, preceding):
        raise InvalidTransition(current, target, f"{field} cannot precede {preceding}")

    return order.model_copy(update={field: now})
