"""Order model — the single entity persisted by the order store.

An order carries three timestamps and its fulfillment status is derived
from them rather than stored:

    shipped_at  completed_at  status
    ----------  ------------  ---------
    null        null          created
    set         null          shipped
    set         set           completed

A completed order that never shipped is rejected on construction, so the
fourth combination cannot be loaded or persisted. So are timestamps out of
order: created_at <= shipped_at <= completed_at.
"""

import random
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_ORDER_ID = 2**64 - 1


class OrderStatus(Enum):
    CREATED = "created"
    SHIPPED = "shipped"
    COMPLETED = "completed"


def generate_order_id() -> int:
    """Draw a random unsigned 64-bit order id.

    Not sequential and not cryptographically random. Uniqueness is enforced
    by the conditional insert in the repository, not here.
    """
    return random.getrandbits(64)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class LineItem(BaseModel):
    """A purchased item, its quantity and unit price (in minor currency units)."""

    model_config = ConfigDict(frozen=True)

    item_id: UUID
    quantity: int = Field(ge=0)
    price: int = Field(ge=0)


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int = Field(ge=0, le=MAX_ORDER_ID)
    customer_id: UUID
    line_items: list[LineItem] = Field(default_factory=list)
    created_at: datetime
    shipped_at: datetime | None = None
    completed_at: datetime | None = None

    @field_validator("created_at", "shipped_at", "completed_at")
    @classmethod
    def _normalize_to_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return as_utc(value)

    @model_validator(mode="after")
    def _timestamps_in_order(self) -> "Order":
        if self.completed_at is not None and self.shipped_at is None:
            raise ValueError("completed_at cannot be set before shipped_at")
        if self.shipped_at is not None and self.shipped_at < self.created_at:
            raise ValueError("shipped_at cannot precede created_at")
        if self.completed_at is not None and self.completed_at < self.shipped_at:
            raise ValueError("completed_at cannot precede shipped_at")
        return self

    @property
    def status(self) -> OrderStatus:
        if self.completed_at is not None:
            return OrderStatus.COMPLETED
        if self.shipped_at is not None:
            return OrderStatus.SHIPPED
        return OrderStatus.CREATED

    @classmethod
    def create(
        cls,
        customer_id: UUID,
        line_items: list[LineItem] | list[dict],
        order_id: int | None = None,
        now: datetime | None = None,
    ) -> "Order":
        """Build a new order in the ``created`` state.

        The order id is drawn at random unless given, and ``created_at`` is
        the current UTC time unless ``now`` is passed.
        """
        return cls(
            order_id=generate_order_id() if order_id is None else order_id,
            customer_id=customer_id,
            line_items=line_items,
            created_at=now or utcnow(),
        )
