"""Pydantic request/response schemas for the Orders API.

These are external contracts — separate from the internal ``Order`` model.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from ordering.order.order import Order


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class LineItemSchema(BaseModel):
    item_id: UUID
    quantity: int = Field(ge=0)
    price: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    customer_id: UUID
    line_items: list[LineItemSchema] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "8f14e45f-ceea-467f-a8f2-6d2b9c3a1e07",
                    "line_items": [
                        {
                            "item_id": "0b6c9c3e-4f5a-4d8e-9f1a-2c3b4d5e6f70",
                            "quantity": 2,
                            "price": 1999,
                        }
                    ],
                }
            ]
        }
    }


class UpdateOrderRequest(BaseModel):
    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "shipped"}]}}


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    order_id: int
    customer_id: UUID
    line_items: list[LineItemSchema]
    created_at: datetime
    shipped_at: datetime | None
    completed_at: datetime | None
    status: str

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            order_id=order.order_id,
            customer_id=order.customer_id,
            line_items=[LineItemSchema(**item.model_dump()) for item in order.line_items],
            created_at=order.created_at,
            shipped_at=order.shipped_at,
            completed_at=order.completed_at,
            status=order.status.value,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next: int | None = None
