"""FastAPI routes for orders.

Routes are plain ``def`` handlers: the repository talks to the backend with
blocking calls, so FastAPI runs each request in its threadpool.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, Response

from ordering.api.schemas import (
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    UpdateOrderRequest,
)
from ordering.config import Settings
from ordering.order.lifecycle import transition
from ordering.order.order import MAX_ORDER_ID
from ordering.order.repository import ListPage, OrderRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> OrderRepository:
    return OrderRepository(request.app.state.backend)


OrderId = Annotated[int, Path(ge=0, le=MAX_ORDER_ID)]

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def create_order(
    body: CreateOrderRequest,
    repository: OrderRepository = Depends(get_repository),
) -> OrderResponse:
    order = repository.create(
        customer_id=body.customer_id,
        line_items=[item.model_dump() for item in body.line_items],
    )
    return OrderResponse.from_order(order)


@order_router.get("", response_model=OrderListResponse, response_model_exclude_unset=True)
def list_orders(
    cursor: int = Query(default=0, ge=0, le=MAX_ORDER_ID),
    repository: OrderRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> OrderListResponse:
    """List orders in insertion order.

    Pass the returned ``next`` value as ``cursor`` to fetch the following
    page. ``next`` is omitted on the last page.
    """
    page = repository.list(ListPage(offset=cursor, size=settings.page_size))
    items = [OrderResponse.from_order(order) for order in page.orders]
    if page.next_cursor is None:
        return OrderListResponse(items=items)
    return OrderListResponse(items=items, next=page.next_cursor)


@order_router.get("/{order_id}", response_model=OrderResponse)
def find_order(
    order_id: OrderId,
    repository: OrderRepository = Depends(get_repository),
) -> OrderResponse:
    return OrderResponse.from_order(repository.find(order_id))


@order_router.put("/{order_id}", response_model=OrderResponse)
def update_order(
    body: UpdateOrderRequest,
    order_id: OrderId,
    repository: OrderRepository = Depends(get_repository),
) -> OrderResponse:
    """Move the order to ``shipped`` or ``completed``.

    The write is conditional on the order being unchanged since it was read,
    so concurrent updates to the same order fail with 409 instead of
    overwriting each other.
    """
    order = repository.find(order_id)
    updated = transition(order, body.status)
    repository.update(updated, expected=order)
    return OrderResponse.from_order(updated)


@order_router.delete("/{order_id}", status_code=204)
def delete_order(
    order_id: OrderId,
    repository: OrderRepository = Depends(get_repository),
) -> Response:
    repository.delete(order_id)
    return Response(status_code=204)
