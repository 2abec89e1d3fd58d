from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest
from ordering.order.order import LineItem, Order, generate_order_id
from ordering.order.repository import OrderRepository
from ordering.store.memory_adapter import MemoryBackend

CUSTOMER_ID = UUID("6f1c2b7e-3d4a-4c5b-9e8f-0a1b2c3d4e5f")


def line_items(count=2):
    return [LineItem(item_id=uuid4(), quantity=i + 1, price=1000 * (i + 1)) for i in range(count)]


@pytest.fixture()
def backend():
    return MemoryBackend()


@pytest.fixture()
def repository(backend):
    return OrderRepository(backend)


@pytest.fixture()
def make_order():
    def _make_order(order_id=None, **overrides):
        fields = {
            "customer_id": CUSTOMER_ID,
            "line_items": line_items(),
            "created_at": datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        }
        fields.update(overrides)
        if order_id is not None:
            fields["order_id"] = order_id
        else:
            fields.setdefault("order_id", generate_order_id())
        return Order(**fields)

    return _make_order
