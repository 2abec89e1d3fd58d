"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the API's Pydantic request
schemas: UUID customer and item ids, non-negative quantities and prices
in cents.
"""

import random
import uuid

from faker import Faker

fake = Faker()


def customer_id() -> str:
    """Generate a customer id the way a client system would hand it over."""
    return str(fake.uuid4())


def line_item() -> dict:
    """Generate LineItemSchema payload."""
    return {
        "item_id": str(uuid.uuid4()),
        "quantity": random.randint(1, 5),
        "price": fake.pyint(min_value=99, max_value=19999),
    }


def order_data(customer: str | None = None, num_items: int | None = None) -> dict:
    """Generate CreateOrderRequest payload."""
    if num_items is None:
        num_items = random.randint(1, 4)
    return {
        "customer_id": customer or customer_id(),
        "line_items": [line_item() for _ in range(num_items)],
    }


def status_update(status: str) -> dict:
    """Generate UpdateOrderRequest payload."""
    return {"status": status}
