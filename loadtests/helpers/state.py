"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state with no cross-user
sharing. State tracks ids returned by the create endpoint so follow-up
requests can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class OrderState:
    """Tracks state for a single order lifecycle."""

    order_id: int | None = None
    customer_id: str | None = None
    current_status: str = "created"
    item_count: int = 0


@dataclass
class BrowseState:
    """Tracks the listing cursor of a user paging through orders."""

    cursor: int = 0
    seen_order_ids: list[int] = field(default_factory=list)
