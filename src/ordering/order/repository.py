"""Order store — maps orders onto key-value backend operations.

Key scheme (deterministic from the order id, no shared state needed):
    order:<order_id>   serialized order record (pydantic JSON)
    orders             insertion-ordered index of order ids

Listing walks the index by position. An index entry whose record is gone
is skipped silently but still consumes its position, so cursors never
revisit it.
"""

from dataclasses import dataclass
from uuid import UUID

from pydantic import ValidationError

from ordering.exceptions import DuplicateOrder, OrderNotFound, StorageError
from ordering.order.order import LineItem, Order
from ordering.store.port import KeyValueBackend

ORDER_KEY_PREFIX = "order"
ORDER_INDEX_KEY = "orders"


def order_key(order_id: int) -> str:
    return f"{ORDER_KEY_PREFIX}:{order_id}"


@dataclass(frozen=True)
class ListPage:
    """Position to resume listing from and the maximum number of entries to read."""

    offset: int = 0
    size: int = 50

    def __post_init__(self):
        if self.offset < 0:
            raise ValueError(f"offset must not be negative, got {self.offset}")
        if self.size < 1:
            raise ValueError(f"size must be positive, got {self.size}")


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order]
    next_cursor: int | None = None


class OrderRepository:
    def __init__(self, backend: KeyValueBackend):
        self.backend = backend

    @staticmethod
    def _encode(order: Order) -> str:
        return order.model_dump_json()

    @staticmethod
    def _decode(key: str, raw: str) -> Order:
        try:
            return Order.model_validate_json(raw)
        except ValidationError as exc:
            raise StorageError(f"Malformed order record under {key}") from exc

    def insert(self, order: Order) -> None:
        key = order_key(order.order_id)
        created = self.backend.create(key, self._encode(order), ORDER_INDEX_KEY, str(order.order_id))
        if not created:
            raise DuplicateOrder(order.order_id)

    def create(self, customer_id: UUID, line_items: list[LineItem] | list[dict]) -> Order:
        """Assign an id and creation time to a new order and insert it."""
        order = Order.create(customer_id=customer_id, line_items=line_items)
        self.insert(order)
        return order

    def find(self, order_id: int) -> Order:
        key = order_key(order_id)
        raw = self.backend.get(key)
        if raw is None:
            raise OrderNotFound(order_id)
        return self._decode(key, raw)

    def list(self, page: ListPage) -> OrderPage:
        # Offsets past the end can exceed what the backend accepts as a range bound
        if page.offset >= self.backend.index_size(ORDER_INDEX_KEY):
            return OrderPage(orders=[])

        members = self.backend.index_range(ORDER_INDEX_KEY, page.offset, page.size)
        try:
            keys = [order_key(int(member)) for member in members]
        except ValueError as exc:
            raise StorageError(f"Malformed entry in {ORDER_INDEX_KEY} index") from exc

        orders = [self._decode(key, raw) for key, raw in zip(keys, self.backend.get_many(keys)) if raw is not None]

        next_cursor = page.offset + len(members) if len(members) == page.size else None
        return OrderPage(orders=orders, next_cursor=next_cursor)

    def update(self, order: Order, expected: Order | None = None) -> None:
        """Overwrite the stored record for ``order.order_id`` wholesale.

        With ``expected`` (the order as previously fetched) the write is
        conditional and raises ``Conflict`` if the stored record has changed
        since. Without it the last write wins.
        """
        if expected is not None and expected.order_id != order.order_id:
            raise ValueError("expected order must have the same order_id")

        key = order_key(order.order_id)
        replaced = self.backend.replace(
            key,
            self._encode(order),
            expected=None if expected is None else self._encode(expected),
        )
        if not replaced:
            raise OrderNotFound(order.order_id)

    def delete(self, order_id: int) -> None:
        if not self.backend.remove(order_key(order_id), ORDER_INDEX_KEY, str(order_id)):
            raise OrderNotFound(order_id)

    def count(self) -> int:
        """Number of entries in the listing index, dangling ones included."""
        return self.backend.index_size(ORDER_INDEX_KEY)

    def prune_index(self, batch_size: int = 500) -> int:
        """Drop index entries whose record no longer exists.

        Returns the number of entries removed.
        """
        dangling = []
        offset = 0
        while True:
            members = self.backend.index_range(ORDER_INDEX_KEY, offset, batch_size)
            if not members:
                break
            keys = [f"{ORDER_KEY_PREFIX}:{member}" for member in members]
            records = self.backend.get_many(keys)
            dangling.extend(member for member, raw in zip(members, records) if raw is None)
            offset += len(members)

        return sum(1 for member in dangling if self.backend.index_discard(ORDER_INDEX_KEY, member))
