"""Tests for OrderRepository against the in-memory backend."""

import json
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from ordering.exceptions import Conflict, DuplicateOrder, OrderNotFound, StorageError
from ordering.order.lifecycle import transition
from ordering.order.order import OrderStatus
from ordering.order.repository import ORDER_INDEX_KEY, ListPage, OrderPage, order_key


def _collect_all(repository, size):
    """Follow next cursors from the start of the listing until they run out."""
    seen = []
    cursor = 0
    while True:
        page = repository.list(ListPage(offset=cursor, size=size))
        seen.extend(order.order_id for order in page.orders)
        if page.next_cursor is None:
            return seen
        cursor = page.next_cursor


class TestKeyScheme:
    def test_order_key(self):
        assert order_key(42) == "order:42"

    def test_record_is_stored_under_order_key(self, repository, backend, make_order):
        order = make_order(order_id=12345)
        repository.insert(order)
        assert backend.get("order:12345") is not None
        assert backend.index_range(ORDER_INDEX_KEY, 0, 10) == ["12345"]


class TestInsertAndFind:
    def test_found_order_equals_inserted_order(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        assert repository.find(order.order_id) == order

    def test_round_trip_with_all_timestamps(self, repository, make_order):
        created = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=UTC)
        order = make_order(
            created_at=created,
            shipped_at=created + timedelta(hours=1),
            completed_at=created + timedelta(days=1),
        )
        repository.insert(order)
        found = repository.find(order.order_id)
        assert found == order
        assert found.status == OrderStatus.COMPLETED

    def test_round_trip_with_largest_id(self, repository, make_order):
        order = make_order(order_id=2**64 - 1)
        repository.insert(order)
        assert repository.find(2**64 - 1) == order

    def test_insert_existing_id_fails(self, repository, make_order):
        repository.insert(make_order(order_id=7))
        with pytest.raises(DuplicateOrder) as exc_info:
            repository.insert(make_order(order_id=7, customer_id=uuid4()))
        assert exc_info.value.order_id == 7

    def test_duplicate_insert_keeps_original_record_and_single_index_entry(self, repository, make_order):
        original = make_order(order_id=7)
        repository.insert(original)
        with pytest.raises(Conflict):
            repository.insert(make_order(order_id=7, customer_id=uuid4()))
        assert repository.find(7) == original
        assert repository.count() == 1

    def test_find_missing_order(self, repository):
        with pytest.raises(OrderNotFound) as exc_info:
            repository.find(99)
        assert exc_info.value.order_id == 99

    def test_create_assigns_id_and_persists(self, repository):
        customer_id = uuid4()
        order = repository.create(customer_id, [{"item_id": uuid4(), "quantity": 3, "price": 250}])
        assert order.status == OrderStatus.CREATED
        assert repository.find(order.order_id) == order


class TestMalformedRecords:
    def test_undecodable_record_is_storage_error(self, repository, backend):
        backend.create(order_key(5), "{not json", ORDER_INDEX_KEY, "5")
        with pytest.raises(StorageError, match="Malformed order record"):
            repository.find(5)

    def test_completed_but_never_shipped_record_is_storage_error(self, repository, backend, make_order):
        record = make_order(order_id=5).model_dump(mode="json")
        record["completed_at"] = "2024-05-02T00:00:00Z"
        backend.create(order_key(5), json.dumps(record), ORDER_INDEX_KEY, "5")
        with pytest.raises(StorageError):
            repository.find(5)

    def test_non_numeric_index_entry_is_storage_error(self, repository, backend):
        backend.create("order:junk", "{}", ORDER_INDEX_KEY, "junk")
        with pytest.raises(StorageError, match="Malformed entry"):
            repository.list(ListPage())


class TestList:
    def test_empty_listing(self, repository):
        page = repository.list(ListPage(offset=0, size=50))
        assert page == OrderPage(orders=[], next_cursor=None)

    def test_single_order_has_no_next_cursor(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        page = repository.list(ListPage(offset=0, size=50))
        assert page.orders == [order]
        assert page.next_cursor is None

    def test_full_page_returns_next_cursor(self, repository, make_order):
        for order_id in range(1, 6):
            repository.insert(make_order(order_id=order_id))
        page = repository.list(ListPage(offset=0, size=2))
        assert [o.order_id for o in page.orders] == [1, 2]
        assert page.next_cursor == 2

    def test_resume_from_cursor(self, repository, make_order):
        for order_id in range(1, 6):
            repository.insert(make_order(order_id=order_id))
        page = repository.list(ListPage(offset=2, size=2))
        assert [o.order_id for o in page.orders] == [3, 4]
        assert page.next_cursor == 4

    def test_exact_multiple_ends_with_empty_page(self, repository, make_order):
        for order_id in range(1, 5):
            repository.insert(make_order(order_id=order_id))
        assert repository.list(ListPage(offset=2, size=2)).next_cursor == 4
        assert repository.list(ListPage(offset=4, size=2)) == OrderPage(orders=[], next_cursor=None)

    def test_offset_past_end_is_an_empty_page(self, repository, make_order):
        repository.insert(make_order())
        assert repository.list(ListPage(offset=100, size=10)) == OrderPage(orders=[], next_cursor=None)

    @pytest.mark.parametrize("offset", [2**63, 2**64 - 1])
    def test_offset_beyond_machine_integers_is_an_empty_page(self, repository, make_order, offset):
        repository.insert(make_order())
        assert repository.list(ListPage(offset=offset, size=50)) == OrderPage(orders=[], next_cursor=None)

    @pytest.mark.parametrize("count,size", [(1, 1), (7, 3), (10, 5), (23, 50), (50, 50)])
    def test_pagination_yields_every_order_once_in_insertion_order(self, repository, make_order, count, size):
        # Random ids, so insertion order differs from numeric order
        orders = [make_order() for _ in range(count)]
        for order in orders:
            repository.insert(order)
        assert _collect_all(repository, size) == [order.order_id for order in orders]

    def test_deleted_orders_drop_out_of_listing(self, repository, make_order):
        for order_id in range(1, 6):
            repository.insert(make_order(order_id=order_id))
        repository.delete(2)
        repository.delete(4)
        assert _collect_all(repository, 2) == [1, 3, 5]

    def test_dangling_index_entries_are_skipped(self, repository, backend, make_order):
        for order_id in range(1, 4):
            repository.insert(make_order(order_id=order_id))
        # Record gone, index entry left behind
        backend._records.pop(order_key(2))

        page = repository.list(ListPage(offset=0, size=3))
        assert [o.order_id for o in page.orders] == [1, 3]
        assert page.next_cursor == 3

    @pytest.mark.parametrize("offset,size", [(-1, 10), (0, 0), (0, -5)])
    def test_invalid_page_is_rejected(self, offset, size):
        with pytest.raises(ValueError):
            ListPage(offset=offset, size=size)

    def test_default_page(self):
        assert ListPage() == ListPage(offset=0, size=50)


class TestUpdate:
    def test_update_overwrites_record(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        shipped = transition(order, "shipped")
        repository.update(shipped)
        assert repository.find(order.order_id) == shipped

    def test_update_missing_order(self, repository, make_order):
        with pytest.raises(OrderNotFound):
            repository.update(make_order(order_id=404))

    def test_update_after_delete(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        repository.delete(order.order_id)
        with pytest.raises(OrderNotFound):
            repository.update(transition(order, "shipped"), expected=order)

    def test_update_does_not_touch_index(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        repository.update(transition(order, "shipped"))
        assert repository.count() == 1

    def test_unguarded_update_lets_last_write_win(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        first = transition(order, "shipped", now=datetime(2024, 6, 1, tzinfo=UTC))
        second = transition(order, "shipped", now=datetime(2024, 6, 2, tzinfo=UTC))
        repository.update(first)
        repository.update(second)
        assert repository.find(order.order_id) == second

    def test_guarded_update_succeeds_when_unchanged(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        shipped = transition(order, "shipped")
        repository.update(shipped, expected=order)
        assert repository.find(order.order_id) == shipped

    def test_guarded_update_detects_concurrent_write(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        # Two requests read the same order and both ship it
        first = transition(order, "shipped", now=datetime(2024, 6, 1, tzinfo=UTC))
        second = transition(order, "shipped", now=datetime(2024, 6, 2, tzinfo=UTC))
        repository.update(first, expected=order)

        with pytest.raises(Conflict):
            repository.update(second, expected=order)
        assert repository.find(order.order_id) == first

    def test_expected_order_must_match_id(self, repository, make_order):
        with pytest.raises(ValueError):
            repository.update(make_order(order_id=1), expected=make_order(order_id=2))


class TestDelete:
    def test_delete_removes_record_and_index_entry(self, repository, backend, make_order):
        order = make_order()
        repository.insert(order)
        repository.delete(order.order_id)

        with pytest.raises(OrderNotFound):
            repository.find(order.order_id)
        assert backend.get(order_key(order.order_id)) is None
        assert repository.count() == 0

    def test_second_delete_is_not_found(self, repository, make_order):
        order = make_order()
        repository.insert(order)
        repository.delete(order.order_id)
        with pytest.raises(OrderNotFound):
            repository.delete(order.order_id)

    def test_delete_missing_order(self, repository):
        with pytest.raises(OrderNotFound):
            repository.delete(1)

    def test_delete_leaves_other_orders(self, repository, make_order):
        keep, drop = make_order(order_id=1), make_order(order_id=2)
        repository.insert(keep)
        repository.insert(drop)
        repository.delete(2)
        assert repository.find(1) == keep
        assert repository.count() == 1


class TestPruneIndex:
    def test_prune_removes_only_dangling_entries(self, repository, backend, make_order):
        for order_id in range(1, 8):
            repository.insert(make_order(order_id=order_id))
        backend._records.pop(order_key(3))
        backend._records.pop(order_key(6))

        assert repository.prune_index(batch_size=2) == 2
        assert backend.index_range(ORDER_INDEX_KEY, 0, 10) == ["1", "2", "4", "5", "7"]

    def test_prune_clean_index(self, repository, make_order):
        repository.insert(make_order())
        assert repository.prune_index() == 0
        assert repository.count() == 1

    def test_prune_empty_index(self, repository):
        assert repository.prune_index() == 0


class TestBackendFailures:
    @pytest.fixture(autouse=True)
    def _outage(self, backend):
        backend.configure(available=False, failure_reason="connection refused")

    def test_insert(self, repository, make_order):
        with pytest.raises(StorageError, match="connection refused"):
            repository.insert(make_order())

    def test_find(self, repository):
        with pytest.raises(StorageError):
            repository.find(1)

    def test_list(self, repository):
        with pytest.raises(StorageError):
            repository.list(ListPage())

    def test_update(self, repository, make_order):
        with pytest.raises(StorageError):
            repository.update(make_order())

    def test_delete(self, repository):
        with pytest.raises(StorageError):
            repository.delete(1)
