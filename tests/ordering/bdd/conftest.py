"""Shared BDD fixtures and step definitions for orders."""

from uuid import UUID, uuid4

import pytest
from ordering.exceptions import InvalidStatus, InvalidTransition, OrderError
from ordering.order.lifecycle import transition
from ordering.order.order import LineItem
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return UUID("c1c1c1c1-0000-4000-8000-000000000001")


@pytest.fixture()
def context():
    """Mutable state shared between the steps of one scenario."""
    return {"order_id": None, "orders": [], "error": None}


def _update_status(repository, context, status):
    order = repository.find(context["order_id"])
    try:
        updated = transition(order, status)
    except OrderError as exc:
        context["error"] = exc
        return
    repository.update(updated, expected=order)
    context["error"] = None


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("an order was created with {count:d} line items"))
def _(repository, context, customer_id, count):
    items = [LineItem(item_id=uuid4(), quantity=1, price=1000 + i) for i in range(count)]
    order = repository.create(customer_id, items)
    context["order_id"] = order.order_id
    context["orders"].append(order.order_id)


@given("the order was shipped")
def _(repository, context):
    _update_status(repository, context, "shipped")
    assert context["error"] is None


@given("the order was completed")
def _(repository, context):
    _update_status(repository, context, "completed")
    assert context["error"] is None


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the order status is changed to "{status}"'))
def _(repository, context, status):
    _update_status(repository, context, status)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(repository, context, status):
    assert repository.find(context["order_id"]).status.value == status


@then("the change is rejected as an invalid transition")
def _(context):
    assert isinstance(context["error"], InvalidTransition)


@then("the change is rejected as an invalid status")
def _(context):
    assert isinstance(context["error"], InvalidStatus)


@then("the order shipped no later than it completed")
def _(repository, context):
    order = repository.find(context["order_id"])
    assert order.shipped_at <= order.completed_at
