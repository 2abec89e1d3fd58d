"""Order load test scenarios.

Two stateful SequentialTaskSet journeys: the full order lifecycle from
creation to deletion, and a read-heavy browser that pages through the
order listing and fetches individual orders.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import order_data, status_update
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import BrowseState, OrderState


class OrderLifecycleJourney(SequentialTaskSet):
    """Create -> Get -> Ship -> Ship again (rejected) -> Complete -> Delete.

    The happy path through the state machine, with one deliberately
    rejected transition to keep the 400 path warm.
    """

    def on_start(self):
        self.state = OrderState()

    @task
    def create_order(self):
        payload = order_data()
        with self.client.post("/orders", json=payload, catch_response=True, name="POST /orders") as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.customer_id = body["customer_id"]
                self.state.item_count = len(body["line_items"])
            else:
                resp.failure(f"Create order failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def get_order(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Get order failed: {resp.status_code} - {extract_error_detail(resp)}")
            elif resp.json()["status"] != self.state.current_status:
                resp.failure(f"Unexpected status {resp.json()['status']!r}")

    @task
    def ship_order(self):
        self._change_status("shipped")

    @task
    def ship_order_again(self):
        with self.client.put(
            f"/orders/{self.state.order_id}",
            json=status_update("shipped"),
            catch_response=True,
            name="PUT /orders/{id} (rejected)",
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Second shipment was not rejected: {resp.status_code}")

    @task
    def complete_order(self):
        self._change_status("completed")

    @task
    def delete_order(self):
        with self.client.delete(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="DELETE /orders/{id}",
        ) as resp:
            if resp.status_code != 204:
                resp.failure(f"Delete order failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()

    def _change_status(self, status):
        with self.client.put(
            f"/orders/{self.state.order_id}",
            json=status_update(status),
            catch_response=True,
            name="PUT /orders/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = status
            else:
                resp.failure(f"Move to {status} failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()


class OrderBrowsingJourney(SequentialTaskSet):
    """List a few pages of orders, then fetch one of the listed orders."""

    def on_start(self):
        self.state = BrowseState()

    @task(3)
    def list_page(self):
        with self.client.get(
            "/orders",
            params={"cursor": self.state.cursor},
            catch_response=True,
            name="GET /orders",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List orders failed: {resp.status_code} - {extract_error_detail(resp)}")
                return
            body = resp.json()
            self.state.seen_order_ids.extend(item["order_id"] for item in body["items"])
            self.state.cursor = body.get("next", 0)

    @task
    def get_listed_order(self):
        if not self.state.seen_order_ids:
            return
        order_id = random.choice(self.state.seen_order_ids)
        with self.client.get(f"/orders/{order_id}", catch_response=True, name="GET /orders/{id}") as resp:
            # Another user may have deleted it since it was listed
            if resp.status_code in (200, 404):
                resp.success()
            else:
                resp.failure(f"Get order failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class OrderingUser(HttpUser):
    """Locust user simulating order traffic.

    Weighted distribution:
    - 60% Full order lifecycle
    - 40% Browsing the listing
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        OrderLifecycleJourney: 3,
        OrderBrowsingJourney: 2,
    }
