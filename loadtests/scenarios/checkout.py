"""Checkout load test scenarios.

Stateful SequentialTaskSet journeys for guest checkout with tracking,
a customer order cancelled before it ships, and an order driven all the
way to delivery by an admin.
"""

import random

from locust import SequentialTaskSet, task

from loadtests.data_generators import ADMIN_HEADERS, customer_headers, load_catalog, order_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OrderState


class _CheckoutJourney(SequentialTaskSet):
    guest = True

    def on_start(self):
        self.catalog = load_catalog()
        self.state = OrderState(headers={} if self.guest else customer_headers())

    def place_order(self):
        payload = order_data(self.catalog, guest=self.guest)
        with self.client.post(
            "/orders",
            json=payload,
            headers=self.state.headers,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["id"]
                self.state.order_number = body["order_number"]
                self.state.contact_email = payload.get("guest_email") or self.state.headers.get("X-User-Email")
            else:
                resp.failure(f"Checkout failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()

    def move_to(self, status):
        with self.client.put(
            f"/orders/{self.state.order_id}/status",
            json={"status": status},
            headers=ADMIN_HEADERS,
            catch_response=True,
            name=f"PUT /orders/{{id}}/status [{status}]",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = status
            else:
                resp.failure(f"Move to {status} failed: {resp.status_code} {extract_error_detail(resp)}")
                self.interrupt()


class GuestCheckoutJourney(_CheckoutJourney):
    """Guest places an order -> tracks it by email."""

    @task
    def checkout(self):
        self.place_order()

    @task
    def track(self):
        with self.client.get(
            f"/orders/track/{self.state.order_number}",
            params={"email": self.state.contact_email},
            catch_response=True,
            name="GET /orders/track/{number}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Tracking failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CustomerCancellationJourney(_CheckoutJourney):
    """Customer places an order -> lists their orders -> cancels it."""

    guest = False

    @task
    def checkout(self):
        self.place_order()

    @task
    def list_orders(self):
        with self.client.get(
            "/orders",
            headers=self.state.headers,
            catch_response=True,
            name="GET /orders",
        ) as resp:
            if resp.status_code != 200 or resp.json()["total"] < 1:
                resp.failure(f"Order listing failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def cancel(self):
        with self.client.put(
            f"/orders/{self.state.order_id}/cancel",
            json={"reason": random.choice(["Ordered by mistake", "Found it cheaper", "Wrong size"])},
            headers=self.state.headers,
            catch_response=True,
            name="PUT /orders/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cancel failed: {resp.status_code} {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class FulfillmentJourney(_CheckoutJourney):
    """Guest order -> confirmed -> processing -> shipped -> delivered."""

    @task
    def checkout(self):
        self.place_order()

    @task
    def fulfil(self):
        for status in ("confirmed", "processing", "shipped", "delivered"):
            self.move_to(status)

    @task
    def done(self):
        self.interrupt()
