"""Stress scenarios for stock and discount contention.

Every HotVariantUser buys from the same variant, so checkouts race on one
stock counter. Failed reservations must surface as InsufficientStock and
never as a 500.
"""

import os
import random

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import address_data, guest_data, load_catalog
from loadtests.helpers.response import extract_error_detail

HOT_DISCOUNT_CODE = os.environ.get("LOADTEST_DISCOUNT_CODE")


class HotVariantUser(HttpUser):
    """Many buyers, one variant.

    Monitor: the variant's stock must never go below zero, and its
    movement history must replay to the stored stock.
    """

    wait_time = constant_pacing(0.1)

    def on_start(self):
        self.hot = load_catalog()[0]

    @task
    def buy_hot_variant(self):
        payload = {
            "items": [{**self.hot, "quantity": random.randint(1, 3)}],
            "shipping_address": address_data("Dhaka"),
            "payment_method": "cod",
            **guest_data(),
        }
        if HOT_DISCOUNT_CODE:
            payload["discount_code"] = HOT_DISCOUNT_CODE

        with self.client.post("/orders", json=payload, catch_response=True, name="[STRESS] POST /orders") as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400:
                # Sold out or code exhausted: an expected refusal under contention.
                resp.success()
            else:
                resp.failure(f"Unexpected checkout failure: {resp.status_code} {extract_error_detail(resp)}")
