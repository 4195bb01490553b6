"""Faker-based data generators for Locust load test scenarios.

Payloads pass the storefront's request schemas: Bangladeshi mobile
numbers, addresses with a district, and cart lines drawn from the
catalog written by ``python src/manage.py seed-catalog``.
"""

import json
import os
import random
import uuid
from pathlib import Path

from faker import Faker

fake = Faker()

CATALOG_FILE = Path(os.environ.get("LOADTEST_CATALOG", "loadtests/catalog.json"))

DISTRICTS = ["Dhaka", "Dhaka", "Dhaka", "Chattogram", "Khulna", "Rajshahi", "Sylhet"]
PAYMENT_METHODS = ["cod", "cod", "bkash", "nagad", "rocket"]


def load_catalog() -> list[dict]:
    """Stocked ``{"product_id", "variant_id"}`` pairs for cart lines."""
    return json.loads(CATALOG_FILE.read_text())


def valid_phone() -> str:
    """Mobile numbers like 01712345678."""
    return f"01{random.choice('3456789')}{random.randint(10_000_000, 99_999_999)}"


def valid_email() -> str:
    return f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@example.com"


def guest_data() -> dict:
    return {
        "guest_name": fake.name()[:100],
        "guest_email": valid_email(),
        "guest_phone": valid_phone(),
    }


def address_data(district: str | None = None) -> dict:
    district = district or random.choice(DISTRICTS)
    return {
        "recipient_name": fake.name()[:100],
        "phone": valid_phone(),
        "address_line1": fake.street_address()[:255],
        "city": district,
        "district": district,
        "postal_code": str(random.randint(1000, 9499)),
    }


def cart_items(catalog: list[dict], max_lines: int = 3) -> list[dict]:
    picks = random.sample(catalog, k=min(len(catalog), random.randint(1, max_lines)))
    return [{**pick, "quantity": random.randint(1, 2)} for pick in picks]


def order_data(catalog: list[dict], guest: bool = True, discount_code: str | None = None) -> dict:
    payload = {
        "items": cart_items(catalog),
        "shipping_address": address_data(),
        "payment_method": random.choice(PAYMENT_METHODS),
    }
    if guest:
        payload.update(guest_data())
    if discount_code:
        payload["discount_code"] = discount_code
    return payload


def customer_headers() -> dict:
    return {
        "X-User-Id": f"lt-{uuid.uuid4().hex[:12]}",
        "X-User-Role": "customer",
        "X-User-Email": valid_email(),
    }


ADMIN_HEADERS = {"X-User-Id": "lt-admin", "X-User-Role": "admin"}
