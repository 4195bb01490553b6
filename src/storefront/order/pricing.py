"""Order numbers, shipping fees and delivery estimates."""

import secrets
import string
import time
from datetime import UTC, datetime, timedelta

from storefront.shared.money import to_minor
from storefront.shared.settings import setting

_BASE36 = string.digits + string.ascii_uppercase


def _base36(number: int) -> str:
    digits = []
    while True:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
        if number == 0:
            return "".join(reversed(digits))


def generate_order_number(now_ms: int | None = None) -> str:
    """Human-readable order number such as ``ATN-LZ0K3Q2B-7F4X``.

    Millisecond timestamp plus four random characters: collisions are
    negligible but not impossible, and the unique column catches them.
    """
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{setting('ORDER_NUMBER_PREFIX')}-{_base36(timestamp)}-{suffix}"


def shipping_cost_for(city: str | None, district: str | None) -> int:
    """Flat fee: the home region ships cheaper than everywhere else."""
    city = (city or "").strip().lower()
    district = (district or "").strip().lower()

    home_cities = [c.lower() for c in setting("HOME_REGION_CITIES")]
    if city in home_cities or district == setting("HOME_REGION_DISTRICT").lower():
        return to_minor(setting("HOME_SHIPPING_COST"))
    return to_minor(setting("REMOTE_SHIPPING_COST"))


def estimated_delivery_from(placed_at: datetime | None = None) -> datetime:
    placed_at = placed_at or datetime.now(UTC)
    return placed_at + timedelta(days=int(setting("ESTIMATED_DELIVERY_DAYS")))
