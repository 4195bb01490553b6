"""Storefront settings read from the ``[custom]`` table of ``domain.toml``."""

from protean.utils.globals import current_domain

DEFAULTS = {
    "ORDER_NUMBER_PREFIX": "ATN",
    "ESTIMATED_DELIVERY_DAYS": 5,
    "HOME_SHIPPING_COST": "80.00",
    "REMOTE_SHIPPING_COST": "130.00",
    "HOME_REGION_CITIES": ["dhaka", "dhaka city", "dhaka district"],
    "HOME_REGION_DISTRICT": "dhaka",
}


def setting(name: str):
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, DEFAULTS[name])
