"""Shared BDD fixtures and step definitions for the storefront."""

from decimal import Decimal

import pytest
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then

from storefront.discount.discount import DiscountCode, DiscountType
from storefront.errors import StorefrontError
from storefront.order.order import Order
from storefront.order.status import UpdateOrderStatus
from storefront.shared.money import to_minor


@pytest.fixture()
def outcome():
    """Container for the order id or the error a When step produced."""
    return {"order_id": None, "error": None}


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def attempt():
    """Run a When action, keeping its StorefrontError for the Then steps."""

    def run(outcome, action):
        try:
            outcome["order_id"] = action() or outcome["order_id"]
            outcome["error"] = None
        except StorefrontError as exc:
            outcome["error"] = exc

    return run


def admin_moves(order_id, status, payment_status=None):
    current_domain.process(
        UpdateOrderStatus(order_id=order_id, status=status, payment_status=payment_status, changed_by="admin-1"),
        asynchronous=False,
    )


@pytest.fixture()
def moves():
    return admin_moves


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a product "{sku}" priced {price} with variant "{variant_sku}" holding {stock:d} units'),
    target_fixture="products",
)
def _(catalog, products, sku, price, variant_sku, stock):
    product = catalog.simple(sku, to_minor(Decimal(price)), variants=[(variant_sku, "M", "Black", stock)])
    products[variant_sku] = (product, next(v for v in product.variants if v.sku == variant_sku))
    return products


@given(parsers.cfparse('a fixed discount code "{code}" worth {value}'))
def _(shop, code, value):
    shop.create_discount(code, DiscountType.FIXED, to_minor(Decimal(value)))


@given(parsers.cfparse('a single-use discount code "{code}" worth {value}'))
def _(shop, code, value):
    shop.create_discount(code, DiscountType.FIXED, to_minor(Decimal(value)), usage_limit=1)


@given(parsers.cfparse('a guest already ordered {quantity:d} of "{variant_sku}" with code "{code}"'))
def _(shop, products, quantity, variant_sku, code):
    product, variant = products[variant_sku]
    shop.place_order([shop.line(product, quantity, variant)], discount_code=code)


@given(parsers.cfparse('customer "{user_id}" placed an order for {quantity:d} of "{variant_sku}"'))
def _(shop, products, outcome, user_id, quantity, variant_sku):
    product, variant = products[variant_sku]
    outcome["order_id"] = shop.place_order(
        [shop.line(product, quantity, variant)], user_id=user_id, user_email=f"{user_id}@example.com"
    )


@given("the order has been shipped")
def _(outcome):
    for status in ("confirmed", "processing", "shipped"):
        admin_moves(outcome["order_id"], status)


@given("the order has been delivered")
def _(outcome):
    for status in ("confirmed", "processing", "shipped", "delivered"):
        admin_moves(outcome["order_id"], status)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(outcome, status):
    assert current_domain.repository_for(Order).get(outcome["order_id"]).status == status


@then(parsers.cfparse('"{variant_sku}" has {stock:d} unit in stock'))
@then(parsers.cfparse('"{variant_sku}" has {stock:d} units in stock'))
def _(shop, products, variant_sku, stock):
    _, variant = products[variant_sku]
    assert shop.stock_of(variant.id) == stock


@then(parsers.cfparse('checkout is refused with "{reason}"'))
@then(parsers.cfparse('the update is refused with "{reason}"'))
def _(outcome, reason):
    assert outcome["error"] is not None
    assert outcome["error"].reason == reason


@then(parsers.cfparse('the discount code "{code}" has been used {count:d} time'))
def _(code, count):
    [discount] = current_domain.repository_for(DiscountCode)._dao.query.filter(code=code).all().items
    assert discount.used_count == count
