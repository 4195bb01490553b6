"""Shared fixtures for the storefront suite.

Products are registered straight through their repository; variant stock
always enters through purchase movements so the ledger explains every unit.
"""

import json

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

from storefront.catalog.product import Product, ProductVariant
from storefront.discount.discount import DiscountCode, DiscountType
from storefront.notifications.sink import FakeNotificationSink, reset_sink, set_sink
from storefront.order.placement import CreateOrder
from storefront.stock.adjustment import RecordStockMovement

DHAKA_ADDRESS = {
    "recipient_name": "Rahim Uddin",
    "phone": "01712345678",
    "address_line1": "House 12, Road 5, Dhanmondi",
    "city": "Dhaka",
    "district": "Dhaka",
}

CHITTAGONG_ADDRESS = {
    "recipient_name": "Karim Ahmed",
    "phone": "+8801812345678",
    "address_line1": "22 Agrabad C/A",
    "city": "Chattogram",
    "district": "Chattogram",
}

GUEST = {
    "guest_name": "Rahim Uddin",
    "guest_email": "rahim@example.com",
    "guest_phone": "01712345678",
}


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def notifications():
    sink = FakeNotificationSink()
    set_sink(sink)
    yield sink
    reset_sink()


# ---------------------------------------------------------------------------
# Catalog and stock helpers
# ---------------------------------------------------------------------------
def receive_stock(variant_id, quantity, note="Opening stock"):
    return current_domain.process(
        RecordStockMovement(
            variant_id=str(variant_id),
            movement_type="purchase",
            quantity=quantity,
            note=note,
            recorded_by="warehouse",
        ),
        asynchronous=False,
    )


def stock_of(variant_id) -> int:
    return current_domain.repository_for(ProductVariant)._dao.get(variant_id).stock


def sold_count_of(product_id) -> int:
    return current_domain.repository_for(Product).get(product_id).sold_count


class Catalog:
    """Registers products for a test and remembers them by SKU."""

    def __init__(self):
        self.products = {}

    def simple(self, sku, price, name=None, sale_price=None, category_id=None, variants=()):
        """``variants`` is a sequence of ``(sku, size, color, stock)`` or
        ``(sku, size, color, stock, price_adjustment)`` tuples."""
        product = Product.register(
            name=name or f"Product {sku}",
            sku=sku,
            base_price=price,
            sale_price=sale_price,
            category_id=category_id,
        )
        stocked = []
        for row in variants:
            variant_sku, size, color, stock = row[:4]
            adjustment = row[4] if len(row) > 4 else 0
            variant = product.add_variant(variant_sku, size=size, color=color, price_adjustment=adjustment)
            stocked.append((variant, stock))

        current_domain.repository_for(Product).add(product)
        for variant, stock in stocked:
            if stock:
                receive_stock(variant.id, stock)

        self.products[sku] = product
        return current_domain.repository_for(Product).get(product.id)

    def combo(self, sku, price, bundles, name=None):
        """``bundles`` is a sequence of ``(child_product, quantity)`` pairs."""
        product = Product.register(name=name or f"Combo {sku}", sku=sku, base_price=price, is_combo=True)
        for sort_order, (child, quantity) in enumerate(bundles):
            product.bundle(child.id, quantity, sort_order=sort_order)

        current_domain.repository_for(Product).add(product)
        self.products[sku] = product
        return current_domain.repository_for(Product).get(product.id)


@pytest.fixture()
def catalog():
    return Catalog()


@pytest.fixture()
def tshirt(catalog):
    """T-shirt priced 450.00 with M/Black (stock 3) and L/Black (stock 10, +20.00)."""
    return catalog.simple(
        "TS-001",
        45000,
        name="Cotton T-Shirt",
        category_id="cat-apparel",
        variants=[("TS-001-M-BLK", "M", "Black", 3), ("TS-001-L-BLK", "L", "Black", 10, 2000)],
    )


@pytest.fixture()
def socks(catalog):
    """Socks priced 120.00 with one Free/White variant (stock 5)."""
    return catalog.simple(
        "SK-001",
        12000,
        name="Ankle Socks",
        category_id="cat-accessories",
        variants=[("SK-001-F-WHT", "Free", "White", 5)],
    )


@pytest.fixture()
def gift_box(catalog, socks):
    """Combo priced 500.00 bundling two pairs of socks."""
    return catalog.combo("CB-001", 50000, [(socks, 2)], name="Socks Gift Box")


def variant_by_sku(product, sku):
    return next(v for v in product.variants if v.sku == sku)


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
def create_discount(code, discount_type=DiscountType.FIXED, value=5000, **kwargs):
    discount = DiscountCode.create(code=code, discount_type=discount_type, value=value, **kwargs)
    current_domain.repository_for(DiscountCode).add(discount)
    return current_domain.repository_for(DiscountCode).get(discount.id)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def cart_line(product, quantity=1, variant=None, selections=None):
    line = {"product_id": str(product.id), "quantity": quantity}
    if variant is not None:
        line["variant_id"] = str(variant.id)
    if selections is not None:
        line["combo_selections"] = selections
    return line


def place_order(items, user_id=None, user_email=None, address=None, discount_code=None, payment_method="cod", **guest):
    if not user_id and not guest:
        guest = dict(GUEST)
    return current_domain.process(
        CreateOrder(
            items=json.dumps(items),
            shipping_address=json.dumps(address or DHAKA_ADDRESS),
            payment_method=payment_method,
            discount_code=discount_code,
            user_id=user_id,
            user_email=user_email,
            **guest,
        ),
        asynchronous=False,
    )


class Shop:
    """Test-facing handle on the helpers above, handed out by the ``shop`` fixture."""

    dhaka = DHAKA_ADDRESS
    chattogram = CHITTAGONG_ADDRESS
    guest = GUEST

    receive_stock = staticmethod(receive_stock)
    stock_of = staticmethod(stock_of)
    sold_count_of = staticmethod(sold_count_of)
    variant = staticmethod(variant_by_sku)
    create_discount = staticmethod(create_discount)
    line = staticmethod(cart_line)
    place_order = staticmethod(place_order)


@pytest.fixture()
def shop():
    return Shop()
