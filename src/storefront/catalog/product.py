"""Product aggregate as seen by checkout.

A product is either a simple product whose stock lives on its variants, or
a combo that bundles fixed quantities of other products at its own price
and carries no stock of its own. Prices are integer minor units.

Variant stock is never written here: it starts at zero and only moves
through the stock ledger, so the movement log always explains it.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, HasMany, Identifier, Integer, String

from storefront.domain import storefront


@storefront.entity(part_of="Product")
class ProductVariant:
    sku = String(required=True, max_length=100)
    size = String(max_length=20)
    color = String(max_length=50)
    price_adjustment = Integer(default=0)
    stock = Integer(default=0, min_value=0)
    low_stock_threshold = Integer(default=5, min_value=0)
    is_active = Boolean(default=True)


@storefront.entity(part_of="Product")
class ComboItem:
    child_product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    sort_order = Integer(default=0)


@storefront.aggregate
class Product:
    category_id = Identifier()
    name = String(required=True, max_length=255)
    sku = String(required=True, max_length=100, unique=True)
    base_price = Integer(required=True, min_value=0)
    sale_price = Integer(min_value=0)
    is_active = Boolean(default=True)
    is_combo = Boolean(default=False)
    sold_count = Integer(default=0, min_value=0)
    view_count = Integer(default=0, min_value=0)
    variants = HasMany(ProductVariant)
    combo_items = HasMany(ComboItem)

    @invariant.post
    def combos_have_no_variants(self):
        if self.is_combo and self.variants:
            raise ValidationError({"variants": ["Combo products cannot carry variants"]})

    @invariant.post
    def only_combos_bundle_products(self):
        if not self.is_combo and self.combo_items:
            raise ValidationError({"combo_items": ["Only combo products can bundle other products"]})

    @classmethod
    def register(cls, name, sku, base_price, sale_price=None, category_id=None, is_combo=False):
        return cls(
            name=name,
            sku=sku,
            base_price=base_price,
            sale_price=sale_price,
            category_id=category_id,
            is_combo=is_combo,
        )

    @property
    def unit_price(self) -> int:
        """Sale price when set, otherwise the base price."""
        return self.sale_price if self.sale_price is not None else self.base_price

    def add_variant(self, sku, size=None, color=None, price_adjustment=0, low_stock_threshold=5):
        if self.is_combo:
            raise ValidationError({"variants": ["Combo products cannot carry variants"]})

        variant = ProductVariant(
            sku=sku,
            size=size,
            color=color,
            price_adjustment=price_adjustment,
            low_stock_threshold=low_stock_threshold,
        )
        self.add_variants(variant)
        return variant

    def bundle(self, child_product_id, quantity, sort_order=0):
        """Add a child product to this combo."""
        if not self.is_combo:
            raise ValidationError({"combo_items": ["Only combo products can bundle other products"]})
        if str(child_product_id) == str(self.id):
            raise ValidationError({"combo_items": ["A combo cannot contain itself"]})

        combo_item = ComboItem(
            child_product_id=child_product_id,
            quantity=quantity,
            sort_order=sort_order,
        )
        self.add_combo_items(combo_item)
        return combo_item

    def active_variant(self, variant_id):
        return next((v for v in self.active_variants() if str(v.id) == str(variant_id)), None)

    def active_variants(self):
        return [v for v in self.variants if v.is_active]

    def combo_item(self, combo_item_id):
        return next((ci for ci in self.combo_items if str(ci.id) == str(combo_item_id)), None)

    def deactivate(self):
        self.is_active = False

    def deactivate_variant(self, variant_id):
        variant = next((v for v in self.variants if str(v.id) == str(variant_id)), None)
        if variant is None:
            raise ValidationError({"variant_id": ["Variant not found"]})
        variant.is_active = False
