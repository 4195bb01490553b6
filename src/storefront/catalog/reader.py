"""Catalog snapshot reader.

Resolves a product together with its active variants and, for combos, the
child products they bundle. Reads go through the repositories of the
current unit of work so the snapshot is taken inside the same transaction
as the writes that follow it.
"""

from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalog.product import Product
from storefront.errors import ConflictError, NotFoundError, Reason


@dataclass(frozen=True)
class CatalogSnapshot:
    product: Product
    children: dict = field(default_factory=dict)

    @property
    def is_combo(self) -> bool:
        return bool(self.product.is_combo)

    def child_of(self, combo_item):
        """The child product bundled by ``combo_item``, if it still exists."""
        return self.children.get(str(combo_item.child_product_id))


class CatalogReader:
    def __init__(self, products=None):
        self._products = products or current_domain.repository_for(Product)

    def resolve_product(self, product_id) -> CatalogSnapshot:
        try:
            product = self._products.get(product_id)
        except ObjectNotFoundError as exc:
            raise NotFoundError(Reason.PRODUCT_NOT_FOUND, f"Product {product_id} not found") from exc

        if not product.is_active:
            raise ConflictError(Reason.PRODUCT_INACTIVE, f"Product {product.name} is not available")

        children = {}
        if product.is_combo:
            for combo_item in sorted(product.combo_items, key=lambda ci: ci.sort_order or 0):
                try:
                    child = self._products.get(combo_item.child_product_id)
                except ObjectNotFoundError:
                    continue
                children[str(child.id)] = child

        return CatalogSnapshot(product=product, children=children)
