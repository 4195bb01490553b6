"""Order assembly: turning cart lines into priced, reservable order lines.

Each cart line becomes an ``OrderableLine``. Simple products price off the
product and optional variant; combos price at the combo's own price and
expand into child picks. ``validate()`` resolves and prices the line
against a catalog snapshot and performs advisory stock checks.
``reserve()`` takes the stock for real through the ledger, whose
conditional update is the authoritative check.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from storefront.catalog.reader import CatalogReader, CatalogSnapshot
from storefront.discount.evaluator import CartEntry
from storefront.errors import ConflictError, InputError, NotFoundError, Reason
from storefront.order.order import LineSnapshot, SelectionSnapshot
from storefront.stock.movement import ReferenceType


@dataclass(frozen=True)
class ComboPick:
    combo_item_id: str
    variant_id: str | None = None
    child_product_id: str | None = None


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    variant_id: str | None = None
    size: str | None = None
    color: str | None = None
    combo_selections: tuple[ComboPick, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        try:
            quantity = int(data["quantity"])
            product_id = str(data["product_id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InputError("Each item needs a product_id and a quantity", {"items": [str(exc)]}) from exc

        if quantity < 1:
            raise InputError("Quantity must be at least 1", {"quantity": ["Must be at least 1"]})

        picks = tuple(
            ComboPick(
                combo_item_id=str(pick["combo_item_id"]),
                variant_id=pick.get("variant_id"),
                child_product_id=pick.get("child_product_id"),
            )
            for pick in data.get("combo_selections") or []
        )
        return cls(
            product_id=product_id,
            quantity=quantity,
            variant_id=data.get("variant_id"),
            size=data.get("size"),
            color=data.get("color"),
            combo_selections=picks,
        )


@dataclass(frozen=True)
class Reference:
    """Who and what a reservation is booked against."""

    order_id: str
    order_number: str
    acting_id: str | None = None


class OrderableLine(ABC):
    def __init__(self, cart_line: CartLine, snapshot: CatalogSnapshot):
        self.cart_line = cart_line
        self.snapshot = snapshot
        self.unit_price: int | None = None

    @property
    def product(self):
        return self.snapshot.product

    @property
    def quantity(self) -> int:
        return self.cart_line.quantity

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity

    def cart_entry(self) -> CartEntry:
        return CartEntry(
            product_id=str(self.product.id),
            category_id=str(self.product.category_id) if self.product.category_id else None,
        )

    @abstractmethod
    def validate(self) -> None:
        """Resolve, price and advisory-check the line; raise on any problem."""

    @abstractmethod
    def reserve(self, ledger, sales, reference: Reference) -> None:
        """Debit stock and record sales for this line."""

    @abstractmethod
    def to_snapshot(self) -> LineSnapshot: ...

    def _require_stock(self, variant, needed, label):
        if variant.stock < needed:
            raise ConflictError(
                Reason.INSUFFICIENT_STOCK,
                f"Insufficient stock for {label} ({variant.size}/{variant.color})",
                {"variant_id": str(variant.id), "available": variant.stock, "requested": needed},
            )


class SimpleLine(OrderableLine):
    def __init__(self, cart_line, snapshot):
        super().__init__(cart_line, snapshot)
        self.variant = None

    def validate(self):
        unit_price = self.product.unit_price

        if self.cart_line.variant_id:
            self.variant = self.product.active_variant(self.cart_line.variant_id)
            if self.variant is None:
                raise ConflictError(
                    Reason.VARIANT_UNAVAILABLE,
                    f"Variant {self.cart_line.variant_id} not found or unavailable",
                    {"variant_id": str(self.cart_line.variant_id)},
                )
            self._require_stock(self.variant, self.quantity, self.product.name)
            unit_price += self.variant.price_adjustment or 0

        self.unit_price = unit_price

    def reserve(self, ledger, sales, reference):
        if self.variant is not None:
            ledger.debit(
                self.variant.id,
                self.quantity,
                reference_type=ReferenceType.ORDER,
                reference_id=reference.order_id,
                note=f"Sold via order {reference.order_number}",
                acting_id=reference.acting_id,
            )
        sales.record_sale(self.product.id, self.quantity)

    def to_snapshot(self):
        variant = self.variant
        return LineSnapshot(
            product_id=str(self.product.id),
            variant_id=str(variant.id) if variant else None,
            product_name=self.product.name,
            product_sku=variant.sku if variant else self.product.sku,
            size=variant.size if variant else self.cart_line.size,
            color=variant.color if variant else self.cart_line.color,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


@dataclass(frozen=True)
class _ResolvedPick:
    combo_item: object
    child: object
    variant: object | None


class ComboLine(OrderableLine):
    def __init__(self, cart_line, snapshot):
        super().__init__(cart_line, snapshot)
        self.picks: list[_ResolvedPick] = []

    def validate(self):
        product = self.product
        if not self.cart_line.combo_selections:
            raise ConflictError(
                Reason.COMBO_SELECTIONS_REQUIRED,
                f'Combo selections are required for "{product.name}"',
                {"product_id": str(product.id)},
            )

        picks = []
        for pick in self.cart_line.combo_selections:
            combo_item = product.combo_item(pick.combo_item_id)
            if combo_item is None:
                raise self._invalid(f'Invalid combo item selection for "{product.name}"', pick)

            child = self.snapshot.child_of(combo_item)
            if child is None:
                raise self._invalid(f'Child product not found in combo "{product.name}"', pick)
            if pick.child_product_id and str(pick.child_product_id) != str(child.id):
                raise self._invalid(f'Selection does not match the combo contents of "{product.name}"', pick)

            variant = None
            if pick.variant_id:
                variant = child.active_variant(pick.variant_id)
                if variant is None:
                    raise ConflictError(
                        Reason.VARIANT_UNAVAILABLE,
                        f'Variant not found for "{child.name}" in combo',
                        {"variant_id": str(pick.variant_id)},
                    )
                self._require_stock(variant, combo_item.quantity * self.quantity, child.name)

            picks.append(_ResolvedPick(combo_item=combo_item, child=child, variant=variant))

        self.picks = picks
        self.unit_price = product.unit_price

    def reserve(self, ledger, sales, reference):
        for pick in self.picks:
            taken = pick.combo_item.quantity * self.quantity
            if pick.variant is not None:
                ledger.debit(
                    pick.variant.id,
                    taken,
                    reference_type=ReferenceType.ORDER,
                    reference_id=reference.order_id,
                    note=f"Sold via combo order {reference.order_number} (combo: {self.product.name})",
                    acting_id=reference.acting_id,
                )
            sales.record_sale(pick.child.id, taken)
        sales.record_sale(self.product.id, self.quantity)

    def to_snapshot(self):
        selections = tuple(
            SelectionSnapshot(
                combo_item_id=str(pick.combo_item.id),
                child_product_id=str(pick.child.id),
                variant_id=str(pick.variant.id) if pick.variant else None,
                product_name=pick.child.name,
                product_sku=pick.variant.sku if pick.variant else pick.child.sku,
                size=pick.variant.size if pick.variant else None,
                color=pick.variant.color if pick.variant else None,
                quantity=pick.combo_item.quantity,
            )
            for pick in self.picks
        )
        return LineSnapshot(
            product_id=str(self.product.id),
            product_name=self.product.name,
            product_sku=self.product.sku,
            quantity=self.quantity,
            unit_price=self.unit_price,
            selections=selections,
        )

    @staticmethod
    def _invalid(message, pick):
        return ConflictError(
            Reason.INVALID_COMBO_SELECTION,
            message,
            {"combo_item_id": str(pick.combo_item_id)},
        )


class OrderAssembly:
    def __init__(self, reader: CatalogReader | None = None):
        self._reader = reader or CatalogReader()

    def assemble(self, cart_lines: list[CartLine]) -> list[OrderableLine]:
        """Resolve and validate every line; the first failure aborts the whole cart."""
        if not cart_lines:
            raise InputError("Order must contain at least one item", {"items": ["Must not be empty"]})

        lines = []
        for cart_line in cart_lines:
            try:
                snapshot = self._reader.resolve_product(cart_line.product_id)
            except (NotFoundError, ConflictError) as exc:
                raise ConflictError(
                    Reason.PRODUCT_UNAVAILABLE,
                    f"Product {cart_line.product_id} not found or unavailable",
                    {"product_id": str(cart_line.product_id)},
                ) from exc

            line_cls = ComboLine if snapshot.is_combo else SimpleLine
            line = line_cls(cart_line, snapshot)
            line.validate()
            lines.append(line)

        return lines
