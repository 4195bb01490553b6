"""StockMovement aggregate: the append-only stock ledger.

Every change to a variant's stock counter is justified by one movement
recording the signed delta and the before/after snapshot. Movements are
only ever created, never updated or removed.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


class MovementType(Enum):
    SALE = "sale"
    RETURN = "return"
    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"
    DAMAGE = "damage"


class ReferenceType(Enum):
    ORDER = "order"
    ORDER_CANCELLATION = "order_cancellation"
    MANUAL = "manual"


_OUTBOUND = {MovementType.SALE, MovementType.DAMAGE}
_INBOUND = {MovementType.RETURN, MovementType.PURCHASE}


@storefront.aggregate
class StockMovement:
    variant_id = Identifier(required=True)
    product_id = Identifier()
    movement_type = String(required=True, choices=MovementType)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True, min_value=0)
    new_stock = Integer(required=True, min_value=0)
    reference_type = String(max_length=50, choices=ReferenceType)
    reference_id = Identifier()
    note = Text()
    created_by = Identifier()
    created_at = DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def snapshot_follows_quantity(self):
        if self.new_stock != self.previous_stock + self.quantity:
            raise ValidationError({"new_stock": ["New stock must equal previous stock plus quantity"]})

    @invariant.post
    def quantity_sign_matches_type(self):
        movement_type = MovementType(self.movement_type)
        if self.quantity == 0:
            raise ValidationError({"quantity": ["A stock movement must change stock"]})
        if movement_type in _OUTBOUND and self.quantity > 0:
            raise ValidationError({"quantity": [f"A {movement_type.value} movement must reduce stock"]})
        if movement_type in _INBOUND and self.quantity < 0:
            raise ValidationError({"quantity": [f"A {movement_type.value} movement must add stock"]})

    @classmethod
    def record(
        cls,
        variant_id,
        movement_type: MovementType,
        quantity,
        previous_stock,
        product_id=None,
        reference_type: ReferenceType | None = None,
        reference_id=None,
        note=None,
        created_by=None,
    ):
        return cls(
            variant_id=variant_id,
            product_id=product_id,
            movement_type=movement_type.value,
            quantity=quantity,
            previous_stock=previous_stock,
            new_stock=previous_stock + quantity,
            reference_type=reference_type.value if reference_type else None,
            reference_id=reference_id,
            note=note,
            created_by=created_by,
            created_at=datetime.now(UTC),
        )


@storefront.repository(part_of=StockMovement)
class StockMovementRepository:
    def for_variant(self, variant_id, page_size=100) -> list:
        """All movements of a variant in creation order."""
        movements = []
        offset = 0
        while True:
            page = (
                self._dao.query.filter(variant_id=str(variant_id))
                .order_by("created_at")
                .offset(offset)
                .limit(page_size)
                .all()
            )
            movements.extend(page.items)
            if len(page.items) < page_size:
                break
            offset += page_size
        return movements

    def for_reference(self, reference_type: ReferenceType, reference_id) -> list:
        return (
            self._dao.query.filter(reference_type=reference_type.value, reference_id=str(reference_id))
            .order_by("created_at")
            .all()
            .items
        )
