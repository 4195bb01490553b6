"""Stock ledger: debit and credit primitives over variant stock.

Both primitives must run inside the caller's unit of work. The counter is
moved with a compare-and-set update (see ``storefront.shared.counters``)
so two checkouts racing for the last unit cannot both succeed, and each
change appends a StockMovement with the before/after snapshot.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalog.product import ProductVariant
from storefront.errors import ConflictError, InputError, NotFoundError, Reason
from storefront.shared.counters import CounterContention, compare_and_set, require_transaction
from storefront.stock.movement import MovementType, ReferenceType, StockMovement

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockChange:
    variant_id: str
    previous_stock: int
    new_stock: int
    movement_id: str

    @property
    def quantity(self) -> int:
        return self.new_stock - self.previous_stock


class StockLedger:
    def __init__(self):
        self._variants = current_domain.repository_for(ProductVariant)._dao
        self._movements = current_domain.repository_for(StockMovement)

    def debit(
        self,
        variant_id,
        quantity: int,
        reference_type: ReferenceType,
        reference_id=None,
        note=None,
        acting_id=None,
        movement_type: MovementType = MovementType.SALE,
    ) -> StockChange:
        """Take ``quantity`` units out of stock.

        Raises:
            ConflictError: ``InsufficientStock`` when fewer than ``quantity`` units remain
        """
        self._check_quantity(quantity)
        return self._move(variant_id, -quantity, movement_type, reference_type, reference_id, note, acting_id)

    def credit(
        self,
        variant_id,
        quantity: int,
        reference_type: ReferenceType,
        reference_id=None,
        note=None,
        acting_id=None,
        movement_type: MovementType = MovementType.RETURN,
    ) -> StockChange:
        """Put ``quantity`` units back into stock."""
        self._check_quantity(quantity)
        return self._move(variant_id, quantity, movement_type, reference_type, reference_id, note, acting_id)

    def adjust(self, variant_id, delta: int, note=None, acting_id=None) -> StockChange:
        """Correct stock by a signed amount after a physical count."""
        if delta == 0:
            raise InputError("Adjustment must change stock", {"quantity": ["Must not be zero"]})
        return self._move(
            variant_id,
            delta,
            MovementType.ADJUSTMENT,
            ReferenceType.MANUAL,
            None,
            note,
            acting_id,
        )

    def replay(self, variant_id) -> int:
        """Rebuild a variant's stock from zero by folding its movement log."""
        stock = 0
        for movement in self._movements.for_variant(variant_id):
            stock += movement.quantity
        return stock

    def history(self, variant_id) -> list:
        return self._movements.for_variant(variant_id)

    @staticmethod
    def _check_quantity(quantity):
        if quantity is None or quantity < 1:
            raise InputError("Quantity must be at least 1", {"quantity": ["Must be at least 1"]})

    def _move(self, variant_id, delta, movement_type, reference_type, reference_id, note, acting_id):
        require_transaction("Stock changes")

        def _next(available):
            if available + delta < 0:
                raise ConflictError(
                    Reason.INSUFFICIENT_STOCK,
                    f"Insufficient stock: {available} available, {-delta} requested",
                    {"variant_id": str(variant_id), "available": available, "requested": -delta},
                )
            return available + delta

        try:
            variant, previous, new = compare_and_set(self._variants, variant_id, "stock", _next)
        except ObjectNotFoundError as exc:
            raise NotFoundError(Reason.VARIANT_NOT_FOUND, f"Variant {variant_id} not found") from exc
        except CounterContention as exc:
            raise ConflictError(
                Reason.INSUFFICIENT_STOCK,
                f"Stock for variant {variant_id} changed while the order was being placed",
                {"variant_id": str(variant_id)},
            ) from exc

        movement = StockMovement.record(
            variant_id=variant_id,
            product_id=getattr(variant, "product_id", None),
            movement_type=movement_type,
            quantity=delta,
            previous_stock=previous,
            reference_type=reference_type,
            reference_id=reference_id,
            note=note,
            created_by=acting_id,
        )
        self._movements.add(movement)

        logger.info(
            "Stock moved",
            variant_id=str(variant_id),
            movement_type=movement_type.value,
            quantity=delta,
            previous_stock=previous,
            new_stock=new,
        )
        if delta < 0 and new <= (variant.low_stock_threshold or 0):
            logger.warning(
                "Variant stock is low",
                variant_id=str(variant_id),
                sku=variant.sku,
                stock=new,
                threshold=variant.low_stock_threshold,
            )

        return StockChange(
            variant_id=str(variant_id),
            previous_stock=previous,
            new_stock=new,
            movement_id=str(movement.id),
        )
