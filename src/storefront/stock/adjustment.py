"""Manual stock movements: receiving, damage write-offs and count corrections."""

from enum import Enum

from protean import handle
from protean.fields import Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.errors import InputError
from storefront.stock.ledger import StockLedger
from storefront.stock.movement import MovementType, ReferenceType, StockMovement


class ManualMovement(Enum):
    PURCHASE = MovementType.PURCHASE.value
    ADJUSTMENT = MovementType.ADJUSTMENT.value
    DAMAGE = MovementType.DAMAGE.value


@storefront.command(part_of="StockMovement")
class RecordStockMovement:
    """Record stock arriving, leaving as damage, or corrected after a count.

    ``quantity`` is positive for purchases and damage; adjustments take a
    signed quantity.
    """

    variant_id = Identifier(required=True)
    movement_type = String(required=True, choices=ManualMovement)
    quantity = Integer(required=True)
    note = Text()
    recorded_by = Identifier()


@storefront.command_handler(part_of=StockMovement)
class StockMovementHandler:
    @handle(RecordStockMovement)
    def record_stock_movement(self, command):
        ledger = StockLedger()
        movement_type = MovementType(command.movement_type)
        kwargs = {"note": command.note, "acting_id": command.recorded_by}

        if movement_type == MovementType.ADJUSTMENT:
            change = ledger.adjust(command.variant_id, command.quantity, **kwargs)
        elif command.quantity < 1:
            raise InputError(
                f"{movement_type.value.capitalize()} quantity must be positive",
                {"quantity": ["Must be at least 1"]},
            )
        elif movement_type == MovementType.PURCHASE:
            change = ledger.credit(
                command.variant_id,
                command.quantity,
                reference_type=ReferenceType.MANUAL,
                movement_type=MovementType.PURCHASE,
                **kwargs,
            )
        else:
            change = ledger.debit(
                command.variant_id,
                command.quantity,
                reference_type=ReferenceType.MANUAL,
                movement_type=MovementType.DAMAGE,
                **kwargs,
            )

        return change
