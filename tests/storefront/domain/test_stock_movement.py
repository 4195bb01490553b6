import pytest
from protean.exceptions import ValidationError

from storefront.stock.movement import MovementType, ReferenceType, StockMovement


def test_record_derives_new_stock():
    movement = StockMovement.record(
        variant_id="var-1",
        movement_type=MovementType.SALE,
        quantity=-2,
        previous_stock=3,
        reference_type=ReferenceType.ORDER,
        reference_id="ord-1",
    )

    assert movement.new_stock == 1
    assert movement.movement_type == "sale"
    assert movement.reference_type == "order"
    assert movement.created_at is not None


def test_snapshot_must_follow_quantity():
    with pytest.raises(ValidationError) as exc:
        StockMovement(
            variant_id="var-1",
            movement_type="purchase",
            quantity=5,
            previous_stock=0,
            new_stock=4,
        )
    assert "new_stock" in exc.value.messages


@pytest.mark.parametrize(
    "movement_type, quantity",
    [
        (MovementType.SALE, 2),
        (MovementType.DAMAGE, 1),
        (MovementType.RETURN, -1),
        (MovementType.PURCHASE, -4),
    ],
)
def test_quantity_sign_must_match_type(movement_type, quantity):
    with pytest.raises(ValidationError) as exc:
        StockMovement.record(
            variant_id="var-1",
            movement_type=movement_type,
            quantity=quantity,
            previous_stock=10,
        )
    assert "quantity" in exc.value.messages


def test_adjustment_may_go_either_way():
    down = StockMovement.record(variant_id="v", movement_type=MovementType.ADJUSTMENT, quantity=-3, previous_stock=5)
    up = StockMovement.record(variant_id="v", movement_type=MovementType.ADJUSTMENT, quantity=3, previous_stock=5)
    assert (down.new_stock, up.new_stock) == (2, 8)


def test_zero_quantity_is_rejected():
    with pytest.raises(ValidationError):
        StockMovement.record(variant_id="v", movement_type=MovementType.ADJUSTMENT, quantity=0, previous_stock=5)


def test_stock_cannot_go_negative():
    with pytest.raises(ValidationError):
        StockMovement.record(variant_id="v", movement_type=MovementType.SALE, quantity=-6, previous_stock=5)
