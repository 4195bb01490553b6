"""Order aggregate: the transactional root of a checkout.

An order snapshots what was bought (items and, for combos, the concrete
child picks), where it ships, and how it is paid. Monetary fields are
integer minor units and ``total`` always equals
``subtotal - discount_amount + shipping_cost``.

Lifecycle:
    pending → confirmed → processing → shipped → out_for_delivery → delivered
    shipped → delivered
    delivered → refunded
    pending / confirmed / processing → cancelled

``cancelled`` and ``refunded`` are terminal. Every transition, including
the initial ``pending``, appends a status-history entry.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.errors import ConflictError, Reason
from storefront.order.events import OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    COD = "cod"
    BKASH = "bkash"
    NAGAD = "nagad"
    ROCKET = "rocket"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

# Entering these states puts reserved stock back on the shelf.
RESTOCKING_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

# States from which a customer may cancel their own order.
CUSTOMER_CANCELLABLE_STATES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


def valid_transitions(status: OrderStatus) -> set:
    return set(_VALID_TRANSITIONS[status])


# ---------------------------------------------------------------------------
# Line snapshots handed over by order assembly
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SelectionSnapshot:
    combo_item_id: str
    child_product_id: str
    product_name: str
    product_sku: str
    quantity: int
    variant_id: str | None = None
    size: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class LineSnapshot:
    product_id: str
    product_name: str
    product_sku: str
    quantity: int
    unit_price: int
    variant_id: str | None = None
    size: str | None = None
    color: str | None = None
    selections: tuple[SelectionSnapshot, ...] = field(default_factory=tuple)

    @property
    def total_price(self) -> int:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    recipient_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    alternate_phone = String(max_length=20)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    district = String(required=True, max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100, default="Bangladesh")
    delivery_instructions = Text()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    product_name = String(required=True, max_length=255)
    product_sku = String(max_length=100)
    size = String(max_length=20)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    unit_price = Integer(required=True, min_value=0)
    total_price = Integer(required=True, min_value=0)


@storefront.entity(part_of="Order")
class OrderComboSelection:
    """One child pick inside a combo line.

    ``quantity`` is the child quantity per combo unit; ``total_quantity``
    is what was taken from stock (``quantity`` times the line quantity).
    """

    order_item_id = Identifier(required=True)
    combo_item_id = Identifier(required=True)
    child_product_id = Identifier(required=True)
    variant_id = Identifier()
    product_name = String(required=True, max_length=255)
    product_sku = String(max_length=100)
    size = String(max_length=20)
    color = String(max_length=50)
    quantity = Integer(required=True, min_value=1)
    total_quantity = Integer(required=True, min_value=1)


@storefront.entity(part_of="Order")
class OrderStatusHistory:
    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    note = Text()
    changed_by = Identifier()
    created_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    user_id = Identifier()
    guest_name = String(max_length=100)
    guest_email = String(max_length=255)
    guest_phone = String(max_length=20)
    contact_email = String(max_length=255)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    subtotal = Integer(required=True, min_value=0)
    discount_amount = Integer(default=0, min_value=0)
    discount_code_id = Identifier()
    discount_code = String(max_length=50)
    shipping_cost = Integer(default=0, min_value=0)
    total = Integer(required=True, min_value=0)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    notes = Text()
    admin_notes = Text()
    cancellation_reason = String(max_length=500)
    shipping_address = ValueObject(ShippingAddress, required=True)
    items = HasMany(OrderItem)
    combo_selections = HasMany(OrderComboSelection)
    status_history = HasMany(OrderStatusHistory)
    estimated_delivery = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_components(self):
        if None in (self.subtotal, self.total):
            return
        expected = self.subtotal - (self.discount_amount or 0) + (self.shipping_cost or 0)
        if self.total != expected:
            raise ValidationError({"total": ["Total must equal subtotal minus discount plus shipping"]})

    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        if self.subtotal is not None and (self.discount_amount or 0) > self.subtotal:
            raise ValidationError({"discount_amount": ["Discount cannot exceed the subtotal"]})

    @invariant.post
    def placed_by_user_or_guest(self):
        guest_fields = (self.guest_name, self.guest_email, self.guest_phone)
        if self.user_id:
            if any(guest_fields):
                raise ValidationError({"user_id": ["An order belongs to a customer or a guest, not both"]})
        elif not all(guest_fields):
            raise ValidationError({"guest_email": ["Guest orders require name, email and phone"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        lines: list[LineSnapshot],
        shipping_address: ShippingAddress,
        payment_method: PaymentMethod,
        shipping_cost: int,
        discount_amount: int = 0,
        discount_code_id=None,
        discount_code=None,
        user_id=None,
        guest_name=None,
        guest_email=None,
        guest_phone=None,
        contact_email=None,
        notes=None,
        estimated_delivery=None,
    ):
        """Create a pending order from priced lines and record its first history entry."""
        if not lines:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        now = datetime.now(UTC)
        subtotal = sum(line.total_price for line in lines)

        order = cls(
            order_number=order_number,
            user_id=user_id,
            guest_name=None if user_id else guest_name,
            guest_email=None if user_id else guest_email,
            guest_phone=None if user_id else guest_phone,
            contact_email=contact_email or (None if user_id else guest_email),
            status=OrderStatus.PENDING.value,
            subtotal=subtotal,
            discount_amount=discount_amount,
            discount_code_id=discount_code_id,
            discount_code=discount_code,
            shipping_cost=shipping_cost,
            total=subtotal - discount_amount + shipping_cost,
            payment_method=payment_method.value,
            payment_status=PaymentStatus.PENDING.value,
            notes=notes,
            shipping_address=shipping_address,
            estimated_delivery=estimated_delivery,
            created_at=now,
            updated_at=now,
        )

        for line in lines:
            item = OrderItem(
                product_id=line.product_id,
                variant_id=line.variant_id,
                product_name=line.product_name,
                product_sku=line.product_sku,
                size=line.size,
                color=line.color,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total_price,
            )
            order.add_items(item)

            for selection in line.selections:
                order.add_combo_selections(
                    OrderComboSelection(
                        order_item_id=item.id,
                        combo_item_id=selection.combo_item_id,
                        child_product_id=selection.child_product_id,
                        variant_id=selection.variant_id,
                        product_name=selection.product_name,
                        product_sku=selection.product_sku,
                        size=selection.size,
                        color=selection.color,
                        quantity=selection.quantity,
                        total_quantity=selection.quantity * line.quantity,
                    )
                )

        order._record_status(OrderStatus.PENDING, "Order placed", user_id, now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                user_id=str(user_id) if user_id else None,
                contact_email=order.contact_email,
                item_count=len(lines),
                total=order.total,
                placed_at=now,
            )
        )

        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_guest_order(self) -> bool:
        return not self.user_id

    def is_owned_by(self, user_id) -> bool:
        return bool(user_id) and bool(self.user_id) and str(self.user_id) == str(user_id)

    def selections_for(self, order_item_id) -> list:
        return [s for s in self.combo_selections if str(s.order_item_id) == str(order_item_id)]

    def history(self) -> list:
        return sorted(self.status_history, key=lambda entry: entry.sequence)

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in _VALID_TRANSITIONS[OrderStatus(self.status)]

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def assert_can_transition(self, target: OrderStatus):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ConflictError(
                Reason.INVALID_TRANSITION,
                f"Invalid status transition from {current.value} to {target.value}",
                {"from": current.value, "to": target.value},
            )

    def transition_to(self, target: OrderStatus, note=None, changed_by=None):
        """Move to ``target`` and apply the side effects of entering it.

        Restocking for cancelled/refunded orders is the caller's job and must
        happen before the order is persisted.
        """
        self.assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)

        self.status = target.value
        self.updated_at = now

        if target == OrderStatus.DELIVERED:
            self.delivered_at = now
            if self.payment_method == PaymentMethod.COD.value:
                self.payment_status = PaymentStatus.PAID.value
        elif target == OrderStatus.CANCELLED:
            self.cancelled_at = now

        self._record_status(target, note, changed_by, now)

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                new_status=target.value,
                note=note,
                changed_by=str(changed_by) if changed_by else None,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Plain attribute updates
    # -------------------------------------------------------------------
    def record_payment_status(self, payment_status: PaymentStatus):
        self.payment_status = payment_status.value
        self.updated_at = datetime.now(UTC)

    def annotate(self, admin_notes):
        self.admin_notes = admin_notes
        self.updated_at = datetime.now(UTC)

    def _record_status(self, status: OrderStatus, note, changed_by, at):
        self.add_status_history(
            OrderStatusHistory(
                sequence=len(self.status_history) + 1,
                status=status.value,
                note=note,
                changed_by=changed_by,
                created_at=at,
            )
        )
