"""Order placement: command and handler.

The handler runs inside the unit of work Protean opens for every command,
so the order, its stock debits, the discount redemption and the sold
counts commit together or not at all. Notifications go out afterwards
from ``storefront.notifications.order_events``.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalog.sales import SalesCounter
from storefront.discount.evaluator import DiscountEvaluator
from storefront.discount.redemption import DiscountRedemption
from storefront.domain import logger, storefront
from storefront.errors import InputError
from storefront.order.assembly import CartLine, OrderAssembly, Reference
from storefront.order.order import Order, PaymentMethod, ShippingAddress
from storefront.order.pricing import estimated_delivery_from, generate_order_number, shipping_cost_for
from storefront.shared.contact import is_valid_email, is_valid_phone
from storefront.stock.ledger import StockLedger


@storefront.command(part_of="Order")
class CreateOrder:
    items = Text(required=True)  # JSON array of cart lines
    shipping_address = Text(required=True)  # JSON object
    payment_method = String(required=True, choices=PaymentMethod)
    discount_code = String(max_length=50)
    notes = Text()
    user_id = Identifier()
    user_email = String(max_length=255)
    guest_name = String(max_length=100)
    guest_email = String(max_length=255)
    guest_phone = String(max_length=20)


def parse_cart(items_json) -> list[CartLine]:
    try:
        raw_items = json.loads(items_json) if items_json else []
    except json.JSONDecodeError as exc:
        raise InputError("Items must be a JSON array", {"items": [str(exc)]}) from exc

    if not raw_items:
        raise InputError("Order must contain at least one item", {"items": ["Must not be empty"]})
    return [CartLine.from_dict(item) for item in raw_items]


def check_contact(command) -> None:
    """Guests must leave a name, a reachable email and a phone number."""
    if command.user_id:
        return

    missing = [name for name in ("guest_name", "guest_email", "guest_phone") if not getattr(command, name)]
    if missing:
        raise InputError(
            "Guest orders require email, phone, and name",
            {name: ["Required for guest orders"] for name in missing},
        )
    if len(command.guest_name.strip()) < 2:
        raise InputError("Guest name is too short", {"guest_name": ["Must be at least 2 characters"]})
    if not is_valid_email(command.guest_email):
        raise InputError("Guest email is not valid", {"guest_email": ["Invalid email address"]})
    if not is_valid_phone(command.guest_phone):
        raise InputError("Guest phone is not a valid phone number", {"guest_phone": ["Invalid phone number"]})


def parse_address(address_json) -> ShippingAddress:
    try:
        data = json.loads(address_json)
    except json.JSONDecodeError as exc:
        raise InputError("Shipping address must be a JSON object", {"shipping_address": [str(exc)]}) from exc

    if not isinstance(data, dict):
        raise InputError("Shipping address must be a JSON object", {"shipping_address": ["Not an object"]})
    if not is_valid_phone(data.get("phone")):
        raise InputError("Shipping phone is not a valid phone number", {"phone": ["Invalid phone number"]})

    try:
        return ShippingAddress(**{k: v for k, v in data.items() if v is not None})
    except ValidationError as exc:
        raise InputError("Shipping address is incomplete", exc.messages) from exc


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        cart_lines = parse_cart(command.items)
        check_contact(command)
        address = parse_address(command.shipping_address)

        lines = OrderAssembly().assemble(cart_lines)
        snapshots = [line.to_snapshot() for line in lines]
        subtotal = sum(snapshot.total_price for snapshot in snapshots)

        quote = None
        if command.discount_code:
            quote = DiscountEvaluator().require(
                command.discount_code,
                subtotal,
                user_id=command.user_id,
                cart_items=[line.cart_entry() for line in lines],
            )

        order = Order.place(
            order_number=generate_order_number(),
            lines=snapshots,
            shipping_address=address,
            payment_method=PaymentMethod(command.payment_method),
            shipping_cost=shipping_cost_for(address.city, address.district),
            discount_amount=quote.amount if quote else 0,
            discount_code_id=str(quote.discount.id) if quote else None,
            discount_code=quote.discount.code if quote else None,
            user_id=command.user_id,
            guest_name=command.guest_name,
            guest_email=command.guest_email,
            guest_phone=command.guest_phone,
            contact_email=command.user_email,
            notes=command.notes,
            estimated_delivery=estimated_delivery_from(),
        )

        ledger = StockLedger()
        sales = SalesCounter()
        reference = Reference(
            order_id=str(order.id),
            order_number=order.order_number,
            acting_id=command.user_id,
        )
        for line in lines:
            line.reserve(ledger, sales, reference)

        if quote:
            DiscountRedemption().redeem(quote.discount, user_id=command.user_id)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_number=order.order_number,
            items=len(snapshots),
            subtotal=order.subtotal,
            discount=order.discount_amount,
            total=order.total,
            guest=order.is_guest_order,
        )
        return str(order.id)
