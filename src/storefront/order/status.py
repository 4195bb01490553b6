"""Admin status updates: command and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.errors import NotFoundError, Reason
from storefront.order.order import RESTOCKING_STATES, Order, OrderStatus, PaymentStatus
from storefront.order.restoration import StockRestoration


@storefront.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    note = Text()
    payment_status = String(choices=PaymentStatus)
    admin_notes = Text()
    changed_by = Identifier()


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFoundError(Reason.ORDER_NOT_FOUND, "Order not found") from exc


def move_order(order: Order, target: OrderStatus, note=None, changed_by=None) -> None:
    """Apply a lifecycle transition, restocking first when the order is leaving the shelf for good."""
    order.assert_can_transition(target)

    if target in RESTOCKING_STATES:
        StockRestoration().restore(order, acting_id=changed_by)
        if target == OrderStatus.CANCELLED and note:
            order.cancellation_reason = note[:500]

    order.transition_to(target, note=note, changed_by=changed_by)


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        order = load_order(command.order_id)
        previous = order.status

        move_order(order, OrderStatus(command.status), note=command.note, changed_by=command.changed_by)

        if command.payment_status:
            order.record_payment_status(PaymentStatus(command.payment_status))
        if command.admin_notes:
            order.annotate(command.admin_notes)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order status updated",
            order_number=order.order_number,
            previous_status=previous,
            new_status=order.status,
        )
        return str(order.id)
