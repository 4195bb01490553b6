"""Order cancellation by the customer or an admin: command and handler."""

from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.errors import AuthenticationRequired, AuthorizationError, ConflictError, Reason
from storefront.order.order import CUSTOMER_CANCELLABLE_STATES, Order, OrderStatus
from storefront.order.status import load_order, move_order


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = Identifier()
    is_admin = Boolean(default=False)


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        if not command.cancelled_by:
            raise AuthenticationRequired()

        order = load_order(command.order_id)

        if not command.is_admin:
            if not order.is_owned_by(command.cancelled_by):
                raise AuthorizationError("Access denied")
            if OrderStatus(order.status) not in CUSTOMER_CANCELLABLE_STATES:
                raise ConflictError(
                    Reason.ORDER_NOT_CANCELLABLE,
                    "Order cannot be cancelled at this stage",
                    {"status": order.status},
                )

        default_note = "Order cancelled by admin" if command.is_admin else "Order cancelled by customer"
        move_order(
            order,
            OrderStatus.CANCELLED,
            note=command.reason or default_note,
            changed_by=command.cancelled_by,
        )

        current_domain.repository_for(Order).add(order)

        logger.info("Order cancelled", order_number=order.order_number, by_admin=command.is_admin)
        return str(order.id)
