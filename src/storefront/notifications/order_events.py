"""Order notifications, sent once the order change has committed.

Delivery is best effort: a failing sink is logged and never reaches the
caller, because the order it reports on is already durable.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.notifications.sink import NotificationKind, get_sink
from storefront.order.events import OrderPlaced, OrderStatusChanged
from storefront.order.order import Order


def _dispatch(kind: NotificationKind, order, extra=None):
    try:
        get_sink().notify(kind, order, extra)
    except Exception:
        logger.exception(
            "Order notification failed",
            kind=kind.value,
            order_number=order.order_number,
        )


def _load(order_id):
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        logger.warning("Order for notification not found", order_id=order_id)
        return None


@storefront.event_handler(part_of=Order)
class OrderNotificationHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced):
        order = _load(event.order_id)
        if order is None:
            return

        _dispatch(NotificationKind.ADMIN_NEW_ORDER, order)
        if order.contact_email:
            _dispatch(NotificationKind.ORDER_CONFIRMATION, order)

    @handle(OrderStatusChanged)
    def on_status_changed(self, event: OrderStatusChanged):
        order = _load(event.order_id)
        if order is None:
            return

        _dispatch(
            NotificationKind.STATUS_UPDATE,
            order,
            {"previous_status": event.previous_status, "status": event.new_status, "note": event.note},
        )
