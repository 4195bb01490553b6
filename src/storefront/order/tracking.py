"""Public order tracking, verified by a matching contact detail."""

from protean.utils.globals import current_domain

from storefront.errors import InputError, NotFoundError, Reason
from storefront.order.order import Order
from storefront.shared.contact import same_email, same_phone


def track_order(order_number, email=None, phone=None) -> Order:
    """Find an order by number when ``email`` or ``phone`` matches its contact details.

    A wrong contact detail is reported exactly like an unknown order number.
    """
    if not email and not phone:
        raise InputError(
            "Email or phone required for order tracking",
            {"email": ["Provide email or phone"], "phone": ["Provide email or phone"]},
        )

    order = current_domain.repository_for(Order).find_by_number(order_number)
    if order is None or not _verified(order, email, phone):
        raise NotFoundError(Reason.ORDER_NOT_FOUND, "Order not found or verification failed")
    return order


def _verified(order, email, phone) -> bool:
    if email:
        return same_email(email, order.guest_email) or same_email(email, order.contact_email)
    return same_phone(phone, order.guest_phone) or same_phone(phone, order.shipping_address.phone)
