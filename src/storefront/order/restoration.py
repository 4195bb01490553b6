"""Stock restoration for cancelled and refunded orders.

Puts every unit an order took back into stock and unwinds the sold
counts. The lifecycle guard runs once per order: a cancelled or refunded
order has no outgoing transitions, so restoration cannot run twice.
"""

import structlog

from storefront.catalog.sales import SalesCounter
from storefront.discount.redemption import DiscountRedemption
from storefront.stock.ledger import StockLedger
from storefront.stock.movement import ReferenceType

logger = structlog.get_logger(__name__)


class StockRestoration:
    def __init__(self, ledger=None, sales=None, redemption=None):
        self._ledger = ledger or StockLedger()
        self._sales = sales or SalesCounter()
        self._redemption = redemption or DiscountRedemption()

    def restore(self, order, acting_id=None) -> int:
        """Return every debited unit of ``order``; returns the number of units credited."""
        credited = 0

        for item in order.items:
            selections = order.selections_for(item.id)

            if selections:
                for selection in selections:
                    quantity = selection.quantity * item.quantity
                    if selection.variant_id:
                        self._ledger.credit(
                            selection.variant_id,
                            quantity,
                            reference_type=ReferenceType.ORDER_CANCELLATION,
                            reference_id=str(order.id),
                            note="Stock restored due to combo order cancellation",
                            acting_id=acting_id,
                        )
                        credited += quantity
                    self._sales.reverse_sale(selection.child_product_id, quantity)
                self._sales.reverse_sale(item.product_id, item.quantity)
            else:
                if item.variant_id:
                    self._ledger.credit(
                        item.variant_id,
                        item.quantity,
                        reference_type=ReferenceType.ORDER_CANCELLATION,
                        reference_id=str(order.id),
                        note="Stock restored due to order cancellation",
                        acting_id=acting_id,
                    )
                    credited += item.quantity
                self._sales.reverse_sale(item.product_id, item.quantity)

        if order.discount_code_id and order.user_id:
            self._redemption.release(order.discount_code_id, order.user_id)

        logger.info("Order stock restored", order_number=order.order_number, units=credited)
        return credited
