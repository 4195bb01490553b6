"""Sold-count bookkeeping on products."""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalog.product import Product
from storefront.errors import InternalError, Reason
from storefront.shared.counters import CounterContention, compare_and_set

logger = structlog.get_logger(__name__)


class SalesCounter:
    def __init__(self):
        self._dao = current_domain.repository_for(Product)._dao

    def record_sale(self, product_id, quantity: int) -> int | None:
        return self._shift(product_id, quantity)

    def reverse_sale(self, product_id, quantity: int) -> int | None:
        return self._shift(product_id, -quantity)

    def _shift(self, product_id, delta):
        try:
            _, _, new = compare_and_set(
                self._dao,
                product_id,
                "sold_count",
                lambda current: max(0, (current or 0) + delta),
            )
        except ObjectNotFoundError:
            # Products removed from the catalog keep their order history.
            logger.warning("Sold count not updated, product missing", product_id=str(product_id), delta=delta)
            return None
        except CounterContention as exc:
            raise InternalError(
                Reason.INTERNAL_ERROR,
                f"Could not update sales figures for product {product_id}",
            ) from exc
        return new
