"""Consuming and releasing discount usage inside an order's unit of work.

Evaluation is advisory. The authoritative checks are the conditional
counter updates here: ``used_count`` only moves while the code is still
active, inside its validity window and below ``usage_limit``, and the
per-customer counter only moves while it is still below
``per_user_limit``. Two checkouts racing for the last use of a code
therefore cannot both carry the discount, and a code deactivated between
quote and checkout is not consumed.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import DatabaseError, ObjectNotFoundError
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from storefront.discount.discount import DiscountCode, DiscountUsage, usage_id
from storefront.discount.evaluator import DiscountRejected, DiscountRejection, Rejection, as_utc
from storefront.errors import ConflictError, Reason
from storefront.shared.counters import CounterContention, compare_and_set, require_transaction

logger = structlog.get_logger(__name__)


def _unchanged(field_name, value) -> dict:
    if value is None:
        return {f"{field_name}__isnull": True}
    return {field_name: value}


class DiscountRedemption:
    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now(UTC))
        self._codes = current_domain.repository_for(DiscountCode)._dao
        self._usages = current_domain.repository_for(DiscountUsage)

    def redeem(self, discount: DiscountCode, user_id=None) -> int:
        """Count one use of ``discount`` and return the new ``used_count``."""
        require_transaction("Discount redemption")

        def _next_use(used):
            if discount.usage_limit is not None and used >= discount.usage_limit:
                raise self._limit_reached(discount.code, "Discount code usage limit reached")
            return used + 1

        try:
            _, _, used_count = compare_and_set(
                self._codes, discount.id, "used_count", _next_use, guard=self._still_redeemable
            )
        except CounterContention as exc:
            raise self._limit_reached(discount.code, "Discount code is being used by another checkout") from exc

        if user_id and discount.per_user_limit is not None:
            self._count_customer_use(discount, user_id)

        logger.info("Discount redeemed", code=discount.code, used_count=used_count)
        return used_count

    def release(self, discount_code_id, user_id) -> None:
        """Give a customer back one use after their order is cancelled or refunded."""
        if not discount_code_id or not user_id:
            return

        try:
            compare_and_set(
                self._usages._dao,
                usage_id(discount_code_id, user_id),
                "count",
                lambda count: max(0, count - 1),
            )
        except ObjectNotFoundError:
            return

    def _still_redeemable(self, record) -> dict:
        """Refuse a code that was switched off or fell outside its window since it was quoted.

        The returned conditions pin ``is_active`` and the window to the values
        just checked, so a concurrent deactivation makes the update miss.
        """
        if not record.is_active:
            raise DiscountRejected(Rejection(DiscountRejection.NOT_FOUND, "Invalid discount code"))

        now = self._clock()
        if record.starts_at and as_utc(record.starts_at) > now:
            raise DiscountRejected(Rejection(DiscountRejection.NOT_YET_ACTIVE, "Discount code is not yet active"))
        if record.expires_at and as_utc(record.expires_at) < now:
            raise DiscountRejected(Rejection(DiscountRejection.EXPIRED, "Discount code has expired"))

        return {
            "is_active": True,
            **_unchanged("starts_at", record.starts_at),
            **_unchanged("expires_at", record.expires_at),
        }

    def _count_customer_use(self, discount, user_id):
        identifier = usage_id(discount.id, user_id)

        def _next_use(count):
            if count >= discount.per_user_limit:
                raise ConflictError(
                    Reason.DISCOUNT_LIMIT_REACHED,
                    "You have already used this discount code the maximum number of times",
                    {"code": discount.code},
                )
            return count + 1

        try:
            try:
                self._usages.get(identifier)
            except ObjectNotFoundError:
                self._usages.add(DiscountUsage.start(discount.id, user_id))

            compare_and_set(self._usages._dao, identifier, "count", _next_use)
        except (IntegrityError, DatabaseError) as exc:
            # A concurrent first use by the same customer inserted the row first.
            logger.info("Concurrent first use of discount", code=discount.code, user_id=str(user_id))
            raise self._limit_reached(discount.code, "Discount code is being used by another checkout") from exc
        except CounterContention as exc:
            raise self._limit_reached(discount.code, "Discount code is being used by another checkout") from exc

    @staticmethod
    def _limit_reached(code, message):
        return ConflictError(Reason.DISCOUNT_LIMIT_REACHED, message, {"code": code})
