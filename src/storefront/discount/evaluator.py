"""Discount evaluation.

Checks run in a fixed order and stop at the first failure:

1. the code exists and is active
2. the validity window has started
3. the validity window has not ended
4. the total usage limit is not exhausted
5. the customer has not reached the per-customer limit
6. the subtotal meets the minimum order amount
7. the cart holds at least one eligible item for each allow-list

Evaluation never consumes the code; see ``storefront.discount.redemption``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.discount.discount import DiscountCode, DiscountUsage, normalise_code, usage_id
from storefront.errors import ConflictError
from storefront.shared.money import to_amount


class DiscountRejection(Enum):
    NOT_FOUND = "NotFound"
    NOT_YET_ACTIVE = "NotYetActive"
    EXPIRED = "Expired"
    USAGE_LIMIT_REACHED = "UsageLimitReached"
    PER_USER_LIMIT_REACHED = "PerUserLimitReached"
    BELOW_MINIMUM = "BelowMinimum"
    NOT_APPLICABLE = "NotApplicable"


@dataclass(frozen=True)
class CartEntry:
    """What the evaluator needs to know about one cart line."""

    product_id: str
    category_id: str | None = None


@dataclass(frozen=True)
class DiscountQuote:
    discount: DiscountCode
    amount: int

    valid = True


@dataclass(frozen=True)
class Rejection:
    reason: DiscountRejection
    message: str

    valid = False


class DiscountRejected(ConflictError):
    def __init__(self, rejection: Rejection):
        super().__init__(rejection.reason, rejection.message)
        self.rejection = rejection


def as_utc(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


class DiscountEvaluator:
    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now(UTC))
        self._codes = current_domain.repository_for(DiscountCode)
        self._usages = current_domain.repository_for(DiscountUsage)

    def find(self, code) -> DiscountCode | None:
        matches = self._codes._dao.query.filter(code=normalise_code(code)).all().items
        return matches[0] if matches else None

    def usage_count(self, discount_code_id, user_id) -> int:
        try:
            return self._usages.get(usage_id(discount_code_id, user_id)).count
        except ObjectNotFoundError:
            return 0

    def evaluate(self, code, subtotal: int, user_id=None, cart_items=None) -> DiscountQuote | Rejection:
        discount = self.find(code)
        if discount is None or not discount.is_active:
            return Rejection(DiscountRejection.NOT_FOUND, "Invalid discount code")

        now = self._clock()
        if discount.starts_at and as_utc(discount.starts_at) > now:
            return Rejection(DiscountRejection.NOT_YET_ACTIVE, "Discount code is not yet active")

        if discount.expires_at and as_utc(discount.expires_at) < now:
            return Rejection(DiscountRejection.EXPIRED, "Discount code has expired")

        if discount.usage_limit is not None and discount.used_count >= discount.usage_limit:
            return Rejection(DiscountRejection.USAGE_LIMIT_REACHED, "Discount code usage limit reached")

        if user_id and discount.per_user_limit is not None:
            if self.usage_count(discount.id, user_id) >= discount.per_user_limit:
                return Rejection(
                    DiscountRejection.PER_USER_LIMIT_REACHED,
                    "You have already used this discount code the maximum number of times",
                )

        if discount.min_order_amount is not None and subtotal < discount.min_order_amount:
            return Rejection(
                DiscountRejection.BELOW_MINIMUM,
                f"Minimum order amount of {to_amount(discount.min_order_amount)} required for this discount",
            )

        if cart_items is not None and not self._applies_to(discount, cart_items):
            return Rejection(
                DiscountRejection.NOT_APPLICABLE,
                "Discount code is not applicable to items in your cart",
            )

        return DiscountQuote(discount=discount, amount=discount.amount_for(subtotal))

    def require(self, code, subtotal: int, user_id=None, cart_items=None) -> DiscountQuote:
        """Evaluate and raise ``DiscountRejected`` instead of returning a rejection."""
        result = self.evaluate(code, subtotal, user_id=user_id, cart_items=cart_items)
        if isinstance(result, Rejection):
            raise DiscountRejected(result)
        return result

    @staticmethod
    def _applies_to(discount, cart_items) -> bool:
        categories = discount.category_allow_list
        if categories and not any(str(item.category_id) in categories for item in cart_items):
            return False

        products = discount.product_allow_list
        if products and not any(str(item.product_id) in products for item in cart_items):
            return False

        return True
