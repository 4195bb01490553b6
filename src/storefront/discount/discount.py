"""Discount codes and per-customer usage counters.

``value`` is on the hundredths scale for both types: a fixed discount of
150.00 is 15000 and a percentage discount of 12.5% is 1250. Amount limits
are integer minor units.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import NAMESPACE_URL, uuid5

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.shared.money import percentage_of

FULL_PERCENT = 10000


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalise_code(code: str) -> str:
    return (code or "").strip().upper()


@storefront.aggregate
class DiscountCode:
    code = String(required=True, max_length=50, unique=True)
    description = String(max_length=255)
    discount_type = String(required=True, choices=DiscountType)
    value = Integer(required=True, min_value=1)
    min_order_amount = Integer(min_value=0)
    max_discount_amount = Integer(min_value=0)
    usage_limit = Integer(min_value=1)
    used_count = Integer(default=0, min_value=0)
    per_user_limit = Integer(min_value=1)
    starts_at = DateTime()
    expires_at = DateTime()
    is_active = Boolean(default=True)
    applicable_categories = Text()  # JSON array of category ids
    applicable_products = Text()  # JSON array of product ids
    created_at = DateTime(default=lambda: datetime.now(UTC))

    @invariant.post
    def percentage_cannot_exceed_whole(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value > FULL_PERCENT:
            raise ValidationError({"value": ["A percentage discount cannot exceed 100%"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.starts_at and self.expires_at and self.expires_at < self.starts_at:
            raise ValidationError({"expires_at": ["Expiry must not precede the start date"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type: DiscountType,
        value,
        description=None,
        min_order_amount=None,
        max_discount_amount=None,
        usage_limit=None,
        per_user_limit=None,
        starts_at=None,
        expires_at=None,
        is_active=True,
        applicable_categories=None,
        applicable_products=None,
    ):
        return cls(
            code=normalise_code(code),
            discount_type=discount_type.value,
            value=value,
            description=description,
            min_order_amount=min_order_amount,
            max_discount_amount=max_discount_amount,
            usage_limit=usage_limit,
            per_user_limit=per_user_limit,
            starts_at=starts_at,
            expires_at=expires_at,
            is_active=is_active,
            applicable_categories=json.dumps([str(c) for c in applicable_categories])
            if applicable_categories
            else None,
            applicable_products=json.dumps([str(p) for p in applicable_products]) if applicable_products else None,
        )

    @property
    def category_allow_list(self) -> list | None:
        return json.loads(self.applicable_categories) if self.applicable_categories else None

    @property
    def product_allow_list(self) -> list | None:
        return json.loads(self.applicable_products) if self.applicable_products else None

    def amount_for(self, subtotal: int) -> int:
        """Discount granted on ``subtotal``, never more than the subtotal itself."""
        if self.discount_type == DiscountType.PERCENTAGE.value:
            amount = percentage_of(subtotal, self.value)
            if self.max_discount_amount is not None:
                amount = min(amount, self.max_discount_amount)
        else:
            amount = self.value
        return max(0, min(amount, subtotal))

    def deactivate(self):
        self.is_active = False


def usage_id(discount_code_id, user_id) -> str:
    """Stable identity of the usage counter for one customer and code."""
    return str(uuid5(NAMESPACE_URL, f"discount-usage/{discount_code_id}/{user_id}"))


@storefront.aggregate
class DiscountUsage:
    """How many live orders one customer has placed with one code."""

    discount_code_id = Identifier(required=True)
    user_id = Identifier(required=True)
    count = Integer(default=0, min_value=0)

    @classmethod
    def start(cls, discount_code_id, user_id):
        return cls(
            id=usage_id(discount_code_id, user_id),
            discount_code_id=discount_code_id,
            user_id=user_id,
            count=0,
        )
