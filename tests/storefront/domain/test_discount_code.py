from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from storefront.discount.discount import DiscountCode, DiscountType, DiscountUsage, normalise_code, usage_id


class TestAmount:
    def test_percentage(self):
        discount = DiscountCode.create(code="TEN", discount_type=DiscountType.PERCENTAGE, value=1000)
        assert discount.amount_for(123456) == 12346

    def test_percentage_is_capped(self):
        discount = DiscountCode.create(
            code="TEN", discount_type=DiscountType.PERCENTAGE, value=1000, max_discount_amount=5000
        )
        assert discount.amount_for(123456) == 5000

    def test_fixed(self):
        discount = DiscountCode.create(code="FLAT150", discount_type=DiscountType.FIXED, value=15000)
        assert discount.amount_for(90000) == 15000

    def test_fixed_never_exceeds_subtotal(self):
        discount = DiscountCode.create(code="FLAT150", discount_type=DiscountType.FIXED, value=15000)
        assert discount.amount_for(10000) == 10000

    def test_full_percentage(self):
        discount = DiscountCode.create(code="FREE", discount_type=DiscountType.PERCENTAGE, value=10000)
        assert discount.amount_for(4550) == 4550


class TestCreation:
    def test_code_is_normalised(self):
        discount = DiscountCode.create(code="  eid2026 ", discount_type=DiscountType.FIXED, value=100)
        assert discount.code == "EID2026"
        assert normalise_code(None) == ""

    def test_allow_lists_round_trip(self):
        discount = DiscountCode.create(
            code="APPAREL",
            discount_type=DiscountType.FIXED,
            value=100,
            applicable_categories=["cat-apparel"],
        )
        assert discount.category_allow_list == ["cat-apparel"]
        assert discount.product_allow_list is None

    def test_percentage_over_hundred_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            DiscountCode.create(code="TOOMUCH", discount_type=DiscountType.PERCENTAGE, value=10001)
        assert "value" in exc.value.messages

    def test_window_must_be_ordered(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError) as exc:
            DiscountCode.create(
                code="LATE",
                discount_type=DiscountType.FIXED,
                value=100,
                starts_at=now,
                expires_at=now - timedelta(days=1),
            )
        assert "expires_at" in exc.value.messages

    def test_new_codes_are_unused(self):
        discount = DiscountCode.create(code="NEW", discount_type=DiscountType.FIXED, value=100)
        assert discount.used_count == 0
        assert discount.is_active is True


class TestUsage:
    def test_usage_identity_is_stable_per_customer_and_code(self):
        assert usage_id("code-1", "user-1") == usage_id("code-1", "user-1")
        assert usage_id("code-1", "user-1") != usage_id("code-1", "user-2")

    def test_start(self):
        usage = DiscountUsage.start("code-1", "user-1")
        assert usage.id == usage_id("code-1", "user-1")
        assert usage.count == 0
