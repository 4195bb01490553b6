from decimal import Decimal

import pytest

from storefront.shared.money import percentage_of, to_amount, to_minor, to_minor_or_none


class TestToMinor:
    def test_whole_amount(self):
        assert to_minor(80) == 8000

    def test_decimal_amount(self):
        assert to_minor(Decimal("1234.56")) == 123456

    def test_rounds_half_up(self):
        assert to_minor("0.005") == 1
        assert to_minor("2.675") == 268

    def test_float_goes_through_its_string_form(self):
        assert to_minor(0.1 + 0.2) == 30

    def test_none_is_rejected(self):
        with pytest.raises(ValueError):
            to_minor(None)

    def test_optional_variant_passes_none_through(self):
        assert to_minor_or_none(None) is None
        assert to_minor_or_none("10") == 1000


class TestToAmount:
    def test_two_places(self):
        assert to_amount(8000) == Decimal("80.00")
        assert str(to_amount(123456)) == "1234.56"

    def test_none(self):
        assert to_amount(None) is None


class TestPercentageOf:
    def test_ten_percent(self):
        assert percentage_of(123456, 1000) == 12346

    def test_fractional_percent(self):
        # 12.5% of 99.99
        assert percentage_of(9999, 1250) == 1250

    def test_whole_percent_of_nothing(self):
        assert percentage_of(0, 10000) == 0
