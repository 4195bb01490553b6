"""Races on contended counters, replayed deterministically.

Each test lets two checkouts read the same state first and only then
lets them write, which is the interleaving that breaks read-then-write
counters.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from protean import UnitOfWork
from protean.utils.query import Q

from storefront.catalog.sales import SalesCounter
from storefront.discount.evaluator import DiscountEvaluator
from storefront.discount.redemption import DiscountRedemption
from storefront.errors import ConflictError
from storefront.order.assembly import CartLine, OrderAssembly, Reference
from storefront.shared.counters import MAX_ATTEMPTS, CounterContention, compare_and_set
from storefront.stock.ledger import StockLedger


@pytest.fixture()
def last_unit(catalog, shop):
    product = catalog.simple("LU-001", 99900, variants=[("LU-001-M", "M", "Red", 1)])
    return product, shop.variant(product, "LU-001-M")


def _assemble(product, variant):
    return OrderAssembly().assemble([CartLine(product_id=str(product.id), variant_id=str(variant.id), quantity=1)])


def _reserve(lines, order_id):
    with UnitOfWork():
        reference = Reference(order_id=order_id, order_number=f"ATN-{order_id}")
        for line in lines:
            line.reserve(StockLedger(), SalesCounter(), reference)


class TestLastUnit:
    def test_both_pass_the_advisory_check_but_only_one_wins(self, last_unit, shop):
        product, variant = last_unit
        first, second = _assemble(product, variant), _assemble(product, variant)

        _reserve(first, "ord-a")
        with pytest.raises(ConflictError) as exc:
            _reserve(second, "ord-b")

        assert exc.value.reason == "InsufficientStock"
        assert shop.stock_of(variant.id) == 0
        assert shop.sold_count_of(product.id) == 1
        assert StockLedger().replay(variant.id) == 0

    def test_n_checkouts_for_the_last_unit(self, last_unit, shop):
        product, variant = last_unit
        assembled = [_assemble(product, variant) for _ in range(5)]

        outcomes = []
        for number, lines in enumerate(assembled):
            try:
                _reserve(lines, f"ord-{number}")
                outcomes.append("reserved")
            except ConflictError as exc:
                outcomes.append(exc.reason)

        assert outcomes.count("reserved") == 1
        assert outcomes.count("InsufficientStock") == 4
        assert shop.stock_of(variant.id) == 0
        assert shop.sold_count_of(product.id) == 1
        assert StockLedger().replay(variant.id) == 0


class TestUsageLimitOfOne:
    def test_two_valid_quotes_only_one_redemption(self, shop):
        shop.create_discount("ONCE", usage_limit=1)

        first = DiscountEvaluator().require("ONCE", 100000)
        second = DiscountEvaluator().require("ONCE", 100000)

        with UnitOfWork():
            DiscountRedemption().redeem(first.discount)
        with pytest.raises(ConflictError) as exc:
            with UnitOfWork():
                DiscountRedemption().redeem(second.discount)

        assert exc.value.reason == "DiscountLimitReached"
        assert DiscountEvaluator().find("ONCE").used_count == 1


class TestCompareAndSet:
    def _dao(self, values, affected):
        dao = MagicMock()
        dao.get.side_effect = [SimpleNamespace(stock=value) for value in values]
        dao._update_all.side_effect = affected
        return dao

    def test_first_attempt(self):
        dao = self._dao([5], [1])

        _, previous, new = compare_and_set(dao, "var-1", "stock", lambda stock: stock - 1)

        assert (previous, new) == (5, 4)
        dao._update_all.assert_called_once_with(Q(id="var-1", stock=5), stock=4)

    def test_lost_race_rereads_and_retries(self):
        dao = self._dao([5, 3], [0, 1])

        _, previous, new = compare_and_set(dao, "var-1", "stock", lambda stock: stock - 1)

        assert (previous, new) == (3, 2)
        assert dao._update_all.call_args.args == (Q(id="var-1", stock=3),)

    def test_gives_up_after_bounded_attempts(self):
        dao = self._dao(range(10, 10 - MAX_ATTEMPTS, -1), [0] * MAX_ATTEMPTS)

        with pytest.raises(CounterContention):
            compare_and_set(dao, "var-1", "stock", lambda stock: stock - 1)
        assert dao.get.call_count == MAX_ATTEMPTS

    def test_refusal_propagates(self):
        dao = self._dao([0], [])

        def _refuse(stock):
            raise ValueError("empty")

        with pytest.raises(ValueError):
            compare_and_set(dao, "var-1", "stock", _refuse)
        dao._update_all.assert_not_called()

    def test_guard_conditions_join_the_update(self):
        dao = self._dao([5], [1])

        compare_and_set(
            dao,
            "var-1",
            "stock",
            lambda stock: stock - 1,
            guard=lambda record: {"is_active": True, "expires_at__isnull": True},
        )

        dao._update_all.assert_called_once_with(
            Q(id="var-1", stock=5, is_active=True, expires_at__isnull=True), stock=4
        )

    def test_guard_refusal_skips_the_update(self):
        dao = self._dao([5], [])

        def _switched_off(record):
            raise ConflictError("NotFound", "Invalid discount code")

        with pytest.raises(ConflictError):
            compare_and_set(dao, "var-1", "stock", lambda stock: stock - 1, guard=_switched_off)
        dao._update_all.assert_not_called()
