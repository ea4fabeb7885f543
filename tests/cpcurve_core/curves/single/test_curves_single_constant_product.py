import logging

import pytest

from decimal import Decimal, localcontext
from unittest.mock import patch

from cpcurve_core.common.constants import MAX_INCREMENT_STEPS
from cpcurve_core.common.enums import CurvePreset
from cpcurve_core.common.exceptions import InvalidParameterError
from cpcurve_core.common.math import decimal_approx_equal, decimal_rel_equal
from cpcurve_core.common.model import CurveParameters
from cpcurve_core.curves.single.base import BondingCurve
from cpcurve_core.curves.single.constant_product import (
    ConstantProductBondingCurve,
    compute_increment_schedule,
    compute_price_curve,
)
from cpcurve_core.curves.utils.parameter_helper import PRESETS


@pytest.fixture
def default_params():
    """
    30 virtual SOL, 1B virtual tokens, 800M real tokens, 10M increments.
    """
    return CurveParameters(
        virtual_sol_reserves=Decimal("30"),
        virtual_token_reserves=Decimal("1000000000"),
        real_token_reserves=Decimal("800000000"),
        token_increment=Decimal("10000000"),
    )


@pytest.fixture
def default_curve(default_params):
    return ConstantProductBondingCurve(default_params)


def _preset_params():
    return [
        CurveParameters(
            virtual_sol_reserves=config.virtual_sol_reserves,
            virtual_token_reserves=config.virtual_token_reserves,
        )
        for config in PRESETS.values()
    ]


def test_is_bonding_curve(default_curve, default_params):
    assert isinstance(default_curve, BondingCurve)
    assert default_curve.params is default_params


class TestIncrementSchedule:
    def test_first_point(self, default_params):
        """
        First step buys 10M tokens for k/(1B - 10M) - 30 SOL.
        """
        schedule = compute_increment_schedule(default_params)
        first = schedule[0]
        expected_cost = Decimal("30000000000") / Decimal("990000000") - Decimal("30")

        assert first.tokens_bought == Decimal("10000000")
        assert decimal_approx_equal(first.increment_cost, expected_cost)
        assert decimal_approx_equal(first.sol_total, expected_cost)
        assert decimal_rel_equal(first.increment_price, expected_cost / Decimal("10000000"))
        assert decimal_rel_equal(first.average_price, first.increment_price)

    def test_last_point_reaches_real_reserves(self, default_params):
        schedule = compute_increment_schedule(default_params)
        last = schedule[-1]

        assert len(schedule) == 80
        assert last.tokens_bought == Decimal("800000000")
        # 3e10 / 2e8 - 30
        assert decimal_approx_equal(last.sol_total, Decimal("120"))
        assert decimal_rel_equal(last.average_price, Decimal("120") / Decimal("800000000"))

    @pytest.mark.parametrize("params", _preset_params())
    def test_tokens_strictly_increasing_and_bounded(self, params):
        schedule = compute_increment_schedule(params)
        tokens = [point.tokens_bought for point in schedule]

        assert all(a < b for a, b in zip(tokens, tokens[1:]))
        assert max(tokens) <= params.real_token_reserves
        assert tokens[-1] == params.real_token_reserves

    @pytest.mark.parametrize("params", _preset_params())
    def test_increment_costs_telescope_to_total(self, params):
        schedule = compute_increment_schedule(params)
        total = sum((point.increment_cost for point in schedule), Decimal("0"))
        assert decimal_rel_equal(total, schedule[-1].sol_total)

    @pytest.mark.parametrize("params", _preset_params())
    def test_increment_price_non_decreasing(self, params):
        """
        Buying pressure never lowers the marginal price.
        """
        schedule = compute_increment_schedule(params)
        prices = [point.increment_price for point in schedule]
        assert all(a <= b for a, b in zip(prices, prices[1:]))

    @pytest.mark.parametrize("params", _preset_params())
    def test_constant_product_holds_at_every_step(self, params):
        k = params.constant_product
        for point in compute_increment_schedule(params):
            product = (params.virtual_sol_reserves + point.sol_total) * (
                params.virtual_token_reserves - point.tokens_bought
            )
            assert decimal_rel_equal(product, k)

    @pytest.mark.parametrize("virtual_tokens", ["1e20", "1e22", "1e26", "1e30"])
    def test_huge_virtual_reserves_keep_precision(self, virtual_tokens):
        """
        With the pool dwarfing the step, per-step prices still rise and totals match k/(vt - t) - vs.
        """
        params = CurveParameters(virtual_sol_reserves=Decimal("30"), virtual_token_reserves=Decimal(virtual_tokens))
        schedule = compute_increment_schedule(params)
        prices = [point.increment_price for point in schedule]

        assert len(schedule) == 80
        assert all(point.increment_cost > 0 for point in schedule)
        assert all(a <= b for a, b in zip(prices, prices[1:]))
        with localcontext() as ctx:
            ctx.prec = 80
            k = params.constant_product
            for point in schedule:
                expected = k / (params.virtual_token_reserves - point.tokens_bought) - params.virtual_sol_reserves
                assert decimal_rel_equal(point.sol_total, expected)

    def test_last_step_is_clipped(self):
        """
        800M in 30M steps => 26 full steps then a 20M step.
        """
        params = CurveParameters(token_increment=Decimal("30000000"))
        schedule = compute_increment_schedule(params)

        assert len(schedule) == 27
        assert schedule[-2].tokens_bought == Decimal("780000000")
        assert schedule[-1].tokens_bought == Decimal("800000000")
        clipped_cost = schedule[-1].sol_total - schedule[-2].sol_total
        assert decimal_rel_equal(schedule[-1].increment_price, clipped_cost / Decimal("20000000"))

    def test_increment_larger_than_real_reserves(self):
        params = CurveParameters(token_increment=Decimal("900000000"))
        schedule = compute_increment_schedule(params)

        assert len(schedule) == 1
        assert schedule[0].tokens_bought == Decimal("800000000")
        assert decimal_approx_equal(schedule[0].sol_total, Decimal("120"))

    def test_truncated_after_max_steps(self, caplog):
        """
        800 steps would be needed; the schedule stops at MAX_INCREMENT_STEPS and logs a warning.
        """
        params = CurveParameters(token_increment=Decimal("1000000"))
        with caplog.at_level(logging.WARNING):
            schedule = compute_increment_schedule(params)

        assert len(schedule) == MAX_INCREMENT_STEPS
        assert schedule[-1].tokens_bought == Decimal("100000000")
        assert "truncated" in caplog.text

    def test_idempotent(self, default_params):
        assert compute_increment_schedule(default_params) == compute_increment_schedule(default_params)


class TestPriceCurve:
    def test_origin_point(self, default_params):
        points = compute_price_curve(default_params)
        origin = points[0]

        assert origin.tokens_sold == Decimal("0")
        assert origin.sol_required == Decimal("0")
        assert origin.price == Decimal("30") / Decimal("1000000000")

    @pytest.mark.parametrize("params", _preset_params())
    def test_origin_point_for_presets(self, params):
        origin = compute_price_curve(params)[0]
        assert origin.tokens_sold == Decimal("0")
        assert origin.sol_required == Decimal("0")
        assert origin.price == params.virtual_sol_reserves / params.virtual_token_reserves

    def test_default_sampling(self, default_params):
        """
        101 points: the origin plus 100 samples every 7.9M tokens up to 790M inclusive.
        """
        points = compute_price_curve(default_params)

        assert len(points) == 101
        assert points[1].tokens_sold == Decimal("7900000")
        assert points[-1].tokens_sold == Decimal("790000000")
        for previous, current in zip(points, points[1:]):
            assert current.tokens_sold - previous.tokens_sold == Decimal("7900000")

    def test_last_sample_values(self, default_params):
        points = compute_price_curve(default_params)
        last = points[-1]
        remaining = Decimal("1000000000") - Decimal("790000000")
        new_virtual_sol = Decimal("30000000000") / remaining

        assert decimal_rel_equal(last.sol_required, new_virtual_sol - Decimal("30"))
        assert decimal_rel_equal(last.price, new_virtual_sol / remaining)

    def test_custom_sample_count_and_cap(self, default_params):
        points = compute_price_curve(default_params, sample_count=3, max_tokens_cap=Decimal("100000000"))

        assert len(points) == 4
        assert points[-1].tokens_sold == Decimal("100000000")
        assert decimal_rel_equal(points[1].tokens_sold, Decimal("100000000") / Decimal("3"))

    def test_cap_limited_by_real_reserves(self):
        params = CurveParameters(
            virtual_token_reserves=Decimal("600000000"),
            real_token_reserves=Decimal("500000000"),
        )
        points = compute_price_curve(params, sample_count=10)
        assert points[-1].tokens_sold == Decimal("500000000")

    @pytest.mark.parametrize("params", _preset_params())
    def test_constant_product_holds_on_curve(self, params):
        k = params.constant_product
        for point in compute_price_curve(params):
            product = (params.virtual_sol_reserves + point.sol_required) * (
                params.virtual_token_reserves - point.tokens_sold
            )
            assert decimal_rel_equal(product, k)

    @pytest.mark.parametrize("params", _preset_params())
    def test_price_and_cost_increase(self, params):
        points = compute_price_curve(params)
        assert all(a.price < b.price for a, b in zip(points, points[1:]))
        assert all(a.sol_required < b.sol_required for a, b in zip(points, points[1:]))

    def test_prices_are_unscaled(self, default_params):
        """
        The model reports SOL per token; display multipliers are applied by callers.
        """
        points = compute_price_curve(default_params)
        assert points[0].price < Decimal("0.001")
        assert points[0].scaled(Decimal("1000000")).price == Decimal("0.03")

    @pytest.mark.parametrize("sample_count", [0, -1, 2.5, True, "10"])
    def test_invalid_sample_count(self, default_params, sample_count):
        with pytest.raises(InvalidParameterError):
            compute_price_curve(default_params, sample_count=sample_count)

    @pytest.mark.parametrize("cap", [Decimal("0"), Decimal("-1"), Decimal("800000001"), "abc"])
    def test_invalid_cap(self, default_params, cap):
        with pytest.raises(InvalidParameterError):
            compute_price_curve(default_params, max_tokens_cap=cap)

    def test_idempotent(self, default_params):
        assert compute_price_curve(default_params) == compute_price_curve(default_params)


class TestSpotPriceAndPurchaseCost:
    def test_spot_price_at_zero(self, default_curve):
        assert default_curve.get_spot_price(Decimal("0")) == Decimal("0.00000003")

    def test_spot_price_matches_curve(self, default_curve):
        point = default_curve.compute_price_curve()[50]
        assert decimal_rel_equal(default_curve.get_spot_price(point.tokens_sold), point.price)

    def test_purchase_cost_matches_schedule(self, default_curve):
        schedule = default_curve.compute_increment_schedule()
        for point in schedule[::10]:
            assert decimal_rel_equal(default_curve.calculate_purchase_cost(point.tokens_bought), point.sol_total)

    def test_purchase_cost_of_zero(self, default_curve):
        assert default_curve.calculate_purchase_cost(Decimal("0")) == Decimal("0")

    def test_purchase_cost_accepts_plain_numbers(self, default_curve):
        assert decimal_approx_equal(default_curve.calculate_purchase_cost(800000000), Decimal("120"))

    @pytest.mark.parametrize("amount", [Decimal("-1"), Decimal("800000001"), "lots"])
    def test_out_of_range_amount(self, default_curve, amount):
        with pytest.raises(InvalidParameterError):
            default_curve.calculate_purchase_cost(amount)
        with pytest.raises(InvalidParameterError):
            default_curve.get_spot_price(amount)


class TestSummary:
    def test_default_summary(self, default_curve):
        summary = default_curve.summarize()

        assert summary.initial_price == Decimal("0.00000003")
        assert summary.constant_product == Decimal("30000000000")
        assert decimal_approx_equal(summary.total_sol_required, Decimal("120"))
        assert summary.increment_count == 80
        assert summary.truncated is False

    def test_summary_from_precomputed_schedule(self, default_curve):
        schedule = default_curve.compute_increment_schedule()
        expected = default_curve.summarize()

        with patch.object(ConstantProductBondingCurve, "compute_increment_schedule") as mock_schedule:
            summary = default_curve.summarize(schedule)

        mock_schedule.assert_not_called()
        assert summary == expected

    def test_truncated_summary(self):
        curve = ConstantProductBondingCurve(CurveParameters(token_increment=Decimal("1000000")))
        summary = curve.summarize()

        assert summary.truncated is True
        assert summary.increment_count == MAX_INCREMENT_STEPS

    def test_preset_801m_is_steep(self):
        """
        With only 1M tokens of headroom the last real token costs far more than the first.
        """
        config = PRESETS[CurvePreset.EIGHT_HUNDRED_ONE_MILLION_TOKENS]
        curve = ConstantProductBondingCurve(CurveParameters(
            virtual_sol_reserves=config.virtual_sol_reserves,
            virtual_token_reserves=config.virtual_token_reserves,
        ))
        # 30 * 801M / 1M - 30
        assert decimal_approx_equal(curve.summarize().total_sol_required, Decimal("24000"))
