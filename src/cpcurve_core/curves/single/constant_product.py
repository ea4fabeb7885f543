import logging
from decimal import Decimal
from typing import List, Optional

from cpcurve_core.common.constants import DEFAULT_SAMPLE_COUNT, MAX_INCREMENT_STEPS
from cpcurve_core.common.exceptions import InvalidParameterError
from cpcurve_core.common.math import to_decimal
from cpcurve_core.common.model import CurveParameters, CurvePoint, CurveSummary, IncrementPoint
from cpcurve_core.curves.helpers.constant_product import ConstantProductCurveHelper as helper
from cpcurve_core.curves.single.base import BondingCurve


logger = logging.getLogger(__name__)


class ConstantProductBondingCurve(BondingCurve):
    """
    A constant-product (x * y = k) bonding curve over virtual reserves.

    Only 'real_token_reserves' tokens can actually be sold; the virtual reserves shape the price:
        k                 = virtual_sol * virtual_tokens
        sol_required(t)   = k / (virtual_tokens - t) - virtual_sol
        price(t)          = k / (virtual_tokens - t)^2

    Instances hold no mutable state. Every call recomputes from 'params'.
    """

    def get_spot_price(self, tokens_sold: Decimal) -> Decimal:
        tokens_sold = self._check_token_amount(tokens_sold, "tokens_sold")
        if tokens_sold == Decimal("0"):
            return self.params.initial_price
        return helper.spot_price(
            self.params.virtual_sol_reserves, self.params.virtual_token_reserves, tokens_sold
        )

    def calculate_purchase_cost(self, amount: Decimal) -> Decimal:
        amount = self._check_token_amount(amount, "amount")
        if amount == Decimal("0"):
            return Decimal("0")
        return helper.sol_required(
            self.params.virtual_sol_reserves, self.params.virtual_token_reserves, amount
        )

    def compute_increment_schedule(self) -> List[IncrementPoint]:
        """
        Buys the real token reserves in 'token_increment' steps, the last step clipped so the
        schedule ends exactly at 'real_token_reserves'. At most MAX_INCREMENT_STEPS points are
        produced; longer schedules are truncated and logged.
        """
        params = self.params
        k = params.constant_product
        points: List[IncrementPoint] = []
        cumulative_tokens = Decimal("0")
        previous_sol_total = Decimal("0")

        while cumulative_tokens < params.real_token_reserves:
            if len(points) >= MAX_INCREMENT_STEPS:
                logger.warning(
                    "Increment schedule truncated at %s steps (%s of %s tokens covered)",
                    MAX_INCREMENT_STEPS, cumulative_tokens, params.real_token_reserves
                )
                break

            step = min(params.token_increment, params.real_token_reserves - cumulative_tokens)
            tokens_after = cumulative_tokens + step

            # k/(vt - after) - k/(vt - before) in closed form; subtracting the two totals
            # loses every significant digit once vt dwarfs the step.
            increment_price = helper.increment_price(k, params.virtual_token_reserves, cumulative_tokens, tokens_after)
            increment_cost = increment_price * step
            sol_total = previous_sol_total + increment_cost

            points.append(IncrementPoint(
                tokens_bought=tokens_after,
                increment_cost=increment_cost,
                increment_price=increment_price,
                average_price=sol_total / tokens_after,
                sol_total=sol_total,
            ))

            previous_sol_total = sol_total
            cumulative_tokens = tokens_after

        logger.debug("Computed %s increment points for %s", len(points), params)
        return points

    def compute_price_curve(
        self,
        sample_count: int = DEFAULT_SAMPLE_COUNT,
        max_tokens_cap: Optional[Decimal] = None
    ) -> List[CurvePoint]:
        """
        Origin point followed by 'sample_count' evenly spaced samples up to 'max_tokens_cap'
        (inclusive). The cap defaults to min(real_token_reserves, 790M) to stay clear of the
        price singularity at virtual_token_reserves.
        """
        params = self.params
        if isinstance(sample_count, bool) or not isinstance(sample_count, int) or sample_count < 1:
            raise InvalidParameterError(
                f"sample_count must be a positive integer, got {sample_count!r}.", "sample_count", sample_count
            )

        if max_tokens_cap is None:
            cap = helper.default_price_curve_cap(params.real_token_reserves)
        else:
            cap = to_decimal(max_tokens_cap, "max_tokens_cap")
            if cap <= Decimal("0") or cap > params.real_token_reserves:
                raise InvalidParameterError(
                    f"max_tokens_cap must be in (0, {params.real_token_reserves}], got {cap}.",
                    "max_tokens_cap",
                    cap,
                )

        k = params.constant_product
        points = [CurvePoint(tokens_sold=Decimal("0"), price=params.initial_price, sol_required=Decimal("0"))]

        for i in range(1, sample_count + 1):
            tokens_sold = cap * i / sample_count
            remaining = helper.remaining_virtual_tokens(params.virtual_token_reserves, tokens_sold)
            new_virtual_sol = k / remaining
            points.append(CurvePoint(
                tokens_sold=tokens_sold,
                price=new_virtual_sol / remaining,
                sol_required=new_virtual_sol - params.virtual_sol_reserves,
            ))

        logger.debug("Computed %s price curve points up to %s tokens", len(points), cap)
        return points

    def summarize(self, schedule: Optional[List[IncrementPoint]] = None) -> CurveSummary:
        """Pass 'schedule' when the caller already holds this curve's increment schedule."""
        if schedule is None:
            schedule = self.compute_increment_schedule()
        truncated = bool(schedule) and schedule[-1].tokens_bought < self.params.real_token_reserves
        return CurveSummary(
            initial_price=self.params.initial_price,
            constant_product=self.params.constant_product,
            total_sol_required=schedule[-1].sol_total if schedule else None,
            increment_count=len(schedule),
            truncated=truncated,
        )

    def _check_token_amount(self, value, field: str) -> Decimal:
        amount = to_decimal(value, field)
        if amount < Decimal("0") or amount > self.params.real_token_reserves:
            raise InvalidParameterError(
                f"{field} must be within [0, {self.params.real_token_reserves}], got {amount}.", field, amount
            )
        return amount


def compute_increment_schedule(params: CurveParameters) -> List[IncrementPoint]:
    """Increment cost schedule for 'params'. See ConstantProductBondingCurve.compute_increment_schedule."""
    return ConstantProductBondingCurve(params).compute_increment_schedule()


def compute_price_curve(
    params: CurveParameters,
    sample_count: int = DEFAULT_SAMPLE_COUNT,
    max_tokens_cap: Optional[Decimal] = None
) -> List[CurvePoint]:
    """Sampled price curve for 'params'. See ConstantProductBondingCurve.compute_price_curve."""
    return ConstantProductBondingCurve(params).compute_price_curve(sample_count, max_tokens_cap)
