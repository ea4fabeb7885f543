from decimal import Decimal

from cpcurve_core.common.constants import PRICE_CURVE_TOKEN_CAP
from cpcurve_core.common.exceptions import InvalidParameterError


class ConstantProductCurveHelper:
    """
    Stateless formulas for a constant-product curve with virtual reserves:
        (virtual_sol + Δsol) * (virtual_tokens - Δtokens) = k

    Given tokens_sold = Δtokens the pool must hold
        new_virtual_sol = k / (virtual_tokens - tokens_sold)
    so the buyer paid new_virtual_sol - virtual_sol, and the marginal price is
        new_virtual_sol / (virtual_tokens - tokens_sold).
    """

    @staticmethod
    def constant_product(virtual_sol: Decimal, virtual_tokens: Decimal) -> Decimal:
        return virtual_sol * virtual_tokens

    @staticmethod
    def remaining_virtual_tokens(virtual_tokens: Decimal, tokens_sold: Decimal) -> Decimal:
        """
        Virtual tokens left in the pool after 'tokens_sold'.
        Raises InvalidParameterError if the pool would be empty or negative.
        """
        remaining = virtual_tokens - tokens_sold
        if remaining <= Decimal("0"):
            raise InvalidParameterError(
                f"Cannot sell {tokens_sold} tokens from {virtual_tokens} virtual token reserves.",
                "tokens_sold",
                tokens_sold,
            )
        return remaining

    @staticmethod
    def virtual_sol_after(k: Decimal, virtual_tokens: Decimal, tokens_sold: Decimal) -> Decimal:
        """Virtual SOL reserves after 'tokens_sold' tokens left the pool."""
        return k / ConstantProductCurveHelper.remaining_virtual_tokens(virtual_tokens, tokens_sold)

    @staticmethod
    def sol_required(virtual_sol: Decimal, virtual_tokens: Decimal, tokens_sold: Decimal) -> Decimal:
        """Cumulative SOL paid to buy 'tokens_sold' tokens starting from the origin."""
        k = ConstantProductCurveHelper.constant_product(virtual_sol, virtual_tokens)
        return ConstantProductCurveHelper.virtual_sol_after(k, virtual_tokens, tokens_sold) - virtual_sol

    @staticmethod
    def spot_price(virtual_sol: Decimal, virtual_tokens: Decimal, tokens_sold: Decimal) -> Decimal:
        """Instantaneous price (SOL per token) after 'tokens_sold' tokens."""
        k = ConstantProductCurveHelper.constant_product(virtual_sol, virtual_tokens)
        remaining = ConstantProductCurveHelper.remaining_virtual_tokens(virtual_tokens, tokens_sold)
        return (k / remaining) / remaining

    @staticmethod
    def increment_price(k: Decimal, virtual_tokens: Decimal, tokens_before: Decimal, tokens_after: Decimal) -> Decimal:
        """
        Average price of the tokens bought between 'tokens_before' and 'tokens_after':
            (k / r_after - k / r_before) / (tokens_after - tokens_before) = k / (r_before * r_after)
        """
        remaining_before = ConstantProductCurveHelper.remaining_virtual_tokens(virtual_tokens, tokens_before)
        remaining_after = ConstantProductCurveHelper.remaining_virtual_tokens(virtual_tokens, tokens_after)
        return k / (remaining_before * remaining_after)

    @staticmethod
    def default_price_curve_cap(real_tokens: Decimal) -> Decimal:
        return min(real_tokens, PRICE_CURVE_TOKEN_CAP)
