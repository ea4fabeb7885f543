from dataclasses import dataclass, replace
from decimal import Decimal, Overflow, Underflow, localcontext
from typing import Optional

from cpcurve_core.common.constants import (
    DEFAULT_VIRTUAL_SOL_RESERVES,
    DEFAULT_VIRTUAL_TOKEN_RESERVES,
    REAL_TOKEN_RESERVES,
    TOKEN_INCREMENT,
)
from cpcurve_core.common.exceptions import InvalidParameterError
from cpcurve_core.common.math import to_decimal


@dataclass(frozen=True)
class CurveParameters:
    """
    Immutable parameter set of a constant-product bonding curve with virtual reserves.

    The constant product k is derived from the virtual reserves on every access.
    """
    virtual_sol_reserves: Decimal = DEFAULT_VIRTUAL_SOL_RESERVES
    virtual_token_reserves: Decimal = DEFAULT_VIRTUAL_TOKEN_RESERVES
    real_token_reserves: Decimal = REAL_TOKEN_RESERVES
    token_increment: Decimal = TOKEN_INCREMENT

    def __post_init__(self):
        for name in ("virtual_sol_reserves", "virtual_token_reserves", "real_token_reserves", "token_increment"):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))

        if self.virtual_sol_reserves <= Decimal("0"):
            raise InvalidParameterError(
                "Virtual SOL reserves must be positive.", "virtual_sol_reserves", self.virtual_sol_reserves
            )
        if self.real_token_reserves <= Decimal("0"):
            raise InvalidParameterError(
                "Real token reserves must be positive.", "real_token_reserves", self.real_token_reserves
            )
        if self.token_increment <= Decimal("0"):
            raise InvalidParameterError(
                "Token increment must be positive.", "token_increment", self.token_increment
            )
        if self.virtual_token_reserves <= self.real_token_reserves:
            raise InvalidParameterError(
                f"Virtual token reserves must exceed real token reserves ({self.real_token_reserves}).",
                "virtual_token_reserves",
                self.virtual_token_reserves,
            )
        self._check_numeric_range()

    def _check_numeric_range(self):
        """
        Every price and cost is built from k, products of two virtual token counts, and quotients
        of those. Reject reserves whose extremes leave the Decimal exponent range.
        """
        with localcontext() as ctx:
            ctx.traps[Overflow] = True
            ctx.traps[Underflow] = True
            try:
                remaining_at_end = self.virtual_token_reserves - self.real_token_reserves
                self.constant_product
                self.initial_price
                self.virtual_token_reserves * self.virtual_token_reserves
                self.constant_product / (remaining_at_end * remaining_at_end)
            except (Overflow, Underflow) as e:
                raise InvalidParameterError(
                    "Curve reserves are outside the representable numeric range.",
                    "virtual_token_reserves",
                    self.virtual_token_reserves,
                ) from e

    @property
    def constant_product(self) -> Decimal:
        """k = virtual_sol_reserves * virtual_token_reserves"""
        return self.virtual_sol_reserves * self.virtual_token_reserves

    @property
    def initial_price(self) -> Decimal:
        return self.virtual_sol_reserves / self.virtual_token_reserves


@dataclass(frozen=True)
class IncrementPoint:
    """One step of the increment schedule."""
    tokens_bought: Decimal
    increment_cost: Decimal
    increment_price: Decimal
    average_price: Decimal
    sol_total: Decimal


@dataclass(frozen=True)
class CurvePoint:
    """One sample of the continuous price curve. Price is in SOL per token, unscaled."""
    tokens_sold: Decimal
    price: Decimal
    sol_required: Decimal

    def scaled(self, factor: Decimal) -> "CurvePoint":
        """Returns a copy with the price multiplied by a display factor."""
        return replace(self, price=self.price * factor)


@dataclass(frozen=True)
class CurveSummary:
    """Headline numbers for a parameter set."""
    initial_price: Decimal
    constant_product: Decimal
    total_sol_required: Optional[Decimal]
    increment_count: int
    truncated: bool


@dataclass(frozen=True)
class PresetConfig:
    """A named (virtual SOL, virtual tokens) bundle."""
    name: str
    virtual_sol_reserves: Decimal
    virtual_token_reserves: Decimal


@dataclass(frozen=True)
class ParameterEdit:
    """Outcome of an edit at the input boundary. Rejected edits carry the previous params."""
    params: CurveParameters
    accepted: bool
    error: Optional[str] = None
