from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from cpcurve_core.common.model import CurveParameters, CurvePoint, CurveSummary, IncrementPoint


class BondingCurve(ABC):
    """Abstract base class defining the interface for any bonding curve pricing model."""
    def __init__(self, params: 'CurveParameters'):
        """
        Initializes the bonding curve with an immutable parameter set.

        :param params: CurveParameters - defines curve configuration
        """
        self._params = params

    @property
    def params(self) -> 'CurveParameters':
        """Returns the bonding curve parameters."""
        return self._params

    @abstractmethod
    def get_spot_price(self, tokens_sold: Decimal) -> Decimal:
        """
        Returns the instantaneous price once 'tokens_sold' tokens have been bought.

        :param tokens_sold: Decimal - Cumulative tokens sold by the curve.
        :return: Decimal: The marginal price at that point.
        """
        pass

    @abstractmethod
    def calculate_purchase_cost(self, amount: Decimal) -> Decimal:
        """
        Calculates how much it costs to buy 'amount' tokens starting from an untouched curve.

        :param amount: Decimal - Number of tokens bought from the origin.
        :return: Cumulative cost of 'amount' tokens.
        """
        pass

    @abstractmethod
    def compute_increment_schedule(self) -> List['IncrementPoint']:
        """
        Walks the curve in fixed token increments and returns the cost of every step.

        :return: IncrementPoints ordered by tokens bought.
        """
        pass

    @abstractmethod
    def compute_price_curve(
        self,
        sample_count: int = 100,
        max_tokens_cap: Optional[Decimal] = None
    ) -> List['CurvePoint']:
        """
        Samples price and cumulative cost evenly between 0 and 'max_tokens_cap'.

        :param sample_count: int - Samples after the origin point.
        :param max_tokens_cap: Decimal - Last sampled token count.
        :return: CurvePoints starting at the origin.
        """
        pass

    @abstractmethod
    def summarize(self, schedule: Optional[List['IncrementPoint']] = None) -> 'CurveSummary':
        """
        Headline numbers for the current parameters.

        :param schedule: Optional precomputed increment schedule of this curve.
        """
        pass
