from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from cpcurve_core.common.exceptions import InvalidParameterError


def decimal_approx_equal(a: Decimal, b: Decimal, tol: Decimal = Decimal("1e-12")) -> bool:
    return abs(a - b) < tol


def decimal_rel_equal(a: Decimal, b: Decimal, rel_tol: Decimal = Decimal("1e-9")) -> bool:
    """
    Relative comparison: |a - b| <= rel_tol * max(|a|, |b|).
    Two zeros compare equal.
    """
    scale = max(abs(a), abs(b))
    if scale == 0:
        return True
    return abs(a - b) <= rel_tol * scale


def to_decimal(value: Any, field: Optional[str] = None) -> Decimal:
    """
    Coerces int, float, numeric strings and Decimal into a finite Decimal.
    Floats go through str() so 0.1 stays 0.1.

    :raises InvalidParameterError: on bools, non-numeric input, NaN or infinities.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidParameterError(f"{field or 'value'} must be numeric, got {value!r}.", field, value)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip().replace("_", ""))
        except InvalidOperation:
            raise InvalidParameterError(f"{field or 'value'} must be numeric, got {value!r}.", field, value)
    else:
        raise InvalidParameterError(f"{field or 'value'} must be numeric, got {value!r}.", field, value)

    if not result.is_finite():
        raise InvalidParameterError(f"{field or 'value'} must be finite, got {value!r}.", field, value)
    return result
