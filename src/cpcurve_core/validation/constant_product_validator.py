from decimal import ROUND_CEILING, Decimal
from typing import Any, Dict, List

from cpcurve_core.common.constants import MAX_INCREMENT_STEPS
from cpcurve_core.common.math import decimal_rel_equal
from cpcurve_core.common.model import CurveParameters
from cpcurve_core.curves.single.constant_product import ConstantProductBondingCurve


class ConstantProductCurveValidator:
    """
    Specialized validator for the ConstantProductBondingCurve.
    Performs:
      1) Param checks (reserves, increment, headroom)
      2) Boundary tests (spot price at 0, zero cost, schedule end point)
      3) Scenario tests (telescoping sum, monotonic increment price, k invariant)

    Each step returns a dict with:
      {
        "errors": [str...],
        "warnings": [str...],
        "info": {...}
      }
    and 'run_all_validations' aggregates them into a single result.
    """

    @staticmethod
    def validate_params(params: 'CurveParameters') -> Dict[str, Any]:
        """
        Checks that the parameters describe a usable curve:
          - virtual_sol_reserves > 0
          - real_token_reserves > 0, token_increment > 0
          - virtual_token_reserves > real_token_reserves
        A CurveParameters instance always passes the error checks, since its constructor raises
        InvalidParameterError for the same conditions. They only fire for duck-typed inputs
        (any object exposing the four attributes, e.g. a parsed config record), which are
        reported here instead of raising.
        """
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}

        virtual_sol = getattr(params, "virtual_sol_reserves", None)
        if virtual_sol is None or virtual_sol <= 0:
            errors.append("ConstantProductCurve: 'virtual_sol_reserves' must be > 0.")

        real_tokens = getattr(params, "real_token_reserves", None)
        if real_tokens is None or real_tokens <= 0:
            errors.append("ConstantProductCurve: 'real_token_reserves' must be > 0.")

        increment = getattr(params, "token_increment", None)
        if increment is None or increment <= 0:
            errors.append("ConstantProductCurve: 'token_increment' must be > 0.")

        virtual_tokens = getattr(params, "virtual_token_reserves", None)
        if virtual_tokens is None or real_tokens is None or virtual_tokens <= real_tokens:
            errors.append("ConstantProductCurve: 'virtual_token_reserves' must exceed 'real_token_reserves'.")

        if not errors:
            if increment > real_tokens:
                warnings.append("Token increment exceeds real token reserves; the schedule has a single step.")

            steps_needed = (real_tokens / increment).to_integral_value(rounding=ROUND_CEILING)
            if steps_needed > MAX_INCREMENT_STEPS:
                warnings.append(
                    f"Increment schedule needs {steps_needed} steps and will be truncated at {MAX_INCREMENT_STEPS}."
                )

            if virtual_tokens - real_tokens < increment:
                warnings.append(
                    "Virtual token headroom above real reserves is smaller than one increment; "
                    "the final price will be extreme."
                )

        info["param_summary"] = {
            "virtual_sol_reserves": str(virtual_sol),
            "virtual_token_reserves": str(virtual_tokens),
            "real_token_reserves": str(real_tokens),
            "token_increment": str(increment),
        }

        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def boundary_tests(curve: 'ConstantProductBondingCurve') -> Dict[str, Any]:
        """
        Calls a few boundary conditions on the curve:
          - get_spot_price(0) equals virtual_sol / virtual_tokens
          - calculate_purchase_cost(0) is zero
          - the increment schedule ends at real_token_reserves
        """
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}
        params = curve.params

        price_at_zero = curve.get_spot_price(Decimal("0"))
        if not decimal_rel_equal(price_at_zero, params.initial_price):
            errors.append(
                f"Spot price at 0 is {price_at_zero}, expected {params.initial_price}."
            )

        cost_zero = curve.calculate_purchase_cost(Decimal("0"))
        if cost_zero != 0:
            errors.append(f"Cost to buy 0 tokens is not zero: got {cost_zero}")

        schedule = curve.compute_increment_schedule()
        if not schedule:
            errors.append("Increment schedule is empty.")
        else:
            last = schedule[-1]
            if last.tokens_bought > params.real_token_reserves:
                errors.append(
                    f"Increment schedule overshoots real reserves: {last.tokens_bought} > {params.real_token_reserves}."
                )
            elif last.tokens_bought < params.real_token_reserves:
                warnings.append(
                    f"Increment schedule truncated at {len(schedule)} steps ({last.tokens_bought} tokens)."
                )
            info["final_sol_total"] = str(last.sol_total)

        info["boundary_tests_run"] = True
        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def scenario_tests(curve: 'ConstantProductBondingCurve') -> Dict[str, Any]:
        """
        Walks the full schedule and price curve:
          1) sum of increment costs equals the final cumulative total
          2) increment price never decreases
          3) (virtual_sol + sol_required) * (virtual_tokens - tokens_sold) stays at k
        """
        errors: List[str] = []
        warnings: List[str] = []
        info: Dict[str, Any] = {}
        params = curve.params
        k = params.constant_product

        schedule = curve.compute_increment_schedule()
        if schedule:
            total = sum((point.increment_cost for point in schedule), Decimal("0"))
            if not decimal_rel_equal(total, schedule[-1].sol_total):
                errors.append(
                    f"Sum of increment costs {total} differs from final total {schedule[-1].sol_total}."
                )

            for previous, current in zip(schedule, schedule[1:]):
                if current.increment_price < previous.increment_price:
                    errors.append(
                        f"Increment price decreases at {current.tokens_bought} tokens."
                    )
                    break

        for point in curve.compute_price_curve():
            product = (params.virtual_sol_reserves + point.sol_required) * (
                params.virtual_token_reserves - point.tokens_sold
            )
            if not decimal_rel_equal(product, k):
                errors.append(f"Constant product drifts at {point.tokens_sold} tokens: {product} != {k}.")
                break

        info["increment_count"] = len(schedule)
        return {
            "errors": errors,
            "warnings": warnings,
            "info": info
        }

    @staticmethod
    def run_all_validations(curve: 'ConstantProductBondingCurve') -> Dict[str, Any]:
        """
        Aggregates:
          - param check
          - boundary tests
          - scenario tests
        Returns a dict with keys: errors, warnings, info
        """
        if not isinstance(curve, ConstantProductBondingCurve):
            raise ValueError("Invalid curve type for ConstantProductCurveValidator.")

        results = {
            "errors": [],
            "warnings": [],
            "info": {}
        }

        # 1) Param checks
        param_check = ConstantProductCurveValidator.validate_params(curve.params)
        results["errors"].extend(param_check["errors"])
        results["warnings"].extend(param_check["warnings"])
        results["info"].update(param_check["info"])
        if param_check["errors"]:
            return results

        # 2) Boundary tests
        boundary = ConstantProductCurveValidator.boundary_tests(curve)
        results["errors"].extend(boundary["errors"])
        results["warnings"].extend(boundary["warnings"])
        results["info"].update(boundary["info"])

        # 3) Scenario tests
        scenario = ConstantProductCurveValidator.scenario_tests(curve)
        results["errors"].extend(scenario["errors"])
        results["warnings"].extend(scenario["warnings"])
        results["info"].update(scenario["info"])

        return results
