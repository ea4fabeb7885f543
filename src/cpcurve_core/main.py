"""
Command line front end: prints curve summaries, increment tables, price curves and validation reports.
"""
import argparse
import logging
import sys
from decimal import Decimal, DecimalException
from typing import List, Optional

from cpcurve_core.common.config import get_settings
from cpcurve_core.common.exceptions import InvalidParameterError
from cpcurve_core.common.logger import setup_logging
from cpcurve_core.common.math import to_decimal
from cpcurve_core.common.model import CurveParameters, CurveSummary, IncrementPoint
from cpcurve_core.curves.single.constant_product import ConstantProductBondingCurve
from cpcurve_core.curves.utils.parameter_helper import CurveParameterHelper
from cpcurve_core.validation.constant_product_validator import ConstantProductCurveValidator


logger = logging.getLogger(__name__)

MILLION = Decimal("1000000")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cpcurve_core",
        description="Constant-product bonding curve pricing calculator",
    )
    parser.add_argument("--virtual-sol", default=None, help="Virtual SOL reserves (default 30)")
    parser.add_argument("--virtual-tokens", default=None, help="Virtual token reserves (default 1,000,000,000)")
    parser.add_argument("--preset", default=None, help="Apply a named preset, e.g. ONE_BILLION_TOKENS or '801M tokens'")
    parser.add_argument("--log-level", default=None, help="Logging level (default from CPCURVE_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command")

    table = subparsers.add_parser("table", help="Print the summary and the increment cost table")
    table.add_argument("--rows", type=int, default=10, help="Number of increment rows to print (0 for all)")

    curve = subparsers.add_parser("curve", help="Print sampled price curve points")
    curve.add_argument("--samples", type=int, default=None, help="Samples after the origin")
    curve.add_argument("--scale", default=None, help="Display multiplier for prices")

    subparsers.add_parser("validate", help="Run parameter, boundary and scenario checks")
    subparsers.add_parser("serve", help="Run the web API")
    return parser


def resolve_params(args: argparse.Namespace) -> CurveParameters:
    """
    Starts from the defaults, applies the preset and then the explicit reserve values.
    Raises InvalidParameterError on the first rejected value.
    """
    params = CurveParameters()
    if args.preset:
        params = CurveParameterHelper.apply_preset(params, args.preset)

    changes = {}
    if args.virtual_sol is not None:
        changes["virtual_sol_reserves"] = args.virtual_sol
    if args.virtual_tokens is not None:
        changes["virtual_token_reserves"] = args.virtual_tokens
    if changes:
        params = CurveParameterHelper.update_params(params, **changes)
    return params


def format_summary(params: CurveParameters, summary: CurveSummary) -> List[str]:
    lines = [
        f"Virtual SOL reserves:    {params.virtual_sol_reserves}",
        f"Virtual token reserves:  {params.virtual_token_reserves}",
        f"Initial token price:     {summary.initial_price:.10e} SOL",
        f"Constant product (k):    {summary.constant_product:.10e}",
    ]
    if summary.total_sol_required is None:
        lines.append("SOL required for all real reserves: (calculation not available)")
    else:
        lines.append(
            f"SOL required to purchase all {params.real_token_reserves:,.0f} tokens: "
            f"{summary.total_sol_required:.2f} SOL"
        )
    if summary.truncated:
        lines.append(f"Schedule truncated after {summary.increment_count} increments.")
    return lines


def format_schedule(schedule: List[IncrementPoint], rows: int) -> List[str]:
    if rows > 0:
        schedule = schedule[:rows]

    lines = [f"{'Tokens Purchased':>18} {'Increment Cost':>18} {'Price per Token':>20} {'Total SOL':>14}"]
    for point in schedule:
        lines.append(
            f"{point.tokens_bought / MILLION:>17.1f}M "
            f"{point.increment_cost:>14.4f} SOL "
            f"{point.increment_price:>16.8f} SOL "
            f"{point.sol_total:>10.4f} SOL"
        )
    return lines


def format_curve(curve: ConstantProductBondingCurve, samples: int, scale: Decimal) -> List[str]:
    lines = [f"{'Tokens Sold':>14} {'Price x ' + str(scale):>22} {'SOL Required':>16}"]
    for point in curve.compute_price_curve(samples):
        scaled = point.scaled(scale)
        lines.append(
            f"{point.tokens_sold / MILLION:>13.1f}M {scaled.price:>22.8f} {point.sol_required:>16.4f}"
        )
    return lines


def format_validation(results: dict) -> List[str]:
    lines = []
    for error in results["errors"]:
        lines.append(f"ERROR: {error}")
    for warning in results["warnings"]:
        lines.append(f"WARNING: {warning}")
    for key, value in results["info"].items():
        lines.append(f"{key}: {value}")
    return lines


def _render(command: str, args: argparse.Namespace, curve: ConstantProductBondingCurve, settings) -> List[str]:
    if command == "table":
        schedule = curve.compute_increment_schedule()
        rows = getattr(args, "rows", 10)
        return format_summary(curve.params, curve.summarize(schedule)) + [""] + format_schedule(schedule, rows)

    samples = args.samples or settings.sample_count
    scale = to_decimal(args.scale, "scale") if args.scale else settings.price_display_scale
    return format_curve(curve, samples, scale)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)

    command = args.command or "table"
    if command == "serve":
        from cpcurve_core.webapi.webapi import run
        run()
        return 0

    try:
        params = resolve_params(args)
    except InvalidParameterError as e:
        print(f"Invalid parameters: {e}", file=sys.stderr)
        return 2
    except NotImplementedError as e:
        print(str(e), file=sys.stderr)
        return 2

    logger.debug("Resolved curve parameters: %s", params)
    curve = ConstantProductBondingCurve(params)

    if command in ("table", "curve"):
        try:
            lines = _render(command, args, curve, settings)
        except InvalidParameterError as e:
            print(f"Invalid parameters: {e}", file=sys.stderr)
            return 2
        except DecimalException as e:
            logger.debug("Numeric range exceeded: %r", e)
            print("Invalid parameters: values are outside the representable numeric range.", file=sys.stderr)
            return 2
    else:
        results = ConstantProductCurveValidator.run_all_validations(curve)
        lines = format_validation(results)
        print("\n".join(lines))
        return 1 if results["errors"] else 0

    print("\n".join(lines))
    return 0


if __name__ == "__main__":
    sys.exit(main())
