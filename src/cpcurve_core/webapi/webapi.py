import logging
from dataclasses import asdict
from decimal import Decimal, DecimalException
from typing import Optional

from pydantic import BaseModel, Field

from flask import jsonify
from flask_openapi3 import Info, Tag
from flask_openapi3 import OpenAPI

from cpcurve_core.common.config import get_settings
from cpcurve_core.common.constants import (
    DEFAULT_VIRTUAL_SOL_RESERVES,
    DEFAULT_VIRTUAL_TOKEN_RESERVES,
    REAL_TOKEN_RESERVES,
    TOKEN_INCREMENT,
)
from cpcurve_core.common.enums import CurvePreset
from cpcurve_core.common.exceptions import InvalidParameterError
from cpcurve_core.common.logger import setup_logging
from cpcurve_core.common.model import CurveParameters
from cpcurve_core.curves.single.constant_product import ConstantProductBondingCurve
from cpcurve_core.curves.utils.parameter_helper import CurveParameterHelper


logger = logging.getLogger(__name__)

info = Info(title="Bonding Curve API", version="1.0.0")
app = OpenAPI(__name__, info=info)


class CurveQuery(BaseModel):
    virtual_sol_reserves: Decimal = Field(DEFAULT_VIRTUAL_SOL_RESERVES, description="Virtual SOL reserves")
    virtual_token_reserves: Decimal = Field(DEFAULT_VIRTUAL_TOKEN_RESERVES, description="Virtual token reserves")
    real_token_reserves: Decimal = Field(REAL_TOKEN_RESERVES, description="Tokens actually for sale")
    token_increment: Decimal = Field(TOKEN_INCREMENT, description="Step size of the increment schedule")


class CurveStatusQuery(CurveQuery):
    sample_count: Optional[int] = Field(None, ge=1, description="Price curve samples after the origin")
    max_tokens_cap: Optional[Decimal] = Field(None, description="Last sampled token count")
    display_scale: Optional[Decimal] = Field(None, gt=0, description="Multiplier applied to prices")


class PresetPath(BaseModel):
    name: str = Field(description="Preset enum name or label, e.g. ONE_BILLION_TOKENS")


curve_status_tag = Tag(
    name="Bonding Curve Status",
    description="Get the shape of a bonding curve for plotting and additional info",
)

curve_schedule_tag = Tag(
    name="Bonding Curve Schedule",
    description="Get the SOL cost of buying the real token reserves in fixed increments",
)

curve_presets_tag = Tag(
    name="Bonding Curve Presets",
    description="Named virtual reserve bundles",
)


def _params_from_query(query: CurveQuery) -> CurveParameters:
    return CurveParameters(
        virtual_sol_reserves=query.virtual_sol_reserves,
        virtual_token_reserves=query.virtual_token_reserves,
        real_token_reserves=query.real_token_reserves,
        token_increment=query.token_increment,
    )


@app.errorhandler(InvalidParameterError)
def handle_invalid_parameter(e: InvalidParameterError):
    logger.info("Rejected request parameters: %s", e)
    return jsonify({"error": str(e), "field": e.field}), 422


@app.errorhandler(DecimalException)
def handle_decimal_error(e: DecimalException):
    logger.info("Request values out of numeric range: %r", e)
    return jsonify({"error": "Values are outside the representable numeric range.", "field": None}), 422


@app.get("/curve/status", summary="Curve Status", tags=[curve_status_tag])
def status(query: CurveStatusQuery):
    """
    Return a representation of the curve which can be plotted visually by the caller.
    Prices are multiplied by 'display_scale' (settings default) for readability.
    """
    settings = get_settings()
    curve = ConstantProductBondingCurve(_params_from_query(query))
    sample_count = query.sample_count or settings.sample_count
    scale = query.display_scale or settings.price_display_scale

    points = curve.compute_price_curve(sample_count, query.max_tokens_cap)
    return jsonify({
        "summary": asdict(curve.summarize()),
        "display_scale": scale,
        "price_curve": [asdict(point.scaled(scale)) for point in points],
    })


@app.get("/curve/schedule", summary="Curve Increment Schedule", tags=[curve_schedule_tag])
def schedule(query: CurveQuery):
    """
    Return the cost of every 'token_increment' step until the real token reserves are sold.
    """
    curve = ConstantProductBondingCurve(_params_from_query(query))
    points = curve.compute_increment_schedule()
    return jsonify({
        "summary": asdict(curve.summarize(points)),
        "schedule": [asdict(point) for point in points],
    })


@app.get("/curve/presets", summary="Curve Presets", tags=[curve_presets_tag])
def presets():
    return jsonify([asdict(preset) for preset in CurveParameterHelper.list_presets()])


@app.get("/curve/presets/<name>", summary="Curve Preset Status", tags=[curve_presets_tag])
def preset_status(path: PresetPath):
    """
    Return the summary of the default curve with a preset applied.
    """
    try:
        preset = CurvePreset.from_str(path.name)
    except NotImplementedError as e:
        return jsonify({"error": str(e)}), 404

    params = CurveParameterHelper.apply_preset(CurveParameters(), preset)
    curve = ConstantProductBondingCurve(params)
    return jsonify({
        "preset": preset.value,
        "params": asdict(params),
        "summary": asdict(curve.summarize()),
    })


def run():
    settings = get_settings()
    setup_logging(settings.log_level)
    app.run(host=settings.api_host, port=settings.api_port, debug=settings.debug)


if __name__ == "__main__":
    run()
