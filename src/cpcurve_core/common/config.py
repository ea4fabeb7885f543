"""
Runtime settings for the CLI and the web API, read from CPCURVE_* environment variables.
"""
from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cpcurve_core.common.constants import DEFAULT_SAMPLE_COUNT, PRICE_DISPLAY_SCALE


class CurveSettings(BaseSettings):
    """Application settings"""
    model_config = SettingsConfigDict(env_prefix="CPCURVE_", extra="ignore")

    log_level: str = Field(default="INFO", description="Logging level")
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=5000, ge=1, le=65535, description="API port")
    debug: bool = Field(default=False, description="Run the web API in debug mode")
    price_display_scale: Decimal = Field(
        default=PRICE_DISPLAY_SCALE, gt=0, description="Multiplier applied to prices for display"
    )
    sample_count: int = Field(default=DEFAULT_SAMPLE_COUNT, ge=1, description="Price curve samples")


@lru_cache()
def get_settings() -> CurveSettings:
    return CurveSettings()
