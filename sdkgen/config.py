"""
Pipeline configuration.

All recognized options are read from the environment (and an optional .env
file) once, when a run starts, and the resulting Settings object is passed to
every component that needs it. Unrecognized values never abort a run: they are
replaced by the default and a warning is logged.
"""

from enum import Enum
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sdkgen.gen_logging import get_logger

logger = get_logger(__name__)

DEFAULT_ENUM_LIMIT = 45
BASELINE_FILENAME = "codegen_perf.json"

_TRUTHY = ("1", "true", "yes", "on")


class FallbackMode(str, Enum):
    """Policy applied when no adapter explicitly supports the detected version."""

    STRICT = "strict"
    WARN = "warn"
    AUTO = "auto"


class CollapseMode(str, Enum):
    """Target shape for collapsed enum declarations."""

    AUTO = "auto"
    BRANDED = "branded"
    UNION = "union"


def parse_fallback_mode(value) -> FallbackMode:
    """
    Resolve a fallback mode from a config or CLI value.

    Unset values resolve to WARN; unrecognized ones to AUTO (with a warning).
    """
    if isinstance(value, FallbackMode):
        return value
    if value is None or str(value).strip() == "":
        return FallbackMode.WARN
    text = str(value).strip().lower()
    for mode in FallbackMode:
        if mode.value == text:
            return mode
    logger.warning(f"[CONFIG] Invalid OPENAPI_ADAPTER_FALLBACK value: \"{value}\". Using \"auto\" instead.")
    return FallbackMode.AUTO


class Settings(BaseSettings):
    CODEGEN_ENUM_LIMIT: int = DEFAULT_ENUM_LIMIT
    CODEGEN_ENUM_UNIONS: CollapseMode = CollapseMode.AUTO
    OPENAPI_ADAPTER_FALLBACK: FallbackMode = FallbackMode.WARN
    CODEGEN_PERF_IGNORE: bool = False
    CODEGEN_CACHE_DIR: str = ".cache"

    # Set by GitHub Actions runners; switches regression notices to workflow commands
    GITHUB_ACTIONS: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("CODEGEN_ENUM_LIMIT", mode="before")
    @classmethod
    def _coerce_enum_limit(cls, value):
        try:
            limit = int(str(value).strip())
        except (TypeError, ValueError):
            limit = 0
        if limit < 1:
            logger.warning(
                f"[CONFIG] Invalid CODEGEN_ENUM_LIMIT value: \"{value}\". Using {DEFAULT_ENUM_LIMIT} instead."
            )
            return DEFAULT_ENUM_LIMIT
        return limit

    @field_validator("CODEGEN_ENUM_UNIONS", mode="before")
    @classmethod
    def _coerce_enum_unions(cls, value):
        if isinstance(value, CollapseMode):
            return value
        text = str(value).strip().lower() if value is not None else ""
        for mode in CollapseMode:
            if mode.value == text:
                return mode
        logger.warning(f"[CONFIG] Invalid CODEGEN_ENUM_UNIONS value: \"{value}\". Using \"auto\" instead.")
        return CollapseMode.AUTO

    @field_validator("OPENAPI_ADAPTER_FALLBACK", mode="before")
    @classmethod
    def _coerce_fallback(cls, value):
        return parse_fallback_mode(value)

    @field_validator("CODEGEN_PERF_IGNORE", "GITHUB_ACTIONS", mode="before")
    @classmethod
    def _coerce_flag(cls, value):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUTHY

    @property
    def baseline_path(self) -> Path:
        """Location of the persisted render-time baselines."""
        return Path(self.CODEGEN_CACHE_DIR) / BASELINE_FILENAME


def get_settings(**overrides) -> Settings:
    """Resolve the configuration for one pipeline run."""
    return Settings(**overrides)
