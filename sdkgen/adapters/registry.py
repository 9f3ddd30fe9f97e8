"""
Adapter registry and selection.

The registry is an ordered, immutable list of adapters plus a default (the
newest adapter). Selection is:

1. the first adapter whose ``supports(version)`` is true;
2. otherwise, by fallback mode:
   - STRICT: raise UnsupportedVersionError
   - WARN:   log a warning and use the default adapter
   - AUTO:   use the default adapter silently
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from sdkgen.adapters.base import Adapter
from sdkgen.adapters.client import OpenAPI30ClientAdapter, Swagger2ClientAdapter
from sdkgen.config import FallbackMode, parse_fallback_mode
from sdkgen.errors import AdapterDetectionError, UnsupportedVersionError
from sdkgen.gen_logging import get_logger
from sdkgen.versioning import detect_version, split_version

logger = get_logger(__name__)


@dataclass(frozen=True)
class DetectionResult:
    version: str
    adapter: Adapter
    major_version: int
    minor_version: int
    dialect: str
    is_explicitly_supported: bool
    applied_fallback: Optional[FallbackMode] = None

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "dialect": self.dialect,
            "majorVersion": self.major_version,
            "minorVersion": self.minor_version,
            "adapter": self.adapter.name,
            "isExplicitlySupported": self.is_explicitly_supported,
            "fallbackApplied": self.applied_fallback.value if self.applied_fallback else None,
        }


def _fallback_warning(version: str, adapter: Adapter) -> str:
    major, _ = split_version(version)
    if major == 3:
        return (
            f"OpenAPI {version} is not explicitly supported; generating with {adapter.name}. "
            f"Newer 3.x features may be ignored."
        )
    if major >= 4:
        return (
            f"OpenAPI {version} is newer than any registered adapter; generating with "
            f"{adapter.name}. The output may be incomplete."
        )
    return f"Unrecognized description version \"{version}\"; generating with {adapter.name}."


class AdapterRegistry:
    """Ordered set of adapters with a default used for fallback."""

    def __init__(self, adapters: Iterable[Adapter], default: Optional[Adapter] = None):
        self.adapters = tuple(adapters)
        if not self.adapters:
            raise ValueError("AdapterRegistry needs at least one adapter")
        self.default = default if default is not None else self.adapters[-1]

    def __iter__(self):
        return iter(self.adapters)

    def __len__(self) -> int:
        return len(self.adapters)

    def find(self, version: str) -> Optional[Adapter]:
        """First adapter that explicitly supports *version*, if any."""
        for adapter in self.adapters:
            if adapter.supports(version):
                return adapter
        return None

    def select(self, version: str, mode: FallbackMode = FallbackMode.WARN,
               description_path: Optional[str] = None) -> Adapter:
        """
        Pick the adapter for *version*.

        Raises:
            UnsupportedVersionError: no adapter supports the version and mode is STRICT.
        """
        adapter = self.find(version)
        if adapter is not None:
            logger.debug(f"[ADAPTER] {adapter.name} supports version {version}")
            return adapter

        if mode == FallbackMode.STRICT:
            raise UnsupportedVersionError(version, description_path, mode)
        if mode == FallbackMode.WARN:
            logger.warning(f"[WARN] {_fallback_warning(version, self.default)}")
        else:
            logger.debug(f"[ADAPTER] Falling back to {self.default.name} for version {version}")
        return self.default


def default_registry(engine) -> AdapterRegistry:
    """The built-in adapters, oldest first; the newest is the default."""
    newest = OpenAPI30ClientAdapter(engine)
    return AdapterRegistry([Swagger2ClientAdapter(engine), newest], default=newest)


def detect_adapter(description_path, fallback_mode=None, settings=None,
                   registry: Optional[AdapterRegistry] = None, engine=None) -> DetectionResult:
    """
    Detect the description version and select an adapter for it.

    Args:
        description_path: Path to the API description.
        fallback_mode: Explicit mode; when None, taken from *settings*.
        settings: Resolved Settings (only read for the fallback mode).
        registry: Adapter registry; defaults to the built-in adapters.
        engine: Template engine for the default registry.

    Raises:
        DescriptionReadError: the description can't be read.
        AdapterDetectionError: selection failed (STRICT and unsupported).
    """
    if fallback_mode is None and settings is not None:
        fallback_mode = settings.OPENAPI_ADAPTER_FALLBACK
    mode = parse_fallback_mode(fallback_mode)
    if registry is None:
        registry = default_registry(engine)

    info = detect_version(description_path)
    try:
        adapter = registry.select(info.version, mode, str(description_path))
    except UnsupportedVersionError as exc:
        raise AdapterDetectionError(info.version, Path(description_path), mode, str(exc)) from exc

    explicit = adapter.supports(info.version)
    result = DetectionResult(
        version=info.version,
        adapter=adapter,
        major_version=info.major_version,
        minor_version=info.minor_version,
        dialect=info.dialect,
        is_explicitly_supported=explicit,
        applied_fallback=None if explicit else mode,
    )
    logger.info(
        f"[DETECT] OpenAPI {info.version} -> {adapter.name}"
        + ("" if explicit else f" (fallback: {mode.value})")
    )
    return result
