from sdkgen.adapters.base import Adapter, FallbackMode, GeneratorOptions, TemplateAdapter
from sdkgen.adapters.client import OpenAPI30ClientAdapter, Swagger2ClientAdapter
from sdkgen.adapters.registry import AdapterRegistry, DetectionResult, default_registry, detect_adapter

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "DetectionResult",
    "FallbackMode",
    "GeneratorOptions",
    "OpenAPI30ClientAdapter",
    "Swagger2ClientAdapter",
    "TemplateAdapter",
    "default_registry",
    "detect_adapter",
]
