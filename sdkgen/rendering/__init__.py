"""Template rendering: compile cache, render-time baselines, engine wrappers."""

from .cache import TemplateCache
from .engine import CachedTemplateEngine, JinjaEngine, TemplateEngine, enhance
from .perf import PerformanceMonitor, baseline_key

__all__ = [
    "TemplateCache",
    "CachedTemplateEngine",
    "JinjaEngine",
    "TemplateEngine",
    "enhance",
    "PerformanceMonitor",
    "baseline_key",
]
