"""
Template engines used by the generator adapters.

Any object with ``parse(source)`` and ``render(source, context, compiled=None)``
can serve as an engine. ``enhance()`` wraps one in a CachedTemplateEngine that
exposes the same contract, compiles each distinct template text once, and
reports render latency to a PerformanceMonitor.
"""

import time
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from jinja2 import Environment

from sdkgen.gen_logging import get_logger
from sdkgen.rendering.cache import TemplateCache
from sdkgen.rendering.perf import PerformanceMonitor

logger = get_logger(__name__)


class TemplateEngine(Protocol):
    def parse(self, source: str) -> Any:
        ...

    def render(self, source: str, context: Mapping[str, Any], compiled: Any = None) -> str:
        ...


class JinjaEngine:
    """TemplateEngine over a jinja2 Environment."""

    def __init__(self, templates_dir=None, environment: Optional[Environment] = None):
        if environment is None:
            from sdkgen.templates import make_environment
            environment = make_environment(templates_dir)
        self.environment = environment

    def parse(self, source: str):
        return self.environment.from_string(source)

    def render(self, source: str, context: Mapping[str, Any], compiled=None) -> str:
        template = compiled if compiled is not None else self.parse(source)
        return template.render(**context)


class CachedTemplateEngine:
    """Decorates a TemplateEngine with compile caching and render timing."""

    def __init__(self, engine, cache: TemplateCache, monitor: Optional[PerformanceMonitor] = None):
        self.engine = engine
        self.cache = cache
        self.monitor = monitor

    def parse(self, source: str):
        return self.cache.get_or_compile(source, self.engine.parse)

    def render(self, source: str, context: Mapping[str, Any], compiled=None) -> str:
        start = time.perf_counter()
        if compiled is None:
            compiled = self.cache.get_or_compile(source, self.engine.parse)
        result = self.engine.render(source, context, compiled=compiled)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        if self.monitor is not None:
            self.monitor.record(source, elapsed_ms)
        return result

    def render_file(self, path, context: Mapping[str, Any]) -> str:
        """Render the template stored at *path* (cached by its text)."""
        source = Path(path).read_text(encoding="utf-8")
        return self.render(source, context)


def enhance(engine, cache: Optional[TemplateCache] = None,
            monitor: Optional[PerformanceMonitor] = None) -> CachedTemplateEngine:
    """Wrap *engine* so renders go through *cache* and are timed by *monitor*."""
    if isinstance(engine, CachedTemplateEngine):
        return engine
    wrapped = CachedTemplateEngine(engine, cache if cache is not None else TemplateCache(), monitor)
    logger.debug("[TEMPLATES] Template compile caching enabled")
    return wrapped
