"""
Render-time regression tracking for templates.

Every render is timed by the caching engine wrapper and handed to a
PerformanceMonitor. Reports run on a single background worker so the render
call never waits for file I/O, and that worker is the only writer of the
baseline file.

Baseline file layout::

    {"templates": {"<template key>": 1.23, ...}, "lastUpdated": "<ISO 8601>"}

The first time a key is seen its latency becomes the baseline and is saved
immediately. Later renders are only compared against it (a notice is emitted
above 2x); the stored baseline is never rewritten.

Keys are the template text truncated to 47 characters plus "..." once the text
exceeds 50 characters, so long templates sharing a prefix share a baseline.
"""

import json
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import click

from sdkgen.gen_logging import get_logger

logger = get_logger(__name__)

KEY_MAX_LENGTH = 50
KEY_PREFIX_LENGTH = 47
REGRESSION_FACTOR = 2


def baseline_key(source: str) -> str:
    """Performance-tracking key for a template's source text."""
    if len(source) > KEY_MAX_LENGTH:
        return f"{source[:KEY_PREFIX_LENGTH]}..."
    return source


def _empty_baselines() -> dict:
    return {"templates": {}, "lastUpdated": datetime.now(timezone.utc).isoformat()}


def _log_report_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error(f"[PERF] Failed to report render time: {exc}")


class PerformanceMonitor:
    """Compares render latencies against persisted first-seen baselines."""

    def __init__(self, baseline_path, enabled: bool = True, ci: bool = False):
        self.baseline_path = Path(baseline_path)
        self.enabled = enabled
        self.ci = ci
        self._baselines: Optional[dict] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings) -> "PerformanceMonitor":
        return cls(
            settings.baseline_path,
            enabled=not settings.CODEGEN_PERF_IGNORE,
            ci=settings.GITHUB_ACTIONS,
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def record(self, source: str, elapsed_ms: float) -> Optional[Future]:
        """Queue a latency observation; returns immediately."""
        if not self.enabled:
            return None
        key = baseline_key(source)
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sdkgen-perf")
            future = self._executor.submit(self._report, key, elapsed_ms)
            self._pending.append(future)
        future.add_done_callback(_log_report_failure)
        return future

    def flush(self) -> None:
        """Block until every queued report has been processed."""
        with self._lock:
            pending, self._pending = self._pending, []
        for future in pending:
            # Failures are already logged by the done callback
            future.exception()

    def baseline_for(self, source: str) -> Optional[float]:
        """Stored baseline (ms) for *source*'s key, if any."""
        self.flush()
        return self._load()["templates"].get(baseline_key(source))

    def baselines(self) -> Dict[str, float]:
        self.flush()
        return dict(self._load()["templates"])

    def clear(self) -> None:
        """Forget loaded baselines; the next report re-reads the file."""
        self.flush()
        self._baselines = None

    def reload(self) -> Dict[str, float]:
        """Re-read the baseline file now."""
        self.clear()
        return dict(self._load()["templates"])

    def close(self) -> None:
        self.flush()
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    # ------------------------------------------------------------------ #
    # Worker side
    # ------------------------------------------------------------------ #

    def _report(self, key: str, elapsed_ms: float) -> None:
        baselines = self._load()
        templates = baselines["templates"]

        if key in templates:
            baseline = templates[key]
            if elapsed_ms > baseline * REGRESSION_FACTOR:
                message = (
                    f"Template rendering exceeds {REGRESSION_FACTOR}x baseline: "
                    f"{elapsed_ms:.2f}ms vs {baseline:.2f}ms baseline (template \"{key}\")"
                )
                self._notify(message)
            return

        templates[key] = elapsed_ms
        baselines["lastUpdated"] = datetime.now(timezone.utc).isoformat()
        logger.debug(f"[PERF] New baseline {elapsed_ms:.2f}ms for \"{key}\"")
        self._save(baselines)

    def _notify(self, message: str) -> None:
        if self.ci:
            # GitHub Actions workflow command, picked up as a job annotation
            click.echo(f"::notice::{message}")
        else:
            logger.warning(f"[PERF] {message}")

    def _load(self) -> dict:
        if self._baselines is not None:
            return self._baselines

        baselines = _empty_baselines()
        if self.baseline_path.exists():
            try:
                data = json.loads(self.baseline_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning(f"[PERF] Failed to read performance cache: {exc}")
            else:
                if isinstance(data, dict) and isinstance(data.get("templates"), dict):
                    baselines["templates"] = {
                        k: float(v) for k, v in data["templates"].items() if isinstance(v, (int, float))
                    }
                    baselines["lastUpdated"] = data.get("lastUpdated", baselines["lastUpdated"])
                else:
                    logger.warning(f"[PERF] Ignoring malformed performance cache {self.baseline_path}")

        self._baselines = baselines
        return baselines

    def _save(self, baselines: dict) -> None:
        try:
            self.baseline_path.parent.mkdir(parents=True, exist_ok=True)
            self.baseline_path.write_text(json.dumps(baselines, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning(f"[PERF] Failed to save performance cache: {exc}")
