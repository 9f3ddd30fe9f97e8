"""
Main entry point for sdkgen code generation.

This module orchestrates one generation run:

    detect version -> select adapter -> validate templates
        -> render client package -> post-process (enum collapse + Black)

A CodegenPipeline owns the template cache and performance monitor for the
duration of a run; close() waits for outstanding performance reports and
stops the reporting worker.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from sdkgen.adapters.base import GeneratorOptions
from sdkgen.adapters.registry import AdapterRegistry, DetectionResult, default_registry, detect_adapter
from sdkgen.config import Settings, get_settings, parse_fallback_mode
from sdkgen.description import load_description, processed_checksum, raw_checksum
from sdkgen.gen_logging import get_logger
from sdkgen.postprocess import PostProcessReport, format_generated_code, post_process
from sdkgen.rendering import JinjaEngine, PerformanceMonitor, TemplateCache, enhance
from sdkgen.templates import DEFAULT_TEMPLATES_DIR
from sdkgen.validation.templates import ensure_templates

logger = get_logger(__name__)


@dataclass
class CodegenResult:
    detection: DetectionResult
    out_dir: Path
    files: List[Path] = field(default_factory=list)
    postprocess: Optional[PostProcessReport] = None
    processed_checksum: str = ""
    raw_checksum: str = ""


class CodegenPipeline:
    """Holds the per-run template cache, monitor and adapter registry."""

    def __init__(self, settings: Optional[Settings] = None, templates_dir=None,
                 registry: Optional[AdapterRegistry] = None):
        self.settings = settings or get_settings()
        self.templates_dir = Path(templates_dir or DEFAULT_TEMPLATES_DIR)
        self.cache = TemplateCache()
        self.monitor = PerformanceMonitor.from_settings(self.settings)
        self.engine = enhance(JinjaEngine(self.templates_dir), self.cache, self.monitor)
        self.registry = registry or default_registry(self.engine)

    def __enter__(self) -> "CodegenPipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def detect(self, description_path, fallback_mode=None) -> DetectionResult:
        mode = parse_fallback_mode(fallback_mode) if fallback_mode is not None \
            else self.settings.OPENAPI_ADAPTER_FALLBACK
        return detect_adapter(description_path, mode, registry=self.registry)

    def run(self, description_path, out_dir, force: bool = False, fallback_mode=None,
            format_code: bool = True, options: Optional[GeneratorOptions] = None) -> CodegenResult:
        """
        Generate and post-process a client package.

        Args:
            description_path: API description (JSON or YAML).
            out_dir: Output directory for the client package.
            force: Generate even if templates are missing.
            fallback_mode: Overrides OPENAPI_ADAPTER_FALLBACK for this run.
            format_code: Format the generated files with Black.
            options: Generator options; templates/force are filled in from this run.

        Raises:
            DescriptionReadError, AdapterDetectionError, TemplateValidationError
        """
        logger.info(f"[DETECT] Reading {description_path}")
        detection = self.detect(description_path, fallback_mode)

        ensure_templates(self.templates_dir, force=force)

        document = load_description(description_path)
        checksum = processed_checksum(document)
        published = raw_checksum(document)
        logger.info(f"[CHECKSUM] processed={checksum}")
        if published:
            logger.info(f"[CHECKSUM] raw={published}")
            if published != checksum:
                logger.warning(
                    f"[WARN] {description_path}: stored checksum does not match its content, "
                    f"run `sdkgen verify` to check it"
                )

        options = options or GeneratorOptions()
        options.templates = self.templates_dir
        options.force = force

        out_dir = Path(out_dir)
        logger.info(f"[ADAPTER] Generating client with {detection.adapter.name}")
        files = detection.adapter.generate(description_path, out_dir, options) or []

        report = post_process(out_dir, settings=self.settings, format_code=False)
        if format_code:
            format_generated_code(sorted(out_dir.rglob("*.py")))

        logger.info(
            f"[GENERATED] {len(files)} file(s) in {out_dir} "
            f"(template cache: {self.cache.hits} hits, {self.cache.misses} misses)"
        )
        return CodegenResult(
            detection=detection,
            out_dir=out_dir,
            files=list(files),
            postprocess=report,
            processed_checksum=checksum,
            raw_checksum=published,
        )

    def clear(self) -> None:
        """Drop compiled templates and loaded baselines."""
        self.cache.clear()
        self.monitor.clear()

    def close(self) -> None:
        self.monitor.close()


def run_codegen(description_path, out_dir, templates_dir=None, force: bool = False, fallback_mode=None,
                format_code: bool = True, settings: Optional[Settings] = None) -> CodegenResult:
    """Run the full pipeline once (see CodegenPipeline.run)."""
    with CodegenPipeline(settings=settings, templates_dir=templates_dir) as pipeline:
        return pipeline.run(
            description_path,
            out_dir,
            force=force,
            fallback_mode=fallback_mode,
            format_code=format_code,
        )


def run_prebuild(description_path) -> bool:
    """
    Check whether an adapter explicitly supports the description's version.

    Fallback is never applied: an unsupported version returns False.
    """
    detection = detect_adapter(description_path, "auto", registry=default_registry(None))
    if detection.is_explicitly_supported:
        logger.info(f"[DETECT] OpenAPI {detection.version} supported by {detection.adapter.name}")
    else:
        logger.warning(f"[WARN] OpenAPI {detection.version} is not explicitly supported by any adapter")
    return detection.is_explicitly_supported
