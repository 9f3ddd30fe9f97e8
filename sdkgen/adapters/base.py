"""
Adapter contract for client generators.

An adapter turns one family of API description versions into a client
package. Concrete adapters are template driven: they build a ClientContext
from the description and render every template in TEMPLATES through the
CachedTemplateEngine handed to them at construction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import TemplateNotFound

from sdkgen.adapters.context import build_client_context
from sdkgen.config import FallbackMode
from sdkgen.description import DescriptionDocument, load_description, processed_checksum
from sdkgen.errors import TemplateValidationError
from sdkgen.gen_logging import get_logger
from sdkgen.templates import DEFAULT_TEMPLATES_DIR, TEMPLATES

logger = get_logger(__name__)

__all__ = ["Adapter", "FallbackMode", "GeneratorOptions", "TemplateAdapter"]


@dataclass
class GeneratorOptions:
    """Options passed through to an adapter's generate()."""
    use_options: bool = True
    use_union_types: bool = True
    templates: Optional[Path] = None
    force: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)


class Adapter(ABC):
    """A client generator for a set of description versions."""

    name: str = "adapter"

    @abstractmethod
    def supports(self, version: str) -> bool:
        """True when this adapter explicitly handles *version*."""

    @abstractmethod
    def generate(self, description_path, out_dir, options: GeneratorOptions) -> None:
        """Write the client package for *description_path* into *out_dir*."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class TemplateAdapter(Adapter):
    """Adapter that renders the client template set with a template engine."""

    # Path to the schema map inside the description ("components", "schemas")
    schema_root: Tuple[str, ...] = ()
    version_prefixes: Tuple[str, ...] = ()

    def __init__(self, engine):
        self.engine = engine

    def supports(self, version: str) -> bool:
        version = str(version)
        return any(version == p or version.startswith(f"{p}.") for p in self.version_prefixes)

    def base_url(self, document: DescriptionDocument) -> str:
        return ""

    def generate(self, description_path, out_dir, options: GeneratorOptions) -> List[Path]:
        """
        Render the client package.

        Args:
            description_path: The API description (JSON or YAML).
            out_dir: Target directory; created if missing.
            options: Generator options; ``options.force`` skips missing templates.

        Returns:
            The files written, in template order.
        """
        document = load_description(description_path)
        version = document.openapi or document.swagger or "unknown"
        context = build_client_context(
            document,
            self.schema_root,
            base_url=self.base_url(document),
            description_version=version,
            checksum=processed_checksum(document),
            options=options,
        ).as_dict()

        templates_dir = Path(options.templates or DEFAULT_TEMPLATES_DIR)
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for template_name, output_name in TEMPLATES.items():
            template_path = templates_dir / template_name
            if not template_path.exists():
                if options.force:
                    logger.warning(f"[WARN] Template {template_name} missing, skipping {output_name}")
                    continue
                raise TemplateValidationError(templates_dir, [template_name])

            try:
                code = self.engine.render_file(template_path, context)
            except TemplateNotFound as exc:
                if not options.force:
                    raise
                logger.warning(f"[WARN] {template_name} needs missing template {exc.name}, skipping {output_name}")
                continue
            output_path = out_dir / output_name
            output_path.write_text(code, encoding="utf-8")
            written.append(output_path)
            logger.debug(f"[GENERATED] {output_path}")

        logger.info(f"[ADAPTER] {self.name}: wrote {len(written)} files to {out_dir}")
        return written
