"""Template directory validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from sdkgen.errors import TemplateValidationError
from sdkgen.gen_logging import get_logger
from sdkgen.templates import REQUIRED_TEMPLATES

logger = get_logger(__name__)


@dataclass(frozen=True)
class TemplateValidationResult:
    valid: bool
    missing_templates: List[str] = field(default_factory=list)


def validate_templates(template_dir, required: Iterable[str] = REQUIRED_TEMPLATES) -> TemplateValidationResult:
    """
    Check that every required template exists in *template_dir*.

    Args:
        template_dir: Directory holding the templates.
        required: Template file names to look for.

    Returns:
        TemplateValidationResult; a missing directory reports every template missing.
    """
    template_dir = Path(template_dir)
    required = list(required)
    if not template_dir.is_dir():
        logger.debug(f"[TEMPLATES] Template directory {template_dir} does not exist")
        return TemplateValidationResult(valid=False, missing_templates=required)

    missing = [name for name in required if not (template_dir / name).is_file()]
    return TemplateValidationResult(valid=not missing, missing_templates=missing)


def ensure_templates(template_dir, force: bool = False) -> TemplateValidationResult:
    """
    Validate *template_dir* and apply the generation policy.

    Raises:
        TemplateValidationError: templates are missing and *force* is False.
    """
    result = validate_templates(template_dir)
    if result.valid:
        logger.debug(f"[TEMPLATES] All {len(REQUIRED_TEMPLATES)} templates present in {template_dir}")
        return result
    if not force:
        raise TemplateValidationError(template_dir, result.missing_templates)
    logger.warning(
        f"[WARN] Missing templates in {template_dir}: {', '.join(result.missing_templates)}. "
        f"Continuing because --force was given."
    )
    return result
