"""
Post-processing of generated client code.

Every ``*.py`` file under the output directory is read once, passed through
the registered transforms in order (each one sees the previous one's output),
written back if anything changed, and finally formatted with Black.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import black

from sdkgen.config import Settings, get_settings
from sdkgen.gen_logging import get_logger
from sdkgen.postprocess.edits import TextEdit, apply_edits
from sdkgen.postprocess.enums import (
    EnumCollapseTransform,
    EnumUnionTransform,
    LargeEnumTransform,
    TransformationRecord,
    ensure_import,
)

logger = get_logger(__name__)


class CodeTransform(Protocol):
    name: str

    def process(self, text: str, file_path=None) -> Optional[str]:
        ...


@dataclass
class PostProcessReport:
    files_scanned: int = 0
    files_changed: List[Path] = field(default_factory=list)
    files_formatted: List[Path] = field(default_factory=list)


def default_transforms(settings: Optional[Settings] = None) -> List[CodeTransform]:
    """The registered transforms, in application order."""
    settings = settings or get_settings()
    return [
        EnumUnionTransform.from_settings(settings),
        LargeEnumTransform.from_settings(settings),
    ]


def apply_transforms(text: str, file_path, transforms: Sequence[CodeTransform]) -> Optional[str]:
    """Run *transforms* over *text* in order; None when no transform changed it."""
    current = text
    changed = False
    for transform in transforms:
        result = transform.process(current, file_path)
        if result is not None and result != current:
            current = result
            changed = True
    return current if changed else None


def format_python_code(code: str) -> str:
    """Format generated Python code with Black."""
    return black.format_str(code, mode=black.Mode())


def format_generated_code(paths: Sequence[Path]) -> List[Path]:
    """Format *paths* in place; failures are logged and the file is left as is."""
    formatted = []
    for path in paths:
        try:
            source = path.read_text(encoding="utf-8")
            path.write_text(format_python_code(source), encoding="utf-8")
        except black.InvalidInput as exc:
            logger.warning(f"[WARN] Black could not parse {path}: {exc}")
            continue
        except OSError as exc:
            logger.warning(f"[WARN] Could not format {path}: {exc}")
            continue
        formatted.append(path)
    if formatted:
        logger.debug(f"[FORMAT] Formatted {len(formatted)} file(s)")
    return formatted


def post_process(input_dir, settings: Optional[Settings] = None,
                 transforms: Optional[Sequence[CodeTransform]] = None,
                 format_code: bool = True) -> PostProcessReport:
    """
    Apply the transform pipeline to every Python file under *input_dir*.

    Args:
        input_dir: Directory holding the generated sources.
        settings: Resolved settings (enum limit and collapse mode).
        transforms: Override the registered transforms.
        format_code: Run Black over the files that changed.

    Returns:
        PostProcessReport listing scanned, changed and formatted files.
    """
    input_dir = Path(input_dir)
    if transforms is None:
        transforms = default_transforms(settings)

    report = PostProcessReport()
    for path in sorted(input_dir.rglob("*.py")):
        report.files_scanned += 1
        text = path.read_text(encoding="utf-8")
        result = apply_transforms(text, path, transforms)
        if result is None:
            continue
        path.write_text(result, encoding="utf-8")
        report.files_changed.append(path)

    if format_code and report.files_changed:
        report.files_formatted = format_generated_code(report.files_changed)

    logger.info(
        f"[TRANSFORM] Post-processed {report.files_scanned} file(s), "
        f"{len(report.files_changed)} changed"
    )
    return report


__all__ = [
    "CodeTransform",
    "EnumCollapseTransform",
    "EnumUnionTransform",
    "LargeEnumTransform",
    "PostProcessReport",
    "TextEdit",
    "TransformationRecord",
    "apply_edits",
    "apply_transforms",
    "default_transforms",
    "ensure_import",
    "format_generated_code",
    "format_python_code",
    "post_process",
]
