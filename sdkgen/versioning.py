"""
Version and dialect detection for API description documents.

Lookup order:
1. explicit ``x-openapi-dialect`` extension (version = its ``major.minor`` part)
2. ``openapi`` field
3. legacy ``swagger`` field
4. nothing found -> version and dialect are both "unknown"
"""

import re
from dataclasses import dataclass

from sdkgen.description import DescriptionDocument, load_description
from sdkgen.gen_logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "unknown"
DIALECT_URL = "https://spec.openapis.org/dialect/{version}"

_DIALECT_VERSION_RE = re.compile(r"/([0-9]+\.[0-9]+)")
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class VersionInfo:
    version: str
    dialect: str
    major_version: int = 0
    minor_version: int = 0


def _leading_int(text: str) -> int:
    """Integer prefix of *text*, 0 when there is none."""
    match = _LEADING_INT_RE.match(text or "")
    return int(match.group(1)) if match else 0


def split_version(version: str):
    """Return ``(major, minor)`` for a version string; unparsable parts are 0."""
    parts = str(version).split(".")
    major = _leading_int(parts[0])
    minor = _leading_int(parts[1]) if len(parts) > 1 else 0
    return major, minor


def extract_version(document: DescriptionDocument) -> VersionInfo:
    """Derive a VersionInfo from a parsed description. Never raises."""
    dialect = document.dialect
    if dialect:
        dialect = str(dialect)
        match = _DIALECT_VERSION_RE.search(dialect)
        version = match.group(1) if match else UNKNOWN
    elif document.openapi:
        version = document.openapi
        dialect = DIALECT_URL.format(version=version)
    elif document.swagger:
        version = document.swagger
        dialect = DIALECT_URL.format(version=version)
    else:
        version = UNKNOWN
        dialect = UNKNOWN

    major, minor = split_version(version)
    return VersionInfo(
        version=version,
        dialect=dialect,
        major_version=major,
        minor_version=minor,
    )


def detect_version(description_path) -> VersionInfo:
    """
    Read a description file and detect its version.

    Raises:
        DescriptionReadError: the file can't be read or parsed.
    """
    document = load_description(description_path)
    info = extract_version(document)
    logger.debug(f"[DETECT] {description_path}: version={info.version} dialect={info.dialect}")
    return info
