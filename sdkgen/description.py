"""
Loading of API description documents (OpenAPI 3.x / Swagger 2.x).

A DescriptionDocument is read once and never mutated afterwards. The
processed checksum gives a stable fingerprint of the content the generator
actually consumed, independent of key order and whitespace in the file.
Publishers stamp it into the document as ``x-spec-checksum``; see
sdkgen.verification.
"""

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import yaml

from sdkgen.errors import DescriptionReadError, DescriptionWriteError

DIALECT_FIELD = "x-openapi-dialect"
RAW_CHECKSUM_FIELD = "x-spec-checksum"


@dataclass(frozen=True)
class DescriptionDocument:
    """A parsed API description."""
    path: Path
    data: Mapping[str, Any]

    @property
    def dialect(self) -> Optional[str]:
        return self.data.get(DIALECT_FIELD) or None

    @property
    def openapi(self) -> Optional[str]:
        value = self.data.get("openapi")
        return str(value) if value is not None else None

    @property
    def swagger(self) -> Optional[str]:
        value = self.data.get("swagger")
        return str(value) if value is not None else None

    @property
    def title(self) -> str:
        info = self.data.get("info") or {}
        return str(info.get("title") or "Generated API")

    def to_dict(self) -> dict:
        return dict(self.data)


def _parse_text(path: Path, content: str):
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(content)
    if path.suffix == ".json":
        return json.loads(content)
    # Unknown suffix: JSON first (cheap and strict), then YAML
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return yaml.safe_load(content)


def load_description(path) -> DescriptionDocument:
    """
    Load an API description from a YAML or JSON file.

    Raises:
        DescriptionReadError: file missing/unreadable, invalid syntax, or a
            top level that is not a mapping.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DescriptionReadError(path, str(exc)) from exc

    try:
        data = _parse_text(path, content)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DescriptionReadError(path, f"invalid document syntax ({exc})") from exc

    if not isinstance(data, dict):
        raise DescriptionReadError(path, "top-level value is not an object")

    return DescriptionDocument(path=path, data=MappingProxyType(data))


def processed_checksum(document: DescriptionDocument) -> str:
    """SHA-256 of the document re-serialized with sorted keys, without its checksum stamp."""
    data = {k: v for k, v in document.data.items() if k != RAW_CHECKSUM_FIELD}
    normalized = json.dumps(data, indent=2, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def raw_checksum(document: DescriptionDocument) -> str:
    """Checksum the publisher stamped into the document, or "" if none."""
    return str(document.data.get(RAW_CHECKSUM_FIELD) or "")


def save_description(path, data: Mapping[str, Any]) -> None:
    """
    Write *data* back to *path* in the file's own format.

    YAML files keep their key order; everything else is written as indented
    JSON.
    """
    path = Path(path)
    data = dict(data)
    if path.suffix in (".yaml", ".yml"):
        content = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        content = json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise DescriptionWriteError(path, str(exc)) from exc
