import json
import keyword
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "client"

# --------------------------------------------------------------------------- #
# template map: {template -> relative output path inside the client package}   #
# --------------------------------------------------------------------------- #
TEMPLATES = {
    "__init__.py.jinja": "__init__.py",
    "models.py.jinja": "models.py",
    "client.py.jinja": "client.py",
    "errors.py.jinja": "errors.py",
}

# Shared macros imported by the file templates
PARTIALS = "partials.jinja"

REQUIRED_TEMPLATES = tuple(TEMPLATES) + (PARTIALS,)

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_IDENT = re.compile(r"[^0-9a-zA-Z]+")


def _snake_case(name: str) -> str:
    """Python attribute name for an API identifier ("petId" -> "pet_id")."""
    text = _WORD_BOUNDARY.sub("_", str(name))
    text = _NON_IDENT.sub("_", text).strip("_").lower()
    if not text:
        text = "value"
    if text[0].isdigit():
        text = f"_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


def _pascal_case(name: str) -> str:
    """Class name for an API identifier ("pet-status" -> "PetStatus")."""
    parts = [p for p in _NON_IDENT.split(_WORD_BOUNDARY.sub("_", str(name))) if p]
    text = "".join(p[:1].upper() + p[1:] for p in parts)
    if not text:
        return "Model"
    if text[0].isdigit():
        text = f"_{text}"
    return text


def _constant_case(value: str) -> str:
    """Enum member name for a literal value ("in-progress" -> "IN_PROGRESS")."""
    text = _NON_IDENT.sub("_", _WORD_BOUNDARY.sub("_", str(value))).strip("_").upper()
    if not text:
        return "EMPTY"
    if text[0].isdigit():
        text = f"V_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


def _quote(value) -> str:
    """Python string literal (always double-quoted)."""
    return json.dumps(str(value), ensure_ascii=False)


def _docstring(text) -> str:
    """Text safe to place between triple quotes."""
    text = str(text or "").strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text += " "
    return text


def make_environment(templates_dir=None) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir or DEFAULT_TEMPLATES_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["snake_case"] = _snake_case
    env.filters["pascal_case"] = _pascal_case
    env.filters["constant_case"] = _constant_case
    env.filters["quote"] = _quote
    env.filters["docstring"] = _docstring
    return env
