"""
Position-based text edits.

Edits are recorded against the original text and applied from the end of
the text towards the start, so applying one edit never shifts the offsets of
the edits still waiting to be applied.
"""

from dataclasses import dataclass
from typing import Iterable, List

from sdkgen.errors import EditConflictError


@dataclass(frozen=True)
class TextEdit:
    """Replace ``text[start:end]`` (which must equal *original*) with *replacement*."""
    start: int
    end: int
    replacement: str
    original: str = ""

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise EditConflictError(f"Invalid edit range {self.start}:{self.end}")


def sort_edits(edits: Iterable[TextEdit]) -> List[TextEdit]:
    """Edits in application order (descending start position)."""
    return sorted(edits, key=lambda e: (e.start, e.end), reverse=True)


def apply_edits(text: str, edits: Iterable[TextEdit]) -> str:
    """
    Apply *edits* to *text*.

    Edits must already be in descending order and must not overlap, and every
    range must still contain the text recorded when the edit was planned.

    Raises:
        EditConflictError: ordering, overlap or stale-range violation.
    """
    result = text
    previous = None
    for edit in edits:
        if previous is not None:
            if edit.start > previous.start:
                raise EditConflictError(
                    f"Edits out of order: {edit.start} applied after {previous.start}"
                )
            if edit.end > previous.start or (edit.start == previous.start and edit.end == previous.end):
                raise EditConflictError(
                    f"Overlapping edits at {edit.start}:{edit.end} and {previous.start}:{previous.end}"
                )
        if edit.end > len(text):
            raise EditConflictError(f"Edit {edit.start}:{edit.end} past end of text ({len(text)})")
        current = result[edit.start:edit.end]
        if current != edit.original:
            raise EditConflictError(
                f"Text at {edit.start}:{edit.end} is {current!r}, expected {edit.original!r}"
            )
        result = result[:edit.start] + edit.replacement + result[edit.end:]
        previous = edit
    return result
