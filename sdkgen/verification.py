"""
Drift detection for API description documents.

A description carries the checksum it was published with under
``x-spec-checksum``. verify_description() recomputes the processed checksum
and compares the two:

    stamp missing   -> nothing to verify (matches is None)
    stamp matches   -> passed
    stamp differs   -> ChecksumMismatchError, unless fail_on_mismatch=False

With update=True a stale or missing stamp is rewritten in place instead of
failing. The stamp itself is excluded from the checksum, so restamping is
stable.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sdkgen.description import (
    RAW_CHECKSUM_FIELD,
    load_description,
    processed_checksum,
    raw_checksum,
    save_description,
)
from sdkgen.errors import ChecksumMismatchError
from sdkgen.gen_logging import get_logger

logger = get_logger(__name__)


@dataclass
class VerificationResult:
    path: Path
    stored: str
    current: str
    updated: bool = False

    @property
    def matches(self) -> Optional[bool]:
        """None when the description carries no checksum."""
        if not self.stored:
            return None
        return self.stored == self.current

    @property
    def drifted(self) -> bool:
        return self.matches is False


def verify_description(description_path, fail_on_mismatch: bool = True, update: bool = False) -> VerificationResult:
    """
    Compare a description's stored checksum with its current content.

    Args:
        description_path: API description (JSON or YAML).
        fail_on_mismatch: Raise when the stored checksum is stale.
        update: Rewrite a stale or missing checksum instead of failing.

    Raises:
        DescriptionReadError: the description can't be read.
        DescriptionWriteError: update=True and the file can't be rewritten.
        ChecksumMismatchError: the checksum is stale, fail_on_mismatch is set
            and update is not.
    """
    document = load_description(description_path)
    result = VerificationResult(
        path=document.path,
        stored=raw_checksum(document),
        current=processed_checksum(document),
    )

    if result.matches:
        logger.info(f"[CHECKSUM] {result.path}: checksum verified")
        return result

    if result.matches is None:
        logger.warning(f"[WARN] {result.path} has no {RAW_CHECKSUM_FIELD}, cannot verify it")
    else:
        logger.warning(
            f"[WARN] {result.path}: checksum mismatch (stored {result.stored}, current {result.current})"
        )

    if update:
        data = document.to_dict()
        data[RAW_CHECKSUM_FIELD] = result.current
        save_description(result.path, data)
        result.updated = True
        logger.info(f"[CHECKSUM] {result.path}: stamped {result.current}")
    elif result.drifted and fail_on_mismatch:
        raise ChecksumMismatchError(result.path, result.stored, result.current)

    return result
