"""
Dialect upgrades across published description snapshots.

A description directory holds one file per published snapshot, named so that
sorting by name puts them in publication order (for example
``api-2024-01-15.json``). check_upgrade() compares the dialects of the two
newest snapshots; run_upgrade() regenerates the client from the newest one
when the dialect changed, or always with force=True.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from sdkgen.config import Settings
from sdkgen.errors import DescriptionReadError
from sdkgen.gen_logging import get_logger
from sdkgen.pipeline import CodegenPipeline, CodegenResult
from sdkgen.versioning import VersionInfo, detect_version

logger = get_logger(__name__)

DESCRIPTION_SUFFIXES = (".json", ".yaml", ".yml")


@dataclass
class UpgradeCheck:
    latest: Path
    latest_version: VersionInfo
    previous: Optional[Path] = None
    previous_version: Optional[VersionInfo] = None

    @property
    def needs_upgrade(self) -> bool:
        if self.previous_version is None:
            return False
        return self.previous_version.dialect != self.latest_version.dialect

    @property
    def direction(self) -> str:
        """One of "upgrade", "downgrade" or "change" (same major.minor)."""
        if self.previous_version is None:
            return "change"
        latest = (self.latest_version.major_version, self.latest_version.minor_version)
        previous = (self.previous_version.major_version, self.previous_version.minor_version)
        if latest > previous:
            return "upgrade"
        if latest < previous:
            return "downgrade"
        return "change"


def find_descriptions(description_dir) -> List[Path]:
    """Description snapshots in *description_dir*, newest first."""
    description_dir = Path(description_dir)
    if not description_dir.is_dir():
        raise DescriptionReadError(description_dir, "not a directory")
    files = [p for p in description_dir.iterdir() if p.is_file() and p.suffix in DESCRIPTION_SUFFIXES]
    return sorted(files, key=lambda p: p.name, reverse=True)


def check_upgrade(description_dir) -> UpgradeCheck:
    """
    Compare the dialects of the two newest snapshots.

    Raises:
        DescriptionReadError: no snapshots, or one of them can't be read.
    """
    files = find_descriptions(description_dir)
    if not files:
        raise DescriptionReadError(description_dir, "no API descriptions found")

    check = UpgradeCheck(latest=files[0], latest_version=detect_version(files[0]))
    logger.info(f"[UPGRADE] Latest: {check.latest.name} ({check.latest_version.dialect})")
    if len(files) == 1:
        logger.info("[UPGRADE] Only one description found, nothing to compare")
        return check

    check.previous = files[1]
    check.previous_version = detect_version(files[1])
    logger.info(f"[UPGRADE] Previous: {check.previous.name} ({check.previous_version.dialect})")
    if check.needs_upgrade:
        logger.warning(
            f"[WARN] Dialect {check.direction}: "
            f"{check.previous_version.version} -> {check.latest_version.version}"
        )
    else:
        logger.info("[UPGRADE] No dialect change detected")
    return check


def run_upgrade(description_dir, out_dir, force: bool = False, fallback_mode=None,
                templates_dir=None, settings: Optional[Settings] = None) -> Optional[CodegenResult]:
    """
    Regenerate the client from the newest snapshot if its dialect changed.

    Args:
        description_dir: Directory of description snapshots.
        out_dir: Output directory for the client package.
        force: Regenerate without a dialect change, and skip missing templates.
        fallback_mode: Overrides OPENAPI_ADAPTER_FALLBACK for this run.
        templates_dir: Template directory (default: built-in set).
        settings: Resolved settings.

    Returns:
        The generation result, or None when nothing needed regenerating.
    """
    check = check_upgrade(description_dir)
    if not check.needs_upgrade and not force:
        logger.info("[UPGRADE] No upgrade needed, pass --force to regenerate anyway")
        return None

    logger.info(f"[UPGRADE] Regenerating client for OpenAPI {check.latest_version.version}")
    with CodegenPipeline(settings=settings, templates_dir=templates_dir) as pipeline:
        return pipeline.run(check.latest, out_dir, force=force, fallback_mode=fallback_mode)
