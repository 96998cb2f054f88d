"""
Rename identified dump folders after the game they matched.

Works from the metadata file written by `identify --write-metadata`.
Folders without one, or whose verdict found no game, are left alone. The
metadata file lives inside the folder, so it moves with it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from retrodisc.dat.matcher import MatchStatus
from retrodisc.dat.metadata import METADATA_FILENAME, MetadataError, read_metadata

logger = logging.getLogger(__name__)

RENAMED = "ok"
PLANNED = "planned"
SKIPPED = "skipped"


@dataclass
class RenamePlan:
    """Where a dump folder should go, or why it stays put."""
    source: Path
    target: Optional[Path]      # None when the folder is not renamed
    reason: str


def _check_folder_name(name: str) -> None:
    if not name.strip() or name in ('.', '..') or '/' in name or '\\' in name:
        raise MetadataError(f"Game name cannot be used as a folder name: {name!r}")


def plan_rename(folder: Path) -> RenamePlan:
    """
    Work out the new name of a dump folder from its metadata.

    Args:
        folder: Dump folder holding a metadata file

    Returns:
        RenamePlan; `target` is None when the folder should be skipped

    Raises:
        FileNotFoundError: If the folder does not exist
        MetadataError: If the metadata file is invalid
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise FileNotFoundError(f"Dump folder does not exist: {folder}")

    metadata = read_metadata(folder / METADATA_FILENAME)
    if metadata is None:
        return RenamePlan(
            folder, None, f"no {METADATA_FILENAME} found, run identify --write-metadata first"
        )

    game = metadata.get('game')
    if metadata['status'] == MatchStatus.NONE.value or not game:
        return RenamePlan(folder, None, f"no game match in metadata (status: {metadata['status']})")

    name = game['name']
    _check_folder_name(name)
    target = folder.parent / name
    if target == folder:
        return RenamePlan(folder, None, "already named after its game")
    if target.exists():
        return RenamePlan(folder, None, f"target {name} already exists")

    return RenamePlan(folder, target, f"{folder.name} -> {name}")


def rename_dump(folder: Path, dry_run: bool = False) -> Tuple[str, str]:
    """
    Rename one dump folder after its matched game.

    Args:
        folder: Dump folder holding a metadata file
        dry_run: Report the rename without touching the filesystem

    Returns:
        (status, detail) with status 'ok', 'planned' or 'skipped'
    """
    plan = plan_rename(folder)
    if plan.target is None:
        logger.info(f"Skipping {plan.source.name}: {plan.reason}")
        return SKIPPED, plan.reason

    if dry_run:
        logger.info(f"Would rename {plan.reason}")
        return PLANNED, plan.reason

    plan.source.rename(plan.target)
    logger.info(f"Renamed {plan.reason}")
    return RENAMED, plan.reason
