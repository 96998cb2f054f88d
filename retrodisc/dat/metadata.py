"""
Identification metadata files.

A small JSON document stored next to a converted dump recording which
game it was identified as, how confidently, and when.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from retrodisc.dat.matcher import MatchStatus, MatchVerdict
from retrodisc.dat.models import Game

logger = logging.getLogger(__name__)

METADATA_FILENAME = "retrodisc.json"

VALID_STATUSES = {status.value for status in MatchStatus}


class MetadataError(Exception):
    """Metadata file validation errors."""
    pass


def game_to_dict(game: Game) -> Dict[str, Any]:
    """Serialize a game and its files."""
    data: Dict[str, Any] = {
        'name': game.name,
        'files': [],
    }
    for rom in game.roms:
        entry = {'name': rom.name, 'size': rom.size, 'sha1hex': rom.sha1hex}
        if rom.crc:
            entry['crc'] = rom.crc
        if rom.md5:
            entry['md5'] = rom.md5
        data['files'].append(entry)
    if game.description:
        data['description'] = game.description
    if game.category:
        data['category'] = game.category
    return data


def verdict_to_metadata(verdict: MatchVerdict) -> Dict[str, Any]:
    """Build a metadata document from a matcher verdict."""
    metadata: Dict[str, Any] = {
        'message': verdict.reason,
        'status': verdict.status.value,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
    if verdict.game is not None:
        metadata['game'] = game_to_dict(verdict.game)
    return metadata


def _validate(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Check structure and fill in defaults."""
    if not isinstance(metadata, dict):
        raise MetadataError("Metadata must be a JSON object")

    validated = dict(metadata)
    validated.setdefault('message', '')
    validated.setdefault('status', MatchStatus.NONE.value)
    validated.setdefault('timestamp', datetime.now(timezone.utc).isoformat())

    if validated['status'] not in VALID_STATUSES:
        raise MetadataError(
            f"status must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )

    game = validated.get('game')
    if game is not None:
        if not isinstance(game, dict) or not isinstance(game.get('name'), str):
            raise MetadataError("game.name is required")
        files = game.setdefault('files', [])
        for entry in files:
            for key, expected in (('name', str), ('size', int), ('sha1hex', str)):
                if not isinstance(entry.get(key), expected):
                    raise MetadataError(f"game.files entries require '{key}'")

    return validated


def write_metadata(metadata: Dict[str, Any], file_path: Path) -> None:
    """
    Validate and write a metadata document.

    Raises:
        MetadataError: If the document is invalid
    """
    validated = _validate(metadata)
    Path(file_path).write_text(json.dumps(validated, indent=2), encoding='utf-8')
    logger.debug(f"Wrote metadata: {file_path}")


def read_metadata(file_path: Path) -> Optional[Dict[str, Any]]:
    """
    Read a metadata document.

    Returns:
        Validated metadata, or None if the file does not exist

    Raises:
        MetadataError: If the file is not valid JSON or fails validation
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return None
    try:
        data = json.loads(file_path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise MetadataError(f"Invalid JSON in metadata file {file_path}: {e}")
    return _validate(data)
