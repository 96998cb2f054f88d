"""Track type definitions and sector size resolution."""

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BLOCKSIZE = 2352


class TrackType(Enum):
    """
    Track types that may appear in a cue sheet TRACK statement.

    Each member carries its cue token and the byte size of one sector.
    A disc does not mix sector sizes, so the first non-default size seen
    while parsing is locked in for the rest of the sheet.
    """
    AUDIO = ("AUDIO", 2352)             # Audio/Music
    CDG = ("CDG", 2448)                 # Karaoke CD+G
    MODE1_2048 = ("MODE1/2048", 2048)   # CD-ROM Mode1 data (cooked)
    MODE1_2352 = ("MODE1/2352", 2352)   # CD-ROM Mode1 data (raw)
    MODE2_2336 = ("MODE2/2336", 2336)   # CD-ROM XA Mode2 data
    MODE2_2352 = ("MODE2/2352", 2352)   # CD-ROM XA Mode2 data
    CDI_2336 = ("CDI/2336", 2336)       # CD-i Mode2 data
    CDI_2352 = ("CDI/2352", 2352)       # CD-i Mode2 data

    def __init__(self, token: str, blocksize: int):
        self.token = token
        self.blocksize = blocksize

    @classmethod
    def from_token(cls, token: str) -> Optional["TrackType"]:
        """
        Look up a track type by its cue token (case-sensitive).

        Returns:
            Matching TrackType, or None for unrecognized tokens
        """
        for member in cls:
            if member.token == token:
                return member
        return None


def resolve_blocksize(track_type: str) -> int:
    """
    Get the sector size for a track type token.

    Unknown tokens fall back to 2352 bytes, the common CD-ROM sector size,
    so hand-edited cue sheets with odd track types still process.

    Args:
        track_type: Track type token (e.g. 'MODE1/2352')

    Returns:
        Sector size in bytes
    """
    member = TrackType.from_token(track_type)
    if member is None:
        logger.debug(f"Unknown track type '{track_type}', assuming {DEFAULT_BLOCKSIZE} byte sectors")
        return DEFAULT_BLOCKSIZE
    return member.blocksize


def lock_blocksize(current: int, track_type: str) -> int:
    """
    Fold step for the blocksize lock.

    Args:
        current: Blocksize accumulated so far
        track_type: Track type token of the next TRACK statement

    Returns:
        `current` once it has left the default, otherwise the size for
        `track_type`
    """
    if current != DEFAULT_BLOCKSIZE:
        return current

    resolved = resolve_blocksize(track_type)
    if resolved != DEFAULT_BLOCKSIZE:
        logger.debug(f"Locked blocksize to {resolved}")
    return resolved
