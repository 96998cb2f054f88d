"""Conversion between sector counts and CD timestamps (MM:SS:FF)."""

import re

from retrodisc.cue.errors import CueFormatError

FRAMES_PER_SECOND = 75
SECONDS_PER_MINUTE = 60
SECTORS_PER_MINUTE = FRAMES_PER_SECOND * SECONDS_PER_MINUTE  # 4500

_STAMP_PATTERN = re.compile(r'([0-9]{1,2}):([0-9]{1,2}):([0-9]{1,2})')


def sectors_to_stamp(sectors: int) -> str:
    """
    Convert a sector count to a cue timestamp.

    One sector is one frame; 75 frames make a second. Minutes are not
    capped, so very long streams render with three or more digits.

    Args:
        sectors: Non-negative sector count

    Returns:
        Timestamp string in MM:SS:FF form

    Raises:
        CueFormatError: If sectors is negative

    Example:
        >>> sectors_to_stamp(4575)
        '01:01:00'
    """
    if sectors < 0:
        raise CueFormatError(f"Cannot express negative sector count as timestamp: {sectors}")

    minutes = sectors // SECTORS_PER_MINUTE
    seconds = (sectors // FRAMES_PER_SECOND) % SECONDS_PER_MINUTE
    frames = sectors % FRAMES_PER_SECOND
    return f"{minutes:02d}:{seconds:02d}:{frames:02d}"


def stamp_to_sectors(stamp: str) -> int:
    """
    Convert a cue timestamp to a sector count.

    Args:
        stamp: Timestamp in MM:SS:FF form (one or two digits per field)

    Returns:
        Sector count

    Raises:
        CueFormatError: If stamp does not match the MM:SS:FF pattern
    """
    match = _STAMP_PATTERN.fullmatch(stamp) if isinstance(stamp, str) else None
    if not match:
        raise CueFormatError(f"Invalid timestamp format: {stamp!r}")

    minutes, seconds, frames = (int(group) for group in match.groups())
    return minutes * SECTORS_PER_MINUTE + seconds * FRAMES_PER_SECOND + frames
