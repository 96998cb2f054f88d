"""
Cue sheet parsing.

Lines are first classified into statements, then folded into BinFile/Track
structures. Only FILE, TRACK, INDEX, PREGAP and POSTGAP carry information
needed here; everything else (REM, CATALOG, CDTEXTFILE, TITLE, ...) is
ignored.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

from retrodisc.cue.blocksize import DEFAULT_BLOCKSIZE, lock_blocksize
from retrodisc.cue.errors import BinFilesMissingError, CueIntegrityError, CueStructureError
from retrodisc.cue.models import BinFile, CueSheet, Track, TrackIndex
from retrodisc.cue.timestamp import stamp_to_sectors

logger = logging.getLogger(__name__)

_FILE_RE = re.compile(
    r'^FILE\s+(?:"(?P<quoted>[^"]+)"|(?P<bare>.+?))\s+(?P<type>[A-Za-z0-9]+)$',
    re.IGNORECASE,
)
_TRACK_RE = re.compile(r'^TRACK\s+(?P<number>[0-9]+)\s+(?P<type>\S+)$', re.IGNORECASE)
_INDEX_RE = re.compile(r'^INDEX\s+(?P<id>[0-9]+)\s+(?P<stamp>\S+)$', re.IGNORECASE)
_GAP_RE = re.compile(r'^(?P<kind>PREGAP|POSTGAP)\s+(?P<stamp>\S+)$', re.IGNORECASE)


@dataclass(frozen=True)
class FileStatement:
    name: str
    file_type: str


@dataclass(frozen=True)
class TrackStatement:
    number: int
    track_type: str


@dataclass(frozen=True)
class IndexStatement:
    id: int
    stamp: str


@dataclass(frozen=True)
class GapStatement:
    kind: str   # 'PREGAP' or 'POSTGAP'
    stamp: str


@dataclass(frozen=True)
class IgnoredStatement:
    line: str


CueStatement = Union[FileStatement, TrackStatement, IndexStatement, GapStatement, IgnoredStatement]


def classify_line(line: str) -> CueStatement:
    """
    Classify one line of a cue sheet.

    Keywords are matched case-insensitively; track and file type tokens
    are normalized to upper case.

    Args:
        line: Raw line (surrounding whitespace is ignored)

    Returns:
        Statement describing the line
    """
    text = line.strip().lstrip('\ufeff')

    match = _FILE_RE.match(text)
    if match:
        name = match.group('quoted') or match.group('bare')
        return FileStatement(name=name, file_type=match.group('type').upper())

    match = _TRACK_RE.match(text)
    if match:
        return TrackStatement(
            number=int(match.group('number')),
            track_type=match.group('type').upper(),
        )

    match = _INDEX_RE.match(text)
    if match:
        return IndexStatement(id=int(match.group('id')), stamp=match.group('stamp'))

    match = _GAP_RE.match(text)
    if match:
        return GapStatement(kind=match.group('kind').upper(), stamp=match.group('stamp'))

    return IgnoredStatement(line=text)


@dataclass
class _ParseState:
    """Accumulator threaded through the statement fold."""
    blocksize: int
    files: List[BinFile] = field(default_factory=list)
    current_file: Optional[BinFile] = None
    current_track: Optional[Track] = None


def _apply_statement(
    state: _ParseState,
    statement: CueStatement,
    base_path: Optional[str]
) -> _ParseState:
    """Apply one statement to the parse state."""
    if isinstance(statement, FileStatement):
        path = os.path.join(base_path, statement.name) if base_path else statement.name
        state.current_file = BinFile(path=path, file_type=statement.file_type)
        state.current_track = None
        state.files.append(state.current_file)

    elif isinstance(statement, TrackStatement):
        if state.current_file is None:
            logger.debug(f"Dropping TRACK {statement.number:02d} declared before any FILE")
            return state
        state.current_track = Track(number=statement.number, track_type=statement.track_type)
        state.current_file.tracks.append(state.current_track)
        state.blocksize = lock_blocksize(state.blocksize, statement.track_type)

    elif isinstance(statement, IndexStatement):
        if state.current_track is None:
            logger.debug(f"Dropping INDEX {statement.id:02d} declared before any TRACK")
            return state
        state.current_track.indexes.append(
            TrackIndex(
                id=statement.id,
                stamp=statement.stamp,
                file_offset=stamp_to_sectors(statement.stamp),
            )
        )

    elif isinstance(statement, GapStatement):
        if state.current_track is None:
            logger.debug(f"Dropping {statement.kind} declared before any TRACK")
            return state
        # Validate the stamp even though gaps carry no file geometry
        stamp_to_sectors(statement.stamp)
        if statement.kind == 'PREGAP':
            state.current_track.pregap = statement.stamp
        else:
            state.current_track.postgap = statement.stamp

    return state


def backfill_sector_counts(bin_file: BinFile, blocksize: int) -> None:
    """
    Derive per-track sector counts for a single-file (split candidate) dump.

    Walks the tracks in reverse: the last track runs to the end of the
    file, every earlier track runs to the next track's first index.
    Leaves counts undefined when the file size is not known (0).

    Args:
        bin_file: The lone BinFile of a parse, with `size` populated
        blocksize: Locked sector size for the parse

    Raises:
        CueIntegrityError: If the size is not a whole number of sectors or
            a track would end before it starts
    """
    if bin_file.size <= 0:
        logger.debug(f"Size of {bin_file.filename} unknown, leaving sector counts undefined")
        return

    if bin_file.size % blocksize != 0:
        raise CueIntegrityError(
            f"Size of {bin_file.filename} ({bin_file.size} bytes) is not a multiple "
            f"of the {blocksize} byte sector size"
        )

    next_offset = bin_file.size // blocksize
    for track in reversed(bin_file.tracks):
        first_offset = track.first_offset
        if first_offset is None:
            logger.debug(f"Track {track.number:02d} has no INDEX, cannot derive its length")
            continue

        sectors = next_offset - first_offset
        if sectors < 0:
            raise CueIntegrityError(
                f"Track {track.number:02d} of {bin_file.filename} starts at sector "
                f"{first_offset}, beyond the next boundary at sector {next_offset}"
            )
        track.sectors = sectors
        next_offset = first_offset


def parse_cue_content(
    cue_text: str,
    base_path: Optional[str] = None,
    blocksize: int = DEFAULT_BLOCKSIZE,
    size_of: Optional[Callable[[str], int]] = None
) -> CueSheet:
    """
    Parse cue sheet text into file/track/index structures.

    Args:
        cue_text: Cue sheet content
        base_path: Directory prefixed to FILE names (None keeps names verbatim)
        blocksize: Starting sector size; a non-default value is already locked
        size_of: Optional callable returning the byte size of a bin file path

    Returns:
        CueSheet with parsed files and the locked blocksize

    Raises:
        CueStructureError: If no FILE statement could be parsed
        CueFormatError: If an INDEX/PREGAP/POSTGAP timestamp is malformed
        CueIntegrityError: If single-file geometry does not fit the file size
    """
    state = _ParseState(blocksize=blocksize)
    for line in (cue_text or '').splitlines():
        state = _apply_statement(state, classify_line(line), base_path)

    if not state.files:
        raise CueStructureError("Unable to parse any bin files in the cue sheet. Is it empty?")

    if size_of is not None:
        for bin_file in state.files:
            bin_file.size = size_of(bin_file.path)

    # Only one file: assume splitting, derive the length of each track
    if len(state.files) == 1:
        backfill_sector_counts(state.files[0], state.blocksize)

    for bin_file in state.files:
        logger.debug(
            f"Parsed {bin_file.filename}: {len(bin_file.tracks)} tracks, {bin_file.size} bytes"
        )

    return CueSheet(files=state.files, blocksize=state.blocksize)


def bin_file_size(path: str) -> int:
    """Size of a bin file on disk."""
    bin_path = Path(path)
    if not bin_path.is_file():
        raise BinFilesMissingError(f"Bin file not found or not readable: {bin_path}")
    return bin_path.stat().st_size


def read_cue_file(cue_path: Path, blocksize: int = DEFAULT_BLOCKSIZE) -> CueSheet:
    """
    Parse a cue file from disk, resolving bin files next to it.

    Args:
        cue_path: Path to the .cue file
        blocksize: Starting sector size

    Returns:
        CueSheet with file sizes populated from the filesystem

    Raises:
        BinFilesMissingError: If a referenced bin file does not exist
    """
    cue_path = Path(cue_path)
    logger.info(f"Parsing cue sheet: {cue_path.name}")
    with open(cue_path, 'r', encoding='utf-8', errors='ignore') as f:
        cue_text = f.read()

    return parse_cue_content(
        cue_text,
        base_path=str(cue_path.parent),
        blocksize=blocksize,
        size_of=bin_file_size,
    )
