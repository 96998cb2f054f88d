"""Cue sheet generation for merged and split layouts."""

import logging
from typing import List, Sequence

from retrodisc.cue.models import BinFile, Track
from retrodisc.cue.timestamp import sectors_to_stamp

logger = logging.getLogger(__name__)

# Every command chdman writes in its own cue sheets. Nothing else is emitted.
CHDMAN_SUPPORTED_COMMANDS = frozenset({'FILE', 'TRACK', 'PREGAP', 'INDEX', 'POSTGAP'})


def track_filename(prefix: str, track_number: int, track_count: int) -> str:
    """
    Build a track filename following the Redump naming convention.

    - Exactly one track: "Game.bin"
    - Fewer than 10 tracks: "Game (Track 1).bin"
    - 10 or more tracks: "Game (Track 01).bin"

    Args:
        prefix: Filename prefix (never a path)
        track_number: Track number
        track_count: Number of tracks on the disc

    Returns:
        Track filename
    """
    if track_count == 1:
        return f"{prefix}.bin"
    if track_count > 9:
        return f"{prefix} (Track {track_number:02d}).bin"
    return f"{prefix} (Track {track_number}).bin"


def _track_lines(track: Track, shift: int) -> List[str]:
    """Render TRACK, PREGAP, INDEX and POSTGAP lines for one track."""
    lines = [f"  TRACK {track.number:02d} {track.track_type}"]
    if track.pregap:
        lines.append(f"    PREGAP {track.pregap}")
    for index in track.indexes:
        lines.append(f"    INDEX {index.id:02d} {sectors_to_stamp(index.file_offset + shift)}")
    if track.postgap:
        lines.append(f"    POSTGAP {track.postgap}")
    return lines


def generate_merged_cue_sheet(
    basename: str,
    files: Sequence[BinFile],
    offsets: Sequence[int]
) -> str:
    """
    Generate a cue sheet for one merged bin holding every track.

    Args:
        basename: Merged file name without extension
        files: Source files in merge order
        offsets: Cumulative sector offset of each source file in the
            merged stream (parallel to `files`)

    Returns:
        Cue sheet text
    """
    if len(files) != len(offsets):
        raise ValueError(f"Got {len(offsets)} offsets for {len(files)} files")

    lines = [f'FILE "{basename}.bin" BINARY']
    for bin_file, offset in zip(files, offsets):
        for track in bin_file.tracks:
            lines.extend(_track_lines(track, offset))
    return "\n".join(lines) + "\n"


def generate_split_cue_sheet(basename: str, merged_file: BinFile) -> str:
    """
    Generate a cue sheet with one bin file per track.

    Every index of a track is shifted by that track's first index offset,
    so the first index lands on 00:00:00 and pregap spacing is preserved.

    Args:
        basename: Prefix for the per-track filenames
        merged_file: The single source file

    Returns:
        Cue sheet text
    """
    track_count = len(merged_file.tracks)
    lines = []
    for track in merged_file.tracks:
        lines.append(f'FILE "{track_filename(basename, track.number, track_count)}" BINARY')
        lines.extend(_track_lines(track, -(track.first_offset or 0)))
    return "\n".join(lines) + "\n"


def strip_unsupported_commands(cue_text: str) -> str:
    """
    Reduce a cue sheet to the commands chdman understands.

    Trims every line and drops blank lines and commands outside
    FILE/TRACK/PREGAP/INDEX/POSTGAP. Two sheets with the same result
    describe the same disc layout.
    """
    kept = []
    for line in cue_text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        command = stripped.split()[0].upper()
        if command in CHDMAN_SUPPORTED_COMMANDS:
            kept.append(stripped)
    return "\n".join(kept)


def single_bin_cue(bin_name: str, track_type: str = "MODE2/2352") -> str:
    """Minimal cue sheet for a lone data bin."""
    return (
        f'FILE "{bin_name}" BINARY\n'
        f"  TRACK 01 {track_type}\n"
        f"    INDEX 01 00:00:00\n"
    )
