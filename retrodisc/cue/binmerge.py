"""
Merge multi-track bin/cue dumps into one bin, or split one bin into tracks.

The geometry functions (`merge`, `split`) work on cue text and report the
byte ranges each output file must contain. `merge_files`/`split_files`
move the actual bytes; `merge_cue_file`/`split_cue_file` run the whole
pipeline against files on disk.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from retrodisc.cue.blocksize import DEFAULT_BLOCKSIZE
from retrodisc.cue.errors import CueIntegrityError, InvalidOperationError
from retrodisc.cue.generator import generate_merged_cue_sheet, generate_split_cue_sheet, track_filename
from retrodisc.cue.models import BinFile, Track
from retrodisc.cue.parser import bin_file_size, parse_cue_content, read_cue_file

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass
class ByteRange:
    """A span of bytes within a source file."""
    path: str
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass
class TrackSlice:
    """Byte bounds of one track inside a merged stream."""
    filename: str               # Output filename for the track
    track: Track
    start: int
    end: Optional[int]          # None when the stream size is unknown

    @property
    def length(self) -> Optional[int]:
        if self.end is None:
            return None
        return self.end - self.start


@dataclass
class MergeResult:
    """Merged cue sheet plus the layout of the merged stream."""
    cue_text: str
    files: List[BinFile]
    blocksize: int
    offsets: List[int] = field(default_factory=list)     # Sector offset of each file
    ranges: List[ByteRange] = field(default_factory=list)  # Concatenation order


@dataclass
class SplitResult:
    """Split cue sheet plus the byte range of every track."""
    cue_text: str
    file: BinFile
    blocksize: int
    tracks: List[TrackSlice] = field(default_factory=list)


def file_start_offsets(files: List[BinFile], blocksize: int) -> List[int]:
    """
    Cumulative sector offset of each file in the concatenated stream.

    File i starts at the sum of sectors of all files before it.

    Raises:
        CueIntegrityError: If a file size is not a whole number of sectors
    """
    offsets = []
    position = 0
    for bin_file in files:
        offsets.append(position)
        if bin_file.size % blocksize != 0:
            raise CueIntegrityError(
                f"{bin_file.filename} is {bin_file.size} bytes, not a multiple of "
                f"{blocksize}; merged track offsets would not match the data"
            )
        position += bin_file.sector_count(blocksize)
    return offsets


def merge(
    cue_text: str,
    basename: str,
    base_path: Optional[str] = None,
    blocksize: int = DEFAULT_BLOCKSIZE,
    size_of: Optional[Callable[[str], int]] = None
) -> MergeResult:
    """
    Parse a cue sheet and generate the merged cue sheet.

    Args:
        cue_text: Source cue sheet
        basename: Merged bin name without extension
        base_path: Directory prefixed to FILE names
        blocksize: Starting sector size
        size_of: Callable returning the byte size of each source bin

    Returns:
        MergeResult with the new cue text, parsed files, per-file sector
        offsets and the byte ranges to concatenate
    """
    logger.info("Parsing cue sheet for merge")
    sheet = parse_cue_content(cue_text, base_path=base_path, blocksize=blocksize, size_of=size_of)

    offsets = file_start_offsets(sheet.files, sheet.blocksize)
    merged_cue = generate_merged_cue_sheet(basename, sheet.files, offsets)
    ranges = [ByteRange(path=f.path, start=0, length=f.size) for f in sheet.files]

    logger.info(f"Generated merged cue sheet for {len(sheet.files)} files")
    return MergeResult(
        cue_text=merged_cue,
        files=sheet.files,
        blocksize=sheet.blocksize,
        offsets=offsets,
        ranges=ranges,
    )


def split(
    cue_text: str,
    basename: str,
    base_path: Optional[str] = None,
    blocksize: int = DEFAULT_BLOCKSIZE,
    size_of: Optional[Callable[[str], int]] = None
) -> SplitResult:
    """
    Parse a single-file cue sheet and generate the split cue sheet.

    Track i covers [first index of i, first index of i+1) in sectors; the
    last track runs to the end of the stream.

    Raises:
        InvalidOperationError: If the sheet does not reference exactly one file
    """
    logger.info("Parsing cue sheet for split")
    sheet = parse_cue_content(cue_text, base_path=base_path, blocksize=blocksize, size_of=size_of)
    if len(sheet.files) != 1:
        raise InvalidOperationError(
            f"Split operation requires exactly one input file, got {len(sheet.files)}"
        )

    merged_file = sheet.files[0]
    split_cue = generate_split_cue_sheet(basename, merged_file)

    track_count = len(merged_file.tracks)
    stream_end = merged_file.size if merged_file.size > 0 else None
    slices = []
    for position, track in enumerate(merged_file.tracks):
        start = (track.first_offset or 0) * sheet.blocksize
        if position + 1 < track_count:
            end = (merged_file.tracks[position + 1].first_offset or 0) * sheet.blocksize
        else:
            end = stream_end
        slices.append(
            TrackSlice(
                filename=track_filename(basename, track.number, track_count),
                track=track,
                start=start,
                end=end,
            )
        )

    logger.info(f"Generated split cue sheet for {track_count} tracks")
    return SplitResult(cue_text=split_cue, file=merged_file, blocksize=sheet.blocksize, tracks=slices)


def _copy_range(infile, outfile, length: int) -> None:
    """Copy exactly `length` bytes in chunks."""
    remaining = length
    while remaining > 0:
        chunk = infile.read(min(CHUNK_SIZE, remaining))
        if not chunk:
            raise IOError(f"Unexpected end of file, {remaining} bytes short")
        outfile.write(chunk)
        remaining -= len(chunk)


def merge_files(output_path: Path, files: List[BinFile]) -> None:
    """
    Concatenate bin files into `output_path`, in listed order.

    Raises:
        FileExistsError: If the output already exists
    """
    output_path = Path(output_path)
    if output_path.exists():
        raise FileExistsError(f"Target merged bin path already exists: {output_path}")

    with open(output_path, 'wb') as outfile:
        for bin_file in files:
            logger.debug(f"Appending {bin_file.filename} ({bin_file.size} bytes)")
            with open(bin_file.path, 'rb') as infile:
                while True:
                    chunk = infile.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    outfile.write(chunk)


def split_files(outdir: Path, result: SplitResult) -> List[Path]:
    """
    Write every track of a split result to its own bin in `outdir`.

    All targets are checked before anything is written.

    Returns:
        Paths of the written track files

    Raises:
        FileExistsError: If any target already exists
    """
    outdir = Path(outdir)
    targets = [outdir / track_slice.filename for track_slice in result.tracks]
    for target in targets:
        if target.exists():
            raise FileExistsError(f"Target bin path already exists: {target}")

    with open(result.file.path, 'rb') as infile:
        for track_slice, target in zip(result.tracks, targets):
            infile.seek(track_slice.start)
            with open(target, 'wb') as outfile:
                logger.debug(f"Writing bin file: {target}")
                if track_slice.end is None:
                    while True:
                        chunk = infile.read(CHUNK_SIZE)
                        if not chunk:
                            break
                        outfile.write(chunk)
                else:
                    _copy_range(infile, outfile, track_slice.length)

    return targets


def _write_cue(cue_path: Path, cue_text: str) -> None:
    if cue_path.exists():
        raise FileExistsError(f"Output cue file already exists: {cue_path}")
    with open(cue_path, 'w', encoding='utf-8', newline='\r\n') as f:
        f.write(cue_text)


def merge_cue_file(
    cue_path: Path,
    basename: str,
    outdir: Path,
    blocksize: int = DEFAULT_BLOCKSIZE
) -> Path:
    """
    Merge the bins referenced by a cue file into `outdir`.

    Returns:
        Path to the new cue file
    """
    cue_path = Path(cue_path)
    outdir = Path(outdir)
    if not outdir.is_dir():
        raise FileNotFoundError(f"Output directory does not exist: {outdir}")

    sheet = read_cue_file(cue_path, blocksize=blocksize)
    offsets = file_start_offsets(sheet.files, sheet.blocksize)
    cue_text = generate_merged_cue_sheet(basename, sheet.files, offsets)

    new_cue = outdir / f"{basename}.cue"
    if new_cue.exists():
        raise FileExistsError(f"Output cue file already exists: {new_cue}")

    merge_files(outdir / f"{basename}.bin", sheet.files)
    _write_cue(new_cue, cue_text)
    logger.info(f"Merged {len(sheet.files)} files into {basename}.bin")
    return new_cue


def split_cue_file(
    cue_path: Path,
    basename: str,
    outdir: Path,
    blocksize: int = DEFAULT_BLOCKSIZE
) -> Path:
    """
    Split the single bin referenced by a cue file into per-track bins.

    Returns:
        Path to the new cue file
    """
    cue_path = Path(cue_path)
    outdir = Path(outdir)
    if not outdir.is_dir():
        raise FileNotFoundError(f"Output directory does not exist: {outdir}")

    with open(cue_path, 'r', encoding='utf-8', errors='ignore') as f:
        cue_text = f.read()

    result = split(
        cue_text,
        basename,
        base_path=str(cue_path.parent),
        blocksize=blocksize,
        size_of=bin_file_size,
    )

    new_cue = outdir / f"{basename}.cue"
    if new_cue.exists():
        raise FileExistsError(f"Output cue file already exists: {new_cue}")

    split_files(outdir, result)
    _write_cue(new_cue, result.cue_text)
    logger.info(f"Split {result.file.filename} into {len(result.tracks)} tracks")
    return new_cue
