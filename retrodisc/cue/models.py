"""Cue sheet geometry data structures."""

import posixpath
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


@dataclass
class TrackIndex:
    """An INDEX point within a track."""
    id: int                 # 0 = pregap start, 1 = start of playable data
    stamp: str              # Timestamp as written in the source sheet
    file_offset: int        # Sector offset from the start of the bin file


@dataclass
class Track:
    """
    A TRACK statement and its index points.

    `sectors` is derived during parsing when geometry has to be inferred
    from the file size; it is never read from the cue sheet.
    """
    number: int
    track_type: str
    indexes: List[TrackIndex] = field(default_factory=list)
    sectors: Optional[int] = None
    pregap: Optional[str] = None
    postgap: Optional[str] = None

    @property
    def first_offset(self) -> Optional[int]:
        """Sector offset of the first index, or None if the track has none."""
        if not self.indexes:
            return None
        return self.indexes[0].file_offset


@dataclass
class BinFile:
    """A FILE statement: one binary file holding one or more tracks."""
    path: str
    tracks: List[Track] = field(default_factory=list)
    size: int = 0                   # Bytes; 0 when not known
    file_type: str = "BINARY"

    @property
    def filename(self) -> str:
        """Filename without directory."""
        return posixpath.basename(self.path.replace('\\', '/'))

    def sector_count(self, blocksize: int) -> int:
        """Number of whole sectors in the file."""
        return self.size // blocksize


@dataclass
class CueSheet:
    """Result of parsing a cue sheet."""
    files: List[BinFile]
    blocksize: int

    @property
    def tracks(self) -> Iterator[Track]:
        """Every track, in file order."""
        for bin_file in self.files:
            yield from bin_file.tracks

    def track_summary(self) -> List[Tuple[int, str]]:
        """Ordered (track number, track type) pairs."""
        return [(track.number, track.track_type) for track in self.tracks]
