"""
Cue sheet geometry package for retrodisc.

Parses cue sheets, converts between timestamps and sectors, and merges or
splits multi-track bin dumps.
"""

from .errors import (
    CueError,
    CueFormatError,
    CueStructureError,
    InvalidOperationError,
    CueIntegrityError,
    BinFilesMissingError,
)
from .timestamp import sectors_to_stamp, stamp_to_sectors
from .blocksize import TrackType, resolve_blocksize, DEFAULT_BLOCKSIZE
from .models import TrackIndex, Track, BinFile, CueSheet
from .parser import parse_cue_content, read_cue_file
from .binmerge import merge, split, MergeResult, SplitResult

__all__ = [
    'CueError',
    'CueFormatError',
    'CueStructureError',
    'InvalidOperationError',
    'CueIntegrityError',
    'BinFilesMissingError',
    'sectors_to_stamp',
    'stamp_to_sectors',
    'TrackType',
    'resolve_blocksize',
    'DEFAULT_BLOCKSIZE',
    'TrackIndex',
    'Track',
    'BinFile',
    'CueSheet',
    'parse_cue_content',
    'read_cue_file',
    'merge',
    'split',
    'MergeResult',
    'SplitResult',
]
