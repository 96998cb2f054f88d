"""
DAT catalogue package for retrodisc.

Loads Redump/Logiqx DAT files and identifies extracted dumps against them.
"""

from .models import Dat, Game, Rom
from .loader import DatParsingError, load_dat, load_dat_from_path, parse_dat
from .matcher import (
    CandidateFile,
    MatchError,
    MatchMethod,
    MatchStatus,
    MatchVerdict,
    identify,
)

__all__ = [
    'Dat',
    'Game',
    'Rom',
    'DatParsingError',
    'load_dat',
    'load_dat_from_path',
    'parse_dat',
    'CandidateFile',
    'MatchError',
    'MatchMethod',
    'MatchStatus',
    'MatchVerdict',
    'identify',
]
