"""
Identification of extracted dump files against a DAT catalogue.

Three tiers, first non-empty one wins:

1. Content hash: sha1 lookup of every candidate file.
2. Combined track size: sum of candidate .bin sizes equals a game's sum.
3. Closest track size: smallest size difference, accepted as a partial
   match only when below a fixed byte threshold.

Every verdict carries the tier that produced it so that an exact hash
match is never confused with a size-based guess.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from retrodisc.dat.models import TRACK_EXTENSION, Dat, Game

logger = logging.getLogger(__name__)

DEFAULT_CLOSEST_SIZE_THRESHOLD = 1000  # bytes


class MatchStatus(Enum):
    """Identification outcome."""
    MATCH = "match"
    PARTIAL = "partial"
    NONE = "none"


class MatchMethod(Enum):
    """Tier that produced a verdict."""
    HASH = "hash"
    COMBINED_SIZE = "combined_size"
    CLOSEST_SIZE = "closest_size"
    NONE = "none"


class MatchError(ValueError):
    """Structurally invalid matcher input (not raised for 'no match')."""
    pass


@dataclass
class CandidateFile:
    """An extracted file to identify."""
    path: str
    size: int
    sha1hex: Optional[str] = None

    @property
    def name(self) -> str:
        return posixpath.basename(str(self.path).replace('\\', '/'))

    def is_track(self) -> bool:
        return self.name.lower().endswith(TRACK_EXTENSION)


@dataclass
class MatchVerdict:
    """Result of identifying a candidate set."""
    status: MatchStatus
    method: MatchMethod
    reason: str
    game: Optional[Game] = None
    games: List[Game] = field(default_factory=list)   # Every game the tier found

    @property
    def is_match(self) -> bool:
        return self.status == MatchStatus.MATCH


def _status_for(games: Sequence[Game]) -> MatchStatus:
    return MatchStatus.MATCH if len(games) == 1 else MatchStatus.PARTIAL


def _match_by_hash(candidates: Sequence[CandidateFile], dat: Dat) -> Optional[MatchVerdict]:
    games: List[Game] = []
    hits = {}
    for candidate in candidates:
        for rom in dat.find_by_sha1(candidate.sha1hex):
            game = rom.game
            if game is None:
                continue
            if id(game) not in hits:
                games.append(game)
                hits[id(game)] = 0
            hits[id(game)] += 1

    if not games:
        return None

    # Most hash hits wins; max() keeps the first seen on ties
    best = max(games, key=lambda g: hits[id(g)])
    status = _status_for(games)
    if status == MatchStatus.PARTIAL:
        logger.debug(f"Content hashes span {len(games)} games: {[g.name for g in games]}")

    return MatchVerdict(
        status=status,
        method=MatchMethod.HASH,
        reason="match via content hash",
        game=best,
        games=games,
    )


def _match_by_combined_size(candidate_size: int, dat: Dat) -> Optional[MatchVerdict]:
    games = [game for game in dat.games if game.track_size() == candidate_size]
    if not games:
        return None

    return MatchVerdict(
        status=_status_for(games),
        method=MatchMethod.COMBINED_SIZE,
        reason="match via combined track size",
        game=games[0],
        games=games,
    )


def _match_by_closest_size(candidate_size: int, dat: Dat, threshold: int) -> MatchVerdict:
    closest: Optional[Game] = None
    closest_delta = None
    for game in dat.games:
        delta = abs(game.track_size() - candidate_size)
        # Strict comparison: first game in catalogue order wins ties
        if closest_delta is None or delta < closest_delta:
            closest = game
            closest_delta = delta

    if closest is None:
        return MatchVerdict(
            status=MatchStatus.NONE,
            method=MatchMethod.NONE,
            reason="no games in catalogue",
        )

    percent = closest_delta / candidate_size * 100
    if closest_delta < threshold:
        return MatchVerdict(
            status=MatchStatus.PARTIAL,
            method=MatchMethod.CLOSEST_SIZE,
            reason=(
                f"closest match by combined track size: differs by "
                f"{closest_delta} bytes ({percent:.4f}%)"
            ),
            game=closest,
            games=[closest],
        )

    logger.debug(
        f"Closest game '{closest.name}' differs by {closest_delta} bytes, "
        f"threshold is {threshold}"
    )
    return MatchVerdict(
        status=MatchStatus.NONE,
        method=MatchMethod.NONE,
        reason=(
            f"no match: closest game differs by {closest_delta} bytes "
            f"({percent:.4f}%), threshold is {threshold} bytes"
        ),
    )


def identify(
    candidates: Sequence[CandidateFile],
    dat: Dat,
    closest_size_threshold: int = DEFAULT_CLOSEST_SIZE_THRESHOLD
) -> MatchVerdict:
    """
    Identify a set of extracted files against a DAT.

    Args:
        candidates: Every file of one dump, with sizes and sha1 hashes
        dat: Loaded catalogue
        closest_size_threshold: Largest byte difference (exclusive) accepted
            by the closest-size tier

    Returns:
        MatchVerdict; "no match" is a verdict, never an exception

    Raises:
        MatchError: If no candidates are given
    """
    if not candidates:
        raise MatchError("Cannot identify an empty set of files")

    verdict = _match_by_hash(candidates, dat)
    if verdict:
        logger.info(f"Identified '{verdict.game.name}' by content hash ({verdict.status.value})")
        return verdict

    candidate_size = sum(c.size for c in candidates if c.is_track())
    if candidate_size <= 0:
        return MatchVerdict(
            status=MatchStatus.NONE,
            method=MatchMethod.NONE,
            reason="no match: no hash matched and no track data to compare by size",
        )

    verdict = _match_by_combined_size(candidate_size, dat)
    if verdict:
        logger.info(
            f"Identified '{verdict.game.name}' by combined track size ({verdict.status.value})"
        )
        return verdict

    verdict = _match_by_closest_size(candidate_size, dat, closest_size_threshold)
    if verdict.game:
        logger.info(f"Closest size candidate '{verdict.game.name}': {verdict.reason}")
    else:
        logger.info(verdict.reason)
    return verdict
