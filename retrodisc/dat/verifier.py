"""
Verification of extracted dump folders against a DAT.

Hashing runs concurrently across the files of one dump; identification
and verification only start once every hash of the dump is available.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from retrodisc.cue.generator import strip_unsupported_commands
from retrodisc.dat.matcher import (
    DEFAULT_CLOSEST_SIZE_THRESHOLD,
    CandidateFile,
    MatchVerdict,
    identify,
)
from retrodisc.dat.models import Dat, Game, Rom
from retrodisc.scanner.hash_calculator import calculate_hash, calculate_hashes, format_file_size

logger = logging.getLogger(__name__)


class VerificationError(Exception):
    """Dump does not verify against the DAT."""
    pass


class CueVerificationResult(Enum):
    """How the dump's cue sheet compares with the catalogue."""
    NO_CUE_NEEDED = "no_cue_needed"
    VERIFIED_EXACTLY = "verified_exactly"
    MATCHES_ESSENTIALS = "matches_essentials"
    MISMATCH_NO_REFERENCE = "mismatch_no_reference"
    ESSENTIALS_MISMATCH = "essentials_mismatch"


@dataclass
class VerificationResult:
    """Outcome of a strict folder verification."""
    game: Game
    cue_result: CueVerificationResult


def list_dump_files(folder: Path) -> List[Path]:
    """Regular, non-hidden files directly inside a dump folder, sorted by name."""
    folder = Path(folder)
    if not folder.is_dir():
        raise FileNotFoundError(f"Dump folder not found: {folder}")
    return sorted(
        entry for entry in folder.iterdir()
        if entry.is_file() and not entry.name.startswith('.')
    )


async def collect_candidates(paths: Iterable[Path]) -> List[CandidateFile]:
    """
    Size and sha1-hash files concurrently.

    Raises:
        OSError: If any file cannot be read (after logging every failure)
    """
    paths = [Path(p) for p in paths]
    tasks = [asyncio.to_thread(calculate_hashes, p) for p in paths]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    candidates = []
    failures = []
    for path, result in zip(paths, results):
        if isinstance(result, Exception):
            logger.warning(f"Failed to hash {path.name}: {result}")
            failures.append(result)
            continue
        candidates.append(
            CandidateFile(path=str(path), size=result.size, sha1hex=result.sha1)
        )

    if failures:
        raise failures[0]
    return candidates


async def identify_folder(
    folder: Path,
    dat: Dat,
    closest_size_threshold: int = DEFAULT_CLOSEST_SIZE_THRESHOLD
) -> MatchVerdict:
    """Hash every file of a dump folder and identify it."""
    files = list_dump_files(folder)
    total = sum(f.stat().st_size for f in files)
    logger.info(f"Hashing {len(files)} files ({format_file_size(total)}) in {Path(folder).name}")
    candidates = await collect_candidates(files)
    return identify(candidates, dat, closest_size_threshold=closest_size_threshold)


def find_cuesheet_for_game(cue_paths: Sequence[Path], game_name: str) -> Optional[Path]:
    """
    Find the reference cue sheet for a game by filename stem.

    Tries an exact match, then case-insensitive, then substring in either
    direction.
    """
    cue_paths = [Path(p) for p in cue_paths]

    for cue_path in cue_paths:
        if cue_path.stem == game_name:
            return cue_path

    lowered = game_name.lower()
    for cue_path in cue_paths:
        if cue_path.stem.lower() == lowered:
            return cue_path

    for cue_path in cue_paths:
        stem = cue_path.stem.lower()
        if stem in lowered or lowered in stem:
            logger.info(f"Found partial cue sheet match for game \"{game_name}\": \"{cue_path.stem}\"")
            return cue_path

    return None


def _verify_cue(
    cue_path: Path,
    game: Game,
    reference_cues: Sequence[Path]
) -> CueVerificationResult:
    cue_rom = game.find_rom(cue_path.name)
    if cue_rom is None:
        return CueVerificationResult.NO_CUE_NEEDED

    if calculate_hash(cue_path, algorithm='sha1').lower() == cue_rom.sha1hex:
        return CueVerificationResult.VERIFIED_EXACTLY

    reference = find_cuesheet_for_game(reference_cues, game.name)
    if reference is None:
        return CueVerificationResult.MISMATCH_NO_REFERENCE

    ours = strip_unsupported_commands(cue_path.read_text(encoding='utf-8', errors='ignore'))
    theirs = strip_unsupported_commands(reference.read_text(encoding='utf-8', errors='ignore'))
    if ours == theirs:
        return CueVerificationResult.MATCHES_ESSENTIALS
    return CueVerificationResult.ESSENTIALS_MISMATCH


async def verify_dump_folder(
    folder: Path,
    dat: Dat,
    reference_cues: Sequence[Path] = ()
) -> VerificationResult:
    """
    Strictly verify a dump folder.

    Every .bin must match a DAT entry by sha1, name and size, and all
    entries must belong to the same game. A .cue, if present, is compared
    by hash and then by its chdman-relevant commands.

    Raises:
        VerificationError: If the dump does not verify
    """
    files = list_dump_files(folder)
    bin_files = [f for f in files if f.suffix.lower() == '.bin']
    cue_files = [f for f in files if f.suffix.lower() == '.cue']

    if not bin_files:
        raise VerificationError(f"No .bin files found in {folder}")

    candidates = await collect_candidates(bin_files)

    verified: List[Rom] = []
    for candidate in candidates:
        matching = [
            rom for rom in dat.find_by_sha1(candidate.sha1hex)
            if rom.name == candidate.name and rom.size == candidate.size
        ]
        if not matching:
            raise VerificationError(
                f"No matching ROM found in DAT for {candidate.name} (SHA1: {candidate.sha1hex})"
            )
        verified.append(matching[0])

    game = verified[0].game
    if game is None:
        raise VerificationError("No game found for verified ROMs")
    if any(rom.game is not game for rom in verified):
        raise VerificationError("ROMs belong to different games")

    cue_result = CueVerificationResult.NO_CUE_NEEDED
    if cue_files:
        cue_result = _verify_cue(cue_files[0], game, reference_cues)

    return VerificationResult(game=game, cue_result=cue_result)


def accept_verification(result: VerificationResult, allow_cue_mismatches: bool = False) -> Game:
    """
    Turn a verification result into a verdict.

    Returns:
        The verified game

    Raises:
        VerificationError: If the cue sheet does not verify (a cue mismatch
            without a reference is tolerated when allowed)
    """
    name = result.game.name
    if result.cue_result in (CueVerificationResult.NO_CUE_NEEDED,
                             CueVerificationResult.VERIFIED_EXACTLY):
        logger.info(f"Dump verified correct and complete: \"{name}\"")
    elif result.cue_result == CueVerificationResult.MATCHES_ESSENTIALS:
        logger.info(
            f"Dump .bin files verified correct and complete, and .cue essential "
            f"structure matches: \"{name}\""
        )
    elif result.cue_result == CueVerificationResult.MISMATCH_NO_REFERENCE:
        message = f"\"{name}\" .bin files verified and complete, but .cue does not match Datfile"
        if not allow_cue_mismatches:
            raise VerificationError(message)
        logger.warning(message)
    else:
        raise VerificationError(
            f"\"{name}\" .cue file does not match essential structure from provided .cue file"
        )
    return result.game
