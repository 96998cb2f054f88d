"""DAT catalogue data structures."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

TRACK_EXTENSION = '.bin'


@dataclass(eq=False)
class Rom:
    """A file entry of a game in the catalogue."""
    name: str
    size: int
    sha1hex: str
    game: Optional["Game"] = field(default=None, repr=False)
    crc: Optional[str] = None
    md5: Optional[str] = None

    def __post_init__(self):
        self.sha1hex = self.sha1hex.lower()

    def is_track(self) -> bool:
        """Check if this entry is track data (.bin)."""
        return self.name.lower().endswith(TRACK_EXTENSION)


@dataclass(eq=False)
class Game:
    """A verified dump: one game and the files that make it up."""
    name: str
    roms: List[Rom] = field(default_factory=list)
    description: Optional[str] = None
    category: Optional[str] = None

    def add_rom(self, rom: Rom) -> Rom:
        rom.game = self
        self.roms.append(rom)
        return rom

    def track_size(self) -> int:
        """Combined size of the game's .bin entries."""
        return sum(rom.size for rom in self.roms if rom.is_track())

    def find_rom(self, name: str) -> Optional[Rom]:
        for rom in self.roms:
            if rom.name == name:
                return rom
        return None


class Dat:
    """
    A loaded DAT catalogue.

    Loaded once per run and treated as read-only afterwards. Lookups by
    sha1 return lists: identical dumps can appear under several games.
    """

    def __init__(self, system: str):
        self.system = system
        self.games: List[Game] = []
        self.roms_by_sha1: Dict[str, List[Rom]] = {}

    def add_game(self, game: Game) -> Game:
        """Register a game and index its ROMs by sha1."""
        self.games.append(game)
        for rom in game.roms:
            self.roms_by_sha1.setdefault(rom.sha1hex, []).append(rom)
        return game

    def find_by_sha1(self, sha1hex: str) -> List[Rom]:
        """ROMs with the given sha1 (case-insensitive); empty list if none."""
        if not sha1hex:
            return []
        return list(self.roms_by_sha1.get(sha1hex.lower(), []))

    def find_game(self, name: str) -> Optional[Game]:
        for game in self.games:
            if game.name == name:
                return game
        return None

    def __len__(self) -> int:
        return len(self.games)

    def __repr__(self) -> str:
        return f"Dat(system={self.system!r}, games={len(self.games)})"
