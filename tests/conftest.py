"""
Shared pytest fixtures and utilities for the retrodisc test suite.
"""

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import pytest
import yaml


def merge_dicts(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two dictionaries without mutating inputs.
    """
    result = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


@pytest.fixture
def make_bin(tmp_path: Path) -> Callable[..., Path]:
    """
    Write a bin file made of `sectors` sectors of a repeated fill byte.

    Usage:
        path = make_bin("Game (Track 1).bin", sectors=10, fill=b"\\x01")
    """

    def _builder(name: str, sectors: int = 1, fill: bytes = b"\x00",
                 blocksize: int = 2352, folder: Optional[Path] = None) -> Path:
        target = (folder or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(fill * (sectors * blocksize))
        return target

    return _builder


@pytest.fixture
def make_cue(tmp_path: Path) -> Callable[..., Path]:
    """
    Write cue sheet text to a file.
    """

    def _builder(name: str, text: str, folder: Optional[Path] = None) -> Path:
        target = (folder or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text)
        return target

    return _builder


@pytest.fixture
def dat_xml() -> Callable[..., str]:
    """
    Build Logiqx DAT XML from (game name, [(rom name, size, sha1)]) pairs.
    """

    def _builder(games: Iterable[Tuple[str, Iterable[Tuple[str, int, str]]]],
                 system: str = "Sony - PlayStation") -> str:
        parts = [
            '<?xml version="1.0"?>',
            "<datafile>",
            f"  <header><name>{system}</name><description>{system}</description></header>",
        ]
        for game_name, roms in games:
            parts.append(f'  <game name="{game_name}">')
            parts.append("    <category>Games</category>")
            parts.append(f"    <description>{game_name}</description>")
            for rom_name, size, sha1 in roms:
                parts.append(
                    f'    <rom name="{rom_name}" size="{size}" crc="00000000" '
                    f'md5="d41d8cd98f00b204e9800998ecf8427e" sha1="{sha1}"/>'
                )
            parts.append("  </game>")
        parts.append("</datafile>")
        return "\n".join(parts) + "\n"

    return _builder


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[[Optional[Dict[str, Any]]], Path]:
    """
    Create a minimal config.yaml in a temp directory.

    Usage:
        path = make_config({"matching": {"closest_size_threshold": 10}})
    """

    def _builder(overrides: Optional[Dict[str, Any]] = None) -> Path:
        base = {
            "cue": {"blocksize": 2352},
            "logging": {"level": "INFO", "console": False},
        }
        if overrides:
            base = merge_dicts(base, overrides)

        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(base))
        return cfg_path

    return _builder
