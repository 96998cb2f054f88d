"""Configuration validation."""

import logging
from pathlib import Path
from typing import Dict, Any, List

from retrodisc.cue.blocksize import TrackType

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class ValidationError(Exception):
    """Configuration validation errors."""
    pass


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary from loader

    Raises:
        ValidationError: If configuration is invalid
    """
    errors = []

    errors.extend(_validate_paths(config.get('paths', {})))
    errors.extend(_validate_cue(config.get('cue', {})))
    errors.extend(_validate_matching(config.get('matching', {})))
    errors.extend(_validate_logging(config.get('logging', {})))

    if errors:
        raise ValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )


def _validate_paths(section: Dict[str, Any]) -> List[str]:
    """Validate paths section."""
    errors = []

    if not isinstance(section, dict):
        return ["paths must be a dictionary"]

    dat = section.get('dat')
    if dat:
        dat_path = Path(dat).expanduser()
        if not dat_path.exists():
            errors.append(f"paths.dat file not found: {dat_path}")
        elif not dat_path.is_file():
            errors.append(f"paths.dat must be a file: {dat_path}")

    cuesheets = section.get('cuesheets')
    if cuesheets and not Path(cuesheets).expanduser().is_dir():
        errors.append(f"paths.cuesheets directory not found: {cuesheets}")

    output = section.get('output')
    if output and Path(output).expanduser().exists() and not Path(output).expanduser().is_dir():
        errors.append(f"paths.output must be a directory: {output}")

    return errors


def _validate_cue(section: Dict[str, Any]) -> List[str]:
    """Validate cue geometry section."""
    errors = []

    if 'blocksize' in section:
        blocksize = section['blocksize']
        valid_sizes = sorted({member.blocksize for member in TrackType})
        if not isinstance(blocksize, int) or isinstance(blocksize, bool):
            errors.append("cue.blocksize must be an integer")
        elif blocksize not in valid_sizes:
            errors.append(
                f"cue.blocksize must be one of: {', '.join(str(s) for s in valid_sizes)}"
            )

    return errors


def _validate_matching(section: Dict[str, Any]) -> List[str]:
    """Validate DAT matching section."""
    errors = []

    if 'closest_size_threshold' in section:
        threshold = section['closest_size_threshold']
        if not isinstance(threshold, int) or isinstance(threshold, bool):
            errors.append("matching.closest_size_threshold must be an integer")
        elif threshold < 0:
            errors.append("matching.closest_size_threshold must be non-negative")

    if 'allow_cue_mismatches' in section:
        if not isinstance(section['allow_cue_mismatches'], bool):
            errors.append("matching.allow_cue_mismatches must be a boolean")

    return errors


def _validate_logging(section: Dict[str, Any]) -> List[str]:
    """Validate logging section."""
    errors = []

    if 'level' in section:
        level = section['level']
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            errors.append(
                f"logging.level must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )

    if 'console' in section and not isinstance(section['console'], bool):
        errors.append("logging.console must be a boolean")

    return errors
