"""
Cue sheet creation from other dump layouts.

Handles CloneCD control files (.ccd) and lone bin files without a cue.
"""

import configparser
import logging
from pathlib import Path
from typing import List

from retrodisc.cue.errors import CueStructureError
from retrodisc.cue.generator import single_bin_cue
from retrodisc.cue.timestamp import FRAMES_PER_SECOND, SECTORS_PER_MINUTE, sectors_to_stamp

logger = logging.getLogger(__name__)

CCD_IMAGE_EXTENSIONS = ['.img', '.bin', '.iso']

# CloneCD positions include the 2 second lead-in
LEAD_IN_SECONDS = 2


def ccd_to_cue(ccd_text: str, image_name: str) -> str:
    """
    Convert CloneCD control file content to a cue sheet.

    Only [Entry N] sections are used. Emission starts at the first entry
    whose PLBA is 0; each entry after that becomes a track.

    Args:
        ccd_text: Content of the .ccd file
        image_name: Filename of the image the cue should reference

    Returns:
        Cue sheet text

    Raises:
        CueStructureError: If the control file cannot be parsed
    """
    parser = configparser.ConfigParser(strict=False, interpolation=None)
    parser.optionxform = str
    try:
        parser.read_string(ccd_text)
    except configparser.Error as e:
        raise CueStructureError(f"Invalid CCD control file: {e}")

    lines = [f'FILE "{image_name}" BINARY']
    track_counter = 0
    begin = False

    for section_name in parser.sections():
        if not section_name.startswith('Entry'):
            continue

        entry = parser[section_name]
        control = entry.get('Control', '0x00').strip().lower()
        session = int(entry.get('Session', '1'))
        pmin = int(entry.get('PMin', '0'))
        psec = int(entry.get('PSec', '0'))
        pframe = int(entry.get('PFrame', '0'))
        plba = int(entry.get('PLBA', '0'))

        if plba == 0:
            begin = True
        if not begin:
            continue

        track_counter += 1

        position = pmin * SECTORS_PER_MINUTE + (psec - LEAD_IN_SECONDS) * FRAMES_PER_SECOND + pframe
        if position < 0:
            raise CueStructureError(
                f"{section_name} lies inside the lead-in: PMin={pmin} PSec={psec} PFrame={pframe}"
            )

        track_type = 'MODE1/2352' if control == '0x04' else 'AUDIO'
        lines.append(f"  TRACK {track_counter:02d} {track_type}")
        lines.append(f"    INDEX {session:02d} {sectors_to_stamp(position)}")

    logger.debug(f"Converted CCD with {track_counter} tracks for {image_name}")
    return "\n".join(lines) + "\n"


def convert_ccd_file(ccd_path: Path) -> Path:
    """
    Write a .cue next to a .ccd file.

    The image is looked up next to the control file as .img, .bin or .iso
    (first found wins).

    Returns:
        Path to the written cue file

    Raises:
        ValueError: If the path is not a .ccd file
        CueStructureError: If no image file is found
    """
    ccd_path = Path(ccd_path)
    if ccd_path.suffix.lower() != '.ccd':
        raise ValueError(f"File must have .ccd extension: {ccd_path}")
    if not ccd_path.is_file():
        raise FileNotFoundError(f"CCD file does not exist: {ccd_path}")

    image_name = None
    for ext in CCD_IMAGE_EXTENSIONS:
        candidate = ccd_path.with_suffix(ext)
        if candidate.is_file():
            image_name = candidate.name
            break

    if image_name is None:
        raise CueStructureError(f"No image file found for CCD: {ccd_path}")

    ccd_text = ccd_path.read_text(encoding='utf-8', errors='ignore')
    cue_path = ccd_path.with_suffix('.cue')
    cue_path.write_text(ccd_to_cue(ccd_text, image_name), encoding='utf-8')
    logger.info(f"Converted {ccd_path.name} to {cue_path.name}")
    return cue_path


def create_cue_file(bin_path: Path, cue_path: Path = None) -> Path:
    """
    Create a single-track cue sheet for a lone bin file.

    Args:
        bin_path: Path to the bin file
        cue_path: Where to write the cue (default: next to the bin)

    Returns:
        Path to the written cue file
    """
    bin_path = Path(bin_path)
    if not bin_path.is_file():
        raise FileNotFoundError(f"Bin file does not exist: {bin_path}")
    if bin_path.suffix.lower() != '.bin':
        raise ValueError(f"Bin file must end with .bin: {bin_path}")

    if cue_path is None:
        cue_path = bin_path.with_suffix('.cue')
    cue_path = Path(cue_path)
    cue_path.write_text(single_bin_cue(bin_path.name), encoding='utf-8')
    return cue_path


def process_directory(source_dir: Path) -> List[Path]:
    """
    Generate missing cue sheets in a directory.

    CCD files are converted first; bins that still have no cue with the
    same stem then get a single-track cue. Failures for one file are
    logged and do not stop the others.

    Returns:
        Paths of generated cue files

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Directory does not exist: {source_dir}")

    generated = []

    for ccd_file in sorted(source_dir.glob('*.ccd')):
        try:
            generated.append(convert_ccd_file(ccd_file))
        except (CueStructureError, ValueError, OSError) as e:
            logger.warning(f"Failed to process CCD file {ccd_file.name}: {e}")

    for bin_file in sorted(source_dir.glob('*.bin')):
        if bin_file.with_suffix('.cue').exists():
            continue
        try:
            generated.append(create_cue_file(bin_file))
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to process BIN file {bin_file.name}: {e}")

    if generated:
        logger.info(f"Generated {len(generated)} cue sheets in {source_dir}")
    return generated
