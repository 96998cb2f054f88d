"""
Loader for Logiqx-format DAT files (as published by Redump).

Expected shape:

    <datafile>
      <header><name>Sony - PlayStation</name></header>
      <game name="...">
        <category>Games</category>
        <description>...</description>
        <rom name="..." size="..." crc="..." md5="..." sha1="..."/>
      </game>
    </datafile>
"""

import logging
import zipfile
from pathlib import Path
from typing import Union

from lxml import etree

from retrodisc.dat.models import Dat, Game, Rom

logger = logging.getLogger(__name__)

DAT_EXTENSIONS = ('.dat', '.xml')


class DatParsingError(Exception):
    """DAT file loading and parsing errors."""
    pass


def _required_attrib(elem, name: str) -> str:
    value = elem.get(name)
    if not value:
        raise DatParsingError(f"Found a <{elem.tag}> without a {name} attribute")
    return value


def _child_text(elem, tag: str):
    child = elem.find(tag)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _parse_rom(rom_elem) -> Rom:
    size_attrib = _required_attrib(rom_elem, 'size')
    try:
        size = int(size_attrib)
    except ValueError:
        raise DatParsingError(f"<rom> has size attribute that is not an integer: {size_attrib}")

    return Rom(
        name=_required_attrib(rom_elem, 'name'),
        size=size,
        sha1hex=_required_attrib(rom_elem, 'sha1'),
        crc=rom_elem.get('crc'),
        md5=rom_elem.get('md5'),
    )


def parse_dat(content: Union[bytes, str]) -> Dat:
    """
    Parse DAT XML content.

    Args:
        content: Raw XML

    Returns:
        Dat with every game and a sha1 index

    Raises:
        DatParsingError: If the XML is malformed or required data is missing
    """
    if isinstance(content, str):
        content = content.encode('utf-8')

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as e:
        raise DatParsingError(f"Invalid XML in DAT file: {e}")

    if root.tag != 'datafile':
        raise DatParsingError(f"Root element must be <datafile>, found <{root.tag}>")

    header = root.find('header')
    system = _child_text(header, 'name') if header is not None else None
    if not system:
        raise DatParsingError("DAT file has no <header> with a <name>")

    dat = Dat(system)
    for game_elem in root.findall('game'):
        game = Game(
            name=_required_attrib(game_elem, 'name'),
            description=_child_text(game_elem, 'description'),
            category=_child_text(game_elem, 'category'),
        )
        for rom_elem in game_elem.findall('rom'):
            game.add_rom(_parse_rom(rom_elem))
        dat.add_game(game)

    logger.info(f"Loaded DAT '{dat.system}' with {len(dat.games)} games")
    return dat


def load_dat(dat_path: Path) -> Dat:
    """
    Load a .dat/.xml file from disk.

    Raises:
        DatParsingError: If the file has the wrong extension or cannot be parsed
        FileNotFoundError: If the file does not exist
    """
    dat_path = Path(dat_path)
    if dat_path.suffix.lower() not in DAT_EXTENSIONS:
        raise DatParsingError(f"Dat file must have a .dat extension: {dat_path}")
    if not dat_path.exists():
        raise FileNotFoundError(f"DAT file not found: {dat_path}")

    logger.info(f"Loading DAT file: {dat_path}")
    return parse_dat(dat_path.read_bytes())


def load_dat_from_zip(zip_path: Path) -> Dat:
    """
    Load the DAT contained in a zip archive (first .dat wins).

    Raises:
        DatParsingError: If the archive is invalid or holds no .dat
    """
    zip_path = Path(zip_path)
    if not zip_path.exists():
        raise FileNotFoundError(f"Zip file does not exist: {zip_path}")

    logger.info(f"Loading DAT from zip file: {zip_path}")
    try:
        with zipfile.ZipFile(zip_path, 'r') as archive:
            dat_names = [
                name for name in archive.namelist()
                if name.lower().endswith('.dat')
            ]
            if not dat_names:
                raise DatParsingError(f"No .dat files found in zip: {zip_path}")
            if len(dat_names) > 1:
                logger.warning(f"Multiple .dat files found in zip: {', '.join(dat_names)}")
                logger.warning(f"Using the first one: {dat_names[0]}")

            content = archive.read(dat_names[0])
    except zipfile.BadZipFile as e:
        raise DatParsingError(f"Failed to load DAT from zip {zip_path}: {e}")

    return parse_dat(content)


def load_dat_from_path(dat_path: Path) -> Dat:
    """
    Load a DAT from a .dat/.xml file or a .zip holding one.

    Raises:
        DatParsingError: For unsupported file types or parse failures
    """
    dat_path = Path(dat_path)
    suffix = dat_path.suffix.lower()

    if suffix in DAT_EXTENSIONS:
        return load_dat(dat_path)
    if suffix == '.zip':
        return load_dat_from_zip(dat_path)

    raise DatParsingError(
        f"Unsupported file type: {suffix}. Only .dat and .zip files are supported."
    )
