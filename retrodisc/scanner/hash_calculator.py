"""Hash calculation for dump files."""

import zlib
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

CHUNK_SIZE = 8 * 1024 * 1024  # 8MB chunks for better I/O efficiency


@dataclass
class FileHashes:
    """All content hashes of one file, in DAT notation."""
    size: int
    crc: str        # Uppercase hex, 8 digits
    md5: str        # Lowercase hex
    sha1: str       # Lowercase hex


def calculate_hash(
    file_path: Path,
    algorithm: str = 'sha1',
    size_limit: int = 0
) -> Optional[str]:
    """
    Calculate hash for a file using specified algorithm.

    Args:
        file_path: Path to file to hash
        algorithm: Hash algorithm ('crc32', 'md5', 'sha1')
        size_limit: Maximum file size to hash. Set 0 for no limit (default).

    Returns:
        Uppercase hex hash string, or None if file exceeds limit

    Raises:
        IOError: If file cannot be read
        ValueError: If algorithm is not supported
    """
    if algorithm not in ('crc32', 'md5', 'sha1'):
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    file_size = Path(file_path).stat().st_size

    # Only check size limit if one is set (non-zero)
    if size_limit > 0 and file_size > size_limit:
        return None

    if algorithm == 'crc32':
        crc = 0
        with open(file_path, 'rb') as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                crc = zlib.crc32(chunk, crc)

        # Convert to unsigned 32-bit value and format as uppercase hex
        crc = crc & 0xFFFFFFFF
        return f"{crc:08X}"

    hasher = hashlib.md5() if algorithm == 'md5' else hashlib.sha1()
    with open(file_path, 'rb') as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)

    return hasher.hexdigest().upper()


def calculate_hashes(file_path: Path) -> FileHashes:
    """
    Calculate crc32, md5 and sha1 in a single read.

    Returns:
        FileHashes formatted the way DAT files write them

    Raises:
        IOError: If file cannot be read
    """
    crc = 0
    md5 = hashlib.md5()
    sha1 = hashlib.sha1()
    size = 0
    with open(file_path, 'rb') as f:
        while True:
            chunk = f.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            crc = zlib.crc32(chunk, crc)
            md5.update(chunk)
            sha1.update(chunk)

    return FileHashes(
        size=size,
        crc=f"{crc & 0xFFFFFFFF:08X}",
        md5=md5.hexdigest(),
        sha1=sha1.hexdigest(),
    )


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "750 KB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"
