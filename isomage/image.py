"""Raw image access.

Every read seeks first and must return exactly the requested number of
bytes. Partial reads are errors; nothing is retried.
"""
from typing import BinaryIO

from .errors import IoError


def read_exact(image: BinaryIO, offset: int, length: int) -> bytes:
    """Read exactly `length` bytes at byte `offset` of the image."""
    try:
        image.seek(offset)
        data = image.read(length)
    except OSError as e:
        raise IoError(f"Read of {length} bytes at offset {offset} failed: {e}") from e

    if data is None or len(data) < length:
        got = len(data) if data else 0
        raise IoError(f"Short read at offset {offset}, got {got}/{length} bytes")
    return data


def read_sectors(image: BinaryIO, lba: int, length: int, sector_size: int) -> bytes:
    """Read `length` bytes starting at logical block `lba`."""
    return read_exact(image, lba * sector_size, length)
