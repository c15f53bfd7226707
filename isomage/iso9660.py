"""ISO 9660 parser.

Reads the primary volume descriptor, decodes directory records and walks
directory extents recursively to rebuild the file tree.

Layout of a directory record (all offsets relative to the record start):

    0       record length
    2-5     extent location, LBA (LE; BE copy at 6-9)
    10-13   data length (LE; BE copy at 14-17)
    25      file flags (0x02 = directory)
    32      file identifier length
    33..    file identifier, then padding and system use area

Records never cross a sector boundary; the tail of a sector that cannot
hold the next record is zero-filled.
"""
import struct
import sys
from dataclasses import dataclass
from typing import BinaryIO, Set

from .constants import (
    SECTOR_SIZE, PRIMARY_VOLUME_DESCRIPTOR_OFFSET,
    ISO9660_IDENTIFIER, ISO9660_IDENTIFIER_OFFSET,
    ROOT_DIRECTORY_RECORD_OFFSET, DIRECTORY_RECORD_HEADER_SIZE,
    DR_LENGTH, DR_EXTENT_LOCATION, DR_DATA_LENGTH, DR_FILE_FLAGS,
    DR_NAME_LENGTH, DR_NAME, FILE_FLAG_DIRECTORY,
    NAME_SELF, NAME_PARENT, VERSION_SEPARATOR, DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT,
)
from .errors import (
    ExtentReadError, IoError, MalformedRecord, NotThisFormat, SignatureReadError,
)
from .image import read_exact, read_sectors
from .tree import TreeNode


def log(msg):
    print(f"[ISO9660] {msg}", file=sys.stderr, flush=True)


@dataclass
class DirectoryRecord:
    """One decoded directory record."""
    record_length: int
    extent_location: int
    data_length: int
    is_directory: bool
    filename: str

    @property
    def is_special(self) -> bool:
        """True for the self (".") and parent ("..") entries."""
        return self.filename in ('.', '..')


def decode_filename(raw: bytes) -> str:
    """
    Normalize a raw file identifier.

    Identifiers 0x00 and 0x01 name the directory itself and its parent.
    Everything else is decoded lossily, the ";<version>" suffix is
    dropped along with the dot an extensionless name leaves behind, and
    the result is lowercased.
    """
    if len(raw) == 0 or raw == NAME_SELF:
        return '.'
    if raw == NAME_PARENT:
        return '..'

    name = raw.decode('utf-8', errors='replace')
    base, sep, version = name.rpartition(VERSION_SEPARATOR)
    if sep and base and version.isdigit():
        name = base
        if name.endswith('.') and len(name) > 1:
            name = name[:-1]
    return name.lower()


def parse_directory_record(data: bytes) -> DirectoryRecord:
    """
    Decode the directory record at the start of `data`.

    Raises:
        MalformedRecord: if the fixed header is incomplete, the record
            length is 0, or the identifier runs past the window.
    """
    if len(data) < DIRECTORY_RECORD_HEADER_SIZE:
        raise MalformedRecord(f"Directory record too short ({len(data)} bytes)")

    record_length = data[DR_LENGTH]
    if record_length == 0:
        raise MalformedRecord("Zero-length directory record")

    extent_location = struct.unpack_from('<I', data, DR_EXTENT_LOCATION)[0]
    data_length = struct.unpack_from('<I', data, DR_DATA_LENGTH)[0]
    file_flags = data[DR_FILE_FLAGS]
    name_length = data[DR_NAME_LENGTH]

    if DR_NAME + name_length > len(data):
        raise MalformedRecord(
            f"File identifier ({name_length} bytes) runs past end of buffer")

    filename = decode_filename(bytes(data[DR_NAME:DR_NAME + name_length]))

    return DirectoryRecord(
        record_length=record_length,
        extent_location=extent_location,
        data_length=data_length,
        is_directory=bool(file_flags & FILE_FLAG_DIRECTORY),
        filename=filename,
    )


class DirectoryWalker:
    """Populates tree nodes from directory extents.

    Each sub-directory's extent is fetched fresh from the image. Walking
    stops descending at `max_depth`, and an extent is walked at most once
    per tree, so records that share or point back at an extent cannot
    multiply the work.
    """

    def __init__(self, image: BinaryIO, max_depth: int = DEFAULT_MAX_DEPTH):
        self.image = image
        self.max_depth = max(0, min(max_depth, MAX_DEPTH_LIMIT))
        self.records_skipped = 0
        self._visited: Set[int] = set()

    def read_extent(self, record: DirectoryRecord) -> bytes:
        """Fetch the raw bytes of a directory extent."""
        try:
            return read_sectors(self.image, record.extent_location,
                                record.data_length, SECTOR_SIZE)
        except IoError as e:
            raise ExtentReadError(record.extent_location, record.data_length) from e

    def walk(self, record: DirectoryRecord, parent: TreeNode, depth: int = 0):
        """
        Add every entry of the directory described by `record` to `parent`.

        Raises:
            ExtentReadError: if this directory's own extent cannot be read.
                Failures in sub-directories are contained and logged.
        """
        if not record.is_directory or record.data_length == 0:
            return

        self._visited.add(record.extent_location)
        buffer = self.read_extent(record)
        self._scan(buffer, parent, depth)

    def _scan(self, buffer: bytes, parent: TreeNode, depth: int):
        offset = 0
        end = len(buffer)
        while offset < end:
            record_length = buffer[offset]
            if record_length == 0:
                # Padding up to the next sector boundary
                offset += 1
                continue

            if offset + record_length > end:
                log(f"Record at offset {offset} overruns directory extent "
                    f"({record_length} > {end - offset} bytes), stopping")
                break

            try:
                entry = parse_directory_record(buffer[offset:offset + record_length])
            except MalformedRecord as e:
                self.records_skipped += 1
                log(f"Skipping record at offset {offset}: {e}")
            else:
                if not entry.is_special:
                    self._add_entry(entry, parent, depth)

            offset += record_length

    def _add_entry(self, entry: DirectoryRecord, parent: TreeNode, depth: int):
        if not entry.is_directory:
            parent.add_child(TreeNode.new_file_with_location(
                entry.filename,
                entry.data_length,
                entry.extent_location * SECTOR_SIZE,
                entry.data_length,
            ))
            return

        child = TreeNode.new_directory(entry.filename)
        if depth + 1 > self.max_depth:
            log(f"Directory {entry.filename!r} exceeds depth limit {self.max_depth}, "
                f"not descending")
        elif entry.extent_location in self._visited:
            log(f"Directory {entry.filename!r} reuses extent at LBA "
                f"{entry.extent_location}, not descending")
        else:
            try:
                self.walk(entry, child, depth + 1)
            except ExtentReadError as e:
                log(f"Directory {entry.filename!r}: {e}")
        parent.add_child(child)


def read_primary_volume_descriptor(image: BinaryIO) -> bytes:
    """Read and validate the primary volume descriptor sector."""
    try:
        sector = read_exact(image, PRIMARY_VOLUME_DESCRIPTOR_OFFSET, SECTOR_SIZE)
    except IoError as e:
        raise SignatureReadError(f"No primary volume descriptor: {e}") from e

    ident = sector[ISO9660_IDENTIFIER_OFFSET:ISO9660_IDENTIFIER_OFFSET + len(ISO9660_IDENTIFIER)]
    if ident != ISO9660_IDENTIFIER:
        raise NotThisFormat("Not a valid ISO 9660 filesystem")
    return sector


def parse_iso9660(image: BinaryIO, max_depth: int = DEFAULT_MAX_DEPTH) -> TreeNode:
    """
    Build the full directory tree of an ISO 9660 image.

    Args:
        image: Seekable binary file object positioned anywhere
        max_depth: Deepest directory level whose extent is read

    Returns:
        The root node "/", with directory sizes aggregated

    Raises:
        SignatureReadError: if the image is too short to hold a descriptor
        ExtentReadError: if the root extent cannot be read
        NotThisFormat: if the CD001 identifier or root record is missing
    """
    sector = read_primary_volume_descriptor(image)

    try:
        root_record = parse_directory_record(sector[ROOT_DIRECTORY_RECORD_OFFSET:])
    except MalformedRecord as e:
        raise NotThisFormat(f"Bad root directory record: {e}") from e

    root = TreeNode.new_directory('/')
    walker = DirectoryWalker(image, max_depth=max_depth)
    walker.walk(root_record, root)

    root.calculate_directory_size()
    return root


class Iso9660Parser:
    """Detector entry for ISO 9660 images."""

    name = 'iso9660'

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    def parse(self, image: BinaryIO):
        from .detect import ParseResult

        root = parse_iso9660(image, max_depth=self.max_depth)
        return ParseResult(root=root, filesystem=self.name, degraded=False)
