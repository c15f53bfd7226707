"""Filesystem detection.

Parsers are tried in registration order against the same image. Each
one seeks before every read, so a parser that declines never disturbs
the next one.
"""
import sys
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

from .constants import DEFAULT_MAX_DEPTH
from .errors import NotThisFormat, UnsupportedFormat
from .tree import TreeNode


def log(msg):
    print(f"[Detect] {msg}", file=sys.stderr, flush=True)


@dataclass
class ParseResult:
    """Tree produced by a parser.

    `degraded` marks a placeholder tree that was not decoded from
    on-disk structures.
    """
    root: TreeNode
    filesystem: str
    degraded: bool = False


def default_parsers(max_depth: int = DEFAULT_MAX_DEPTH) -> list:
    """ISO 9660 first, then the ext2 fallback."""
    from .ext2 import Ext2Parser
    from .iso9660 import Iso9660Parser

    return [Iso9660Parser(max_depth=max_depth), Ext2Parser()]


class FilesystemDetector:
    """Tries an ordered list of parsers and returns the first success."""

    def __init__(self, parsers: Optional[list] = None):
        self.parsers: List = list(parsers) if parsers is not None else default_parsers()

    def register(self, parser):
        """Append a parser at the lowest priority."""
        self.parsers.append(parser)

    def detect(self, image: BinaryIO, filename: str) -> ParseResult:
        """
        Parse `image` with the first parser that recognizes it.

        A parser declines by raising NotThisFormat. Any other error comes
        from an image the parser did recognize and is passed through.

        Raises:
            UnsupportedFormat: if every parser declines
            IoError: if a recognized image cannot be read
        """
        for parser in self.parsers:
            try:
                result = parser.parse(image)
            except NotThisFormat as e:
                log(f"{parser.name}: {e}")
                continue
            if result.degraded:
                log(f"{parser.name}: degraded result for {filename}")
            return result

        raise UnsupportedFormat(filename)


def detect_and_parse_filesystem(image: BinaryIO, filename: str,
                                max_depth: int = DEFAULT_MAX_DEPTH) -> ParseResult:
    return FilesystemDetector(default_parsers(max_depth)).detect(image, filename)
