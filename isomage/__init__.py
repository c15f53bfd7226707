# isomage
# Reads ISO 9660 disk images into a directory tree and extracts their files

from .tree import TreeNode
from .detect import FilesystemDetector, ParseResult, detect_and_parse_filesystem
from .iso9660 import parse_iso9660
from .extract import extract_node, extract_path

__all__ = ['TreeNode', 'FilesystemDetector', 'ParseResult',
           'detect_and_parse_filesystem', 'parse_iso9660',
           'extract_node', 'extract_path']
