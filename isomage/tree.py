"""In-memory directory tree reconstructed from an image."""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


@dataclass
class TreeNode:
    """A file or directory in the reconstructed tree.

    Directory sizes start at 0 and are filled in by
    calculate_directory_size() once the walk is complete. File nodes
    never have children.
    """
    name: str
    size: int = 0
    is_directory: bool = False
    children: List['TreeNode'] = field(default_factory=list)
    file_location: Optional[int] = None  # byte offset in the image
    file_length: Optional[int] = None

    @classmethod
    def new_file(cls, name: str, size: int) -> 'TreeNode':
        return cls(name=name, size=size, is_directory=False)

    @classmethod
    def new_file_with_location(cls, name: str, size: int,
                               location: int, length: int) -> 'TreeNode':
        return cls(name=name, size=size, is_directory=False,
                   file_location=location, file_length=length)

    @classmethod
    def new_directory(cls, name: str) -> 'TreeNode':
        return cls(name=name, size=0, is_directory=True)

    @property
    def has_location(self) -> bool:
        return self.file_location is not None and self.file_length is not None

    def add_child(self, child: 'TreeNode'):
        """Append a child node. Only directories may have children."""
        if not self.is_directory:
            raise ValueError(f"Cannot add child {child.name!r} to file {self.name!r}")
        self.children.append(child)

    def calculate_directory_size(self) -> int:
        """Set each directory's size to the sum of its children, bottom-up."""
        if self.is_directory:
            total = 0
            for child in self.children:
                total += child.calculate_directory_size()
            self.size = total
        return self.size

    def find_node(self, path: str) -> Optional['TreeNode']:
        """
        Resolve a slash-separated path relative to this node.

        Matching is exact and case-sensitive. An empty path (or "/")
        returns this node, as does a single segment equal to this
        node's own name.
        """
        path = path.lstrip('/')
        if not path:
            return self

        parts = [p for p in path.split('/') if p]
        if len(parts) == 1 and parts[0] == self.name:
            return self

        node = self
        for part in parts:
            for child in node.children:
                if child.name == part:
                    node = child
                    break
            else:
                return None
        return node

    def walk(self, depth: int = 0) -> Iterator[Tuple['TreeNode', int]]:
        """Yield (node, depth) pairs in pre-order."""
        yield self, depth
        for child in self.children:
            yield from child.walk(depth + 1)

    def count(self) -> Tuple[int, int]:
        """Return (directories, files) below and including this node."""
        dirs = files = 0
        for node, _ in self.walk():
            if node.is_directory:
                dirs += 1
            else:
                files += 1
        return dirs, files
