"""Copy files and directories out of an image onto local storage."""
import os
from typing import BinaryIO

from .errors import IoError, MissingExtentMetadata, PathNotFound
from .image import read_exact
from .tree import TreeNode


def _safe_join(dest: str, name: str) -> str:
    if name in ('', '.', '..') or '/' in name or os.sep in name:
        raise IoError(f"Refusing to write entry with unsafe name {name!r}")
    return os.path.join(dest, name)


def extract_node(image: BinaryIO, node: TreeNode, dest: str) -> int:
    """
    Write `node` (and everything below it) under directory `dest`.

    The root node "/" has no name of its own, so its children are
    written straight into `dest`. One line is printed per created
    file or directory.

    Returns:
        Number of file bytes written

    Raises:
        MissingExtentMetadata: if a file node carries no extent
        IoError: if reading the image or writing the output fails
    """
    if node.is_directory:
        if node.name == '/':
            target = dest
        else:
            target = _safe_join(dest, node.name)
        try:
            os.makedirs(target, exist_ok=True)
        except OSError as e:
            raise IoError(f"Cannot create directory {target}: {e}") from e
        print(f"Created directory: {target}", flush=True)

        written = 0
        for child in node.children:
            written += extract_node(image, child, target)
        return written

    if not node.has_location:
        raise MissingExtentMetadata(node.name)

    data = read_exact(image, node.file_location, node.file_length)
    target = _safe_join(dest, node.name)
    try:
        with open(target, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise IoError(f"Cannot write {target}: {e}") from e
    print(f"Extracted: {target} ({len(data)} bytes)", flush=True)
    return len(data)


def extract_path(image: BinaryIO, root: TreeNode, path: str, dest: str) -> int:
    """Resolve `path` in the tree rooted at `root` and extract it to `dest`."""
    node = root.find_node(path)
    if node is None:
        raise PathNotFound(path)
    return extract_node(image, node, dest)
