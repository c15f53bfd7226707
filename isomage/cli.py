"""Command-line front end.

Usage:
    isomage <image>                  list the directory tree
    isomage -x <path> <image>        extract <path> into the current directory
    isomage -x <path> -C out <image> extract <path> into ./out
"""
import argparse
import os
import sys

from .constants import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT
from .detect import detect_and_parse_filesystem
from .errors import IsomageError
from .extract import extract_path
from .tree import TreeNode

SIZE_UNITS = ('B', 'KB', 'MB', 'GB')


def log(msg):
    print(f"[isomage] {msg}", file=sys.stderr, flush=True)


def format_size(size: int) -> str:
    """Human-readable size using 1024-byte steps."""
    value = float(size)
    unit = 0
    while value >= 1024.0 and unit < len(SIZE_UNITS) - 1:
        value /= 1024.0
        unit += 1

    if unit == 0:
        return f"{size} {SIZE_UNITS[0]}"
    return f"{value:.1f} {SIZE_UNITS[unit]}"


def print_tree(node: TreeNode, out=None):
    out = out or sys.stdout
    for entry, depth in node.walk():
        marker = '📁 ' if entry.is_directory else '📄 '
        print(f"{'  ' * depth}{marker}{entry.name} ({format_size(entry.size)})", file=out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='isomage',
        description='List or extract the contents of an ISO 9660 disk image'
    )
    parser.add_argument('file', help='Path to the .iso or .img file')
    parser.add_argument('-x', '--extract', metavar='PATH',
                        help='Extract PATH (file or directory) from the image')
    parser.add_argument('-C', '--directory', default=os.curdir,
                        help='Directory to extract into (default: current directory)')
    parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_DEPTH,
                        help=f'Deepest directory level to read, 0-{MAX_DEPTH_LIMIT} '
                             f'(default: {DEFAULT_MAX_DEPTH})')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not 0 <= args.max_depth <= MAX_DEPTH_LIMIT:
        parser.error(f"--max-depth must be between 0 and {MAX_DEPTH_LIMIT}")

    try:
        with open(args.file, 'rb') as image:
            result = detect_and_parse_filesystem(image, args.file, max_depth=args.max_depth)
            if result.degraded:
                log(f"WARNING: {result.filesystem} support is limited; "
                    f"the tree below is a placeholder")

            if args.extract:
                written = extract_path(image, result.root, args.extract, args.directory)
                log(f"Done: {written} bytes extracted from {args.file}")
            else:
                print_tree(result.root)
                dirs, files = result.root.count()
                print(f"\n{dirs} directories, {files} files ({format_size(result.root.size)})")
    except IsomageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Failed to open file {args.file}: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
