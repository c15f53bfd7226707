"""Test extraction of files and directories to local storage."""

import io
import os
import sys

import pytest

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from isomage.detect import detect_and_parse_filesystem
from isomage.errors import IoError, MissingExtentMetadata, PathNotFound
from isomage.extract import extract_node, extract_path
from isomage.iso9660 import parse_iso9660
from isomage.tree import TreeNode
from iso_builder import IsoBuilder, make_ext2_image


def build_sample() -> bytes:
    return (IsoBuilder()
            .add_file('HELLO.TXT;1', b'hello')
            .add_dir('DOCS')
            .add_file('DOCS/GUIDE.TXT;1', b'read me first\n')
            .add_dir('DOCS/IMAGES')
            .add_file('DOCS/IMAGES/LOGO.BIN;1', bytes(range(256)) * 10)
            .build())


def test_extract_single_file(tmp_path, capsys):
    image = io.BytesIO(build_sample())
    root = parse_iso9660(image)

    written = extract_path(image, root, 'hello.txt', str(tmp_path))

    target = tmp_path / 'hello.txt'
    assert written == 5
    assert target.read_bytes() == b'hello'
    assert 'Extracted:' in capsys.readouterr().out


def test_extract_directory_tree(tmp_path, capsys):
    image = io.BytesIO(build_sample())
    root = parse_iso9660(image)

    extract_path(image, root, 'docs', str(tmp_path))

    assert (tmp_path / 'docs' / 'guide.txt').read_bytes() == b'read me first\n'
    assert (tmp_path / 'docs' / 'images' / 'logo.bin').read_bytes() == bytes(range(256)) * 10

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 4  # two directories, two files
    assert sum(1 for l in lines if l.startswith('Created directory:')) == 2


def test_extract_root_writes_into_destination(tmp_path):
    image = io.BytesIO(build_sample())
    root = parse_iso9660(image)

    extract_node(image, root, str(tmp_path))

    assert (tmp_path / 'hello.txt').read_bytes() == b'hello'
    assert (tmp_path / 'docs' / 'images').is_dir()


def test_unknown_path(tmp_path):
    image = io.BytesIO(build_sample())
    root = parse_iso9660(image)
    with pytest.raises(PathNotFound) as excinfo:
        extract_path(image, root, 'docs/nothing.txt', str(tmp_path))
    assert excinfo.value.path == 'docs/nothing.txt'


def test_placeholder_files_cannot_be_extracted(tmp_path):
    image = io.BytesIO(make_ext2_image())
    result = detect_and_parse_filesystem(image, 'disk.img')
    assert result.degraded

    with pytest.raises(MissingExtentMetadata):
        extract_path(image, result.root, 'readme.txt', str(tmp_path))
    assert not (tmp_path / 'readme.txt').exists()


def test_extent_past_end_of_image(tmp_path):
    node = TreeNode.new_file_with_location('ghost.bin', 100, 10 ** 9, 100)
    with pytest.raises(IoError):
        extract_node(io.BytesIO(b'\x00' * 4096), node, str(tmp_path))


def test_unsafe_names_refused(tmp_path):
    node = TreeNode.new_file_with_location('../escape.txt', 1, 0, 1)
    with pytest.raises(IoError):
        extract_node(io.BytesIO(b'x'), node, str(tmp_path))
