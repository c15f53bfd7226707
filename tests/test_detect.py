"""Test filesystem detection order and the degraded ext2 fallback."""

import io
import os
import sys

import pytest

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from isomage.detect import (
    FilesystemDetector, ParseResult, default_parsers, detect_and_parse_filesystem,
)
from isomage.errors import (
    ExtentReadError, IoError, NotThisFormat, SignatureReadError, UnsupportedFormat,
)
from isomage.ext2 import Ext2Parser, parse_ext2
from isomage.iso9660 import Iso9660Parser
from isomage.tree import TreeNode
from iso_builder import SECTOR_SIZE, IsoBuilder, make_ext2_image, root_extent


class AlwaysSucceeds:
    """Stand-in parser that accepts anything."""
    name = 'always'

    def __init__(self):
        self.calls = 0

    def parse(self, image):
        self.calls += 1
        root = TreeNode.new_directory('/')
        root.add_child(TreeNode.new_directory('placeholder'))
        return ParseResult(root=root, filesystem=self.name, degraded=True)


def test_default_order():
    parsers = default_parsers()
    assert [p.name for p in parsers] == ['iso9660', 'ext2']
    assert isinstance(parsers[0], Iso9660Parser)
    assert isinstance(parsers[1], Ext2Parser)


def test_iso_detected_before_fallback():
    image = IsoBuilder().add_file('HELLO.TXT;1', b'hello').build()
    fallback = AlwaysSucceeds()
    detector = FilesystemDetector([Iso9660Parser(), fallback])

    result = detector.detect(io.BytesIO(image), 'hello.iso')
    assert result.filesystem == 'iso9660'
    assert result.degraded is False
    assert [c.name for c in result.root.children] == ['hello.txt']
    assert fallback.calls == 0


def test_fallback_used_when_iso_declines():
    fallback = AlwaysSucceeds()
    detector = FilesystemDetector([Iso9660Parser()])
    detector.register(fallback)

    result = detector.detect(io.BytesIO(b'\x00' * 40000), 'blank.img')
    assert result.filesystem == 'always'
    assert result.degraded is True
    assert fallback.calls == 1


def test_ext2_result_is_degraded():
    result = detect_and_parse_filesystem(io.BytesIO(make_ext2_image()), 'disk.img')
    assert result.filesystem == 'ext2'
    assert result.degraded is True
    assert [c.name for c in result.root.children] == ['lost+found', 'test', 'readme.txt']
    assert result.root.size == 512
    assert not result.root.find_node('readme.txt').has_location


def test_ext2_without_group_descriptor():
    # Superblock present, but the image ends before the group descriptor
    image = make_ext2_image(size=2048)
    root = parse_ext2(io.BytesIO(image))
    assert [c.name for c in root.children] == ['bin', 'etc', 'usr']


def test_ext2_rejects_bad_magic():
    with pytest.raises(NotThisFormat):
        parse_ext2(io.BytesIO(b'\x00' * 4096))


def test_ext2_short_image():
    with pytest.raises(IoError):
        parse_ext2(io.BytesIO(b'\x00' * 1500))


def test_unsupported_format_names_input():
    with pytest.raises(UnsupportedFormat) as excinfo:
        detect_and_parse_filesystem(io.BytesIO(b'\x00' * 40000), 'mystery.bin')
    assert excinfo.value.filename == 'mystery.bin'
    assert 'mystery.bin' in str(excinfo.value)


def test_detection_independent_of_read_position():
    image = io.BytesIO(IsoBuilder().add_file('A.TXT;1', b'a').build())
    image.seek(12345)
    result = detect_and_parse_filesystem(image, 'a.iso')
    assert result.root.find_node('a.txt') is not None


def test_truncated_root_extent_is_reported():
    image = IsoBuilder().add_file('A.TXT;1', b'a').build()
    lba, _ = root_extent(image)
    cut = io.BytesIO(image[:lba * SECTOR_SIZE + 100])

    with pytest.raises(ExtentReadError) as excinfo:
        detect_and_parse_filesystem(cut, 'cut.iso')
    assert not isinstance(excinfo.value, UnsupportedFormat)
    assert excinfo.value.location == lba


def test_short_image_declined_not_failed():
    # Too small for either signature region, so both parsers decline
    with pytest.raises(UnsupportedFormat):
        detect_and_parse_filesystem(io.BytesIO(b'\x00' * 1500), 'tiny.img')


def test_signature_read_error_is_an_io_error_and_a_decline():
    with pytest.raises(SignatureReadError) as excinfo:
        parse_ext2(io.BytesIO(b'\x00' * 100))
    assert isinstance(excinfo.value, IoError)
    assert isinstance(excinfo.value, NotThisFormat)
