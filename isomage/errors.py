"""Exceptions raised while reading, parsing and extracting disk images."""


class IsomageError(Exception):
    """Base class for all isomage errors."""


class IoError(IsomageError, OSError):
    """A seek, read or write on the image or destination failed."""


class ExtentReadError(IoError):
    """A directory extent could not be read in full."""

    def __init__(self, location: int, length: int):
        self.location = location
        self.length = length
        super().__init__(f"Could not read {length} bytes of directory extent at LBA {location}")


class NotThisFormat(IsomageError):
    """The image does not carry this parser's signature."""


class SignatureReadError(IoError, NotThisFormat):
    """The image is too short to hold the region a signature lives in."""


class MalformedRecord(IsomageError, ValueError):
    """A single directory record could not be decoded."""


class UnsupportedFormat(IsomageError):
    """No registered parser recognized the image."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Unable to detect supported filesystem in {filename}")


class PathNotFound(IsomageError, LookupError):
    """A path did not resolve to any node in the tree."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Path not found in image: {path}")


class MissingExtentMetadata(IsomageError):
    """A file node has no extent to extract from."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"File has no location information: {name}")
