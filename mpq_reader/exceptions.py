"""Exceptions raised while opening and reading MPQ archives.

Everything derives from MPQError so callers can catch a single type.
"""


class MPQError(Exception):
    """Base class for archive errors."""


class ArchiveNotFoundError(MPQError, FileNotFoundError):
    """The archive path does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"{path} doesn't exist")


class ArchiveTooSmallError(MPQError):
    """The file is shorter than the smallest possible MPQ header."""

    def __init__(self, path, size: int):
        self.path = path
        self.size = size
        super().__init__(f"{path} is too small ({size} bytes)")


class HeaderNotFoundError(MPQError):
    """The bounded header scan found no acceptable MPQ header."""


class NotInitializedError(MPQError):
    """The archive is closed or was never opened successfully."""


class FileNotInArchiveError(MPQError, KeyError):
    """The hash table has no entry for the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Did not find file {name} in the archive")

    def __str__(self) -> str:
        return self.args[0]


class UnsupportedFlagsError(MPQError):
    """The block entry does not describe a stored file."""

    def __init__(self, name: str, flags: int):
        self.name = name
        self.flags = flags
        super().__init__(f"{name} has unsupported block flags {flags:08X}")


class SizeMismatchError(MPQError):
    """Extracted data does not match the size recorded in the block table.

    data holds whatever was extracted, so callers can still inspect it.
    """

    def __init__(self, name: str, expected: int, actual: int, data: bytes = b""):
        self.name = name
        self.expected = expected
        self.actual = actual
        self.data = data
        super().__init__(
            f"Decrypted/uncompressed size of {name} ({actual}) "
            f"does not match original file size ({expected})"
        )


class ShortReadError(MPQError, EOFError):
    """The stream ended in the middle of a structure."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} bytes, got {actual}")
