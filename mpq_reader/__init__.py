"""MPQ Reader - Read Blizzard MPQ archives (Warcraft III and StarCraft II maps)."""

__version__ = "0.1.0"

from .exceptions import (
    ArchiveNotFoundError,
    ArchiveTooSmallError,
    FileNotInArchiveError,
    HeaderNotFoundError,
    MPQError,
    NotInitializedError,
    ShortReadError,
    SizeMismatchError,
    UnsupportedFlagsError,
)
from .mpq import ArchiveType, FileInfo, MPQArchive

__all__ = [
    "__version__",
    "ArchiveNotFoundError",
    "ArchiveTooSmallError",
    "ArchiveType",
    "FileInfo",
    "FileNotInArchiveError",
    "HeaderNotFoundError",
    "MPQArchive",
    "MPQError",
    "NotInitializedError",
    "ShortReadError",
    "SizeMismatchError",
    "UnsupportedFlagsError",
]
