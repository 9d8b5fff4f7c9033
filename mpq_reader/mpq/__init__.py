"""MPQ archive engine."""

from .constants import BlockFlags, CompressionType, HashType
from .header import ArchiveType, BlockEntry, FileInfo, HashEntry, MPQHeader
from .reader import MPQArchive

__all__ = [
    "ArchiveType",
    "BlockEntry",
    "BlockFlags",
    "CompressionType",
    "FileInfo",
    "HashEntry",
    "HashType",
    "MPQArchive",
    "MPQHeader",
]
