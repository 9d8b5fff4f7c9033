"""MPQ header and table structures."""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Union

from ..formats.maps import SC2MapInfo, WC3CampaignInfo, WC3MapInfo
from .constants import (
    HASH_ENTRY_DELETED,
    HASH_ENTRY_EMPTY,
    MPQ_HEADER_SIZE_V1,
    SECTOR_SIZE_BASE,
    BlockFlags,
)


class ArchiveType(IntEnum):
    """What kind of archive the header scan (and later lookups) found."""

    DEFAULT = 0
    WC3_MAP = 1
    SC2_MAP = 2
    WC3_CAMPAIGN = 3


@dataclass(frozen=True)
class MPQHeader:
    """Canonical MPQ header (v1 layout, 32 bytes)."""

    header_offset: int  # Absolute position of the "MPQ\x1a" magic
    header_size: int  # 4 bytes
    archive_size: int  # 4 bytes
    format_version: int  # 2 bytes
    sector_size_shift: int  # 2 bytes
    hash_table_offset: int  # 4 bytes, stored relative to the header, kept absolute here
    block_table_offset: int  # 4 bytes, same
    hash_table_size: int  # 4 bytes: entry count
    block_table_size: int  # 4 bytes: entry count

    @property
    def sector_size(self) -> int:
        return SECTOR_SIZE_BASE << self.sector_size_shift

    def is_valid(self, filesize: int) -> bool:
        """Both tables lie inside the file and the header is at least v1 sized."""
        return (
            0 < self.hash_table_offset <= filesize
            and 0 < self.block_table_offset <= filesize
            and self.header_size >= MPQ_HEADER_SIZE_V1
        )


@dataclass(frozen=True)
class UserDataHeader:
    """StarCraft II user data block preceding the real header."""

    offset: int
    max_size: int
    header_offset: int
    data_size: int


@dataclass(frozen=True)
class HashEntry:
    """Hash table slot (16 bytes)."""

    hash_a: int
    hash_b: int
    locale: int
    platform: int
    block_index: int

    @classmethod
    def from_words(cls, words: List[int]) -> "HashEntry":
        hash_a, hash_b, locale_platform, block_index = words
        return cls(
            hash_a=hash_a,
            hash_b=hash_b,
            locale=locale_platform & 0xFFFF,
            platform=locale_platform >> 16,
            block_index=block_index,
        )

    @property
    def is_empty(self) -> bool:
        return self.block_index == HASH_ENTRY_EMPTY

    @property
    def is_deleted(self) -> bool:
        return self.block_index == HASH_ENTRY_DELETED

    @property
    def ends_probe(self) -> bool:
        return self.is_empty or self.is_deleted

    def matches(self, hash_a: int, hash_b: int) -> bool:
        return self.hash_a == hash_a and self.hash_b == hash_b


@dataclass(frozen=True)
class BlockEntry:
    """Block table record (16 bytes)."""

    file_offset: int  # Relative to the header offset
    compressed_size: int
    uncompressed_size: int
    flags: int

    @classmethod
    def from_words(cls, words: List[int]) -> "BlockEntry":
        return cls(*words)


@dataclass(frozen=True)
class FileInfo:
    """A resolved member file: its block index plus the block record."""

    block_index: int
    file_offset: int
    compressed_size: int
    uncompressed_size: int
    flags: int

    @classmethod
    def from_block(cls, block_index: int, block: BlockEntry) -> "FileInfo":
        return cls(
            block_index=block_index,
            file_offset=block.file_offset,
            compressed_size=block.compressed_size,
            uncompressed_size=block.uncompressed_size,
            flags=block.flags,
        )

    def has_flag(self, flag: BlockFlags) -> bool:
        return bool(self.flags & flag)

    @property
    def exists(self) -> bool:
        return self.has_flag(BlockFlags.FILE)

    @property
    def is_encrypted(self) -> bool:
        return self.has_flag(BlockFlags.ENCRYPTED)

    @property
    def is_compressed(self) -> bool:
        return self.has_flag(BlockFlags.COMPRESSED)

    @property
    def is_single_unit(self) -> bool:
        return self.has_flag(BlockFlags.SINGLE_UNIT)

    @property
    def has_checksums(self) -> bool:
        return self.has_flag(BlockFlags.CHECKSUMS)

    @property
    def uses_fix_key(self) -> bool:
        return self.has_flag(BlockFlags.FIX_KEY)


GameData = Union[WC3MapInfo, WC3CampaignInfo, SC2MapInfo]


@dataclass(frozen=True)
class LocatedHeader:
    """Result of the header scan: the header plus how the archive was classified."""

    header: MPQHeader
    archive_type: ArchiveType = ArchiveType.DEFAULT
    game_data: Optional[GameData] = None
    user_data: Optional[UserDataHeader] = None
