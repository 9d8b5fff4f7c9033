"""MPQ format constants."""

from enum import IntEnum, IntFlag

MPQ_SIGNATURE = b"MPQ"
MPQ_HEADER_MAGIC = b"MPQ\x1a"
MPQ_USER_DATA_MAGIC = b"MPQ\x1b"
WC3_MAP_MAGIC = b"HM3W"

HEADER_DISCRIMINATOR = 0x1A
USER_DATA_DISCRIMINATOR = 0x1B

# Smallest header a v1 archive can carry
MPQ_HEADER_SIZE_V1 = 0x20

# Header search stops after 128 MiB
MAX_HEADER_SCAN = 0x08000000

# Table sizes and offsets are masked to this width to bound memory
BLOCK_INDEX_MASK = 0x0FFFFFFF

HASH_ENTRY_EMPTY = 0xFFFFFFFF
HASH_ENTRY_DELETED = 0xFFFFFFFE

SECTOR_SIZE_BASE = 512

HASH_TABLE_NAME = "(hash table)"
BLOCK_TABLE_NAME = "(block table)"
LISTFILE_NAME = "(listfile)"


class HashType(IntEnum):
    """Selects the crypt table slice used by hash_string."""

    TABLE_OFFSET = 0
    NAME_A = 1
    NAME_B = 2
    FILE_KEY = 3


class BlockFlags(IntFlag):
    """Block table entry flags."""

    IMPLODED = 0x00000100
    COMPRESSED = 0x00000200
    ENCRYPTED = 0x00010000
    FIX_KEY = 0x00020000
    SINGLE_UNIT = 0x01000000
    DELETED = 0x02000000
    CHECKSUMS = 0x04000000
    FILE = 0x80000000


class CompressionType(IntEnum):
    """First byte of a compressed sector."""

    HUFFMAN = 0x01
    DEFLATE = 0x02
    IMPLODE = 0x08
    BZIP2 = 0x10
