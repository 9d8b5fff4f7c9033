"""Find a member file's block table entry from its name."""

import logging
from typing import Optional, Sequence

from ..utils.binary import BinaryReader
from .constants import BLOCK_INDEX_MASK, HashType
from .crypto import hash_string
from .header import FileInfo, HashEntry
from .tables import decode_block_entry

logger = logging.getLogger(__name__)


def probe_hash_table(hash_table: Sequence[HashEntry], name: str) -> Optional[HashEntry]:
    """Walk the hash table from the name's home slot until a hit or a stop.

    EMPTY and DELETED slots both end the walk, and so does wrapping back to
    the home slot.
    """
    size = len(hash_table)
    if size == 0:
        return None

    hash_a = hash_string(name, HashType.NAME_A)
    hash_b = hash_string(name, HashType.NAME_B)
    start = hash_string(name, HashType.TABLE_OFFSET) & (size - 1)

    index = start
    while True:
        entry = hash_table[index]
        if entry.ends_probe:
            return None
        if entry.matches(hash_a, hash_b):
            return entry

        index = (index + 1) % size
        if index == start:
            return None


class FileResolver:
    """Resolves names against a decoded hash table and the on-disk block table."""

    def __init__(
        self,
        reader: BinaryReader,
        hash_table: Sequence[HashEntry],
        block_table_offset: int,
        block_table_size: int,
    ):
        self._reader = reader
        self._hash_table = hash_table
        self._block_table_offset = block_table_offset
        self._block_table_size = block_table_size

    def locate(self, name: str) -> Optional[FileInfo]:
        entry = probe_hash_table(self._hash_table, name)
        if entry is None:
            logger.debug("Did not find file %s in the archive", name)
            return None

        block_index = entry.block_index & BLOCK_INDEX_MASK
        if block_index >= self._block_table_size:
            logger.debug(
                "Block index %d of %s is outside the block table (%d entries)",
                block_index,
                name,
                self._block_table_size,
            )
            return None

        block = decode_block_entry(self._reader, self._block_table_offset, block_index)
        return FileInfo.from_block(block_index, block)
