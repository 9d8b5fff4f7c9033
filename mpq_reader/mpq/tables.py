"""Hash table and block table decoding.

Both tables are stored as encrypted little-endian words. Decryption chains its
seed through every word, so a table can only be decoded from its first entry
onward; a request for entry N always reads and decrypts entries 0..N.
"""

import logging
from typing import List

from ..utils.binary import BinaryReader
from .constants import BLOCK_TABLE_NAME, HASH_TABLE_NAME, HashType
from .crypto import decrypt, hash_string
from .header import BlockEntry, HashEntry

logger = logging.getLogger(__name__)

WORDS_PER_ENTRY = 4

HASH_TABLE_KEY = hash_string(HASH_TABLE_NAME, HashType.FILE_KEY)
BLOCK_TABLE_KEY = hash_string(BLOCK_TABLE_NAME, HashType.FILE_KEY)


def read_table_words(reader: BinaryReader, offset: int, word_count: int, key: int) -> List[int]:
    """Read word_count encrypted words at offset and decrypt them."""
    reader.seek(offset)
    return decrypt(reader.read_words(word_count), key)


def _chunk(words: List[int]) -> List[List[int]]:
    return [words[i : i + WORDS_PER_ENTRY] for i in range(0, len(words), WORDS_PER_ENTRY)]


def decode_hash_table(reader: BinaryReader, offset: int, entry_count: int) -> List[HashEntry]:
    """Decode the whole hash table."""
    words = read_table_words(reader, offset, entry_count * WORDS_PER_ENTRY, HASH_TABLE_KEY)
    logger.debug("Decoded %d hash table entries at %08X", entry_count, offset)
    return [HashEntry.from_words(chunk) for chunk in _chunk(words)]


def decode_block_table(reader: BinaryReader, offset: int, entry_count: int) -> List[BlockEntry]:
    """Decode the first entry_count block table entries."""
    words = read_table_words(reader, offset, entry_count * WORDS_PER_ENTRY, BLOCK_TABLE_KEY)
    return [BlockEntry.from_words(chunk) for chunk in _chunk(words)]


def decode_block_entry(reader: BinaryReader, offset: int, index: int) -> BlockEntry:
    """Decode block table entries 0..index and return the last one."""
    return decode_block_table(reader, offset, index + 1)[index]
