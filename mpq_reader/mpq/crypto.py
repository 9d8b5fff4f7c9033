"""MPQ stream cipher and string hash.

The crypt table is 0x500 32-bit values generated by a small linear
congruential generator. It is split into five 0x100-entry slices: four keyed
by HashType for hash_string, and the last one feeding the decrypt key stream.
"""

import functools
from typing import Iterable, List, Sequence, Tuple, Union

from ..utils.binary import pack_words, unpack_words
from .constants import HashType

MASK_32 = 0xFFFFFFFF
CRYPT_TABLE_SIZE = 0x500

_CRYPT_SEED = 0x00100001
_HASH_SEED1 = 0x7FED7FED
_HASH_SEED2 = 0xEEEEEEEE
_DECRYPT_SEED = 0xEEEEEEEE
_KEY_STREAM_OFFSET = 0x400


@functools.lru_cache(maxsize=None)
def build_crypt_table() -> Tuple[int, ...]:
    """Generate the crypt table (computed once per process)."""
    table = [0] * CRYPT_TABLE_SIZE
    seed = _CRYPT_SEED

    for base in range(0x100):
        index = base
        for _ in range(5):
            seed = (seed * 125 + 3) % 0x2AAAAB
            high = (seed & 0xFFFF) << 16

            seed = (seed * 125 + 3) % 0x2AAAAB
            low = seed & 0xFFFF

            table[index] = high | low
            index += 0x100

    return tuple(table)


CRYPT_TABLE = build_crypt_table()


def hash_string(
    text: Union[str, bytes], hash_type: HashType, table: Sequence[int] = CRYPT_TABLE
) -> int:
    """Hash a file name the way MPQ does.

    Names are hashed over their UTF-8 bytes; only ASCII letters fold case.
    """
    if isinstance(text, str):
        text = text.encode("utf-8")

    seed1 = _HASH_SEED1
    seed2 = _HASH_SEED2
    offset = int(hash_type) << 8

    for ch in text.upper():
        seed1 = (table[offset + ch] ^ (seed1 + seed2)) & MASK_32
        seed2 = (ch + seed1 + seed2 + (seed2 << 5) + 3) & MASK_32

    return seed1


def _next_key(key: int) -> int:
    return (((~key << 21) + 0x11111111) | (key >> 11)) & MASK_32


def decrypt(words: Iterable[int], key: int, table: Sequence[int] = CRYPT_TABLE) -> List[int]:
    """Decrypt a sequence of 32-bit words."""
    key &= MASK_32
    seed = _DECRYPT_SEED
    result = []

    for word in words:
        seed = (seed + table[_KEY_STREAM_OFFSET + (key & 0xFF)]) & MASK_32
        value = (word ^ (key + seed)) & MASK_32
        result.append(value)

        key = _next_key(key)
        seed = (value + seed + (seed << 5) + 3) & MASK_32

    return result


def encrypt(words: Iterable[int], key: int, table: Sequence[int] = CRYPT_TABLE) -> List[int]:
    """Inverse of decrypt: the seed is chained on the plaintext word."""
    key &= MASK_32
    seed = _DECRYPT_SEED
    result = []

    for word in words:
        seed = (seed + table[_KEY_STREAM_OFFSET + (key & 0xFF)]) & MASK_32
        result.append((word ^ (key + seed)) & MASK_32)

        key = _next_key(key)
        seed = (word + seed + (seed << 5) + 3) & MASK_32

    return result


def decrypt_bytes(data: bytes, key: int, table: Sequence[int] = CRYPT_TABLE) -> bytes:
    """Decrypt the whole little-endian words of data; trailing bytes are dropped."""
    return pack_words(decrypt(unpack_words(data), key, table))


def encrypt_bytes(data: bytes, key: int, table: Sequence[int] = CRYPT_TABLE) -> bytes:
    """Encrypt the whole little-endian words of data; trailing bytes are dropped."""
    return pack_words(encrypt(unpack_words(data), key, table))
