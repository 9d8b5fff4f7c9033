"""Member file extraction: sector table, decryption and decompression."""

import bz2
import logging
import math
import zlib
from typing import List, Optional

from ..exceptions import SizeMismatchError, UnsupportedFlagsError
from ..utils.binary import BinaryReader, pack_words, unpack_words
from .constants import CompressionType, HashType
from .crypto import MASK_32, decrypt, hash_string
from .header import FileInfo

logger = logging.getLogger(__name__)


def file_basename(name: str) -> str:
    """Strip the directory part of an archive path (either separator)."""
    return name.replace("\\", "/").rsplit("/", 1)[-1]


def file_key(name: str, info: FileInfo) -> int:
    """Encryption key of a member file, derived from its base name."""
    key = hash_string(file_basename(name), HashType.FILE_KEY)
    if info.uses_fix_key:
        key = ((key + info.file_offset) ^ info.uncompressed_size) & MASK_32
    return key


def inflate(data: bytes) -> Optional[bytes]:
    """Raw-inflate data; None unless a complete, non-empty stream comes out."""
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    try:
        result = decompressor.decompress(data)
    except zlib.error:
        return None
    if not decompressor.eof or not result:
        return None
    return result


def bunzip(data: bytes) -> Optional[bytes]:
    """Bzip2-decompress one stream; bytes after its end are ignored. None on failure."""
    decompressor = bz2.BZ2Decompressor()
    try:
        result = decompressor.decompress(data)
    except (OSError, ValueError, EOFError):
        return None
    if not decompressor.eof or not result:
        return None
    return result


def decompress_sector(sector: bytes) -> bytes:
    """Decompress one sector, falling back to its raw bytes.

    The first byte names the method. BZIP2 is tried first when tagged; every
    other tag (and a failed bzip2 attempt) goes through raw inflate, which
    skips the tag and the two zlib header bytes. Nothing here raises.
    """
    method = sector[0]

    if method == CompressionType.BZIP2:
        result = bunzip(sector[1:])
        if result is not None:
            logger.debug("Decompressed with bzip2")
            return result
        logger.debug("Failed to decompress with bzip2, trying deflate...")

    result = inflate(sector[3:]) if len(sector) >= 3 else None
    if result is None:
        logger.debug("Failed to decompress with deflate, keeping raw sector")
        return sector

    logger.debug("Decompressed with deflate")
    return result


class SectorExtractor:
    """Reads member files whose data starts at header_offset + file_offset."""

    def __init__(self, reader: BinaryReader, header_offset: int, sector_size: int):
        self._reader = reader
        self._header_offset = header_offset
        self._sector_size = sector_size

    @staticmethod
    def has_sector_table(info: FileInfo) -> bool:
        return not info.is_single_unit and (info.has_checksums or info.is_compressed)

    def _sector_offsets(self, info: FileInfo, key: Optional[int]) -> List[int]:
        """Sector boundaries relative to the data start."""
        if not self.has_sector_table(info):
            return [0, info.compressed_size]

        sector_count = math.ceil(info.uncompressed_size / self._sector_size)
        self._reader.seek(self._header_offset + info.file_offset)
        offsets = self._reader.read_words(sector_count + 1)

        if key is not None:
            offsets = decrypt(offsets, key - 1)
        return offsets

    def _read_encrypted(self, name: str, info: FileInfo, length: int, key: int) -> bytes:
        words = length >> 2
        if words > info.uncompressed_size:
            raise SizeMismatchError(name, info.uncompressed_size, length)

        # One word past the sector is read as well; it may be cut short at end of file
        data = self._reader.read((words + 1) * 4)
        return pack_words(decrypt(unpack_words(data), key))

    def extract(self, info: FileInfo, name: str) -> bytes:
        """Return the member file content.

        Raises UnsupportedFlagsError when the entry is not a file and
        SizeMismatchError when the result disagrees with the recorded size.
        """
        if not info.exists:
            raise UnsupportedFlagsError(name, info.flags)

        logger.debug(
            "Found %s with flags %08X, block offset %08X, block size %d and filesize %d",
            name,
            info.flags,
            info.file_offset,
            info.compressed_size,
            info.uncompressed_size,
        )

        if info.uncompressed_size == 0:
            return b""

        key = file_key(name, info) if info.is_encrypted else None
        offsets = self._sector_offsets(info, key)

        # Sector tables eat into the block size
        block_size = info.compressed_size
        if self.has_sector_table(info):
            block_size -= 4 * len(offsets)

        data_start = self._header_offset + info.file_offset
        output = bytearray()

        for i in range(len(offsets) - 1):
            length = offsets[i + 1] - offsets[i]
            if length == 0:
                length = block_size
            if length <= 0:
                break

            self._reader.seek(data_start + offsets[i])
            if key is not None:
                sector = self._read_encrypted(name, info, length, (key + i) & MASK_32)
            else:
                sector = self._reader.read_bytes(length)

            logger.debug("Got %d bytes of sector data", len(sector))
            if not sector:
                continue

            if info.is_compressed:
                output += decompress_sector(sector)
            else:
                output += sector

        if len(output) != info.uncompressed_size:
            raise SizeMismatchError(name, info.uncompressed_size, len(output), bytes(output))

        return bytes(output)
