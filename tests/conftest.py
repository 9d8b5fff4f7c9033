"""Shared fixtures: build small MPQ archives in memory."""

import struct
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import pytest

from mpq_reader.mpq.constants import (
    BLOCK_TABLE_NAME,
    HASH_ENTRY_EMPTY,
    HASH_TABLE_NAME,
    BlockFlags,
    HashType,
)
from mpq_reader.mpq.crypto import MASK_32, encrypt_bytes, hash_string
from mpq_reader.mpq.sectors import file_basename

HEADER_FORMAT = "<4sIIHHIIII"


def encrypt_partial(data: bytes, key: int) -> bytes:
    """Encrypt whole words; trailing bytes stay as they are (MPQ behaviour)."""
    whole = len(data) // 4 * 4
    return encrypt_bytes(data[:whole], key) + data[whole:]


def mpq_header(
    archive_size: int,
    hash_table_offset: int,
    block_table_offset: int,
    hash_table_size: int,
    block_table_size: int,
    header_size: int = 32,
    sector_size_shift: int = 3,
    format_version: int = 0,
) -> bytes:
    """Pack a v1 header; offsets are relative to the header."""
    return struct.pack(
        HEADER_FORMAT,
        b"MPQ\x1a",
        header_size,
        archive_size,
        format_version,
        sector_size_shift,
        hash_table_offset,
        block_table_offset,
        hash_table_size,
        block_table_size,
    )


@dataclass
class _Member:
    name: Union[str, bytes]
    payload: bytes
    flags: int
    uncompressed_size: int
    sectors: Optional[List[bytes]]
    slot: Optional[int]


@dataclass
class ArchiveBuilder:
    """Writes an archive: prefix, header, member data, hash table, block table."""

    hash_table_size: int = 16
    sector_size_shift: int = 3
    prefix: bytes = b""
    members: List[_Member] = field(default_factory=list)
    raw_slots: Dict[int, List[int]] = field(default_factory=dict)

    def add(
        self,
        name: Union[str, bytes],
        payload: bytes = b"",
        *,
        flags: int = BlockFlags.FILE,
        uncompressed_size: Optional[int] = None,
        sectors: Optional[List[bytes]] = None,
        slot: Optional[int] = None,
    ) -> "ArchiveBuilder":
        """Add a member.

        payload is stored as-is (single sector). With sectors, a sector offset
        table is written in front of them. uncompressed_size defaults to the
        payload length. Encryption is applied when flags say so. name may be
        given as raw bytes to control the hashed spelling exactly.
        """
        if uncompressed_size is None:
            uncompressed_size = len(payload)
        self.members.append(_Member(name, payload, int(flags), uncompressed_size, sectors, slot))
        return self

    def set_slot(self, slot: int, hash_a: int, hash_b: int, block_index: int) -> "ArchiveBuilder":
        """Write a raw hash table slot (fillers, DELETED markers, ...)."""
        self.raw_slots[slot] = [hash_a, hash_b, 0, block_index]
        return self

    @staticmethod
    def home_slot(name: Union[str, bytes], size: int) -> int:
        return hash_string(name, HashType.TABLE_OFFSET) & (size - 1)

    def _stored_bytes(self, member: _Member, file_offset: int) -> bytes:
        encrypted = member.flags & BlockFlags.ENCRYPTED
        key = None
        if encrypted:
            key = hash_string(file_basename(member.name), HashType.FILE_KEY)
            if member.flags & BlockFlags.FIX_KEY:
                key = ((key + file_offset) ^ member.uncompressed_size) & MASK_32

        if member.sectors is None:
            return encrypt_partial(member.payload, key) if encrypted else member.payload

        offsets = [4 * (len(member.sectors) + 1)]
        for sector in member.sectors:
            offsets.append(offsets[-1] + len(sector))
        table = struct.pack(f"<{len(offsets)}I", *offsets)

        if not encrypted:
            return table + b"".join(member.sectors)

        body = b"".join(
            encrypt_partial(sector, (key + i) & MASK_32) for i, sector in enumerate(member.sectors)
        )
        return encrypt_bytes(table, (key - 1) & MASK_32) + body

    def build(self) -> bytes:
        header_offset = len(self.prefix)
        data = bytearray()
        position = 32
        blocks = []
        for member in self.members:
            stored = self._stored_bytes(member, position)
            blocks.append([position, len(stored), member.uncompressed_size, member.flags])
            data += stored
            position += len(stored)

        slots = [[HASH_ENTRY_EMPTY] * 4 for _ in range(self.hash_table_size)]
        for slot, words in self.raw_slots.items():
            slots[slot] = list(words)

        for block_index, member in enumerate(self.members):
            slot = member.slot
            if slot is None:
                slot = self.home_slot(member.name, self.hash_table_size)
                while slots[slot][3] != HASH_ENTRY_EMPTY:
                    slot = (slot + 1) % self.hash_table_size
            slots[slot] = [
                hash_string(member.name, HashType.NAME_A),
                hash_string(member.name, HashType.NAME_B),
                0,
                block_index,
            ]

        hash_words = [word for slot in slots for word in slot]
        hash_table = encrypt_bytes(
            struct.pack(f"<{len(hash_words)}I", *hash_words),
            hash_string(HASH_TABLE_NAME, HashType.FILE_KEY),
        )
        block_words = [word for block in blocks for word in block]
        block_table = encrypt_bytes(
            struct.pack(f"<{len(block_words)}I", *block_words),
            hash_string(BLOCK_TABLE_NAME, HashType.FILE_KEY),
        )

        hash_table_offset = position
        block_table_offset = hash_table_offset + len(hash_table)
        archive_size = block_table_offset + len(block_table)

        header = mpq_header(
            archive_size=archive_size,
            hash_table_offset=hash_table_offset,
            block_table_offset=block_table_offset,
            hash_table_size=self.hash_table_size,
            block_table_size=len(blocks),
            sector_size_shift=self.sector_size_shift,
        )
        return self.prefix + header + bytes(data) + hash_table + block_table


@pytest.fixture
def write_archive(tmp_path):
    """Write a built archive to a temporary file and return its path."""
    counter = iter(range(1000))

    def _write(builder: ArchiveBuilder, name: Optional[str] = None):
        path = tmp_path / (name or f"archive_{next(counter)}.mpq")
        path.write_bytes(builder.build())
        return path

    return _write


def encode_vint(value: int) -> bytes:
    """Encode a serialized-data vint (sign in the lowest bit)."""
    encoded = (abs(value) << 1) | (1 if value < 0 else 0)
    out = bytearray()
    while True:
        byte = encoded & 0x7F
        encoded >>= 7
        if encoded:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_serialized(value) -> bytes:
    """Encode bytes, ints and int-keyed dicts in the versioned format."""
    if isinstance(value, bytes):
        return b"\x02" + encode_vint(len(value)) + value
    if isinstance(value, dict):
        out = b"\x05" + encode_vint(len(value))
        for key, item in value.items():
            out += encode_vint(key) + encode_serialized(item)
        return out
    if isinstance(value, list):
        return b"\x00" + encode_vint(len(value)) + b"".join(encode_serialized(v) for v in value)
    return b"\x09" + encode_vint(value)


def sc2_user_data(major=2, minor=0, revision=4, build=12345, header_offset=1024) -> bytes:
    """A user data block announcing a StarCraft II version."""
    blob = encode_serialized(
        {
            0: b"StarCraft II replay\x1b11",
            1: {0: 0, 1: major, 2: minor, 3: revision, 4: build, 5: build},
        }
    )
    return b"MPQ\x1b" + struct.pack("<3I", 512, header_offset, len(blob)) + blob


def wc3_prefix(name: str = "Test Map", flags: int = 0, players: int = 2) -> bytes:
    """A Warcraft III "HM3W" prefix padded to 512 bytes."""
    data = b"HM3W" + b"\x00" * 4 + name.encode() + b"\x00" + struct.pack("<2I", flags, players)
    return data.ljust(512, b"\x00")
