"""Locate the MPQ header inside an archive.

Maps often carry data in front of the archive proper: Warcraft III maps start
with an "HM3W" block, StarCraft II maps with an "MPQ\\x1b" user data block that
points at the real header. The scan walks the file byte by byte until it finds
an "MPQ\\x1a" header whose table offsets make sense.
"""

import logging
from typing import Callable, Optional

from ..exceptions import HeaderNotFoundError, ShortReadError
from ..formats.maps import SC2MapInfo, WC3MapInfo
from ..formats.serialized import SerializedDataError, parse_serialized_data
from ..utils.binary import BinaryReader
from .constants import (
    BLOCK_INDEX_MASK,
    HEADER_DISCRIMINATOR,
    MAX_HEADER_SCAN,
    MPQ_SIGNATURE,
    USER_DATA_DISCRIMINATOR,
    WC3_MAP_MAGIC,
)
from .header import ArchiveType, LocatedHeader, MPQHeader, UserDataHeader

logger = logging.getLogger(__name__)

SCAN_CHUNK_SIZE = 0x10000

UserDataParser = Callable[[BinaryReader], Optional[SC2MapInfo]]


def parse_sc2_user_data(reader: BinaryReader) -> Optional[SC2MapInfo]:
    """Default user data parser: decode the serialized blob and pull the version."""
    try:
        data = parse_serialized_data(reader)
    except SerializedDataError as e:
        logger.debug("User data is not serialized data: %s", e)
        return None
    return SC2MapInfo.from_user_data(data)


def read_wc3_prefix(reader: BinaryReader) -> WC3MapInfo:
    """Read the Warcraft III map prefix fields (magic and 4 reserved bytes skipped)."""
    reader.seek(8)
    name = reader.read_cstring()
    flags = reader.read_u32()
    player_count = reader.read_u32()
    return WC3MapInfo(name=name, flags=flags, player_count=player_count)


def read_user_data_header(reader: BinaryReader, offset: int) -> UserDataHeader:
    """Read the user data fields following the "MPQ\\x1b" magic at offset."""
    reader.seek(offset + 4)
    return UserDataHeader(
        offset=offset,
        max_size=reader.read_u32(),
        header_offset=reader.read_u32(),
        data_size=reader.read_u32(),
    )


def read_mpq_header(reader: BinaryReader, offset: int) -> MPQHeader:
    """Read the canonical header whose "MPQ\\x1a" magic sits at offset."""
    reader.seek(offset + 4)
    header_size = reader.read_u32()
    archive_size = reader.read_u32()
    format_version = reader.read_u16()
    sector_size_shift = reader.read_u16()
    hash_table_offset = (reader.read_u32() + offset) & BLOCK_INDEX_MASK
    block_table_offset = (reader.read_u32() + offset) & BLOCK_INDEX_MASK
    hash_table_size = reader.read_u32() & BLOCK_INDEX_MASK
    block_table_size = reader.read_u32() & BLOCK_INDEX_MASK

    return MPQHeader(
        header_offset=offset,
        header_size=header_size,
        archive_size=archive_size,
        format_version=format_version,
        sector_size_shift=sector_size_shift,
        hash_table_offset=hash_table_offset,
        block_table_offset=block_table_offset,
        hash_table_size=hash_table_size,
        block_table_size=block_table_size,
    )


def _find_signature(reader: BinaryReader, position: int, end: int) -> Optional[int]:
    """Return the first position in [position, end) where "MPQ" starts, or None."""
    while position < end:
        window = min(SCAN_CHUNK_SIZE, end - position)
        reader.seek(position)
        # Two extra bytes so a signature straddling the window edge is seen
        chunk = reader.read(window + len(MPQ_SIGNATURE) - 1)
        index = chunk.find(MPQ_SIGNATURE)
        if 0 <= index < window:
            return position + index
        if len(chunk) < window:
            return None
        position += window
    return None


def _read_discriminator(reader: BinaryReader, position: int) -> Optional[int]:
    reader.seek(position + len(MPQ_SIGNATURE))
    byte = reader.read(1)
    return byte[0] if byte else None


def locate_header(
    reader: BinaryReader,
    filesize: int,
    scan_limit: int = MAX_HEADER_SCAN,
    user_data_parser: UserDataParser = parse_sc2_user_data,
) -> LocatedHeader:
    """Scan for the first acceptable MPQ header and classify the archive.

    Raises HeaderNotFoundError when the bounded region holds no valid header.
    """
    end_of_search = min(filesize, scan_limit)

    archive_type = ArchiveType.DEFAULT
    game_data = None
    user_data = None

    reader.seek(0)
    position = 0
    if reader.read(4) == WC3_MAP_MAGIC:
        game_data = read_wc3_prefix(reader)
        archive_type = ArchiveType.WC3_MAP
        logger.debug("Found Warcraft III map prefix: %r", game_data.name)
        position = 4

    while position < end_of_search:
        position = _find_signature(reader, position, end_of_search)
        if position is None:
            break

        discriminator = _read_discriminator(reader, position)
        if discriminator is None:
            break

        if discriminator == USER_DATA_DISCRIMINATOR and archive_type != ArchiveType.WC3_MAP:
            logger.debug("Found user data block at %08X", position)
            try:
                candidate = read_user_data_header(reader, position)
                sc2_info = user_data_parser(reader)
            except ShortReadError:
                candidate, sc2_info = None, None

            if sc2_info is not None:
                user_data = candidate
                game_data = sc2_info
                archive_type = ArchiveType.SC2_MAP
            position += 4
            continue

        if discriminator == HEADER_DISCRIMINATOR:
            logger.debug("Found header at %08X", position)
            try:
                header = read_mpq_header(reader, position)
            except ShortReadError:
                header = None

            if header is not None and header.is_valid(filesize):
                logger.debug(
                    "Hash table offset: %08X, Block table offset: %08X",
                    header.hash_table_offset,
                    header.block_table_offset,
                )
                return LocatedHeader(
                    header=header,
                    archive_type=archive_type,
                    game_data=game_data,
                    user_data=user_data,
                )
            position += 4
            continue

        # "MPQ" followed by something else: skip past the signature
        position += 4

    raise HeaderNotFoundError("Unable to read the archive header.")
