"""MPQ archive reader."""

import logging
import re
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Union

from ..exceptions import (
    ArchiveNotFoundError,
    ArchiveTooSmallError,
    FileNotInArchiveError,
    NotInitializedError,
)
from ..formats.maps import WC3CampaignInfo, WC3MapInfo
from ..utils.binary import BinaryReader
from .constants import LISTFILE_NAME, MAX_HEADER_SCAN, MPQ_HEADER_SIZE_V1
from .header import ArchiveType, FileInfo, GameData, HashEntry, LocatedHeader, MPQHeader
from .locator import locate_header
from .resolver import FileResolver, probe_hash_table
from .sectors import SectorExtractor
from .tables import decode_hash_table

logger = logging.getLogger(__name__)

_LISTFILE_SEPARATORS = re.compile(r"[\r\n;]+")


class MPQArchive:
    """Reader for MPQ archives (plain, Warcraft III and StarCraft II maps).

    The header is located and the hash table decoded when the archive is
    constructed; a failure there closes the file and propagates, so a
    constructed archive is always usable until close() is called.
    """

    def __init__(self, path: Union[str, Path], *, scan_limit: int = MAX_HEADER_SCAN):
        self.path = Path(path)
        self.scan_limit = scan_limit
        self._file: Optional[BinaryIO] = None
        self._reader: Optional[BinaryReader] = None
        self._located: Optional[LocatedHeader] = None
        self._hash_table: List[HashEntry] = []
        self._archive_type: Optional[ArchiveType] = None
        self._game_data: Optional[GameData] = None
        self._initialized = False

        if not self.path.is_file():
            raise ArchiveNotFoundError(self.path)

        self.filesize = self.path.stat().st_size
        if self.filesize < MPQ_HEADER_SIZE_V1:
            raise ArchiveTooSmallError(self.path, self.filesize)

        self._file = open(self.path, "rb")
        try:
            self._open()
        except Exception:
            self.close()
            raise

    def __enter__(self) -> "MPQArchive":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __contains__(self, name: str) -> bool:
        return self.has_file(name)

    def _open(self) -> None:
        """Locate the header and decode the hash table."""
        self._reader = BinaryReader(self._file)
        self._located = locate_header(self._reader, self.filesize, self.scan_limit)
        self._game_data = self._located.game_data

        header = self._located.header
        self._hash_table = decode_hash_table(
            self._reader, header.hash_table_offset, header.hash_table_size
        )
        self._initialized = True

    def close(self) -> None:
        """Close the archive file."""
        self._initialized = False
        if self._file:
            self._file.close()
            self._file = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def closed(self) -> bool:
        return self._file is None

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("Archive has not yet been successfully initialized.")

    @property
    def header(self) -> MPQHeader:
        self._require_initialized()
        return self._located.header

    @property
    def header_offset(self) -> int:
        return self.header.header_offset

    @property
    def header_size(self) -> int:
        return self.header.header_size

    @property
    def archive_size(self) -> int:
        return self.header.archive_size

    @property
    def format_version(self) -> int:
        return self.header.format_version

    @property
    def sector_size(self) -> int:
        return self.header.sector_size

    @property
    def hash_table(self) -> Sequence[HashEntry]:
        self._require_initialized()
        return tuple(self._hash_table)

    @property
    def archive_type(self) -> ArchiveType:
        """Archive kind; Warcraft III campaigns are told apart by their member files."""
        self._require_initialized()
        if self._archive_type is None:
            self._archive_type = self._classify()
        return self._archive_type

    @property
    def game_data(self) -> Optional[GameData]:
        archive_type = self.archive_type
        if archive_type == ArchiveType.WC3_CAMPAIGN and isinstance(self._game_data, WC3MapInfo):
            self._game_data = WC3CampaignInfo.from_map(self._game_data)
        return self._game_data

    def _classify(self) -> ArchiveType:
        archive_type = self._located.archive_type
        if archive_type == ArchiveType.WC3_MAP:
            if not self.has_file("war3map.w3i") and self.has_file("war3campaign.w3f"):
                return ArchiveType.WC3_CAMPAIGN
        return archive_type

    def get_file_info(self, name: str) -> Optional[FileInfo]:
        """Find a member file's block entry, or None when the name is not present."""
        self._require_initialized()
        resolver = FileResolver(
            self._reader,
            self._hash_table,
            self.header.block_table_offset,
            self.header.block_table_size,
        )
        return resolver.locate(name)

    def get_filesize(self, name: str) -> int:
        info = self.get_file_info(name)
        if info is None:
            raise FileNotInArchiveError(name)
        return info.uncompressed_size

    def has_file(self, name: str) -> bool:
        """True when the name resolves to a non-empty member file."""
        info = self.get_file_info(name)
        return info is not None and info.uncompressed_size > 0

    def read_file(self, name: str) -> bytes:
        """Extract a member file.

        Raises FileNotInArchiveError, UnsupportedFlagsError or SizeMismatchError;
        none of them leave the archive unusable.
        """
        info = self.get_file_info(name)
        if info is None:
            raise FileNotInArchiveError(name)

        extractor = SectorExtractor(self._reader, self.header_offset, self.sector_size)
        return extractor.extract(info, name)

    def list_files(self) -> List[str]:
        """Names from the archive's (listfile) that resolve in the hash table."""
        if not self.has_file(LISTFILE_NAME):
            return []

        text = self.read_file(LISTFILE_NAME).decode("utf-8", errors="replace")
        names = []
        seen = set()
        for name in _LISTFILE_SEPARATORS.split(text):
            name = name.strip()
            if not name or name in seen:
                continue
            seen.add(name)
            if probe_hash_table(self._hash_table, name) is not None:
                names.append(name)
        return names

    def extract_all(self, output_dir: Union[str, Path], names: Optional[List[str]] = None):
        """Extract files to output_dir, yielding (name, output_path) for each.

        Names default to the listfile entries. Backslash separated archive paths
        become nested directories.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        for name in names if names is not None else self.list_files():
            output_path = output_dir.joinpath(*_safe_parts(name))
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(self.read_file(name))
            yield name, output_path


def _safe_parts(name: str) -> List[str]:
    parts = [part for part in re.split(r"[\\/]+", name) if part not in ("", ".", "..")]
    return parts or ["unnamed"]

