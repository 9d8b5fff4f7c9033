"""Binary reading utilities for little-endian MPQ data."""

import struct
from io import BytesIO
from typing import BinaryIO, List, Union

from ..exceptions import ShortReadError


class BinaryReader:
    """Helper for reading little-endian binary data (MPQ format)."""

    def __init__(self, data: Union[bytes, BinaryIO]):
        if isinstance(data, (bytes, bytearray)):
            self._stream = BytesIO(data)
        else:
            self._stream = data

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def position(self) -> int:
        return self._stream.tell()

    def tell(self) -> int:
        return self._stream.tell()

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._stream.seek(offset, whence)

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes; may return fewer at end of stream."""
        return self._stream.read(size)

    def read_bytes(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) < size:
            raise ShortReadError(size, len(data))
        return data

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_u16(self) -> int:
        return struct.unpack("<H", self.read_bytes(2))[0]

    def read_u32(self) -> int:
        return struct.unpack("<I", self.read_bytes(4))[0]

    def read_u64(self) -> int:
        return struct.unpack("<Q", self.read_bytes(8))[0]

    def read_words(self, count: int) -> List[int]:
        """Read count consecutive little-endian 32-bit words."""
        if count <= 0:
            return []
        return list(struct.unpack(f"<{count}I", self.read_bytes(4 * count)))

    def read_cstring(self, max_length: int = 1024) -> str:
        """Read a null-terminated string."""
        chars = []
        for _ in range(max_length):
            byte = self._stream.read(1)
            if not byte or byte == b"\x00":
                break
            chars.append(byte)
        return b"".join(chars).decode("utf-8", errors="replace")

    def skip(self, count: int) -> None:
        """Skip forward by count bytes."""
        self._stream.seek(count, 1)

    def size(self) -> int:
        """Return the total stream length without moving the cursor."""
        current = self.tell()
        self._stream.seek(0, 2)
        end = self.tell()
        self._stream.seek(current)
        return end

    def remaining(self) -> int:
        """Return number of bytes remaining in stream."""
        return self.size() - self.tell()


def pack_words(words: List[int]) -> bytes:
    """Pack 32-bit words as little-endian bytes."""
    return struct.pack(f"<{len(words)}I", *words)


def unpack_words(data: bytes) -> List[int]:
    """Unpack whole little-endian 32-bit words; trailing partial bytes are dropped."""
    count = len(data) // 4
    return list(struct.unpack_from(f"<{count}I", data))
