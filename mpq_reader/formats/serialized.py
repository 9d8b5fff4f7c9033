"""Blizzard versioned serialization, as embedded in StarCraft II user data.

Every value starts with a one-byte type tag:

- 0x00 array:      vint count, then count values
- 0x01 bit array:  vint bit count, then the packed bytes
- 0x02 blob:       vint length, then raw bytes
- 0x03 choice:     vint tag, then one value
- 0x04 optional:   u8 present flag, then a value when set
- 0x05 struct:     vint field count, then (vint key, value) pairs
- 0x06 u8, 0x07 u32 LE, 0x08 u64 LE
- 0x09 vint

A vint is little-endian base-128; the lowest bit of the first byte is the sign.
"""

from typing import Any, BinaryIO, Union

from ..exceptions import ShortReadError
from ..utils.binary import BinaryReader

# Guards against garbage being read as a huge container
MAX_CONTAINER_LENGTH = 0x10000
MAX_DEPTH = 32


class SerializedDataError(ValueError):
    """The bytes do not form a valid serialized value."""


class _Decoder:
    def __init__(self, reader: BinaryReader):
        self._reader = reader

    def vint(self) -> int:
        byte = self._reader.read_u8()
        negative = byte & 1
        result = (byte >> 1) & 0x3F
        bits = 6
        while byte & 0x80:
            if bits > 63:
                raise SerializedDataError("vint too long")
            byte = self._reader.read_u8()
            result |= (byte & 0x7F) << bits
            bits += 7
        return -result if negative else result

    def _length(self) -> int:
        length = self.vint()
        if length < 0 or length > MAX_CONTAINER_LENGTH:
            raise SerializedDataError(f"Invalid container length {length}")
        return length

    def value(self, depth: int = 0) -> Any:
        if depth > MAX_DEPTH:
            raise SerializedDataError("Nesting too deep")

        tag = self._reader.read_u8()

        if tag == 0x00:
            return [self.value(depth + 1) for _ in range(self._length())]
        if tag == 0x01:
            bits = self._length()
            return (bits, self._reader.read_bytes((bits + 7) // 8))
        if tag == 0x02:
            return self._reader.read_bytes(self._length())
        if tag == 0x03:
            return {self.vint(): self.value(depth + 1)}
        if tag == 0x04:
            return self.value(depth + 1) if self._reader.read_u8() else None
        if tag == 0x05:
            fields = {}
            for _ in range(self._length()):
                key = self.vint()
                fields[key] = self.value(depth + 1)
            return fields
        if tag == 0x06:
            return self._reader.read_u8()
        if tag == 0x07:
            return self._reader.read_u32()
        if tag == 0x08:
            return self._reader.read_u64()
        if tag == 0x09:
            return self.vint()

        raise SerializedDataError(f"Unknown serialized type tag 0x{tag:02X}")


def parse_serialized_data(source: Union[bytes, BinaryIO, BinaryReader]) -> Any:
    """Decode one serialized value starting at the current position.

    Raises SerializedDataError for malformed or truncated input.
    """
    reader = source if isinstance(source, BinaryReader) else BinaryReader(source)
    try:
        return _Decoder(reader).value()
    except ShortReadError as e:
        raise SerializedDataError(f"Truncated serialized data: {e}") from e


def struct_field(data: Any, key: int) -> Any:
    """Fetch a numbered field from a decoded struct, or None."""
    if isinstance(data, dict):
        return data.get(key)
    return None
