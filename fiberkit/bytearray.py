"""A growable binary buffer made of fixed-size blocks, with typed readers and writers."""

from __future__ import annotations

import math
import struct
from collections.abc import Iterator
from os import PathLike
from typing import Union

__all__ = [
    "ByteArray",
    "encode_zigzag32",
    "decode_zigzag32",
    "encode_zigzag64",
    "decode_zigzag64",
]

_MASK32 = (1 << 32) - 1
_MASK64 = (1 << 64) - 1

BytesLike = Union[bytes, bytearray, memoryview, str]


def _to_signed(value: int, bits: int) -> int:
    half = 1 << (bits - 1)
    return ((value + half) % (1 << bits)) - half


def encode_zigzag32(value: int) -> int:
    """Map a signed 32-bit integer onto an unsigned one (small magnitudes stay small)."""
    value = _to_signed(value, 32)
    if value < 0:
        return ((-value) * 2 - 1) & _MASK32
    return (value * 2) & _MASK32


def encode_zigzag64(value: int) -> int:
    """Map a signed 64-bit integer onto an unsigned one (small magnitudes stay small)."""
    value = _to_signed(value, 64)
    if value < 0:
        return ((-value) * 2 - 1) & _MASK64
    return (value * 2) & _MASK64


def decode_zigzag32(value: int) -> int:
    """Restore a signed 32-bit integer from its zigzag encoding."""
    value &= _MASK32
    return (value >> 1) ^ -(value & 1)


def decode_zigzag64(value: int) -> int:
    """Restore a signed 64-bit integer from its zigzag encoding."""
    value &= _MASK64
    return (value >> 1) ^ -(value & 1)


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class ByteArray:
    """Binary buffer with a read/write position, stored in blocks of ``base_size`` bytes.

    Fixed-width values use the configured byte order (big endian by default);
    varints are little-endian base-128 groups, signed ones zigzag encoded.
    """

    def __init__(self, base_size: int = 4096) -> None:
        if base_size <= 0:
            raise ValueError("base_size must be positive")
        self._base_size = base_size
        self._position = 0
        self._size = 0
        self._little_endian = False
        self._nodes: list[bytearray] = [bytearray(base_size)]

    # ------------------------------------------------------------------
    # properties
    # ------------------------------------------------------------------
    @property
    def base_size(self) -> int:
        return self._base_size

    @property
    def size(self) -> int:
        """Number of bytes of data held."""
        return self._size

    @property
    def read_size(self) -> int:
        """Number of bytes between the position and the end of the data."""
        return self._size - self._position

    @property
    def capacity(self) -> int:
        return len(self._nodes) * self._base_size

    @property
    def position(self) -> int:
        return self._position

    @position.setter
    def position(self, value: int) -> None:
        if value < 0 or value > self.capacity:
            raise IndexError("set_position out of range")
        self._position = value
        if self._position > self._size:
            self._size = self._position

    @property
    def little_endian(self) -> bool:
        return self._little_endian

    @little_endian.setter
    def little_endian(self, value: bool) -> None:
        self._little_endian = bool(value)

    @property
    def _order(self) -> str:
        return "little" if self._little_endian else "big"

    @property
    def _struct_prefix(self) -> str:
        return "<" if self._little_endian else ">"

    # ------------------------------------------------------------------
    # fixed-width integers
    # ------------------------------------------------------------------
    def _write_fixed(self, value: int, width: int) -> None:
        mask = (1 << (width * 8)) - 1
        self.write((value & mask).to_bytes(width, self._order))

    def _read_fixed(self, width: int, signed: bool) -> int:
        return int.from_bytes(self.read(width), self._order, signed=signed)

    def write_fint8(self, value: int) -> None:
        self.write(bytes([value & 0xFF]))

    def write_fuint8(self, value: int) -> None:
        self.write(bytes([value & 0xFF]))

    def write_fint16(self, value: int) -> None:
        self._write_fixed(value, 2)

    def write_fuint16(self, value: int) -> None:
        self._write_fixed(value, 2)

    def write_fint32(self, value: int) -> None:
        self._write_fixed(value, 4)

    def write_fuint32(self, value: int) -> None:
        self._write_fixed(value, 4)

    def write_fint64(self, value: int) -> None:
        self._write_fixed(value, 8)

    def write_fuint64(self, value: int) -> None:
        self._write_fixed(value, 8)

    def read_fint8(self) -> int:
        return int.from_bytes(self.read(1), "big", signed=True)

    def read_fuint8(self) -> int:
        return self.read(1)[0]

    def read_fint16(self) -> int:
        return self._read_fixed(2, True)

    def read_fuint16(self) -> int:
        return self._read_fixed(2, False)

    def read_fint32(self) -> int:
        return self._read_fixed(4, True)

    def read_fuint32(self) -> int:
        return self._read_fixed(4, False)

    def read_fint64(self) -> int:
        return self._read_fixed(8, True)

    def read_fuint64(self) -> int:
        return self._read_fixed(8, False)

    # ------------------------------------------------------------------
    # varints
    # ------------------------------------------------------------------
    def _write_varint(self, value: int) -> None:
        out = bytearray()
        while value >= 0x80:
            out.append((value & 0x7F) | 0x80)
            value >>= 7
        out.append(value)
        self.write(out)

    def _read_varint(self, bits: int) -> int:
        result = 0
        for shift in range(0, bits, 7):
            byte = self.read_fuint8()
            if byte < 0x80:
                result |= byte << shift
                break
            result |= (byte & 0x7F) << shift
        return result & ((1 << bits) - 1)

    def write_int32(self, value: int) -> None:
        self.write_uint32(encode_zigzag32(value))

    def write_uint32(self, value: int) -> None:
        self._write_varint(value & _MASK32)

    def write_int64(self, value: int) -> None:
        self.write_uint64(encode_zigzag64(value))

    def write_uint64(self, value: int) -> None:
        self._write_varint(value & _MASK64)

    def read_int32(self) -> int:
        return decode_zigzag32(self.read_uint32())

    def read_uint32(self) -> int:
        return self._read_varint(32)

    def read_int64(self) -> int:
        return decode_zigzag64(self.read_uint64())

    def read_uint64(self) -> int:
        return self._read_varint(64)

    # ------------------------------------------------------------------
    # floating point
    # ------------------------------------------------------------------
    def write_float(self, value: float) -> None:
        self.write(struct.pack(self._struct_prefix + "f", value))

    def write_double(self, value: float) -> None:
        self.write(struct.pack(self._struct_prefix + "d", value))

    def read_float(self) -> float:
        return struct.unpack(self._struct_prefix + "f", self.read(4))[0]

    def read_double(self) -> float:
        return struct.unpack(self._struct_prefix + "d", self.read(8))[0]

    # ------------------------------------------------------------------
    # strings
    # ------------------------------------------------------------------
    def write_string_f16(self, value: BytesLike) -> None:
        data = _as_bytes(value)
        self.write_fuint16(len(data))
        self.write(data)

    def write_string_f32(self, value: BytesLike) -> None:
        data = _as_bytes(value)
        self.write_fuint32(len(data))
        self.write(data)

    def write_string_f64(self, value: BytesLike) -> None:
        data = _as_bytes(value)
        self.write_fuint64(len(data))
        self.write(data)

    def write_string_vint(self, value: BytesLike) -> None:
        data = _as_bytes(value)
        self.write_uint64(len(data))
        self.write(data)

    def write_string_without_length(self, value: BytesLike) -> None:
        self.write(_as_bytes(value))

    def read_string_f16(self) -> bytes:
        return self.read(self.read_fuint16())

    def read_string_f32(self) -> bytes:
        return self.read(self.read_fuint32())

    def read_string_f64(self) -> bytes:
        return self.read(self.read_fuint64())

    def read_string_vint(self) -> bytes:
        return self.read(self.read_uint64())

    # ------------------------------------------------------------------
    # raw access
    # ------------------------------------------------------------------
    def _chunks(self, start: int, length: int) -> Iterator[memoryview]:
        """Yield views over ``length`` bytes from ``start``, split at block edges."""
        base = self._base_size
        while length > 0:
            index, offset = divmod(start, base)
            count = min(base - offset, length)
            yield memoryview(self._nodes[index])[offset:offset + count]
            start += count
            length -= count

    def _add_capacity(self, size: int) -> None:
        available = self.capacity - self._position
        if size <= 0 or available >= size:
            return
        count = math.ceil((size - available) / self._base_size)
        self._nodes.extend(bytearray(self._base_size) for _ in range(count))

    def clear(self) -> None:
        """Drop all data and every block but the first."""
        self._position = 0
        self._size = 0
        del self._nodes[1:]

    def write(self, data: BytesLike) -> None:
        """Write raw bytes at the position and advance it."""
        view = memoryview(_as_bytes(data))
        if not view:
            return
        self._add_capacity(len(view))
        offset = 0
        for chunk in self._chunks(self._position, len(view)):
            chunk[:] = view[offset:offset + len(chunk)]
            offset += len(chunk)
        self._position += len(view)
        if self._position > self._size:
            self._size = self._position

    def read(self, size: int) -> bytes:
        """Read ``size`` bytes at the position and advance it."""
        if size < 0 or size > self.read_size:
            raise IndexError("not enough len")
        data = b"".join(bytes(c) for c in self._chunks(self._position, size))
        self._position += size
        return data

    def read_at(self, size: int, position: int) -> bytes:
        """Read ``size`` bytes starting at ``position`` without moving the position."""
        if size < 0 or position < 0 or position > self._size or size > self._size - position:
            raise IndexError("not enough len")
        return b"".join(bytes(c) for c in self._chunks(position, size))

    def write_to_file(self, name: Union[str, PathLike]) -> None:
        """Write the unread data to ``name``, replacing its contents."""
        with open(name, "wb") as fh:
            for chunk in self._chunks(self._position, self.read_size):
                fh.write(chunk)

    def read_from_file(self, name: Union[str, PathLike]) -> None:
        """Append the contents of ``name`` at the position."""
        with open(name, "rb") as fh:
            while block := fh.read(self._base_size):
                self.write(block)

    def to_string(self) -> bytes:
        """Return the unread data without moving the position."""
        if self.read_size == 0:
            return b""
        return self.read_at(self.read_size, self._position)

    def to_hex_string(self) -> str:
        """Return the unread data as hex pairs, 32 per line."""
        parts = []
        for i, byte in enumerate(self.to_string()):
            if i > 0 and i % 32 == 0:
                parts.append("\n")
            parts.append(f"{byte:02x} ")
        return "".join(parts)

    def get_read_buffers(self, length: int, position: int | None = None) -> list[memoryview]:
        """Return views over up to ``length`` readable bytes, one per block touched.

        Reading starts at ``position`` when given, otherwise at the current position.
        """
        length = min(length, self.read_size)
        if length <= 0:
            return []
        start = self._position if position is None else position
        if start < 0 or start + length > self.capacity:
            raise IndexError("buffer range out of range")
        return list(self._chunks(start, length))

    def get_write_buffers(self, length: int) -> list[memoryview]:
        """Reserve room for ``length`` bytes and return writable views from the position."""
        if length <= 0:
            return []
        self._add_capacity(length)
        return list(self._chunks(self._position, length))