import math

import pytest

from fiberkit.bytearray import (
    ByteArray,
    decode_zigzag32,
    decode_zigzag64,
    encode_zigzag32,
    encode_zigzag64,
)


FIXED = [
    ("fint8", [-128, -1, 0, 1, 127]),
    ("fuint8", [0, 1, 200, 255]),
    ("fint16", [-32768, -2, 0, 3, 32767]),
    ("fuint16", [0, 1, 65535]),
    ("fint32", [-(2**31), -5, 0, 7, 2**31 - 1]),
    ("fuint32", [0, 1, 2**32 - 1]),
    ("fint64", [-(2**63), -9, 0, 11, 2**63 - 1]),
    ("fuint64", [0, 1, 2**64 - 1]),
    ("int32", [-(2**31), -300, -1, 0, 1, 300, 2**31 - 1]),
    ("uint32", [0, 127, 128, 300, 2**32 - 1]),
    ("int64", [-(2**63), -1, 0, 1, 2**63 - 1]),
    ("uint64", [0, 127, 128, 2**64 - 1]),
]


@pytest.mark.parametrize("little", [False, True])
@pytest.mark.parametrize("base_size", [1, 3, 7, 4096])
@pytest.mark.parametrize("kind,values", FIXED)
def test_integer_round_trip(kind, values, base_size, little):
    ba = ByteArray(base_size)
    ba.little_endian = little
    for v in values:
        getattr(ba, "write_" + kind)(v)
    ba.position = 0
    assert [getattr(ba, "read_" + kind)() for _ in values] == values
    assert ba.read_size == 0


def test_default_is_big_endian():
    ba = ByteArray(2)
    ba.write_fuint16(0x0102)
    assert ba.little_endian is False
    ba.position = 0
    assert ba.to_string() == bytes([0x01, 0x02])


def test_little_endian_byte_order():
    ba = ByteArray(2)
    ba.little_endian = True
    ba.write_fuint32(0x01020304)
    ba.position = 0
    assert ba.to_string() == bytes([0x04, 0x03, 0x02, 0x01])


def test_varint_wire_bytes():
    ba = ByteArray(4)
    ba.write_uint32(300)
    ba.position = 0
    assert ba.to_string() == b"\xac\x02"


def test_zigzag_small_values():
    assert encode_zigzag32(-1) == 1
    assert encode_zigzag32(1) == 2
    assert encode_zigzag32(0) == 0


@pytest.mark.parametrize("v", [-(2**31), -12345, -1, 0, 1, 12345, 2**31 - 1])
def test_zigzag32_round_trip(v):
    assert decode_zigzag32(encode_zigzag32(v)) == v


@pytest.mark.parametrize("v", [-(2**63), -1, 0, 1, 2**63 - 1])
def test_zigzag64_round_trip(v):
    assert decode_zigzag64(encode_zigzag64(v)) == v


@pytest.mark.parametrize("little", [False, True])
def test_float_and_double_round_trip(little):
    ba = ByteArray(3)
    ba.little_endian = little
    ba.write_float(1.5)
    ba.write_double(math.pi)
    ba.position = 0
    assert ba.read_float() == 1.5
    assert ba.read_double() == math.pi


@pytest.mark.parametrize("kind", ["f16", "f32", "f64", "vint"])
def test_string_round_trip(kind):
    ba = ByteArray(5)
    getattr(ba, "write_string_" + kind)("hello world")
    getattr(ba, "write_string_" + kind)(b"")
    ba.position = 0
    assert getattr(ba, "read_string_" + kind)() == b"hello world"
    assert getattr(ba, "read_string_" + kind)() == b""


def test_string_without_length():
    ba = ByteArray(4)
    ba.write_string_without_length("abcdef")
    assert ba.size == 6
    ba.position = 0
    assert ba.read(6) == b"abcdef"


def test_read_past_end_raises():
    ba = ByteArray(8)
    ba.write(b"abc")
    ba.position = 0
    ba.read(2)
    with pytest.raises(IndexError):
        ba.read(2)


def test_position_beyond_capacity_raises():
    ba = ByteArray(8)
    with pytest.raises(IndexError):
        ba.position = 9
    assert ba.position == 0
    assert ba.size == 0


def test_setting_position_extends_size():
    ba = ByteArray(8)
    ba.position = 5
    assert ba.size == 5
    assert ba.read_size == 0


def test_read_at_does_not_move_position():
    ba = ByteArray(3)
    ba.write(b"0123456789")
    ba.position = 2
    assert ba.read_at(4, 5) == b"5678"
    assert ba.position == 2
    with pytest.raises(IndexError):
        ba.read_at(4, 8)


def test_capacity_grows_in_blocks():
    ba = ByteArray(4)
    ba.write(b"x" * 10)
    assert ba.capacity % 4 == 0
    assert ba.capacity >= 10


def test_clear_resets():
    ba = ByteArray(4)
    ba.write(b"abcdefghij")
    ba.clear()
    assert ba.size == 0
    assert ba.position == 0
    assert ba.capacity == 4
    assert ba.to_string() == b""


def test_to_string_leaves_position():
    ba = ByteArray(3)
    ba.write(b"hello")
    ba.position = 1
    assert ba.to_string() == b"ello"
    assert ba.position == 1


def test_hex_string_line_breaks():
    ba = ByteArray(8)
    ba.write(bytes(33))
    ba.position = 0
    assert ba.to_hex_string() == "00 " * 32 + "\n" + "00 "


def test_file_round_trip(tmp_path):
    path = tmp_path / "data.bin"
    payload = bytes(range(256)) * 3
    src = ByteArray(10)
    src.write(payload)
    src.position = 0
    src.write_to_file(path)
    assert path.read_bytes() == payload

    dst = ByteArray(7)
    dst.read_from_file(path)
    dst.position = 0
    assert dst.to_string() == payload


def test_read_from_missing_file_raises(tmp_path):
    ba = ByteArray(4)
    with pytest.raises(OSError):
        ba.read_from_file(tmp_path / "missing.bin")


def test_read_buffers_split_at_blocks():
    ba = ByteArray(4)
    ba.write(b"abcdefghij")
    ba.position = 2
    buffers = ba.get_read_buffers(100)
    assert b"".join(bytes(b) for b in buffers) == b"cdefghij"
    assert all(len(b) <= 4 for b in buffers)
    assert ba.position == 2


def test_read_buffers_at_position():
    ba = ByteArray(4)
    ba.write(b"abcdefghij")
    ba.position = 0
    buffers = ba.get_read_buffers(3, 5)
    assert b"".join(bytes(b) for b in buffers) == b"fgh"


def test_read_buffers_empty_when_nothing_readable():
    ba = ByteArray(4)
    ba.write(b"abc")
    assert ba.get_read_buffers(10) == []


def test_write_buffers_fill_data():
    ba = ByteArray(4)
    ba.write(b"ab")
    buffers = ba.get_write_buffers(7)
    assert sum(len(b) for b in buffers) == 7
    data = b"1234567"
    offset = 0
    for view in buffers:
        view[:] = data[offset:offset + len(view)]
        offset += len(view)
    ba.position = ba.position + 7
    ba.position = 0
    assert ba.to_string() == b"ab1234567"


def test_invalid_base_size():
    with pytest.raises(ValueError):
        ByteArray(0)