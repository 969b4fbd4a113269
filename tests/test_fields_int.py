"""Test integer, enumeration and Q-code field types."""

import pytest

from packetforge.errors import ParseError
from packetforge.fields import (
    Int, Int8, SInt8, Int16, Int16le, Int24, Int32, Int64le, Int8Enum, Int16Enum, QCode,
)


def test_int_widths_and_endianness():
    """Test decoding in both byte orders and all widths."""
    assert Int16().decode(b'\x12\x34') == (0x1234, 2)
    assert Int16le().decode(b'\x12\x34') == (0x3412, 2)
    assert Int24().decode(b'\x01\x02\x03') == (0x010203, 3)
    assert Int64le().decode(b'\x01' + b'\x00' * 7) == (1, 8)
    assert SInt8().decode(b'\xff') == (-1, 1)


def test_int_decode_at_offset():
    """Test decoding at a non-zero offset."""
    assert Int32().decode(b'\xaa\x00\x00\x01\x00', 1) == (0x100, 4)


def test_int_encode():
    """Test encoding."""
    assert Int16().encode(0x1234) == b'\x12\x34'
    assert Int16le().encode(0x1234) == b'\x34\x12'
    assert SInt8().encode(-2) == b'\xfe'


def test_int_overflow_raises():
    """Test that a value too large for the field is rejected on encode."""
    with pytest.raises(ValueError):
        Int8().encode(256)


def test_int_truncated_raises_parse_error():
    """Test that short input raises ParseError."""
    with pytest.raises(ParseError):
        Int32().decode(b'\x00\x01')


def test_int_unsupported_width():
    """Test that widths other than 1, 2, 3, 4 and 8 are refused."""
    with pytest.raises(ValueError):
        Int(5)


def test_int_coerce():
    """Test coercion of user values."""
    assert Int8().coerce(True) == 1
    with pytest.raises(ValueError):
        Int8().coerce('12')


def test_int_callable_default():
    """Test that a callable default is evaluated with the owner."""
    field = Int16(lambda owner: owner * 2)
    assert field.make_default(21) == 42


# ── Enumerations ──

def test_enum_accepts_names():
    """Test that names are converted to values."""
    field = Int16Enum({'request': 1, 'reply': 2})
    assert field.coerce('reply') == 2
    assert field.coerce(1) == 1
    assert field.name_of(2) == 'reply'


def test_enum_unknown_name_raises():
    """Test that an unknown name is refused."""
    field = Int8Enum({'a': 1})
    with pytest.raises(ValueError):
        field.coerce('b')


def test_enum_unknown_value_rendering():
    """Test that decoded values outside the mapping are kept and rendered."""
    field = Int8Enum({'a': 1})
    value, _ = field.decode(b'\x07')
    assert value == 7
    assert field.to_human(value) == '<unknown:7>'
    assert field.to_human(1) == 'a'


def test_enum_default():
    """Test default values of enumerations."""
    assert Int8Enum({'x': 3, 'y': 4}).make_default() == 3
    assert Int8Enum({'x': 3, 'y': 4}, default='y').make_default() == 4


# ── Q-codes ──

def test_qcode_small_values_are_literal():
    """Test that values below the threshold are stored as-is."""
    mld = QCode(Int16())
    assert mld.encode(1000) == b'\x03\xe8'
    assert mld.decode(b'\x03\xe8') == (1000, 2)


def test_qcode_mldv2_values():
    """Test the 16-bit encoding used by MLDv2 maximum response codes."""
    mld = QCode(Int16())
    assert mld.to_code(32768) == 0x8000
    assert mld.to_code(40000) == 0x8388
    assert mld.to_code(100000) == 0x986a
    assert mld.to_value(0x986a) == 100000
    assert mld.to_value(0xffff) == 0x1fff << 10


def test_qcode_igmpv3_values():
    """Test the 8-bit encoding used by IGMPv3."""
    igmp = QCode(Int8())
    assert igmp.to_code(127) == 127
    assert igmp.to_code(200) == 0x89
    assert igmp.to_value(0x89) == 200
    assert igmp.max_value == 31744


def test_qcode_saturates():
    """Test that values beyond the largest code map to all ones."""
    igmp = QCode(Int8())
    assert igmp.to_code(40000) == 0xff
    assert igmp.encode(10 ** 6) == b'\xff'


def test_qcode_rejects_negative():
    with pytest.raises(ValueError):
        QCode(Int8()).coerce(-1)
