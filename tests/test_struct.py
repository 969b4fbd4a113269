"""Test the declarative struct engine."""

import pytest

from packetforge.errors import ParseError, SchemaError
from packetforge.fields import Bytes, Field, Int8, Int16, IPv4Addr, Struct


class Versioned(Struct):
    fields = (
        Field('u8', Int8(0x45)),
        Field('length', Int16()),
        Field('options', Bytes(length=lambda s: (s.ihl - 5) * 4),
              present=lambda s: s.ihl > 5, depends=('ihl',)),
        Field('addr', IPv4Addr('10.0.0.1')),
    )
    bit_fields = {'u8': (('version', 4), ('ihl', 4))}


class Flags(Struct):
    fields = (Field('flags', Int8()),)
    bit_fields = {'flags': (('_unused', 5), ('urgent', 1), ('more', 1), ('last', 1))}


class Wrapper(Struct):
    fields = (
        Field('kind', Int8(7)),
        Field('inner', Versioned),
    )


# ── Helpers ──

def _versioned_bytes(ihl=5, options=b''):
    return bytes([0x40 | ihl]) + b'\x00\x20' + options + b'\xc0\xa8\x00\x01'


# ── Defaults and attributes ──

def test_defaults():
    """Test that every field starts with its default value."""
    obj = Versioned()
    assert obj.u8 == 0x45
    assert obj.version == 4
    assert obj.ihl == 5
    assert obj.addr == '10.0.0.1'
    assert obj.to_bytes() == b'\x45\x00\x00\x0a\x00\x00\x01'


def test_keyword_construction():
    """Test construction with keyword values, including bit sub-fields."""
    obj = Versioned(length=7, version=6)
    assert obj.length == 7
    assert obj.u8 == 0x65
    assert obj.is_explicit('version')
    assert obj.is_explicit('u8')
    assert not obj.is_explicit('addr')


def test_unknown_keyword_raises():
    with pytest.raises(TypeError):
        Versioned(nope=1)


def test_bit_fields_msb_first():
    """Test that bit sub-fields are laid out from the most significant bit."""
    obj = Flags(flags=0b00000101)
    assert obj.urgent is True
    assert obj.more is False
    assert obj.last is True
    obj.more = 1
    assert obj.flags == 0b00000111


def test_reserved_bit_names_are_skipped():
    """Test that sub-fields starting with an underscore are not exposed."""
    assert 'urgent' in Flags._schema
    assert '_unused' not in Flags._schema


def test_bit_field_overflow():
    with pytest.raises(ValueError):
        Flags().urgent = 2


def test_item_access():
    """Test dictionary-style access to fields."""
    obj = Versioned()
    obj['length'] = 12
    assert obj['length'] == 12
    with pytest.raises(KeyError):
        obj['missing']


# ── Presence ──

def test_optional_field_absent():
    """Test that an absent field is skipped on encode and decode."""
    obj, consumed = Versioned.decode(_versioned_bytes())
    assert consumed == 7
    assert not obj.is_present('options')
    assert obj.addr == '192.168.0.1'


def test_optional_field_present():
    """Test that a field becomes present when its predicate holds."""
    obj, consumed = Versioned.decode(_versioned_bytes(ihl=6, options=b'\x94\x04\x00\x00'))
    assert consumed == 11
    assert obj.options == b'\x94\x04\x00\x00'
    assert obj.to_bytes() == _versioned_bytes(ihl=6, options=b'\x94\x04\x00\x00')


def test_offset_of():
    """Test byte offsets, which depend on present fields."""
    obj = Versioned()
    assert obj.offset_of('addr') == 3
    obj.ihl = 6
    obj.options = b'\x01\x02\x03\x04'
    assert obj.offset_of('addr') == 7
    assert obj.size() == 11


def test_truncated_decode_names_field():
    """Test that a ParseError names the struct and field."""
    with pytest.raises(ParseError, match='Versioned.addr'):
        Versioned.decode(b'\x45\x00\x00\x01')


# ── Schema checks ──

def test_forward_reference_rejected():
    """Test that a length referencing a later field is a schema error."""
    with pytest.raises(SchemaError):
        class Bad(Struct):
            fields = (
                Field('data', Bytes(length='size')),
                Field('size', Int8()),
            )


def test_forward_depends_rejected():
    with pytest.raises(SchemaError):
        class Bad(Struct):
            fields = (
                Field('data', Bytes(), present=lambda s: s.flag, depends=('flag',)),
                Field('flag', Int8()),
            )


def test_duplicate_field_rejected():
    with pytest.raises(SchemaError):
        class Bad(Struct):
            fields = (Field('a', Int8()), Field('a', Int8()))


def test_bit_widths_must_sum():
    with pytest.raises(SchemaError):
        class Bad(Struct):
            fields = (Field('a', Int8()),)
            bit_fields = {'a': (('x', 3), ('y', 3))}


def test_field_shadowing_method_rejected():
    """Test that a field may not hide a method of the class."""
    with pytest.raises(SchemaError):
        class Bad(Struct):
            fields = (Field('size', Int8()),)


# ── Nesting and representations ──

def test_nested_struct():
    """Test a struct used as a field of another struct."""
    obj = Wrapper(inner={'length': 3})
    assert obj.inner.length == 3
    raw = obj.to_bytes()
    assert raw[0] == 7
    decoded = Wrapper.from_bytes(raw)
    assert decoded == obj
    assert decoded.inner.addr == '10.0.0.1'


def test_to_dict_includes_bits():
    d = Versioned().to_dict()
    assert d['u8'] == 0x45
    assert d['version'] == 4
    assert d['ihl'] == 5
    assert 'options' not in d


def test_to_human():
    assert Flags(flags=1).to_human() == 'flags:1'


def test_inspect():
    out = Versioned().inspect()
    assert 'Versioned' in out
    assert '69 (0x45)' in out
    assert 'version' in out


def test_equality_is_byte_equality():
    assert Versioned(length=1) == Versioned(length=1)
    assert Versioned(length=1) != Versioned(length=2)
