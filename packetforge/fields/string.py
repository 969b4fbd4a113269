"""
Byte string field types: raw bytes, C strings and length-prefixed strings.
"""

from __future__ import annotations

from typing import Any

from packetforge.errors import ParseError
from packetforge.fields.base import (
    Fieldable, LengthSpec, length_references, need, resolve_length,
)
from packetforge.fields.int import Int, Int8


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode('latin-1')
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise ValueError(f"expected bytes or str, got {type(value).__name__}")


class Bytes(Fieldable):
    """
    Raw byte string.

    The decoded length is given by ``length``: a static int, the name of an
    earlier sibling field, a callable taking the owning struct, or None to
    consume the rest of the input. A static length also pads or truncates
    the value on encode.
    """

    def __init__(self, length: LengthSpec = None, default: bytes = b''):
        self.length = length
        self.default = default

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[bytes, int]:
        size = resolve_length(self.length, owner)
        if size is None:
            size = max(len(data) - offset, 0)
        need(data, offset, size, 'Bytes')
        return bytes(data[offset:offset + size]), size

    def encode(self, value: Any, owner: Any = None) -> bytes:
        value = _as_bytes(value)
        if isinstance(self.length, int):
            value = value[:self.length].ljust(self.length, b'\x00')
        return value

    def size(self, value: Any, owner: Any = None) -> int:
        if isinstance(self.length, int):
            return self.length
        return len(value)

    def coerce(self, value: Any, owner: Any = None) -> bytes:
        return _as_bytes(value)

    def to_human(self, value: bytes) -> str:
        return repr(value)

    def references(self) -> tuple[str, ...]:
        return length_references(self.length)


class CString(Fieldable):
    """
    Null-terminated string, optionally in a fixed-size slot.

    Stored without its terminator.
    """

    def __init__(self, static_length: int | None = None, default: bytes = b''):
        self.static_length = static_length
        self.default = default

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[bytes, int]:
        if self.static_length is not None:
            need(data, offset, self.static_length, 'CString')
            raw = bytes(data[offset:offset + self.static_length])
            return raw.split(b'\x00', 1)[0], self.static_length
        end = data.find(b'\x00', offset)
        if end < 0:
            raise ParseError('CString: missing null terminator')
        return bytes(data[offset:end]), end - offset + 1

    def encode(self, value: Any, owner: Any = None) -> bytes:
        value = _as_bytes(value)
        if self.static_length is not None:
            value = value[:self.static_length - 1]
            return value.ljust(self.static_length, b'\x00')
        return value + b'\x00'

    def size(self, value: Any, owner: Any = None) -> int:
        if self.static_length is not None:
            return self.static_length
        return len(value) + 1

    def coerce(self, value: Any, owner: Any = None) -> bytes:
        value = _as_bytes(value)
        if b'\x00' in value:
            raise ValueError('CString value may not contain a null byte')
        return value

    def to_human(self, value: bytes) -> str:
        return value.decode('latin-1')


class IntString(Fieldable):
    """String prefixed by its own length, encoded with ``len_type``."""

    def __init__(self, len_type: Int | None = None, default: bytes = b''):
        self.len_type = len_type if len_type is not None else Int8()
        self.default = default

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[bytes, int]:
        size, prefix = self.len_type.decode(data, offset, owner)
        start = offset + prefix
        need(data, start, size, 'IntString')
        return bytes(data[start:start + size]), prefix + size

    def encode(self, value: Any, owner: Any = None) -> bytes:
        value = _as_bytes(value)
        return self.len_type.encode(len(value)) + value

    def size(self, value: Any, owner: Any = None) -> int:
        return self.len_type.width + len(value)

    def coerce(self, value: Any, owner: Any = None) -> bytes:
        return _as_bytes(value)

    def to_human(self, value: bytes) -> str:
        return value.decode('latin-1')
