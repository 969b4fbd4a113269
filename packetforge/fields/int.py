"""
Integer, enumeration and Q-code field types.
"""

from __future__ import annotations

from typing import Any, Mapping

from packetforge.fields.base import Fieldable, need


class Int(Fieldable):
    """
    Fixed-width integer.

    Args:
        width: Width in bytes (1, 2, 3, 4 or 8)
        endian: 'big' or 'little'
        signed: Two's complement if True
        default: Default value
    """

    WIDTHS = (1, 2, 3, 4, 8)

    def __init__(self, width: int, endian: str = 'big', signed: bool = False, default: Any = 0):
        if width not in self.WIDTHS:
            raise ValueError(f"Unsupported integer width: {width}")
        if endian not in ('big', 'little'):
            raise ValueError(f"Unknown endianness: {endian!r}")
        self.width = width
        self.endian = endian
        self.signed = signed
        self.default = default

    @property
    def nbits(self) -> int:
        return self.width * 8

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[int, int]:
        need(data, offset, self.width, type(self).__name__)
        raw = data[offset:offset + self.width]
        return int.from_bytes(raw, self.endian, signed=self.signed), self.width

    def encode(self, value: Any, owner: Any = None) -> bytes:
        try:
            return int(value).to_bytes(self.width, self.endian, signed=self.signed)
        except OverflowError:
            raise ValueError(f"{value} does not fit in {type(self).__name__}") from None

    def size(self, value: Any = None, owner: Any = None) -> int:
        return self.width

    def coerce(self, value: Any, owner: Any = None) -> int:
        if isinstance(value, bool):
            return int(value)
        if not isinstance(value, int):
            raise ValueError(f"{type(self).__name__} expects an integer, got {value!r}")
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(width={self.width}, endian={self.endian!r})"


class Int8(Int):
    def __init__(self, default: Any = 0):
        super().__init__(1, default=default)


class SInt8(Int):
    def __init__(self, default: Any = 0):
        super().__init__(1, signed=True, default=default)


class Int16(Int):
    def __init__(self, default: Any = 0, endian: str = 'big'):
        super().__init__(2, endian=endian, default=default)


class Int16le(Int16):
    def __init__(self, default: Any = 0):
        super().__init__(default, endian='little')


class SInt16(Int):
    def __init__(self, default: Any = 0, endian: str = 'big'):
        super().__init__(2, endian=endian, signed=True, default=default)


class Int24(Int):
    def __init__(self, default: Any = 0, endian: str = 'big'):
        super().__init__(3, endian=endian, default=default)


class Int32(Int):
    def __init__(self, default: Any = 0, endian: str = 'big'):
        super().__init__(4, endian=endian, default=default)


class Int32le(Int32):
    def __init__(self, default: Any = 0):
        super().__init__(default, endian='little')


class SInt32(Int):
    def __init__(self, default: Any = 0, endian: str = 'big'):
        super().__init__(4, endian=endian, signed=True, default=default)


class Int64(Int):
    def __init__(self, default: Any = 0, endian: str = 'big'):
        super().__init__(8, endian=endian, default=default)


class Int64le(Int64):
    def __init__(self, default: Any = 0):
        super().__init__(default, endian='little')


class Enum(Int):
    """
    Integer restricted (on assignment) to a name/value mapping.

    Values are stored as integers. Names are accepted on assignment and
    rendered by to_human; a decoded value outside the mapping is kept and
    rendered as ``<unknown:N>``.
    """

    def __init__(self, width: int, enum: Mapping[str, int], endian: str = 'big',
                 default: Any = None):
        if default is None:
            default = next(iter(enum.values()), 0)
        super().__init__(width, endian=endian, default=default)
        self.enum = dict(enum)
        self._names = {v: k for k, v in self.enum.items()}

    def coerce(self, value: Any, owner: Any = None) -> int:
        if isinstance(value, str):
            try:
                return self.enum[value]
            except KeyError:
                raise ValueError(f"{value!r} is not in enumeration {sorted(self.enum)}") from None
        return super().coerce(value, owner)

    def make_default(self, owner: Any = None) -> int:
        return self.coerce(super().make_default(owner))

    def name_of(self, value: int) -> str | None:
        return self._names.get(value)

    def to_human(self, value: int) -> str:
        name = self._names.get(value)
        return name if name is not None else f"<unknown:{value}>"


class Int8Enum(Enum):
    def __init__(self, enum: Mapping[str, int], default: Any = None):
        super().__init__(1, enum, default=default)


class Int16Enum(Enum):
    def __init__(self, enum: Mapping[str, int], default: Any = None, endian: str = 'big'):
        super().__init__(2, enum, endian=endian, default=default)


class Int32Enum(Enum):
    def __init__(self, enum: Mapping[str, int], default: Any = None, endian: str = 'big'):
        super().__init__(4, enum, endian=endian, default=default)


class QCode(Fieldable):
    """
    Floating-point style code wrapping a raw integer field.

    Values below ``2**(bits-1)`` are stored as-is. Larger values are stored
    as ``1 | exp(3) | mant(bits-4)`` and decoded as
    ``(1 << mant_bits | mant) << (exp + 3)``. This is the encoding used by
    IGMPv3 (8 bits) and MLDv2 (16 bits) response delays.

    Args:
        raw: Underlying integer field (Int8 or Int16)
        default: Default decoded value
    """

    def __init__(self, raw: Int, default: int = 0):
        self.raw = raw
        self.default = default
        self.mant_bits = raw.nbits - 4
        self.threshold = 1 << (raw.nbits - 1)
        self.all_ones = (1 << raw.nbits) - 1
        self.max_value = self.to_value(self.all_ones)

    @property
    def nbits(self) -> int:
        return self.raw.nbits

    def to_value(self, code: int) -> int:
        if code < self.threshold:
            return code
        mant = code & ((1 << self.mant_bits) - 1)
        exp = (code >> self.mant_bits) & 0x7
        return ((1 << self.mant_bits) | mant) << (exp + 3)

    def to_code(self, value: int) -> int:
        if value < self.threshold:
            return value
        if value >= self.max_value:
            return self.all_ones
        exp = 0
        value >>= 3
        while value > (1 << (self.mant_bits + 1)) - 1:
            exp += 1
            value >>= 1
        return self.threshold | (exp << self.mant_bits) | (value & ((1 << self.mant_bits) - 1))

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[int, int]:
        code, consumed = self.raw.decode(data, offset, owner)
        return self.to_value(code), consumed

    def encode(self, value: Any, owner: Any = None) -> bytes:
        return self.raw.encode(self.to_code(int(value)), owner)

    def size(self, value: Any = None, owner: Any = None) -> int:
        return self.raw.width

    def coerce(self, value: Any, owner: Any = None) -> int:
        if not isinstance(value, int) or value < 0:
            raise ValueError(f"QCode expects a non-negative integer, got {value!r}")
        return value
