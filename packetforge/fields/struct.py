"""
Declarative binary structs.

A struct class declares an ordered tuple of ``Field`` descriptors (wire
order) and, optionally, bit-field groups splitting an integer field into
named sub-fields. The declaration is compiled once per class into a
``Schema`` shared by all instances; instances only hold values.

Example:
    class Version(Struct):
        fields = (
            Field('u8', Int8(0x45)),
            Field('length', Int16()),
            Field('options', Bytes(length=lambda s: (s.ihl - 5) * 4),
                  present=lambda s: s.ihl > 5, depends=('ihl',)),
        )
        bit_fields = {'u8': (('version', 4), ('ihl', 4))}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Sequence

from packetforge.errors import ParseError, SchemaError
from packetforge.fields.base import Fieldable

_UNSET = object()


@dataclass(frozen=True)
class Field:
    """
    One named field of a struct.

    Attributes:
        name: Attribute name of the field
        type: Field type (a Fieldable instance or a Struct subclass)
        present: Optional predicate on the owning struct; the field is
            skipped on decode and encode when it returns False
        depends: Earlier sibling fields read by ``present`` or by a
            callable length of ``type``
        default: Overrides the type's default value (may be callable)
    """
    name: str
    type: Any
    present: Callable[[Any], bool] | None = None
    depends: tuple[str, ...] = ()
    default: Any = _UNSET


@dataclass(frozen=True)
class BitField:
    """A sub-field of an integer field, ``width`` bits at ``shift``."""
    name: str
    parent: str
    shift: int
    width: int

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1


def as_fieldable(ftype: Any) -> Fieldable:
    """Return the Fieldable for a declared field type."""
    if isinstance(ftype, Fieldable):
        return ftype
    if isinstance(ftype, type) and issubclass(ftype, Struct):
        return ftype.field_type()
    raise SchemaError(f"{ftype!r} is not a field type")


class Schema:
    """
    Compiled, read-only layout of a struct class.

    Raises:
        SchemaError: On duplicate names, bad bit-field groups, or a field
            referencing a sibling that is not declared before it
    """

    def __init__(self, owner: str, fields: Sequence[Field],
                 bit_fields: Mapping[str, Sequence[tuple[str, int]]] | None = None):
        self.owner = owner
        self.fields = tuple(fields)
        self.types: dict[str, Fieldable] = {}
        self.index: dict[str, int] = {}
        self.bits: dict[str, BitField] = {}
        self.groups: dict[str, tuple[BitField, ...]] = {}

        for i, field in enumerate(self.fields):
            if field.name in self.index:
                raise SchemaError(f"{owner}: duplicate field {field.name!r}")
            self.types[field.name] = as_fieldable(field.type)
            self.index[field.name] = i

        for parent, spec in (bit_fields or {}).items():
            self._add_group(parent, spec)

        for i, field in enumerate(self.fields):
            refs = tuple(field.depends) + self.types[field.name].references()
            for ref in refs:
                base = self.bits[ref].parent if ref in self.bits else ref
                if self.index.get(base, len(self.fields)) >= i:
                    raise SchemaError(
                        f"{owner}: field {field.name!r} references {ref!r}, "
                        f"which is not declared before it")

    def _add_group(self, parent: str, spec: Sequence[tuple[str, int]]) -> None:
        if parent not in self.types:
            raise SchemaError(f"{self.owner}: bit-field parent {parent!r} is not a field")
        nbits = getattr(self.types[parent], 'nbits', None)
        if nbits is None:
            raise SchemaError(f"{self.owner}: bit-field parent {parent!r} is not an integer")
        if sum(width for _, width in spec) != nbits:
            raise SchemaError(f"{self.owner}: bit-fields of {parent!r} must sum to {nbits} bits")

        group = []
        shift = nbits
        for name, width in spec:
            shift -= width
            if name.startswith('_'):
                continue
            if name in self.types or name in self.bits:
                raise SchemaError(f"{self.owner}: duplicate field {name!r}")
            bit = BitField(name, parent, shift, width)
            self.bits[name] = bit
            group.append(bit)
        self.groups[parent] = tuple(group)

    def names(self) -> list[str]:
        return [field.name for field in self.fields]

    def __contains__(self, name: str) -> bool:
        return name in self.types or name in self.bits


class Struct:
    """
    Base class of every binary record.

    Field values are read and written as attributes. Values set by the
    caller (keyword arguments or attribute assignment) or decoded from
    bytes are tracked as explicit.
    """

    fields: tuple[Field, ...] = ()
    bit_fields: dict[str, tuple[tuple[str, int], ...]] = {}
    _schema: Schema

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        schema = Schema(cls.__name__, cls.fields, cls.bit_fields)
        for name in list(schema.types) + list(schema.bits):
            if hasattr(cls, name):
                raise SchemaError(f"{cls.__name__}: field {name!r} shadows a class attribute")
        cls._schema = schema

    def __init__(self, **values):
        object.__setattr__(self, '_values', {})
        object.__setattr__(self, '_explicit', set())
        schema = self._schema
        for field in schema.fields:
            ftype = schema.types[field.name]
            if field.default is _UNSET:
                value = ftype.make_default(self)
            else:
                value = field.default(self) if callable(field.default) else field.default
                value = ftype.coerce(value, self)
            self._values[field.name] = value
        for name, value in values.items():
            if name not in schema:
                raise TypeError(f"{type(self).__name__} has no field {name!r}")
            setattr(self, name, value)

    # ── Attribute access ──

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            raise AttributeError(name)
        values = self.__dict__.get('_values')
        if values is not None:
            if name in values:
                return values[name]
            bit = type(self)._schema.bits.get(name)
            if bit is not None:
                raw = (values[bit.parent] >> bit.shift) & bit.mask
                return bool(raw) if bit.width == 1 else raw
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in type(self)._schema:
            self.assign(name, value)
        else:
            object.__setattr__(self, name, value)

    def __getitem__(self, name: str) -> Any:
        if name not in self._schema:
            raise KeyError(name)
        return getattr(self, name)

    def __setitem__(self, name: str, value: Any) -> None:
        if name not in self._schema:
            raise KeyError(name)
        self.assign(name, value)

    def assign(self, name: str, value: Any, explicit: bool = True) -> None:
        """
        Set a field or bit sub-field.

        Args:
            name: Field or bit sub-field name
            value: New value (human-readable forms are accepted)
            explicit: Record the field as set by the caller
        """
        schema = self._schema
        bit = schema.bits.get(name)
        if bit is not None:
            raw = int(value)
            if not 0 <= raw <= bit.mask:
                raise ValueError(f"{raw} does not fit in {bit.width}-bit field {name!r}")
            parent = self._values[bit.parent] & ~(bit.mask << bit.shift)
            self._values[bit.parent] = parent | (raw << bit.shift)
            name = bit.parent
        else:
            self._values[name] = schema.types[name].coerce(value, self)
        if explicit:
            self._explicit.add(name)

    def is_explicit(self, name: str) -> bool:
        bit = self._schema.bits.get(name)
        return (bit.parent if bit else name) in self._explicit

    def is_present(self, name: str) -> bool:
        field = self._schema.fields[self._schema.index[name]]
        return field.present is None or bool(field.present(self))

    def present_fields(self) -> Iterator[tuple[str, Fieldable, Any]]:
        """Yield (name, type, value) for every field present on the wire."""
        schema = self._schema
        for field in schema.fields:
            if self.is_present(field.name):
                yield field.name, schema.types[field.name], self._values[field.name]

    @classmethod
    def type_of(cls, name: str) -> Fieldable:
        return cls._schema.types[name]

    @classmethod
    def field_names(cls) -> list[str]:
        return cls._schema.names()

    @classmethod
    def field_type(cls) -> Fieldable:
        """Fieldable used when this struct is nested in another one."""
        return StructField(cls)

    # ── Binary conversion ──

    @classmethod
    def decode(cls, data: bytes, offset: int = 0, owner: Any = None) -> tuple[Struct, int]:
        """Decode a new instance. Returns (instance, bytes consumed)."""
        obj = cls()
        return obj, obj.decode_into(data, offset)

    @classmethod
    def from_bytes(cls, data: bytes) -> Struct:
        return cls.decode(data)[0]

    def decode_into(self, data: bytes, offset: int = 0) -> int:
        """Populate this instance from ``data``. Returns bytes consumed."""
        pos = offset
        for field in self._schema.fields:
            if not self.is_present(field.name):
                continue
            pos += self.decode_field(field.name, data, pos)
        return pos - offset

    def decode_field(self, name: str, data: bytes, offset: int = 0) -> int:
        """Decode a single field at ``offset``. Returns bytes consumed."""
        try:
            value, consumed = self._schema.types[name].decode(data, offset, self)
        except ParseError as exc:
            raise ParseError(f"{type(self).__name__}.{name}: {exc}") from exc
        self._values[name] = value
        self._explicit.add(name)
        return consumed

    def read(self, data: bytes) -> Struct:
        self.decode_into(data)
        return self

    def to_bytes(self) -> bytes:
        return b''.join(ftype.encode(value, self) for _, ftype, value in self.present_fields())

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def size(self) -> int:
        return sum(ftype.size(value, self) for _, ftype, value in self.present_fields())

    def offset_of(self, name: str) -> int:
        """Byte offset of field ``name`` from the start of the struct."""
        if name not in self._schema.index:
            raise KeyError(name)
        offset = 0
        for fname, ftype, value in self.present_fields():
            if fname == name:
                break
            offset += ftype.size(value, self)
        return offset

    # ── Representations ──

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        groups = self._schema.groups
        for name, _, value in self.present_fields():
            result[name] = _plain(value)
            for bit in groups.get(name, ()):
                result[bit.name] = getattr(self, bit.name)
        return result

    def to_human(self) -> str:
        return ','.join(f"{name}:{ftype.to_human(value)}" for name, ftype, value in self.present_fields())

    def inspect(self) -> str:
        from packetforge.inspection import inspect_struct
        return inspect_struct(self)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    __hash__ = None

    def __repr__(self) -> str:
        body = ', '.join(f"{name}={value!r}" for name, _, value in self.present_fields())
        return f"{type(self).__name__}({body})"


Struct._schema = Schema('Struct', ())


def _plain(value: Any) -> Any:
    if isinstance(value, Struct):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class StructField(Fieldable):
    """Adapter letting a Struct subclass be used as a field type."""

    def __init__(self, struct_cls: type[Struct]):
        self.struct_cls = struct_cls

    def make_default(self, owner: Any = None) -> Struct:
        return self.struct_cls()

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[Struct, int]:
        return self.struct_cls.decode(data, offset)

    def encode(self, value: Struct, owner: Any = None) -> bytes:
        return value.to_bytes()

    def size(self, value: Struct, owner: Any = None) -> int:
        return value.size()

    def coerce(self, value: Any, owner: Any = None) -> Struct:
        if isinstance(value, self.struct_cls):
            return value
        if isinstance(value, Mapping):
            return self.struct_cls(**value)
        if isinstance(value, (bytes, bytearray)):
            return self.struct_cls.from_bytes(bytes(value))
        raise ValueError(f"cannot convert {value!r} to {self.struct_cls.__name__}")

    def to_human(self, value: Struct) -> str:
        return value.to_human()

    def __repr__(self) -> str:
        return f"StructField({self.struct_cls.__name__})"
