"""
Type-Length-Value records.

``TLV.create`` builds a concrete TLV class from its three field types.
Per-type subclasses can be registered on it; decoding through the created
class then dispatches on the type value.

Example:
    Option = TLV.create(type_class=Int8Enum({'pad1': 0, 'padn': 1}),
                        length_class=Int8())

    @Option.register_type(5)
    class RouterAlert(Option):
        value_type = Int16()
"""

from __future__ import annotations

from typing import Any

from packetforge.errors import FormatError, ParseError
from packetforge.fields.base import Fieldable
from packetforge.fields.int import Int, Int8
from packetforge.fields.string import Bytes
from packetforge.fields.struct import Field, Struct


class TLV(Struct):
    """Abstract TLV record. Use ``TLV.create`` to get a concrete class."""

    field_order = 'TLV'
    field_in_length = 'V'
    aliases: dict[str, str] = {}
    value_type: Fieldable | None = None
    type_value: int | None = None
    _types: dict[int, type] = {}

    def __init_subclass__(cls, **kwargs):
        value_type = cls.__dict__.get('value_type')
        if value_type is not None:
            cls.fields = tuple(
                Field('value', value_type, field.present, field.depends) if field.name == 'value' else field
                for field in cls.fields)
        super().__init_subclass__(**kwargs)

    @classmethod
    def create(cls, type_class: Int | None = None, length_class: Int | None = None,
               value_class: Fieldable | None = None, field_order: str = 'TLV',
               field_in_length: str = 'V', aliases: dict[str, str] | None = None,
               name: str = 'TLV') -> type[TLV]:
        """
        Build a concrete TLV class.

        Args:
            type_class: Type field (default Int8)
            length_class: Length field (default Int8)
            value_class: Value field (default Bytes sized by the length field)
            field_order: Wire order of T, L and V; L must precede V
            field_in_length: Parts counted by the length field
            aliases: Extra keyword names accepted by the constructor
            name: Name of the generated class

        Returns:
            New TLV subclass
        """
        if sorted(field_order) != ['L', 'T', 'V']:
            raise ValueError(f"field_order must be a permutation of 'TLV', got {field_order!r}")
        if field_order.index('L') > field_order.index('V'):
            raise ValueError('length must precede value in field_order')
        if not field_in_length or set(field_in_length) - set('TLV') or \
                len(set(field_in_length)) != len(field_in_length):
            raise ValueError(f"invalid field_in_length {field_in_length!r}")

        if value_class is None:
            value_class = Bytes(length=lambda tlv: tlv.value_length())
        by_letter = {
            'T': Field('type', type_class if type_class is not None else Int8()),
            'L': Field('length', length_class if length_class is not None else Int8()),
            'V': Field('value', value_class, depends=('length',)),
        }
        attrs = {
            'fields': tuple(by_letter[letter] for letter in field_order),
            'field_order': field_order,
            'field_in_length': field_in_length,
            'aliases': dict(aliases or {}),
            '_types': {},
            '__module__': cls.__module__,
        }
        return type(name, (cls,), attrs)

    @classmethod
    def register_type(cls, type_value: Any):
        """Class decorator registering a per-type subclass for dispatch."""
        def decorator(sub: type[TLV]) -> type[TLV]:
            sub.type_value = cls.type_of('type').coerce(type_value)
            cls._types[sub.type_value] = sub
            return sub
        return decorator

    @classmethod
    def class_for(cls, type_value: int) -> type[TLV]:
        return cls._types.get(type_value, cls)

    def __init__(self, **values):
        for alias, target in self.aliases.items():
            if alias in values:
                values[target] = values.pop(alias)
        length = values.pop('length', None)
        if self.type_value is not None:
            values.setdefault('type', self.type_value)
        super().__init__(**values)
        if 'length' in self._schema.types:
            if length is None:
                self.calc_length()
            else:
                self.length = length

    @classmethod
    def decode(cls, data: bytes, offset: int = 0, owner: Any = None) -> tuple[TLV, int]:
        obj, consumed = super().decode(data, offset, owner)
        if cls.type_value is None and cls._types:
            sub = cls._types.get(obj.type)
            if sub is not None:
                return sub.decode(data, offset, owner)
        if 'V' in cls.field_in_length and obj._part_size('V') != obj.value_length():
            raise FormatError(f"{cls.__name__}: length {obj.length} does not match a "
                              f"{obj._part_size('V')}-byte value")
        return obj, consumed

    def decode_field(self, name: str, data: bytes, offset: int = 0) -> int:
        if name == 'value' and 'V' in self.field_in_length:
            available = len(data) - offset
            if self.value_length() > available:
                raise FormatError(f"{type(self).__name__}: length {self.length} exceeds "
                                  f"remaining buffer ({available} bytes)")
            try:
                return super().decode_field(name, data, offset)
            except ParseError as exc:
                raise FormatError(f"{type(self).__name__}: value does not fit length "
                                  f"{self.length}: {exc}") from exc
        return super().decode_field(name, data, offset)

    def assign(self, name: str, value: Any, explicit: bool = True) -> None:
        super().assign(name, value, explicit)
        if name == 'value' and 'length' in self._schema.types:
            self.calc_length()

    def _part_size(self, letter: str) -> int:
        name = {'T': 'type', 'L': 'length', 'V': 'value'}[letter]
        return self.type_of(name).size(self._values[name], self)

    def value_length(self) -> int:
        """Size of the value, derived from the length field."""
        extra = sum(self._part_size(letter) for letter in self.field_in_length if letter != 'V')
        return max(self.length - extra, 0)

    def calc_length(self) -> int:
        """Set the length field from the size of the counted parts."""
        length = sum(self._part_size(letter) for letter in self.field_in_length)
        self.assign('length', length, explicit=False)
        return length

    def human_type(self) -> str:
        return self.type_of('type').to_human(self.type)

    def to_human(self) -> str:
        value = self.type_of('value').to_human(self.value)
        return f"type:{self.human_type()},length:{self.length},value:{value}"
