"""
Homogeneous arrays bound by a counter field or a byte budget.
"""

from __future__ import annotations

from typing import Any, Iterable

from packetforge.errors import FormatError, ParseError
from packetforge.fields.base import (
    Fieldable, LengthSpec, length_references, need, resolve_length,
)
from packetforge.fields.struct import Struct, as_fieldable


class RecordList(list):
    """
    Array value remembering the struct and counter field it belongs to.

    ``append``/``extend`` behave like a plain list and leave the counter
    untouched. ``add``, ``delete``, ``delete_at`` and ``reset`` keep the
    counter equal to the number of elements.
    """

    def __init__(self, items: Iterable[Any] = (), owner: Any = None, counter: str | None = None,
                 element: Fieldable | None = None):
        super().__init__(items)
        self.owner = owner
        self.counter = counter
        self.element = element

    def _sync_counter(self) -> None:
        if self.owner is not None and self.counter is not None:
            setattr(self.owner, self.counter, len(self))

    def add(self, item: Any) -> RecordList:
        if self.element is not None:
            item = self.element.coerce(item, self.owner)
        self.append(item)
        self._sync_counter()
        return self

    def delete(self, item: Any) -> Any:
        self.remove(item)
        self._sync_counter()
        return item

    def delete_at(self, index: int) -> Any:
        item = self.pop(index)
        self._sync_counter()
        return item

    def reset(self) -> RecordList:
        self.clear()
        self._sync_counter()
        return self


class Array(Fieldable):
    """
    Sequence of elements of one type.

    Args:
        element: Element type (Fieldable or Struct subclass)
        counter: Name of an earlier sibling field holding the element count;
            it is re-read before each element is decoded
        length: Byte budget (int, sibling name or callable); elements are
            decoded until the budget is consumed exactly
        separator: Separator used by to_human

    Without counter nor length, elements are decoded until the end of data.
    """

    def __init__(self, element: Any, counter: str | None = None, length: LengthSpec = None,
                 separator: str = ','):
        self.element = as_fieldable(element)
        self.counter = counter
        self.length = length
        self.separator = separator

    def element_for(self, data: bytes, offset: int, owner: Any) -> Fieldable:
        """Element type to decode at ``offset``. Override to dispatch."""
        return self.element

    def make_default(self, owner: Any = None) -> RecordList:
        return RecordList((), owner, self.counter, self.element)

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[RecordList, int]:
        budget = resolve_length(self.length, owner)
        if budget is not None:
            need(data, offset, budget, 'Array')
            data = data[:offset + budget]

        items = self.make_default(owner)
        pos = offset
        while True:
            if self.counter is not None:
                expected = int(getattr(owner, self.counter))
                if len(items) >= expected:
                    break
                if pos >= len(data):
                    raise ParseError(f"Array: {self.counter} announces {expected} elements, "
                                     f"data holds {len(items)}")
            elif pos >= len(data):
                break

            element = self.element_for(data, pos, owner)
            try:
                value, consumed = element.decode(data, pos, owner)
            except ParseError as exc:
                if budget is None:
                    raise
                raise FormatError(f"Array element at offset {pos - offset} overruns "
                                  f"its {budget}-byte budget") from exc
            if consumed <= 0:
                raise FormatError('Array element consumed no bytes')
            items.append(value)
            pos += consumed

        if budget is not None:
            return items, budget
        return items, pos - offset

    def _encode_item(self, item: Any, owner: Any) -> bytes:
        if isinstance(item, Struct):
            return item.to_bytes()
        return self.element.encode(item, owner)

    def encode(self, value: Any, owner: Any = None) -> bytes:
        return b''.join(self._encode_item(item, owner) for item in value)

    def size(self, value: Any, owner: Any = None) -> int:
        return sum(item.size() if isinstance(item, Struct) else self.element.size(item, owner)
                   for item in value)

    def coerce(self, value: Any, owner: Any = None) -> RecordList:
        if isinstance(value, RecordList) and value.owner is owner:
            return value
        if isinstance(value, (bytes, bytearray)):
            return self.decode(bytes(value), 0, owner)[0]
        items = [self.element.coerce(item, owner) for item in value]
        return RecordList(items, owner, self.counter, self.element)

    def to_human(self, value: Any) -> str:
        return self.separator.join(
            item.to_human() if isinstance(item, Struct) else self.element.to_human(item)
            for item in value)

    def references(self) -> tuple[str, ...]:
        refs = length_references(self.length)
        if self.counter is not None:
            refs += (self.counter,)
        return refs

    def __repr__(self) -> str:
        return f"Array({self.element!r}, counter={self.counter!r})"
