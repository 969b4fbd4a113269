"""
Base capability shared by every field type.

A field type is a stateless descriptor: it knows how to decode a value from
a buffer, encode a value back to bytes and compute its encoded size. The
values themselves live in the owning struct, never in the field type, so one
field type instance is shared by every instance of a header class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Union
import copy

from packetforge.errors import ParseError


# A length is either static, the name of an earlier sibling field, or a
# function of the owning struct.
LengthSpec = Union[int, str, Callable[[Any], int], None]


def resolve_length(spec: LengthSpec, owner: Any) -> int | None:
    """
    Evaluate a length specification against the owning struct.

    Args:
        spec: Static length, sibling field name, or callable
        owner: Struct holding the sibling values (may be None for static specs)

    Returns:
        Length in bytes, or None if the length is unbounded
    """
    if spec is None:
        return None
    if isinstance(spec, int):
        return spec
    if owner is None:
        raise ValueError(f"length {spec!r} needs an owning struct to be evaluated")
    if isinstance(spec, str):
        value = getattr(owner, spec)
    else:
        value = spec(owner)
    return max(int(value), 0)


def length_references(spec: LengthSpec) -> tuple[str, ...]:
    """Names of sibling fields a length specification reads."""
    if isinstance(spec, str):
        return (spec,)
    return ()


def need(data: bytes, offset: int, size: int, what: str) -> None:
    """Raise ParseError unless ``size`` bytes are available at ``offset``."""
    available = len(data) - offset
    if available < size:
        raise ParseError(f"{what}: need {size} bytes, got {max(available, 0)}")


class Fieldable(ABC):
    """
    Capability interface implemented by every field type.

    Subclasses implement decode/encode; size, to_human and coerce have
    sensible defaults.
    """

    default: Any = None

    @abstractmethod
    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[Any, int]:
        """Decode a value at ``offset``. Returns (value, bytes consumed)."""

    @abstractmethod
    def encode(self, value: Any, owner: Any = None) -> bytes:
        """Encode ``value`` to bytes."""

    def size(self, value: Any, owner: Any = None) -> int:
        return len(self.encode(value, owner))

    def to_human(self, value: Any) -> str:
        return str(value)

    def coerce(self, value: Any, owner: Any = None) -> Any:
        """Normalize a value assigned by the user (e.g. a name or a literal)."""
        return value

    def make_default(self, owner: Any = None) -> Any:
        default = self.default
        if callable(default):
            return default(owner)
        return copy.copy(default)

    def references(self) -> tuple[str, ...]:
        """Names of sibling fields this type reads while decoding."""
        return ()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
