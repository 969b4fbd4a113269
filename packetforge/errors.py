"""
Exception hierarchy shared by the field engine, the binding graph and the
PcapNG codec.
"""

from __future__ import annotations

from typing import Any


class PacketForgeError(Exception):
    """Base class for all packetforge errors."""


class FormatError(PacketForgeError):
    """Structurally invalid binary data (length mismatch, TLV overrun...)."""


class InvalidFileError(FormatError):
    """A capture file that is not a valid PcapNG container."""


class ParseError(PacketForgeError):
    """Input is shorter than a field or struct requires."""


class SchemaError(PacketForgeError, ValueError):
    """A struct schema is inconsistent (duplicate or forward-referenced field)."""


class WireError(PacketForgeError):
    """Failure reported by, or about, the capture/inject boundary."""


class BindingError(PacketForgeError):
    """
    No binding (or more than one) between two header classes.

    Attributes:
        predecessor: Header class of the outer layer
        successor: Header class of the inner layer
        hint: Suggested fix, usually the missing ``bind`` call
    """

    def __init__(self, predecessor: Any, successor: Any, message: str | None = None,
                 hint: str | None = None):
        self.predecessor = predecessor
        self.successor = successor
        self.hint = hint
        pred = getattr(predecessor, 'protocol_name', None) or getattr(predecessor, '__name__', str(predecessor))
        succ = getattr(successor, 'protocol_name', None) or getattr(successor, '__name__', str(successor))
        if message is None:
            message = f"{pred} knows nothing about {succ}"
        if hint:
            message = f"{message} (hint: {hint})"
        super().__init__(message)
