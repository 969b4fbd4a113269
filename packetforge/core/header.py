"""
Protocol header base class.
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable

from packetforge.errors import FormatError
from packetforge.fields.struct import Struct

if TYPE_CHECKING:
    from packetforge.core.packet import Packet


class Layer(IntEnum):
    """Protocol layer enumeration."""
    PHYSICAL = 1
    DATA_LINK = 2
    NETWORK = 3
    TRANSPORT = 4
    SESSION = 5
    PRESENTATION = 6
    APPLICATION = 7


class Header(Struct):
    """
    A struct tagged with a protocol name, living in a Packet.

    Subclasses may define ``calc_checksum()`` and ``calc_length()``; they
    are called by ``Packet.calc_checksum`` / ``Packet.calc_length``.
    """

    # Protocol short name (defaults to the class name)
    protocol_name: str = ''

    # Layer this header belongs to
    layer: Layer = Layer.APPLICATION

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if 'protocol_name' not in cls.__dict__:
            cls.protocol_name = cls.__name__

    def __init__(self, **values):
        object.__setattr__(self, 'packet', None)
        super().__init__(**values)

    @classmethod
    def method_name(cls) -> str:
        """Attribute name used to reach this header from a Packet."""
        return cls.protocol_name.lower().replace('::', '_')

    def is_valid(self) -> bool:
        """Sanity check run on freshly dissected headers."""
        return True

    def payload_bytes(self) -> bytes:
        """Encoded bytes following this header in its packet."""
        if self.packet is None:
            return b''
        return self.packet.bytes_after(self)

    def previous_header(self, predicate: Callable[[Header], bool]) -> Header | None:
        """Nearest header before this one in its packet matching ``predicate``."""
        if self.packet is None:
            return None
        index = self.packet.index_of(self)
        for header in reversed(self.packet.headers[:index]):
            if predicate(header):
                return header
        return None

    def ip_header(self) -> Any:
        """Nearest enclosing IP or IPv6 header, for pseudo-header checksums."""
        header = self.previous_header(lambda h: hasattr(h, 'pseudo_header_sum'))
        if header is None:
            raise FormatError(f"{self.protocol_name} header has no enclosing IP header")
        return header
