"""
Interface Description Block.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Any
import struct

from packetforge.pcapng.block import Block
from packetforge.pcapng.constants import (
    DEFAULT_TS_RESOL, IDB_TYPE, LINKTYPE_ETHERNET, OPT_IF_NAME, OPT_IF_TSRESOL,
)


class InterfaceDescriptionBlock(Block):
    """
    Describes a capture interface; owns the packet blocks captured on it.

    Attributes:
        link_type: LINKTYPE of captured frames
        snaplen: Maximum captured length (0 = no limit)
        packets: EPB/SPB blocks captured on this interface
    """

    block_type = IDB_TYPE
    MIN_SIZE = 20

    def __init__(self, endian: str = 'little', link_type: int = LINKTYPE_ETHERNET,
                 snaplen: int = 0, reserved: int = 0, options: bytes = b''):
        super().__init__(endian, options)
        self.link_type = link_type
        self.reserved = reserved
        self.snaplen = snaplen
        self.packets: list[Block] = []

    def encode_body(self) -> bytes:
        return struct.pack(f'{self.prefix}HHI', self.link_type, self.reserved, self.snaplen) + self.options

    def decode_body(self, body: bytes) -> None:
        self.link_type, self.reserved, self.snaplen = struct.unpack_from(f'{self.prefix}HHI', body)
        self.options = body[8:]

    def ts_resol(self) -> float:
        """
        Timestamp resolution in seconds.

        The ``if_tsresol`` option byte gives a negative power of 10, or of 2
        when its high bit is set. Default is one microsecond.
        """
        value = self.get_option(OPT_IF_TSRESOL)
        if value is None or len(value) != 1:
            return DEFAULT_TS_RESOL
        return float(self.ts_resol_exact())

    def ts_resol_exact(self) -> Fraction:
        """Timestamp resolution as an exact fraction of a second."""
        value = self.get_option(OPT_IF_TSRESOL)
        if value is None or len(value) != 1:
            return Fraction(1, 10 ** 6)
        code = value[0]
        if code & 0x80:
            return Fraction(1, 2 ** (code & 0x7f))
        return Fraction(1, 10 ** (code & 0x7f))

    @property
    def name(self) -> str | None:
        value = self.get_option(OPT_IF_NAME)
        return value.decode('utf-8', 'replace') if value is not None else None

    def add(self, block: Block) -> Block:
        """Attach a packet block to this interface and to its section."""
        if self.section is None:
            raise ValueError("interface is not part of a section")
        return self.section.add(block, interface=self)

    def attributes(self) -> list[tuple[str, Any]]:
        return super().attributes() + [
            ('link_type', self.link_type),
            ('snaplen', self.snaplen),
            ('ts_resol', self.ts_resol()),
            ('packets', len(self.packets)),
        ]
