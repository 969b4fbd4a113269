"""
Simple Packet Block.
"""

from __future__ import annotations

from typing import Any
import struct

from packetforge.errors import FormatError
from packetforge.pcapng.block import Block, pad4
from packetforge.pcapng.constants import SPB_TYPE


class SimplePacketBlock(Block):
    """
    Captured packet without timestamp, implicitly on interface 0.

    The captured length is not stored: it is the original length, limited
    by the interface snap length.
    """

    block_type = SPB_TYPE
    MIN_SIZE = 16

    def __init__(self, endian: str = 'little', data: bytes = b'', orig_len: int | None = None):
        super().__init__(endian)
        self.interface = None
        self.data = bytes(data)
        self.orig_len = len(self.data) if orig_len is None else orig_len

    def encode_body(self) -> bytes:
        return struct.pack(f'{self.prefix}I', self.orig_len) + self.data + b'\x00' * pad4(len(self.data))

    def decode_body(self, body: bytes) -> None:
        (self.orig_len,) = struct.unpack_from(f'{self.prefix}I', body)
        snaplen = self.interface.snaplen if self.interface is not None else 0
        cap_len = min(self.orig_len, snaplen) if snaplen > 0 else self.orig_len
        if cap_len > len(body) - 4:
            raise FormatError(f"SPB packet length {cap_len} exceeds its block")
        self.data = body[4:4 + cap_len]

    def attributes(self) -> list[tuple[str, Any]]:
        return super().attributes() + [('orig_len', self.orig_len)]
