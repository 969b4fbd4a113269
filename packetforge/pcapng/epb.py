"""
Enhanced Packet Block.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Any
import struct

from packetforge.errors import FormatError
from packetforge.pcapng.block import Block, pad4
from packetforge.pcapng.constants import DEFAULT_TS_RESOL, EPB_TYPE


class EnhancedPacketBlock(Block):
    """
    Captured packet with interface index and timestamp.

    The 64-bit timestamp is stored as two 32-bit words (``tsh``, ``tsl``)
    counted in units of the interface resolution.
    """

    block_type = EPB_TYPE
    MIN_SIZE = 32

    def __init__(self, endian: str = 'little', interface_id: int = 0, tsh: int = 0, tsl: int = 0,
                 data: bytes = b'', orig_len: int | None = None, options: bytes = b''):
        super().__init__(endian, options)
        self.interface = None
        self.interface_id = interface_id
        self.tsh = tsh
        self.tsl = tsl
        self.data = bytes(data)
        self.orig_len = len(self.data) if orig_len is None else orig_len

    @property
    def cap_len(self) -> int:
        return len(self.data)

    def encode_body(self) -> bytes:
        head = struct.pack(f'{self.prefix}5I', self.interface_id, self.tsh, self.tsl,
                           self.cap_len, self.orig_len)
        return head + self.data + b'\x00' * pad4(self.cap_len) + self.options

    def decode_body(self, body: bytes) -> None:
        (self.interface_id, self.tsh, self.tsl,
         cap_len, self.orig_len) = struct.unpack_from(f'{self.prefix}5I', body)
        if cap_len > len(body) - 20:
            raise FormatError(f"EPB captured length {cap_len} exceeds its block")
        self.data = body[20:20 + cap_len]
        self.options = body[20 + cap_len + pad4(cap_len):]

    @property
    def ticks(self) -> int:
        return (self.tsh << 32) | self.tsl

    @ticks.setter
    def ticks(self, value: int) -> None:
        self.tsh = (value >> 32) & 0xffffffff
        self.tsl = value & 0xffffffff

    def resolution(self) -> float:
        if self.interface is None:
            return DEFAULT_TS_RESOL
        return self.interface.ts_resol()

    def to_ticks(self, seconds: Any) -> int:
        """
        Convert seconds to interface ticks, rounding to the nearest tick.

        ``seconds`` may be an int, float, Fraction or Decimal; the conversion
        itself is exact.
        """
        return round(Fraction(seconds) / self._exact_resolution())

    def _exact_resolution(self) -> Fraction:
        if self.interface is None:
            return Fraction(1, 10 ** 6)
        return self.interface.ts_resol_exact()

    @property
    def timestamp(self) -> float:
        """Capture time in seconds since the epoch."""
        return float(self.ticks * self._exact_resolution())

    @timestamp.setter
    def timestamp(self, seconds: float) -> None:
        self.ticks = self.to_ticks(seconds)

    def attributes(self) -> list[tuple[str, Any]]:
        return super().attributes() + [
            ('interface_id', self.interface_id),
            ('timestamp', self.timestamp),
            ('cap_len', self.cap_len),
            ('orig_len', self.orig_len),
        ]
