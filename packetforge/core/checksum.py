"""
Internet (one's complement) checksum helpers.
"""

from __future__ import annotations

import struct


def sum16(data: bytes) -> int:
    """Sum of the big-endian 16-bit words of ``data`` (zero-padded to even length)."""
    if len(data) % 2:
        data += b'\x00'
    return sum(struct.unpack(f'!{len(data) // 2}H', data))


def reduce_checksum(total: int) -> int:
    """
    Fold carries above bit 16 and complement.

    A zero result is mapped to 0xffff.
    """
    while total > 0xffff:
        total = (total & 0xffff) + (total >> 16)
    checksum = ~total & 0xffff
    return 0xffff if checksum == 0 else checksum


def inet_checksum(data: bytes, initial: int = 0) -> int:
    """Checksum of ``data``, starting from an ``initial`` partial sum."""
    return reduce_checksum(initial + sum16(data))
