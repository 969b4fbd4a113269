"""
Configuration for PcapNG files synthesized from packets.
"""

from __future__ import annotations

from dataclasses import dataclass

from packetforge.core.linktype import LINKTYPE_ETHERNET


@dataclass
class PcapNGConfig:
    """
    Defaults used when building a section from packets.

    Attributes:
        endian: Byte order of new sections ('little' or 'big')
        link_type: LINKTYPE of the synthesized interface
        snaplen: Snap length of the interface (0 = no limit); longer
            packets are truncated when stored
        ts_resolution: Raw ``if_tsresol`` option byte written on the
            interface, or None for the default (microseconds)
    """
    endian: str = 'little'
    link_type: int = LINKTYPE_ETHERNET
    snaplen: int = 0
    ts_resolution: int | None = None

    def __post_init__(self):
        if self.endian not in ('little', 'big'):
            raise ValueError(f"Invalid endian: {self.endian!r}. Use 'little' or 'big'.")
        if self.snaplen < 0:
            raise ValueError(f"snaplen must be >= 0, got {self.snaplen}")
        if self.ts_resolution is not None and not 0 <= self.ts_resolution <= 0xff:
            raise ValueError(f"ts_resolution must fit in one byte, got {self.ts_resolution}")
