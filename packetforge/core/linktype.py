"""
Link types and the first header used to dissect a captured frame.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
import warnings

from packetforge.core.packet import Packet

if TYPE_CHECKING:
    from packetforge.core.registry import ProtocolRegistry


# LINKTYPE (DLT) constants
LINKTYPE_NULL = 0           # BSD loopback
LINKTYPE_ETHERNET = 1       # Ethernet
LINKTYPE_RAW = 101          # Raw IP, version in the first nibble
LINKTYPE_IEEE802_11 = 105   # 802.11 wireless
LINKTYPE_LINUX_SLL = 113    # Linux cooked capture
LINKTYPE_RADIOTAP = 127     # 802.11 plus radiotap header
LINKTYPE_PPI = 192          # Per-Packet Information
LINKTYPE_IPV4 = 228         # Raw IPv4
LINKTYPE_IPV6 = 229         # Raw IPv6

_FIRST_HEADERS = {
    LINKTYPE_ETHERNET: 'Eth',
    LINKTYPE_IPV4: 'IP',
    LINKTYPE_IPV6: 'IPv6',
}


def first_header_for(link_type: int, data: bytes = b'') -> str | None:
    """Protocol name of the outermost header for a link type, or None if unknown."""
    if link_type == LINKTYPE_RAW:
        version = data[0] >> 4 if data else 0
        return {4: 'IP', 6: 'IPv6'}.get(version)
    return _FIRST_HEADERS.get(link_type)


def parse_frame(data: bytes, link_type: int, registry: ProtocolRegistry | None = None) -> Packet:
    """
    Dissect a captured frame.

    Args:
        data: Frame bytes
        link_type: LINKTYPE of the capture interface
        registry: Registry to use (defaults to global)

    Returns:
        Dissected packet
    """
    first_header = first_header_for(link_type, data)
    if first_header is None:
        warnings.warn(f"No first header known for link type {link_type}, guessing it",
                      stacklevel=2)
    return Packet.parse(data, first_header=first_header, registry=registry)
