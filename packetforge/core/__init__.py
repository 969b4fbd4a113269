"""
Core: headers, binding registry, packets and capture file reading.
"""

from packetforge.core.header import Header, Layer
from packetforge.core.registry import (
    Binding, ProtocolRegistry, register_header, bind_header, get_global_registry,
)
from packetforge.core.packet import Packet
from packetforge.core.checksum import sum16, reduce_checksum, inet_checksum
from packetforge.core.linktype import first_header_for, parse_frame
from packetforge.core.reader import CaptureReader

__all__ = [
    'Header', 'Layer',
    'Binding', 'ProtocolRegistry', 'register_header', 'bind_header', 'get_global_registry',
    'Packet',
    'sum16', 'reduce_checksum', 'inet_checksum',
    'first_header_for', 'parse_frame',
    'CaptureReader',
]
