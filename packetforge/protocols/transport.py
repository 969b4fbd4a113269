"""
Transport layer headers: UDP and TCP.
"""

from __future__ import annotations

from packetforge.core.checksum import reduce_checksum, sum16
from packetforge.core.header import Header, Layer
from packetforge.core.registry import bind_header, register_header
from packetforge.fields import Bytes, Field, Int16, Int32
from packetforge.protocols.network import (
    IPPROTO_TCP, IPPROTO_UDP, IP, IPv6, HopByHop,
)


def _upper_layer_checksum(header: Header, protocol: int) -> int:
    header.checksum = 0
    data = header.to_bytes() + header.payload_bytes()
    total = header.ip_header().pseudo_header_sum(len(data), protocol) + sum16(data)
    return reduce_checksum(total)


@register_header('UDP', Layer.TRANSPORT)
class UDP(Header):
    """UDP header."""

    fields = (
        Field('sport', Int16()),
        Field('dport', Int16()),
        Field('length', Int16(8)),
        Field('checksum', Int16()),
    )

    def calc_length(self) -> None:
        self.length = self.size() + len(self.payload_bytes())

    def calc_checksum(self) -> None:
        self.checksum = _upper_layer_checksum(self, IPPROTO_UDP)

    def reply(self) -> UDP:
        self.sport, self.dport = self.dport, self.sport
        return self


@register_header('TCP', Layer.TRANSPORT)
class TCP(Header):
    """TCP header with raw options."""

    fields = (
        Field('sport', Int16()),
        Field('dport', Int16()),
        Field('seqnum', Int32()),
        Field('acknum', Int32()),
        Field('u16', Int16(0x5000)),
        Field('window', Int16(8192)),
        Field('checksum', Int16()),
        Field('urg_pointer', Int16()),
        Field('options', Bytes(length=lambda h: (h.data_offset - 5) * 4),
              present=lambda h: h.data_offset > 5, depends=('data_offset',)),
    )
    bit_fields = {
        'u16': (('data_offset', 4), ('reserved', 3), ('flag_ns', 1), ('flag_cwr', 1),
                ('flag_ece', 1), ('flag_urg', 1), ('flag_ack', 1), ('flag_psh', 1),
                ('flag_rst', 1), ('flag_syn', 1), ('flag_fin', 1)),
    }

    def is_valid(self) -> bool:
        return self.data_offset >= 5

    def calc_length(self) -> None:
        """Pad options to 32 bits and set the data offset."""
        if len(self.options) % 4:
            self.options = self.options.ljust(len(self.options) + 4 - len(self.options) % 4, b'\x00')
        self.data_offset = 5 + len(self.options) // 4

    def calc_checksum(self) -> None:
        self.checksum = _upper_layer_checksum(self, IPPROTO_TCP)

    def reply(self) -> TCP:
        self.sport, self.dport = self.dport, self.sport
        return self


bind_header(IP, UDP, protocol=IPPROTO_UDP)
bind_header(IP, TCP, protocol=IPPROTO_TCP)
bind_header(IPv6, UDP, next=IPPROTO_UDP)
bind_header(IPv6, TCP, next=IPPROTO_TCP)
bind_header(HopByHop, UDP, next=IPPROTO_UDP)
bind_header(HopByHop, TCP, next=IPPROTO_TCP)
