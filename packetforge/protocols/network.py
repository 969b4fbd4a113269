"""
Network layer headers: IPv4, IPv6 with its Hop-by-Hop extension, ICMP and ICMPv6.
"""

from __future__ import annotations

import random

from packetforge.core.checksum import reduce_checksum, sum16
from packetforge.core.header import Header, Layer
from packetforge.core.registry import bind_header, register_header
from packetforge.fields import (
    TLV, Array, Bytes, Field, Int8, Int8Enum, Int16, Int32, IPv4Addr, IPv6Addr, RecordList,
    Struct,
)
from packetforge.fields.base import Fieldable
from packetforge.protocols.link import ETH_P_IP, ETH_P_IPV6, Dot1q, Eth

IPPROTO_HOPOPTS = 0
IPPROTO_ICMP = 1
IPPROTO_IGMP = 2
IPPROTO_TCP = 6
IPPROTO_UDP = 17
IPPROTO_ICMPV6 = 58


@register_header('IP', Layer.NETWORK)
class IP(Header):
    """IPv4 header."""

    fields = (
        Field('u8', Int8(0x45)),
        Field('tos', Int8()),
        Field('length', Int16(20)),
        Field('id', Int16(lambda _: random.randrange(0x10000))),
        Field('frag', Int16()),
        Field('ttl', Int8(64)),
        Field('protocol', Int8()),
        Field('checksum', Int16()),
        Field('src', IPv4Addr('127.0.0.1')),
        Field('dst', IPv4Addr('127.0.0.1')),
        Field('options', Bytes(length=lambda h: (h.ihl - 5) * 4),
              present=lambda h: h.ihl > 5, depends=('ihl',)),
    )
    bit_fields = {
        'u8': (('version', 4), ('ihl', 4)),
        'frag': (('flag_rsv', 1), ('flag_df', 1), ('flag_mf', 1), ('fragment_offset', 13)),
    }

    def is_valid(self) -> bool:
        return self.version == 4 and self.ihl >= 5

    def calc_length(self) -> None:
        """Set IHL from the options and total length from the payload."""
        if len(self.options) % 4:
            self.options = self.options.ljust(len(self.options) + 4 - len(self.options) % 4, b'\x00')
        self.ihl = 5 + len(self.options) // 4
        self.length = self.size() + len(self.payload_bytes())

    def calc_checksum(self) -> None:
        self.checksum = 0
        self.checksum = reduce_checksum(sum16(self.to_bytes()))

    def pseudo_header_sum(self, length: int, protocol: int) -> int:
        """Partial sum of the pseudo-header used by upper layer checksums."""
        addresses = IPv4Addr().encode(self.src) + IPv4Addr().encode(self.dst)
        return sum16(addresses) + protocol + length

    def reply(self) -> IP:
        self.src, self.dst = self.dst, self.src
        return self


@register_header('IPv6', Layer.NETWORK)
class IPv6(Header):
    """IPv6 fixed header."""

    fields = (
        Field('u32', Int32(0x60000000)),
        Field('length', Int16()),
        Field('next', Int8()),
        Field('hop', Int8(64)),
        Field('src', IPv6Addr('::1')),
        Field('dst', IPv6Addr('::1')),
    )
    bit_fields = {'u32': (('version', 4), ('traffic_class', 8), ('flow_label', 20))}

    def is_valid(self) -> bool:
        return self.version == 6

    def calc_length(self) -> None:
        self.length = len(self.payload_bytes())

    def pseudo_header_sum(self, length: int, protocol: int) -> int:
        """Partial sum of the pseudo-header used by upper layer checksums."""
        addresses = IPv6Addr().encode(self.src) + IPv6Addr().encode(self.dst)
        return sum16(addresses) + (length >> 16) + (length & 0xffff) + protocol

    def reply(self) -> IPv6:
        self.src, self.dst = self.dst, self.src
        return self


# ── Hop-by-Hop options ──

Option = TLV.create(type_class=Int8Enum({'pad1': 0, 'padn': 1, 'router_alert': 5}),
                    length_class=Int8(), name='Option')


@Option.register_type('router_alert')
class RouterAlert(Option):
    """Router alert option; value 0 means MLD."""
    value_type = Int16()


class Pad1(Struct):
    """Single padding byte; the only option without length and value."""

    fields = (Field('type', Int8()),)

    def to_human(self) -> str:
        return 'pad1'


class Options(Array):
    """Option list, dispatching on the Pad1 special case."""

    def __init__(self, length):
        super().__init__(Option, length=length)
        self.pad1 = Pad1.field_type()

    def element_for(self, data: bytes, offset: int, owner) -> Fieldable:
        if data[offset] == 0:
            return self.pad1
        return self.element

    def coerce(self, value, owner=None) -> RecordList:
        if isinstance(value, (bytes, bytearray)) or \
                (isinstance(value, RecordList) and value.owner is owner):
            return super().coerce(value, owner)
        items = [item if isinstance(item, Pad1) else self.element.coerce(item, owner) for item in value]
        return RecordList(items, owner, None, self.element)


def _is_padding(option: Struct) -> bool:
    return isinstance(option, Pad1) or (isinstance(option, Option) and option.type == 1)


@register_header('IPv6::HopByHop', Layer.NETWORK)
class HopByHop(Header):
    """IPv6 Hop-by-Hop options extension header."""

    fields = (
        Field('next', Int8()),
        Field('length', Int8()),
        Field('options', Options(length=lambda h: (h.length + 1) * 8 - 2), depends=('length',)),
    )

    def real_length(self) -> int:
        return (self.length + 1) * 8

    def calc_length(self) -> None:
        """Pad options to an 8-byte boundary and set the length field."""
        options = self.options
        while options and _is_padding(options[-1]):
            options.pop()
        pad = -(2 + self.type_of('options').size(options, self)) % 8
        if pad == 1:
            options.append(Pad1())
        elif pad > 1:
            options.append(Option(type='padn', value=b'\x00' * (pad - 2)))
        self.length = self.size() // 8 - 1


@register_header('ICMP', Layer.NETWORK)
class ICMP(Header):
    """ICMP header; the message body is the packet payload."""

    fields = (
        Field('type', Int8()),
        Field('code', Int8()),
        Field('checksum', Int16()),
    )

    def icmp_sum(self) -> int:
        return ((self.type << 8) | self.code) + sum16(self.payload_bytes())

    def calc_checksum(self) -> None:
        """One's complement of the sum of type, code and body words."""
        self.checksum = reduce_checksum(self.icmp_sum())


@register_header('ICMPv6', Layer.NETWORK)
class ICMPv6(ICMP):
    """ICMPv6 header; checksum covers the IPv6 pseudo-header."""

    fields = ICMP.fields

    def calc_checksum(self) -> None:
        length = self.size() + len(self.payload_bytes())
        total = self.icmp_sum() + self.ip_header().pseudo_header_sum(length, IPPROTO_ICMPV6)
        self.checksum = reduce_checksum(total)


bind_header(Eth, IP, ethertype=ETH_P_IP)
bind_header(Eth, IPv6, ethertype=ETH_P_IPV6)
bind_header(Dot1q, IP, ethertype=ETH_P_IP)
bind_header(Dot1q, IPv6, ethertype=ETH_P_IPV6)
bind_header(IP, ICMP, protocol=IPPROTO_ICMP)
bind_header(IPv6, HopByHop, next=IPPROTO_HOPOPTS)
bind_header(IPv6, ICMPv6, next=IPPROTO_ICMPV6)
bind_header(HopByHop, ICMPv6, next=IPPROTO_ICMPV6)
