"""
Multicast group management: IGMP, MLD and MLDv2.
"""

from __future__ import annotations

from packetforge.core.checksum import reduce_checksum, sum16
from packetforge.core.header import Header, Layer
from packetforge.core.registry import bind_header, register_header
from packetforge.fields import (
    Array, Bytes, Field, Int8, Int8Enum, Int16, IPv4Addr, IPv6Addr, QCode, Struct,
)
from packetforge.protocols.network import (
    IPPROTO_HOPOPTS, IPPROTO_IGMP, IP, IPv6, HopByHop, ICMPv6, RouterAlert,
)

# IP router alert option (RFC 2113), 4 bytes
IP_ROUTER_ALERT = b'\x94\x04\x00\x00'


@register_header('IGMP', Layer.NETWORK)
class IGMP(Header):
    """IGMPv2 message."""

    TYPES = {
        'MembershipQuery': 0x11,
        'MembershipReportv1': 0x12,
        'MembershipReport': 0x16,
        'LeaveGroup': 0x17,
    }

    fields = (
        Field('type', Int8Enum(TYPES)),
        Field('max_resp_time', Int8()),
        Field('checksum', Int16()),
        Field('group_addr', IPv4Addr('0.0.0.0')),
    )

    def calc_checksum(self) -> None:
        self.checksum = 0
        self.checksum = reduce_checksum(sum16(self.to_bytes() + self.payload_bytes()))

    def igmpize(self) -> None:
        """Set TTL 1 and add a router alert option to the enclosing IP header."""
        ip = self.ip_header()
        ip.ttl = 1
        ip.options = IP_ROUTER_ALERT
        self.packet.calc_length()


@register_header('MLD', Layer.NETWORK)
class MLD(Header):
    """Multicast Listener Discovery (v1) message body, following ICMPv6."""

    fields = (
        Field('max_resp_delay', Int16()),
        Field('reserved', Int16()),
        Field('mcast_addr', IPv6Addr('::')),
    )

    def mldize(self) -> None:
        """
        Make the packet a valid MLD packet.

        Inserts a Hop-by-Hop header carrying a router alert option after the
        IPv6 header, sets the hop limit to 1 and recomputes lengths and
        checksums.
        """
        packet = self.packet
        ipv6 = self.ip_header()
        if not packet.has(HopByHop):
            ipv6.assign('next', IPPROTO_HOPOPTS, explicit=False)
            packet.insert(ipv6, HopByHop(options=[RouterAlert(value=0)]))
        ipv6.hop = 1
        packet.calc()


class MLQ(MLD):
    """MLDv2 Multicast Listener Query."""

    fields = (
        Field('max_resp_delay', QCode(Int16())),
        Field('reserved', Int16()),
        Field('mcast_addr', IPv6Addr('::')),
        Field('u8', Int8()),
        Field('qqic', QCode(Int8())),
        Field('number_of_sources', Int16()),
        Field('source_addr', Array(IPv6Addr(), counter='number_of_sources')),
    )
    bit_fields = {'u8': (('resv', 4), ('flag_s', 1), ('qrv', 3))}


class McastAddressRecord(Struct):
    """Multicast address record of an MLDv2 report."""

    RECORD_TYPES = {
        'MODE_IS_INCLUDE': 1,
        'MODE_IS_EXCLUDE': 2,
        'CHANGE_TO_INCLUDE_MODE': 3,
        'CHANGE_TO_EXCLUDE_MODE': 4,
        'ALLOW_NEW_SOURCES': 5,
        'BLOCK_OLD_SOURCES': 6,
    }

    fields = (
        Field('type', Int8Enum(RECORD_TYPES)),
        Field('aux_data_len', Int8()),
        Field('number_of_sources', Int16()),
        Field('multicast_addr', IPv6Addr('::')),
        Field('source_addr', Array(IPv6Addr(), counter='number_of_sources')),
        Field('aux_data', Bytes(length=lambda r: r.aux_data_len * 4), depends=('aux_data_len',)),
    )

    def to_human(self) -> str:
        record_type = self.type_of('type').to_human(self.type)
        sources = ','.join(self.source_addr)
        return f"{record_type}({self.multicast_addr}/{sources})"


class MLR(Header):
    """MLDv2 Multicast Listener Report."""

    fields = (
        Field('reserved', Int16()),
        Field('number_of_mar', Int16()),
        Field('records', Array(McastAddressRecord, counter='number_of_mar')),
    )


register_header('MLDv2::MLQ', Layer.NETWORK)(MLQ)
register_header('MLDv2::MLR', Layer.NETWORK)(MLR)

bind_header(IP, IGMP, protocol=IPPROTO_IGMP)
# A query of 24 bytes or more is an MLDv2 query
bind_header(ICMPv6, MLD, type=130, payload_length=lambda n: n <= 23)
bind_header(ICMPv6, MLD, type=131)
bind_header(ICMPv6, MLD, type=132)
bind_header(ICMPv6, MLQ, type=130, payload_length=lambda n: n > 23)
bind_header(ICMPv6, MLR, type=143)
