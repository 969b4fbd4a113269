"""
Link layer headers: Ethernet, 802.1Q and ARP.
"""

from __future__ import annotations

from packetforge.core.header import Header, Layer
from packetforge.core.registry import bind_header, register_header
from packetforge.fields import Field, Int8, Int16, Int16Enum, IPv4Addr, MacAddr

ETH_P_IP = 0x0800
ETH_P_ARP = 0x0806
ETH_P_8021Q = 0x8100
ETH_P_IPV6 = 0x86dd


@register_header('Eth', Layer.DATA_LINK)
class Eth(Header):
    """Ethernet II header."""

    fields = (
        Field('dst', MacAddr()),
        Field('src', MacAddr()),
        Field('ethertype', Int16()),
    )

    def reply(self) -> Eth:
        """Swap source and destination addresses."""
        self.src, self.dst = self.dst, self.src
        return self


@register_header('Dot1q', Layer.DATA_LINK)
class Dot1q(Header):
    """IEEE 802.1Q VLAN tag."""

    fields = (
        Field('tci', Int16()),
        Field('ethertype', Int16()),
    )
    bit_fields = {'tci': (('pcp', 3), ('dei', 1), ('vid', 12))}


@register_header('ARP', Layer.NETWORK)
class ARP(Header):
    """ARP for IPv4 over Ethernet."""

    OPCODES = {'request': 1, 'reply': 2}

    fields = (
        Field('hrd', Int16(1)),
        Field('pro', Int16(ETH_P_IP)),
        Field('hln', Int8(6)),
        Field('pln', Int8(4)),
        Field('op', Int16Enum(OPCODES)),
        Field('sha', MacAddr()),
        Field('spa', IPv4Addr()),
        Field('tha', MacAddr()),
        Field('tpa', IPv4Addr()),
    )

    def reply(self) -> ARP:
        """Turn a request into its reply, swapping both address pairs."""
        self.op = 'reply'
        self.sha, self.tha = self.tha, self.sha
        self.spa, self.tpa = self.tpa, self.spa
        return self


bind_header(Eth, Dot1q, ethertype=ETH_P_8021Q)
bind_header(Eth, ARP, ethertype=ETH_P_ARP)
bind_header(Dot1q, ARP, ethertype=ETH_P_ARP)
