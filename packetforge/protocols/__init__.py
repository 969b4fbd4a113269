"""
Built-in protocol headers.

Importing this package registers every header and binding in the global
registry.
"""

from packetforge.protocols.link import Eth, Dot1q, ARP
from packetforge.protocols.network import (
    IP, IPv6, HopByHop, ICMP, ICMPv6, Option, RouterAlert, Pad1,
)
from packetforge.protocols.transport import UDP, TCP
from packetforge.protocols.multicast import IGMP, MLD, MLQ, MLR, McastAddressRecord
from packetforge.protocols.application import TFTP

__all__ = [
    'Eth', 'Dot1q', 'ARP',
    'IP', 'IPv6', 'HopByHop', 'ICMP', 'ICMPv6', 'Option', 'RouterAlert', 'Pad1',
    'UDP', 'TCP',
    'IGMP', 'MLD', 'MLQ', 'MLR', 'McastAddressRecord',
    'TFTP',
]
