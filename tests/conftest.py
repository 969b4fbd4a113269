"""Configuration and fixtures for pytest tests."""

import os
import struct
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def registry():
    """An empty private protocol registry."""
    from packetforge.core.registry import ProtocolRegistry
    return ProtocolRegistry()


@pytest.fixture
def icmp_echo_bytes():
    """IPv4 ICMP echo request 10.0.0.1 -> 10.0.0.2, with valid checksums."""
    from packetforge.core.checksum import inet_checksum

    body = struct.pack('>HH', 0x1234, 1) + b'ping'
    icmp = struct.pack('>BBH', 8, 0, 0) + body
    icmp = icmp[:2] + struct.pack('>H', inet_checksum(icmp)) + icmp[4:]

    ip = struct.pack('>BBHHHBBH4s4s', 0x45, 0, 20 + len(icmp), 7, 0, 64, 1, 0,
                     bytes([10, 0, 0, 1]), bytes([10, 0, 0, 2]))
    ip = ip[:10] + struct.pack('>H', inet_checksum(ip)) + ip[12:]
    return ip + icmp


@pytest.fixture
def eth_udp_packet():
    """Eth/IP/UDP packet with lengths and checksums computed."""
    from packetforge import Packet

    pkt = (Packet.gen('Eth', dst='00:11:22:33:44:55', src='00:aa:bb:cc:dd:ee')
           .add('IP', src='192.168.1.1', dst='192.168.1.2', id=1)
           .add('UDP', sport=12345, dport=53))
    pkt.body = b'hello world'
    return pkt.calc()


@pytest.fixture
def mlq_packet():
    """Eth/IPv6/ICMPv6/MLDv2 query made valid with mldize()."""
    from packetforge import Packet

    pkt = (Packet.gen('Eth', src='00:11:22:33:44:55', dst='33:33:00:00:00:01')
           .add('IPv6', src='fe80::1', dst='ff02::1')
           .add('ICMPv6')
           .add('MLDv2::MLQ'))
    pkt.mldv2_mlq.source_addr.add('2001:db8::1')
    pkt.mldv2_mlq.mldize()
    return pkt
