"""Test CaptureReader on libpcap and PcapNG files."""

import struct

import pytest

from packetforge import CaptureReader, PcapNGFile
from packetforge.core.linktype import LINKTYPE_ETHERNET, LINKTYPE_RAW, first_header_for, parse_frame
from packetforge.errors import ParseError


# ── Helpers ──

def create_test_pcap_file(path, frames, link_type=LINKTYPE_ETHERNET):
    """Write a little-endian libpcap file holding ``frames``."""
    with open(path, 'wb') as f:
        f.write(b'\xd4\xc3\xb2\xa1')  # Magic number
        f.write(struct.pack('<HH', 2, 4))  # Version 2.4
        f.write(struct.pack('<iI', 0, 0))  # Thiszone, sigfigs
        f.write(struct.pack('<iI', 65535, link_type))  # Snaplen, network
        for i, frame in enumerate(frames):
            f.write(struct.pack('<IIII', 1234567890 + i, 500000, len(frame), len(frame)))
            f.write(frame)
    return path


# ── Link types ──

def test_first_header_for():
    assert first_header_for(LINKTYPE_ETHERNET) == 'Eth'
    assert first_header_for(LINKTYPE_RAW, b'\x60') == 'IPv6'
    assert first_header_for(LINKTYPE_RAW, b'\x45') == 'IP'
    assert first_header_for(999) is None


def test_parse_frame_unknown_link_type_warns(icmp_echo_bytes):
    with pytest.warns(UserWarning, match='link type 999'):
        pkt = parse_frame(icmp_echo_bytes, 999)
    assert pkt.protocols == ['IP', 'ICMP']


# ── libpcap ──

def test_reader_not_opened():
    reader = CaptureReader('test.pcap')
    assert reader.path.name == 'test.pcap'
    with pytest.raises(RuntimeError):
        list(reader)
    with pytest.raises(RuntimeError):
        reader.format


def test_reader_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        CaptureReader(tmp_path / 'missing.pcap').open()


def test_reader_pcap(tmp_path, eth_udp_packet):
    """Test reading a classic libpcap file through dpkt."""
    path = create_test_pcap_file(tmp_path / 'test.pcap', [bytes(eth_udp_packet)] * 2)
    with CaptureReader(path) as reader:
        assert reader.format == 'pcap'
        assert reader.link_type == LINKTYPE_ETHERNET
        frames = list(reader)
    assert len(frames) == 2
    ts, buf, link_type = frames[1]
    assert ts == pytest.approx(1234567891.5)
    assert buf == bytes(eth_udp_packet)
    assert link_type == LINKTYPE_ETHERNET


def test_reader_pcap_packets(tmp_path, eth_udp_packet):
    path = create_test_pcap_file(tmp_path / 'test.pcap', [bytes(eth_udp_packet)])
    with CaptureReader(path) as reader:
        (ts, packet), = list(reader.packets())
    assert packet.protocols == ['Eth', 'IP', 'UDP']
    assert packet.udp.dport == 53


def test_reader_raw_ip_link_type(tmp_path, icmp_echo_bytes):
    path = create_test_pcap_file(tmp_path / 'raw.pcap', [icmp_echo_bytes], link_type=LINKTYPE_RAW)
    with CaptureReader(path) as reader:
        (_, packet), = list(reader.packets())
    assert packet.protocols == ['IP', 'ICMP']


def test_reader_unknown_format(tmp_path):
    path = tmp_path / 'junk.bin'
    path.write_bytes(b'junk' * 8)
    with pytest.raises(ValueError, match='Unknown capture format'):
        CaptureReader(path).open()


def test_reader_strict_and_lenient(tmp_path, eth_udp_packet):
    """Test that undecodable frames raise, or are skipped with a warning."""
    broken = bytes(eth_udp_packet)[:20]
    path = create_test_pcap_file(tmp_path / 'broken.pcap', [broken, bytes(eth_udp_packet)])

    with CaptureReader(path) as reader:
        with pytest.raises(ParseError):
            list(reader.packets())

    with CaptureReader(path, strict=False) as reader:
        with pytest.warns(UserWarning, match='Skipping undecodable frame'):
            packets = list(reader.packets())
    assert len(packets) == 1


# ── PcapNG ──

def test_reader_pcapng(tmp_path, eth_udp_packet, mlq_packet):
    path = tmp_path / 'test.pcapng'
    PcapNGFile().read_array([eth_udp_packet], timestamp=100.0, ts_inc=1.0).write(path)
    PcapNGFile().read_array([mlq_packet]).append(path)

    with CaptureReader(path) as reader:
        assert reader.format == 'pcapng'
        assert reader.link_type is None
        frames = list(reader)

    assert len(frames) == 2
    assert frames[0][0] == pytest.approx(100.0)
    assert frames[1][0] is None
    assert frames[1][2] == LINKTYPE_ETHERNET

    with CaptureReader(path) as reader:
        packets = [packet for _, packet in reader.packets()]
    assert packets[1] == mlq_packet
