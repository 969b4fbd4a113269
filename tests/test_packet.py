"""Test packet composition, dissection and lookups."""

import pytest

from packetforge import Packet
from packetforge.core.header import Header, Layer
from packetforge.core.registry import register_header
from packetforge.errors import BindingError, ParseError, WireError
from packetforge.fields import Field, Int8
from packetforge.protocols import IP, ICMP, UDP, ICMPv6
from packetforge.wire import Wire


class FakeWire(Wire):
    """In-memory wire: replays frames and records injected ones."""

    def __init__(self, frames=()):
        self.frames = list(frames)
        self.sent = []
        self.opened = None
        self.closed = False

    def open(self, iface):
        self.opened = iface

    def next_frame(self):
        if not self.frames:
            return None
        return self.frames.pop(0), 1.5

    def inject(self, iface, frame):
        self.sent.append((iface, frame))

    def close(self):
        self.closed = True


# ── Composition ──

def test_gen_and_add_populate_discriminators():
    """Test that adding a header sets the discriminator of the previous one."""
    pkt = Packet.gen('Eth').add('IP').add('UDP')
    assert pkt.protocols == ['Eth', 'IP', 'UDP']
    assert pkt.eth.ethertype == 0x0800
    assert pkt.ip.protocol == 17
    assert not pkt.ip.is_explicit('protocol')


def test_add_accepts_classes_and_instances():
    pkt = Packet.gen(IP).add(UDP(sport=1, dport=2))
    assert pkt.udp.sport == 1
    assert pkt.udp.packet is pkt


def test_add_unbound_raises_with_hint():
    """Test that adding an unrelated header explains the missing binding."""
    pkt = Packet.gen('Eth')
    with pytest.raises(BindingError) as exc_info:
        pkt.add('UDP')
    message = str(exc_info.value)
    assert 'Eth knows nothing about UDP' in message
    assert 'hint' in message
    assert exc_info.value.hint.startswith('registry.bind(Eth, UDP')


def test_explicit_discriminator_mismatch_raises():
    """Test that an explicit value matching no binding is refused."""
    pkt = Packet.gen('IP', protocol=6)
    with pytest.raises(BindingError) as exc_info:
        pkt.add('UDP')
    assert 'protocol=17' in exc_info.value.hint
    assert pkt.ip.protocol == 6


def test_explicit_discriminator_matching_is_kept():
    pkt = Packet.gen('IP', protocol=17).add('UDP')
    assert pkt.ip.protocol == 17


def test_unknown_protocol():
    with pytest.raises(ValueError):
        Packet.gen('NoSuchProtocol')


def test_header_instance_cannot_be_shared():
    udp = UDP()
    Packet.gen('IP').add(udp)
    with pytest.raises(ValueError):
        Packet.gen('IP').add(udp)


def test_insert_between_headers():
    """Test inserting an extension header checks both bindings."""
    pkt = Packet.gen('IPv6').add('UDP')
    pkt.ipv6.assign('next', 0, explicit=False)
    pkt.insert('IPv6', 'IPv6::HopByHop')
    assert pkt.protocols == ['IPv6', 'IPv6::HopByHop', 'UDP']
    assert pkt.ipv6_hopbyhop.next == 17


def test_insert_unknown_previous():
    with pytest.raises(ValueError):
        Packet.gen('IP').insert('Eth', 'IP')


def test_insert_failure_leaves_packet_unchanged():
    """Test that a refused insert does not rewrite the previous header."""
    pkt = Packet.gen('IPv6').add('UDP')
    before = bytes(pkt)
    with pytest.raises(BindingError):
        pkt.insert('IPv6', 'ICMPv6')
    assert pkt.ipv6.next == 17
    assert pkt.protocols == ['IPv6', 'UDP']
    assert bytes(pkt) == before


def test_custom_header_in_private_registry(registry):
    """Test composing and dissecting headers of a private registry."""

    @register_header('Carrier', Layer.NETWORK, registry=registry)
    class Carrier(Header):
        fields = (Field('proto', Int8()),)

    @register_header('Cargo', Layer.TRANSPORT, registry=registry)
    class Cargo(Header):
        fields = (Field('value', Int8()),)

    registry.bind(Carrier, Cargo, proto=0x42)
    pkt = Packet.gen('Carrier', registry=registry).add('Cargo', value=7)
    assert bytes(pkt) == b'\x42\x07'

    parsed = Packet.parse(b'\x42\x07rest', first_header='Carrier', registry=registry)
    assert parsed.protocols == ['Carrier', 'Cargo']
    assert parsed.cargo.value == 7
    assert parsed.payload == b'rest'


# ── Dissection ──

def test_parse_icmp(icmp_echo_bytes):
    pkt = Packet.parse(icmp_echo_bytes, first_header='IP')
    assert pkt.protocols == ['IP', 'ICMP']
    assert pkt.ip.src == '10.0.0.1'
    assert pkt.icmp.type == 8
    assert pkt.body == b'\x12\x34\x00\x01ping'
    assert bytes(pkt) == icmp_echo_bytes


def test_parse_guesses_first_header(icmp_echo_bytes):
    pkt = Packet.parse(icmp_echo_bytes)
    assert pkt.protocols[0] == 'IP'


def test_parse_stops_without_binding(eth_udp_packet):
    """Test that unknown successors leave the bytes as payload."""
    pkt = Packet.parse(bytes(eth_udp_packet), first_header='Eth')
    assert pkt.protocols == ['Eth', 'IP', 'UDP']
    assert pkt.payload == b'hello world'


def test_parse_stops_on_invalid_header():
    """Test that a successor failing its sanity check is not kept."""
    pkt = Packet.gen('Eth', ethertype=0x0800)
    pkt.body = b'\x00' * 20
    parsed = Packet.parse(bytes(pkt), first_header='Eth')
    assert parsed.protocols == ['Eth']
    assert len(parsed.payload) == 20


def test_parse_truncated_successor_raises():
    raw = bytes(Packet.gen('Eth').add('IP'))[:20]
    with pytest.raises(ParseError):
        Packet.parse(raw, first_header='Eth')


def test_parse_stops_when_no_bytes_remain():
    raw = bytes(Packet.gen('IP').add('UDP'))[:20]
    assert Packet.parse(raw, first_header='IP').protocols == ['IP']


def test_parse_tftp():
    pkt = Packet.gen('IP').add('UDP', sport=1024).add('TFTP', opcode='RRQ', filename=b'boot.img')
    pkt.calc()
    parsed = Packet.parse(bytes(pkt), first_header='IP')
    assert parsed.protocols == ['IP', 'UDP', 'TFTP']
    assert parsed.udp.dport == 69
    assert parsed.tftp.filename == b'boot.img'
    assert parsed.tftp.mode == b'octet'


# ── Lookup ──

def test_header_lookup_by_name_and_rank(registry):
    """Test access to the n-th header of a protocol."""

    @register_header('Tunnel', Layer.NETWORK, registry=registry)
    class Tunnel(Header):
        fields = (Field('inner', Int8()), Field('ident', Int8()))

    registry.bind(Tunnel, Tunnel, inner=1)
    pkt = Packet.gen('Tunnel', registry=registry, ident=1).add('Tunnel', ident=2)
    assert pkt.header('Tunnel').ident == 1
    assert pkt.header('Tunnel', 2).ident == 2
    assert pkt.header(Tunnel, 3) is None
    assert pkt.tunnel.inner == 1


def test_lookup_is_by_exact_type():
    """Test that a subclass header is not returned for its parent."""
    pkt = Packet.gen('IPv6').add('ICMPv6')
    assert pkt.header(ICMP) is None
    assert pkt.header(ICMPv6) is pkt.icmpv6


def test_item_and_membership():
    pkt = Packet.gen('IP').add('ICMP')
    assert pkt['ICMP'] is pkt.icmp
    assert 'ICMP' in pkt
    assert not pkt.has('UDP')
    with pytest.raises(KeyError):
        pkt['UDP']
    with pytest.raises(AttributeError):
        pkt.udp


def test_len_and_equality():
    a = Packet.gen('IP', id=1).add('ICMP')
    b = Packet.gen('IP', id=1).add('ICMP')
    assert len(a) == 24
    assert a == b
    b.icmp.code = 1
    assert a != b


def test_to_dict():
    pkt = Packet.gen('IP', id=1).add('ICMP', type=8)
    pkt.body = b'\x01'
    d = pkt.to_dict()
    assert d['protocols'] == ['IP', 'ICMP']
    assert d['headers']['icmp']['type'] == 8
    assert d['headers']['ip']['version'] == 4
    assert d['payload'] == '01'


def test_inspect_and_repr():
    pkt = Packet.gen('IP', id=1).add('ICMP')
    pkt.body = b'ping'
    out = pkt.inspect()
    assert 'ICMP' in out
    assert 'ping' in out
    assert repr(pkt) == '<Packet IP/ICMP len=28>'


# ── Wire ──

def test_to_w_injects_frame():
    wire = FakeWire()
    pkt = Packet.gen('Eth').add('IP')
    pkt.to_w(wire, 'eth0')
    assert wire.sent == [('eth0', bytes(pkt))]


def test_to_w_refuses_non_link_packet():
    with pytest.raises(WireError, match="don't know how to send a IP packet"):
        Packet.gen('IP').to_w(FakeWire())


def test_capture_dissects_frames(eth_udp_packet):
    wire = FakeWire([bytes(eth_udp_packet)] * 3)
    packets = Packet.capture(wire, 'eth1', max_packets=2, first_header='Eth')
    assert len(packets) == 2
    assert packets[0].udp.dport == 53
    assert wire.opened == 'eth1'
    assert wire.closed
