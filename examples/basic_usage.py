"""
Basic packetforge usage example.

Demonstrates:
- Building an MLDv2 query with Packet.gen / add
- Making it a valid MLD packet with mldize()
- Writing it to a PcapNG file and reading it back
- Declaring a custom header and binding it below UDP
"""

from packetforge import Packet, PcapNGFile
from packetforge.core import Header, Layer, bind_header, register_header
from packetforge.fields import Field, Int8, Int16, IntString
from packetforge.protocols import UDP

# === Build an MLDv2 query ===
pkt = (Packet.gen('Eth', src='00:11:22:33:44:55', dst='33:33:00:00:00:01')
       .add('IPv6', src='fe80::1', dst='ff02::1')
       .add('ICMPv6')
       .add('MLDv2::MLQ', max_resp_delay=10000))
pkt.mldv2_mlq.source_addr.add('2001:db8::1')
pkt.mldv2_mlq.mldize()

print(pkt.inspect())
print(f"Protocols: {'/'.join(pkt.protocols)}")
print()

# === Write and read back ===
PcapNGFile().read_array([pkt], timestamp=0.0, ts_inc=0.001).write('mlq.pcapng')

for parsed in PcapNGFile().readfile('mlq.pcapng').to_a():
    print(f"Read back: {parsed!r}")
    print(f"  Query sources: {list(parsed.mldv2_mlq.source_addr)}")
print()


# === Custom header ===
@register_header('Greeting', Layer.APPLICATION)
class Greeting(Header):
    """Toy protocol carried over UDP port 4242."""

    fields = (
        Field('version', Int8(1)),
        Field('flags', Int8()),
        Field('seq', Int16()),
        Field('text', IntString(Int8())),
    )


bind_header(UDP, Greeting, dport=4242)

hello = Packet.gen('IP', src='10.0.0.1', dst='10.0.0.2').add('UDP').add('Greeting', text=b'hi')
hello.calc()
print(hello.inspect())
print(f"UDP dport set by binding: {hello.udp.dport}")
