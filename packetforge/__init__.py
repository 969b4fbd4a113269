"""
packetforge - layered packet construction, dissection and PcapNG files

Headers are declared as ordered field lists, bound to each other through
discriminator fields, and stacked into packets that can be serialized,
dissected back, and stored in PcapNG capture files.

Example usage:
    from packetforge import Packet, PcapNGFile

    pkt = Packet.gen('Eth').add('IPv6', dst='ff02::1').add('ICMPv6').add('MLDv2::MLQ')
    pkt.mldv2_mlq.source_addr.add('2001:db8::1')
    pkt.mldv2_mlq.mldize()

    PcapNGFile().read_array([pkt], timestamp=1.7e9, ts_inc=0.001).write('mld.pcapng')

    for packet in PcapNGFile().readfile('mld.pcapng').to_a():
        print(packet.protocols)
"""

from packetforge.errors import (
    PacketForgeError, FormatError, InvalidFileError, ParseError, SchemaError,
    WireError, BindingError,
)
from packetforge.core import (
    Header, Layer, Binding, ProtocolRegistry, register_header, bind_header,
    get_global_registry, Packet, CaptureReader,
)
from packetforge import protocols
from packetforge.config import PcapNGConfig
from packetforge.pcapng import PcapNGFile
from packetforge.exporters import (
    to_dataframe,
    to_dict,
    to_json,
    to_csv,
    file_to_dataframe,
    PacketExporter,
)
from packetforge.wire import Wire, InterfaceInfo

__version__ = "0.1.0"

__all__ = [
    # Errors
    'PacketForgeError',
    'FormatError',
    'InvalidFileError',
    'ParseError',
    'SchemaError',
    'WireError',
    'BindingError',

    # Core
    'Header',
    'Layer',
    'Binding',
    'ProtocolRegistry',
    'register_header',
    'bind_header',
    'get_global_registry',
    'Packet',
    'CaptureReader',
    'protocols',

    # Files
    'PcapNGConfig',
    'PcapNGFile',

    # Export
    'to_dataframe',
    'to_dict',
    'to_json',
    'to_csv',
    'file_to_dataframe',
    'PacketExporter',

    # Wire
    'Wire',
    'InterfaceInfo',
]
