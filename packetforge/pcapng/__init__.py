"""
PcapNG capture file codec.
"""

from packetforge.pcapng.constants import *  # noqa: F401,F403
from packetforge.pcapng.block import Block, Option, parse_options, build_options
from packetforge.pcapng.shb import SectionHeaderBlock
from packetforge.pcapng.idb import InterfaceDescriptionBlock
from packetforge.pcapng.epb import EnhancedPacketBlock
from packetforge.pcapng.spb import SimplePacketBlock
from packetforge.pcapng.unknown_block import UnknownBlock
from packetforge.pcapng.file import PcapNGFile

# Short aliases
SHB = SectionHeaderBlock
IDB = InterfaceDescriptionBlock
EPB = EnhancedPacketBlock
SPB = SimplePacketBlock

__all__ = [
    'Block', 'Option', 'parse_options', 'build_options',
    'SectionHeaderBlock', 'InterfaceDescriptionBlock', 'EnhancedPacketBlock',
    'SimplePacketBlock', 'UnknownBlock', 'PcapNGFile',
    'SHB', 'IDB', 'EPB', 'SPB',
]
