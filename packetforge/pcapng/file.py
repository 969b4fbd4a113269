"""
PcapNG file: an ordered list of independently byte-ordered sections.
"""

from __future__ import annotations

from fractions import Fraction
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Iterable, Iterator, Mapping
import io
import struct
import warnings

from packetforge.config import PcapNGConfig
from packetforge.core.linktype import parse_frame
from packetforge.errors import InvalidFileError, ParseError
from packetforge.pcapng.block import (
    FRAME_OVERHEAD, Block, check_block_length, detect_endian, endian_prefix, read_exact,
)
from packetforge.pcapng.constants import (
    OPT_IF_TSRESOL, SECTION_LEN_UNDEFINED, SHB_TYPE,
)
from packetforge.pcapng.epb import EnhancedPacketBlock
from packetforge.pcapng.idb import InterfaceDescriptionBlock
from packetforge.pcapng.shb import SectionHeaderBlock
from packetforge.pcapng.spb import SimplePacketBlock

if TYPE_CHECKING:
    from packetforge.core.packet import Packet
    from packetforge.core.registry import ProtocolRegistry

# The SHB type is a palindrome: same bytes in both byte orders
_SHB_TYPE_BYTES = struct.pack('<I', SHB_TYPE)


class PcapNGFile:
    """
    Read and write PcapNG capture files.

    Examples:
        Read a file and dissect its packets:
            >>> f = PcapNGFile().readfile('capture.pcapng')
            >>> packets = f.to_a()

        Write packets with timestamps (Enhanced Packet Blocks):
            >>> PcapNGFile().read_array(packets, timestamp=1.7e9, ts_inc=0.001).write('out.pcapng')

        Append a new section to an existing file:
            >>> PcapNGFile().read_array(packets).append('out.pcapng')
    """

    def __init__(self, config: PcapNGConfig | None = None,
                 registry: ProtocolRegistry | None = None):
        self.config = config if config is not None else PcapNGConfig()
        self.registry = registry
        self.sections: list[SectionHeaderBlock] = []

    # ── Reading ──

    def iter_blocks(self, stream: BinaryIO, retain: bool = True) -> Iterator[Block]:
        """Parse blocks from ``stream``, adding sections to self. Yields every block."""
        section: SectionHeaderBlock | None = None
        parsed = 0
        while True:
            head = stream.read(8)
            if not head:
                break
            if len(head) < 8:
                raise ParseError(f"truncated block header ({len(head)} bytes)")

            if head[:4] == _SHB_TYPE_BYTES:
                if section is not None:
                    self._check_section_len(section, parsed)
                section = self._read_section_header(stream, head)
                self.sections.append(section)
                parsed = 0
                yield section
                continue

            if section is None:
                raise InvalidFileError('file does not start with a Section Header Block')
            prefix = endian_prefix(section.endian)
            block_type, block_len = struct.unpack(f'{prefix}II', head)
            check_block_length(block_len, FRAME_OVERHEAD, f"block type {block_type:#x}")
            rest = read_exact(stream, block_len - 8, f"block type {block_type:#x}")
            self._check_trailer(rest[-4:], block_len, prefix)
            parsed += block_len
            yield section.decode_block(block_type, rest[:-4], retain=retain)

        if section is not None:
            self._check_section_len(section, parsed)

    @staticmethod
    def _read_section_header(stream: BinaryIO, head: bytes) -> SectionHeaderBlock:
        magic = read_exact(stream, 4, 'Section Header Block')
        endian = detect_endian(magic)
        prefix = endian_prefix(endian)
        (block_len,) = struct.unpack(f'{prefix}I', head[4:])
        check_block_length(block_len, SectionHeaderBlock.MIN_SIZE, 'Section Header Block')
        rest = read_exact(stream, block_len - 12, 'Section Header Block')
        PcapNGFile._check_trailer(rest[-4:], block_len, prefix)
        section = SectionHeaderBlock.from_body(magic + rest[:-4], endian)
        if section.ver_major != 1:
            warnings.warn(f"Unexpected PcapNG major version {section.ver_major}", stacklevel=3)
        return section

    @staticmethod
    def _check_trailer(trailer: bytes, block_len: int, prefix: str) -> None:
        (repeated,) = struct.unpack(f'{prefix}I', trailer)
        if repeated != block_len:
            raise InvalidFileError(f"Block length mismatch: {block_len} != {repeated}")

    @staticmethod
    def _check_section_len(section: SectionHeaderBlock, parsed: int) -> None:
        if section.section_len not in (SECTION_LEN_UNDEFINED, parsed):
            warnings.warn(f"Section declares {section.section_len} bytes, {parsed} bytes parsed",
                          stacklevel=3)

    def read(self, data: bytes, keep: bool = False) -> PcapNGFile:
        """
        Parse PcapNG data.

        Current sections are replaced, unless ``keep`` is true; the parsed
        sections are then added after them.
        """
        if not keep:
            self.clear()
        for _ in self.iter_blocks(io.BytesIO(data)):
            pass
        return self

    def readfile(self, path: str | Path, keep: bool = False) -> PcapNGFile:
        """Parse a PcapNG file, replacing current sections unless ``keep`` is true."""
        if not keep:
            self.clear()
        with open(path, 'rb') as f:
            for _ in self.iter_blocks(f):
                pass
        return self

    def iter_packets(self, path: str | Path) -> Iterator[Block]:
        """
        Stream the packet blocks (EPB/SPB) of a file, one at a time.

        Packet blocks are not kept in memory; sections and interfaces are.
        """
        self.clear()
        with open(path, 'rb') as f:
            for block in self.iter_blocks(f, retain=False):
                if isinstance(block, (EnhancedPacketBlock, SimplePacketBlock)):
                    yield block

    def read_packet_bytes(self, path: str | Path) -> list[bytes]:
        """Raw bytes of every packet of a file."""
        return [block.data for block in self.iter_packets(path)]

    def read_packets(self, path: str | Path) -> list[Packet]:
        """Dissected packets of a file."""
        return [self._dissect(block) for block in self.iter_packets(path)]

    def _dissect(self, block: Block) -> Packet:
        return parse_frame(block.data, block.interface.link_type, self.registry)

    # ── Writing ──

    def to_bytes(self) -> bytes:
        return b''.join(section.to_bytes() for section in self.sections)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def to_file(self, path: str | Path, append: bool = False) -> tuple[Path, int]:
        """
        Write all sections to a file.

        Args:
            path: Output file path
            append: Add the sections after the current file content

        Returns:
            (path, number of bytes written)
        """
        data = self.to_bytes()
        path = Path(path)
        with open(path, 'ab' if append else 'wb') as f:
            f.write(data)
        return path, len(data)

    def write(self, path: str | Path) -> tuple[Path, int]:
        return self.to_file(path)

    def append(self, path: str | Path) -> tuple[Path, int]:
        return self.to_file(path, append=True)

    def clear(self) -> None:
        self.sections.clear()

    # ── Conversions ──

    def _new_section(self) -> InterfaceDescriptionBlock:
        config = self.config
        section = SectionHeaderBlock(config.endian)
        interface = InterfaceDescriptionBlock(config.endian, link_type=config.link_type,
                                              snaplen=config.snaplen)
        if config.ts_resolution is not None:
            interface.set_option(OPT_IF_TSRESOL, bytes([config.ts_resolution]))
        section.add(interface)
        self.sections.append(section)
        return interface

    def _capture(self, packet: Any) -> tuple[bytes, int]:
        data = bytes(packet)
        snaplen = self.config.snaplen
        return (data[:snaplen] if snaplen else data), len(data)

    def read_array(self, packets: Iterable[Any], timestamp: float | None = None,
                   ts_inc: float | None = None) -> PcapNGFile:
        """
        Add a new section holding ``packets`` (Packet objects or bytes).

        With both ``timestamp`` and ``ts_inc``, packets are stored in
        Enhanced Packet Blocks stamped ``timestamp + i * ts_inc``; otherwise
        in Simple Packet Blocks. The start and the increment are each
        rounded to interface ticks once, so consecutive packets stay
        ``ts_inc`` apart even at nanosecond resolution. Both accept
        Fraction or Decimal values for exact timestamps.
        """
        interface = self._new_section()
        endian = self.config.endian
        timed = timestamp is not None and ts_inc is not None
        if timed:
            resol = interface.ts_resol_exact()
            start, inc = round(Fraction(timestamp) / resol), round(Fraction(ts_inc) / resol)
        for i, packet in enumerate(packets):
            data, orig_len = self._capture(packet)
            if timed:
                block = interface.add(EnhancedPacketBlock(endian, data=data, orig_len=orig_len))
                block.ticks = start + i * inc
            else:
                interface.add(SimplePacketBlock(endian, data=data, orig_len=orig_len))
        return self

    def read_hash(self, packets: Mapping[float, Any]) -> PcapNGFile:
        """Add a new section holding timestamp-keyed packets, in Enhanced Packet Blocks."""
        interface = self._new_section()
        for ts, packet in packets.items():
            data, orig_len = self._capture(packet)
            block = interface.add(EnhancedPacketBlock(self.config.endian, data=data, orig_len=orig_len))
            block.timestamp = ts
        return self

    def packet_blocks(self) -> Iterator[Block]:
        """Every packet block, in section/interface order."""
        for section in self.sections:
            for interface in section.interfaces:
                yield from interface.packets

    def to_a(self) -> list[Packet]:
        """Dissected packets of all sections."""
        return [self._dissect(block) for block in self.packet_blocks()]

    def to_h(self) -> dict[float, Packet]:
        """Dissected packets keyed by timestamp; simple packet blocks are skipped."""
        return {block.timestamp: self._dissect(block)
                for block in self.packet_blocks() if isinstance(block, EnhancedPacketBlock)}

    def inspect(self) -> str:
        return ''.join(section.inspect() for section in self.sections)

    def __repr__(self) -> str:
        return f"<PcapNGFile sections={len(self.sections)}>"
