"""
Section Header Block: start of a section and owner of its blocks.
"""

from __future__ import annotations

from typing import Any
import struct

from packetforge.errors import FormatError
from packetforge.pcapng.block import Block
from packetforge.pcapng.constants import (
    BYTE_ORDER_MAGIC, EPB_TYPE, IDB_TYPE, SECTION_LEN_UNDEFINED, SHB_TYPE, SPB_TYPE,
)
from packetforge.pcapng.epb import EnhancedPacketBlock
from packetforge.pcapng.idb import InterfaceDescriptionBlock
from packetforge.pcapng.spb import SimplePacketBlock
from packetforge.pcapng.unknown_block import UnknownBlock


class SectionHeaderBlock(Block):
    """
    A section: its header fields plus every block up to the next section.

    All blocks of a section share its byte order. ``blocks`` keeps them in
    file order; ``interfaces`` and ``unknown_blocks`` are views by kind.
    """

    block_type = SHB_TYPE
    MIN_SIZE = 28

    def __init__(self, endian: str = 'little', ver_major: int = 1, ver_minor: int = 0,
                 section_len: int = SECTION_LEN_UNDEFINED, options: bytes = b''):
        super().__init__(endian, options)
        self.magic = BYTE_ORDER_MAGIC
        self.ver_major = ver_major
        self.ver_minor = ver_minor
        self.section_len = section_len
        self.blocks: list[Block] = []
        self.interfaces: list[InterfaceDescriptionBlock] = []
        self.unknown_blocks: list[UnknownBlock] = []

    def encode_body(self) -> bytes:
        return struct.pack(f'{self.prefix}IHHQ', self.magic, self.ver_major, self.ver_minor,
                           self.section_len) + self.options

    def decode_body(self, body: bytes) -> None:
        (self.magic, self.ver_major, self.ver_minor,
         self.section_len) = struct.unpack_from(f'{self.prefix}IHHQ', body)
        self.options = body[16:]

    def add(self, block: Block, interface: InterfaceDescriptionBlock | None = None) -> Block:
        """
        Append a block to the section.

        Packet blocks are attached to ``interface``, or to the interface
        they reference (interface 0 for simple packet blocks).

        Raises:
            FormatError: If a packet block references an unknown interface
            ValueError: If the block byte order differs from the section's
        """
        if block.endian != self.endian:
            raise ValueError(f"{block.endian}-endian block in a {self.endian}-endian section")

        if isinstance(block, InterfaceDescriptionBlock):
            self.interfaces.append(block)
        elif isinstance(block, (EnhancedPacketBlock, SimplePacketBlock)):
            if interface is None:
                index = block.interface_id if isinstance(block, EnhancedPacketBlock) else 0
                if index >= len(self.interfaces):
                    raise FormatError(f"Packet block references unknown interface {index}")
                interface = self.interfaces[index]
            elif isinstance(block, EnhancedPacketBlock):
                block.interface_id = self.interfaces.index(interface)
            elif not self.interfaces or interface is not self.interfaces[0]:
                raise ValueError('simple packet blocks belong to interface 0')
            block.interface = interface
            interface.packets.append(block)
        elif isinstance(block, UnknownBlock):
            self.unknown_blocks.append(block)
        else:
            raise ValueError(f"cannot add a {type(block).__name__} to a section")

        block.section = self
        self.blocks.append(block)
        return block

    def decode_block(self, block_type: int, body: bytes, retain: bool = True) -> Block:
        """
        Decode a block of this section from its type and body.

        With ``retain=False`` packet blocks are linked to their interface
        but not stored, for streaming reads.
        """
        if block_type == IDB_TYPE:
            return self.add(InterfaceDescriptionBlock.from_body(body, self.endian))

        if block_type in (EPB_TYPE, SPB_TYPE):
            if block_type == EPB_TYPE:
                block = EnhancedPacketBlock.from_body(body, self.endian)
                index = block.interface_id
            else:
                if not self.interfaces:
                    raise FormatError('Simple packet block before any interface')
                block = SimplePacketBlock.from_body(body, self.endian, interface=self.interfaces[0])
                index = 0
            if index >= len(self.interfaces):
                raise FormatError(f"Packet block references unknown interface {index}")
            if retain:
                return self.add(block)
            block.interface = self.interfaces[index]
            block.section = self
            return block

        block = UnknownBlock(self.endian, block_type, body)
        return self.add(block)

    def blocks_bytes(self) -> bytes:
        return b''.join(block.to_bytes() for block in self.blocks)

    def to_bytes(self) -> bytes:
        """Encode the section: its header block followed by all its blocks."""
        blocks = self.blocks_bytes()
        if self.section_len != SECTION_LEN_UNDEFINED:
            self.section_len = len(blocks)
        return super().to_bytes() + blocks

    def attributes(self) -> list[tuple[str, Any]]:
        return [
            ('type', self.block_type),
            ('endian', self.endian),
            ('version', f"{self.ver_major}.{self.ver_minor}"),
            ('section_len', self.section_len),
            ('interfaces', len(self.interfaces)),
        ]

    def inspect(self, level: int = 1) -> str:
        out = super().inspect(level)
        for block in self.blocks:
            out += block.inspect(level + 1)
        return out

    def __repr__(self) -> str:
        return f"<SectionHeaderBlock {self.endian} blocks={len(self.blocks)}>"
