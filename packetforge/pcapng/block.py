"""
PcapNG block framing and options.

Every block is framed as ``type(4) | total_length(4) | body | total_length(4)``,
with integers in the byte order of its section. Options are kept as raw
bytes so that unknown option codes survive a read/write cycle unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, BinaryIO
import struct

from packetforge.errors import FormatError, InvalidFileError, ParseError
from packetforge.pcapng.constants import (
    MAGIC_BIG, MAGIC_LITTLE, OPT_COMMENT, OPT_ENDOFOPT,
)

# type + length + trailing length
FRAME_OVERHEAD = 12


def endian_prefix(endian: str) -> str:
    if endian == 'little':
        return '<'
    if endian == 'big':
        return '>'
    raise ValueError(f"Unknown endianness: {endian!r}")


def detect_endian(magic: bytes) -> str:
    """Byte order of a section, from its byte-order magic."""
    if magic == MAGIC_LITTLE:
        return 'little'
    if magic == MAGIC_BIG:
        return 'big'
    raise InvalidFileError(f"Bad byte-order magic: {magic.hex()}")


def pad4(length: int) -> int:
    """Padding needed after ``length`` bytes to reach a 32-bit boundary."""
    return -length % 4


def read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ParseError(f"{what}: need {size} bytes, got {len(data)}")
    return data


def check_block_length(block_len: int, min_size: int, what: str) -> None:
    if block_len % 4 or block_len < min_size:
        raise FormatError(f"{what}: invalid block length {block_len}")


@dataclass
class Option:
    """One option TLV of a block."""
    code: int
    value: bytes


def parse_options(data: bytes, endian: str) -> list[Option]:
    """
    Split raw option bytes into options, stopping at end-of-options.

    Raises:
        FormatError: If an option overruns the option buffer
    """
    prefix = endian_prefix(endian)
    options = []
    pos = 0
    while pos + 4 <= len(data):
        code, length = struct.unpack_from(f'{prefix}HH', data, pos)
        pos += 4
        if code == OPT_ENDOFOPT:
            break
        if pos + length > len(data):
            raise FormatError(f"Option {code} overruns its block ({length} bytes announced)")
        options.append(Option(code, data[pos:pos + length]))
        pos += length + pad4(length)
    return options


def build_options(options: list[Option], endian: str) -> bytes:
    """Encode options followed by an end-of-options marker (nothing if empty)."""
    if not options:
        return b''
    prefix = endian_prefix(endian)
    out = b''
    for option in options:
        out += struct.pack(f'{prefix}HH', option.code, len(option.value))
        out += option.value + b'\x00' * pad4(len(option.value))
    return out + struct.pack(f'{prefix}HH', OPT_ENDOFOPT, 0)


class Block:
    """
    Base class of PcapNG blocks.

    Subclasses implement encode_body/decode_body; framing is shared.
    """

    block_type: int = 0
    MIN_SIZE = FRAME_OVERHEAD

    def __init__(self, endian: str = 'little', options: bytes = b''):
        endian_prefix(endian)
        self.endian = endian
        self.options = bytes(options)
        self.section = None

    @property
    def prefix(self) -> str:
        return endian_prefix(self.endian)

    def encode_body(self) -> bytes:
        raise NotImplementedError

    def decode_body(self, body: bytes) -> None:
        raise NotImplementedError

    @classmethod
    def from_body(cls, body: bytes, endian: str, interface: Any = None) -> Block:
        """
        Build a block from its body (the bytes between both length fields).

        Args:
            body: Block body
            endian: Byte order of the section
            interface: Owning interface, needed by blocks whose layout
                depends on it (SPB)
        """
        if len(body) + FRAME_OVERHEAD < cls.MIN_SIZE:
            raise FormatError(f"{cls.__name__}: block shorter than {cls.MIN_SIZE} bytes")
        block = cls(endian)
        if interface is not None:
            block.interface = interface
        block.decode_body(body)
        return block

    def to_bytes(self) -> bytes:
        body = self.encode_body()
        block_len = FRAME_OVERHEAD + len(body)
        return (struct.pack(f'{self.prefix}II', self.block_type, block_len) + body +
                struct.pack(f'{self.prefix}I', block_len))

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @property
    def block_len(self) -> int:
        return FRAME_OVERHEAD + len(self.encode_body())

    # ── Options ──

    def options_list(self) -> list[Option]:
        return parse_options(self.options, self.endian)

    def get_option(self, code: int) -> bytes | None:
        """Value of the first option with ``code``, or None."""
        for option in self.options_list():
            if option.code == code:
                return option.value
        return None

    def add_option(self, code: int, value: bytes) -> None:
        options = self.options_list()
        options.append(Option(code, bytes(value)))
        self.options = build_options(options, self.endian)

    def set_option(self, code: int, value: bytes) -> None:
        """Replace every option with ``code`` by a single one."""
        options = [option for option in self.options_list() if option.code != code]
        options.append(Option(code, bytes(value)))
        self.options = build_options(options, self.endian)

    @property
    def comment(self) -> str | None:
        value = self.get_option(OPT_COMMENT)
        return value.decode('utf-8', 'replace') if value is not None else None

    # ── Representation ──

    def attributes(self) -> list[tuple[str, Any]]:
        return [('type', self.block_type), ('block_len', self.block_len)]

    def inspect(self, level: int = 1) -> str:
        from packetforge.inspection import inspect_attributes
        return inspect_attributes(type(self).__name__, self.attributes(), level)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.endian} len={self.block_len}>"
