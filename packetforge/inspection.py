"""
Human-readable dumps of structs, packets and capture blocks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from packetforge.fields.int import Enum, Int

if TYPE_CHECKING:
    from packetforge.core.packet import Packet
    from packetforge.fields.struct import Struct

MAX_WIDTH = 70
FMT_ATTR = '{:>12} {:>12}: {}\n'


def dashed_line(name: str, level: int = 1) -> str:
    """Title line centered in dashes."""
    return f"{'--' * level} {name} ".ljust(MAX_WIDTH, '-') + '\n'


def format_attribute(type_name: str, name: str, value: str) -> str:
    return FMT_ATTR.format(type_name, name, value)


def format_value(ftype: Any, value: Any) -> str:
    if isinstance(ftype, Enum):
        return f"{ftype.to_human(value)} ({value:#0{ftype.width * 2 + 2}x})"
    if isinstance(ftype, Int) and not isinstance(value, bool):
        return f"{value} ({value:#0{ftype.width * 2 + 2}x})"
    return ftype.to_human(value)


def inspect_struct(struct: Struct, level: int = 1) -> str:
    """Field-by-field dump of a struct, bit sub-fields below their parent."""
    name = getattr(struct, 'protocol_name', '') or type(struct).__name__
    out = dashed_line(name, level)
    groups = struct._schema.groups
    for fname, ftype, value in struct.present_fields():
        out += format_attribute(type(ftype).__name__.lower(), fname, format_value(ftype, value))
        for bit in groups.get(fname, ()):
            out += format_attribute('', bit.name, str(getattr(struct, bit.name)))
    return out


def inspect_body(body: bytes) -> str:
    """Hex dump with offsets and printable characters, 16 bytes per line."""
    if not body:
        return ''
    out = ' ' * 6 + ' '.join(f'{i:2x}' for i in range(16)) + '\n'
    out += '-' * MAX_WIDTH + '\n'
    for offset in range(0, len(body), 16):
        chunk = body[offset:offset + 16]
        hexes = ' '.join(f'{b:02x}' for b in chunk).ljust(47)
        text = ''.join(chr(b) if 0x20 <= b < 0x7f else '.' for b in chunk)
        out += f'{offset:04x}  {hexes}  {text}\n'
    return out


def inspect_packet(packet: Packet) -> str:
    out = ''.join(inspect_struct(header) for header in packet.headers)
    if packet.payload:
        out += dashed_line('body')
        out += inspect_body(packet.payload)
    return out


def inspect_attributes(title: str, attributes: Iterable[tuple[str, Any]], level: int = 1) -> str:
    """Dump of (name, value) pairs, used for capture blocks."""
    out = dashed_line(title, level)
    for name, value in attributes:
        if isinstance(value, int) and not isinstance(value, bool):
            value = f"{value} ({value:#x})"
        out += format_attribute('', name, str(value))
    return out
