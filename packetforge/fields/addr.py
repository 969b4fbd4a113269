"""
Address field types with human-readable text values.
"""

from __future__ import annotations

from typing import Any
import ipaddress

from packetforge.fields.base import Fieldable, need


class MacAddr(Fieldable):
    """Ethernet address, stored as ``'aa:bb:cc:dd:ee:ff'``."""

    width = 6
    default = '00:00:00:00:00:00'

    def __init__(self, default: str | None = None):
        if default is not None:
            self.default = self.coerce(default)

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[str, int]:
        need(data, offset, self.width, 'MacAddr')
        return ':'.join(f'{b:02x}' for b in data[offset:offset + self.width]), self.width

    def encode(self, value: Any, owner: Any = None) -> bytes:
        return bytes(int(part, 16) for part in self.coerce(value).split(':'))

    def size(self, value: Any = None, owner: Any = None) -> int:
        return self.width

    def coerce(self, value: Any, owner: Any = None) -> str:
        if isinstance(value, (bytes, bytearray)) and len(value) == self.width:
            return ':'.join(f'{b:02x}' for b in value)
        parts = str(value).split(':')
        if len(parts) != self.width:
            raise ValueError(f"{value!r} is not a MAC address")
        try:
            octets = [int(part, 16) for part in parts]
        except ValueError:
            raise ValueError(f"{value!r} is not a MAC address") from None
        if any(not 0 <= octet <= 0xff for octet in octets):
            raise ValueError(f"{value!r} is not a MAC address")
        return ':'.join(f'{octet:02x}' for octet in octets)


class _IPAddr(Fieldable):
    """Common base for IPv4/IPv6 address fields."""

    address_class: type = ipaddress.IPv4Address
    width = 4

    def __init__(self, default: str | None = None):
        self.default = self.coerce(default) if default is not None else str(self.address_class(0))

    def decode(self, data: bytes, offset: int = 0, owner: Any = None) -> tuple[str, int]:
        need(data, offset, self.width, type(self).__name__)
        return str(self.address_class(bytes(data[offset:offset + self.width]))), self.width

    def encode(self, value: Any, owner: Any = None) -> bytes:
        return self.address_class(self.coerce(value)).packed

    def size(self, value: Any = None, owner: Any = None) -> int:
        return self.width

    def coerce(self, value: Any, owner: Any = None) -> str:
        try:
            return str(self.address_class(value))
        except ValueError:
            kind = 'IPv6' if self.width == 16 else 'IPv4'
            raise ValueError(f"{value!r} is not an {kind} address") from None


class IPv4Addr(_IPAddr):
    """IPv4 address, stored in dotted-quad form."""

    address_class = ipaddress.IPv4Address
    width = 4


class IPv6Addr(_IPAddr):
    """IPv6 address, stored in compressed text form."""

    address_class = ipaddress.IPv6Address
    width = 16
