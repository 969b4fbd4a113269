"""
Boundary with live interfaces.

The core never talks to an OS capture API directly. Live capture,
injection and interface enumeration go through a ``Wire`` implementation
supplied by the caller (for instance a thin wrapper around libpcap).
Errors raised by an implementation should be ``WireError``; the core lets
them propagate unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class InterfaceInfo:
    """A local network interface."""
    name: str
    addresses: list[str] = field(default_factory=list)
    broadcast: str | None = None
    loopback: bool = False


class Wire(ABC):
    """Capture/inject collaborator."""

    @abstractmethod
    def open(self, iface: str | None) -> None:
        """Open a live interface by name (None for the default one)."""

    @abstractmethod
    def next_frame(self) -> tuple[bytes, float] | None:
        """Next raw frame and its capture timestamp, or None when done."""

    @abstractmethod
    def inject(self, iface: str | None, frame: bytes) -> None:
        """Write a raw frame to an interface."""

    def close(self) -> None:
        """Release the interface opened by ``open``."""

    def interfaces(self) -> list[InterfaceInfo]:
        """Local interfaces with their addresses."""
        return []


def default_interface(wire: Wire) -> InterfaceInfo | None:
    """First non-loopback interface, preferring one with addresses."""
    candidates = [iface for iface in wire.interfaces() if not iface.loopback]
    for iface in candidates:
        if iface.addresses:
            return iface
    return candidates[0] if candidates else None


def loopback_interface(wire: Wire) -> InterfaceInfo | None:
    for iface in wire.interfaces():
        if iface.loopback:
            return iface
    return None
