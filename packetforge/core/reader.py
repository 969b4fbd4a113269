"""
CaptureReader - libpcap and PcapNG capture files.

Classic libpcap files are read with dpkt; PcapNG files, which may mix
byte orders and link types across sections and interfaces, are read with
the native codec.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator
import warnings

from packetforge.core.linktype import parse_frame
from packetforge.errors import FormatError, ParseError

if TYPE_CHECKING:
    from packetforge.core.packet import Packet
    from packetforge.core.registry import ProtocolRegistry

PCAPNG_MAGIC = b'\x0a\x0d\x0d\x0a'


class CaptureReader:
    """
    Capture file reader.

    Yields ``(timestamp, frame, link_type)`` tuples; the timestamp is None
    for PcapNG simple packet blocks.

    Example:
        >>> with CaptureReader('traffic.pcapng') as reader:
        ...     for ts, pkt in reader.packets():
        ...         print(ts, pkt.protocols)
    """

    def __init__(self, path: str | Path, registry: ProtocolRegistry | None = None,
                 strict: bool = True):
        self.path = Path(path)
        self.registry = registry
        self.strict = strict
        self._file = None
        self._reader: Any | None = None
        self._format: str | None = None
        self._link_type: int | None = None

    def open(self) -> None:
        """Open the capture file and detect its format."""
        if not self.path.exists():
            raise FileNotFoundError(f"Capture file not found: {self.path}")

        f = open(self.path, 'rb')
        magic = f.read(4)
        f.seek(0)
        if magic == PCAPNG_MAGIC:
            from packetforge.pcapng import PcapNGFile
            self._reader = PcapNGFile(registry=self.registry)
            self._format = 'pcapng'
        else:
            import dpkt
            try:
                self._reader = dpkt.pcap.Reader(f)
            except ValueError as e:
                f.close()
                raise ValueError(f"Unknown capture format: {e}")
            self._format = 'pcap'
            self._link_type = self._reader.datalink()
        self._file = f

    def close(self) -> None:
        """Close the capture file."""
        self._reader = None
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self) -> CaptureReader:
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def format(self) -> str:
        """'pcap' or 'pcapng'."""
        if self._format is None:
            raise RuntimeError("Reader not opened")
        return self._format

    @property
    def link_type(self) -> int | None:
        """Link type of a libpcap file; None for PcapNG (per interface)."""
        if self._format is None:
            raise RuntimeError("Reader not opened")
        return self._link_type

    def __iter__(self) -> Iterator[tuple[float | None, bytes, int]]:
        """Iterate over frames of the capture file."""
        if self._reader is None:
            raise RuntimeError("Reader not opened. Call open() first.")

        if self._format == 'pcap':
            for ts, buf in self._reader:
                yield ts, buf, self._link_type
            return

        for block in self._reader.iter_blocks(self._file, retain=False):
            data = getattr(block, 'data', None)
            if data is None or getattr(block, 'interface', None) is None:
                continue
            ts = block.timestamp if hasattr(block, 'timestamp') else None
            yield ts, data, block.interface.link_type

    def packets(self) -> Iterator[tuple[float | None, Packet]]:
        """
        Iterate over dissected packets.

        Frames that cannot be dissected raise, unless the reader was created
        with ``strict=False``; they are then skipped with a warning.
        """
        for ts, buf, link_type in self:
            try:
                packet = parse_frame(buf, link_type, self.registry)
            except (ParseError, FormatError) as e:
                if self.strict:
                    raise
                warnings.warn(f"Skipping undecodable frame: {e}", stacklevel=2)
                continue
            yield ts, packet
