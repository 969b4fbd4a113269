"""
Packet: an ordered list of bound headers plus a trailing payload.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

from packetforge.core.header import Header, Layer
from packetforge.core.registry import Binding, ProtocolRegistry, get_global_registry
from packetforge.errors import BindingError, FormatError, ParseError, WireError

if TYPE_CHECKING:
    from packetforge.wire import Wire


class Packet:
    """
    Layered network packet.

    Headers are ordered from outermost to innermost. Every adjacent pair is
    linked by a binding of the registry; bytes left once no binding matches
    are kept as ``payload``.

    Examples:
        Build a packet:
            >>> pkt = Packet.gen('IP', src='10.0.0.1', dst='10.0.0.2').add('ICMP', type=8)
            >>> pkt.body = b'\\x00\\x01\\x00\\x01ping'
            >>> pkt.calc()
            >>> raw = bytes(pkt)

        Dissect a frame:
            >>> pkt = Packet.parse(raw, first_header='IP')
            >>> pkt.ip.protocol
            1
    """

    def __init__(self, registry: ProtocolRegistry | None = None):
        self.headers: list[Header] = []
        self.payload = b''
        self.registry = registry if registry is not None else get_global_registry()

    # ── Composition ──

    @classmethod
    def gen(cls, protocol: Any, registry: ProtocolRegistry | None = None, **fields: Any) -> Packet:
        """Create a packet whose first header is ``protocol``."""
        return cls(registry).add(protocol, **fields)

    def add(self, protocol: Any, **fields: Any) -> Packet:
        """
        Append a header.

        Discriminator fields of the current last header that were not set
        explicitly are populated from the binding; explicit values must
        satisfy a binding.

        Args:
            protocol: Protocol name, Header subclass or Header instance
            **fields: Field values for the new header

        Returns:
            self

        Raises:
            BindingError: If no binding links the last header to the new one
        """
        header = self._make_header(protocol, fields)
        if self.headers:
            self._link(self.headers[-1], header)
        self._attach(header, len(self.headers))
        return self

    def insert(self, prev: Header | str, protocol: Any, **fields: Any) -> Packet:
        """Insert a header right after ``prev``, checking bindings on both sides."""
        if not isinstance(prev, Header):
            found = self.header(prev)
            if found is None:
                raise ValueError(f"packet has no {prev!r} header")
            prev = found
        index = self.index_of(prev)
        header = self._make_header(protocol, fields)
        saved = dict(prev._values)
        try:
            self._link(prev, header)
            if index + 1 < len(self.headers):
                self._link(header, self.headers[index + 1])
        except BindingError:
            # prev must still bind to its old successor
            prev._values.update(saved)
            raise
        self._attach(header, index + 1)
        return self

    def _header_class(self, protocol: Any) -> type[Header]:
        if isinstance(protocol, type) and issubclass(protocol, Header):
            return protocol
        header_cls = self.registry.get(protocol)
        if header_cls is None:
            raise ValueError(f"Unknown protocol: {protocol!r}")
        return header_cls

    def _make_header(self, protocol: Any, fields: dict[str, Any]) -> Header:
        if isinstance(protocol, Header):
            if protocol.packet is not None:
                raise ValueError(f"{protocol.protocol_name} header already belongs to a packet")
            for name, value in fields.items():
                setattr(protocol, name, value)
            return protocol
        return self._header_class(protocol)(**fields)

    def _attach(self, header: Header, index: int) -> None:
        header.packet = self
        self.headers.insert(index, header)

    def _link(self, prev: Header, header: Header) -> Binding:
        pred_cls, succ_cls = type(prev), type(header)
        edges = self.registry.bindings_between(pred_cls, succ_cls)
        if not edges:
            raise BindingError(
                pred_cls, succ_cls,
                hint=f"registry.bind({pred_cls.__name__}, {succ_cls.__name__}, <field>=<value>)")

        length = header.size()
        for edge in edges:
            if edge.matches(prev, length):
                return edge

        for edge in edges:
            defaults = edge.defaults()
            if any(prev.is_explicit(name) and getattr(prev, name) != value
                   for name, value in defaults.items()):
                continue
            saved = {name: getattr(prev, name) for name in defaults}
            for name, value in defaults.items():
                prev.assign(name, value, explicit=False)
            if edge.matches(prev, length):
                return edge
            for name, value in saved.items():
                prev.assign(name, value, explicit=False)

        raise BindingError(
            pred_cls, succ_cls,
            f"{prev.protocol_name} field values match no binding to {header.protocol_name}",
            hint='expected ' + ' or '.join(f"({edge.describe()})" for edge in edges))

    # ── Dissection ──

    @classmethod
    def parse(cls, data: bytes, first_header: Any = None,
              registry: ProtocolRegistry | None = None) -> Packet:
        """
        Dissect raw bytes.

        Args:
            data: Raw packet bytes
            first_header: Protocol of the outermost header; guessed if None
            registry: Registry to use (defaults to global)

        Returns:
            Dissected packet

        Raises:
            ParseError: If a header is truncated or the first header cannot
                be identified
        """
        pkt = cls(registry)
        data = bytes(data)
        if first_header is None:
            header_cls = pkt._guess_first_header(data)
        else:
            header_cls = pkt._header_class(first_header)

        header, pos = header_cls.decode(data, 0)
        pkt._attach(header, 0)
        while pos < len(data):
            successor = pkt.registry.resolve(header, len(data) - pos)
            if successor is None:
                break
            candidate, consumed = successor.decode(data, pos)
            if not candidate.is_valid():
                break
            pkt._attach(candidate, len(pkt.headers))
            header = candidate
            pos += consumed
        pkt.payload = data[pos:]
        return pkt

    def _guess_first_header(self, data: bytes) -> type[Header]:
        for name in self.registry.list_headers():
            header_cls = self.registry.get(name)
            try:
                header, consumed = header_cls.decode(data, 0)
            except (ParseError, FormatError):
                continue
            if header.is_valid() and self.registry.resolve(header, len(data) - consumed) is not None:
                return header_cls
        raise ParseError('cannot identify first header')

    # ── Lookup ──

    def header(self, protocol: Any, layer: int = 1) -> Header | None:
        """The ``layer``-th header (1-based) of a protocol, or None."""
        header_cls = self._header_class(protocol)
        found = [h for h in self.headers if type(h) is header_cls]
        return found[layer - 1] if len(found) >= layer else None

    def __getattr__(self, name: str) -> Header:
        if name.startswith('_') or name in ('headers', 'payload', 'registry'):
            raise AttributeError(name)
        header_cls = self.registry.get(name)
        if header_cls is not None:
            header = self.header(header_cls)
            if header is not None:
                return header
        raise AttributeError(f"packet has no {name!r} header")

    def __getitem__(self, protocol: Any) -> Header:
        header = self.header(protocol)
        if header is None:
            raise KeyError(protocol)
        return header

    def has(self, protocol: Any) -> bool:
        return self.header(protocol) is not None

    __contains__ = has

    @property
    def protocols(self) -> list[str]:
        return [header.protocol_name for header in self.headers]

    @property
    def body(self) -> bytes:
        return self.payload

    @body.setter
    def body(self, value: bytes) -> None:
        self.payload = bytes(value)

    def index_of(self, header: Header) -> int:
        for i, candidate in enumerate(self.headers):
            if candidate is header:
                return i
        raise ValueError(f"{header.protocol_name} header is not in this packet")

    def bytes_after(self, header: Header) -> bytes:
        index = self.index_of(header)
        return b''.join(h.to_bytes() for h in self.headers[index + 1:]) + self.payload

    # ── Serialization ──

    def to_bytes(self) -> bytes:
        return b''.join(h.to_bytes() for h in self.headers) + self.payload

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __len__(self) -> int:
        return sum(h.size() for h in self.headers) + len(self.payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Packet):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    __hash__ = None

    def calc_length(self) -> Packet:
        """Recompute length fields, innermost header first."""
        for header in reversed(self.headers):
            calc = getattr(header, 'calc_length', None)
            if calc is not None:
                calc()
        return self

    def calc_checksum(self) -> Packet:
        """Recompute checksums, innermost header first."""
        for header in reversed(self.headers):
            calc = getattr(header, 'calc_checksum', None)
            if calc is not None:
                calc()
        return self

    def calc(self) -> Packet:
        """Recompute lengths then checksums."""
        return self.calc_length().calc_checksum()

    def to_dict(self) -> dict[str, Any]:
        return {
            'protocols': self.protocols,
            'length': len(self),
            'headers': {h.method_name(): h.to_dict() for h in self.headers},
            'payload': self.payload.hex(),
        }

    def inspect(self) -> str:
        from packetforge.inspection import inspect_packet
        return inspect_packet(self)

    def __repr__(self) -> str:
        return f"<Packet {'/'.join(self.protocols) or 'empty'} len={len(self)}>"

    # ── Files ──

    def to_file(self, path: str | Path, append: bool = False) -> tuple[Path, int]:
        """Write this packet to a PcapNG file."""
        from packetforge.pcapng import PcapNGFile
        return PcapNGFile().read_array([self]).to_file(path, append=append)

    @classmethod
    def read(cls, path: str | Path, registry: ProtocolRegistry | None = None) -> list[Packet]:
        """Read and dissect all packets of a PcapNG file."""
        from packetforge.pcapng import PcapNGFile
        return PcapNGFile(registry=registry).read_packets(path)

    @classmethod
    def write(cls, path: str | Path, packets: Iterable[Packet]) -> tuple[Path, int]:
        """Write packets to a new PcapNG file."""
        from packetforge.pcapng import PcapNGFile
        return PcapNGFile().read_array(list(packets)).to_file(path)

    # ── Wire ──

    def to_w(self, wire: Wire, iface: str | None = None) -> None:
        """Inject this packet on an interface through ``wire``."""
        if not self.headers or self.headers[0].layer != Layer.DATA_LINK:
            first = self.headers[0].protocol_name if self.headers else 'empty'
            raise WireError(f"don't know how to send a {first} packet on wire")
        wire.inject(iface, self.to_bytes())

    @classmethod
    def capture(cls, wire: Wire, iface: str | None = None, max_packets: int | None = None,
                first_header: Any = None, registry: ProtocolRegistry | None = None) -> list[Packet]:
        """Capture and dissect frames from ``wire``."""
        packets: list[Packet] = []
        wire.open(iface)
        try:
            while max_packets is None or len(packets) < max_packets:
                frame = wire.next_frame()
                if frame is None:
                    break
                data, _timestamp = frame
                packets.append(cls.parse(data, first_header=first_header, registry=registry))
        finally:
            wire.close()
        return packets
