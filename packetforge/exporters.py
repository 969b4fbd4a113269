"""
Export packets and capture file contents to dicts, JSON, CSV and pandas.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable
import json

if TYPE_CHECKING:
    import pandas as pd

    from packetforge.core.packet import Packet
    from packetforge.pcapng.file import PcapNGFile


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def to_dict(packets: Iterable[Packet]) -> list[dict[str, Any]]:
    """
    Convert packets to plain dictionaries.

    Byte strings are rendered as hex so the result is JSON serializable.
    """
    return [_jsonable(packet.to_dict()) for packet in packets]


def to_json(packets: Iterable[Packet], path: str | Path | None = None, indent: int = 2) -> str:
    """
    Export packets to JSON.

    Args:
        packets: Packets to export
        path: Output file path (optional)
        indent: JSON indentation

    Returns:
        JSON string
    """
    data = json.dumps(to_dict(packets), indent=indent)
    if path:
        Path(path).write_text(data)
    return data


def flatten_packet(packet: Packet) -> dict[str, Any]:
    """
    One flat row per packet.

    Columns are ``<header>.<field>``; a header occurring twice keeps its
    first occurrence. Nested records are exported as JSON text.
    """
    row: dict[str, Any] = {
        'protocols': '/'.join(packet.protocols),
        'length': len(packet),
    }
    for header in packet.headers:
        prefix = header.method_name()
        for name, value in header.to_dict().items():
            key = f"{prefix}.{name}"
            if key in row:
                continue
            value = _jsonable(value)
            if isinstance(value, (list, dict)):
                value = json.dumps(value)
            row[key] = value
    row['payload'] = packet.payload.hex()
    return row


def to_list_of_dicts(packets: Iterable[Packet]) -> list[dict[str, Any]]:
    return [flatten_packet(packet) for packet in packets]


def to_dataframe(packets: Iterable[Packet]) -> pd.DataFrame:
    """
    Convert packets to a pandas DataFrame, one row per packet.

    Raises:
        ImportError: If pandas is not installed
    """
    try:
        import pandas as pd
    except ImportError:
        raise ImportError("pandas is required for DataFrame export. Install with: pip install pandas")
    return pd.DataFrame(to_list_of_dicts(packets))


def to_csv(packets: Iterable[Packet], path: str | Path) -> None:
    """
    Export packets to CSV.

    Raises:
        ImportError: If pandas is not installed
    """
    to_dataframe(packets).to_csv(path, index=False)


def file_records(pcapng: PcapNGFile) -> list[dict[str, Any]]:
    """
    One record per packet block of a PcapNG file.

    Simple packet blocks have no timestamp; their ``timestamp`` is None.
    """
    from packetforge.pcapng.epb import EnhancedPacketBlock

    records = []
    for section_index, section in enumerate(pcapng.sections):
        for interface_index, interface in enumerate(section.interfaces):
            for block in interface.packets:
                enhanced = isinstance(block, EnhancedPacketBlock)
                records.append({
                    'section': section_index,
                    'endian': section.endian,
                    'interface': interface_index,
                    'link_type': interface.link_type,
                    'block': 'EPB' if enhanced else 'SPB',
                    'timestamp': block.timestamp if enhanced else None,
                    'cap_len': len(block.data),
                    'orig_len': block.orig_len,
                })
    return records


def file_to_dataframe(pcapng: PcapNGFile) -> pd.DataFrame:
    """
    Packet blocks of a PcapNG file as a pandas DataFrame.

    Raises:
        ImportError: If pandas is not installed
    """
    try:
        import pandas as pd
    except ImportError:
        raise ImportError("pandas is required for DataFrame export. Install with: pip install pandas")
    return pd.DataFrame(file_records(pcapng))


class PacketExporter:
    """
    Packet exporter.

    Example:
        >>> exporter = PacketExporter(packets)
        >>> exporter.save('packets.csv')
    """

    def __init__(self, packets: Iterable[Packet]):
        self.packets = list(packets)

    def to_dict(self) -> list[dict[str, Any]]:
        return to_dict(self.packets)

    def to_json(self, path: str | Path | None = None, indent: int = 2) -> str:
        return to_json(self.packets, path, indent)

    def to_dataframe(self) -> pd.DataFrame:
        return to_dataframe(self.packets)

    def to_csv(self, path: str | Path) -> None:
        to_csv(self.packets, path)

    def to_pcapng(self, path: str | Path) -> tuple[Path, int]:
        from packetforge.pcapng.file import PcapNGFile
        return PcapNGFile().read_array(self.packets).write(path)

    def save(self, path: str | Path) -> None:
        """
        Save packets to a file, format chosen by extension.

        Supported: .json, .csv, .pcapng
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == '.json':
            self.to_json(path)
        elif suffix == '.csv':
            self.to_csv(path)
        elif suffix == '.pcapng':
            self.to_pcapng(path)
        else:
            raise ValueError(f"Unsupported format: {suffix}")
