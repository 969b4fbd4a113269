"""
Export example.

Demonstrates exporting packets and capture records to:
- dicts / JSON
- DataFrame (pandas)
- CSV
"""

from packetforge import CaptureReader, PcapNGFile, file_to_dataframe, to_dataframe, to_json

with CaptureReader('mlq.pcapng', strict=False) as reader:
    packets = [pkt for _, pkt in reader.packets()]

print(f"Total packets: {len(packets)}")
print()

# === Export to DataFrame ===
df = to_dataframe(packets)
print("DataFrame export:")
print(df.head())
print()

# === Export to JSON ===
print(to_json(packets[:1]))

# === Capture records ===
records = file_to_dataframe(PcapNGFile().readfile('mlq.pcapng'))
print(records[['section', 'interface', 'block', 'timestamp', 'cap_len']])
