"""
Block of a type this codec does not interpret.
"""

from __future__ import annotations

from typing import Any

from packetforge.pcapng.block import Block


class UnknownBlock(Block):
    """Opaque block, written back verbatim."""

    def __init__(self, endian: str = 'little', block_type: int = 0, body: bytes = b''):
        super().__init__(endian)
        self.block_type = block_type
        self.body = bytes(body)

    def encode_body(self) -> bytes:
        return self.body

    def decode_body(self, body: bytes) -> None:
        self.body = body

    def attributes(self) -> list[tuple[str, Any]]:
        return super().attributes() + [('body', self.body.hex())]
