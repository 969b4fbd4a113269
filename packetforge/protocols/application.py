"""
Application layer headers: TFTP.
"""

from __future__ import annotations

from packetforge.core.header import Header, Layer
from packetforge.core.registry import bind_header, register_header
from packetforge.fields import Bytes, CString, Field, Int16, Int16Enum
from packetforge.protocols.transport import UDP

TFTP_PORT = 69


def _opcode_in(*opcodes: int):
    return lambda h: h.opcode in opcodes


@register_header('TFTP', Layer.APPLICATION)
class TFTP(Header):
    """
    TFTP message.

    Fields present on the wire depend on the opcode: requests carry a
    filename and a mode, DATA and ACK a block number, DATA its data and
    Error an error code and message.
    """

    OPCODES = {'RRQ': 1, 'WRQ': 2, 'DATA': 3, 'ACK': 4, 'Error': 5}

    fields = (
        Field('opcode', Int16Enum(OPCODES)),
        Field('filename', CString(), present=_opcode_in(1, 2), depends=('opcode',)),
        Field('mode', CString(default=b'octet'), present=_opcode_in(1, 2), depends=('opcode',)),
        Field('block_num', Int16(), present=_opcode_in(3, 4), depends=('opcode',)),
        Field('error_code', Int16(), present=_opcode_in(5), depends=('opcode',)),
        Field('error_msg', CString(), present=_opcode_in(5), depends=('opcode',)),
        Field('data', Bytes(), present=_opcode_in(3), depends=('opcode',)),
    )

    def human_opcode(self) -> str:
        return self.type_of('opcode').to_human(self.opcode)


bind_header(UDP, TFTP, dport=TFTP_PORT)
