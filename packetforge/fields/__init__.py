"""
Field type library and struct engine.
"""

from packetforge.fields.base import Fieldable, resolve_length
from packetforge.fields.int import (
    Int, Int8, SInt8, Int16, Int16le, SInt16, Int24, Int32, Int32le, SInt32,
    Int64, Int64le, Enum, Int8Enum, Int16Enum, Int32Enum, QCode,
)
from packetforge.fields.string import Bytes, CString, IntString
from packetforge.fields.addr import MacAddr, IPv4Addr, IPv6Addr
from packetforge.fields.struct import Field, BitField, Schema, Struct, StructField
from packetforge.fields.array import Array, RecordList
from packetforge.fields.tlv import TLV

__all__ = [
    'Fieldable', 'resolve_length',
    'Int', 'Int8', 'SInt8', 'Int16', 'Int16le', 'SInt16', 'Int24', 'Int32', 'Int32le',
    'SInt32', 'Int64', 'Int64le', 'Enum', 'Int8Enum', 'Int16Enum', 'Int32Enum', 'QCode',
    'Bytes', 'CString', 'IntString',
    'MacAddr', 'IPv4Addr', 'IPv6Addr',
    'Field', 'BitField', 'Schema', 'Struct', 'StructField',
    'Array', 'RecordList',
    'TLV',
]
