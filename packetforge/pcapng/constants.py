"""
PcapNG block types, option codes and link types.
"""

from packetforge.core.linktype import (
    LINKTYPE_NULL, LINKTYPE_ETHERNET, LINKTYPE_RAW, LINKTYPE_IEEE802_11, LINKTYPE_LINUX_SLL,
    LINKTYPE_RADIOTAP, LINKTYPE_PPI, LINKTYPE_IPV4, LINKTYPE_IPV6,
)

# Block types
SHB_TYPE = 0x0A0D0D0A
IDB_TYPE = 0x00000001
SPB_TYPE = 0x00000003
EPB_TYPE = 0x00000006

# Section Header Block
BYTE_ORDER_MAGIC = 0x1A2B3C4D
MAGIC_LITTLE = b'\x4d\x3c\x2b\x1a'
MAGIC_BIG = b'\x1a\x2b\x3c\x4d'
SECTION_LEN_UNDEFINED = 0xFFFFFFFFFFFFFFFF

# Options common to all blocks
OPT_ENDOFOPT = 0
OPT_COMMENT = 1

# Section Header Block options
OPT_SHB_HARDWARE = 2
OPT_SHB_OS = 3
OPT_SHB_USERAPPL = 4

# Interface Description Block options
OPT_IF_NAME = 2
OPT_IF_DESCRIPTION = 3
OPT_IF_IPV4ADDR = 4
OPT_IF_IPV6ADDR = 5
OPT_IF_MACADDR = 6
OPT_IF_EUIADDR = 7
OPT_IF_SPEED = 8
OPT_IF_TSRESOL = 9
OPT_IF_TZONE = 10
OPT_IF_FILTER = 11
OPT_IF_OS = 12
OPT_IF_FCSLEN = 13
OPT_IF_TSOFFSET = 14

# Enhanced Packet Block options
OPT_EPB_FLAGS = 2
OPT_EPB_HASH = 3
OPT_EPB_DROPCOUNT = 4

# Default timestamp resolution: microseconds
DEFAULT_TS_RESOL = 1e-6
