"""Test the live-interface boundary helpers."""

import pytest

from packetforge.wire import InterfaceInfo, Wire, default_interface, loopback_interface


class ListWire(Wire):
    def __init__(self, interfaces):
        self._interfaces = interfaces

    def open(self, iface):
        pass

    def next_frame(self):
        return None

    def inject(self, iface, frame):
        pass

    def interfaces(self):
        return self._interfaces


def test_wire_is_abstract():
    with pytest.raises(TypeError):
        Wire()


def test_default_interface_prefers_addresses():
    wire = ListWire([
        InterfaceInfo('lo', ['127.0.0.1'], loopback=True),
        InterfaceInfo('eth0'),
        InterfaceInfo('eth1', ['10.0.0.2'], broadcast='10.0.0.255'),
    ])
    assert default_interface(wire).name == 'eth1'
    assert loopback_interface(wire).name == 'lo'


def test_default_interface_without_addresses():
    wire = ListWire([InterfaceInfo('eth0')])
    assert default_interface(wire).name == 'eth0'
    assert loopback_interface(wire) is None


def test_no_interfaces():
    wire = ListWire([])
    assert default_interface(wire) is None
    wire.close()
