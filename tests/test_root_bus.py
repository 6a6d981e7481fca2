import pytest

from xenonemu.host_bridge import HostBridge
from xenonemu.nand import NandImage
from xenonemu.pci_bridge import PCIBridge
from xenonemu.ram import RAM
from xenonemu.root_bus import RootBus
from xenonemu.xgpu import XGPU


class FakeDevice:
    name = "FAKE"
    start_address = 0x1000
    end_address = 0x1FFF

    def __init__(self):
        self.mem = {}

    def read(self, address, size):
        return self.mem.get(address, 0)

    def write(self, address, data, size):
        self.mem[address] = data


@pytest.fixture
def bus():
    hb = HostBridge()
    hb.register_xgpu(XGPU(RAM(0x1000)))
    hb.register_pci_bridge(PCIBridge())
    return RootBus(hb)


def test_config_region_goes_to_host_bridge(bus):
    assert bus.read(0xD0008000, 4) == 0x58301414
    assert bus.config_read(0xD0000000, 4) == 0x58001414


def test_config_write_through_bus(bus):
    assert bus.write(0xD0008010, 0xE0000000, 4) is True
    assert bus.read(0xD0008010, 4) == 0xE0000000


def test_device_round_trip(bus):
    dev = FakeDevice()
    bus.add_device(dev)
    assert bus.write(0x1010, 0xAB, 1) is True
    assert bus.read(0x1010, 1) == 0xAB
    assert dev.mem[0x1010] == 0xAB


def test_device_range_inclusive(bus):
    dev = FakeDevice()
    bus.add_device(dev)
    bus.write(0x1FFF, 7, 1)
    assert dev.mem == {0x1FFF: 7}


def test_falls_through_to_host_bridge(bus):
    assert bus.read(0xEA00000C, 4) == 0x7CFF


def test_unclaimed(bus):
    assert bus.read(0x80000000, 4) == 0xFFFFFFFFFFFFFFFF
    assert bus.write(0x80000000, 1, 4) is False


def test_nand_as_bus_device(bus):
    raw = bytearray(0x630)
    raw[0:2] = b"\xff\x4f"
    raw[0x10:0x14] = b"\x01\x02\x03\x04"
    bus.add_device(NandImage(bytes(raw)))
    assert bus.read(0xC8000010, 4) == int.from_bytes(raw[0x10:0x14], "little")


def test_no_host_bridge_config_raises():
    with pytest.raises(RuntimeError):
        RootBus(None).config_read(0xD0000000, 4)