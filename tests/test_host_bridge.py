import pytest

from xenonemu.devices import Ethernet
from xenonemu.host_bridge import HostBridge
from xenonemu.pci_bridge import PCIBridge
from xenonemu.ram import RAM
from xenonemu.xgpu import XGPU

HB_CONFIG = 0xD0008000


@pytest.fixture
def bridge():
    hb = HostBridge()
    hb.register_xgpu(XGPU(RAM(0x1000)))
    hb.register_pci_bridge(PCIBridge())
    return hb


def _map_bar0(hb, base=0xE0000000):
    hb.config_write(HB_CONFIG + 0x10, base, 4)


def test_config_header_values(bridge):
    assert bridge.config_read(HB_CONFIG, 4) == 0x58301414
    assert bridge.config_read(HB_CONFIG + 4, 4) == 0x06000010


def test_config_write_round_trip(bridge):
    _map_bar0(bridge)
    assert bridge.config_read(HB_CONFIG + 0x10, 4) == 0xE0000000


def test_bar_mapping(bridge):
    assert not bridge.is_address_mapped(0xE0020000)
    _map_bar0(bridge)
    assert bridge.is_address_mapped(0xE0020000)
    assert bridge.is_address_mapped(0xE1FFFFFF)


def test_register_round_trip(bridge):
    _map_bar0(bridge)
    assert bridge.write(0xE0020000, 0x1234, 4) is True
    assert bridge.read(0xE0020000, 4) == 0x1234


def test_mirrored_registers(bridge):
    _map_bar0(bridge)
    bridge.write(0xE1010000, 0xCAFE, 4)
    assert bridge.read(0xE1010010, 4) == 0xCAFE
    bridge.write(0xE1018020, 0xBEEF, 4)
    assert bridge.read(0xE1018000, 4) == 0xBEEF


def test_unknown_register_reads_zero(bridge):
    _map_bar0(bridge)
    bridge.write(0xE1003000, 0x55, 4)
    assert bridge.read(0xE1003000, 4) == 0


def test_gpu_forwarding(bridge):
    assert bridge.read(0xEC800000 + 0x210, 4) == 0x09000000
    assert bridge.write(0xEC800000 + 0x400, 0x77, 4) is True
    assert bridge.read(0xEC800000 + 0x400, 4) == 0x77


def test_pci_bridge_forwarding(bridge):
    assert bridge.read(0xEA00000C, 4) == 0x7CFF
    bridge.write(0xEA00000C, 0x10, 4)
    assert bridge.read(0xEA00000C, 4) == 0x10


def test_unclaimed_address(bridge):
    assert bridge.read(0x80000000, 4) is None
    assert bridge.write(0x80000000, 1, 4) is False


def test_config_dispatch_to_pci_bridge_and_gpu(bridge):
    assert bridge.config_read(0xD0000000, 4) == 0x58001414
    assert bridge.config_read(0xD0010000, 4) == 0x58311414


def test_config_secondary_bus_reaches_device(bridge):
    bridge.pci_bridge.add_device(Ethernet())
    assert bridge.config_read(0xD0138000, 4) == 0x580A1414


def test_config_unknown_device_on_bus0(bridge):
    assert bridge.config_read(0xD0018000, 4) == 0


def test_missing_pci_bridge_raises():
    hb = HostBridge()
    with pytest.raises(RuntimeError):
        hb.config_read(0xD0000000, 4)