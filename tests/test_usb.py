import pytest

from xenonemu.usb import EHCI0, EHCI1, OHCI0, OHCI1


@pytest.mark.parametrize(
    "cls, name, device_id",
    [
        (OHCI0, "OHCI0", 0x580C1414),
        (OHCI1, "OHCI1", 0x580C1414),
        (EHCI0, "EHCI0", 0x58051414),
        (EHCI1, "EHCI1", 0x58071414),
    ],
)
def test_identity(cls, name, device_id):
    device = cls()
    assert device.name == name
    assert device.config_read(0, 4) == device_id
    assert device.config_read(0, 2) == 0x1414


@pytest.mark.parametrize("cls", [OHCI0, OHCI1, EHCI0, EHCI1])
def test_config_round_trip(cls):
    device = cls()
    device.config_write(0x10, 0xEA003000, 4)
    assert device.config_read(0x10, 4) == 0xEA003000
    assert device.config.bars()[0] == 0xEA003000


@pytest.mark.parametrize("cls", [OHCI0, OHCI1, EHCI0, EHCI1])
def test_bar_window(cls):
    device = cls()
    device.config_write(0x10, 0xEA003000, 4)
    assert device.is_address_mapped(0xEA003000 + device.size)
    assert not device.is_address_mapped(0xEA003000 - 1) or any(
        bar <= 0xEA003000 - 1 <= bar + device.size for bar in device.config.bars()
    )


@pytest.mark.parametrize("cls", [OHCI0, EHCI1])
def test_memory_reads_are_zero(cls):
    device = cls()
    device.write(0xEA003000, 0xFFFFFFFF, 4)
    assert device.read(0xEA003000, 4) == 0