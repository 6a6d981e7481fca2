"""Simple PCI devices that only expose a configuration space."""

from __future__ import annotations

from xenonemu.pci_device import PCIDevice

XMA_DEV_SIZE = 0x400
AUDIO_CTRLR_DEV_SIZE = 0x40
ETHERNET_DEV_SIZE = 0x80


class SimplePCIDevice(PCIDevice):
    """A PCI device with no registers beyond its vendor and device IDs."""

    def __init__(self, name: str, size: int, device_id: int) -> None:
        super().__init__(name, size)
        self.config.set_word(0, device_id)


class XMA(SimplePCIDevice):
    """XMA audio decoder."""

    def __init__(self) -> None:
        super().__init__("XMA", XMA_DEV_SIZE, 0x58011414)


class AudioController(SimplePCIDevice):
    """Audio controller."""

    def __init__(self) -> None:
        super().__init__("AUDIOCTRLR", AUDIO_CTRLR_DEV_SIZE, 0x580C1414)


class Ethernet(SimplePCIDevice):
    """Fast Ethernet adapter."""

    def __init__(self) -> None:
        super().__init__("ETHERNET", ETHERNET_DEV_SIZE, 0x580A1414)