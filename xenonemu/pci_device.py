"""Base class for devices attached behind the PCI bridge."""

from __future__ import annotations

from xenonemu.pci import COMMAND_MEMORY_SPACE, ConfigSpace


class PCIDevice:
    """A PCI device with a name, an address window size and a config space."""

    def __init__(self, name: str, size: int) -> None:
        self.name = name
        self.size = size
        self.config = ConfigSpace()

    def read(self, address: int, size: int) -> int:
        """Memory-mapped read; a device without registers returns zero."""
        return 0

    def write(self, address: int, data: int, size: int) -> None:
        """Memory-mapped write; a device without registers ignores it."""

    def config_read(self, address: int, size: int) -> int:
        """Read from the configuration space at the low byte of ``address``."""
        return self.config.read(address & 0xFF, size)

    def config_write(self, address: int, data: int, size: int) -> None:
        """Write to the configuration space at the low byte of ``address``."""
        self.config.write(address & 0xFF, data, size)

    def is_address_mapped(self, address: int) -> bool:
        """Whether ``address`` falls in any BAR window of this device."""
        address &= 0xFFFFFFFF
        return any(bar <= address <= bar + self.size for bar in self.config.bars())

    def is_response_allowed(self) -> bool:
        """Whether the command register enables memory-space responses."""
        return bool(self.config.command & COMMAND_MEMORY_SPACE)