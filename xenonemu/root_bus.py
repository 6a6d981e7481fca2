"""Root bus: dispatches memory accesses to devices and the host bridge."""

from __future__ import annotations

import logging
from typing import Protocol

from xenonemu.host_bridge import HostBridge

log = logging.getLogger(__name__)

PCI_CONFIG_REGION_ADDRESS = 0xD0000000
PCI_CONFIG_REGION_SIZE = 0x1000000

ALL_ONES = 0xFFFFFFFFFFFFFFFF


class SystemDevice(Protocol):
    """A device mapped directly on the root bus."""

    start_address: int
    end_address: int

    def read(self, address: int, size: int) -> int: ...

    def write(self, address: int, data: int, size: int) -> None: ...


def _in_config_region(address: int) -> bool:
    return (
        PCI_CONFIG_REGION_ADDRESS
        <= address
        <= PCI_CONFIG_REGION_ADDRESS + PCI_CONFIG_REGION_SIZE
    )


class RootBus:
    """The system bus in front of main memory, flash and the host bridge."""

    def __init__(self, host_bridge: HostBridge | None = None) -> None:
        self.host_bridge = host_bridge
        self.devices: list[SystemDevice] = []

    def add_device(self, device: SystemDevice) -> None:
        """Attach a device occupying its start..end address range."""
        log.info(
            "BUS: new device attached: %s 0x%x - 0x%x",
            getattr(device, "name", type(device).__name__),
            device.start_address,
            device.end_address,
        )
        self.devices.append(device)

    def _device_at(self, address: int) -> SystemDevice | None:
        return next(
            (d for d in self.devices if d.start_address <= address <= d.end_address),
            None,
        )

    def _host(self) -> HostBridge:
        if self.host_bridge is None:
            raise RuntimeError("no host bridge attached")
        return self.host_bridge

    def read(self, address: int, size: int) -> int:
        """Read from the bus; unclaimed addresses read as all ones."""
        if _in_config_region(address):
            return self.config_read(address, size)
        device = self._device_at(address)
        if device is not None:
            return device.read(address, size)
        if self.host_bridge is not None:
            value = self.host_bridge.read(address, size)
            if value is not None:
                return value
        log.warning("BUS: read failed at address 0x%x", address)
        return ALL_ONES

    def write(self, address: int, data: int, size: int) -> bool:
        """Write to the bus; return whether anything claimed the address."""
        if _in_config_region(address):
            self.config_write(address, data, size)
            return True
        device = self._device_at(address)
        if device is not None:
            device.write(address, data, size)
            return True
        if self.host_bridge is not None and self.host_bridge.write(address, data, size):
            return True
        log.warning("BUS: write failed at 0x%x data 0x%x", address, data)
        return False

    def config_read(self, address: int, size: int) -> int:
        """Configuration-space read, handled by the host bridge."""
        return self._host().config_read(address, size)

    def config_write(self, address: int, data: int, size: int) -> None:
        """Configuration-space write, handled by the host bridge."""
        self._host().config_write(address, data, size)