"""Host bridge: BIU registers, configuration dispatch and forwarding to GPU and PCI bridge."""

from __future__ import annotations

import logging

from xenonemu.pci import ConfigSpace, decode_config_address
from xenonemu.pci_bridge import PCIBridge
from xenonemu.xgpu import XGPU

log = logging.getLogger(__name__)

HOST_BRIDGE_SIZE = 0x1FFFFFF
ALL_ONES = 0xFFFFFFFFFFFFFFFF

DEV_PCI_BRIDGE = 0x0
DEV_HOST_BRIDGE = 0x1
DEV_XGPU = 0x2

# Registers that return their stored value when read.
_READABLE = frozenset({
    0xE0020000,
    0xE0020004,
    0xE1020004,
    0xE1010010,
    0xE1018000,
    0xE1020000,
    0xE1040000,
})

# Written address -> registers that take the written value.
_WRITE_TARGETS = {
    0xE0020000: (0xE0020000,),
    0xE0020004: (0xE0020004,),
    0xE1003000: (0xE1003000,),
    0xE1003100: (0xE1003100,),
    0xE1003200: (0xE1003200,),
    0xE1003300: (0xE1003300,),
    # Reading the next register back returns what was written here.
    0xE1010000: (0xE1010000, 0xE1010010),
    0xE1010010: (0xE1010010,),
    0xE1010020: (0xE1010020,),
    0xE1013000: (0xE1013000,),
    0xE1013100: (0xE1013100,),
    0xE1013200: (0xE1013200,),
    0xE1013300: (0xE1013300,),
    0xE1018020: (0xE1018000, 0xE1018020),
    0xE1020000: (0xE1020000,),
    0xE1020004: (0xE1020004,),
    0xE1020008: (0xE1020008,),
    0xE1040000: (0xE1040000,),
    0xE1040074: (0xE1040074,),
    0xE1040078: (0xE1040078,),
}


class HostBridge:
    """The host bridge on bus 0, in front of the GPU and the PCI-PCI bridge."""

    def __init__(self) -> None:
        self.config = ConfigSpace()
        # Device/vendor ID and device type/revision.
        self.config.set_word(0, 0x58301414)
        self.config.set_word(1, 0x06000010)
        self.xgpu: XGPU | None = None
        self.pci_bridge: PCIBridge | None = None
        names = set(_READABLE)
        for targets in _WRITE_TARGETS.values():
            names.update(targets)
        self.registers: dict[int, int] = dict.fromkeys(sorted(names), 0)

    def register_xgpu(self, xgpu: XGPU) -> None:
        """Attach the GPU."""
        self.xgpu = xgpu

    def register_pci_bridge(self, bridge: PCIBridge) -> None:
        """Attach the PCI-PCI bridge."""
        self.pci_bridge = bridge

    def _bridge(self) -> PCIBridge:
        if self.pci_bridge is None:
            raise RuntimeError("no PCI bridge registered")
        return self.pci_bridge

    def _gpu(self) -> XGPU:
        if self.xgpu is None:
            raise RuntimeError("no GPU registered")
        return self.xgpu

    def is_address_mapped(self, address: int) -> bool:
        """Whether ``address`` falls in one of the host bridge's BAR windows."""
        address &= 0xFFFFFFFF
        return any(
            bar <= address <= (bar + HOST_BRIDGE_SIZE) & 0xFFFFFFFF
            for bar in self.config.bars()
        )

    def read(self, address: int, size: int) -> int | None:
        """Read from the bridge registers, the GPU or the PCI bridge.

        Returns None when the address is not on this bus.
        """
        if self.is_address_mapped(address):
            if address in _READABLE:
                return self.registers[address]
            log.warning("HostBridge/BIU: unknown register read at 0x%x", address)
            return 0
        if self.xgpu is not None and self.xgpu.is_address_mapped(address):
            value = self.xgpu.read(address, size)
            return 0 if value is None else value
        if self.pci_bridge is not None and self.pci_bridge.is_address_mapped(address):
            value = self.pci_bridge.read(address, size)
            return ALL_ONES if value is None else value
        return None

    def write(self, address: int, data: int, size: int) -> bool:
        """Write to the bridge registers, the GPU or the PCI bridge; False if unclaimed."""
        if self.is_address_mapped(address):
            targets = _WRITE_TARGETS.get(address)
            if targets is None:
                log.warning(
                    "HostBridge/BIU: unknown register written at 0x%x data 0x%x", address, data
                )
            else:
                for target in targets:
                    self.registers[target] = data & 0xFFFFFFFF
            return True
        if self.xgpu is not None and self.xgpu.is_address_mapped(address):
            self.xgpu.write(address, data, size)
            return True
        if self.pci_bridge is not None and self.pci_bridge.is_address_mapped(address):
            self.pci_bridge.write(address, data, size)
            return True
        return False

    def config_read(self, address: int, size: int) -> int:
        """Read configuration space of a device on bus 0 or behind the PCI bridge."""
        cfg = decode_config_address(address)
        if cfg.bus != 0:
            return self._bridge().config_read(address, size)
        if cfg.device == DEV_PCI_BRIDGE:
            return self._bridge().config_read(address, size)
        if cfg.device == DEV_HOST_BRIDGE:
            return self.config.read(cfg.reg_offset, size)
        if cfg.device == DEV_XGPU:
            return self._gpu().config_read(address, size)
        log.warning("Bus 0: config read to nonexistent device at 0x%x", address)
        return 0

    def config_write(self, address: int, data: int, size: int) -> None:
        """Write configuration space of a device on bus 0 or behind the PCI bridge."""
        cfg = decode_config_address(address)
        if cfg.bus != 0 or cfg.device == DEV_PCI_BRIDGE:
            self._bridge().config_write(address, data, size)
        elif cfg.device == DEV_HOST_BRIDGE:
            self.config.write(cfg.reg_offset, data, size)
        elif cfg.device == DEV_XGPU:
            self._gpu().config_write(address, data, size)
        else:
            log.warning("Bus 0: config write to nonexistent device at 0x%x", address)