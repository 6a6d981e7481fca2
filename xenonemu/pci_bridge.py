"""PCI-to-PCI bridge: interrupt routing and dispatch to attached devices."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from xenonemu.iic import Priority, XenonIIC
from xenonemu.pci import ConfigSpace, decode_config_address
from xenonemu.pci_device import PCIDevice

log = logging.getLogger(__name__)

PCI_BRIDGE_BASE_ADDRESS = 0xEA000000
PCI_BRIDGE_BASE_SIZE = 0xFFF
PCI_BRIDGE_BASE_END_ADDRESS = PCI_BRIDGE_BASE_ADDRESS + PCI_BRIDGE_BASE_SIZE
PCI_BRIDGE_CONFIG_SPACE_ADDRESS_BASE = 0xD0000000
PCI_BRIDGE_SIZE = 0x10000

ALL_ONES = 0xFFFFFFFFFFFFFFFF
HEADER_WORDS = 16

REG_EA000000 = 0xEA000000
REG_EA000004 = 0xEA000004
REG_IRQL = 0xEA00000C
REG_PRIO_CLOCK = 0xEA000010
REG_PRIO_SMM = 0xEA00001C
REG_PRIO_SFCX = 0xEA000044

# Configuration space dump of the bridge.
CONFIG_MAP = (
    0x58001414, 0x00100156, 0x06040060, 0x00010000, 0xEA000000, 0x00000000, 0x00020100, 0x200000F0,
    0x0000FFF0, 0x0000FFF0, 0x00000000, 0x00000000, 0x00000000, 0x000000D0, 0x00000000, 0x00000100,
    0x00000000, 0x00000000, 0xC0000803, 0x00000000, 0x00000000, 0x00000000, 0x00000A03, 0x00000000,
    0x0000003F, 0x00000000, 0x00000000, 0x00007FE1, 0x00000000, 0x00000000, 0x00000000, 0x00000000,
    0x00000000, 0x00000000, 0x00000000, 0x00000000, 0x00000000, 0x00000000, 0x00000000, 0x00000000,
    0x00000000, 0x00000000, 0x00000000, 0x00000000, 0x0000D00D, 0x00001039, 0x00000000, 0x00000000,
    0x00000000, 0x00000000, 0x00000000, 0x00000000, 0x0071F410, 0x00000320, 0x001F0000, 0x0000C421,
    0x10210000, 0x00000000, 0x00000000, 0x00000000, 0x00000000, 0xC8020001, 0x00000000, 0x00000000,
)

_DEVICE_NAMES = {
    0x0: "XMA",
    0x1: "CDROM",
    0x2: "HDD",
    0x7: "ETHERNET",
    0x8: "SFCX",
    0x9: "AUDIOCTRLR",
    0xA: "SMC",
    0xF: "5841",
}
_USB_NAMES = {
    0x4: ("OHCI0", "EHCI0"),
    0x5: ("OHCI1", "EHCI1"),
}


@dataclass
class PrioReg:
    """An interrupt priority register and its decoded fields."""

    value: int = 0
    enabled: bool = False
    latched: bool = False
    target_cpu: int = 0
    cpu_irq: int = 0

    @classmethod
    def from_value(cls, data: int) -> PrioReg:
        return cls(
            value=data & 0xFFFFFFFF,
            enabled=bool(data & 0x00800000),
            latched=bool(data & 0x00200000),
            target_cpu=(data & 0x00003F00) >> 8,
            cpu_irq=((data & 0x0000003F) << 2) & 0xFF,
        )


def _device_name(device: int, function: int) -> str | None:
    if device in _USB_NAMES:
        return _USB_NAMES[device][function] if function in (0, 1) else ""
    return _DEVICE_NAMES.get(device)


class PCIBridge:
    """The bridge between the host bridge and the south-bridge PCI devices."""

    def __init__(self) -> None:
        self.config = ConfigSpace()
        self.config.load_words(CONFIG_MAP[:HEADER_WORDS])
        self.devices: list[PCIDevice] = []
        self._iic: XenonIIC | None = None
        self.reg_ea000000 = 0
        self.reg_ea000004 = 0
        # Software writes here to enable interrupts (bus IRQL).
        self.irql = 0x7CFF
        self.prio_clock = PrioReg()
        self.prio_smm = PrioReg()
        self.prio_sfcx = PrioReg()

    def register_iic(self, iic: XenonIIC) -> None:
        """Attach the interrupt controller that receives routed interrupts."""
        self._iic = iic

    def _prio_regs(self) -> dict[int, PrioReg]:
        return {
            Priority.CLOCK: self.prio_clock,
            Priority.SMM: self.prio_smm,
            Priority.SFCX: self.prio_sfcx,
        }

    def route_interrupt(self, priority: int) -> bool:
        """Forward an interrupt to the CPUs if its priority register enables it.

        Returns whether the interrupt was delivered.
        """
        reg = self._prio_regs().get(priority)
        if reg is None or not reg.enabled:
            return False
        if self._iic is None:
            raise RuntimeError("no interrupt controller registered")
        self._iic.generate_interrupt(int(priority), reg.target_cpu)
        return True

    def is_address_mapped(self, address: int) -> bool:
        """Whether ``address`` falls in one of the bridge's two BARs."""
        address &= 0xFFFFFFFF
        return any(bar <= address <= bar + PCI_BRIDGE_SIZE for bar in self.config.bars(2))

    def add_device(self, device: PCIDevice) -> None:
        """Attach a device behind the bridge."""
        log.info("PCI bus: new device attached: %s", device.name)
        self.devices.append(device)

    def _device_at(self, address: int) -> PCIDevice | None:
        address &= 0xFFFFFFFF
        return next((d for d in self.devices if d.is_address_mapped(address)), None)

    def read(self, address: int, size: int) -> int | None:
        """Read a bridge register or from an attached device.

        Returns None when neither the bridge nor a device claims the address.
        """
        if PCI_BRIDGE_BASE_ADDRESS <= address <= PCI_BRIDGE_BASE_END_ADDRESS:
            if address == REG_EA000000:
                return self.reg_ea000000
            if address == REG_EA000004:
                return self.reg_ea000004
            if address == REG_IRQL:
                return self.irql
            if address == REG_PRIO_CLOCK:
                return self.prio_clock.value
            if address == REG_PRIO_SMM:
                return self.prio_smm.value
            if address == REG_PRIO_SFCX:
                return self.prio_sfcx.value
            log.warning("PCI bridge: unknown register read: 0x%x", address)
            return 0
        device = self._device_at(address)
        if device is None:
            return None
        return device.read(address, size)

    def write(self, address: int, data: int, size: int) -> bool:
        """Write a bridge register or to an attached device; False if unclaimed."""
        if PCI_BRIDGE_BASE_ADDRESS <= address <= PCI_BRIDGE_BASE_END_ADDRESS:
            value = data & 0xFFFFFFFF
            if address == REG_EA000000:
                self.reg_ea000000 = value
            elif address == REG_EA000004:
                self.reg_ea000004 = value
            elif address == REG_IRQL:
                self.irql = value
            elif address == REG_PRIO_CLOCK:
                self.prio_clock = PrioReg.from_value(data)
            elif address == REG_PRIO_SMM:
                self.prio_smm = PrioReg.from_value(data)
            elif address == REG_PRIO_SFCX:
                self.prio_sfcx = PrioReg.from_value(data)
            else:
                log.warning("PCI bridge: unknown register written: 0x%x, 0x%x", address, data)
            return True
        device = self._device_at(address)
        if device is None:
            return False
        device.write(address, data, size)
        return True

    def _find_device(self, name: str) -> PCIDevice | None:
        return next((d for d in self.devices if d.name == name), None)

    def config_read(self, address: int, size: int) -> int:
        """Read configuration space of the bridge or of a device behind it."""
        cfg = decode_config_address(address)
        if cfg.bus == 0 and cfg.device == 0:
            return self.config.read(cfg.reg_offset, size)
        name = _device_name(cfg.device, cfg.function)
        if name is None:
            log.warning(
                "PCI config read: unknown device 0x%x reg 0x%x", cfg.device, cfg.reg_offset
            )
            return 0
        device = self._find_device(name)
        if device is None:
            log.warning("PCI config read to unimplemented device: %s", name)
            return ALL_ONES
        log.debug("PCI config read, device %s reg 0x%x", name, cfg.reg_offset)
        return device.config_read(address, size)

    def config_write(self, address: int, data: int, size: int) -> None:
        """Write configuration space of the bridge or of a device behind it."""
        cfg = decode_config_address(address)
        if cfg.bus == 0 and cfg.device == 0:
            self.config.write(cfg.reg_offset, data, size)
            return
        name = _device_name(cfg.device, cfg.function)
        if name is None:
            log.warning(
                "PCI config write: unknown device 0x%x func 0x%x reg 0x%x data 0x%x",
                cfg.device, cfg.function, cfg.reg_offset, data,
            )
            return
        device = self._find_device(name)
        if device is None:
            log.warning("PCI config write to unimplemented device: %s data 0x%x", name, data)
            return
        log.debug("PCI config write, device %s reg 0x%x data 0x%x", name, cfg.reg_offset, data)
        device.config_write(address, data, size)