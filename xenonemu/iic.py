"""Integrated interrupt controller of the Xenon CPU."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum

log = logging.getLogger(__name__)

XE_IIC_BASE = 0x50000
XE_IIC_SIZE = 0xFF
PPU_COUNT = 6


class Priority(IntEnum):
    """Interrupt types, ordered by priority."""

    IPI_4 = 0x08
    IPI_3 = 0x10
    SMM = 0x14
    SFCX = 0x18
    SATA_HDD = 0x20
    SATA_CDROM = 0x24
    OHCI_0 = 0x2C
    EHCI_0 = 0x30
    OHCI_1 = 0x34
    EHCI_1 = 0x38
    XMA = 0x40
    AUDIO = 0x44
    ENET = 0x4C
    XPS = 0x54
    GRAPHICS = 0x58
    PROFILER = 0x60
    BIU = 0x64
    IOC = 0x68
    FSB = 0x6C
    IPI_2 = 0x70
    CLOCK = 0x74
    IPI_1 = 0x78
    NONE = 0x7C


class IICRegister(IntEnum):
    """Registers of a per-thread interrupt control block."""

    CPU_WHOAMI = 0x0
    CPU_CURRENT_TSK_PRI = 0x8
    CPU_IPI_DISPATCH_0 = 0x10
    INT_0x30 = 0x30
    ACK = 0x50
    ACK_SET_CPU_CURRENT_TSK_PRI = 0x58
    EOI = 0x60
    EOI_SET_CPU_CURRENT_TSK_PRI = 0x68
    INT_MCACK = 0x70


def _bswap64(value: int) -> int:
    return int.from_bytes((value & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "little"), "big")


def _reg_value(data: int) -> int:
    return _bswap64(data) & 0xFFFFFFFF


@dataclass
class _ControlBlock:
    ext_int: bool = False
    whoami: int = 0
    current_priority: int = 0
    ipi_dispatch: int = 0
    ack: int = Priority.NONE
    int_mcack: int = 0
    pending: list[int] = field(default_factory=list)

    def resignal(self) -> None:
        if self.pending and self.current_priority < self.pending[-1]:
            self.ext_int = True


class XenonIIC:
    """Interrupt controller holding one control block per hardware thread."""

    def __init__(self) -> None:
        self._blocks = [_ControlBlock() for _ in range(PPU_COUNT)]

    @staticmethod
    def _decode(address: int) -> tuple[int, int]:
        return (address & 0xF000) >> 12, address & 0xFF

    def _block(self, block_id: int) -> _ControlBlock:
        if not 0 <= block_id < PPU_COUNT:
            raise IndexError(f"no interrupt control block {block_id}")
        return self._blocks[block_id]

    def is_active(self, ppu_id: int) -> bool:
        """Whether the thread has acknowledged the controller as active."""
        return self._block(ppu_id).int_mcack == Priority.NONE

    def write_interrupt(self, address: int, data: int) -> None:
        """Handle a write to an interrupt control block register."""
        block_id, reg = self._decode(address)
        block = self._block(block_id)
        int_type = (data >> 56) & 0xFF
        cpu_mask = (data >> 40) & 0xFF

        if reg == IICRegister.CPU_WHOAMI:
            block.whoami = _reg_value(data)
        elif reg == IICRegister.CPU_CURRENT_TSK_PRI:
            block.current_priority = _reg_value(data)
        elif reg == IICRegister.CPU_IPI_DISPATCH_0:
            block.ipi_dispatch = _reg_value(data)
            self.generate_interrupt(int_type, cpu_mask)
        elif reg == IICRegister.INT_0x30:
            self.generate_interrupt(int_type, cpu_mask)
        elif reg == IICRegister.EOI:
            if block.pending:
                block.pending.pop()
            block.resignal()
        elif reg == IICRegister.EOI_SET_CPU_CURRENT_TSK_PRI:
            if block.pending:
                block.pending.pop()
            block.current_priority = _reg_value(data)
            block.resignal()
        elif reg == IICRegister.INT_MCACK:
            block.int_mcack = _reg_value(data)
        else:
            log.warning("IIC: unknown control block register written: 0x%x", reg)

    def read_interrupt(self, address: int) -> int:
        """Handle a read from an interrupt control block register."""
        block_id, reg = self._decode(address)
        block = self._block(block_id)
        if reg == IICRegister.CPU_CURRENT_TSK_PRI:
            return _bswap64(block.current_priority)
        if reg == IICRegister.ACK:
            top = block.pending[-1] if block.pending else Priority.NONE
            return _bswap64(int(top))
        log.warning("IIC: unknown control block register read: 0x%x", reg)
        return 0

    def has_ext_interrupt(self, ppu_id: int) -> bool:
        """Whether an external interrupt is signalled for the thread."""
        return self._block(ppu_id).ext_int

    def clear_ext_interrupt(self, ppu_id: int) -> None:
        """Clear the signalled external interrupt of the thread."""
        self._block(ppu_id).ext_int = False

    def generate_interrupt(self, interrupt_type: int, cpu_mask: int) -> None:
        """Queue an interrupt for each thread whose bit is set in ``cpu_mask``."""
        for block in self._blocks:
            if cpu_mask & 1:
                block.pending.append(interrupt_type)
                if block.current_priority < interrupt_type:
                    block.ext_int = True
                elif block.current_priority == interrupt_type:
                    # Same priority as the running task: merged away.
                    block.pending.pop()
            cpu_mask >>= 1