"""Xenos GPU: configuration space, register file and framebuffer detiling."""

from __future__ import annotations

import logging

from xenonemu.pci import ConfigSpace
from xenonemu.ram import RAM

log = logging.getLogger(__name__)

XGPU_DEVICE_SIZE = 0x10000
XE_FB_BASE = 0x1E000000
REGS_SIZE = 0x100000

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720

REG_GPU_CLK = 0x210
REG_MEM_CLK = 0x284
REG_EDRAM_CLK = 0x244
REG_FSB_CLK = 0x248

# Register indices whose reads return fixed values.
_FIXED_READS = {
    0x00000A07: 0x2000000,
    0x00001928: 0x2000000,
    0x00001E54: 0,
}

# Configuration space dump of the GPU (config address 0xD0010000).
CONFIG_MAP = (
    0x58311414, 0x00100002, 0x03800011, 0x00000000, 0xEC800000, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF,
    0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0x00000000, 0xFFFFFFFF, 0x00000050, 0xFFFFFFFF, 0xFFFFFFFF,
    0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0x00000000, 0x06020001, 0x00000000, 0xFFFFFFFF, 0x00000000,
    0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0x00000000,
    0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0x00000000,
    0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0x00000000,
    0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0x0000C421,
    0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF, 0x00000000,
)

_CLOCKS = {
    REG_GPU_CLK: 0x09000000,
    REG_EDRAM_CLK: 0x11000C00,
    REG_FSB_CLK: 0x1A000001,
    REG_MEM_CLK: 0x19100000,
}


def xe_fb_convert(width: int, address: int) -> int:
    """Map a linear framebuffer byte offset to its offset in the tiled layout."""
    y = address // (width * 4)
    x = address % (width * 4) // 4
    tile = (y & ~31) * width + (x & ~31) * 32
    inner = ((x & 3) + ((y & 1) << 2) + ((x & 28) << 1) + ((y & 30) << 5)) ^ ((y & 8) << 2)
    return ((tile + inner) * 4) & 0xFFFFFFFF


def _mask(size: int) -> int:
    if not 1 <= size <= 8:
        raise ValueError(f"access size must be 1..8 bytes, got {size}")
    return (1 << (size * 8)) - 1


class XGPU:
    """The GPU as seen from the host bridge."""

    def __init__(self, ram: RAM) -> None:
        self.ram = ram
        self.fb_base = XE_FB_BASE
        self.config = ConfigSpace(fill=0xF)
        self.config.load_words(CONFIG_MAP)
        self._regs = bytearray(REGS_SIZE)
        for offset, value in _CLOCKS.items():
            self._regs[offset:offset + 4] = value.to_bytes(4, "little")

    def is_address_mapped(self, address: int) -> bool:
        """Whether ``address`` falls in one of the GPU's BAR windows."""
        address &= 0xFFFFFFFF
        return any(
            bar <= address <= (bar + XGPU_DEVICE_SIZE) & 0xFFFFFFFF
            for bar in self.config.bars()
        )

    def read(self, address: int, size: int) -> int | None:
        """Read a GPU register; None when the address is not mapped."""
        mask = _mask(size)
        if not self.is_address_mapped(address):
            return None
        index = (address & 0xFFFFF) // 4
        if index in _FIXED_READS:
            return _FIXED_READS[index]
        offset = index * 4
        return int.from_bytes(self._regs[offset:offset + size], "little") & mask

    def write(self, address: int, data: int, size: int) -> bool:
        """Write a GPU register; False when the address is not mapped."""
        mask = _mask(size)
        if not self.is_address_mapped(address):
            return False
        offset = ((address & 0xFFFFF) // 4) * 4
        raw = (data & mask).to_bytes(size, "little")
        end = min(offset + size, len(self._regs))
        self._regs[offset:end] = raw[:end - offset]
        return True

    def config_read(self, address: int, size: int) -> int:
        """Read the GPU's configuration space."""
        return self.config.read(address & 0xFF, size)

    def config_write(self, address: int, data: int, size: int) -> None:
        """Write the GPU's configuration space."""
        self.config.write(address & 0xFF, data, size)

    def render_frame(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> bytes:
        """Detile the framebuffer in main memory into linear ARGB8888 pixels."""
        if width <= 0 or height <= 0:
            raise ValueError("frame dimensions must be positive")
        tiled_w = (width + 31) // 32 * 32
        tiled_h = (height + 31) // 32 * 32
        source = self.ram.view(self.fb_base, tiled_w * tiled_h * 4)
        frame = bytearray(width * height * 4)
        for y in range(height):
            row = y * width * 4
            for x in range(width):
                std = row + x * 4
                xe = xe_fb_convert(width, std)
                frame[std:std + 4] = source[xe:xe + 4]
        return bytes(frame)