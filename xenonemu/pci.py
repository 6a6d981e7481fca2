"""PCI configuration space storage and configuration address decoding."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

CONFIG_SPACE_SIZE = 0x100
BAR0_WORD = 4
COMMAND_MEMORY_SPACE = 0x2


@dataclass(frozen=True)
class ConfigAddress:
    """Fields of a PCIe configuration-space address."""

    reg_offset: int
    extended_reg: int
    function: int
    device: int
    bus: int


def decode_config_address(value: int) -> ConfigAddress:
    """Split a 32-bit configuration address into its fields."""
    value &= 0xFFFFFFFF
    return ConfigAddress(
        reg_offset=value & 0xFF,
        extended_reg=(value >> 8) & 0xF,
        function=(value >> 12) & 0x7,
        device=(value >> 15) & 0x1F,
        bus=(value >> 20) & 0xFF,
    )


class ConfigSpace:
    """A 256-byte little-endian PCI configuration space."""

    def __init__(self, fill: int = 0) -> None:
        self.data = bytearray([fill & 0xFF]) * CONFIG_SPACE_SIZE

    def __len__(self) -> int:
        return len(self.data)

    def _check(self, offset: int, size: int) -> None:
        if not 1 <= size <= 8:
            raise ValueError(f"access size must be 1..8 bytes, got {size}")
        if offset < 0 or offset + size > len(self.data):
            raise ValueError(
                f"config access 0x{offset:x}+{size} outside config space"
            )

    def read(self, offset: int, size: int) -> int:
        """Read ``size`` bytes at ``offset`` as a little-endian integer."""
        self._check(offset, size)
        return int.from_bytes(self.data[offset:offset + size], "little")

    def write(self, offset: int, value: int, size: int) -> None:
        """Store the low ``size`` bytes of ``value`` at ``offset``."""
        self._check(offset, size)
        mask = (1 << (size * 8)) - 1
        self.data[offset:offset + size] = (value & mask).to_bytes(size, "little")

    def word(self, index: int) -> int:
        """Return the 32-bit register number ``index``."""
        return self.read(index * 4, 4)

    def set_word(self, index: int, value: int) -> None:
        """Set the 32-bit register number ``index``."""
        self.write(index * 4, value, 4)

    def load_words(self, words: Iterable[int]) -> None:
        """Fill consecutive 32-bit registers starting from register 0."""
        for index, value in enumerate(words):
            self.set_word(index, value)

    def bars(self, count: int = 6) -> list[int]:
        """Return the first ``count`` base address registers."""
        return [self.word(BAR0_WORD + i) for i in range(count)]

    @property
    def vendor_id(self) -> int:
        return self.word(0) & 0xFFFF

    @property
    def device_id(self) -> int:
        return self.word(0) >> 16

    @property
    def status(self) -> int:
        return self.word(1) & 0xFFFF

    @property
    def command(self) -> int:
        return self.word(1) >> 16