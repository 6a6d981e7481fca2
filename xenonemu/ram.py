"""Main memory."""

from __future__ import annotations

RAM_START_ADDR = 0
RAM_SIZE = 0x20000000
RAM_FILL = 0xCD


class RAM:
    """Byte-addressable little-endian main memory, initially filled with 0xCD."""

    def __init__(self, size: int = RAM_SIZE) -> None:
        self._data = bytearray([RAM_FILL]) * size

    def __len__(self) -> int:
        return len(self._data)

    def _offset(self, address: int, length: int) -> int:
        offset = (address - RAM_START_ADDR) & 0xFFFFFFFF
        if length < 0 or offset + length > len(self._data):
            raise IndexError(
                f"RAM access 0x{address:x}+{length} outside 0x{len(self._data):x} bytes"
            )
        return offset

    def read(self, address: int, size: int) -> int:
        """Read ``size`` bytes at ``address`` as a little-endian integer."""
        offset = self._offset(address, size)
        return int.from_bytes(self._data[offset:offset + size], "little")

    def write(self, address: int, data: int, size: int) -> None:
        """Store the low ``size`` bytes of ``data`` at ``address``."""
        offset = self._offset(address, size)
        mask = (1 << (size * 8)) - 1
        self._data[offset:offset + size] = (data & mask).to_bytes(size, "little")

    def view(self, address: int, length: int) -> memoryview:
        """A live view of ``length`` bytes of memory starting at ``address``."""
        offset = self._offset(address, length)
        return memoryview(self._data)[offset:offset + length]