"""Raw NAND flash image: magic and spare-area ECD checks, memory-mapped access."""

from __future__ import annotations

import logging
import os
from enum import IntEnum

log = logging.getLogger(__name__)

NAND_START_ADDR = 0xC8000000
NAND_END_ADDR = 0xCC000000

PAGE_SIZE = 0x200
PHYS_PAGE_SIZE = 0x210
ECD_OFFSET = 524
ECD_BITS = 0x1066
ECD_POLY = 0x6954559
SPARE_CHECK_SIZE = 0x630


class MetaType(IntEnum):
    """Spare-area layouts."""

    TYPE0 = 0
    TYPE1 = 1
    TYPE2 = 2
    UNINITIALIZED = 3
    NONE = 4


class NandError(Exception):
    """The NAND image cannot be loaded."""


def check_magic(data: bytes) -> bool:
    """Whether the first two bytes are a NAND magic (retail or devkit)."""
    return len(data) >= 2 and data[0] in (0xFF, 0x0F) and data[1] in (0x3F, 0x4F)


def calculate_ecd(data: bytes, offset: int = 0) -> bytes:
    """Compute the 4 ECD bytes of the physical page starting at ``offset``."""
    if offset < 0 or len(data) < offset + PHYS_PAGE_SIZE:
        raise ValueError(
            f"need 0x{PHYS_PAGE_SIZE:x} bytes at offset 0x{offset:x}, have 0x{len(data):x}"
        )
    val = 0
    words = (ECD_BITS + 31) // 32
    for index in range(words):
        start = offset + index * 4
        v = ~int.from_bytes(data[start:start + 4], "little") & 0xFFFFFFFF
        for _ in range(min(32, ECD_BITS - index * 32)):
            val ^= v & 1
            v >>= 1
            if val & 1:
                val ^= ECD_POLY
            val >>= 1
    val = ~val & 0xFFFFFFFF
    return bytes((
        (val << 6) & 0xFF,
        (val >> 2) & 0xFF,
        (val >> 10) & 0xFF,
        (val >> 18) & 0xFF,
    ))


def _page_ecd_ok(data: bytes, offset: int) -> bool:
    stored = data[offset + ECD_OFFSET:offset + ECD_OFFSET + 4]
    return calculate_ecd(data, offset) == stored


def _has_spare(raw: bytes) -> bool:
    head = bytes(raw[:SPARE_CHECK_SIZE]).ljust(SPARE_CHECK_SIZE, b"\0")
    return all(
        _page_ecd_ok(head, offset)
        for offset in range(0, SPARE_CHECK_SIZE, PHYS_PAGE_SIZE)
    )


class NandImage:
    """A NAND image mapped at the flash address window."""

    name = "NAND"
    start_address = NAND_START_ADDR
    end_address = NAND_END_ADDR

    def __init__(self, raw: bytes) -> None:
        if not check_magic(raw):
            raise NandError(
                "wrong magic: retail NAND magic is 0xFF4F and devkit NAND magic 0x0F4F"
            )
        self.raw = bytearray(raw)
        self.has_spare = _has_spare(self.raw)
        if self.has_spare:
            log.info("NAND: image has spare")
        # Spare type detection does not recognise any layout yet.
        self.meta_type = MetaType.NONE

    def __len__(self) -> int:
        return len(self.raw)

    def _offset(self, address: int, size: int) -> int:
        offset = address & 0xFFFFFF
        offset = (offset // PAGE_SIZE) * PHYS_PAGE_SIZE + offset % PAGE_SIZE
        if not 1 <= size <= 8:
            raise ValueError(f"access size must be 1..8 bytes, got {size}")
        if offset + size > len(self.raw):
            raise IndexError(f"NAND access 0x{address:x}+{size} outside the image")
        return offset

    def read(self, address: int, size: int) -> int:
        """Read ``size`` bytes at a logical flash address, skipping spare areas."""
        offset = self._offset(address, size)
        return int.from_bytes(self.raw[offset:offset + size], "little")

    def write(self, address: int, data: int, size: int) -> None:
        """Store the low ``size`` bytes of ``data`` at a logical flash address."""
        offset = self._offset(address, size)
        mask = (1 << (size * 8)) - 1
        self.raw[offset:offset + size] = (data & mask).to_bytes(size, "little")


def load_nand(path: str | os.PathLike[str]) -> NandImage:
    """Load a NAND image from a file."""
    log.info("NAND: loading file %s", path)
    try:
        with open(path, "rb") as handle:
            raw = handle.read()
    except OSError as exc:
        raise NandError(f"unable to load {path}: {exc}") from exc
    log.info("NAND: file size = 0x%x bytes", len(raw))
    return NandImage(raw)