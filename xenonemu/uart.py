"""Serial port exposed by the system management controller."""

from __future__ import annotations

import io
import logging
import threading
from collections import deque
from typing import BinaryIO

log = logging.getLogger(__name__)

UART_BYTE_IN_ADDR = 0xEA001010
UART_BYTE_OUT_ADDR = 0xEA001014
UART_STATUS_ADDR = 0xEA001018
UART_CONFIG_ADDR = 0xEA00101C

UART_DEFAULT_CONFIG = 0x1E6

STATUS_DATA_AVAILABLE = 0x1
STATUS_IDLE = 0x2
STATUS_CONFIGURED = 0x8

_LINE_SETTINGS = {
    0x1E6: "115200,8,N,1",
    0x1BB2: "38400,8,N,1",
    0x163: "19200,8,N,1",
}


def _mask(size: int) -> int:
    if not 1 <= size <= 8:
        raise ValueError(f"access size must be 1..8 bytes, got {size}")
    return (1 << (size * 8)) - 1


class Uart:
    """A UART whose output goes to a binary stream and whose input is fed in."""

    def __init__(self, output: BinaryIO | None = None) -> None:
        self.output: BinaryIO = output if output is not None else io.BytesIO()
        self.status = STATUS_IDLE
        self.settings: str | None = None
        self._input: deque[int] = deque()
        self._lock = threading.Lock()

    def feed(self, data: bytes) -> None:
        """Queue bytes to be received by software through the input register."""
        with self._lock:
            self._input.extend(data)

    @property
    def pending(self) -> int:
        """Number of received bytes not yet read."""
        with self._lock:
            return len(self._input)

    def read(self, address: int, size: int) -> int:
        """Read a UART register."""
        mask = _mask(size)
        if address == UART_CONFIG_ADDR:
            return UART_DEFAULT_CONFIG & mask
        if address == UART_STATUS_ADDR:
            # Software polls this to know whether a transfer has finished.
            with self._lock:
                self.status = STATUS_DATA_AVAILABLE if self._input else STATUS_IDLE
            return self.status & mask
        if address == UART_BYTE_IN_ADDR:
            with self._lock:
                return self._input.popleft() if self._input else 0
        if address == UART_BYTE_OUT_ADDR:
            return 0
        log.warning("SMC UART: read from unknown address 0x%x", address)
        return 0

    def write(self, address: int, data: int, size: int) -> None:
        """Write a UART register; writes to the output register transmit a byte."""
        value = data & _mask(size) & 0xFFFFFFFF
        if address == UART_CONFIG_ADDR:
            settings = _LINE_SETTINGS.get(value)
            if settings is None:
                log.warning("SMC UART: unknown config value 0x%x", value)
            else:
                log.info("SMC UART: config set to %s", settings)
                self.settings = settings
            self.status = STATUS_CONFIGURED
            return
        if address == UART_BYTE_OUT_ADDR:
            self.output.write(bytes([value & 0xFF]))
            flush = getattr(self.output, "flush", None)
            if flush is not None:
                flush()
            return
        log.warning("SMC UART: write to unknown address 0x%x", address)