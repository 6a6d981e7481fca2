"""System management controller: FIFO mailbox, SMI, clock interrupt and UART."""

from __future__ import annotations

import logging
import threading
from enum import IntEnum

from xenonemu.iic import Priority
from xenonemu.pci_device import PCIDevice
from xenonemu.smc_tables import HANA_STATE, SMC_CONFIG_MAP
from xenonemu.uart import Uart

log = logging.getLogger(__name__)

SMC_DEV_SIZE = 0x100

SMC_AREA_SIZE = 0x10
SMC_AREA_BUS_CONTROL = 0xEA001000
SMC_AREA_UART = 0xEA001010
SMC_AREA_GPIO_0 = 0xEA001020
SMC_AREA_GPIO_1 = 0xEA001030
SMC_AREA_GPIO_2 = 0xEA001040
SMC_AREA_SMI = 0xEA001050

SMC_CLOCK_INT_REG = 0xEA00106C

SMC_FIFO_WRITE_MSG_REG = 0xEA001080
SMC_FIFO_WRITE_STATUS_REG = 0xEA001084
SMC_FIFO_READ_MSG_REG = 0xEA001090
SMC_FIFO_READ_STATUS_REG = 0xEA001094
SMC_FIFO_STATUS_READY = 0x4
SMC_FIFO_STATUS_NOT_READY = 0x0

FIFO_MSG_SIZE = 16
# Written to the SMI register when a reply is waiting for the kernel.
SMI_REPLY_PENDING = 0x10000000

I2C_READ_ANA = 0x10
I2C_WRITE_ANA = 0x60

CLOCK_TICK_INTERVAL = 0.05


class TrayState(IntEnum):
    """DVD tray states."""

    OPEN = 0x60
    OPEN_REQUEST = 0x61
    CLOSE = 0x62
    OPENING = 0x63
    CLOSING = 0x64
    UNKNOWN = 0x65
    SPINUP = 0x66


class SmcCommand(IntEnum):
    """Queries and commands sent through the FIFO mailbox."""

    PWRON_TYPE = 0x1
    QUERY_RTC = 0x4
    QUERY_TEMP_SENS = 0x7
    QUERY_TRAY_STATE = 0xA
    QUERY_AVPACK = 0xF
    I2C_READ_WRITE = 0x11
    QUERY_VERSION = 0x12
    FIFO_TEST = 0x13
    QUERY_IR_ADDRESS = 0x16
    QUERY_TILT_SENSOR = 0x17
    READ_82_INT = 0x1E
    READ_8E_INT = 0x20
    SET_STANDBY = 0x82
    SET_TIME = 0x85
    SET_FAN_ALGORITHM = 0x88
    SET_FAN_SPEED_CPU = 0x89
    SET_DVD_TRAY = 0x8B
    SET_POWER_LED = 0x8C
    SET_AUDIO_MUTE = 0x8D
    ARGON_RELATED = 0x90
    SET_FAN_SPEED_GPU = 0x94
    SET_IR_ADDRESS = 0x95
    SET_DVD_TRAY_SECURE = 0x98
    SET_FP_LEDS = 0x99
    SET_RTC_WAKE = 0x9A
    ANA_RELATED = 0x9B
    SET_ASYNC_OPERATION = 0x9C
    SET_82_INT = 0x9D
    SET_9F_INT = 0x9F


class PowerOnReason(IntEnum):
    """Reasons reported for powering the console on."""

    PWRBTN = 0x11
    EJECT = 0x12
    ALARM = 0x15
    REMOPWR = 0x20
    REMOEJC = 0x21
    REMOX = 0x22
    WINBTN = 0x24
    RESET = 0x30
    RECHARGE_RESET = 0x31
    KIOSK = 0x41
    WIRELESS = 0x55
    WIRED_F1 = 0x56
    WIRED_F2 = 0x57
    WIRED_R2 = 0x58
    WIRED_R3 = 0x59
    WIRED_R1 = 0x5A


class AvPack(IntEnum):
    """A/V cable types reported by the SMC."""

    HDMI_AUDIO = 0x13
    HDMI_AUDIO_0x14 = 0x14
    HDMI_AUDIO_GHETTO_MOD = 0x1C
    HDMI_AUDIO_GHETTO_MOD_0x1E = 0x1E
    HDMI = 0x1F
    COMPOSITE_TV_MODE = 0x43
    SCART = 0x47
    COMPOSITE_S_VIDEO = 0x54
    COMPOSITE = 0x57
    COMPONENT = 0x0C
    COMPONENT_0xF = 0x0F
    COMPOSITE_HD_MODE = 0x4F
    VGA = 0x5B
    VGA_0x59 = 0x59
    VGA_ADP_FIX = 0x1B


def _in_area(address: int, base: int) -> bool:
    return base <= address < base + SMC_AREA_SIZE


def _mask(size: int) -> int:
    if not 1 <= size <= 8:
        raise ValueError(f"access size must be 1..8 bytes, got {size}")
    return (1 << (size * 8)) - 1


class SMC(PCIDevice):
    """The system management controller behind the PCI bridge."""

    def __init__(self, bridge=None, uart: Uart | None = None) -> None:
        super().__init__("SMC", SMC_DEV_SIZE)
        self.config.load_words(SMC_CONFIG_MAP)
        self._bridge = bridge
        self.uart = uart if uart is not None else Uart()
        self.hana_state = list(HANA_STATE)

        self.clock_int_reg = 0
        self.int_pending = 0
        self.fifo_status = SMC_FIFO_STATUS_READY
        self._written = bytearray(FIFO_MSG_SIZE)
        self._write_pos = 0
        self._reply = bytearray(FIFO_MSG_SIZE)
        self._read_pos = 0

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def _route(self, priority: Priority) -> None:
        if self._bridge is not None:
            self._bridge.route_interrupt(priority)

    # Memory-mapped access.

    def read(self, address: int, size: int) -> int:
        """Read an SMC register."""
        mask = _mask(size)
        if _in_area(address, SMC_AREA_UART):
            return self.uart.read(address, size)
        with self._lock:
            if _in_area(address, SMC_AREA_BUS_CONTROL):
                log.debug("SMC: bus control read 0x%x", address)
                return 0
            for base, label in (
                (SMC_AREA_GPIO_0, "GPIO 0"),
                (SMC_AREA_GPIO_1, "GPIO 1"),
                (SMC_AREA_GPIO_2, "GPIO 2"),
            ):
                if _in_area(address, base):
                    log.debug("SMC: %s read 0x%x", label, address)
                    return 0
            if _in_area(address, SMC_AREA_SMI):
                log.debug("SMC: SMI read 0x%x", address)
                return self.int_pending & mask
            if address in (
                SMC_FIFO_READ_STATUS_REG,
                SMC_FIFO_READ_MSG_REG,
                SMC_FIFO_WRITE_STATUS_REG,
            ):
                return self._fifo_read(address, size)
            if address == SMC_CLOCK_INT_REG:
                return self.clock_int_reg & mask
            log.warning("SMC: read from unknown address 0x%x", address)
            return 0

    def write(self, address: int, data: int, size: int) -> None:
        """Write an SMC register."""
        mask = _mask(size)
        if _in_area(address, SMC_AREA_UART):
            self.uart.write(address, data, size)
            return
        with self._lock:
            if _in_area(address, SMC_AREA_BUS_CONTROL):
                log.debug("SMC: bus control write 0x%x", address)
                return
            for base, label in (
                (SMC_AREA_GPIO_0, "GPIO 0"),
                (SMC_AREA_GPIO_1, "GPIO 1"),
                (SMC_AREA_GPIO_2, "GPIO 2"),
            ):
                if _in_area(address, base):
                    log.debug("SMC: %s write 0x%x", label, address)
                    return
            if _in_area(address, SMC_AREA_SMI):
                log.debug("SMC: SMI write 0x%x", address)
                self.int_pending = data & mask & 0xFFFFFFFF
                return
            if address in (
                SMC_FIFO_WRITE_STATUS_REG,
                SMC_FIFO_WRITE_MSG_REG,
                SMC_FIFO_READ_STATUS_REG,
            ):
                self._fifo_write(address, data & mask, size)
                return
            if address == SMC_CLOCK_INT_REG:
                self.clock_int_reg = data & mask & 0xFFFFFFFF
                return
            log.warning("SMC: write to unknown address 0x%x data 0x%x", address, data)

    def config_read(self, address: int, size: int) -> int:
        """Read the SMC's configuration space."""
        return self.config.read(address & 0xFF, size)

    def config_write(self, address: int, data: int, size: int) -> None:
        """Write the SMC's configuration space."""
        self.config.write(address & 0xFF, data, size)

    # FIFO mailbox.

    def _fifo_read(self, address: int, size: int) -> int:
        if address in (SMC_FIFO_READ_STATUS_REG, SMC_FIFO_WRITE_STATUS_REG):
            return self.fifo_status
        pos = self._read_pos
        value = int.from_bytes(self._reply[pos:pos + size], "little")
        if pos == 12:
            self._read_pos = 0
            self._reply[:] = bytes(FIFO_MSG_SIZE)
        else:
            self._read_pos = pos + 4
        return value

    def _fifo_write(self, address: int, data: int, size: int) -> None:
        if address == SMC_FIFO_READ_STATUS_REG:
            self.fifo_status = data & 0xFF
            if self.fifo_status == SMC_FIFO_STATUS_NOT_READY:
                # Software finished reading the reply.
                self._reply[:] = bytes(FIFO_MSG_SIZE)
                self.fifo_status = SMC_FIFO_STATUS_READY
            return

        if address == SMC_FIFO_WRITE_STATUS_REG:
            self.fifo_status = data & 0xFF
            if self.fifo_status == SMC_FIFO_STATUS_NOT_READY:
                self._process_message()
                self.fifo_status = SMC_FIFO_STATUS_READY
                self._write_pos = 0
                self.int_pending = SMI_REPLY_PENDING
                self._route(Priority.SMM)
            return

        # Message word.
        if self._write_pos == FIFO_MSG_SIZE:
            self._write_pos = 0
            self._written[:] = bytes(FIFO_MSG_SIZE)
        pos = self._write_pos
        raw = data.to_bytes(size, "little")[:FIFO_MSG_SIZE - pos]
        self._written[pos:pos + len(raw)] = raw
        self._write_pos = pos + 4

    def _process_message(self) -> None:
        msg = self._written
        reply = self._reply
        command = msg[0]
        if command == SmcCommand.PWRON_TYPE:
            reply[0] = SmcCommand.PWRON_TYPE
            reply[1] = PowerOnReason.EJECT
        elif command == SmcCommand.QUERY_RTC:
            log.info("SMC: QUERY_RTC, returning 0")
            reply[0] = SmcCommand.QUERY_RTC
            reply[1] = 0
        elif command == SmcCommand.QUERY_AVPACK:
            reply[0] = SmcCommand.QUERY_AVPACK
            reply[1] = AvPack.HDMI
        elif command == SmcCommand.I2C_READ_WRITE:
            self._i2c(msg, reply)
        elif command == SmcCommand.QUERY_VERSION:
            reply[0:4] = bytes([SmcCommand.QUERY_VERSION, 0x41, 0x02, 0x03])
        else:
            try:
                label = SmcCommand(command).name
            except ValueError:
                label = f"0x{command:x}"
            log.warning("SMC: unimplemented FIFO command %s", label)

    def _i2c(self, msg: bytearray, reply: bytearray) -> None:
        sub = msg[1]
        reply[0] = SmcCommand.I2C_READ_WRITE
        if sub == I2C_READ_ANA:
            reply[1] = 0
            reply[4:8] = self.hana_state[msg[6]].to_bytes(4, "little")
        elif sub == I2C_WRITE_ANA:
            log.info("SMC: ANA write")
            reply[1] = 0
            self.hana_state[msg[6]] = int.from_bytes(msg[4:8], "little")
        else:
            log.warning("SMC: I2C read/write unimplemented command 0x%x", sub)
            reply[1] = 1

    # Clock interrupt.

    def clock_tick(self) -> bool:
        """Raise the clock interrupt if software armed it; return whether it did."""
        with self._lock:
            if self.clock_int_reg != 1:
                return False
            self._route(Priority.CLOCK)
            self.clock_int_reg = 0
            return True

    def _loop(self) -> None:
        while not self._stop_event.wait(CLOCK_TICK_INTERVAL):
            self.clock_tick()

    def start(self) -> None:
        """Run the clock tick on a background thread."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="smc", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the background clock thread, if running."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        thread.join()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None