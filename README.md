# xenonemu

`xenonemu` models the memory-mapped hardware of the Xbox 360 "Xenon"
platform at register level. It covers the buses and devices that sit
between the CPU and the rest of the system:

- `xenonemu.ram.RAM`: flat main memory, filled with `0xCD` at the start.
- `xenonemu.iic.XenonIIC`: the integrated interrupt controller. It keeps
  one control block for each of the six hardware threads. The interrupt
  priorities are in `Priority` and the register offsets in `IICRegister`.
- `xenonemu.pci.ConfigSpace` and `decode_config_address`: 256-byte PCI
  configuration spaces, and decoding of a configuration address into a
  `ConfigAddress` with bus, device, function and register fields.
- `xenonemu.pci_device.PCIDevice`: the base class for devices behind the
  PCI-to-PCI bridge. It matches addresses against the BARs and checks the
  memory-space enable bit.
- `xenonemu.pci_bridge.PCIBridge`: the PCI-to-PCI bridge. It holds its own
  registers and the interrupt routing registers (`PrioReg`). Memory
  accesses go to the device whose BAR claims them. Configuration
  accesses go to the device with the matching name.
- Devices behind the bridge:
  - `xenonemu.devices`: `XMA`, `AudioController` and `Ethernet`, all
    subclasses of `SimplePCIDevice`.
  - `xenonemu.usb`: the USB controllers `EHCI0`, `EHCI1`, `OHCI0` and
    `OHCI1`.
  - `xenonemu.smc.SMC`: the system management controller. It implements
    the FIFO command mailbox and the SMI and clock interrupt registers,
    and owns a `xenonemu.uart.Uart`.
- `xenonemu.xgpu.XGPU`: the Xenos register file and configuration space.
  `render_frame` and `xe_fb_convert` turn the tiled framebuffer in main
  memory into linear ARGB8888 pixels.
- `xenonemu.host_bridge.HostBridge` and `xenonemu.root_bus.RootBus`: the
  top of the bus tree. They find the device that owns an address.
- `xenonemu.nand`: loads and checks raw NAND flash images. It provides
  `load_nand`, `check_magic`, `calculate_ecd`, `NandImage`, `MetaType` and
  `NandError`.

Reads return integers. Writes take an integer and a byte count. Data is
stored in little-endian byte order.

## Main memory

```python
from xenonemu.ram import RAM

ram = RAM(0x10000)
ram.write(0x100, 0x11223344, 4)
assert ram.read(0x100, 4) == 0x11223344
assert ram.read(0x200, 1) == 0xCD      # untouched memory
window = ram.view(0x100, 16)           # live memoryview onto the bytes
```

An access outside the memory raises `IndexError`.

## Interrupts

```python
from xenonemu.iic import Priority, XenonIIC

iic = XenonIIC()
iic.generate_interrupt(Priority.CLOCK, 0b000001)   # thread 0
assert iic.has_ext_interrupt(0)
iic.clear_ext_interrupt(0)
```

## Building the bus tree

```python
from xenonemu.ram import RAM
from xenonemu.iic import XenonIIC
from xenonemu.pci_bridge import PCIBridge
from xenonemu.devices import XMA, AudioController, Ethernet
from xenonemu.usb import EHCI0, EHCI1, OHCI0, OHCI1
from xenonemu.smc import SMC
from xenonemu.xgpu import XGPU
from xenonemu.host_bridge import HostBridge
from xenonemu.root_bus import RootBus

ram = RAM(0x10000)   # render_frame needs memory that covers 0x1E000000
iic = XenonIIC()

bridge = PCIBridge()
bridge.register_iic(iic)
for device in (XMA(), AudioController(), Ethernet(),
               EHCI0(), EHCI1(), OHCI0(), OHCI1(), SMC(bridge)):
    bridge.add_device(device)

host = HostBridge()
host.register_xgpu(XGPU(ram))
host.register_pci_bridge(bridge)

bus = RootBus(host)

# Configuration read of the host bridge's vendor/device ID (bus 0, dev 1).
assert bus.config_read(0xD0008000, 4) == 0x58301414
```

`RootBus.add_device` accepts any object that has `start_address`,
`end_address`, `read` and `write`. `NandImage` is one such object. When
no device claims an address, a read returns all ones. A write to such an
address is logged and `write` returns `False`.

## System management controller

`SMC(bridge, uart)` answers the kernel's FIFO queries:

- power-on reason (eject button)
- RTC (zero)
- AV pack (HDMI)
- version
- reads and writes of the ANA registers over I2C

Other commands are logged as unimplemented. After each reply it sets the
SMI register and raises the SMM interrupt through the bridge.
`clock_tick()` raises the clock interrupt once software has armed it.
`start()` and `stop()` run the tick on a background thread.

The `Uart` writes every transmitted byte to a binary stream, which is an
in-memory `io.BytesIO` when none is given. It receives the bytes passed to
`feed()`.

## NAND images

```python
from xenonemu.nand import NandError, load_nand

try:
    image = load_nand("flash.bin")
except NandError as exc:
    print(f"not a usable image: {exc}")
else:
    first_word = image.read(0, 4)
```

`NandImage` maps flash addresses onto the raw image. It skips the 16-byte
spare area that follows each 512-byte page. `has_spare` tells whether the
first pages carry valid ECD bytes. `meta_type` is always `MetaType.NONE`,
because spare layouts are not told apart.

## What it does not do

- There is no device for the secure flash controller. A configuration
  read of it reports an unimplemented device and returns all ones, and
  flash is reachable only through a `NandImage` on the root bus.
- There is no CPU, hard disk or optical drive.
- Frames are returned as bytes. Nothing is shown in a window.
- There is no command-line program. The package is a library.