"""USB host controllers: two OHCI and two EHCI functions."""

from __future__ import annotations

from xenonemu.devices import SimplePCIDevice

OHCI0_DEV_SIZE = 0x1000
OHCI1_DEV_SIZE = 0x1000
EHCI0_DEV_SIZE = 0x1000
EHCI1_DEV_SIZE = 0x1000


class OHCI0(SimplePCIDevice):
    """OHCI controller 0."""

    def __init__(self) -> None:
        super().__init__("OHCI0", OHCI0_DEV_SIZE, 0x580C1414)


class OHCI1(SimplePCIDevice):
    """OHCI controller 1."""

    def __init__(self) -> None:
        super().__init__("OHCI1", OHCI1_DEV_SIZE, 0x580C1414)


class EHCI0(SimplePCIDevice):
    """EHCI controller 0."""

    def __init__(self) -> None:
        super().__init__("EHCI0", EHCI0_DEV_SIZE, 0x58051414)


class EHCI1(SimplePCIDevice):
    """EHCI controller 1."""

    def __init__(self) -> None:
        super().__init__("EHCI1", EHCI1_DEV_SIZE, 0x58071414)