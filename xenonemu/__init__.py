"""Register-level model of the Xenon system buses, PCI devices, interrupt controller and NAND flash."""

__version__ = "0.1.0"