"""Components of a small UEFI kernel on in-memory models: firmware tables, PCI, HPET, memory allocation, task scheduling, graphics and USB HID parsing."""

__version__ = "0.1.0"