"""ACPI system description tables read from a physical-memory image."""

import struct
from dataclasses import dataclass


class AcpiError(ValueError):
    """Raised when an ACPI table is malformed or cannot be read."""


_HEADER = struct.Struct("<4sI28x")
_RSDP = struct.Struct("<8sB6sBIIQ")
_POINTER = struct.Struct("<Q")
_GENERIC_ADDRESS = struct.Struct("<B3xQ")
_ECAM_ENTRY = struct.Struct("<QHBBI")

HEADER_SIZE = _HEADER.size
HPET_DESCRIPTOR_SIZE = 56
MCFG_HEADER_SIZE = 44
_GENERIC_ADDRESS_OFFSET = 40


def _unpack(layout, memory, address):
    if address < 0:
        raise AcpiError(f"negative address {address:#x}")
    try:
        return layout.unpack_from(memory, address)
    except struct.error as exc:
        raise AcpiError(f"table at {address:#x} lies outside memory") from exc


class SystemDescriptionTableHeader:
    """The common 36-byte header of every ACPI description table."""

    def __init__(self, memory, address):
        self.memory = memory
        self.address = address
        self.signature, self.length = _unpack(_HEADER, memory, address)

    def expect_signature(self, signature):
        if self.signature != signature:
            raise AcpiError(
                f"expected table {signature!r}, found {self.signature!r} at {self.address:#x}"
            )

    def __repr__(self):
        return (
            f"SystemDescriptionTableHeader(signature={self.signature!r}, "
            f"length={self.length}, address={self.address:#x})"
        )


class Xsdt:
    """The extended system description table: a list of 64-bit table pointers."""

    def __init__(self, memory, address):
        self.memory = memory
        self.address = address
        self.header = SystemDescriptionTableHeader(memory, address)

    def num_of_entries(self):
        if self.header.length < HEADER_SIZE:
            raise AcpiError("XSDT length is shorter than its header")
        return (self.header.length - HEADER_SIZE) // _POINTER.size

    def __iter__(self):
        for index in range(self.num_of_entries()):
            (table_address,) = _unpack(
                _POINTER, self.memory, self.address + HEADER_SIZE + index * _POINTER.size
            )
            yield SystemDescriptionTableHeader(self.memory, table_address)

    def find_table(self, signature):
        """Return the header of the first table with ``signature``, or None."""
        return next((e for e in self if e.signature == signature), None)


@dataclass(frozen=True)
class GenericAddress:
    address_space_id: int
    address: int

    def address_in_memory_space(self):
        """Return the address if it is in system memory space."""
        if self.address_space_id != 0:
            raise AcpiError("ACPI Generic Address is not in system memory space")
        return self.address


class _AcpiTable:
    SIGNATURE = b""

    def __init__(self, memory, address):
        self.memory = memory
        self.address = address
        self.header = SystemDescriptionTableHeader(memory, address)
        self.header.expect_signature(self.SIGNATURE)


class AcpiHpetDescriptor(_AcpiTable):
    """The HPET description table."""

    SIGNATURE = b"HPET"

    def __init__(self, memory, address):
        super().__init__(memory, address)
        space_id, addr = _unpack(
            _GENERIC_ADDRESS, memory, address + _GENERIC_ADDRESS_OFFSET
        )
        self.generic_address = GenericAddress(space_id, addr)

    def base_address(self):
        """Return the physical address of the HPET register block."""
        return self.generic_address.address_in_memory_space()


@dataclass(frozen=True)
class EcamEntry:
    """One configuration-space base address allocation of the MCFG table."""

    base_address: int
    pci_segment_group: int
    start_pci_bus: int
    end_pci_bus: int

    def __str__(self):
        return (
            f"ECAM: Bus [{self.start_pci_bus}..={self.end_pci_bus}] "
            f"is mapped at 0x{self.base_address:X}"
        )


class AcpiMcfgDescriptor(_AcpiTable):
    """The MCFG table describing PCI Express memory-mapped configuration."""

    SIGNATURE = b"MCFG"

    def __init__(self, memory, address):
        super().__init__(memory, address)

    def header_size(self):
        return MCFG_HEADER_SIZE

    def num_of_entries(self):
        if self.header.length < MCFG_HEADER_SIZE:
            raise AcpiError("MCFG length is shorter than its header")
        return (self.header.length - MCFG_HEADER_SIZE) // _ECAM_ENTRY.size

    def entry(self, index):
        """Return entry ``index`` or None when it does not exist."""
        if not 0 <= index < self.num_of_entries():
            return None
        base, segment, start, end, _ = _unpack(
            _ECAM_ENTRY,
            self.memory,
            self.address + MCFG_HEADER_SIZE + index * _ECAM_ENTRY.size,
        )
        return EcamEntry(base, segment, start, end)

    def entries(self):
        return [self.entry(i) for i in range(self.num_of_entries())]


class AcpiRsdpStruct:
    """The root system description pointer."""

    def __init__(self, memory, address):
        self.memory = memory
        self.address = address
        (
            self.signature,
            self.checksum,
            self.oem_id,
            self.revision,
            self.rsdt_address,
            self.length,
            self.xsdt_address,
        ) = _unpack(_RSDP, memory, address)

    @property
    def xsdt(self):
        return Xsdt(self.memory, self.xsdt_address)

    def hpet(self):
        header = self.xsdt.find_table(AcpiHpetDescriptor.SIGNATURE)
        return None if header is None else AcpiHpetDescriptor(self.memory, header.address)

    def mcfg(self):
        header = self.xsdt.find_table(AcpiMcfgDescriptor.SIGNATURE)
        return None if header is None else AcpiMcfgDescriptor(self.memory, header.address)