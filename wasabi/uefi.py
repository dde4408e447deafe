"""UEFI data structures: GUIDs, memory types and memory-map descriptors."""

import struct
from dataclasses import dataclass
from enum import IntEnum

_GUID_STRUCT = struct.Struct("<IHH8s")
_DESCRIPTOR_STRUCT = struct.Struct("<qQQQQ")
DESCRIPTOR_SIZE = _DESCRIPTOR_STRUCT.size


@dataclass(frozen=True)
class EfiGuid:
    """A GUID in its four-field UEFI form."""

    data0: int
    data1: int
    data2: int
    data3: bytes

    def __post_init__(self):
        object.__setattr__(self, "data3", bytes(self.data3))
        if len(self.data3) != 8:
            raise ValueError("data3 must be 8 bytes long")

    def to_bytes(self):
        return _GUID_STRUCT.pack(self.data0, self.data1, self.data2, self.data3)

    @classmethod
    def from_bytes(cls, data):
        if len(data) < _GUID_STRUCT.size:
            raise ValueError("data is too short for an EFI GUID")
        return cls(*_GUID_STRUCT.unpack_from(data))


EFI_GRAPHICS_OUTPUT_PROTOCOL_GUID = EfiGuid(
    0x9042A9DE, 0x23DC, 0x4A38, bytes([0x96, 0xFB, 0x7A, 0xDE, 0xD0, 0x80, 0x51, 0x6A])
)
EFI_LOADED_IMAGE_PROTOCOL_GUID = EfiGuid(
    0x5B1B31A1, 0x9562, 0x11D2, bytes([0x8E, 0x3F, 0x00, 0xA0, 0xC9, 0x69, 0x72, 0x3B])
)
EFI_ACPI_TABLE_GUID = EfiGuid(
    0x8868E871, 0xE4F1, 0x11D3, bytes([0xBC, 0x22, 0x00, 0x80, 0xC7, 0x3C, 0x88, 0x81])
)


class EfiMemoryType(IntEnum):
    RESERVED = 0
    LOADER_CODE = 1
    LOADER_DATA = 2
    BOOT_SERVICES_CODE = 3
    BOOT_SERVICES_DATA = 4
    RUNTIME_SERVICES_CODE = 5
    RUNTIME_SERVICES_DATA = 6
    CONVENTIONAL_MEMORY = 7
    UNUSABLE_MEMORY = 8
    ACPI_RECLAIM_MEMORY = 9
    ACPI_MEMORY_NVS = 10
    MEMORY_MAPPED_IO = 11
    MEMORY_MAPPED_IO_PORT_SPACE = 12
    PAL_CODE = 13
    PERSISTENT_MEMORY = 14


@dataclass(frozen=True)
class EfiMemoryDescriptor:
    """One entry of the UEFI memory map."""

    memory_type: EfiMemoryType
    physical_start: int
    virtual_start: int
    number_of_pages: int
    attribute: int

    def to_bytes(self):
        return _DESCRIPTOR_STRUCT.pack(
            int(self.memory_type),
            self.physical_start,
            self.virtual_start,
            self.number_of_pages,
            self.attribute,
        )

    @classmethod
    def from_bytes(cls, data):
        if len(data) < DESCRIPTOR_SIZE:
            raise ValueError("data is too short for an EFI memory descriptor")
        raw_type, physical, virtual, pages, attribute = _DESCRIPTOR_STRUCT.unpack_from(data)
        return cls(EfiMemoryType(raw_type), physical, virtual, pages, attribute)


class MemoryMapHolder:
    """A raw memory-map buffer as returned by GetMemoryMap."""

    def __init__(self, buffer, descriptor_size, map_key=0):
        if descriptor_size <= 0:
            raise ValueError("descriptor_size must be positive")
        self._buffer = bytes(buffer)
        self.descriptor_size = descriptor_size
        self.map_key = map_key

    @property
    def memory_map_size(self):
        return len(self._buffer)

    def __iter__(self):
        for offset in range(0, len(self._buffer), self.descriptor_size):
            yield EfiMemoryDescriptor.from_bytes(
                self._buffer[offset : offset + DESCRIPTOR_SIZE]
            )