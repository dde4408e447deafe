"""PCI Express configuration space access through ECAM."""

import logging
import struct
from dataclasses import dataclass
from functools import total_ordering

_log = logging.getLogger(__name__)

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U32_MASK = (1 << 32) - 1
_U64_MASK = (1 << 64) - 1
_ECAM_SIZE = 1 << 24
_CONFIG_SPACE_BYTES = 256

_COMMAND_AND_STATUS = 0x04
_BAR0 = 0x10
_BUS_MASTER_ENABLE = 1 << 2
_INTERRUPT_DISABLE = 1 << 10


class PciError(ValueError):
    """Raised on invalid PCI addresses or register accesses."""


@dataclass(frozen=True, repr=False)
class VendorDeviceId:
    vendor: int
    device: int

    def __str__(self):
        return f"(vendor: 0x{self.vendor:04X}, device: 0x{self.device:04X})"

    __repr__ = __str__


@total_ordering
class BusDeviceFunction:
    """A PCI bus/device/function triple packed into a 16-bit id."""

    __slots__ = ("_id",)

    def __init__(self, bus, device, function):
        if not (0 <= bus < 256 and 0 <= device < 32 and 0 <= function < 8):
            raise PciError("PCI bus device function out of range")
        self._id = (bus << 8) | (device << 3) | function

    @classmethod
    def from_id(cls, id):
        if not 0 <= id <= 0xFFFF:
            raise PciError("PCI bus device function out of range")
        bdf = cls.__new__(cls)
        bdf._id = id
        return bdf

    @classmethod
    def iter_all(cls):
        """Yield every possible bus/device/function in id order."""
        for id in range(0x10000):
            yield cls.from_id(id)

    @property
    def id(self):
        return self._id

    @property
    def bus(self):
        return (self._id & 0xFF00) >> 8

    @property
    def device(self):
        return (self._id & 0x00F8) >> 3

    @property
    def function(self):
        return self._id & 0x0007

    def __eq__(self, other):
        if not isinstance(other, BusDeviceFunction):
            return NotImplemented
        return self._id == other._id

    def __lt__(self, other):
        if not isinstance(other, BusDeviceFunction):
            return NotImplemented
        return self._id < other._id

    def __hash__(self):
        return hash(self._id)

    def __str__(self):
        return (
            f"/pci/bus/0x{self.bus:02X}/device/0x{self.device:02X}"
            f"/function/0x{self.function:01X})"
        )

    __repr__ = __str__


@dataclass(frozen=True)
class BarMem64:
    """A 64-bit memory BAR: its address and the size of its region."""

    addr: int
    size: int

    @property
    def end(self):
        return self.addr + self.size

    def __str__(self):
        return f"BarMem64[0x{self.addr:016X}..0x{self.end:016X}]"


class Pci:
    """Configuration-space access for the single ECAM region described by MCFG.

    ``config_space`` is a writable buffer whose offset 0 is the ECAM base
    address; registers beyond its end cannot be read or written.
    """

    def __init__(self, mcfg, config_space):
        if mcfg.num_of_entries() != 1:
            raise PciError("exactly one MCFG entry is supported")
        base = mcfg.entry(0).base_address
        self.ecm_range = range(base, base + _ECAM_SIZE)
        self._space = config_space
        self._space_size = memoryview(config_space).nbytes

    def ecm_base(self, bdf):
        """Physical address of the configuration space of ``bdf``."""
        return self.ecm_range.start + (bdf.id << 12)

    def _position(self, bdf, byte_offset, size, action):
        if not 0 <= byte_offset < _CONFIG_SPACE_BYTES or byte_offset % size:
            raise PciError(f"PCI ConfigRegisters {action} out of range")
        position = (bdf.id << 12) + byte_offset
        if position + size > self._space_size:
            raise PciError(f"configuration space of {bdf} is not present")
        return position

    def _read(self, layout, bdf, byte_offset):
        position = self._position(bdf, byte_offset, layout.size, "read")
        return layout.unpack_from(self._space, position)[0]

    def read_register_u16(self, bdf, byte_offset):
        return self._read(_U16, bdf, byte_offset)

    def read_register_u32(self, bdf, byte_offset):
        return self._read(_U32, bdf, byte_offset)

    def write_register_u32(self, bdf, byte_offset, data):
        position = self._position(bdf, byte_offset, _U32.size, "write")
        _U32.pack_into(self._space, position, data & _U32_MASK)

    def read_register_u64(self, bdf, byte_offset):
        lo = self.read_register_u32(bdf, byte_offset)
        hi = self.read_register_u32(bdf, byte_offset + 4)
        return (hi << 32) | lo

    def write_register_u64(self, bdf, byte_offset, data):
        data &= _U64_MASK
        self.write_register_u32(bdf, byte_offset, data & _U32_MASK)
        self.write_register_u32(bdf, byte_offset + 4, data >> 32)

    def read_vendor_id_and_device_id(self, bdf):
        """Return the ids of the function at ``bdf``, or None if nothing is there."""
        try:
            vendor = self.read_register_u16(bdf, 0)
            device = self.read_register_u16(bdf, 2)
        except PciError:
            return None
        if vendor == 0xFFFF or device == 0xFFFF:
            return None
        return VendorDeviceId(vendor, device)

    def probe_devices(self):
        """Return ``(bdf, ids)`` for every function that is present."""
        found = []
        for bdf in BusDeviceFunction.iter_all():
            ids = self.read_vendor_id_and_device_id(bdf)
            if ids is not None:
                _log.info("%s %s", bdf, ids)
                found.append((bdf, ids))
        return found

    def try_bar0_mem64(self, bdf):
        """Decode BAR0 as a 64-bit non-prefetchable memory BAR and size it."""
        bar0 = self.read_register_u64(bdf, _BAR0)
        if bar0 & 0b0111 != 0b0100:
            raise PciError("Unexpected BAR0 Type")
        addr = bar0 & ~0b1111 & _U64_MASK
        self.write_register_u64(bdf, _BAR0, _U64_MASK)
        probed = self.read_register_u64(bdf, _BAR0) & ~0b1111
        size = (1 + (~probed & _U64_MASK)) & _U64_MASK
        self.write_register_u64(bdf, _BAR0, bar0)
        return BarMem64(addr, size)

    def set_command_and_status_flags(self, bdf, flags):
        current = self.read_register_u32(bdf, _COMMAND_AND_STATUS)
        self.write_register_u32(bdf, _COMMAND_AND_STATUS, flags | current)

    def enable_bus_master(self, bdf):
        self.set_command_and_status_flags(bdf, _BUS_MASTER_ENABLE)

    def disable_interrupt(self, bdf):
        self.set_command_and_status_flags(bdf, _INTERRUPT_DISABLE)