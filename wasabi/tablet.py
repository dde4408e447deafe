"""USB HID report descriptor parsing for absolute pointing devices."""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum, IntEnum
from itertools import islice

from .bits import extract_bits, extract_bits_from_le_bytes
from .ranges import map_value_in_range_inclusive

_log = logging.getLogger(__name__)

_U64_MASK = (1 << 64) - 1


class _ItemType(IntEnum):
    MAIN = 0
    GLOBAL = 1
    LOCAL = 2
    RESERVED = 3


class UsagePageKind(Enum):
    GENERIC_DESKTOP = "GenericDesktop"
    BUTTON = "Button"
    UNKNOWN = "UnknownUsagePage"


@dataclass(frozen=True)
class UsbHidUsagePage:
    """A HID usage page; ``value`` is meaningful only for unknown pages."""

    kind: UsagePageKind
    value: int = 0

    @classmethod
    def from_value(cls, value):
        if value == 0x01:
            return cls.GENERIC_DESKTOP
        if value == 0x09:
            return cls.BUTTON
        return cls(UsagePageKind.UNKNOWN, value)

    def __repr__(self):
        if self.kind is UsagePageKind.UNKNOWN:
            return f"UnknownUsagePage({self.value:#X})"
        return self.kind.value


UsbHidUsagePage.GENERIC_DESKTOP = UsbHidUsagePage(UsagePageKind.GENERIC_DESKTOP)
UsbHidUsagePage.BUTTON = UsbHidUsagePage(UsagePageKind.BUTTON)


class UsageKind(Enum):
    POINTER = "Pointer"
    MOUSE = "Mouse"
    X = "X"
    Y = "Y"
    WHEEL = "Wheel"
    BUTTON = "Button"
    UNKNOWN = "UnknownUsage"
    CONSTANT = "Constant"


@dataclass(frozen=True)
class UsbHidUsage:
    """A HID usage; ``index`` is used by buttons and unknown usages."""

    kind: UsageKind
    index: int = 0

    @classmethod
    def button(cls, index):
        return cls(UsageKind.BUTTON, index)

    @classmethod
    def unknown(cls, value):
        return cls(UsageKind.UNKNOWN, value)

    @classmethod
    def generic_desktop(cls, value):
        """Decode a usage id from the Generic Desktop page."""
        return _GENERIC_DESKTOP_USAGES.get(value) or cls.unknown(value)

    def __repr__(self):
        if self.kind in (UsageKind.BUTTON, UsageKind.UNKNOWN):
            return f"{self.kind.value}({self.index})"
        return self.kind.value


UsbHidUsage.POINTER = UsbHidUsage(UsageKind.POINTER)
UsbHidUsage.MOUSE = UsbHidUsage(UsageKind.MOUSE)
UsbHidUsage.X = UsbHidUsage(UsageKind.X)
UsbHidUsage.Y = UsbHidUsage(UsageKind.Y)
UsbHidUsage.WHEEL = UsbHidUsage(UsageKind.WHEEL)
UsbHidUsage.CONSTANT = UsbHidUsage(UsageKind.CONSTANT)

_GENERIC_DESKTOP_USAGES = {
    0x01: UsbHidUsage.POINTER,
    0x02: UsbHidUsage.MOUSE,
    0x30: UsbHidUsage.X,
    0x31: UsbHidUsage.Y,
    0x38: UsbHidUsage.WHEEL,
}


def _as_i64(value):
    value &= _U64_MASK
    return value - (1 << 64) if value >= 1 << 63 else value


@dataclass(frozen=True)
class UsbHidReportInputItem:
    """One field of an input report, located by bit offset and size."""

    usage: UsbHidUsage
    bit_size: int
    is_array: bool
    is_absolute: bool
    bit_offset: int
    logical_min: int
    logical_max: int

    def value_from_report(self, report):
        """Read this field from ``report``; None if the report is too short."""
        v = extract_bits_from_le_bytes(report, self.bit_offset, self.bit_size)
        if v is None:
            return None
        if self.bit_size >= 2 and extract_bits(v, self.bit_size - 1, 1) == 1:
            inverted = _as_i64(~extract_bits(v, 0, self.bit_size - 1))
            return -inverted - 1
        return _as_i64(v)

    def mapped_range_from_report(self, report, to_range):
        """Read this field and map it from the logical range onto ``to_range``."""
        v = self.value_from_report(report)
        if v is None:
            raise ValueError("value was empty")
        return map_value_in_range_inclusive(
            (self.logical_min, self.logical_max), to_range, v
        )


def parse_hid_report_descriptor(report):
    """Return the input report items described by the HID report descriptor."""
    input_items = []
    usage_queue = deque()
    usage_page = None
    usage_min = None
    usage_max = None
    report_size = 0
    report_count = 0
    bit_offset = 0
    logical_min = 0
    logical_max = 0

    it = iter(bytes(report))
    for prefix in it:
        b_size = prefix & 0b11
        if b_size == 0b11:
            b_size = 4
        raw_type = (prefix >> 2) & 0b11
        if raw_type == _ItemType.RESERVED:
            _log.warning("b_type == Reserved is not implemented yet!")
            break
        b_type = _ItemType(raw_type)
        b_tag = prefix >> 4
        data = bytes(islice(it, b_size))
        data_value = int.from_bytes(data.ljust(4, b"\0"), "little")

        if b_type is _ItemType.MAIN and b_tag == 0b1000:
            _log.info("M: Input attr %s", bin(data_value))
            if usage_page is not None:
                is_constant = extract_bits(data_value, 0, 1) == 1
                is_array = extract_bits(data_value, 1, 1) == 1
                is_absolute = extract_bits(data_value, 2, 1) == 0
                for i in range(report_count):
                    if usage_queue:
                        usage = usage_queue.popleft()
                    elif (
                        usage_page == UsbHidUsagePage.BUTTON
                        and usage_min is not None
                        and usage_max is not None
                    ):
                        btn_idx = usage_min + i
                        if btn_idx <= usage_max:
                            usage = UsbHidUsage.button(btn_idx)
                        else:
                            usage = UsbHidUsage.unknown(btn_idx)
                    elif is_constant:
                        usage = UsbHidUsage.CONSTANT
                    else:
                        usage = UsbHidUsage.unknown(0)
                    input_items.append(
                        UsbHidReportInputItem(
                            usage=usage,
                            bit_size=report_size,
                            is_array=is_array,
                            is_absolute=is_absolute,
                            bit_offset=bit_offset,
                            logical_min=logical_min,
                            logical_max=logical_max,
                        )
                    )
                    bit_offset += report_size
        elif b_type is _ItemType.MAIN and b_tag == 0b1010:
            names = {0: "Physical", 1: "Application"}
            _log.info("M: Collection %s {", names.get(data_value, str(data_value)))
        elif b_type is _ItemType.MAIN and b_tag == 0b1100:
            _log.info("M: } Collection")
        elif b_type is _ItemType.GLOBAL and b_tag == 0b0000:
            usage_page = UsbHidUsagePage.from_value(data_value)
            _log.info("G: Usage Page: %r", usage_page)
        elif b_type is _ItemType.GLOBAL and b_tag == 0b0001:
            _log.info("G: Logical Minimum: %#X", data_value)
            logical_min = data_value
        elif b_type is _ItemType.GLOBAL and b_tag == 0b0010:
            _log.info("G: Logical Maximum: %#X", data_value)
            logical_max = data_value
        elif b_type is _ItemType.GLOBAL and b_tag == 0b0111:
            _log.info("G: Report Size: %d bits", data_value)
            report_size = data_value
        elif b_type is _ItemType.GLOBAL and b_tag == 0b1001:
            _log.info("G: Report Count: %d times", data_value)
            report_count = data_value
        elif b_type is _ItemType.LOCAL and b_tag == 0:
            if usage_page == UsbHidUsagePage.GENERIC_DESKTOP:
                usage = UsbHidUsage.generic_desktop(data_value)
            else:
                usage = UsbHidUsage.unknown(data_value)
            usage_queue.append(usage)
            _log.info("L: Usage: %r (in usage page %r)", usage, usage_page)
        elif b_type is _ItemType.LOCAL and b_tag == 1:
            usage_min = data_value
        elif b_type is _ItemType.LOCAL and b_tag == 2:
            usage_max = data_value
        else:
            _log.info(
                "%#04X (type = %-6s, tag = %2d): %s",
                prefix,
                b_type.name.capitalize(),
                b_tag,
                data.hex(),
            )

        if b_type is _ItemType.MAIN:
            usage_queue.clear()
            usage_min = None
            usage_max = None
    return input_items