import pytest

from wasabi.tablet import (
    UsageKind,
    UsbHidReportInputItem,
    UsbHidUsage,
    UsbHidUsagePage,
    parse_hid_report_descriptor,
)

TABLET_DESCRIPTOR = bytes(
    [
        0x05, 0x01,  # Usage Page (Generic Desktop)
        0x09, 0x01,  # Usage (Pointer)
        0xA1, 0x01,  # Collection (Application)
        0x05, 0x09,  # Usage Page (Button)
        0x19, 0x01,  # Usage Minimum (1)
        0x29, 0x03,  # Usage Maximum (3)
        0x15, 0x00,  # Logical Minimum (0)
        0x25, 0x01,  # Logical Maximum (1)
        0x95, 0x03,  # Report Count (3)
        0x75, 0x01,  # Report Size (1)
        0x81, 0x02,  # Input (Data, Var, Abs)
        0x95, 0x01,  # Report Count (1)
        0x75, 0x05,  # Report Size (5)
        0x81, 0x01,  # Input (Const)
        0x05, 0x01,  # Usage Page (Generic Desktop)
        0x09, 0x30,  # Usage (X)
        0x09, 0x31,  # Usage (Y)
        0x15, 0x00,  # Logical Minimum (0)
        0x26, 0xFF, 0x7F,  # Logical Maximum (0x7FFF)
        0x75, 0x10,  # Report Size (16)
        0x95, 0x02,  # Report Count (2)
        0x81, 0x02,  # Input (Data, Var, Abs)
        0xC0,  # End Collection
    ]
)


@pytest.fixture
def items():
    return parse_hid_report_descriptor(TABLET_DESCRIPTOR)


def test_usages_in_order(items):
    assert [e.usage for e in items] == [
        UsbHidUsage.button(1),
        UsbHidUsage.button(2),
        UsbHidUsage.button(3),
        UsbHidUsage.CONSTANT,
        UsbHidUsage.X,
        UsbHidUsage.Y,
    ]


def test_offsets_are_contiguous(items):
    assert items[0].bit_offset == 0
    for prev, cur in zip(items, items[1:]):
        assert cur.bit_offset == prev.bit_offset + prev.bit_size


def test_sizes_and_flags(items):
    assert [e.bit_size for e in items] == [1, 1, 1, 5, 16, 16]
    assert all(e.is_absolute for e in items)
    x = next(e for e in items if e.usage == UsbHidUsage.X)
    assert x.logical_min == 0
    assert x.logical_max == 0x7FFF
    assert x.is_array


def test_values_from_report(items):
    report = bytes([0b101, 0x00, 0x40, 0xFF, 0x7F])
    by_usage = {e.usage: e for e in items}
    assert by_usage[UsbHidUsage.button(1)].value_from_report(report) == 1
    assert by_usage[UsbHidUsage.button(2)].value_from_report(report) == 0
    assert by_usage[UsbHidUsage.button(3)].value_from_report(report) == 1
    assert by_usage[UsbHidUsage.X].value_from_report(report) == 0x4000
    assert by_usage[UsbHidUsage.Y].value_from_report(report) == 0x7FFF


def test_mapped_range_identity_and_collapse(items):
    report = bytes([0, 0x34, 0x12, 0xFF, 0x7F])
    x = next(e for e in items if e.usage == UsbHidUsage.X)
    y = next(e for e in items if e.usage == UsbHidUsage.Y)
    assert x.mapped_range_from_report(report, (0, 0x7FFF)) == 0x1234
    assert y.mapped_range_from_report(report, (0, 0x7FFF)) == 0x7FFF
    assert x.mapped_range_from_report(report, (5, 5)) == 5
    assert y.mapped_range_from_report(report, (0, 270)) == 270


def test_value_from_short_report_is_none(items):
    y = items[-1]
    assert y.value_from_report(bytes(3)) is None
    with pytest.raises(ValueError, match="value was empty"):
        y.mapped_range_from_report(bytes(3), (0, 100))


def test_mapped_value_outside_logical_range():
    item = UsbHidReportInputItem(
        usage=UsbHidUsage.X,
        bit_size=8,
        is_array=False,
        is_absolute=True,
        bit_offset=0,
        logical_min=0,
        logical_max=3,
    )
    with pytest.raises(ValueError):
        item.mapped_range_from_report(bytes([0x05]), (0, 270))
    assert item.mapped_range_from_report(bytes([3]), (0, 270)) == 270


def test_input_without_usage_page_yields_nothing():
    assert parse_hid_report_descriptor(bytes([0x95, 0x02, 0x75, 0x08, 0x81, 0x02])) == []


def test_reserved_item_type_stops_parsing():
    head = TABLET_DESCRIPTOR[:22]
    full = parse_hid_report_descriptor(head)
    truncated = parse_hid_report_descriptor(head + bytes([0x0C]) + TABLET_DESCRIPTOR[22:])
    assert truncated == full
    assert len(full) == 3


def test_usage_outside_generic_desktop_is_unknown():
    items = parse_hid_report_descriptor(
        bytes([0x05, 0x09, 0x09, 0x30, 0x95, 0x01, 0x75, 0x01, 0x81, 0x02])
    )
    assert [e.usage for e in items] == [UsbHidUsage.unknown(0x30)]


def test_buttons_beyond_usage_max_are_unknown():
    items = parse_hid_report_descriptor(
        bytes([0x05, 0x09, 0x19, 0x01, 0x29, 0x02, 0x95, 0x03, 0x75, 0x01, 0x81, 0x02])
    )
    assert [e.usage.kind for e in items] == [
        UsageKind.BUTTON,
        UsageKind.BUTTON,
        UsageKind.UNKNOWN,
    ]
    assert items[2].usage.index == 3


def test_usage_page_from_value():
    assert UsbHidUsagePage.from_value(0x01) == UsbHidUsagePage.GENERIC_DESKTOP
    assert UsbHidUsagePage.from_value(0x09) == UsbHidUsagePage.BUTTON
    assert UsbHidUsagePage.from_value(0x0C).value == 0x0C


def test_generic_desktop_usage_table():
    assert UsbHidUsage.generic_desktop(0x38) == UsbHidUsage.WHEEL
    assert UsbHidUsage.generic_desktop(0x02) == UsbHidUsage.MOUSE
    assert UsbHidUsage.generic_desktop(0x99) == UsbHidUsage.unknown(0x99)