# wasabi

Building blocks of a small x86-64 UEFI operating system, as a plain Python
library. Everything works on byte buffers and in-memory models: firmware
tables are parsed out of a `bytes` image of physical memory, PCI
configuration space is a writable buffer, and the HPET is a 0x500-byte
register block.

## Modules

- `wasabi.bits`: `extract_bits(value, shift, width)` reads a bit field of a
  64-bit integer (the mask is capped at 63 bits; a shift of 64 or more gives
  0). `extract_bits_from_le_bytes(data, shift, width)` reads a field from a
  little-endian byte string and returns `None` when `width` is 0 or the field
  runs past the data.
- `wasabi.ranges`: `map_value_in_range_inclusive(from_range, to_range, value)`
  scales `value` from one inclusive `(start, end)` pair onto another, with
  division truncating towards zero. It raises `ValueError` when `value` lies
  outside `from_range` or the result does not fit in a signed 64-bit integer.
- `wasabi.mutex`: `Mutex` with `try_lock()`, `lock()` (retries 10,000 times,
  then raises `LockError`) and `under_locked(func)`. A `MutexGuard` exposes
  the protected value as `guard.data`, is a context manager and has
  `release()`.
- `wasabi.uefi`: `EfiGuid`, `EfiMemoryType`, `EfiMemoryDescriptor` (with
  `to_bytes` / `from_bytes`) and `MemoryMapHolder`, which iterates the
  descriptors of a raw memory-map buffer with a given descriptor stride.
- `wasabi.hexdump`: `hexdump_lines(data)` yields 16-bytes-per-line dump
  lines, `hexdump_bytes(data, out=None)` writes them to a stream, and
  `format_log_line(level, file, line, message)` builds lines such as
  `[INFO]  main.rs:12 : message`.
- `wasabi.allocator`: `FirstFitAllocator` with `add_free_region`,
  `init_with_mmap` (uses conventional-memory entries), `alloc(size, align)`,
  `dealloc(address)` and `regions()`, which returns `Region` snapshots.
  Addresses are bookkept with 32-byte headers; page 0 is never handed out and
  `alloc` raises `MemoryError` when nothing fits. Also
  `round_up_to_nearest_pow2`.
- `wasabi.hpet`: `HpetRegisters`, `Hpet` (quiesces the timers, resets the main
  counter and enables it), and the global source `set_global_hpet`,
  `reset_global_hpet` and `global_timestamp`, which returns a `timedelta`
  (zero when no HPET is set).
- `wasabi.executor`: coroutine scheduling. `block_on(coro)` runs one coroutine
  to completion; `yield_execution()` and `sleep(duration)` are awaitables;
  `Executor.spawn` and `Executor.run` poll tasks round-robin and return each
  task's result or raised exception in completion order; `spawn_global` and
  `start_global_executor` do the same for a shared executor. `sleep` waits on
  `global_timestamp`, so it needs an HPET whose counter advances.
- `wasabi.acpi`: `AcpiRsdpStruct`, `Xsdt`, `SystemDescriptionTableHeader`,
  `AcpiHpetDescriptor`, `GenericAddress`, `AcpiMcfgDescriptor` and
  `EcamEntry`, all read from a memory image at a given address. Errors raise
  `AcpiError`.
- `wasabi.pci`: `BusDeviceFunction`, `VendorDeviceId`, `BarMem64` and `Pci`,
  which reads and writes 16/32/64-bit configuration registers, lists present
  functions with `probe_devices()`, sizes BAR0 with `try_bar0_mem64` and sets
  command bits with `enable_bus_master` / `disable_interrupt`. Errors raise
  `PciError`.
- `wasabi.graphics`: `Bitmap` (32-bit little-endian pixels in a `bytearray`),
  `draw_point`, `fill_rect`, `draw_line`, an 8x16 `Font` parsed from text
  with `Font.parse`, `draw_font_fg`, `draw_str_fg`, `draw_test_pattern` and
  `BitmapTextWriter`. Out-of-range drawing raises `GraphicsError`.
- `wasabi.tablet`: `parse_hid_report_descriptor(report)` returns the
  `UsbHidReportInputItem` fields of a HID report descriptor; each item reads
  its signed value with `value_from_report` and scales it with
  `mapped_range_from_report`.
- `wasabi.keyboard`: `KeyEvent.from_usb_key_id`, `KeyEvent.to_char` and
  `key_changes(previous, report)`, which compares a boot-protocol report with
  the previously pressed keys and returns the new set and the key-down/key-up
  changes.

## Example

```python
from wasabi.bits import extract_bits
from wasabi.ranges import map_value_in_range_inclusive
from wasabi.allocator import FirstFitAllocator

assert extract_bits(0x123, 4, 8) == 0x12
assert map_value_in_range_inclusive((0, 3), (0, 270), 1) == 90

heap = FirstFitAllocator()
heap.add_free_region(0x10000, 0x100000)
address = heap.alloc(1234, 4096)
assert address % 4096 == 0
heap.dealloc(address)
```

## What it does not do

The library does not boot, run on hardware or touch real devices. There is
no UEFI boot-services interface, page-table setup, serial port, xHCI
controller or USB transfer code, and no command-line program: device data
(memory images, report descriptors, keyboard reports) has to be supplied by
the caller.

## Running the tests

Install the package with its test extra, `pip install -e .[test]`, then run
`pytest`.