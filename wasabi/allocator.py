"""First-fit allocator that manages an address space with in-band headers."""

from dataclasses import dataclass

from .uefi import EfiMemoryType

HEADER_SIZE = 32
PAGE_SIZE = 4096


def round_up_to_nearest_pow2(value):
    """Return the smallest power of two that is not less than ``value``.

    Raises ValueError for 0 and for values whose result exceeds 2**63.
    """
    if value < 1 or value > 1 << 63:
        raise ValueError("Out of range")
    return 1 << (value - 1).bit_length()


@dataclass(frozen=True)
class Region:
    """A snapshot of one header-delimited chunk of memory."""

    start: int
    size: int
    is_allocated: bool

    @property
    def end(self):
        return self.start + self.size


@dataclass
class _Header:
    start: int
    size: int
    is_allocated: bool

    @property
    def end(self):
        return self.start + self.size

    def can_provide(self, size, align):
        # Rough check: one header for the allocation, one for padding.
        return self.size >= size + HEADER_SIZE * 2 + align


class FirstFitAllocator:
    """Hands out aligned addresses from free regions, first fit first."""

    def __init__(self):
        self._headers = []
        self._allocated = {}

    def add_free_region(self, start, size):
        """Add a free region; page 0 is never handed out and tiny regions are ignored."""
        if start == 0:
            start += PAGE_SIZE
            size = max(0, size - PAGE_SIZE)
        if size <= PAGE_SIZE:
            return
        self._headers.insert(0, _Header(start, size, False))

    def init_with_mmap(self, memory_map):
        """Add every conventional-memory entry of ``memory_map`` as free space."""
        for descriptor in memory_map:
            if descriptor.memory_type != EfiMemoryType.CONVENTIONAL_MEMORY:
                continue
            self.add_free_region(
                descriptor.physical_start, descriptor.number_of_pages * PAGE_SIZE
            )

    def _provide(self, index, size, align):
        header = self._headers[index]
        try:
            size = max(round_up_to_nearest_pow2(size), HEADER_SIZE)
        except ValueError:
            return None
        align = max(align, HEADER_SIZE)
        if header.is_allocated or not header.can_provide(size, align):
            return None
        end = header.end
        allocated_addr = (end - size) & ~(align - 1)
        allocated = _Header(allocated_addr - HEADER_SIZE, size + HEADER_SIZE, True)
        new_headers = [allocated]
        size_used = allocated.size
        if allocated.end != end:
            padding = _Header(allocated.end, end - allocated.end, False)
            size_used += padding.size
            new_headers.append(padding)
        header.size -= size_used
        self._headers[index + 1 : index + 1] = new_headers
        self._allocated[allocated_addr] = allocated
        return allocated_addr

    def alloc(self, size, align=1):
        """Return the address of a new block of ``size`` bytes aligned to ``align``.

        Raises MemoryError when no region can hold the block.
        """
        if align <= 0 or align & (align - 1):
            raise ValueError("align must be a power of two")
        for index in range(len(self._headers)):
            address = self._provide(index, size, align)
            if address is not None:
                return address
        raise MemoryError("out of memory")

    def dealloc(self, address):
        """Mark the block starting at ``address`` as free again."""
        header = self._allocated.pop(address, None)
        if header is None:
            raise ValueError(f"address {address:#x} is not allocated")
        header.is_allocated = False

    def regions(self):
        """Return snapshots of all headers in list order."""
        return [Region(h.start, h.size, h.is_allocated) for h in self._headers]