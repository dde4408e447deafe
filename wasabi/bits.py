"""Bit-field extraction helpers."""

_U64_MASK = (1 << 64) - 1


def extract_bits(value, shift, width):
    """Return ``width`` bits of the 64-bit ``value`` starting at bit ``shift``.

    The mask is capped at 63 bits, and a shift of 64 or more yields 0.
    """
    if value < 0 or shift < 0 or width < 0:
        raise ValueError("value, shift and width must be non-negative")
    mask = (1 << min(63, width)) - 1
    value &= _U64_MASK
    shifted = value >> shift if shift < 64 else 0
    return shifted & mask


def extract_bits_from_le_bytes(data, shift, width):
    """Read a ``width``-bit field at bit ``shift`` of little-endian ``data``.

    Returns None when ``width`` is zero or the field lies outside ``data``.
    """
    if shift < 0 or width < 0:
        raise ValueError("shift and width must be non-negative")
    if width == 0:
        return None
    start = shift // 8
    end = (shift + width + 7) // 8
    if end > len(data):
        return None
    bit_shift = shift - start * 8
    value = 0
    for i, byte in enumerate(data[start:end]):
        value |= ((byte << (i * 8)) >> bit_shift) & _U64_MASK
    return extract_bits(value, 0, width)