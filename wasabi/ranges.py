"""Linear mapping between inclusive integer ranges."""

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


def _trunc_div(numerator, denominator):
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


def map_value_in_range_inclusive(from_range, to_range, value):
    """Map ``value`` from the inclusive ``(start, end)`` ``from_range`` onto ``to_range``.

    Raises ValueError if ``value`` is outside ``from_range`` or the result
    does not fit in a signed 64-bit integer.
    """
    from_start, from_end = from_range
    to_start, to_end = to_range
    if not from_start <= value <= from_end:
        raise ValueError("v is not in range from")
    from_left = value - from_start
    from_width = from_end - from_start
    to_width = to_end - to_start
    if from_width == 0:
        return to_start
    to_left = _trunc_div(from_left * to_width, from_width)
    if not _I64_MIN <= to_left <= _I64_MAX:
        raise ValueError("failed to convert to_left to the result type")
    return to_start + to_left