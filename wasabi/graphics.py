"""Drawing primitives and a bitmap font for a linear 32-bit framebuffer."""

import re

_U32_MASK = (1 << 32) - 1
_GLYPH_WIDTH = 8
_GLYPH_HEIGHT = 16
_BLANK_GLYPH = ("*" * _GLYPH_WIDTH,) * _GLYPH_HEIGHT
_HEX_INDEX = re.compile(r"\+?[0-9A-Fa-f]+")


class GraphicsError(ValueError):
    """Raised when drawing outside a bitmap."""


class Bitmap:
    """A framebuffer of little-endian 32-bit pixels."""

    def __init__(self, width, height, pixels_per_line=None, bytes_per_pixel=4):
        if pixels_per_line is None:
            pixels_per_line = width
        if width < 0 or height < 0 or pixels_per_line < 0 or bytes_per_pixel <= 0:
            raise ValueError("bitmap dimensions must be non-negative")
        self.width = width
        self.height = height
        self.pixels_per_line = pixels_per_line
        self.bytes_per_pixel = bytes_per_pixel
        self.buffer = bytearray(
            pixels_per_line * height * bytes_per_pixel + max(0, 4 - bytes_per_pixel)
        )

    def is_in_x_range(self, x):
        return 0 <= x < min(self.width, self.pixels_per_line)

    def is_in_y_range(self, y):
        return 0 <= y < self.height

    def _offset(self, x, y):
        if not (self.is_in_x_range(x) and self.is_in_y_range(y)):
            raise GraphicsError("Out of Range")
        return (y * self.pixels_per_line + x) * self.bytes_per_pixel

    def pixel_at(self, x, y):
        offset = self._offset(x, y)
        return int.from_bytes(self.buffer[offset : offset + 4], "little")

    def set_pixel(self, x, y, color):
        offset = self._offset(x, y)
        self.buffer[offset : offset + 4] = (color & _U32_MASK).to_bytes(4, "little")


def draw_point(bitmap, color, x, y):
    bitmap.set_pixel(x, y, color)


def fill_rect(bitmap, color, px, py, w, h):
    """Fill the ``w`` x ``h`` rectangle at (px, py); all of it must fit."""
    if not (
        bitmap.is_in_x_range(px)
        and bitmap.is_in_y_range(py)
        and bitmap.is_in_x_range(px + w - 1)
        and bitmap.is_in_y_range(py + h - 1)
    ):
        raise GraphicsError("Out of Range")
    for y in range(py, py + h):
        for x in range(px, px + w):
            bitmap.set_pixel(x, y, color)


def _calc_slope_point(da, db, ia):
    if da < db:
        return None
    if da == 0:
        return 0
    if 0 <= ia <= da:
        return (2 * db * ia + da) // da // 2
    return None


def _sign(v):
    return (v > 0) - (v < 0)


def draw_line(bitmap, color, x0, y0, x1, y1):
    """Draw from (x0, y0) towards (x1, y1); the end point itself is not drawn."""
    if not (
        bitmap.is_in_x_range(x0)
        and bitmap.is_in_x_range(x1)
        and bitmap.is_in_y_range(y0)
        and bitmap.is_in_y_range(y1)
    ):
        raise GraphicsError("Out of Range")
    dx, sx = abs(x1 - x0), _sign(x1 - x0)
    dy, sy = abs(y1 - y0), _sign(y1 - y0)
    if dx >= dy:
        points = ((rx, _calc_slope_point(dx, dy, rx)) for rx in range(dx))
    else:
        points = ((_calc_slope_point(dy, dx, ry), ry) for ry in range(dy))
    for rx, ry in points:
        if rx is None or ry is None:
            continue
        draw_point(bitmap, color, x0 + rx * sx, y0 + ry * sy)


class Font:
    """An 8x16 bitmap font for the 256 byte-sized code points."""

    def __init__(self, glyphs=None):
        self._glyphs = dict(glyphs or {})

    @classmethod
    def parse(cls, source):
        """Parse ``0xNN`` header lines each followed by 16 rows of 8 cells.

        Cells that are ``*`` are drawn; cells the source omits default to ``*``.
        """
        lines = source.split("\n")
        glyphs = {}
        for i, line in enumerate(lines):
            if not line.startswith("0x") or not _HEX_INDEX.fullmatch(line[2:]):
                continue
            index = int(line[2:], 16)
            if index > 0xFF:
                continue
            rows = list(_BLANK_GLYPH)
            for y, row in enumerate(lines[i + 1 : i + 1 + _GLYPH_HEIGHT]):
                head = row[:_GLYPH_WIDTH]
                rows[y] = head + rows[y][len(head) :]
            glyphs[index] = tuple(rows)
        return cls(glyphs)

    def glyph(self, c):
        """Return the 16 rows for ``c``, or None for characters beyond U+00FF."""
        if len(c) != 1:
            raise ValueError("a single character is required")
        code = ord(c)
        if code > 0xFF:
            return None
        return self._glyphs.get(code, _BLANK_GLYPH)


def draw_font_fg(bitmap, x, y, color, c, font):
    """Draw the foreground cells of ``c``; parts outside the bitmap are clipped."""
    glyph = font.glyph(c)
    if glyph is None:
        return
    for dy, row in enumerate(glyph):
        for dx, cell in enumerate(row):
            if cell != "*":
                continue
            try:
                draw_point(bitmap, color, x + dx, y + dy)
            except GraphicsError:
                pass


def draw_str_fg(bitmap, x, y, color, s, font):
    for i, c in enumerate(s):
        draw_font_fg(bitmap, x + i * _GLYPH_WIDTH, y, color, c, font)


def draw_test_pattern(bitmap, font):
    """Draw colour blocks, lines and sample text near the right edge."""
    w = 128
    h = 64
    left = bitmap.width - w - 1
    colors = [0x000000, 0xFF0000, 0x00FF00, 0x0000FF]
    for i, color in enumerate(colors):
        y = i * h
        fill_rect(bitmap, color, left, y, h, h)
        fill_rect(bitmap, ~color & _U32_MASK, left + h, y, h, h)
    points = [(0, 0), (0, w), (w, 0), (w, w)]
    for x0, y0 in points:
        for x1, y1 in points:
            try:
                draw_line(bitmap, 0xFFFFFF, left + x0, y0, left + x1, y1)
            except GraphicsError:
                pass
    draw_str_fg(bitmap, left, h * len(colors), 0x00FF00, "0123456789", font)
    draw_str_fg(bitmap, left, h * len(colors) + 16, 0x00FF00, "ABCDEF", font)


class BitmapTextWriter:
    """Writes text onto a bitmap in white, advancing a cursor."""

    def __init__(self, bitmap, font):
        self.bitmap = bitmap
        self.font = font
        self.cursor_x = 0
        self.cursor_y = 0

    def write(self, s):
        for c in s:
            if c == "\n":
                self.cursor_y += _GLYPH_HEIGHT
                self.cursor_x = 0
                continue
            draw_font_fg(self.bitmap, self.cursor_x, self.cursor_y, 0xFFFFFF, c, self.font)
            self.cursor_x += _GLYPH_WIDTH
        return len(s)