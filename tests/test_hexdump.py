import io

import pytest

from wasabi.hexdump import LogLevel, format_log_line, hexdump_bytes, hexdump_lines


def test_empty_input_has_no_lines():
    assert list(hexdump_lines(b"")) == []


def test_short_line_is_padded():
    assert list(hexdump_lines(b"ABC")) == [
        "00000000: 41 42 43 " + "   " * 13 + "|ABC|"
    ]


def test_full_line_shows_ascii():
    data = b"ABCDEFGHIJKLMNOP"
    (line,) = hexdump_lines(data)
    assert line.endswith("|" + data.decode() + "|")


def test_line_count_offsets_and_width():
    data = bytes(range(40))
    lines = list(hexdump_lines(data))
    assert len(lines) == 3
    assert len({len(line) - line.index("|") for line in lines[:2]}) == 1
    assert [int(line[:8], 16) for line in lines] == [0, 16, 32]
    assert all(line[8:10] == ": " for line in lines)


def test_non_printable_bytes_become_dots_on_full_lines():
    (line,) = hexdump_lines(bytes([0x7F]) * 16)
    assert line.endswith("|" + "." * 16 + "|")


def test_partial_line_keeps_0x7f():
    (line,) = hexdump_lines(bytes([0x00, 0x7F, 0x41]))
    assert line.endswith("|.\x7fA|")


def test_hexdump_bytes_writes_lines():
    data = bytes(range(20))
    out = io.StringIO()
    hexdump_bytes(data, out)
    assert out.getvalue() == "".join(line + "\n" for line in hexdump_lines(data))


def test_format_log_line_info():
    assert format_log_line("info", "main.rs", 5, "hello") == "[INFO]  main.rs:5  : hello"


def test_format_log_line_error_and_enum():
    text = format_log_line(LogLevel.ERROR, "a.rs", 1234, "bad")
    assert text.startswith("[ERROR] a.rs:1234: ")
    assert text.endswith("bad")


def test_format_log_line_rejects_unknown_level():
    with pytest.raises(ValueError):
        format_log_line("debug", "a.rs", 1, "x")