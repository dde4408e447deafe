"""Hex dumps and log-line formatting."""

import sys
from enum import Enum


class LogLevel(Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


def _ascii_column(chunk, last):
    def show(byte):
        if last:
            printable = 0x20 <= byte <= 0x7F
        else:
            printable = 0x20 <= byte <= 0x7E
        return chr(byte) if printable else "."

    return "|" + "".join(show(b) for b in chunk) + "|"


def hexdump_lines(data):
    """Yield the lines of a 16-bytes-per-line hex dump of ``data``."""
    data = bytes(data)
    for offset in range(0, len(data), 16):
        chunk = data[offset : offset + 16]
        partial = len(chunk) < 16
        hex_part = "".join(f"{b:02X} " for b in chunk) + "   " * (16 - len(chunk))
        yield f"{offset:08X}: {hex_part}{_ascii_column(chunk, partial)}"


def hexdump_bytes(data, out=None):
    """Write a hex dump of ``data`` to ``out`` (standard output by default)."""
    stream = sys.stdout if out is None else out
    for line in hexdump_lines(data):
        stream.write(line + "\n")


def format_log_line(level, file, line, message):
    """Format a log line such as ``[INFO]  main.rs:12 : message`` (no newline)."""
    if not isinstance(level, LogLevel):
        level = LogLevel(str(level).upper())
    label = f"[{level.value}]"
    return f"{label:<7} {file}:{line:<3}: {message}"