"""High Precision Event Timer registers and the global timestamp source."""

import struct
from datetime import timedelta

from .mutex import Mutex

TIMER_CONFIG_LEVEL_TRIGGER = 1 << 1
TIMER_CONFIG_INT_ENABLE = 1 << 2
TIMER_CONFIG_USE_PERIODIC_MODE = 1 << 3
_TIMER_CONFIG_ROUTE = 0b11111 << 9

REGISTERS_SIZE = 0x500
_CAPABILITIES_OFFSET = 0x00
_CONFIGURATION_OFFSET = 0x10
_MAIN_COUNTER_OFFSET = 0xF0
_TIMERS_OFFSET = 0x100
_TIMER_STRIDE = 0x20
MAX_TIMERS = 32

_U64 = struct.Struct("<Q")
_U64_MASK = (1 << 64) - 1
_FEMTOSECONDS_PER_SECOND = 1_000_000_000_000_000


class HpetRegisters:
    """The 0x500-byte HPET register block."""

    def __init__(self, data=None):
        if data is None:
            data = bytes(REGISTERS_SIZE)
        if len(data) != REGISTERS_SIZE:
            raise ValueError(f"HPET register block must be {REGISTERS_SIZE:#x} bytes")
        self._data = bytearray(data)

    def _read(self, offset):
        return _U64.unpack_from(self._data, offset)[0]

    def _write(self, offset, value):
        _U64.pack_into(self._data, offset, value & _U64_MASK)

    def __bytes__(self):
        return bytes(self._data)

    @property
    def capabilities_and_id(self):
        return self._read(_CAPABILITIES_OFFSET)

    @capabilities_and_id.setter
    def capabilities_and_id(self, value):
        self._write(_CAPABILITIES_OFFSET, value)

    @property
    def configuration(self):
        return self._read(_CONFIGURATION_OFFSET)

    @configuration.setter
    def configuration(self, value):
        self._write(_CONFIGURATION_OFFSET, value)

    @property
    def main_counter_value(self):
        return self._read(_MAIN_COUNTER_OFFSET)

    @main_counter_value.setter
    def main_counter_value(self, value):
        self._write(_MAIN_COUNTER_OFFSET, value)

    @staticmethod
    def _timer_offset(index):
        if not 0 <= index < MAX_TIMERS:
            raise IndexError("HPET timer index out of range")
        return _TIMERS_OFFSET + index * _TIMER_STRIDE

    def timer_config(self, index):
        """Return the configuration-and-capability register of timer ``index``."""
        return self._read(self._timer_offset(index))

    def set_timer_config(self, index, value):
        self._write(self._timer_offset(index), value)


class Hpet:
    """A configured HPET: timers quiesced, counter reset and running."""

    def __init__(self, registers):
        self.registers = registers
        capabilities = registers.capabilities_and_id
        fs_per_count = capabilities >> 32
        if fs_per_count == 0:
            raise ValueError("HPET reports a zero counter period")
        self.num_of_timers = ((capabilities >> 8) & 0b11111) + 1
        self.freq = _FEMTOSECONDS_PER_SECOND // fs_per_count

        self._globally_disable()
        cleared = (
            TIMER_CONFIG_INT_ENABLE
            | TIMER_CONFIG_USE_PERIODIC_MODE
            | TIMER_CONFIG_LEVEL_TRIGGER
            | _TIMER_CONFIG_ROUTE
        )
        for index in range(self.num_of_timers):
            config = registers.timer_config(index)
            registers.set_timer_config(index, config & ~cleared)
        registers.main_counter_value = 0
        self._globally_enable()

    def _globally_disable(self):
        self.registers.configuration = self.registers.configuration & ~0b11

    def _globally_enable(self):
        self.registers.configuration = self.registers.configuration | 0b01

    def main_counter(self):
        return self.registers.main_counter_value


_HPET = Mutex(None)


def set_global_hpet(hpet):
    """Install ``hpet`` as the global timestamp source; it may be set only once."""
    with _HPET.lock() as guard:
        if guard.data is not None:
            raise RuntimeError("global HPET is already set")
        guard.data = hpet


def reset_global_hpet():
    """Remove the global timestamp source."""
    with _HPET.lock() as guard:
        guard.data = None


def global_timestamp():
    """Time since the global HPET was reset, truncated to microseconds.

    Returns a zero timedelta when no HPET is installed.
    """
    with _HPET.lock() as guard:
        hpet = guard.data
        if hpet is None:
            return timedelta(0)
        ns = hpet.main_counter() * 1_000_000_000 // hpet.freq
    return timedelta(microseconds=ns // 1000)