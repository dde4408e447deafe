from datetime import timedelta

import pytest

from wasabi.hpet import (
    REGISTERS_SIZE,
    TIMER_CONFIG_INT_ENABLE,
    TIMER_CONFIG_LEVEL_TRIGGER,
    TIMER_CONFIG_USE_PERIODIC_MODE,
    Hpet,
    HpetRegisters,
    global_timestamp,
    reset_global_hpet,
    set_global_hpet,
)

ALL_ONES = (1 << 64) - 1
FS_PER_NS = 1_000_000


@pytest.fixture(autouse=True)
def clean_global_hpet():
    reset_global_hpet()
    yield
    reset_global_hpet()


def make_registers(fs_per_count=FS_PER_NS, timer_field=0):
    registers = HpetRegisters()
    registers.capabilities_and_id = (fs_per_count << 32) | (timer_field << 8)
    return registers


def test_register_block_size_is_checked():
    with pytest.raises(ValueError):
        HpetRegisters(bytes(REGISTERS_SIZE - 1))


def test_timer_config_round_trip():
    registers = HpetRegisters()
    registers.set_timer_config(31, 0x1234)
    assert registers.timer_config(31) == 0x1234
    assert registers.timer_config(30) == 0


def test_timer_index_out_of_range():
    registers = HpetRegisters()
    with pytest.raises(IndexError):
        registers.timer_config(32)


def test_frequency_from_period():
    hpet = Hpet(make_registers(fs_per_count=FS_PER_NS))
    assert hpet.freq * FS_PER_NS == 1_000_000_000_000_000


def test_number_of_timers():
    hpet = Hpet(make_registers(timer_field=0b11111))
    assert hpet.num_of_timers == 32


def test_zero_period_rejected():
    with pytest.raises(ValueError):
        Hpet(make_registers(fs_per_count=0))


def test_init_clears_timer_configuration():
    registers = make_registers(timer_field=2)
    for i in range(32):
        registers.set_timer_config(i, ALL_ONES)
    hpet = Hpet(registers)
    cleared = (
        TIMER_CONFIG_INT_ENABLE
        | TIMER_CONFIG_USE_PERIODIC_MODE
        | TIMER_CONFIG_LEVEL_TRIGGER
        | (0b11111 << 9)
    )
    for i in range(hpet.num_of_timers):
        config = registers.timer_config(i)
        assert config & cleared == 0
        assert config | cleared == ALL_ONES
    for i in range(hpet.num_of_timers, 32):
        assert registers.timer_config(i) == ALL_ONES


def test_init_enables_counter_and_resets_it():
    registers = make_registers()
    registers.configuration = 0xF0 | 0b10
    registers.main_counter_value = 777
    hpet = Hpet(registers)
    assert registers.configuration & 0b11 == 0b01
    assert registers.configuration & ~0b11 == 0xF0
    assert hpet.main_counter() == 0


def test_global_timestamp_is_zero_without_hpet():
    assert global_timestamp() == timedelta(0)


def test_global_timestamp_follows_counter():
    registers = make_registers(fs_per_count=FS_PER_NS)
    set_global_hpet(Hpet(registers))
    registers.main_counter_value = 5_000_000_000
    assert global_timestamp() == timedelta(seconds=5)


def test_global_timestamp_is_monotonic():
    registers = make_registers()
    set_global_hpet(Hpet(registers))
    stamps = []
    for counter in (0, 10_000, 20_000, 1_000_000):
        registers.main_counter_value = counter
        stamps.append(global_timestamp())
    assert stamps == sorted(stamps)
    assert stamps[0] < stamps[-1]


def test_global_hpet_set_only_once():
    set_global_hpet(Hpet(make_registers()))
    with pytest.raises(RuntimeError):
        set_global_hpet(Hpet(make_registers()))


def test_reset_global_hpet():
    registers = make_registers()
    set_global_hpet(Hpet(registers))
    registers.main_counter_value = 5_000_000_000
    reset_global_hpet()
    assert global_timestamp() == timedelta(0)