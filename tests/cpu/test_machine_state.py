"""Tests for the CHIP-8 machine state aggregate."""

from __future__ import annotations

import pytest

from pychip8.bus import MAX_PROGRAM_SIZE
from pychip8.cpu import ExecutionMode, MachineState, ProgramTooLargeError
from pychip8.video.font import FONT_DATA


def test_load_installs_font_and_program() -> None:
    state = MachineState()

    state.load(b"\x12\x00")

    assert state.memory.read_block(0x000, len(FONT_DATA)) == FONT_DATA
    assert state.memory.read_block(0x200, 2) == b"\x12\x00"
    assert state.pc == 0x200
    assert state.program == b"\x12\x00"


def test_load_resets_registers() -> None:
    state = MachineState()
    state.load(b"")
    state.v[3] = 9
    state.i = 0x123
    state.pc = 0x456
    state.sp = 2
    state.delay_timer = 5
    state.sound_timer = 6
    state.mode = ExecutionMode.AWAITING_KEY
    state.await_register = 3
    state.memory.store8(0x800, 0xAA)

    state.load(b"\x00\xe0")

    assert bytes(state.v) == bytes(16)
    assert (state.i, state.pc, state.sp) == (0, 0x200, 0)
    assert (state.delay_timer, state.sound_timer) == (0, 0)
    assert state.mode is ExecutionMode.RUNNING
    assert state.await_register is None
    assert state.memory.load8(0x800) == 0


def test_load_accepts_largest_program() -> None:
    state = MachineState()
    rom = bytes([0xAB]) * MAX_PROGRAM_SIZE

    state.load(rom)

    assert state.memory.load8(0xFFF) == 0xAB


def test_load_rejects_oversized_program_without_side_effects() -> None:
    state = MachineState()
    state.load(b"\x60\x01")

    with pytest.raises(ProgramTooLargeError) as excinfo:
        state.load(bytes(MAX_PROGRAM_SIZE + 1))

    assert excinfo.value.size == MAX_PROGRAM_SIZE + 1
    assert state.memory.read_block(0x200, 2) == b"\x60\x01"


def test_tick_timers_floors_at_zero() -> None:
    state = MachineState()
    state.delay_timer = 2
    state.sound_timer = 1

    state.tick_timers()
    assert (state.delay_timer, state.sound_timer) == (1, 0)
    assert not state.sound_active

    state.tick_timers()
    state.tick_timers()
    assert (state.delay_timer, state.sound_timer) == (0, 0)


def test_pause_remembers_key_wait() -> None:
    state = MachineState()
    state.mode = ExecutionMode.AWAITING_KEY

    assert state.toggle_pause() is True
    assert state.mode is ExecutionMode.PAUSED

    assert state.toggle_pause() is False
    assert state.mode is ExecutionMode.AWAITING_KEY


def test_reset_reloads_program() -> None:
    state = MachineState()
    state.load(b"\x61\x02")
    state.memory.store8(0x200, 0xFF)
    state.pc = 0x300

    state.reset()

    assert state.memory.read_block(0x200, 2) == b"\x61\x02"
    assert state.pc == 0x200


def test_snapshot_lists_active_stack() -> None:
    state = MachineState()
    state.stack[0] = 0x202
    state.stack[1] = 0x20A
    state.sp = 2

    snapshot = state.snapshot()

    assert snapshot["STACK"] == (0x202, 0x20A)
    assert snapshot["MODE"] == "RUNNING"
