"""Tests for the CHIP-8 instruction executor."""

from __future__ import annotations

import random

import pytest

from pychip8.bus import MemoryAccessError
from pychip8.cpu import (
    ExecutionMode,
    Executor,
    IllegalOpcodeError,
    MachineState,
    Op,
    StackOverflowError,
    StackUnderflowError,
)
from pychip8.io import Keypad
from pychip8.video import Display
from pychip8.video.font import FONT_GLYPHS


class Rig:
    """Machine state, display, keypad and executor wired for one test."""

    def __init__(self, *words: int, seed: int = 0) -> None:
        self.state = MachineState()
        self.state.load(b"".join(word.to_bytes(2, "big") for word in words))
        self.display = Display()
        self.keypad = Keypad()
        self.executor = Executor(random.Random(seed))

    def step(self):
        return self.executor.step(self.state, self.display, self.keypad)

    def run_at(self, pc: int = 0x200):
        self.state.pc = pc
        return self.step()


def test_step_reports_executed_instruction() -> None:
    rig = Rig(0x6A42)

    result = rig.step()

    assert result.executed
    assert result.pc == 0x200
    assert result.opcode == 0x6A42
    assert result.instruction is not None and result.instruction.op is Op.LD_IMM
    assert rig.state.v[0xA] == 0x42
    assert rig.state.pc == 0x202
    assert rig.executor.instruction_count == 1


def test_cls_clears_display() -> None:
    rig = Rig(0x00E0)
    rig.display.fill()

    rig.step()

    assert rig.display.lit_count() == 0
    assert rig.state.pc == 0x202


def test_sys_is_a_no_op() -> None:
    rig = Rig(0x0123)

    rig.step()

    assert rig.state.pc == 0x202
    assert bytes(rig.state.v) == bytes(16)


def test_jump_sets_pc_without_increment() -> None:
    rig = Rig(0x1ABC)

    rig.step()

    assert rig.state.pc == 0xABC


def test_jump_with_v0_offset() -> None:
    rig = Rig(0x6010, 0xB300)

    rig.step()
    rig.step()

    assert rig.state.pc == 0x310


def test_call_and_return() -> None:
    # 0x200: CALL 0x206 / 0x202: LD V1, 01 / 0x204: JP 0x204 / 0x206: RET
    rig = Rig(0x2206, 0x6101, 0x1204, 0x00EE)

    rig.step()
    assert rig.state.pc == 0x206
    assert rig.state.sp == 1
    assert rig.state.stack[0] == 0x202

    rig.step()
    assert rig.state.pc == 0x202
    assert rig.state.sp == 0

    rig.step()
    assert rig.state.v[1] == 0x01


def test_return_with_empty_stack_raises() -> None:
    rig = Rig(0x00EE)

    with pytest.raises(StackUnderflowError) as excinfo:
        rig.step()

    assert excinfo.value.pc == 0x200
    assert excinfo.value.opcode == 0x00EE
    assert rig.state.pc == 0x200


def test_seventeenth_call_overflows_stack() -> None:
    rig = Rig(0x2200)  # CALL 0x200 forever

    for _ in range(16):
        rig.step()
    assert rig.state.sp == 16

    with pytest.raises(StackOverflowError):
        rig.step()
    assert rig.state.sp == 16
    assert rig.state.pc == 0x200


def test_illegal_opcode_raises_with_location() -> None:
    rig = Rig(0x5121)

    with pytest.raises(IllegalOpcodeError) as excinfo:
        rig.step()

    assert excinfo.value.opcode == 0x5121
    assert excinfo.value.pc == 0x200
    assert "5121" in str(excinfo.value)


@pytest.mark.parametrize(
    ("words", "setup", "skips"),
    [
        ((0x3005,), {0: 5}, True),
        ((0x3005,), {0: 6}, False),
        ((0x4005,), {0: 6}, True),
        ((0x4005,), {0: 5}, False),
        ((0x5120,), {1: 9, 2: 9}, True),
        ((0x5120,), {1: 9, 2: 8}, False),
        ((0x9120,), {1: 9, 2: 8}, True),
        ((0x9120,), {1: 9, 2: 9}, False),
    ],
)
def test_register_skips_advance_by_two_or_four(words, setup, skips) -> None:
    rig = Rig(*words)
    for register, value in setup.items():
        rig.state.v[register] = value

    rig.step()

    assert rig.state.pc == (0x204 if skips else 0x202)


@pytest.mark.parametrize(("opcode", "pressed", "skips"), [
    (0xE39E, True, True),
    (0xE39E, False, False),
    (0xE3A1, True, False),
    (0xE3A1, False, True),
])
def test_key_skips(opcode: int, pressed: bool, skips: bool) -> None:
    rig = Rig(opcode)
    rig.state.v[3] = 0xB
    if pressed:
        rig.keypad.press(0xB)

    rig.step()

    assert rig.state.pc == (0x204 if skips else 0x202)


def test_add_immediate_wraps_without_touching_flag() -> None:
    rig = Rig(0x71FF)
    rig.state.v[1] = 0x02
    rig.state.v[0xF] = 0x07

    rig.step()

    assert rig.state.v[1] == 0x01
    assert rig.state.v[0xF] == 0x07


@pytest.mark.parametrize(("opcode", "expected"), [
    (0x8120, 0x0F),  # LD
    (0x8121, 0x3F),  # OR
    (0x8122, 0x0C),  # AND
    (0x8123, 0x33),  # XOR
])
def test_register_logic_ops(opcode: int, expected: int) -> None:
    rig = Rig(opcode)
    rig.state.v[1] = 0x3C
    rig.state.v[2] = 0x0F

    rig.step()

    assert rig.state.v[1] == expected
    assert rig.state.v[2] == 0x0F


def _run_pairs(opcode: int):
    rig = Rig(opcode)
    v = rig.state.v
    for a in range(256):
        for b in range(256):
            v[1] = a
            v[2] = b
            rig.run_at()
            yield a, b, v[1], v[0xF]


def test_add_with_carry_for_all_pairs() -> None:
    for a, b, result, flag in _run_pairs(0x8124):
        assert result == (a + b) % 256
        assert flag == (1 if a + b > 255 else 0)


def test_sub_sets_not_borrow_for_all_pairs() -> None:
    for a, b, result, flag in _run_pairs(0x8125):
        assert result == (a - b) % 256
        assert flag == (1 if a >= b else 0)


def test_subn_sets_not_borrow_for_all_pairs() -> None:
    for a, b, result, flag in _run_pairs(0x8127):
        assert result == (b - a) % 256
        assert flag == (1 if b >= a else 0)


def test_shifts_report_the_bit_shifted_out() -> None:
    rig = Rig(0x8106, 0x820E)
    v = rig.state.v
    for value in range(256):
        v[1] = value
        v[2] = value
        rig.run_at(0x200)
        assert v[1] == value >> 1
        assert v[0xF] == value & 0x01

        rig.run_at(0x202)
        assert v[2] == (value << 1) & 0xFF
        assert v[0xF] == value >> 7


def test_flag_wins_when_vf_is_the_destination() -> None:
    rig = Rig(0x8F14)
    rig.state.v[0xF] = 0xFF
    rig.state.v[1] = 0x01

    rig.step()

    assert rig.state.v[0xF] == 1


def test_load_index_and_add_index_wraps() -> None:
    rig = Rig(0xAFFF, 0xF01E)
    rig.step()
    assert rig.state.i == 0x0FFF

    rig.state.i = 0xFFFF
    rig.state.v[0] = 0x02
    rig.step()
    assert rig.state.i == 0x0001


def test_random_is_masked_and_reproducible() -> None:
    rig = Rig(0xC50F, seed=1234)
    expected = random.Random(1234).getrandbits(8) & 0x0F

    rig.step()

    assert rig.state.v[5] == expected
    assert rig.state.v[5] & 0xF0 == 0


def test_timer_registers() -> None:
    rig = Rig(0x6033, 0xF015, 0xF118, 0xF207)

    for _ in range(4):
        rig.step()

    assert rig.state.delay_timer == 0x33
    assert rig.state.sound_timer == 0x00
    assert rig.state.v[2] == 0x33

    rig.state.v[1] = 0x10
    rig.run_at(0x204)
    assert rig.state.sound_timer == 0x10


@pytest.mark.parametrize("digit", range(16))
def test_font_address_points_at_digit_sprite(digit: int) -> None:
    rig = Rig(0xF429)
    rig.state.v[4] = digit

    rig.step()

    glyph = rig.state.memory.read_block(rig.state.i, 5)
    assert tuple(glyph) == FONT_GLYPHS[digit]


@pytest.mark.parametrize(("value", "digits"), [(0, (0, 0, 0)), (7, (0, 0, 7)), (42, (0, 4, 2)), (254, (2, 5, 4))])
def test_bcd_store(value: int, digits: tuple[int, int, int]) -> None:
    rig = Rig(0xF633)
    rig.state.v[6] = value
    rig.state.i = 0x300

    rig.step()

    assert tuple(rig.state.memory.read_block(0x300, 3)) == digits
    assert rig.state.i == 0x300


def test_register_block_store_and_load_round_trip() -> None:
    rig = Rig(0xF755, 0xF765)
    original = bytes([0x10 * n + 1 for n in range(8)])
    rig.state.v[:8] = original
    rig.state.v[8] = 0xEE
    rig.state.i = 0x400

    rig.step()
    assert rig.state.i == 0x400
    assert rig.state.memory.read_block(0x400, 9) == original + b"\x00"

    rig.state.v[:] = bytes(16)
    rig.step()
    assert bytes(rig.state.v[:8]) == original
    assert rig.state.v[8] == 0
    assert rig.state.i == 0x400


def test_block_store_out_of_range_commits_nothing() -> None:
    rig = Rig(0xF355)
    rig.state.v[:4] = b"\x01\x02\x03\x04"
    rig.state.i = 0xFFE

    with pytest.raises(MemoryAccessError):
        rig.step()

    assert rig.state.memory.read_block(0xFFE, 2) == b"\x00\x00"
    assert rig.state.pc == 0x200


def test_fetch_past_end_of_memory_raises() -> None:
    rig = Rig(0x1FFF)
    rig.step()

    with pytest.raises(MemoryAccessError):
        rig.step()


def test_draw_sets_pixels_and_clears_collision_flag() -> None:
    rig = Rig(0xD015)
    rig.state.i = 0x000  # glyph "0"
    rig.state.v[0] = 10
    rig.state.v[1] = 4
    rig.state.v[0xF] = 1

    rig.step()

    assert rig.state.v[0xF] == 0
    expected = {
        (10 + column, 4 + row)
        for row, bits in enumerate(FONT_GLYPHS[0])
        for column in range(8)
        if bits & (0x80 >> column)
    }
    assert rig.display.lit_cells() == expected


def test_draw_twice_restores_display_and_reports_collision() -> None:
    rig = Rig(0xD125, 0xD125)
    rig.state.i = 0x05 * 8  # glyph "8"
    rig.state.v[1] = 30
    rig.state.v[2] = 12
    rig.display.toggle(0, 0)
    before = rig.display.snapshot()

    rig.step()
    first_lit = rig.display.lit_count()
    rig.step()

    assert first_lit > 1
    assert rig.display.snapshot() == before
    assert rig.state.v[0xF] == 1


def test_draw_of_blank_sprite_twice_reports_no_collision() -> None:
    rig = Rig(0xD011, 0xD011)
    rig.state.i = 0x300  # zero byte

    rig.step()
    rig.step()

    assert rig.state.v[0xF] == 0
    assert rig.display.lit_count() == 0


def test_draw_wraps_columns_and_rows() -> None:
    rig = Rig(0xD011)
    rig.state.memory.store8(0x300, 0b11000000)
    rig.state.i = 0x300
    rig.state.v[0] = 63
    rig.state.v[1] = 32  # row 32 wraps to row 0

    rig.step()

    assert rig.display.lit_cells() == {(63, 0), (0, 0)}


def test_collision_flag_covers_whole_sprite() -> None:
    rig = Rig(0xD012)
    rig.state.memory.write_block(0x300, bytes([0x80, 0x00]))
    rig.state.i = 0x300
    rig.display.toggle(0, 0)

    rig.step()

    # First row erased a pixel, second row erased nothing.
    assert rig.state.v[0xF] == 1


def test_key_wait_blocks_until_key_down() -> None:
    rig = Rig(0xF30A, 0x6101)

    rig.step()
    assert rig.state.mode is ExecutionMode.AWAITING_KEY
    assert rig.state.await_register == 3
    assert rig.state.pc == 0x200

    for _ in range(5):
        result = rig.step()
        assert not result.executed
        assert rig.state.pc == 0x200

    rig.keypad.press(0x7)
    result = rig.step()

    assert result.executed
    assert result.note == "key-captured"
    assert rig.state.v[3] == 0x7
    assert rig.state.pc == 0x202
    assert rig.state.mode is ExecutionMode.RUNNING

    rig.step()
    assert rig.state.v[1] == 0x01


def test_key_wait_ignores_keys_already_held() -> None:
    rig = Rig(0xF00A)
    rig.keypad.press(0x2)

    rig.step()
    rig.step()
    assert rig.state.mode is ExecutionMode.AWAITING_KEY

    rig.keypad.release(0x2)
    rig.step()
    assert rig.state.mode is ExecutionMode.AWAITING_KEY

    rig.keypad.press(0x2)
    rig.step()
    assert rig.state.v[0] == 0x2
    assert rig.state.mode is ExecutionMode.RUNNING


def test_paused_step_is_a_no_op() -> None:
    rig = Rig(0x6001)
    rig.state.pause()

    result = rig.step()

    assert not result.executed
    assert result.note == "paused"
    assert rig.state.pc == 0x200
    assert rig.state.v[0] == 0
