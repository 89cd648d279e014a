"""Mutable machine state shared by the executor and the scheduler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List

from pychip8.bus import MAX_PROGRAM_SIZE, PROGRAM_START, Memory
from pychip8.utils import debug_enabled, debug_log
from pychip8.video.font import FONT_DATA, FONT_START

REGISTER_COUNT = 16
STACK_DEPTH = 16
FLAG_REGISTER = 0xF


class ProgramTooLargeError(ValueError):
    """Raised when a ROM image does not fit above ``PROGRAM_START``."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"program of {size} bytes exceeds the {MAX_PROGRAM_SIZE} byte limit")


class ExecutionMode(Enum):
    RUNNING = auto()
    PAUSED = auto()
    AWAITING_KEY = auto()


@dataclass
class MachineState:
    """Memory, registers, stack, timers and execution mode of one machine."""

    memory: Memory = field(default_factory=Memory)
    v: bytearray = field(default_factory=lambda: bytearray(REGISTER_COUNT))
    i: int = 0x0000
    pc: int = PROGRAM_START
    sp: int = 0
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    delay_timer: int = 0
    sound_timer: int = 0
    mode: ExecutionMode = ExecutionMode.RUNNING
    await_register: int | None = None
    _resume_mode: ExecutionMode = ExecutionMode.RUNNING
    _program: bytes = b""

    def load(self, rom: bytes) -> None:
        """Install the font and ``rom`` and reset every register."""

        rom = bytes(rom)
        if len(rom) > MAX_PROGRAM_SIZE:
            raise ProgramTooLargeError(len(rom))

        self.memory.clear()
        self.memory.write_block(FONT_START, FONT_DATA)
        self.memory.write_block(PROGRAM_START, rom)
        self._program = rom
        self._reset_registers()
        if debug_enabled("loader"):
            debug_log("loader", "loaded %d bytes at %03X", len(rom), PROGRAM_START)

    def reset(self) -> None:
        """Reload the most recently loaded program."""

        self.load(self._program)

    def tick_timers(self) -> None:
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    @property
    def program(self) -> bytes:
        return self._program

    @property
    def sound_active(self) -> bool:
        return self.sound_timer > 0

    @property
    def running(self) -> bool:
        return self.mode is ExecutionMode.RUNNING

    @property
    def paused(self) -> bool:
        return self.mode is ExecutionMode.PAUSED

    def pause(self) -> None:
        if self.mode is ExecutionMode.PAUSED:
            return
        self._resume_mode = self.mode
        self.mode = ExecutionMode.PAUSED

    def resume(self) -> None:
        if self.mode is not ExecutionMode.PAUSED:
            return
        self.mode = self._resume_mode
        self._resume_mode = ExecutionMode.RUNNING

    def toggle_pause(self) -> bool:
        """Flip between paused and the previous mode; return ``True`` when now paused."""

        if self.paused:
            self.resume()
        else:
            self.pause()
        return self.paused

    def snapshot(self) -> dict[str, object]:
        return {
            "PC": self.pc,
            "I": self.i,
            "SP": self.sp,
            "V": tuple(self.v),
            "STACK": tuple(self.stack[: self.sp]),
            "DT": self.delay_timer,
            "ST": self.sound_timer,
            "MODE": self.mode.name,
            "AWAIT": self.await_register,
        }

    def _reset_registers(self) -> None:
        self.v = bytearray(REGISTER_COUNT)
        self.i = 0x0000
        self.pc = PROGRAM_START
        self.sp = 0
        self.stack = [0] * STACK_DEPTH
        self.delay_timer = 0
        self.sound_timer = 0
        self.mode = ExecutionMode.RUNNING
        self.await_register = None
        self._resume_mode = ExecutionMode.RUNNING
