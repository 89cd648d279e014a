"""CHIP-8 machine assembly."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from pychip8.cpu import Executor, MachineState, StepResult
from pychip8.io import Keypad
from pychip8.utils import TraceRecorder
from pychip8.video import Display

from .scheduler import (
    DEFAULT_INSTRUCTIONS_PER_TICK,
    DEFAULT_TICK_RATE,
    FrameReport,
    FrameScheduler,
)


@dataclass
class MachineConfig:
    """Runtime configuration for a CHIP-8 machine."""

    rom_image: Optional[bytes] = None
    instructions_per_tick: int = DEFAULT_INSTRUCTIONS_PER_TICK
    tick_rate: int = DEFAULT_TICK_RATE
    timers_during_key_wait: bool = False
    seed: Optional[int] = None
    trace: TraceRecorder | None = None


@dataclass
class Machine:
    """Host-owned bundle of the CHIP-8 components.

    The executor never holds on to the state, display or keypad; every call
    below hands them over explicitly.
    """

    state: MachineState
    display: Display
    keypad: Keypad
    executor: Executor
    scheduler: FrameScheduler

    def load(self, rom: bytes) -> None:
        self.state.load(rom)
        self.display.clear()
        self.keypad.reset()
        self.scheduler.reset()

    def reset(self) -> None:
        self.load(self.state.program)

    def step(self) -> StepResult:
        return self.executor.step(self.state, self.display, self.keypad)

    def advance(self, elapsed: float) -> FrameReport:
        return self.scheduler.advance(elapsed, self.state, self.display, self.keypad)

    def run_ticks(self, ticks: int) -> FrameReport:
        """Run exactly ``ticks`` tick periods regardless of wall-clock time."""

        return self.scheduler.advance_us(
            ticks * self.scheduler.tick_period_us, self.state, self.display, self.keypad
        )


def create_machine(config: MachineConfig | None = None) -> Machine:
    """Instantiate a CHIP-8 machine with the requested configuration."""

    config = config or MachineConfig()
    rng = random.Random(config.seed)
    executor = Executor(rng, trace=config.trace)
    scheduler = FrameScheduler(
        executor,
        instructions_per_tick=config.instructions_per_tick,
        tick_rate=config.tick_rate,
        timers_during_key_wait=config.timers_during_key_wait,
    )
    machine = Machine(
        state=MachineState(),
        display=Display(),
        keypad=Keypad(),
        executor=executor,
        scheduler=scheduler,
    )
    machine.load(config.rom_image or b"")
    return machine
