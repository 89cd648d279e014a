"""Fixed-rate frame scheduler.

Wall-clock time handed to :meth:`FrameScheduler.advance` is accumulated as
lag. Every whole tick period consumed from the lag decrements the timers once
and then runs up to ``instructions_per_tick`` instructions. Lag is kept in
integer microseconds so repeated ticks never drift.
"""

from __future__ import annotations

from dataclasses import dataclass

from pychip8.cpu import ExecutionMode, Executor, MachineState, StepResult
from pychip8.io import Keypad
from pychip8.utils import debug_enabled, debug_log
from pychip8.video import Display

DEFAULT_INSTRUCTIONS_PER_TICK = 15
DEFAULT_TICK_RATE = 60
MIN_INSTRUCTIONS_PER_TICK = 1
MAX_INSTRUCTIONS_PER_TICK = 1000
SPEED_STEP = 1

_MICROSECONDS = 1_000_000


@dataclass
class FrameReport:
    """Work performed by one :meth:`FrameScheduler.advance` call."""

    ticks: int = 0
    instructions: int = 0
    last_result: StepResult | None = None


class FrameScheduler:
    """Converts elapsed time into timer ticks and instruction batches."""

    def __init__(
        self,
        executor: Executor,
        *,
        instructions_per_tick: int = DEFAULT_INSTRUCTIONS_PER_TICK,
        tick_rate: int = DEFAULT_TICK_RATE,
        timers_during_key_wait: bool = False,
    ) -> None:
        if tick_rate <= 0:
            raise ValueError("tick_rate must be positive")
        self.executor = executor
        self.timers_during_key_wait = timers_during_key_wait
        self._period_us = _MICROSECONDS // tick_rate
        self._lag_us = 0
        self._instructions_per_tick = DEFAULT_INSTRUCTIONS_PER_TICK
        self.instructions_per_tick = instructions_per_tick

    @property
    def instructions_per_tick(self) -> int:
        return self._instructions_per_tick

    @instructions_per_tick.setter
    def instructions_per_tick(self, value: int) -> None:
        self._instructions_per_tick = max(
            MIN_INSTRUCTIONS_PER_TICK, min(MAX_INSTRUCTIONS_PER_TICK, int(value))
        )

    @property
    def tick_period_us(self) -> int:
        return self._period_us

    @property
    def tick_period(self) -> float:
        return self._period_us / _MICROSECONDS

    @property
    def lag_us(self) -> int:
        return self._lag_us

    def speed_up(self, step: int = SPEED_STEP) -> int:
        self.instructions_per_tick = self._instructions_per_tick + step
        return self._instructions_per_tick

    def slow_down(self, step: int = SPEED_STEP) -> int:
        self.instructions_per_tick = self._instructions_per_tick - step
        return self._instructions_per_tick

    def reset(self) -> None:
        self._lag_us = 0

    def advance(
        self,
        elapsed: float,
        machine: MachineState,
        display: Display,
        keypad: Keypad,
    ) -> FrameReport:
        """Account ``elapsed`` seconds and run every whole tick it completes."""

        return self.advance_us(round(elapsed * _MICROSECONDS), machine, display, keypad)

    def advance_us(
        self,
        elapsed_us: int,
        machine: MachineState,
        display: Display,
        keypad: Keypad,
    ) -> FrameReport:
        report = FrameReport()
        if machine.mode is ExecutionMode.PAUSED:
            return report

        self._lag_us += max(0, elapsed_us)
        while self._lag_us >= self._period_us:
            self._lag_us -= self._period_us
            report.ticks += 1
            self._tick(machine, display, keypad, report)

        if debug_enabled("scheduler") and report.ticks:
            debug_log(
                "scheduler",
                "ticks=%d instructions=%d lag_us=%d mode=%s",
                report.ticks,
                report.instructions,
                self._lag_us,
                machine.mode.name,
            )
        return report

    def _tick(
        self,
        machine: MachineState,
        display: Display,
        keypad: Keypad,
        report: FrameReport,
    ) -> None:
        if machine.mode is not ExecutionMode.AWAITING_KEY or self.timers_during_key_wait:
            machine.tick_timers()

        for _ in range(self._instructions_per_tick):
            result = self.executor.step(machine, display, keypad)
            report.last_result = result
            if result.executed:
                report.instructions += 1
            if machine.mode is not ExecutionMode.RUNNING:
                break
