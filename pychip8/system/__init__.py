"""CHIP-8 system assembly helpers."""

from __future__ import annotations

from pychip8.cpu import ExecutionMode, MachineState, ProgramTooLargeError

from .machine import Machine, MachineConfig, create_machine
from .scheduler import FrameReport, FrameScheduler

__all__ = [
    "MachineConfig",
    "Machine",
    "MachineState",
    "ExecutionMode",
    "ProgramTooLargeError",
    "FrameScheduler",
    "FrameReport",
    "create_machine",
]
