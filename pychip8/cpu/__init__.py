"""CPU package for the CHIP-8 emulator."""

from .core import (
    CPUError,
    Executor,
    IllegalOpcodeError,
    StackOverflowError,
    StackUnderflowError,
    StepResult,
)
from .opcodes import Instruction, Op, decode, disassemble
from .state import ExecutionMode, MachineState, ProgramTooLargeError
from . import opcodes

__all__ = [
    "Executor",
    "StepResult",
    "MachineState",
    "ExecutionMode",
    "Instruction",
    "Op",
    "decode",
    "disassemble",
    "CPUError",
    "IllegalOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "ProgramTooLargeError",
    "opcodes",
]
