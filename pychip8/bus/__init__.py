"""Memory helpers for the CHIP-8 emulator."""

from .memory import (
    MAX_PROGRAM_SIZE,
    MEMORY_SIZE,
    PROGRAM_START,
    Memory,
    MemoryAccessError,
)

__all__ = [
    "Memory",
    "MemoryAccessError",
    "MEMORY_SIZE",
    "PROGRAM_START",
    "MAX_PROGRAM_SIZE",
]
