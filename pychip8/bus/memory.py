"""Bounds-checked memory for the CHIP-8 address space.

The CHIP-8 sees a flat 4 KB space. The low 512 bytes belong to the
interpreter (only the built-in font lives there) and programs are loaded at
``PROGRAM_START``. Unlike a real bus nothing is mirrored or open: any access
outside the space is reported as a ``MemoryAccessError``.
"""

from __future__ import annotations

from dataclasses import dataclass

MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START


class MemoryAccessError(Exception):
    """Raised when a program touches an address outside the 4 KB space."""

    def __init__(self, address: int, length: int = 1) -> None:
        self.address = address
        self.length = length
        if length == 1:
            message = f"address {address:#06x} outside memory 0x000-{MEMORY_SIZE - 1:#05x}"
        else:
            message = (
                f"range {address:#06x}+{length} outside memory 0x000-{MEMORY_SIZE - 1:#05x}"
            )
        super().__init__(message)


@dataclass
class Memory:
    """Byte-addressable RAM of ``size`` bytes."""

    size: int = MEMORY_SIZE

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("memory must have a positive size")
        self._data = bytearray(self.size)

    def __len__(self) -> int:
        return self.size

    def _check(self, address: int, length: int = 1) -> None:
        if address < 0 or length < 0 or address + length > self.size:
            raise MemoryAccessError(address, length)

    def load8(self, address: int) -> int:
        self._check(address)
        return self._data[address]

    def store8(self, address: int, value: int) -> None:
        self._check(address)
        self._data[address] = value & 0xFF

    def load16(self, address: int) -> int:
        """Read a big-endian word, as used for opcode fetches."""

        self._check(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    def read_block(self, address: int, length: int) -> bytes:
        self._check(address, length)
        return bytes(self._data[address : address + length])

    def write_block(self, address: int, data: bytes) -> None:
        self._check(address, len(data))
        self._data[address : address + len(data)] = data

    def clear(self) -> None:
        self._data[:] = bytes(self.size)

    def snapshot(self) -> bytes:
        return bytes(self._data)
