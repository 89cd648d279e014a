"""Lightweight execution trace buffer for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .debug import debug_log


@dataclass
class TraceEntry:
    pc: int
    opcode: int | None
    mnemonic: str
    v: tuple[int, ...]
    i: int
    sp: int
    delay: int
    sound: int
    note: str = ""


class TraceRecorder:
    """Ring buffer that stores recent CHIP-8 register snapshots."""

    def __init__(self, capacity: int = 256) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._entries: List[TraceEntry | None] = [None] * capacity
        self._index = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def record_step(
        self,
        state,
        opcode: int | None,
        *,
        mnemonic: str = "",
        note: str = "",
    ) -> None:
        """Store a snapshot of ``state`` taken before ``opcode`` executed.

        ``state`` only needs ``pc``, ``v``, ``i``, ``sp``, ``delay_timer`` and
        ``sound_timer`` attributes.
        """

        entry = TraceEntry(
            pc=state.pc & 0xFFFF,
            opcode=None if opcode is None else opcode & 0xFFFF,
            mnemonic=mnemonic,
            v=tuple(value & 0xFF for value in state.v),
            i=state.i & 0xFFFF,
            sp=state.sp & 0xFF,
            delay=state.delay_timer & 0xFF,
            sound=state.sound_timer & 0xFF,
            note=note,
        )
        self._append(entry)

    def entries(self, limit: int | None = None) -> Iterable[TraceEntry]:
        count = self._size if limit is None else min(self._size, max(limit, 0))
        for offset in range(count):
            index = (self._index - count + offset) % self._capacity
            entry = self._entries[index]
            if entry is not None:
                yield entry

    def last_entry(self) -> TraceEntry | None:
        if self._size == 0:
            return None
        index = (self._index - 1) % self._capacity
        return self._entries[index]

    def clear(self) -> None:
        self._entries = [None] * self._capacity
        self._index = 0
        self._size = 0

    def format_entries(self, limit: int | None = None) -> Sequence[str]:
        lines: list[str] = []
        for entry in self.entries(limit):
            opcode = "----" if entry.opcode is None else f"{entry.opcode:04X}"
            mnemonic = entry.mnemonic or "?"
            registers = " ".join(f"{value:02X}" for value in entry.v)
            note = entry.note or "-"
            line = (
                f"pc={entry.pc:04X} opcode={opcode} {mnemonic:<16} "
                f"V=[{registers}] I={entry.i:04X} SP={entry.sp:02X} "
                f"DT={entry.delay:02X} ST={entry.sound:02X} note={note}"
            )
            lines.append(line)
        return lines

    def dump(self, category: str, limit: int | None = None) -> None:
        for line in self.format_entries(limit):
            debug_log(category, line)

    def _append(self, entry: TraceEntry) -> None:
        self._entries[self._index] = entry
        self._index = (self._index + 1) % self._capacity
        if self._size < self._capacity:
            self._size += 1
