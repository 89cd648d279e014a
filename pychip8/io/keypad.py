"""CHIP-8 hexadecimal keypad handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Mapping

from pychip8.utils import debug_enabled, debug_log

KEY_COUNT = 16


# COSMAC VIP layout    host keyboard
#   1 2 3 C              1 2 3 4
#   4 5 6 D              q w e r
#   7 8 9 E              a s d f
#   A 0 B F              z x c v
KEY_LAYOUT: Mapping[str, int] = {
    "1": 0x1,
    "2": 0x2,
    "3": 0x3,
    "4": 0xC,
    "q": 0x4,
    "w": 0x5,
    "e": 0x6,
    "r": 0xD,
    "a": 0x7,
    "s": 0x8,
    "d": 0x9,
    "f": 0xE,
    "z": 0xA,
    "x": 0x0,
    "c": 0xB,
    "v": 0xF,
}


ALIAS_TABLE: Mapping[str, str] = {
    "[1]": "1",
    "[2]": "2",
    "[3]": "3",
    "[4]": "4",
}


def key_index_for(name: str) -> int | None:
    """Return the keypad index bound to the host key ``name``."""

    lowered = name.lower()
    lowered = ALIAS_TABLE.get(lowered, lowered)
    return KEY_LAYOUT.get(lowered)


@dataclass
class Keypad:
    """Sixteen key-down flags plus the pending key-capture slot."""

    _down: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    _capture_register: int | None = None
    _captured_key: int | None = None
    _listeners: list[Callable[[int, bool], None]] = field(default_factory=list)

    def press(self, index: int) -> None:
        self._check_index(index)
        if self._down[index]:
            return
        self._down[index] = True
        if debug_enabled("input"):
            debug_log("input", "key_down index=%X", index)
        if self._capture_register is not None and self._captured_key is None:
            self._captured_key = index
            if debug_enabled("input"):
                debug_log("input", "captured key=%X for V%X", index, self._capture_register)
        self._notify_listeners(index, True)

    def release(self, index: int) -> None:
        self._check_index(index)
        if not self._down[index]:
            return
        self._down[index] = False
        if debug_enabled("input"):
            debug_log("input", "key_up index=%X", index)
        self._notify_listeners(index, False)

    def press_named(self, name: str) -> bool:
        index = key_index_for(name)
        if index is None:
            if debug_enabled("input"):
                debug_log("input", "unmapped_press=%s", name)
            return False
        self.press(index)
        return True

    def release_named(self, name: str) -> bool:
        index = key_index_for(name)
        if index is None:
            if debug_enabled("input"):
                debug_log("input", "unmapped_release=%s", name)
            return False
        self.release(index)
        return True

    def is_down(self, index: int) -> bool:
        """Report the key state; only the low nibble of ``index`` is used."""

        return self._down[index & 0x0F]

    # ------------------------------------------------------------------
    # Key capture used by the wait-for-key instruction

    @property
    def capture_register(self) -> int | None:
        return self._capture_register

    def begin_capture(self, register: int) -> None:
        self._capture_register = register & 0x0F
        self._captured_key = None

    def take_captured(self) -> int | None:
        """Return the key captured since :meth:`begin_capture` and end the capture."""

        key = self._captured_key
        if key is None:
            return None
        self._capture_register = None
        self._captured_key = None
        return key

    def cancel_capture(self) -> None:
        self._capture_register = None
        self._captured_key = None

    def reset(self) -> None:
        self._down = [False] * KEY_COUNT
        self.cancel_capture()

    def snapshot(self) -> tuple[bool, ...]:
        return tuple(self._down)

    def add_listener(self, listener: Callable[[int, bool], None]) -> None:
        self._listeners.append(listener)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < KEY_COUNT:
            raise ValueError(f"key index out of range: {index}")

    def _notify_listeners(self, index: int, pressed: bool) -> None:
        for listener in tuple(self._listeners):
            listener(index, pressed)
