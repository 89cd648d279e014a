"""Input helpers for the CHIP-8 emulator."""

from .keypad import KEY_COUNT, KEY_LAYOUT, Keypad, key_index_for

__all__ = [
    "Keypad",
    "KEY_COUNT",
    "KEY_LAYOUT",
    "key_index_for",
]
