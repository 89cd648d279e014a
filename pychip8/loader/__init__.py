"""Loaders for CHIP-8 program images."""

from __future__ import annotations

from .rom import RomFormatError, RomImage, load_rom, load_rom_from_path

__all__ = [
    "RomImage",
    "RomFormatError",
    "load_rom",
    "load_rom_from_path",
]
