"""Raw CHIP-8 ROM image loader."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from pychip8.bus import MAX_PROGRAM_SIZE, PROGRAM_START
from pychip8.cpu import ProgramTooLargeError
from pychip8.utils import debug_enabled, debug_log


class RomFormatError(RuntimeError):
    """Raised when a ROM image cannot be used as a program."""


@dataclass
class RomImage:
    """Program bytes plus the name they were loaded under."""

    data: bytes
    name: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end_address(self) -> int:
        return PROGRAM_START + len(self.data) - 1


def load_rom(stream: BinaryIO, name: str = "") -> RomImage:
    """Read a raw program image from ``stream``.

    At most one byte more than the program area is read so that oversized
    images are rejected without slurping arbitrarily large files.
    """

    data = stream.read(MAX_PROGRAM_SIZE + 1)
    if not data:
        raise RomFormatError(f"ROM image {name or '<stream>'} is empty")
    if len(data) > MAX_PROGRAM_SIZE:
        raise ProgramTooLargeError(len(data) + len(stream.read()))
    if len(data) % 2 and debug_enabled("loader"):
        debug_log("loader", "odd ROM length %d for %s", len(data), name or "<stream>")
    return RomImage(bytes(data), name)


def load_rom_from_path(path: Path) -> RomImage:
    """Load a ROM image from the filesystem."""

    with path.open("rb") as handle:
        return load_rom(handle, path.stem)
