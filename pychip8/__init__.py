"""CHIP-8 virtual machine with a pygame front end.

The core lives in :mod:`pychip8.cpu` (state, decoder, executor) and
:mod:`pychip8.system` (scheduler and machine assembly). Display, keypad,
audio, loader and UI packages provide the host side.
"""

from __future__ import annotations

from . import audio, bus, cpu, io, loader, system, ui, utils, video

__all__: list[str] = [
    "cpu",
    "bus",
    "video",
    "audio",
    "io",
    "loader",
    "system",
    "ui",
    "utils",
]
