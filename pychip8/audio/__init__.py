"""Audio output for the CHIP-8 sound timer."""

from .beeper import DEFAULT_FREQUENCY, SquareWaveBeeper, build_square_wave

__all__ = [
    "SquareWaveBeeper",
    "build_square_wave",
    "DEFAULT_FREQUENCY",
]
