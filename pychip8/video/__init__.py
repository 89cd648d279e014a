"""Display surface and rendering helpers for the CHIP-8 emulator."""

from __future__ import annotations

from .display import DISPLAY_HEIGHT, DISPLAY_WIDTH, Display
from .font import FONT_DATA, FONT_HEIGHT, FONT_START, FONT_WIDTH, GLYPH_BYTES, glyph_address
from .palette import MONOCHROME, PALETTES, palette_by_name, validate_palette
from .renderer import RenderResult, Renderer

__all__ = [
    "Display",
    "DISPLAY_WIDTH",
    "DISPLAY_HEIGHT",
    "Renderer",
    "RenderResult",
    "MONOCHROME",
    "PALETTES",
    "palette_by_name",
    "validate_palette",
    "FONT_DATA",
    "FONT_START",
    "FONT_WIDTH",
    "FONT_HEIGHT",
    "GLYPH_BYTES",
    "glyph_address",
]
