"""Turn the display grid into a scaled RGB frame."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .display import Display
from .palette import MONOCHROME, RGBColor, validate_palette


@dataclass
class RenderResult:
    """RGB24 frame produced by :class:`Renderer`."""

    width: int
    height: int
    pixels: bytes

    def get_pixel(self, x: int, y: int) -> RGBColor:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} frame")
        offset = (y * self.width + x) * 3
        return (self.pixels[offset], self.pixels[offset + 1], self.pixels[offset + 2])

    def to_surface(self):
        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required to build a surface") from exc
        return pygame.image.frombuffer(self.pixels, (self.width, self.height), "RGB")


class Renderer:
    """Rasterises a :class:`Display` with a two-colour palette."""

    def __init__(self, palette: Sequence[RGBColor] = MONOCHROME) -> None:
        self._background, self._foreground = validate_palette(palette)

    @property
    def palette(self) -> tuple[RGBColor, RGBColor]:
        return self._background, self._foreground

    def render(self, display: Display, *, scale: int = 1) -> RenderResult:
        if scale <= 0:
            raise ValueError("scale must be positive")

        width = display.width * scale
        height = display.height * scale
        background = bytes(self._background)
        foreground = bytes(self._foreground)

        frame = bytearray()
        for row in display.rows():
            line = bytearray()
            for lit in row:
                line += (foreground if lit else background) * scale
            frame += bytes(line) * scale

        return RenderResult(width=width, height=height, pixels=bytes(frame))
