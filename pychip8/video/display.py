"""Monochrome 64x32 display surface."""

from __future__ import annotations

from typing import Iterator, List, Tuple

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32


class Display:
    """Grid of lit/unlit cells addressed toroidally.

    Cells are stored row-major with the origin at the top-left corner. The
    only mutators are :meth:`toggle`, :meth:`clear` and :meth:`fill`.
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("display dimensions must be positive")
        self.width = width
        self.height = height
        self._pixels: List[bool] = [False] * (width * height)

    def _index(self, x: int, y: int) -> int:
        return (y % self.height) * self.width + (x % self.width)

    def toggle(self, x: int, y: int) -> bool:
        """Flip the cell at ``(x, y)`` and return whether it was lit before."""

        index = self._index(x, y)
        previous = self._pixels[index]
        self._pixels[index] = not previous
        return previous

    def is_lit(self, x: int, y: int) -> bool:
        return self._pixels[self._index(x, y)]

    def clear(self) -> None:
        self._pixels = [False] * (self.width * self.height)

    def fill(self) -> None:
        self._pixels = [True] * (self.width * self.height)

    def rows(self) -> Iterator[Tuple[bool, ...]]:
        for y in range(self.height):
            start = y * self.width
            yield tuple(self._pixels[start : start + self.width])

    def lit_cells(self) -> set[Tuple[int, int]]:
        return {
            (index % self.width, index // self.width)
            for index, lit in enumerate(self._pixels)
            if lit
        }

    def snapshot(self) -> Tuple[bool, ...]:
        return tuple(self._pixels)

    def lit_count(self) -> int:
        return sum(self._pixels)

    def format_rows(self, lit: str = "#", unlit: str = ".") -> List[str]:
        return ["".join(lit if cell else unlit for cell in row) for row in self.rows()]
