"""Dense scalar grid shared by the spatial models."""

import math
import numpy as np
from typing import Callable, Iterator, Tuple


# Falloff profiles for radius writes: (d2, r2) -> weight in [0, 1]
def gaussian_falloff(d2: float, r2: float) -> float:
    return math.exp(-d2 / (r2 * 0.5))


def quadratic_falloff(d2: float, r2: float) -> float:
    return 1.0 - d2 / r2


FALLOFFS = {
    'gaussian': gaussian_falloff,
    'quadratic': quadratic_falloff,
}


class Grid:
    """
    2D scalar field of ``width x height`` float32 cells.

    Coordinate convention: (x, y) for API, [y, x] for array indexing.
    Float coordinates are floored to the containing cell. Reads outside
    the grid return ``default``; writes outside the grid are ignored.
    """

    def __init__(self, width: int, height: int,
                 fill: float = 0.0, default: float = 0.0):
        self.width = width
        self.height = height
        self.default = default
        self.cells = np.full((height, width), fill, dtype=np.float32)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: float, y: float) -> float:
        """Nearest-cell read."""
        x = math.floor(x)
        y = math.floor(y)
        if not self.in_bounds(x, y):
            return self.default
        return float(self.cells[y, x])

    def set(self, x: float, y: float, value: float) -> None:
        x = math.floor(x)
        y = math.floor(y)
        if self.in_bounds(x, y):
            self.cells[y, x] = value

    def get_interpolated(self, x: float, y: float) -> float:
        """
        Bilinear sample at a continuous position.

        The upper neighbours are clamped to the last row/column so samples
        on the far edge blend with the edge cell itself.
        """
        x0 = math.floor(x)
        y0 = math.floor(y)
        x1 = min(x0 + 1, self.width - 1)
        y1 = min(y0 + 1, self.height - 1)
        fx = x - x0
        fy = y - y0

        v00 = self.get(x0, y0)
        v10 = self.get(x1, y0)
        v01 = self.get(x0, y1)
        v11 = self.get(x1, y1)

        v0 = v00 * (1 - fx) + v10 * fx
        v1 = v01 * (1 - fx) + v11 * fx
        return v0 * (1 - fy) + v1 * fy

    def iter_disk(self, cx: float, cy: float, radius: float,
                  falloff: str = 'gaussian') -> Iterator[Tuple[int, int, float]]:
        """
        Yield (x, y, weight) for in-bounds cells within ``radius`` of the
        cell containing (cx, cy).
        """
        if radius <= 0:
            x, y = math.floor(cx), math.floor(cy)
            if self.in_bounds(x, y):
                yield x, y, 1.0
            return

        profile: Callable[[float, float], float] = FALLOFFS[falloff]
        r = math.ceil(radius)
        r2 = radius * radius
        bx = math.floor(cx)
        by = math.floor(cy)
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                d2 = dx * dx + dy * dy
                if d2 > r2:
                    continue
                x, y = bx + dx, by + dy
                if self.in_bounds(x, y):
                    yield x, y, profile(d2, r2)

    def fill(self, value: float) -> None:
        self.cells.fill(value)

    def copy_from(self, other: "Grid") -> None:
        """Copy another grid's cells into this one (shapes must match)."""
        np.copyto(self.cells, other.cells)

    def total(self) -> float:
        return float(self.cells.sum(dtype=np.float64))

    def average(self) -> float:
        return self.total() / self.cells.size

    def maximum(self) -> float:
        return float(self.cells.max())

    def snapshot(self) -> np.ndarray:
        """Return a copy of the cell array."""
        return self.cells.copy()
