"""Wear/recovery cellular automaton for trampled surfaces."""

import math
import numpy as np
from typing import Iterable, Tuple

from .grid import Grid


class WearGrid:
    """
    Surface health in [0, 1]: 0 = fully worn, 1 = pristine.

    Traffic wears cells down; every cell recovers linearly toward 1.
    Off-grid reads return 1 (treated as pristine).
    """

    def __init__(self, width: int, height: int,
                 recovery_rate: float = 0.01, durability: float = 0.1):
        self.width = width
        self.height = height
        self.recovery_rate = recovery_rate
        self.durability = durability
        self.grid = Grid(width, height, fill=1.0, default=1.0)

    @property
    def data(self) -> np.ndarray:
        return self.grid.cells

    def set_params(self, recovery_rate: float, durability: float) -> None:
        self.recovery_rate = recovery_rate
        self.durability = durability

    def get(self, x: float, y: float) -> float:
        return self.grid.get(x, y)

    def get_interpolated(self, x: float, y: float) -> float:
        return self.grid.get_interpolated(x, y)

    def wear(self, x: float, y: float, amount: float = 1.0) -> None:
        """Reduce health at a cell by ``amount / durability``."""
        x = math.floor(x)
        y = math.floor(y)
        if not self.grid.in_bounds(x, y):
            return
        current = float(self.grid.cells[y, x])
        self.grid.cells[y, x] = max(0.0, current - amount / self.durability)

    def wear_radius(self, cx: float, cy: float, radius: float,
                    amount: float = 1.0, falloff: str = 'gaussian') -> None:
        """Apply wear over a disk with the given falloff profile."""
        for x, y, weight in self.grid.iter_disk(cx, cy, radius, falloff):
            self.wear(x, y, amount * weight)

    def paint(self, cells: Iterable[Tuple[int, int]], value: float) -> None:
        """Set a fixed health value on specific cells (e.g. sidewalks)."""
        value = min(max(value, 0.0), 1.0)
        for x, y in cells:
            self.grid.set(x, y, value)

    def update(self, dt: float) -> None:
        """Recover every worn cell by recovery_rate * dt, capped at 1."""
        cells = self.grid.cells
        worn = cells < 1.0
        cells[worn] = np.minimum(1.0, cells[worn] + self.recovery_rate * dt)

    def reset(self) -> None:
        self.grid.fill(1.0)

    def get_path_cost(self, x: float, y: float,
                      shortcut_tendency: float = 0.5) -> float:
        """
        Traversal cost for the pathfinder.

        Worn cells are cheaper (1 on bare dirt, 11 on pristine grass), so
        traffic reinforces itself; ``shortcut_tendency`` in [0, 1] discounts
        every cell, making off-path shortcuts more attractive.
        """
        health = self.get(x, y)
        base_cost = 1 + health * 10
        return base_cost * (1 - shortcut_tendency * 0.8)

    def get_average_health(self) -> float:
        return self.grid.average()

    def get_worn_percentage(self, threshold: float = 0.5) -> float:
        """Fraction of cells with health below ``threshold``."""
        return float(np.count_nonzero(self.grid.cells < threshold)) / self.grid.cells.size
