"""Logistic growth model: dN/dt = rN(1 - N/K)."""

import math
import numpy as np

from .grid import Grid

# Returned by equilibrium_population when no positive equilibrium exists
COLLAPSE = -1.0


def logistic_growth_rate(n, r: float, k: float):
    """Rate of change dN/dt for population ``n`` (scalar or array)."""
    return r * n * (1 - n / k)


def logistic_growth_step(n, r: float, k: float, dt: float):
    """One explicit Euler step, clamped to [0, k]."""
    return np.clip(n + logistic_growth_rate(n, r, k) * dt, 0, k)


def equilibrium_population(r: float, k: float, consumption_rate: float) -> float:
    """
    Stable population where growth balances a constant harvest C.

    Solves rN(1 - N/K) = C, i.e. N = K/2 +/- sqrt((K/2)^2 - CK/r), and
    returns the larger root. Returns COLLAPSE when C exceeds the maximum
    sustainable yield rK/4.
    """
    max_yield = r * k / 4
    if consumption_rate > max_yield:
        return COLLAPSE

    discriminant = (k / 2) ** 2 - consumption_rate * k / r
    if discriminant < 0:
        return COLLAPSE

    return k / 2 + math.sqrt(discriminant)


class LogisticGrid:
    """
    Grid of independent logistic populations.

    Each cell grows toward carrying capacity ``k`` at rate ``r``; resource
    leaves a cell only through ``consume``.
    """

    def __init__(self, width: int, height: int, r: float, k: float):
        self.width = width
        self.height = height
        self.r = r
        self.k = k
        # Starts at carrying capacity
        self.grid = Grid(width, height, fill=k, default=0.0)

    @property
    def data(self) -> np.ndarray:
        return self.grid.cells

    def set_params(self, r: float, k: float) -> None:
        self.r = r
        self.k = k
        # A lowered capacity applies to the current stock immediately
        np.clip(self.grid.cells, 0, k, out=self.grid.cells)

    def get(self, x: float, y: float) -> float:
        return self.grid.get(x, y)

    def get_interpolated(self, x: float, y: float) -> float:
        return self.grid.get_interpolated(x, y)

    def set(self, x: float, y: float, value: float) -> None:
        self.grid.set(x, y, min(max(value, 0.0), self.k))

    def consume(self, x: float, y: float, amount: float) -> float:
        """Remove up to ``amount`` from a cell; return what was removed."""
        x = math.floor(x)
        y = math.floor(y)
        if amount <= 0 or not self.grid.in_bounds(x, y):
            return 0.0

        current = float(self.grid.cells[y, x])
        consumed = min(current, amount)
        self.grid.cells[y, x] = current - consumed
        return consumed

    def update(self, dt: float) -> None:
        cells = self.grid.cells
        cells[:] = logistic_growth_step(cells, self.r, self.k, dt)

    def reset(self) -> None:
        self.grid.fill(self.k)

    def get_total(self) -> float:
        return self.grid.total()

    def get_average(self) -> float:
        return self.grid.average()
