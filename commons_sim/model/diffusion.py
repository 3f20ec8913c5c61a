"""Diffusion-advection-absorption solver for Commons simulations."""

import logging
import numpy as np
from scipy.ndimage import convolve

from .grid import Grid

logger = logging.getLogger(__name__)

# Explicit 4-neighbour scheme is stable only while D * dt stays below this
STABILITY_LIMIT = 0.25


class DiffusionGrid:
    """
    Concentration field solving dc/dt = D * lap(c) - alpha * c - advection.

    Edge cells treat missing neighbours as equal to themselves (reflecting
    boundary). Each step is computed from the primary buffer into a scratch
    buffer, clamped to [0, 1], and copied back, so the result never depends
    on cell visiting order.

    Stability of the explicit scheme is left to the caller: with
    ``D * dt >= STABILITY_LIMIT`` the field oscillates and only the clamp
    keeps it inside [0, 1].
    """

    # Discrete Laplacian: cL + cR + cT + cB - 4c
    LAPLACIAN_KERNEL = np.array([
        [0, 1, 0],
        [1, -4, 1],
        [0, 1, 0]
    ], dtype=np.float32)

    def __init__(self, width: int, height: int,
                 d: float = 0.1, absorption: float = 0.01):
        self.width = width
        self.height = height
        self.d = d
        self.absorption = absorption

        self.grid = Grid(width, height, fill=0.0, default=0.0)
        self.buffer = Grid(width, height, fill=0.0, default=0.0)

    @property
    def data(self) -> np.ndarray:
        return self.grid.cells

    def set_params(self, d: float, absorption: float) -> None:
        self.d = d
        self.absorption = absorption

    def get(self, x: float, y: float) -> float:
        return self.grid.get(x, y)

    def get_interpolated(self, x: float, y: float) -> float:
        return self.grid.get_interpolated(x, y)

    def emit(self, x: float, y: float, amount: float) -> None:
        """Add ``amount`` at a cell, saturating at 1."""
        current = self.grid.get(x, y)
        self.grid.set(x, y, min(1.0, current + amount))

    def emit_radius(self, cx: float, cy: float, radius: float, amount: float) -> None:
        """Add emission over a disk with gaussian falloff."""
        for x, y, weight in self.grid.iter_disk(cx, cy, radius, 'gaussian'):
            self.emit(x, y, amount * weight)

    def stability_number(self, dt: float) -> float:
        return self.d * dt

    def is_stable(self, dt: float) -> bool:
        return self.stability_number(dt) < STABILITY_LIMIT

    def update(self, dt: float, wind_x: float = 0.0, wind_y: float = 0.0) -> None:
        """Advance the field by ``dt`` under a uniform wind."""
        if not self.is_stable(dt):
            logger.debug("Diffusion step above stability limit: D*dt=%.3f",
                         self.stability_number(dt))

        c = self.grid.cells

        # mode='nearest' replicates edge cells, i.e. reflecting boundary
        laplacian = convolve(c, self.LAPLACIAN_KERNEL, mode='nearest')

        padded = np.pad(c, 1, mode='edge')
        c_left = padded[1:-1, :-2]
        c_right = padded[1:-1, 2:]
        c_top = padded[:-2, 1:-1]
        c_bottom = padded[2:, 1:-1]

        # First-order upwind differencing on the sign of each wind component
        if wind_x > 0:
            advection_x = wind_x * (c - c_left)
        else:
            advection_x = wind_x * (c_right - c)

        if wind_y > 0:
            advection_y = wind_y * (c - c_top)
        else:
            advection_y = wind_y * (c_bottom - c)

        dcdt = self.d * laplacian - self.absorption * c - (advection_x + advection_y)
        np.clip(c + dcdt * dt, 0.0, 1.0, out=self.buffer.cells)

        self.grid.copy_from(self.buffer)

    def reset(self) -> None:
        self.grid.fill(0.0)
        self.buffer.fill(0.0)

    def get_total(self) -> float:
        return self.grid.total()

    def get_average(self) -> float:
        return self.grid.average()

    def get_max(self) -> float:
        return max(0.0, self.grid.maximum())
