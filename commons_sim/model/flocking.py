"""Boids flocking model (separation, alignment, cohesion)."""

from dataclasses import dataclass, field, fields
from typing import List, Optional, Sequence
import numpy as np


@dataclass
class BoidParams:
    separation_weight: float = 1.5
    alignment_weight: float = 1.0
    cohesion_weight: float = 1.0
    separation_radius: float = 2.0
    perception_radius: float = 5.0
    max_speed: float = 4.0
    max_force: float = 0.3
    boundary_size: float = 30.0
    boundary_force: float = 0.5


@dataclass
class Boid:
    """Single flocking agent. Dead boids stay in the list until compact()."""
    position: np.ndarray
    velocity: np.ndarray
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))
    alive: bool = True


def _limit(vector: np.ndarray, max_length: float) -> np.ndarray:
    length = np.linalg.norm(vector)
    if length > max_length:
        return vector * (max_length / length)
    return vector


def _with_length(vector: np.ndarray, length: float) -> np.ndarray:
    """Rescale to ``length``; a zero vector stays zero."""
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector * (length / norm)


class FlockingModel:
    """
    Pairwise O(n^2) boids simulation in 3D.

    Steering for every live boid is computed from the same snapshot of
    positions and velocities before any boid is integrated.
    """

    def __init__(self, params: Optional[BoidParams] = None,
                 rng: Optional[np.random.Generator] = None):
        self.params = params if params is not None else BoidParams()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.boids: List[Boid] = []

    def set_params(self, **changes) -> None:
        """Update named parameters in place; unknown names raise ValueError."""
        known = {f.name for f in fields(BoidParams)}
        for name, value in changes.items():
            if name not in known:
                raise ValueError(f"Unknown boid parameter: {name}")
            setattr(self.params, name, value)

    def spawn(self, count: int, bounds_min: Sequence[float],
              bounds_max: Sequence[float]) -> List[Boid]:
        """Add ``count`` boids uniformly inside an axis-aligned box."""
        low = np.asarray(bounds_min, dtype=np.float64)
        high = np.asarray(bounds_max, dtype=np.float64)
        spawned = []
        for _ in range(max(0, count)):
            position = self.rng.uniform(low, high)
            velocity = (self.rng.random(3) - 0.5) * 2 * (self.params.max_speed * 0.5)
            boid = Boid(position=position, velocity=velocity)
            self.boids.append(boid)
            spawned.append(boid)
        return spawned

    def remove(self, count: int) -> int:
        """Mark up to ``count`` random live boids dead; return how many."""
        alive = self.alive_boids()
        to_remove = min(count, len(alive))
        if to_remove <= 0:
            return 0
        for idx in self.rng.choice(len(alive), size=to_remove, replace=False):
            alive[idx].alive = False
        return to_remove

    def compact(self) -> None:
        """Drop dead boids from the list."""
        self.boids = [b for b in self.boids if b.alive]

    def alive_boids(self) -> List[Boid]:
        return [b for b in self.boids if b.alive]

    def update(self, dt: float) -> None:
        p = self.params
        alive = self.alive_boids()
        if not alive:
            return

        positions = np.array([b.position for b in alive], dtype=np.float64)
        velocities = np.array([b.velocity for b in alive], dtype=np.float64)

        # Phase 1: steering from the current snapshot
        for i, boid in enumerate(alive):
            offsets = positions[i] - positions
            distances = np.linalg.norm(offsets, axis=1)
            # d > 0 excludes self and exact overlaps
            near = distances > 0

            separation = self._separation(offsets, distances,
                                          near & (distances < p.separation_radius),
                                          velocities[i])
            perceived = near & (distances < p.perception_radius)
            alignment = self._alignment(velocities, perceived, velocities[i])
            cohesion = self._cohesion(positions, perceived, positions[i], velocities[i])
            boundary = self._boundary(positions[i])

            boid.acceleration = (separation * p.separation_weight
                                 + alignment * p.alignment_weight
                                 + cohesion * p.cohesion_weight
                                 + boundary)

        # Phase 2: integrate
        for boid in alive:
            boid.velocity = _limit(boid.velocity + boid.acceleration * dt, p.max_speed)
            boid.position = boid.position + boid.velocity * dt

    def _steer(self, desired: np.ndarray, velocity: np.ndarray) -> np.ndarray:
        steer = _with_length(desired, self.params.max_speed) - velocity
        return _limit(steer, self.params.max_force)

    def _separation(self, offsets, distances, mask, velocity) -> np.ndarray:
        count = np.count_nonzero(mask)
        if count == 0:
            return np.zeros(3)
        d = distances[mask][:, None]
        # Unit vector away from each neighbour, weighted by 1/d
        repulsion = (offsets[mask] / d / d).sum(axis=0) / count
        return self._steer(repulsion, velocity)

    def _alignment(self, velocities, mask, velocity) -> np.ndarray:
        if not mask.any():
            return np.zeros(3)
        return self._steer(velocities[mask].mean(axis=0), velocity)

    def _cohesion(self, positions, mask, position, velocity) -> np.ndarray:
        if not mask.any():
            return np.zeros(3)
        centroid = positions[mask].mean(axis=0)
        return self._steer(centroid - position, velocity)

    def _boundary(self, position: np.ndarray) -> np.ndarray:
        """Return force proportional to how far each axis exceeds the box."""
        size = self.params.boundary_size
        excursion = np.maximum(np.abs(position) - size, 0.0)
        return -np.sign(position) * excursion * self.params.boundary_force

    def get_count(self) -> int:
        return sum(1 for b in self.boids if b.alive)

    def get_positions(self) -> np.ndarray:
        """(n, 3) array of live boid positions."""
        alive = self.alive_boids()
        if not alive:
            return np.zeros((0, 3))
        return np.array([b.position for b in alive])

    def get_velocities(self) -> np.ndarray:
        alive = self.alive_boids()
        if not alive:
            return np.zeros((0, 3))
        return np.array([b.velocity for b in alive])

    def reset(self) -> None:
        self.boids = []
