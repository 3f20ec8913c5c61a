"""Overfishing: fishing boats harvest a schooling fish population."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List
import numpy as np

from ..model.flocking import BoidParams, FlockingModel
from ..model.logistic import logistic_growth_step
from ..model.state import RenderState
from .base import ParamDescriptor, Scenario, ScenarioMetadata

logger = logging.getLogger(__name__)

# Fish spawn volume (x, y, z); y is depth below the surface
SPAWN_MIN = (-20.0, -8.0, -20.0)
SPAWN_MAX = (20.0, -2.0, 20.0)
MAX_SPAWN_PER_STEP = 10
BOAT_BOUND = 25.0
BOAT_CRUISE_SPEED = 3.0
BOAT_MAX_SPEED = 4.0


@dataclass
class Boat:
    id: int
    position: np.ndarray  # (x, z)
    velocity: np.ndarray
    catch_count: int = 0
    catch_budget: float = 0.0  # Fish the boat may still land


class OverfishingScenario(Scenario):
    """
    A fish school (boids) regrows logistically toward its carrying capacity
    while boats chase the nearest fish and net whatever swims within reach.
    """

    metadata = ScenarioMetadata(
        id='overfishing',
        title='Overfishing',
        subtitle='Fleets race to catch a shared stock',
        description=('Every boat profits from each fish it lands, but the stock '
                     'regrows only in proportion to what is left in the sea.'),
        category='living',
        resource_metric='fish_population',
        metric_labels={'fish_population': 'Fish', 'catch_rate': 'Catch/s',
                       'total_catch': 'Total catch'},
    )

    PARAMS = [
        ParamDescriptor('fish_capacity', 'Fish Carrying Capacity', 'number',
                        1000, min=200, max=3000, step=100, folder='Resource'),
        ParamDescriptor('fish_reproduction_rate', 'Reproduction Rate', 'number',
                        0.5, min=0.1, max=2, step=0.1, folder='Resource'),
        ParamDescriptor('fish_speed', 'Fish Speed', 'number',
                        4.0, min=1, max=10, step=0.5, folder='Resource'),
        ParamDescriptor('boat_count', 'Number of Boats', 'number',
                        5, min=1, max=20, step=1, folder='Agents'),
        ParamDescriptor('catch_rate', 'Catch Rate (fish/sec)', 'number',
                        5, min=1, max=20, step=1, folder='Agents'),
        ParamDescriptor('catch_radius', 'Catch Radius', 'number',
                        3.0, min=1, max=8, step=0.5, folder='Agents'),
    ]

    def setup(self) -> None:
        self.school = FlockingModel(
            BoidParams(
                max_speed=self.params['fish_speed'],
                boundary_size=25.0,
                separation_radius=1.5,
                perception_radius=4.0
            ),
            rng=self.rng
        )
        self.boats: List[Boat] = []
        self.next_boat_id = 0
        self.catch_rate = 0.0
        self.step_catch = 0
        self.total_catch = 0
        self._collapsed = False
        self._stock_school()
        for _ in range(int(self.params['boat_count'])):
            self._spawn_boat()

    def _stock_school(self) -> None:
        self.school.spawn(math.floor(self.params['fish_capacity'] * 0.8),
                          SPAWN_MIN, SPAWN_MAX)

    def _spawn_boat(self) -> Boat:
        angle = self.rng.uniform(0, 2 * math.pi)
        radius = 10 + self.rng.uniform(0, 15)
        boat = Boat(
            id=self.next_boat_id,
            position=np.array([math.cos(angle) * radius, math.sin(angle) * radius]),
            velocity=(self.rng.random(2) - 0.5) * 2
        )
        self.next_boat_id += 1
        self.boats.append(boat)
        return boat

    def update(self, dt: float, elapsed: float) -> None:
        self.school.set_params(max_speed=self.params['fish_speed'])
        self.school.update(dt)

        # Logistic growth of the head count decides how many fish to add
        count = self.school.get_count()
        target = float(logistic_growth_step(count, self.params['fish_reproduction_rate'],
                                            self.params['fish_capacity'], dt))
        to_spawn = math.floor(target - count)
        if to_spawn > 0:
            self.school.spawn(min(to_spawn, MAX_SPAWN_PER_STEP), SPAWN_MIN, SPAWN_MAX)

        self.step_catch = 0
        for boat in self.boats:
            self._update_boat(boat, dt)
        if dt > 0:
            # Fleet landings per second, smoothed over about one second
            self.catch_rate += (self.step_catch / dt - self.catch_rate) * min(1.0, dt)

        target_boats = int(self.params['boat_count'])
        while len(self.boats) < target_boats:
            self._spawn_boat()
        del self.boats[target_boats:]

        # Caught fish were tombstoned during the boat pass
        self.school.compact()
        self._check_collapse()

    def _check_collapse(self) -> None:
        share = self.school.get_count() / self.params['fish_capacity']
        if not self._collapsed and share < 0.1:
            self._collapsed = True
            logger.info("Fishery collapsed: %d fish left after %d caught",
                        self.school.get_count(), self.total_catch)
        elif self._collapsed and share > 0.5:
            self._collapsed = False

    def _update_boat(self, boat: Boat, dt: float) -> None:
        fish = self.school.alive_boids()
        # Surface-projected (x, z) positions of the school
        fish_xz = (np.array([[f.position[0], f.position[2]] for f in fish])
                   if fish else np.zeros((0, 2)))

        if len(fish):
            distances = np.linalg.norm(fish_xz - boat.position, axis=1)
            nearest = fish_xz[int(np.argmin(distances))]
            heading = nearest - boat.position
            norm = np.linalg.norm(heading)
            if norm > 0:
                desired = heading / norm * BOAT_CRUISE_SPEED
                boat.velocity = boat.velocity + (desired - boat.velocity) * min(1.0, dt * 2)

        boat.velocity = boat.velocity + (self.rng.random(2) - 0.5) * dt * 2
        speed = np.linalg.norm(boat.velocity)
        if speed > BOAT_MAX_SPEED:
            boat.velocity = boat.velocity * (BOAT_MAX_SPEED / speed)

        boat.position = boat.position + boat.velocity * dt

        # Turn back at the edge of the fishing ground
        out = np.abs(boat.position) > BOAT_BOUND
        boat.velocity = np.where(out, -np.sign(boat.position) * 2.0, boat.velocity)

        # Quota accrues fractionally; at most one step or one fish is carried over
        quota = self.params['catch_rate'] * dt
        boat.catch_budget = min(boat.catch_budget + quota, max(quota, 1.0))

        caught = 0
        for f, xz in zip(fish, fish_xz):
            if boat.catch_budget < 1:
                break
            # Distance from the boat (at surface height) to the fish's surface projection
            if np.linalg.norm(xz - boat.position) < self.params['catch_radius']:
                f.alive = False
                caught += 1
                boat.catch_budget -= 1

        boat.catch_count += caught
        self.total_catch += caught
        self.step_catch += caught

    def get_metrics(self) -> Dict[str, float]:
        return {
            'fish_population': self.school.get_count(),
            'catch_rate': self.catch_rate,
            'total_catch': self.total_catch,
        }

    def get_render_state(self) -> RenderState:
        positions = self.school.get_positions()
        points = positions[:, [0, 2]] if len(positions) else np.zeros((0, 2))
        return RenderState(
            field=None,
            field_label='Fish',
            points=points,
            extent=(-BOAT_BOUND, BOAT_BOUND, -BOAT_BOUND, BOAT_BOUND)
        )

    def reset(self) -> None:
        logger.info("Resetting %s", self.metadata.id)
        self.school.reset()
        self._stock_school()
        for boat in self.boats:
            boat.catch_count = 0
            boat.catch_budget = 0.0
        self.total_catch = 0
        self.catch_rate = 0.0
        self._collapsed = False

    def dispose(self) -> None:
        self.school.reset()
        self.boats = []
