"""Desire paths: pedestrians wear shortcuts into a park lawn."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
import numpy as np

from ..model.pathfinding import Pathfinder, straight_path
from ..model.state import RenderState
from ..model.wear import WearGrid
from .base import ParamDescriptor, Scenario, ScenarioMetadata

logger = logging.getLogger(__name__)

GRID_SIZE = 64
SIDEWALK_HALF_WIDTH = 2
SIDEWALK_HEALTH = 0.1  # Sidewalks start pre-worn
ARRIVAL_DISTANCE = 0.5
WEAR_PER_SECOND = 0.5
STRAIGHT_STEPS = 20


@dataclass
class Pedestrian:
    id: int
    position: np.ndarray  # Grid coordinates
    path: Sequence[Tuple[float, float]]
    speed: float
    path_index: int = 0

    @property
    def arrived(self) -> bool:
        return self.path_index >= len(self.path)


class DesirePathsScenario(Scenario):
    """
    Walkers route with A* over a cost field that makes worn ground cheap,
    so every crossing makes the next one along the same line more likely.
    Untrodden grass slowly recovers.
    """

    metadata = ScenarioMetadata(
        id='desire_paths',
        title='Desire Paths',
        subtitle='Shortcuts carved by many feet',
        description=('Each walker saves a few steps by cutting across the lawn; '
                     'together they turn the grass into dirt tracks.'),
        category='non-living',
        resource_metric='grass_health',
        metric_labels={'pedestrians': 'Pedestrians', 'grass_health': 'Grass health (%)',
                       'paths_formed': 'Worn area (%)'},
    )

    PARAMS = [
        ParamDescriptor('grass_durability', 'Grass Durability', 'number',
                        0.1, min=0.01, max=0.5, step=0.01, folder='Resource'),
        ParamDescriptor('recovery_rate', 'Grass Recovery Rate', 'number',
                        0.005, min=0.001, max=0.05, step=0.001, folder='Resource'),
        ParamDescriptor('pedestrian_spawn_rate', 'Pedestrian Spawn Rate', 'number',
                        2.0, min=0.5, max=10, step=0.5, folder='Agents'),
        ParamDescriptor('shortcut_tendency', 'Shortcut Tendency', 'number',
                        0.5, min=0, max=1, step=0.1, folder='Behavior'),
    ]

    def setup(self) -> None:
        self.lawn = WearGrid(GRID_SIZE, GRID_SIZE,
                             self.params['recovery_rate'],
                             self.params['grass_durability'])
        self.pathfinder = Pathfinder(
            GRID_SIZE, GRID_SIZE,
            lambda x, y: self.lawn.get_path_cost(x, y, self.params['shortcut_tendency'])
        )

        half = GRID_SIZE // 2
        # Edge entrances in ring order (left, top, right, bottom) so that
        # index + 2 is the opposite edge
        self.spawn_points = [
            (0, half), (half, 0),
            (GRID_SIZE - 1, half), (half, GRID_SIZE - 1),
        ]
        # Park features off the sidewalks
        self.destinations = [
            (half, half),
            (GRID_SIZE * 0.25, GRID_SIZE * 0.25),
            (GRID_SIZE * 0.75, GRID_SIZE * 0.25),
            (GRID_SIZE * 0.25, GRID_SIZE * 0.75),
            (GRID_SIZE * 0.75, GRID_SIZE * 0.75),
        ]

        self.pedestrians: List[Pedestrian] = []
        self.next_pedestrian_id = 0
        self.total_walked = 0.0
        self.paths_formed = 0.0
        self.routes_searched = 0
        self.routes_failed = 0
        self._lay_sidewalks()

    def _lay_sidewalks(self) -> None:
        """Cross-shaped sidewalk through the middle of the park."""
        mid = self.lawn.width // 2
        cells = []
        for i in range(self.lawn.width):
            for w in range(-SIDEWALK_HALF_WIDTH, SIDEWALK_HALF_WIDTH + 1):
                cells.append((i, mid + w))
                cells.append((mid + w, i))
        self.lawn.paint(cells, SIDEWALK_HEALTH)

    def _choose_route(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        spawn_idx = int(self.rng.integers(0, len(self.spawn_points)))
        spawn = self.spawn_points[spawn_idx]
        if self.rng.random() < self.params['shortcut_tendency']:
            dest = self.destinations[int(self.rng.integers(0, len(self.destinations)))]
        else:
            # Opposite edge, along the sidewalks
            dest = self.spawn_points[(spawn_idx + 2) % len(self.spawn_points)]
        return spawn, dest

    def _spawn_pedestrian(self) -> Pedestrian:
        spawn, dest = self._choose_route()

        if self.rng.random() < self.params['shortcut_tendency'] * 0.3:
            path = straight_path(*spawn, *dest, STRAIGHT_STEPS)
        else:
            path = self.pathfinder.find_path(*spawn, *dest)
            self.routes_searched += 1
            if not path:
                self.routes_failed += 1
                path = straight_path(*spawn, *dest, STRAIGHT_STEPS)

        pedestrian = Pedestrian(
            id=self.next_pedestrian_id,
            position=np.array(spawn, dtype=np.float64),
            path=path,
            speed=8 + self.rng.uniform(0, 4)
        )
        self.next_pedestrian_id += 1
        self.pedestrians.append(pedestrian)
        return pedestrian

    def update(self, dt: float, elapsed: float) -> None:
        self.lawn.set_params(self.params['recovery_rate'], self.params['grass_durability'])

        if self.rng.random() < self.params['pedestrian_spawn_rate'] * dt:
            self._spawn_pedestrian()

        for pedestrian in self.pedestrians:
            if pedestrian.arrived:
                continue
            target = np.asarray(pedestrian.path[pedestrian.path_index], dtype=np.float64)
            delta = target - pedestrian.position
            dist = float(np.linalg.norm(delta))

            if dist < ARRIVAL_DISTANCE:
                pedestrian.path_index += 1
            else:
                move = delta / dist * pedestrian.speed * dt
                pedestrian.position = pedestrian.position + move
                self.lawn.wear(math.floor(pedestrian.position[0]),
                               math.floor(pedestrian.position[1]),
                               dt * WEAR_PER_SECOND)
                self.total_walked += float(np.linalg.norm(move))

        self.pedestrians = [p for p in self.pedestrians if not p.arrived]

        # Recovery after this step's traffic
        self.lawn.update(dt)
        self.paths_formed = self.lawn.get_worn_percentage(0.5) * 100

    def get_metrics(self) -> Dict[str, float]:
        return {
            'pedestrians': len(self.pedestrians),
            'grass_health': self.lawn.get_average_health() * 100,
            'paths_formed': self.paths_formed,
        }

    def get_render_state(self) -> RenderState:
        points = (np.array([p.position for p in self.pedestrians])
                  if self.pedestrians else np.zeros((0, 2)))
        return RenderState(
            field=self.lawn.grid.snapshot(),
            field_range=(0.0, 1.0),
            field_label='Grass health',
            points=points,
            extent=(0.0, float(GRID_SIZE), 0.0, float(GRID_SIZE))
        )

    def reset(self) -> None:
        logger.info("Resetting %s", self.metadata.id)
        self.lawn.reset()
        self._lay_sidewalks()
        self.pedestrians = []
        self.next_pedestrian_id = 0
        self.total_walked = 0.0
        self.paths_formed = 0.0
        self.routes_searched = 0
        self.routes_failed = 0

    def dispose(self) -> None:
        self.pedestrians = []
