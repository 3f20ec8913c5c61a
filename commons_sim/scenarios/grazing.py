"""Grazing commons: shepherds compete for a shared pasture."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List
import numpy as np

from ..model.logistic import LogisticGrid
from ..model.state import RenderState
from .base import ParamDescriptor, Scenario, ScenarioMetadata

logger = logging.getLogger(__name__)

GRID_SIZE = 32
WORLD_SIZE = 50.0  # Pasture spans [-25, 25] on both axes
SHEEP_PER_SHEPHERD = 3
SHEEP_MAX_SPEED = 1.5
PASTURE_BOUND = 22.0
METABOLISM = 5.0  # Energy burned per second
ENERGY_PER_GRASS = 10.0


@dataclass
class Sheep:
    id: int
    shepherd: int
    position: np.ndarray  # (x, z) in world units
    velocity: np.ndarray
    energy: float
    alive: bool = True


class GrazingScenario(Scenario):
    """
    The classic tragedy (Hardin, 1968).

    Grass regrows logistically per cell. Each sheep eats from the cell under
    it, spends energy, and breeds when well fed; greedier shepherds breed
    and add sheep faster, and the pasture collapses under the load.
    """

    metadata = ScenarioMetadata(
        id='grazing',
        title='Grazing Commons',
        subtitle='Shepherds compete for shared pasture',
        description=('Shepherds add sheep to a shared pasture. Each sheep benefits '
                     'its owner but depletes grass for all.'),
        category='living',
        resource_metric='grass_level',
        metric_labels={'grass_level': 'Grass (%)', 'sheep_count': 'Sheep'},
    )

    PARAMS = [
        ParamDescriptor('grass_regrowth_rate', 'Grass Regrowth Rate', 'number',
                        0.5, min=0.1, max=2, step=0.1, folder='Resource'),
        ParamDescriptor('carrying_capacity', 'Carrying Capacity', 'number',
                        100, min=50, max=200, step=10, folder='Resource'),
        ParamDescriptor('consumption_rate', 'Sheep Consumption Rate', 'number',
                        2.0, min=0.5, max=5, step=0.5, folder='Agents'),
        ParamDescriptor('reproduction_threshold', 'Reproduction Energy', 'number',
                        100, min=50, max=200, step=10, folder='Agents'),
        ParamDescriptor('shepherd_count', 'Number of Shepherds', 'number',
                        3, min=1, max=6, step=1, folder='Agents'),
        ParamDescriptor('greediness', 'Greediness (Cooperation <-> Selfish)', 'number',
                        0.5, min=0, max=1, step=0.1, folder='Behavior'),
    ]

    def setup(self) -> None:
        self.grass = LogisticGrid(GRID_SIZE, GRID_SIZE,
                                  self.params['grass_regrowth_rate'],
                                  self.params['carrying_capacity'])
        self.sheep: List[Sheep] = []
        self.next_sheep_id = 0
        self.grass_level = 1.0
        self._collapsed = False
        self._spawn_initial_sheep()

    def _spawn_initial_sheep(self) -> None:
        for shepherd in range(int(self.params['shepherd_count'])):
            for _ in range(SHEEP_PER_SHEPHERD):
                self._spawn_sheep(shepherd)

    def _spawn_sheep(self, shepherd: int) -> Sheep:
        angle = self.rng.uniform(0, 2 * math.pi)
        radius = 5 + self.rng.uniform(0, 15)
        sheep = Sheep(
            id=self.next_sheep_id,
            shepherd=shepherd,
            position=np.array([math.cos(angle) * radius, math.sin(angle) * radius]),
            velocity=(self.rng.random(2) - 0.5) * 2,
            energy=50 + self.rng.uniform(0, 50)
        )
        self.next_sheep_id += 1
        self.sheep.append(sheep)
        return sheep

    def to_cell(self, position: np.ndarray):
        """World (x, z) to pasture cell (gx, gy)."""
        gx = math.floor((position[0] + WORLD_SIZE / 2) / WORLD_SIZE * self.grass.width)
        gy = math.floor((position[1] + WORLD_SIZE / 2) / WORLD_SIZE * self.grass.height)
        return gx, gy

    def update(self, dt: float, elapsed: float) -> None:
        greediness = self.params['greediness']
        consumption_rate = self.params['consumption_rate']
        threshold = self.params['reproduction_threshold']

        # Regrowth before consumption
        self.grass.set_params(self.params['grass_regrowth_rate'],
                              self.params['carrying_capacity'])
        self.grass.update(dt)

        # Lambs born this step are appended and take their first step too
        for sheep in self.sheep:
            if not sheep.alive:
                continue

            self._move_sheep(sheep, dt)

            consumed = self.grass.consume(*self.to_cell(sheep.position),
                                          consumption_rate * dt)
            sheep.energy += consumed * ENERGY_PER_GRASS
            sheep.energy -= METABOLISM * dt

            if sheep.energy <= 0:
                sheep.alive = False
                continue

            if sheep.energy > threshold and self.rng.random() < 0.01 * greediness * dt:
                sheep.energy -= threshold * 0.6
                self._spawn_sheep(sheep.shepherd)

        self.sheep = [s for s in self.sheep if s.alive]

        # Shepherds add sheep based on greediness
        if self.rng.random() < greediness * 0.05 * dt:
            self._spawn_sheep(int(self.rng.integers(0, int(self.params['shepherd_count']))))

        self.grass_level = self.grass.get_average() / self.params['carrying_capacity']
        self._check_collapse()

    def _move_sheep(self, sheep: Sheep, dt: float) -> None:
        """Random wander with a soft fence."""
        wander = (self.rng.random(2) - 0.5) * 2
        fence = np.where(np.abs(sheep.position) > PASTURE_BOUND,
                         -np.sign(sheep.position) * 3.0, 0.0)

        velocity = sheep.velocity + (wander + fence) * dt
        speed = np.linalg.norm(velocity)
        if speed > SHEEP_MAX_SPEED:
            velocity *= SHEEP_MAX_SPEED / speed
        sheep.velocity = velocity
        sheep.position = sheep.position + velocity * dt

    def _check_collapse(self) -> None:
        if not self._collapsed and self.grass_level < 0.1:
            self._collapsed = True
            logger.info("Pasture collapsed: grass at %.1f%% with %d sheep",
                        self.grass_level * 100, len(self.sheep))
        elif self._collapsed and self.grass_level > 0.5:
            self._collapsed = False

    def get_metrics(self) -> Dict[str, float]:
        return {
            'grass_level': self.grass_level * 100,
            'sheep_count': len(self.sheep),
        }

    def get_render_state(self) -> RenderState:
        points = (np.array([s.position for s in self.sheep])
                  if self.sheep else np.zeros((0, 2)))
        half = WORLD_SIZE / 2
        return RenderState(
            field=self.grass.grid.snapshot(),
            field_range=(0.0, float(self.params['carrying_capacity'])),
            field_label='Grass',
            points=points,
            extent=(-half, half, -half, half)
        )

    def on_param_change(self, key, value) -> None:
        if key in ('grass_regrowth_rate', 'carrying_capacity'):
            self.grass.set_params(self.params['grass_regrowth_rate'],
                                  self.params['carrying_capacity'])

    def reset(self) -> None:
        logger.info("Resetting %s", self.metadata.id)
        self.sheep = []
        self.next_sheep_id = 0
        self.grass.reset()
        self.grass_level = 1.0
        self._collapsed = False
        self._spawn_initial_sheep()

    def dispose(self) -> None:
        self.sheep = []
