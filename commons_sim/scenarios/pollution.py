"""Pollution: factories share one atmosphere."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List
import numpy as np

from ..model.diffusion import DiffusionGrid
from ..model.state import RenderState
from .base import ParamDescriptor, Scenario, ScenarioMetadata

logger = logging.getLogger(__name__)

GRID_SIZE = 64
WORLD_SIZE = 50.0
EMISSION_RADIUS = 2.0
WIND_SCALE = 0.1  # World wind speed to cells per second
WIND_DRIFT = 0.01  # Max change in wind angle per step


@dataclass
class Factory:
    id: int
    position: np.ndarray  # (x, z) in world units
    emission_rate: float


class PollutionScenario(Scenario):
    """
    Factories emit into a shared air field that diffuses, drifts with a
    slowly turning wind, and is cleaned only by natural absorption.
    """

    metadata = ScenarioMetadata(
        id='pollution',
        title='Air Pollution',
        subtitle='Factories dump costs into shared air',
        description=('Each factory keeps the profit from production while the '
                     'smoke it emits spreads over everyone downwind.'),
        category='non-living',
        resource_metric='air_quality',
        metric_labels={'avg_pollution': 'Avg pollution (%)',
                       'max_pollution': 'Peak pollution (%)',
                       'air_quality': 'Air quality (%)',
                       'factory_count': 'Factories'},
    )

    PARAMS = [
        ParamDescriptor('diffusion_rate', 'Diffusion Rate', 'number',
                        0.5, min=0.1, max=2, step=0.1, folder='Atmosphere'),
        ParamDescriptor('absorption_rate', 'Natural Absorption', 'number',
                        0.1, min=0.01, max=0.5, step=0.01, folder='Atmosphere'),
        ParamDescriptor('wind_speed', 'Wind Speed', 'number',
                        2.0, min=0, max=10, step=0.5, folder='Atmosphere'),
        ParamDescriptor('factory_count', 'Number of Factories', 'number',
                        5, min=1, max=15, step=1, folder='Industry'),
        ParamDescriptor('emission_rate', 'Emission Rate', 'number',
                        0.2, min=0.05, max=1, step=0.05, folder='Industry'),
    ]

    def setup(self) -> None:
        self.air = DiffusionGrid(GRID_SIZE, GRID_SIZE,
                                 self.params['diffusion_rate'],
                                 self.params['absorption_rate'])
        self.factories: List[Factory] = []
        self.next_factory_id = 0
        self.wind_angle = self.rng.uniform(0, 2 * math.pi)
        self.avg_pollution = 0.0
        self.max_pollution = 0.0
        for _ in range(int(self.params['factory_count'])):
            self._spawn_factory()

    def _spawn_factory(self) -> Factory:
        angle = self.rng.uniform(0, 2 * math.pi)
        radius = 8 + self.rng.uniform(0, 12)
        factory = Factory(
            id=self.next_factory_id,
            position=np.array([math.cos(angle) * radius, math.sin(angle) * radius]),
            emission_rate=self.params['emission_rate']
        )
        self.next_factory_id += 1
        self.factories.append(factory)
        return factory

    def to_grid(self, position: np.ndarray):
        """World (x, z) to continuous grid coordinates."""
        return ((position[0] / WORLD_SIZE + 0.5) * self.air.width,
                (position[1] / WORLD_SIZE + 0.5) * self.air.height)

    @property
    def wind(self):
        speed = self.params['wind_speed'] * WIND_SCALE
        return math.cos(self.wind_angle) * speed, math.sin(self.wind_angle) * speed

    def update(self, dt: float, elapsed: float) -> None:
        self.air.set_params(self.params['diffusion_rate'], self.params['absorption_rate'])
        self.wind_angle += (self.rng.random() - 0.5) * WIND_DRIFT

        # Emission before transport
        for factory in self.factories:
            factory.emission_rate = self.params['emission_rate']
            gx, gy = self.to_grid(factory.position)
            self.air.emit_radius(gx, gy, EMISSION_RADIUS, factory.emission_rate * dt)

        wind_x, wind_y = self.wind
        self.air.update(dt, wind_x, wind_y)

        target = int(self.params['factory_count'])
        while len(self.factories) < target:
            self._spawn_factory()
        del self.factories[target:]

        self.avg_pollution = self.air.get_average()
        self.max_pollution = self.air.get_max()

    def get_metrics(self) -> Dict[str, float]:
        return {
            'avg_pollution': self.avg_pollution * 100,
            'max_pollution': self.max_pollution * 100,
            'air_quality': (1 - self.avg_pollution) * 100,
            'factory_count': len(self.factories),
        }

    def get_render_state(self) -> RenderState:
        points = (np.array([f.position for f in self.factories])
                  if self.factories else np.zeros((0, 2)))
        half = WORLD_SIZE / 2
        return RenderState(
            field=self.air.grid.snapshot(),
            field_range=(0.0, 1.0),
            field_label='Pollution',
            points=points,
            extent=(-half, half, -half, half)
        )

    def reset(self) -> None:
        logger.info("Resetting %s", self.metadata.id)
        self.air.reset()
        self.avg_pollution = 0.0
        self.max_pollution = 0.0

    def dispose(self) -> None:
        self.factories = []
