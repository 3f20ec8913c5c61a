"""Simulation kernel for Commons scenarios."""

from .state import SchedulerState, RenderState, FrameSnapshot
from .grid import Grid
from .logistic import (
    COLLAPSE,
    LogisticGrid,
    equilibrium_population,
    logistic_growth_rate,
    logistic_growth_step,
)
from .diffusion import DiffusionGrid
from .wear import WearGrid
from .pathfinding import Pathfinder, PathNode, straight_path
from .flocking import Boid, BoidParams, FlockingModel
from .queueing import MM1Queue, Packet, PacketManager, PacketState, QueueStepResult
from .scheduler import FIXED_DT, SPEED_OPTIONS, FixedStepScheduler

__all__ = [
    'SchedulerState',
    'RenderState',
    'FrameSnapshot',
    'Grid',
    'COLLAPSE',
    'LogisticGrid',
    'equilibrium_population',
    'logistic_growth_rate',
    'logistic_growth_step',
    'DiffusionGrid',
    'WearGrid',
    'Pathfinder',
    'PathNode',
    'straight_path',
    'Boid',
    'BoidParams',
    'FlockingModel',
    'MM1Queue',
    'Packet',
    'PacketManager',
    'PacketState',
    'QueueStepResult',
    'FIXED_DT',
    'SPEED_OPTIONS',
    'FixedStepScheduler',
]
