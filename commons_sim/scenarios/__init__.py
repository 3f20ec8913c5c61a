"""Commons scenarios composed from the simulation kernel."""

from .base import ParamDescriptor, Scenario, ScenarioMetadata
from .registry import ScenarioEntry, ScenarioRegistry, build_default_registry
from .grazing import GrazingScenario
from .overfishing import OverfishingScenario
from .pollution import PollutionScenario
from .desire_paths import DesirePathsScenario
from .bandwidth import BandwidthScenario

__all__ = [
    'ParamDescriptor',
    'Scenario',
    'ScenarioMetadata',
    'ScenarioEntry',
    'ScenarioRegistry',
    'build_default_registry',
    'GrazingScenario',
    'OverfishingScenario',
    'PollutionScenario',
    'DesirePathsScenario',
    'BandwidthScenario',
]
