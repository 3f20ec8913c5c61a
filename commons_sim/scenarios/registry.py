"""Lookup of scenarios by id."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import numpy as np

from .base import ParamValue, Scenario, ScenarioMetadata

ScenarioFactory = Callable[..., Scenario]


@dataclass(frozen=True)
class ScenarioEntry:
    metadata: ScenarioMetadata
    create: ScenarioFactory


class ScenarioRegistry:
    """Maps scenario ids to factories. Construct one and pass it around."""

    def __init__(self):
        self._entries: Dict[str, ScenarioEntry] = {}

    def register(self, scenario_cls: type) -> None:
        metadata = scenario_cls.metadata
        self._entries[metadata.id] = ScenarioEntry(metadata, scenario_cls)

    def get(self, scenario_id: str) -> Optional[ScenarioEntry]:
        return self._entries.get(scenario_id)

    def get_all(self) -> List[ScenarioEntry]:
        return list(self._entries.values())

    def ids(self) -> List[str]:
        return list(self._entries)

    def create(self, scenario_id: str,
               params: Optional[Dict[str, ParamValue]] = None,
               rng: Optional[np.random.Generator] = None) -> Scenario:
        entry = self.get(scenario_id)
        if entry is None:
            raise ValueError(
                f"Unknown scenario: {scenario_id} (available: {', '.join(self.ids())})"
            )
        return entry.create(params=params, rng=rng)


def build_default_registry() -> ScenarioRegistry:
    """Registry holding the bundled scenarios."""
    from .grazing import GrazingScenario
    from .overfishing import OverfishingScenario
    from .pollution import PollutionScenario
    from .desire_paths import DesirePathsScenario
    from .bandwidth import BandwidthScenario

    registry = ScenarioRegistry()
    for scenario_cls in (GrazingScenario, OverfishingScenario, PollutionScenario,
                         DesirePathsScenario, BandwidthScenario):
        registry.register(scenario_cls)
    return registry
