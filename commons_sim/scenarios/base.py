"""Scenario contract shared by every Commons scenario."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
import numpy as np

from ..model.state import RenderState

ParamValue = Union[float, int, bool, str]


@dataclass(frozen=True)
class ParamDescriptor:
    """Schema entry for one tunable scenario parameter."""
    key: str
    label: str
    kind: str  # "number", "boolean" or "select"
    default: ParamValue
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: Tuple[ParamValue, ...] = ()
    folder: str = ""

    def validate(self, value: Any) -> ParamValue:
        """Return ``value`` coerced to this parameter's type or raise ValueError."""
        if self.kind == "boolean":
            if not isinstance(value, bool):
                raise ValueError(f"{self.key}: expected a boolean, got {value!r}")
            return value

        if self.kind == "select":
            if value not in self.options:
                raise ValueError(f"{self.key}: {value!r} is not one of {list(self.options)}")
            return value

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{self.key}: expected a number, got {value!r}")
        if self.min is not None and value < self.min:
            raise ValueError(f"{self.key}: {value} is below minimum {self.min}")
        if self.max is not None and value > self.max:
            raise ValueError(f"{self.key}: {value} is above maximum {self.max}")
        # Integer-stepped parameters (counts) stay integers
        if isinstance(self.default, int) and float(value).is_integer():
            return int(value)
        return value


@dataclass(frozen=True)
class ScenarioMetadata:
    id: str
    title: str
    subtitle: str
    description: str
    category: str  # "living", "non-living" or "abstract"
    resource_metric: str  # Metric tracking the shared resource's health
    metric_labels: Dict[str, str] = field(default_factory=dict)


class Scenario(ABC):
    """
    One commons scenario composed from kernel models.

    Subclasses declare ``metadata`` and ``PARAMS`` and own their models
    exclusively. ``update`` is the only place simulation state changes;
    ``render`` only records the interpolation fraction.
    """

    metadata: ScenarioMetadata
    PARAMS: List[ParamDescriptor] = []

    def __init__(self, params: Optional[Dict[str, ParamValue]] = None,
                 rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.params: Dict[str, ParamValue] = {
            d.key: d.default for d in self.get_param_descriptors()
        }
        for key, value in (params or {}).items():
            self.params[key] = self._descriptor(key).validate(value)
        self.alpha = 0.0
        self.setup()

    @abstractmethod
    def setup(self) -> None:
        """Allocate models and initial agents from ``self.params``."""

    @abstractmethod
    def update(self, dt: float, elapsed: float) -> None:
        """Advance every owned model by one fixed step."""

    @abstractmethod
    def get_metrics(self) -> Dict[str, float]:
        """Scalar metrics for charts and logs."""

    @abstractmethod
    def reset(self) -> None:
        """Restore the initial state without reallocating the grids."""

    @abstractmethod
    def get_render_state(self) -> RenderState:
        """Read-only view of fields and agent positions."""

    def render(self, alpha: float) -> None:
        self.alpha = alpha

    def dispose(self) -> None:
        """Release references to owned models."""

    @classmethod
    def get_param_descriptors(cls) -> List[ParamDescriptor]:
        return list(cls.PARAMS)

    def get_params(self) -> Dict[str, ParamValue]:
        return dict(self.params)

    def set_param(self, key: str, value: ParamValue) -> None:
        """Validate and apply a live parameter change."""
        self.params[key] = self._descriptor(key).validate(value)
        self.on_param_change(key, self.params[key])

    def on_param_change(self, key: str, value: ParamValue) -> None:
        """Hook for subclasses that react immediately to parameter changes."""

    def _descriptor(self, key: str) -> ParamDescriptor:
        for descriptor in self.get_param_descriptors():
            if descriptor.key == key:
                return descriptor
        raise ValueError(f"Unknown parameter for {self.metadata.id}: {key}")
