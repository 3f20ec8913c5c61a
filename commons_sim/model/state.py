"""State snapshot dataclasses for Commons simulations."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import numpy as np


@dataclass(frozen=True)
class SchedulerState:
    """Observable scheduler state handed to callers and observers."""
    is_playing: bool
    speed: float
    elapsed: float


@dataclass
class RenderState:
    """What a scenario exposes to the presentation layer."""
    field: Optional[np.ndarray]          # Primary 2D field, [y, x]
    field_range: tuple = (0.0, 1.0)      # (vmin, vmax) for colour mapping
    field_label: str = ""
    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))
    extent: tuple = (0.0, 1.0, 0.0, 1.0)  # (xmin, xmax, ymin, ymax) of points


@dataclass
class FrameSnapshot:
    """Complete snapshot of a scenario at a recorded fixed step."""
    step: int
    elapsed: float
    alpha: float
    metrics: Dict[str, float]
    render: RenderState

    def to_csv_row(self) -> Dict[str, float]:
        """Convert to CSV-compatible format."""
        row = {"step": self.step, "elapsed": round(self.elapsed, 6)}
        row.update(self.metrics)
        return row

    @staticmethod
    def csv_fields(metric_keys: List[str]) -> List[str]:
        return ["step", "elapsed", *metric_keys]
