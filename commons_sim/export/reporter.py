"""Summary report generation for Commons runs."""

from pathlib import Path
from typing import Dict, List, Optional

from ..model.state import FrameSnapshot

COLLAPSE_FRACTION = 0.1  # Resource below this share of its start value
RECOVERY_FRACTION = 0.5


class Reporter:
    """
    Accumulates recorded metrics and formats the end-of-run text report.

    A collapse event is counted each time the scenario's resource metric
    falls below 10% of its first recorded value; it must climb back above
    50% before another one can be counted.
    """

    def __init__(self, config_path: str, scenario_title: str,
                 resource_metric: str, seed: Optional[int]):
        self.config_path = config_path
        self.scenario_title = scenario_title
        self.resource_metric = resource_metric
        self.seed = seed
        self.step_metrics: List[Dict[str, float]] = []
        self.peak: Dict[str, float] = {}
        self.minimum: Dict[str, float] = {}
        self.collapse_events = 0
        self.first_collapse: Optional[float] = None
        self._baseline: Optional[float] = None
        self._collapsed = False

    def update(self, snapshot: FrameSnapshot) -> None:
        """Accumulate metrics for one recorded frame."""
        metrics = snapshot.metrics
        self.step_metrics.append(dict(metrics))

        for key, value in metrics.items():
            self.peak[key] = max(self.peak.get(key, value), value)
            self.minimum[key] = min(self.minimum.get(key, value), value)

        resource = metrics.get(self.resource_metric)
        if resource is None:
            return
        if self._baseline is None:
            self._baseline = resource
        if self._baseline <= 0:
            return

        if not self._collapsed and resource < self._baseline * COLLAPSE_FRACTION:
            self._collapsed = True
            self.collapse_events += 1
            if self.first_collapse is None:
                self.first_collapse = snapshot.elapsed
        elif self._collapsed and resource > self._baseline * RECOVERY_FRACTION:
            self._collapsed = False

    def generate_summary(self, final: FrameSnapshot,
                         output_dir: Path,
                         csv_enabled: bool,
                         snapshot_enabled: bool,
                         gif_enabled: bool) -> str:
        """Returns formatted text report."""
        lines = [
            "",
            "=" * 80,
            "                    COMMONS SIMULATION REPORT",
            "=" * 80,
            f"Scenario:      {self.scenario_title}",
            f"Configuration: {self.config_path}",
            f"Random Seed:   {self.seed if self.seed is not None else 'None (random)'}",
            "",
            "SIMULATION METRICS",
            "-" * 40,
            f"Fixed Steps:           {final.step}",
            f"Simulated Time:        {final.elapsed:.2f} s",
            "",
            f"{'Metric':<22} {'Final':>10} {'Min':>10} {'Peak':>10}",
        ]
        for key, value in final.metrics.items():
            lines.append(f"{key:<22} {value:>10.2f} "
                         f"{self.minimum.get(key, value):>10.2f} "
                         f"{self.peak.get(key, value):>10.2f}")

        lines += [
            "",
            "COMMONS OUTCOME",
            "-" * 40,
            f"[{'X' if self.collapse_events > 0 else ' '}] Collapse Events: "
            f"{self.collapse_events} detected ({self.resource_metric})",
        ]
        if self.first_collapse is not None:
            lines.append(f"    First collapse at t={self.first_collapse:.1f}s")

        lines += [
            "",
            "OUTPUT FILES",
            "-" * 40,
        ]

        if csv_enabled:
            lines.append(f"CSV Log:    {output_dir / 'metrics_log.csv'}")
        else:
            lines.append("CSV Log:    (disabled)")

        if snapshot_enabled:
            lines.append(f"Snapshot:   {output_dir / 'final_state.png'}")
        else:
            lines.append("Snapshot:   (disabled)")

        if gif_enabled:
            lines.append(f"Animation:  {output_dir / 'simulation.gif'}")
        else:
            lines.append("Animation:  (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)
