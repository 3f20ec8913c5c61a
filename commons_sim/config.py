"""Configuration dataclasses and YAML loader for Commons runs."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

from .model.scheduler import SPEED_OPTIONS

KNOWN_SECTIONS = {'scenario', 'simulation', 'params', 'export'}


@dataclass
class SimulationSettings:
    duration: float = 60.0     # Simulated seconds
    frame_rate: float = 60.0   # Virtual display refresh rate (Hz)
    speed: float = 1
    seed: Optional[int] = None


@dataclass
class ExportSettings:
    csv: bool = True
    snapshot: bool = True
    gif: bool = False
    record_every: int = 30  # Fixed steps between recorded frames


@dataclass
class RunConfig:
    scenario: str
    simulation: SimulationSettings = field(default_factory=SimulationSettings)
    params: Dict[str, Any] = field(default_factory=dict)
    export: ExportSettings = field(default_factory=ExportSettings)

    # Overridden from the command line
    quiet: bool = False
    out_dir: Path = field(default_factory=lambda: Path("./output"))


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Section '{name}' must be a mapping, got {type(value).__name__}")
    return value


def _parse_simulation(sim_raw: Dict[str, Any]) -> SimulationSettings:
    unknown = set(sim_raw) - {'duration', 'frame_rate', 'speed', 'seed'}
    if unknown:
        raise ValueError(f"Unknown simulation settings: {sorted(unknown)}")

    settings = SimulationSettings(
        duration=float(sim_raw.get('duration', 60.0)),
        frame_rate=float(sim_raw.get('frame_rate', 60.0)),
        speed=sim_raw.get('speed', 1),
        seed=sim_raw.get('seed')
    )
    validate_simulation(settings)
    return settings


def validate_simulation(settings: SimulationSettings) -> None:
    """Raise ValueError for settings no run can use."""
    if settings.duration <= 0:
        raise ValueError(f"duration must be positive, got {settings.duration}")
    if settings.frame_rate <= 0:
        raise ValueError(f"frame_rate must be positive, got {settings.frame_rate}")
    if settings.speed not in SPEED_OPTIONS:
        raise ValueError(f"speed must be one of {list(SPEED_OPTIONS)}, got {settings.speed}")
    if settings.seed is not None and not isinstance(settings.seed, int):
        raise ValueError(f"seed must be an integer, got {settings.seed!r}")


def _parse_export(export_raw: Dict[str, Any]) -> ExportSettings:
    unknown = set(export_raw) - {'csv', 'snapshot', 'gif', 'record_every'}
    if unknown:
        raise ValueError(f"Unknown export settings: {sorted(unknown)}")

    record_every = export_raw.get('record_every', 30)
    if not isinstance(record_every, int) or record_every < 1:
        raise ValueError(f"record_every must be a positive integer, got {record_every!r}")

    return ExportSettings(
        csv=bool(export_raw.get('csv', True)),
        snapshot=bool(export_raw.get('snapshot', True)),
        gif=bool(export_raw.get('gif', False)),
        record_every=record_every
    )


def parse_config(raw: Any) -> RunConfig:
    """Build a RunConfig from already-parsed YAML data."""
    if not isinstance(raw, dict):
        raise ValueError("Configuration must be a YAML mapping")

    unknown = set(raw) - KNOWN_SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    scenario = raw.get('scenario')
    if not isinstance(scenario, str) or not scenario:
        raise ValueError("Configuration must name a scenario")

    return RunConfig(
        scenario=scenario,
        simulation=_parse_simulation(_section(raw, 'simulation')),
        params=dict(_section(raw, 'params')),
        export=_parse_export(_section(raw, 'export'))
    )


def load_config(config_path: Path) -> RunConfig:
    """Load and validate YAML configuration file."""
    with open(config_path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    return parse_config(raw)
