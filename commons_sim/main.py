#!/usr/bin/env python3
"""
Commons Simulation

Headless runs of tragedy-of-the-commons scenarios on a fixed-timestep kernel.

Usage:
    python -m commons_sim.main --config configs/grazing.yaml [options]

Examples:
    python -m commons_sim.main --config configs/grazing.yaml
    python -m commons_sim.main --config configs/pollution.yaml --gif --out-dir results/
    python -m commons_sim.main --scenario bandwidth --duration 10 --no-snapshot --quiet
    python -m commons_sim.main --config configs/overfishing.yaml --seed 42 --speed 2
    python -m commons_sim.main --list
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from .config import RunConfig, load_config, validate_simulation
from .export.csv_writer import CSVWriter
from .export.reporter import Reporter
from .export.visualizer import Visualizer
from .model.scheduler import FIXED_DT, SPEED_OPTIONS, FixedStepScheduler
from .model.state import FrameSnapshot
from .scenarios.base import Scenario
from .scenarios.registry import ScenarioRegistry, build_default_registry

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 10.0  # Simulated seconds between progress lines
GIF_EVERY = 5  # Recorded frames between GIF frames


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='commons-sim',
        description='Tragedy of the Commons Simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    commons-sim --config configs/grazing.yaml
    commons-sim --config configs/pollution.yaml --gif --out-dir results/
    commons-sim --scenario bandwidth --duration 10 --no-snapshot --quiet
    commons-sim --config configs/overfishing.yaml --seed 42 --speed 2
    commons-sim --list
        """
    )

    parser.add_argument('--config', type=Path, default=None,
                        help='Path to YAML configuration file')
    parser.add_argument('--scenario', default=None,
                        help='Scenario id (overrides the config file)')
    parser.add_argument('--list', action='store_true', default=False,
                        help='List available scenarios and exit')

    # Optional overrides
    parser.add_argument('--duration', type=float, default=None,
                        help='Override simulated seconds')
    parser.add_argument('--speed', type=float, default=None, choices=SPEED_OPTIONS,
                        help='Simulation speed multiplier')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--snapshot', dest='snapshot', action='store_true', default=None,
                        help='Enable final snapshot (default)')
    parser.add_argument('--no-snapshot', dest='snapshot', action='store_false',
                        help='Disable final snapshot')

    parser.add_argument('--gif', action='store_true', default=False,
                        help='Enable GIF animation export')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Log scenario events')

    args = parser.parse_args(argv)
    if not args.list and args.config is None and args.scenario is None:
        parser.error('one of --config or --scenario is required')
    return args


def configure_logging(quiet: bool, verbose: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def build_config(args: argparse.Namespace) -> RunConfig:
    """Load the config file (if any) and apply CLI overrides."""
    if args.config is not None:
        config = load_config(args.config)
    else:
        config = RunConfig(scenario=args.scenario)

    if args.scenario is not None:
        config.scenario = args.scenario
    if args.duration is not None:
        config.simulation.duration = args.duration
    if args.speed is not None:
        config.simulation.speed = args.speed
    if args.seed is not None:
        config.simulation.seed = args.seed
    if args.csv is not None:
        config.export.csv = args.csv
    if args.snapshot is not None:
        config.export.snapshot = args.snapshot
    if args.gif:
        config.export.gif = True
    config.quiet = args.quiet
    config.out_dir = args.out_dir

    validate_simulation(config.simulation)
    return config


def list_scenarios(registry: ScenarioRegistry) -> str:
    lines = ["Available scenarios:"]
    for entry in registry.get_all():
        meta = entry.metadata
        lines.append(f"  {meta.id:<14} {meta.title} ({meta.category}): {meta.subtitle}")
    return "\n".join(lines)


def take_snapshot(scenario: Scenario, step: int, elapsed: float) -> FrameSnapshot:
    return FrameSnapshot(
        step=step,
        elapsed=elapsed,
        alpha=scenario.alpha,
        metrics=scenario.get_metrics(),
        render=scenario.get_render_state()
    )


def run_simulation(config: RunConfig, registry: ScenarioRegistry,
                   config_label: str = '(command line)') -> Optional[FrameSnapshot]:
    """
    Run one scenario headless and write the enabled exports.

    The scheduler is driven by a virtual clock advancing one frame of
    ``frame_rate`` per tick, so runs are reproducible for a given seed.
    Returns the final recorded snapshot.
    """
    sim = config.simulation
    quiet = config.quiet

    rng = np.random.default_rng(sim.seed)
    scenario = registry.create(config.scenario, params=config.params, rng=rng)
    scenario.reset()
    meta = scenario.metadata

    if not quiet:
        print("Initializing simulation...")
        print(f"  Scenario: {meta.title} ({meta.id})")
        print(f"  Duration: {sim.duration:.1f} s at speed {sim.speed}x")
        for key, value in scenario.get_params().items():
            print(f"  {key}: {value}")

    metric_keys = list(scenario.get_metrics())

    csv_writer = None
    csv_path = config.out_dir / 'metrics_log.csv'
    if config.export.csv:
        csv_writer = CSVWriter(csv_path, metric_keys)
        csv_writer.open()

    visualizer = Visualizer(meta.title)
    reporter = Reporter(config_label, meta.title, meta.resource_metric, sim.seed)

    recorded = []

    def record(snapshot: FrameSnapshot) -> None:
        recorded.append(snapshot)
        if csv_writer:
            csv_writer.append(snapshot)
        if config.export.gif and (len(recorded) - 1) % GIF_EVERY == 0:
            visualizer.buffer_frame(snapshot)
        reporter.update(snapshot)

    steps_done = 0
    next_progress = PROGRESS_INTERVAL

    def on_update(dt: float, elapsed: float) -> None:
        nonlocal steps_done, next_progress
        scenario.update(dt, elapsed)
        steps_done += 1
        now = steps_done * FIXED_DT
        if steps_done % config.export.record_every == 0:
            record(take_snapshot(scenario, steps_done, now))
        if not quiet and now >= next_progress:
            next_progress += PROGRESS_INTERVAL
            summary = ', '.join(f'{k}={v:.1f}' for k, v in scenario.get_metrics().items())
            print(f"  t={now:6.1f}s: {summary}")

    scheduler = FixedStepScheduler(clock=lambda: 0.0)
    scheduler.set_callbacks(on_update, scenario.render)
    scheduler.set_speed(sim.speed)

    try:
        record(take_snapshot(scenario, 0, 0.0))

        if not quiet:
            print("\nRunning simulation...")

        frame_interval = 1.0 / sim.frame_rate
        frame = 0
        scheduler.start()
        try:
            while scheduler.elapsed < sim.duration:
                frame += 1
                scheduler.tick(frame * frame_interval)
        except KeyboardInterrupt:
            if not quiet:
                print("\nSimulation interrupted by user.")
        finally:
            scheduler.stop()
        logger.info("Ran %d fixed steps over %d frames", steps_done, frame)

        if recorded[-1].step != steps_done:
            record(take_snapshot(scenario, steps_done, steps_done * FIXED_DT))
        final = recorded[-1]
    finally:
        if csv_writer:
            csv_writer.close()

    if csv_writer and not quiet:
        print(f"\nCSV saved: {csv_path}")

    if config.export.snapshot:
        snapshot_path = config.out_dir / 'final_state.png'
        visualizer.save_snapshot(final, snapshot_path)
        if not quiet:
            print(f"Snapshot saved: {snapshot_path}")

    if config.export.gif:
        gif_path = config.out_dir / 'simulation.gif'
        if not quiet:
            print(f"Generating GIF ({len(visualizer.frames)} frames)...")
        visualizer.generate_gif(gif_path, fps=10)
        if not quiet:
            print(f"Animation saved: {gif_path}")

    if not quiet:
        print(reporter.generate_summary(
            final,
            config.out_dir,
            config.export.csv,
            config.export.snapshot,
            config.export.gif
        ))

    scenario.dispose()
    return final


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.quiet, args.verbose)
    registry = build_default_registry()

    if args.list:
        print(list_scenarios(registry))
        return 0

    try:
        config = build_config(args)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    label = str(args.config) if args.config is not None else '(command line)'
    try:
        run_simulation(config, registry, label)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
