"""Group Activity Monitor CLI.

Command-line interface for recording group activity over scheduled sessions.
"""

import argparse
import sys
from pathlib import Path

import numpy as np

from groupmon.config.loader import ConfigValidationError, SimulationConfig, load_config
from groupmon.core.engine import SimulationEngine, noise_activity_source
from groupmon.core.recorder import GroupRecorder
from groupmon.output.tui_logger import TUILogger


DEFAULT_CONFIG_PATH = Path("config/default.toml")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="groupmon",
        description="Record the activity of neuron groups over recording sessions",
        epilog="Example: python main.py -c config/default.toml --output results -v",
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to TOML configuration file (default: config/default.toml)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Directory for group files; overrides every monitor's output_path",
    )
    parser.add_argument(
        "--persistent",
        action="store_true",
        help="Accumulate session durations for every monitor",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print one line per recording session",
    )

    return parser


def create_engine_from_config(
    config: SimulationConfig,
    output_dir: Path | None = None,
    force_persistent: bool = False,
) -> tuple[SimulationEngine, dict[str, GroupRecorder]]:
    """Create an engine with the configured groups and monitors.

    Args:
        config: Parsed run configuration
        output_dir: If given, group files are written here as <group>.grp
        force_persistent: Put every monitor in persistent mode

    Returns:
        The engine and its recorders keyed by group name
    """
    engine = SimulationEngine(logger_mode=config.logging.mode)
    recorders = {}
    try:
        if config.logging.file is not None:
            engine.set_log_file(config.logging.file)

        # One independent stream per group, reproducible from the run seed
        seeds = np.random.SeedSequence(config.seed).spawn(len(config.groups))
        group_ids = {}
        for group, seed in zip(config.groups, seeds):
            group_id = engine.create_group(group.name, group.grid)
            engine.set_activity_source(
                group_id, noise_activity_source(group.baseline, group.noise, seed=seed)
            )
            group_ids[group.name] = group_id

        for monitor in config.monitors:
            path = monitor.output_path
            if output_dir is not None:
                path = output_dir / f"{monitor.group}.grp"
            recorders[monitor.group] = engine.set_group_monitor(
                group_ids[monitor.group],
                path=path,
                persistent=monitor.persistent or force_persistent,
            )
    except BaseException:
        # Group files opened before the failure are released
        engine.close()
        raise

    return engine, recorders


def run_sessions(
    engine: SimulationEngine,
    config: SimulationConfig,
    recorders: dict[str, GroupRecorder],
    tui: TUILogger,
) -> None:
    """Run the simulation, starting and stopping sessions on schedule.

    Args:
        engine: Engine created by create_engine_from_config
        config: Run configuration holding the session windows
        recorders: Recorders keyed by group name
        tui: Terminal output for session lines
    """
    # (time, order, group); a session ending at t is closed before one starting at t
    schedule = []
    for monitor in config.monitors:
        for start, stop in monitor.sessions:
            schedule.append((start, 1, monitor.group))
            schedule.append((stop, 0, monitor.group))
    schedule.sort()

    for time_ms, order, group in schedule:
        engine.run(n_msec=time_ms - engine.get_sim_time_ms())
        recorder = recorders[group]
        if order == 1:
            recorder.begin_session()
        else:
            recorder.end_session()
            tui.log_session(
                time_ms=engine.get_sim_time_ms(),
                group_name=group,
                n_records=len(recorder),
                total_duration=recorder.total_duration,
            )

    engine.run(n_msec=config.duration_ms - engine.get_sim_time_ms())


def main() -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = create_parser()
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ConfigValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    tui = TUILogger(verbose=args.verbose)
    engine, recorders = create_engine_from_config(
        config, output_dir=args.output, force_persistent=args.persistent
    )
    with engine:
        run_sessions(engine, config, recorders, tui)

        for group, recorder in recorders.items():
            mean_value = float(np.mean(recorder.values)) if len(recorder) else 0.0
            tui.log_summary(group, mean_value, recorder.total_duration)

    return 0


if __name__ == "__main__":
    sys.exit(main())
