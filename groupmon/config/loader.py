"""Configuration loader for group activity monitoring runs.

Parses TOML configuration files into typed dataclasses.
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from groupmon.diagnostics import LOGGER_MODES


class ConfigValidationError(ValueError):
    """Raised when configuration validation fails."""

    pass


@dataclass(frozen=True)
class GroupConfig:
    """Configuration for one neuron group.

    Attributes:
        name: Unique group name
        grid: (x, y, z) neuron layout; group size is x * y * z
        baseline: Mean activity level of the group
        noise: Standard deviation of the activity noise
    """

    name: str
    grid: tuple[int, int, int]
    baseline: float
    noise: float


@dataclass(frozen=True)
class MonitorConfig:
    """Configuration for the activity monitor of one group.

    Attributes:
        group: Name of the monitored group
        output_path: Group file to write (None for in-memory recording only)
        persistent: Whether session durations accumulate
        sessions: (start_ms, stop_ms) recording windows in chronological order
    """

    group: str
    output_path: Path | None
    persistent: bool
    sessions: tuple[tuple[int, int], ...]


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for diagnostic output.

    Attributes:
        mode: Logger mode (user, developer, showtime, silent, custom)
        file: Log file, used in custom mode
    """

    mode: str
    file: Path | None


@dataclass(frozen=True)
class SimulationConfig:
    """Complete run configuration.

    Attributes:
        groups: Neuron groups to create
        monitors: Activity monitors to attach
        logging: Diagnostic output settings
        duration_ms: Total simulated time
        seed: Random seed (None for random initialization)
    """

    groups: tuple[GroupConfig, ...]
    monitors: tuple[MonitorConfig, ...]
    logging: LoggingConfig
    duration_ms: int
    seed: int | None


def _as_int(value: Any, name: str) -> int:
    """Return value as an int, or fail with the offending field name."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValidationError(f"{name} must be an integer, got {value!r}")
    return value


def _as_float(value: Any, name: str) -> float:
    """Return value as a float, or fail with the offending field name."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{name} must be a number, got {value!r}")
    return float(value)


def _validate_group_config(data: dict[str, Any]) -> None:
    """Validate group configuration values."""
    name = data["name"]
    grid = data.get("grid", [])
    if not isinstance(grid, list) or len(grid) != 3:
        raise ConfigValidationError(f"groups.{name}: grid must be 3 positive integers")
    if any(_as_int(d, f"groups.{name}.grid") <= 0 for d in grid):
        raise ConfigValidationError(f"groups.{name}: grid must be 3 positive integers")

    _as_float(data["baseline"], f"groups.{name}.baseline")
    if _as_float(data["noise"], f"groups.{name}.noise") < 0:
        raise ConfigValidationError(f"groups.{name}: noise must be >= 0")


def _validate_sessions(group: str, sessions: Any) -> None:
    """Validate that sessions are ordered, non-overlapping [start, stop] windows."""
    if not isinstance(sessions, list):
        raise ConfigValidationError(f"monitors.{group}: sessions must be a list of [start_ms, stop_ms]")
    previous_stop = 0
    for window in sessions:
        if not isinstance(window, list) or len(window) != 2:
            raise ConfigValidationError(f"monitors.{group}: each session must be [start_ms, stop_ms]")
        start = _as_int(window[0], f"monitors.{group}.sessions")
        stop = _as_int(window[1], f"monitors.{group}.sessions")
        if start < previous_stop:
            raise ConfigValidationError(
                f"monitors.{group}: sessions must be ordered and non-overlapping"
            )
        if stop < start:
            raise ConfigValidationError(f"monitors.{group}: session stop must be >= start")
        previous_stop = stop


def _parse_group_config(data: dict[str, Any]) -> GroupConfig:
    """Parse and validate one [[groups]] entry."""
    required_fields = ["name", "grid", "baseline", "noise"]

    for field in required_fields:
        if field not in data:
            raise ConfigValidationError(f"Missing required field: groups.{field}")

    _validate_group_config(data)

    return GroupConfig(
        name=str(data["name"]),
        grid=tuple(int(x) for x in data["grid"]),  # type: ignore
        baseline=float(data["baseline"]),
        noise=float(data["noise"]),
    )


def _parse_monitor_config(data: dict[str, Any], group_names: set[str]) -> MonitorConfig:
    """Parse and validate one [[monitors]] entry."""
    for field in ["group", "sessions"]:
        if field not in data:
            raise ConfigValidationError(f"Missing required field: monitors.{field}")

    group = str(data["group"])
    if group not in group_names:
        raise ConfigValidationError(f"monitors.{group}: unknown group")

    _validate_sessions(group, data["sessions"])

    output_path = data.get("output_path")
    return MonitorConfig(
        group=group,
        output_path=Path(output_path) if output_path else None,
        persistent=bool(data.get("persistent", False)),
        sessions=tuple((int(start), int(stop)) for start, stop in data["sessions"]),
    )


def _parse_logging_config(data: dict[str, Any]) -> LoggingConfig:
    """Parse the optional [logging] section."""
    mode = str(data.get("mode", "user"))
    if mode not in LOGGER_MODES:
        raise ConfigValidationError(
            f"logging.mode must be one of {', '.join(sorted(LOGGER_MODES))}"
        )

    log_file = data.get("file")
    return LoggingConfig(mode=mode, file=Path(log_file) if log_file else None)


def load_config(path: Path) -> SimulationConfig:
    """Load and parse a TOML configuration file.

    Args:
        path: Path to the TOML configuration file

    Returns:
        Parsed SimulationConfig

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigValidationError: If config validation fails
        tomllib.TOMLDecodeError: If TOML syntax is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    if not data.get("groups"):
        raise ConfigValidationError("Missing required section: [[groups]]")
    if not data.get("monitors"):
        raise ConfigValidationError("Missing required section: [[monitors]]")

    groups = tuple(_parse_group_config(g) for g in data["groups"])
    group_names = {g.name for g in groups}
    if len(group_names) != len(groups):
        raise ConfigValidationError("Group names must be unique")

    monitors = tuple(_parse_monitor_config(m, group_names) for m in data["monitors"])
    if len({m.group for m in monitors}) != len(monitors):
        raise ConfigValidationError("Each group can have at most one monitor")

    logging_config = _parse_logging_config(data.get("logging", {}))

    last_stop = max((stop for m in monitors for _, stop in m.sessions), default=0)
    duration_ms = _as_int(
        data.get("simulation", {}).get("duration_ms", last_stop), "simulation.duration_ms"
    )
    if duration_ms < last_stop:
        raise ConfigValidationError("simulation.duration_ms must cover every session")

    # Seed is optional
    seed = data.get("seed")
    if seed is not None:
        seed = _as_int(seed, "seed")

    return SimulationConfig(
        groups=groups,
        monitors=monitors,
        logging=logging_config,
        duration_ms=duration_ms,
        seed=seed,
    )
