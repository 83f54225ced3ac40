"""Reference simulation engine for driving group recorders.

The engine owns the simulation clock and the neuron groups. Each simulated
millisecond it samples the activity of every monitored group and buffers it;
buffers are flushed into the group monitors (and their files) once per
simulated second, at the end of every run, and whenever a recorder asks for
synchronization.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable

import numpy as np

from groupmon.core.group import ALL, Grid3D, Group
from groupmon.core.recorder import GroupRecorder
from groupmon.diagnostics import LOGGER_NAME, configure_logging, set_log_file
from groupmon.errors.fatal import require
from groupmon.errors.user_errors import ErrorReporter, UserErrorType
from groupmon.events.bus import (
    EventBus,
    GroupMonitorSyncEvent,
    SpikeMonitorSyncEvent,
    StepEvent,
)
from groupmon.output.sink import GroupFileSink

# Simulated milliseconds between automatic monitor flushes
FLUSH_INTERVAL_MS = 1000


class EngineState(Enum):
    """Lifecycle of the engine."""

    CONFIG = auto()
    RUN = auto()


def noise_activity_source(
    baseline: float, noise: float, seed: int | np.random.SeedSequence | None = None
) -> Callable[[int], float]:
    """Create an activity source drawing baseline + Gaussian noise, floored at 0.

    Args:
        baseline: Mean activity level
        noise: Standard deviation of the noise
        seed: Random seed for reproducibility

    Returns:
        Callable mapping a time in ms to an activity value
    """
    rng = np.random.default_rng(seed)

    def source(time_ms: int) -> float:
        return max(0.0, float(baseline + noise * rng.standard_normal()))

    return source


@dataclass
class SimulationEngine:
    """Minimal engine implementing the EngineContext capabilities.

    Attributes:
        logger_mode: Diagnostic mode passed to configure_logging, or None to
            leave logging configuration to the application
        event_bus: Bus receiving step and sync events
        reporter: Reporter for user errors
        time_ms: Current simulation time in milliseconds
        state: CONFIG until the first run, RUN afterwards
    """

    logger_mode: str | None = None
    event_bus: EventBus = field(default_factory=EventBus)
    reporter: ErrorReporter | None = None
    time_ms: int = field(default=0, init=False)
    state: EngineState = field(default=EngineState.CONFIG, init=False)

    _groups: list[Group] = field(default_factory=list, init=False, repr=False)
    _recorders: dict[int, GroupRecorder] = field(default_factory=dict, init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.logger_mode is not None:
            configure_logging(self.logger_mode)
        self._logger = logging.getLogger(f"{LOGGER_NAME}.engine")
        if self.reporter is None:
            self.reporter = ErrorReporter(logger=logging.getLogger(f"{LOGGER_NAME}.errors"))

    # -- setup ---------------------------------------------------------

    def create_group(self, name: str, grid: Grid3D | tuple[int, int, int]) -> int:
        """Register a neuron group laid out on a 3D grid.

        Returns:
            The new group id
        """
        self.reporter.check(
            self.state == EngineState.CONFIG,
            UserErrorType.NETWORK_ALREADY_RUN,
            "create_group",
            "create_group()",
        )
        grid = Grid3D(*grid)
        for axis, size in zip("xyz", grid):
            self.reporter.check(
                size > 0, UserErrorType.MUST_BE_POSITIVE, "create_group", f"grid.{axis}"
            )

        group_id = len(self._groups)
        self._groups.append(Group(group_id=group_id, name=name, grid=grid))
        self._logger.info(
            "Created group %d '%s' with %d neurons (%dx%dx%d)",
            group_id,
            name,
            grid.n_neurons,
            *grid,
        )
        return group_id

    def set_activity_source(self, group_id: int, source: Callable[[int], float]) -> None:
        """Set the callable producing the activity of a group at each ms."""
        group = self._group(group_id, "set_activity_source")
        self.reporter.check(
            source is not None, UserErrorType.CANNOT_BE_NULL, "set_activity_source", "source"
        )
        group.activity_source = source

    def set_group_monitor(
        self,
        group_id: int,
        path: Path | None = None,
        persistent: bool = False,
    ) -> GroupRecorder:
        """Create the activity recorder of a group.

        Args:
            group_id: Group to monitor
            path: Group file to create, or None to record in memory only
            persistent: Initial persistent mode of the recorder

        Returns:
            The new recorder
        """
        self._group(group_id, "set_group_monitor")
        require(
            group_id not in self._recorders,
            "SimulationEngine.set_group_monitor",
            f"group {group_id} already has a monitor",
        )

        sink = None
        if path is not None:
            sink = self._open_sink(Path(path))

        try:
            recorder = GroupRecorder(self, group_id, monitor_id=len(self._recorders))
            recorder.persistent_mode = persistent
            self._recorders[group_id] = recorder
            recorder.attach_sink(sink)
        except BaseException:
            if sink is not None:
                sink.close()
            raise
        self._logger.info(
            "Group monitor %d set for group %d (file: %s)",
            recorder.monitor_id,
            group_id,
            sink.name if sink is not None else "none",
        )
        return recorder

    def get_group_monitor(self, group_id: int) -> GroupRecorder:
        self._group(group_id, "get_group_monitor")
        self.reporter.check(
            group_id in self._recorders,
            UserErrorType.UNKNOWN_GROUP_ID,
            "get_group_monitor",
            f"Monitored group {group_id}",
        )
        return self._recorders[group_id]

    def set_log_file(self, log_file: Path) -> None:
        """Redirect diagnostic output to log_file; requires custom logger mode."""
        self.reporter.check(
            self.logger_mode == "custom",
            UserErrorType.MUST_BE_LOGGER_CUSTOM,
            "set_log_file",
            "set_log_file()",
        )
        set_log_file(logging.getLogger(LOGGER_NAME), Path(log_file))

    # -- running -------------------------------------------------------

    def run(self, n_sec: int = 0, n_msec: int = 0) -> None:
        """Advance the simulation by n_sec seconds plus n_msec milliseconds."""
        self.reporter.check(n_sec >= 0, UserErrorType.CANNOT_BE_NEGATIVE, "run", "n_sec")
        self.reporter.check(n_msec >= 0, UserErrorType.CANNOT_BE_NEGATIVE, "run", "n_msec")

        if self.state == EngineState.CONFIG:
            self._logger.info("Starting network run")
        self.state = EngineState.RUN

        for _ in range(n_sec * 1000 + n_msec):
            self._step()
            if self.time_ms % FLUSH_INTERVAL_MS == 0:
                self._flush_all()

        self._flush_all()

    def _step(self) -> None:
        for group_id in self._recorders:
            group = self._groups[group_id]
            if group.activity_source is not None:
                group.pending.append((self.time_ms, float(group.activity_source(self.time_ms))))
        self.time_ms += 1
        self.event_bus.emit(StepEvent(time_ms=self.time_ms))

    def _flush_all(self) -> None:
        for group_id in self._recorders:
            self.update_group_monitor(group_id)

    # -- EngineContext -------------------------------------------------

    def get_sim_time_ms(self) -> int:
        return self.time_ms

    def get_sim_time_sec(self) -> int:
        return self.time_ms // 1000

    def get_group_num_neurons(self, group_id: int) -> int:
        return self._group(group_id, "get_group_num_neurons").n_neurons

    def get_group_grid3d(self, group_id: int) -> Grid3D:
        return self._group(group_id, "get_group_grid3d").grid

    def get_group_name(self, group_id: int) -> str:
        return self._group(group_id, "get_group_name").name

    def update_group_monitor(self, group_id: int) -> None:
        """Write buffered activity to the group file and, while recording, to the recorder."""
        group = self._group(group_id, "update_group_monitor")
        recorder = self._recorders.get(group_id)
        points, group.pending = group.pending, []

        if recorder is not None:
            recorder.write_records(points)
            if recorder.is_recording:
                for time_ms, value in points:
                    recorder.record(time_ms, value)
            recorder.last_updated = self.time_ms

        self.event_bus.emit(
            GroupMonitorSyncEvent(group_id=group_id, time_ms=self.time_ms, n_points=len(points))
        )

    def update_spike_monitor(self, group_id: int) -> None:
        """Ask the companion spike monitor of a group to synchronize."""
        self._group(group_id, "update_spike_monitor")
        self.event_bus.emit(SpikeMonitorSyncEvent(group_id=group_id, time_ms=self.time_ms))

    def get_logger(self) -> logging.Logger:
        return self._logger

    # -- teardown ------------------------------------------------------

    def close(self) -> None:
        """Close every recorder, releasing its group file."""
        for recorder in self._recorders.values():
            recorder.close()

    def __enter__(self) -> "SimulationEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- helpers -------------------------------------------------------

    def _group(self, group_id: int, origin: str) -> Group:
        self.reporter.check(group_id != ALL, UserErrorType.ALL_NOT_ALLOWED, origin, "group_id")
        self.reporter.check(
            0 <= group_id < len(self._groups),
            UserErrorType.UNKNOWN_GROUP_ID,
            origin,
            f"Group id {group_id}",
        )
        return self._groups[group_id]

    def _open_sink(self, path: Path) -> GroupFileSink:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            self.reporter.report(
                UserErrorType.FILE_CANNOT_CREATE, "set_group_monitor", f"Directory {path.parent}"
            )
        try:
            return GroupFileSink.open(path)
        except OSError:
            self.reporter.report(
                UserErrorType.FILE_CANNOT_OPEN, "set_group_monitor", f"Group file {path}"
            )
