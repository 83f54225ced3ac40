"""Group activity recorder.

Records a scalar time series for one neuron group and manages recording
sessions. A recorder is either Idle or Active:

1. begin_session() moves Idle -> Active
2. record() appends (time, value) pairs while Active
3. end_session() moves Active -> Idle and computes the recorded duration

In transient mode every session starts from a clean slate, so total_duration
is the length of the last session. In persistent mode the series and the
durations of all sessions add up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

import numpy as np
from numpy import ndarray

from groupmon.errors.fatal import require
from groupmon.output.header import MAX_RECORD_TIME, encode_header, encode_records

if TYPE_CHECKING:
    import logging

    from groupmon.core.context import EngineContext
    from groupmon.output.sink import GroupFileSink

# Marks a time field that has not been set yet
UNSET = -1


@dataclass(eq=False)
class GroupRecorder:
    """Activity recorder for a single group.

    Attributes:
        engine: Engine providing time, geometry, sync and logging
        group_id: Group whose activity is recorded
        monitor_id: Slot of this monitor in the engine
        neuron_count: Size of the group, queried at init
        last_updated: Simulation time (ms) of the last flush from the engine
    """

    engine: EngineContext = field(repr=False)
    group_id: int
    monitor_id: int = 0
    neuron_count: int = field(default=0, init=False)
    last_updated: int = field(default=0, init=False)

    _recording: bool = field(default=False, init=False, repr=False)
    _persistent: bool = field(default=False, init=False, repr=False)
    _start_time: int = field(default=UNSET, init=False, repr=False)
    _current_session_start: int = field(default=UNSET, init=False, repr=False)
    _stop_time: int = field(default=UNSET, init=False, repr=False)
    _accumulated_duration: int = field(default=0, init=False, repr=False)
    _total_duration: int = field(default=UNSET, init=False, repr=False)
    _times: list[int] = field(default_factory=list, init=False, repr=False)
    _values: list[float] = field(default_factory=list, init=False, repr=False)
    _sink: GroupFileSink | None = field(default=None, init=False, repr=False)
    _header_pending: bool = field(default=False, init=False, repr=False)
    _logger: logging.Logger | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.init()

    def init(self) -> None:
        """Query group size and logger from the engine, then reset."""
        self.neuron_count = self.engine.get_group_num_neurons(self.group_id)
        require(
            self.neuron_count > 0,
            "GroupRecorder.init",
            f"group {self.group_id} has {self.neuron_count} neurons, must be > 0",
        )
        self._logger = self.engine.get_logger()
        self.reset()

    # -- state queries -------------------------------------------------

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def persistent_mode(self) -> bool:
        return self._persistent

    @persistent_mode.setter
    def persistent_mode(self, persistent: bool) -> None:
        require(
            not self._recording,
            "GroupRecorder.persistent_mode",
            "cannot change persistent mode while recording",
        )
        self._persistent = bool(persistent)

    @property
    def start_time(self) -> int:
        """Time (ms) of the first session since the last reset, or -1."""
        return self._start_time

    @property
    def current_session_start(self) -> int:
        """Time (ms) at which the most recent session began, or -1."""
        return self._current_session_start

    @property
    def stop_time(self) -> int:
        return self._stop_time

    @property
    def accumulated_duration(self) -> int:
        return self._accumulated_duration

    @property
    def total_duration(self) -> int:
        """Recorded duration (ms) as of the last end_session(), or -1."""
        return self._total_duration

    @property
    def time_series(self) -> list[tuple[int, float]]:
        """Recorded (timestamp, value) pairs in chronological order."""
        return list(zip(self._times, self._values))

    @property
    def timestamps(self) -> ndarray:
        return np.asarray(self._times, dtype=np.uint32)

    @property
    def values(self) -> ndarray:
        return np.asarray(self._values, dtype=np.float32)

    @property
    def sink(self) -> GroupFileSink | None:
        return self._sink

    @property
    def header_pending(self) -> bool:
        return self._header_pending

    def __len__(self) -> int:
        return len(self._times)

    # -- session control -----------------------------------------------

    def reset(self) -> None:
        """Clear the series and set every time field back to unset."""
        require(not self._recording, "GroupRecorder.reset", "cannot reset while recording")
        self._start_time = UNSET
        self._current_session_start = UNSET
        self._stop_time = UNSET
        self._accumulated_duration = 0
        self._total_duration = UNSET
        self._times.clear()
        self._values.clear()

    def begin_session(self) -> None:
        """Start recording at the current simulation time."""
        require(
            not self._recording,
            "GroupRecorder.begin_session",
            "recording has already been started",
        )

        if not self._persistent:
            self.reset()

        # Must run before the flag flips, so data produced before now is
        # flushed without being recorded.
        self.engine.update_group_monitor(self.group_id)

        self._recording = True
        now = self.engine.get_sim_time_ms()

        if self._persistent:
            if self._start_time < 0:
                self._start_time = now
            self._current_session_start = now
            self._accumulated_duration = self._total_duration if self._total_duration > 0 else 0
        else:
            self._start_time = now
            self._current_session_start = now
            self._accumulated_duration = 0

        self._log().debug(
            "GroupRecorder(grp=%d): session started at t=%d ms (persistent=%s)",
            self.group_id,
            now,
            self._persistent,
        )

    def end_session(self) -> None:
        """Stop recording and update total_duration."""
        require(
            self._recording,
            "GroupRecorder.end_session",
            "recording has not been started",
        )
        require(
            self._start_time >= 0
            and self._current_session_start >= 0
            and self._accumulated_duration >= 0,
            "GroupRecorder.end_session",
            f"inconsistent session times: start={self._start_time}, "
            f"session_start={self._current_session_start}, "
            f"accumulated={self._accumulated_duration}",
        )

        # Companion monitor must be up to date before the flag flips
        self.engine.update_spike_monitor(self.group_id)

        self._recording = False
        self._stop_time = self.engine.get_sim_time_ms()
        self._total_duration = (
            self._stop_time - self._current_session_start + self._accumulated_duration
        )
        require(
            self._total_duration >= 0,
            "GroupRecorder.end_session",
            f"negative total duration {self._total_duration} ms",
        )

        self._log().debug(
            "GroupRecorder(grp=%d): session stopped at t=%d ms, total %d ms",
            self.group_id,
            self._stop_time,
            self._total_duration,
        )

    def record(self, timestamp: int, value: float) -> None:
        """Append one data point; only legal while recording."""
        require(
            self._recording,
            "GroupRecorder.record",
            "cannot record data while not recording",
        )
        require(
            0 <= timestamp <= MAX_RECORD_TIME,
            "GroupRecorder.record",
            f"timestamp {timestamp} ms is outside [0, {MAX_RECORD_TIME}]",
        )
        self._times.append(int(timestamp))
        self._values.append(float(value))

    # -- file output ---------------------------------------------------

    def attach_sink(self, sink: GroupFileSink | None) -> None:
        """Take ownership of sink and write the file header to it.

        Passing None disables header writing. A sink can be attached only once.
        """
        require(
            not self._recording,
            "GroupRecorder.attach_sink",
            "cannot attach a sink while recording",
        )
        require(
            self._sink is None,
            "GroupRecorder.attach_sink",
            "a sink has already been attached",
        )

        self._sink = sink
        if sink is None:
            self._header_pending = False
        else:
            self._header_pending = True
            self.write_header()

    def write_header(self) -> None:
        """Write the fixed header once to the attached sink.

        Raises:
            SinkWriteError: If any part of the header cannot be written
        """
        if not self._header_pending or self._sink is None:
            return

        grid = self.engine.get_group_grid3d(self.group_id)
        self._sink.write(
            encode_header(grid.x, grid.y, grid.z), origin="GroupRecorder.write_header"
        )
        self._header_pending = False
        self._log().debug(
            "GroupRecorder(grp=%d): wrote header to %s (grid %dx%dx%d)",
            self.group_id,
            self._sink.name,
            grid.x,
            grid.y,
            grid.z,
        )

    def write_records(self, points: Iterable[tuple[int, float]]) -> None:
        """Append binary records for points to the sink, if one is attached."""
        if self._sink is None:
            return
        points = list(points)
        if not points:
            return
        self.write_header()
        times, values = zip(*points)
        require(
            all(0 <= t <= MAX_RECORD_TIME for t in times),
            "GroupRecorder.write_records",
            f"record times must be in [0, {MAX_RECORD_TIME}]",
        )
        self._sink.write(encode_records(times, values), origin="GroupRecorder.write_records")

    def summary(self) -> str:
        """Describe the recorded state; only legal while not recording."""
        require(
            not self._recording,
            "GroupRecorder.summary",
            "cannot summarize while recording",
        )
        return (
            f"GroupRecorder(grp={self.group_id}, neurons={self.neuron_count}, "
            f"persistent={self._persistent}): {len(self)} records, "
            f"start={self._start_time} ms, stop={self._stop_time} ms, "
            f"total={self._total_duration} ms"
        )

    def close(self) -> None:
        """Release the sink if it is still open."""
        if self._sink is not None and not self._sink.closed:
            self._sink.close()

    def __enter__(self) -> "GroupRecorder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _log(self) -> logging.Logger:
        assert self._logger is not None
        return self._logger
