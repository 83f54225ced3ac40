"""Unit tests for GroupRecorder.

Tests the session state machine, duration accounting and header writing.
"""

import io

import numpy as np
import pytest

from groupmon.core.group import Grid3D
from groupmon.core.recorder import UNSET, GroupRecorder
from groupmon.errors import ErrorClass, ProtocolViolation, SinkWriteError
from groupmon.output.header import (
    GROUP_FILE_SIGNATURE,
    HEADER_DTYPE,
    HEADER_LEN,
    MAX_RECORD_TIME,
)
from groupmon.output.sink import GroupFileSink

from conftest import FakeEngine


class TestRecorderCreation:
    """Test GroupRecorder initialization."""

    def test_queries_neuron_count(self, engine) -> None:
        """init should store the group size reported by the engine."""
        engine.n_neurons = 42
        recorder = GroupRecorder(engine, group_id=3)
        assert recorder.neuron_count == 42
        assert recorder.group_id == 3

    def test_zero_neurons_is_fatal(self) -> None:
        """A group without neurons cannot be monitored."""
        with pytest.raises(ProtocolViolation):
            GroupRecorder(FakeEngine(n_neurons=0), group_id=0)

    def test_initial_state_idle(self, recorder) -> None:
        """A new recorder should be idle and transient."""
        assert not recorder.is_recording
        assert not recorder.persistent_mode

    def test_initial_times_unset(self, recorder) -> None:
        """All time fields should start at their sentinel values."""
        assert recorder.start_time == UNSET
        assert recorder.current_session_start == UNSET
        assert recorder.stop_time == UNSET
        assert recorder.total_duration == UNSET
        assert recorder.accumulated_duration == 0

    def test_initial_series_empty(self, recorder) -> None:
        assert recorder.time_series == []
        assert len(recorder) == 0


class TestRecorderTransientSessions:
    """Test sessions with persistent mode off."""

    def test_begin_session_sets_times(self, engine, recorder) -> None:
        """begin_session should set both start times to now."""
        engine.now = 100
        recorder.begin_session()

        assert recorder.is_recording
        assert recorder.start_time == 100
        assert recorder.current_session_start == 100
        assert recorder.accumulated_duration == 0

    def test_single_session_example(self, engine, recorder) -> None:
        """Session [100, 200] with two points should total 100 ms."""
        engine.now = 100
        recorder.begin_session()
        recorder.record(100, 0.5)
        recorder.record(150, 0.7)
        engine.now = 200
        recorder.end_session()

        assert not recorder.is_recording
        assert recorder.stop_time == 200
        assert recorder.total_duration == 100
        assert recorder.time_series == [(100, 0.5), (150, 0.7)]

    def test_second_session_discards_first(self, engine, recorder) -> None:
        """Only the last session should count in transient mode."""
        engine.now = 0
        recorder.begin_session()
        recorder.record(10, 1.0)
        engine.now = 50
        recorder.end_session()

        engine.now = 200
        recorder.begin_session()
        recorder.record(210, 2.0)
        engine.now = 230
        recorder.end_session()

        assert recorder.total_duration == 30
        assert recorder.start_time == 200
        assert recorder.time_series == [(210, 2.0)]

    def test_zero_length_session(self, engine, recorder) -> None:
        engine.now = 70
        recorder.begin_session()
        recorder.end_session()
        assert recorder.total_duration == 0


class TestRecorderPersistentSessions:
    """Test sessions with persistent mode on."""

    def test_durations_accumulate(self, engine, recorder) -> None:
        """Sessions [0, 50] and [200, 230] should total 80 ms, not 230."""
        recorder.persistent_mode = True

        engine.now = 0
        recorder.begin_session()
        engine.now = 50
        recorder.end_session()
        assert recorder.total_duration == 50

        engine.now = 200
        recorder.begin_session()
        assert recorder.accumulated_duration == 50
        engine.now = 230
        recorder.end_session()

        assert recorder.total_duration == 80

    def test_start_time_set_only_once(self, engine, recorder) -> None:
        """start_time should keep the first session start."""
        recorder.persistent_mode = True

        engine.now = 10
        recorder.begin_session()
        engine.now = 20
        recorder.end_session()
        engine.now = 40
        recorder.begin_session()

        assert recorder.start_time == 10
        assert recorder.current_session_start == 40

    def test_series_accumulates(self, engine, recorder) -> None:
        """Points from every session should be kept."""
        recorder.persistent_mode = True

        recorder.begin_session()
        recorder.record(1, 0.1)
        engine.now = 5
        recorder.end_session()
        recorder.begin_session()
        recorder.record(6, 0.2)
        recorder.end_session()

        assert recorder.time_series == [(1, 0.1), (6, 0.2)]

    def test_reset_clears_accumulated_time(self, engine, recorder) -> None:
        """An explicit reset should start accounting from scratch."""
        recorder.persistent_mode = True
        recorder.begin_session()
        engine.now = 50
        recorder.end_session()

        recorder.reset()
        engine.now = 100
        recorder.begin_session()
        engine.now = 110
        recorder.end_session()

        assert recorder.total_duration == 10
        assert recorder.start_time == 100

    def test_switch_to_transient_discards_total(self, engine, recorder) -> None:
        recorder.persistent_mode = True
        recorder.begin_session()
        engine.now = 50
        recorder.end_session()

        recorder.persistent_mode = False
        engine.now = 60
        recorder.begin_session()
        engine.now = 70
        recorder.end_session()

        assert recorder.total_duration == 10


class TestRecorderProtocolViolations:
    """Wrong-state calls must fail loudly."""

    def test_record_while_idle_fails(self, recorder) -> None:
        with pytest.raises(ProtocolViolation):
            recorder.record(0, 1.0)
        assert recorder.time_series == []

    def test_reset_while_recording_fails(self, recorder) -> None:
        recorder.begin_session()
        with pytest.raises(ProtocolViolation):
            recorder.reset()

    def test_begin_twice_fails(self, recorder) -> None:
        recorder.begin_session()
        with pytest.raises(ProtocolViolation):
            recorder.begin_session()

    def test_end_while_idle_fails(self, recorder) -> None:
        with pytest.raises(ProtocolViolation):
            recorder.end_session()

    def test_clock_going_backwards_fails(self, engine, recorder) -> None:
        """A negative total duration is an invariant violation."""
        engine.now = 100
        recorder.begin_session()
        engine.now = 50
        with pytest.raises(ProtocolViolation):
            recorder.end_session()

    def test_persistent_mode_locked_while_recording(self, recorder) -> None:
        recorder.begin_session()
        with pytest.raises(ProtocolViolation):
            recorder.persistent_mode = True

    def test_summary_while_recording_fails(self, recorder) -> None:
        recorder.begin_session()
        with pytest.raises(ProtocolViolation):
            recorder.summary()

    def test_negative_timestamp_rejected(self, recorder) -> None:
        recorder.begin_session()
        with pytest.raises(ProtocolViolation):
            recorder.record(-1, 0.5)
        assert len(recorder) == 0
        assert recorder.timestamps.size == 0

    def test_timestamp_beyond_uint32_rejected(self, recorder) -> None:
        """A time the file cannot hold must not reach the series."""
        recorder.begin_session()
        with pytest.raises(ProtocolViolation):
            recorder.record(MAX_RECORD_TIME + 1, 0.5)
        assert len(recorder) == 0

    def test_largest_timestamp_accepted(self, recorder) -> None:
        recorder.begin_session()
        recorder.record(MAX_RECORD_TIME, 0.5)
        assert recorder.timestamps[0] == MAX_RECORD_TIME

    def test_violation_is_tagged_protocol(self, recorder) -> None:
        with pytest.raises(ProtocolViolation) as exc_info:
            recorder.record(0, 0.0)
        assert exc_info.value.error_class is ErrorClass.PROTOCOL
        assert "GroupRecorder.record" in str(exc_info.value)

    def test_violation_is_not_an_exception(self, recorder) -> None:
        """Fatal errors must not be caught by generic exception handlers."""
        with pytest.raises(SystemExit):
            try:
                recorder.record(0, 0.0)
            except Exception:
                pytest.fail("fatal error swallowed by except Exception")


class TestRecorderReset:
    """Test reset() while idle."""

    def test_reset_restores_sentinels(self, engine, recorder) -> None:
        recorder.begin_session()
        recorder.record(1, 1.0)
        engine.now = 10
        recorder.end_session()

        recorder.reset()

        assert recorder.time_series == []
        assert recorder.start_time == UNSET
        assert recorder.current_session_start == UNSET
        assert recorder.stop_time == UNSET
        assert recorder.total_duration == UNSET
        assert recorder.accumulated_duration == 0


class TestRecorderSyncOrdering:
    """Sync requests must happen before the recording flag flips."""

    def test_begin_syncs_group_monitor_while_idle(self, engine, recorder) -> None:
        recorder.begin_session()
        assert engine.calls == [("group", 0, False)]

    def test_end_syncs_spike_monitor_while_recording(self, engine, recorder) -> None:
        recorder.begin_session()
        recorder.end_session()
        assert engine.calls[-1] == ("spike", 0, True)

    def test_transient_reset_happens_before_sync(self, engine, recorder) -> None:
        """Data flushed during begin_session must not be wiped by the implicit reset."""
        recorder.begin_session()
        recorder.record(1, 1.0)
        recorder.end_session()

        def flush_into_recorder(group_id):
            engine.calls.append(("group", group_id, recorder.is_recording))
            assert recorder.time_series == []

        engine.update_group_monitor = flush_into_recorder
        recorder.begin_session()
        assert engine.calls[-1] == ("group", 0, False)


class TestRecorderSeriesViews:
    """Test numpy views of the recorded series."""

    def test_arrays_have_file_dtypes(self, recorder) -> None:
        recorder.begin_session()
        recorder.record(5, 0.25)
        recorder.record(6, 0.5)

        assert recorder.timestamps.dtype == np.uint32
        assert recorder.values.dtype == np.float32
        np.testing.assert_array_equal(recorder.timestamps, [5, 6])
        np.testing.assert_array_equal(recorder.values, [0.25, 0.5])


class TestRecorderSink:
    """Test sink attachment and header writing."""

    def test_no_header_pending_before_attach(self, recorder) -> None:
        """Without a sink there is no header to write."""
        assert recorder.sink is None
        assert not recorder.header_pending

    def test_attach_writes_header(self, engine, recorder, buffer_sink) -> None:
        sink, buffer = buffer_sink
        engine.grid = Grid3D(4, 5, 6)

        recorder.attach_sink(sink)

        data = buffer.getvalue()
        assert len(data) == HEADER_LEN
        header = np.frombuffer(data, dtype=HEADER_DTYPE)[0]
        assert header["signature"] == GROUP_FILE_SIGNATURE
        assert header["version"] == np.float32(0.2)
        assert (header["grid_x"], header["grid_y"], header["grid_z"]) == (4, 5, 6)
        assert not recorder.header_pending

    def test_header_written_once(self, recorder, buffer_sink) -> None:
        sink, buffer = buffer_sink
        recorder.attach_sink(sink)
        recorder.write_header()
        recorder.write_header()
        assert len(buffer.getvalue()) == HEADER_LEN

    def test_attach_none_disables_header(self, recorder) -> None:
        recorder.attach_sink(None)
        assert recorder.sink is None
        assert not recorder.header_pending
        recorder.write_header()

    def test_attach_twice_fails(self, recorder, buffer_sink) -> None:
        sink, _ = buffer_sink
        recorder.attach_sink(sink)
        with pytest.raises(ProtocolViolation):
            recorder.attach_sink(GroupFileSink(io.BytesIO()))

    def test_attach_while_recording_fails(self, recorder, buffer_sink) -> None:
        sink, _ = buffer_sink
        recorder.begin_session()
        with pytest.raises(ProtocolViolation):
            recorder.attach_sink(sink)

    def test_header_write_failure_is_fatal(self, recorder, tmp_path) -> None:
        handle = open(tmp_path / "group.grp", "wb")
        handle.close()
        with pytest.raises(SinkWriteError) as exc_info:
            recorder.attach_sink(GroupFileSink(handle))
        assert exc_info.value.error_class is ErrorClass.IO

    def test_write_records_appends_after_header(self, recorder, buffer_sink) -> None:
        sink, buffer = buffer_sink
        recorder.attach_sink(sink)
        recorder.write_records([(1, 0.5), (2, 0.75)])
        assert len(buffer.getvalue()) == HEADER_LEN + 2 * 8

    def test_write_records_out_of_range_time_is_fatal(self, recorder, buffer_sink) -> None:
        sink, buffer = buffer_sink
        recorder.attach_sink(sink)
        with pytest.raises(ProtocolViolation):
            recorder.write_records([(1, 0.5), (MAX_RECORD_TIME + 5, 0.5)])
        assert len(buffer.getvalue()) == HEADER_LEN

    def test_write_records_without_sink_is_noop(self, recorder) -> None:
        recorder.write_records([(1, 0.5)])

    def test_close_releases_sink(self, recorder, tmp_path) -> None:
        sink = GroupFileSink.open(tmp_path / "group.grp")
        recorder.attach_sink(sink)
        recorder.close()
        assert sink.closed
        recorder.close()

    def test_context_manager_closes_sink(self, engine, tmp_path) -> None:
        sink = GroupFileSink.open(tmp_path / "group.grp")
        with GroupRecorder(engine, group_id=0) as recorder:
            recorder.attach_sink(sink)
        assert sink.closed


class TestRecorderSummary:
    def test_summary_mentions_totals(self, engine, recorder) -> None:
        recorder.begin_session()
        recorder.record(0, 1.0)
        engine.now = 25
        recorder.end_session()

        text = recorder.summary()
        assert "1 records" in text
        assert "total=25 ms" in text
