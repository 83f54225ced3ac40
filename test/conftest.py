"""Shared fixtures: a fake engine with a settable clock."""

import io
import logging

import pytest

from groupmon.core.group import Grid3D
from groupmon.core.recorder import GroupRecorder
from groupmon.output.sink import GroupFileSink


class FakeEngine:
    """EngineContext implementation with a manual clock.

    Every sync request is logged in ``calls`` together with the recording
    flag of the recorder at the moment of the call.
    """

    def __init__(self, n_neurons: int = 100, grid: Grid3D = Grid3D(10, 10, 1)) -> None:
        self.now = 0
        self.n_neurons = n_neurons
        self.grid = grid
        self.recorder: GroupRecorder | None = None
        self.calls: list[tuple[str, int, bool | None]] = []
        self.logger = logging.getLogger("groupmon.test")

    def get_sim_time_ms(self) -> int:
        return self.now

    def get_group_num_neurons(self, group_id: int) -> int:
        return self.n_neurons

    def get_group_grid3d(self, group_id: int) -> Grid3D:
        return self.grid

    def update_group_monitor(self, group_id: int) -> None:
        self.calls.append(("group", group_id, self._recording()))

    def update_spike_monitor(self, group_id: int) -> None:
        self.calls.append(("spike", group_id, self._recording()))

    def get_logger(self) -> logging.Logger:
        return self.logger

    def _recording(self) -> bool | None:
        return None if self.recorder is None else self.recorder.is_recording


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def recorder(engine) -> GroupRecorder:
    rec = GroupRecorder(engine, group_id=0)
    engine.recorder = rec
    return rec


@pytest.fixture
def buffer_sink() -> tuple[GroupFileSink, io.BytesIO]:
    """Sink backed by an in-memory buffer."""
    buffer = io.BytesIO()
    return GroupFileSink(buffer, name="<buffer>"), buffer


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo logger configuration done by engines and configure_logging."""
    yield
    logger = logging.getLogger("groupmon")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
