"""Capabilities a recorder needs from its engine."""

from __future__ import annotations

import logging
from typing import Protocol

from groupmon.core.group import Grid3D


class EngineContext(Protocol):
    """Narrow view of the simulation engine used by GroupRecorder.

    Implemented by SimulationEngine and by the fake engine in the tests.
    """

    def get_sim_time_ms(self) -> int:
        """Return the current simulation time in milliseconds."""
        ...

    def get_group_num_neurons(self, group_id: int) -> int:
        ...

    def get_group_grid3d(self, group_id: int) -> Grid3D:
        ...

    def update_group_monitor(self, group_id: int) -> None:
        """Flush pending activity of the group into its monitor and file."""
        ...

    def update_spike_monitor(self, group_id: int) -> None:
        """Ask the companion spike monitor of the group to synchronize."""
        ...

    def get_logger(self) -> logging.Logger:
        ...
