"""Recorder state machine and the engine that drives it."""

from groupmon.core.context import EngineContext
from groupmon.core.engine import EngineState, SimulationEngine, noise_activity_source
from groupmon.core.group import ALL, Grid3D, Group
from groupmon.core.recorder import UNSET, GroupRecorder

__all__ = [
    "ALL",
    "EngineContext",
    "EngineState",
    "Grid3D",
    "Group",
    "GroupRecorder",
    "SimulationEngine",
    "UNSET",
    "noise_activity_source",
]
