"""Event system for monitor synchronization."""

from groupmon.events.bus import (
    EventBus,
    GroupMonitorSyncEvent,
    SpikeMonitorSyncEvent,
    StepEvent,
)

__all__ = ["EventBus", "GroupMonitorSyncEvent", "SpikeMonitorSyncEvent", "StepEvent"]
