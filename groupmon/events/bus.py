"""Event bus for monitor synchronization.

The engine publishes step and sync events; companion monitors (for example a
spike monitor living outside this package) subscribe to the events they care
about.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

T = TypeVar("T")


@dataclass
class StepEvent:
    """Event emitted after each simulated millisecond."""

    time_ms: int


@dataclass
class GroupMonitorSyncEvent:
    """Event emitted after the engine flushed a group's activity.

    Attributes:
        group_id: Group whose monitor was updated
        time_ms: Simulation time of the flush
        n_points: Number of activity points flushed
    """

    group_id: int
    time_ms: int
    n_points: int


@dataclass
class SpikeMonitorSyncEvent:
    """Request for the companion spike monitor of a group to synchronize."""

    group_id: int
    time_ms: int


class EventBus:
    """Typed publish/subscribe bus.

    Handlers are called synchronously, in subscription order.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe handler to event type.

        Args:
            event_type: The type of event to subscribe to
            handler: Callable that receives events of the given type
        """
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def emit(self, event: Any) -> None:
        """Deliver event to every handler subscribed to its exact type."""
        for handler in self._handlers[type(event)]:
            handler(event)
