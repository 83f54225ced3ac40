"""Group geometry and bookkeeping for the reference engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, NamedTuple

# Wildcard group id; never valid where a single group is required
ALL = -1


class Grid3D(NamedTuple):
    """3D arrangement of the neurons of a group."""

    x: int
    y: int
    z: int

    @property
    def n_neurons(self) -> int:
        return self.x * self.y * self.z


@dataclass
class Group:
    """A neuron group registered with the engine.

    Attributes:
        group_id: Index assigned at creation
        name: Human-readable name
        grid: 3D geometry; the group size is grid.n_neurons
        activity_source: Callable producing the group's activity at a time in ms
        pending: Activity points produced since the last monitor flush
    """

    group_id: int
    name: str
    grid: Grid3D
    activity_source: Callable[[int], float] | None = None
    pending: list[tuple[int, float]] = field(default_factory=list, repr=False)

    @property
    def n_neurons(self) -> int:
        return self.grid.n_neurons
