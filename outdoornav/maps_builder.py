"""Shared perception data, node parameters and the base class of map builders."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

XYZ = tuple[float, float, float]


@dataclass
class Perception:
    """The latest point set received from one sensor."""

    points: list[XYZ] = field(default_factory=list)
    frame_id: str = ""
    stamp: float = 0.0
    valid: bool = False
    new_data: bool = False


class Parameters:
    """Named settings of a node; overrides given up front win over declared defaults."""

    def __init__(self, overrides: Mapping[str, Any] | None = None):
        self._overrides = dict(overrides or {})
        self._values: dict[str, Any] = {}

    def declare(self, name: str, default: Any) -> Any:
        """Declare a parameter once and return its value; later declarations are ignored."""
        if name not in self._values:
            self._values[name] = self._overrides.get(name, default)
        return self._values[name]

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> Any:
        try:
            return self._values[name]
        except KeyError:
            raise KeyError(f"parameter {name!r} has not been declared") from None

    def __setitem__(self, name: str, value: Any) -> None:
        if name not in self._values:
            raise KeyError(f"parameter {name!r} has not been declared")
        self._values[name] = value


def downsample(points: Iterable[XYZ], resolution: float) -> list[XYZ]:
    """Replace the points in each cubic voxel of the given size by their centroid.

    Non-finite points are dropped. The result is ordered by voxel.
    """
    if not resolution > 0:
        raise ValueError(f"resolution must be positive, got {resolution}")
    voxels: dict[tuple[int, int, int], list[float]] = {}
    for x, y, z in points:
        if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
            continue
        key = (
            math.floor(x / resolution),
            math.floor(y / resolution),
            math.floor(z / resolution),
        )
        acc = voxels.setdefault(key, [0.0, 0.0, 0.0, 0])
        acc[0] += x
        acc[1] += y
        acc[2] += z
        acc[3] += 1
    return [(sx / n, sy / n, sz / n) for _, (sx, sy, sz, n) in sorted(voxels.items())]


def fused_points(perceptions: Iterable[Perception]) -> list[XYZ]:
    """All points of the valid perceptions, in order."""
    return [point for perception in perceptions if perception.valid for point in perception.points]


class MapsBuilder(ABC):
    """A map representation built from the shared perceptions.

    Lifecycle callbacks raise on failure and return nothing on success.
    """

    def __init__(self, parameters: Parameters, perceptions: list[Perception]):
        self.parameters = parameters
        self.perceptions = perceptions

    def _current_points(self, resolution: float) -> list[XYZ]:
        return downsample(fused_points(self.perceptions), resolution)

    @abstractmethod
    def on_configure(self) -> None:
        """Read the settings the builder needs."""

    @abstractmethod
    def on_activate(self) -> None:
        """Start publishing."""

    @abstractmethod
    def on_deactivate(self) -> None:
        """Stop publishing."""

    @abstractmethod
    def on_cleanup(self) -> None:
        """Release what the builder holds."""

    @abstractmethod
    def cycle(self) -> None:
        """Process the current perceptions and publish the result."""