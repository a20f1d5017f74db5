"""Lifecycle node that owns the map builders and the shared sensor perception."""

from __future__ import annotations

import enum
import logging
import time
from typing import Any, Callable, Iterable, Mapping

from outdoornav.gridmap_builder import GridMapMapsBuilder
from outdoornav.maps_builder import MapsBuilder, Parameters, Perception
from outdoornav.pointcloud_builder import PointcloudMapsBuilder

logger = logging.getLogger(__name__)

NODE_NAME = "outdoor_maps_builder_node"
SENSOR_TOPIC_PARAM = "sensor_topic"
MAP_TYPES_PARAM = "map_types"

_BUILDER_TYPES: dict[str, Callable[[Parameters, list[Perception]], MapsBuilder]] = {
    "pcl": PointcloudMapsBuilder,
    "gridmap": GridMapMapsBuilder,
}


class LifecycleState(enum.Enum):
    """Primary states of a managed node."""

    UNCONFIGURED = "unconfigured"
    INACTIVE = "inactive"
    ACTIVE = "active"
    FINALIZED = "finalized"


class LifecycleError(RuntimeError):
    """A transition was not allowed from the current state, or its callback failed."""


class OutdoorMapsBuilderNode:
    """Runs a set of map builders over the point clouds of one sensor.

    The lifecycle callbacks (``on_*``) raise on failure. The transition methods
    (``configure``, ``activate``, ...) check the current state, run the callback
    and move to the next state, raising LifecycleError when either step fails.
    """

    def __init__(self, parameters: Parameters | Mapping[str, Any] | None = None):
        if isinstance(parameters, Parameters):
            self.parameters = parameters
        else:
            self.parameters = Parameters(parameters)
        self.name = NODE_NAME
        self.parameters.declare(SENSOR_TOPIC_PARAM, "points")
        self.parameters.declare(MAP_TYPES_PARAM, [])
        self.state = LifecycleState.UNCONFIGURED
        self.builders: list[MapsBuilder] = []
        self.sensor_topic = ""
        self._perceptions: list[Perception] = []
        self._sensor_entry: Perception | None = None

    @property
    def perceptions(self) -> list[Perception]:
        """The perceptions shared with the builders."""
        return self._perceptions

    def __enter__(self) -> OutdoorMapsBuilderNode:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def on_configure(self) -> None:
        """Create the requested builders, configure them and open the sensor entry."""
        self.sensor_topic = str(self.parameters[SENSOR_TOPIC_PARAM])
        map_types = self.parameters[MAP_TYPES_PARAM]
        if isinstance(map_types, str):
            map_types = [map_types]

        self._perceptions = []
        for map_type in map_types:
            factory = _BUILDER_TYPES.get(map_type)
            if factory is None:
                logger.warning("Unknown map type: '%s'", map_type)
                continue
            logger.info("Adding map builder type: '%s'", map_type)
            self.builders.append(factory(self.parameters, self._perceptions))

        for builder in self.builders:
            try:
                builder.on_configure()
            except Exception:
                logger.error("Failed to configure a builder")
                raise

        entry = Perception(frame_id="", stamp=time.time(), valid=False, new_data=True)
        self._perceptions.append(entry)
        self._sensor_entry = entry

    def on_activate(self) -> None:
        self._run_on_builders("on_activate", "activate")

    def on_deactivate(self) -> None:
        self._run_on_builders("on_deactivate", "deactivate")

    def on_cleanup(self) -> None:
        self._run_on_builders("on_cleanup", "cleanup")
        self.builders.clear()
        self._perceptions.clear()
        self._sensor_entry = None

    def _run_on_builders(self, method: str, verb: str) -> None:
        for builder in self.builders:
            try:
                getattr(builder, method)()
            except Exception:
                logger.error("Failed to %s a builder", verb)
                raise

    def _transition(
        self,
        allowed: Iterable[LifecycleState],
        target: LifecycleState,
        callback: Callable[[], None],
        name: str,
    ) -> None:
        if self.state not in tuple(allowed):
            raise LifecycleError(f"cannot {name} from state {self.state.value}")
        try:
            callback()
        except Exception as exc:
            raise LifecycleError(f"{name} failed: {exc}") from exc
        self.state = target

    def configure(self) -> None:
        self._transition(
            (LifecycleState.UNCONFIGURED,), LifecycleState.INACTIVE, self.on_configure, "configure"
        )

    def activate(self) -> None:
        self._transition(
            (LifecycleState.INACTIVE,), LifecycleState.ACTIVE, self.on_activate, "activate"
        )

    def deactivate(self) -> None:
        self._transition(
            (LifecycleState.ACTIVE,), LifecycleState.INACTIVE, self.on_deactivate, "deactivate"
        )

    def cleanup(self) -> None:
        self._transition(
            (LifecycleState.INACTIVE,), LifecycleState.UNCONFIGURED, self.on_cleanup, "cleanup"
        )

    def shutdown(self) -> None:
        """Finalize the node; later calls do nothing."""
        if self.state is LifecycleState.FINALIZED:
            return
        self.state = LifecycleState.FINALIZED
        self._sensor_entry = None

    def cycle(self) -> None:
        """Let every builder process the perceptions, then mark them as seen."""
        for builder in self.builders:
            builder.cycle()
        for perception in self._perceptions:
            if perception.new_data:
                perception.new_data = False

    def receive_point_cloud(
        self,
        points: Iterable[Iterable[float]],
        frame_id: str = "",
        stamp: float | None = None,
    ) -> bool:
        """Store a cloud from the sensor; return False when no subscription is open."""
        entry = self._sensor_entry
        if entry is None:
            return False
        entry.points = [tuple(float(v) for v in point) for point in points]
        entry.frame_id = frame_id
        entry.stamp = time.time() if stamp is None else stamp
        entry.valid = True
        entry.new_data = True
        return True