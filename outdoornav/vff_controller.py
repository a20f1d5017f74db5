"""Virtual force field controller: steer toward a goal while pushed away from obstacles."""

from __future__ import annotations

import copy
import enum
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from outdoornav.messages import (
    ColorRGBA,
    Header,
    Marker,
    MarkerArray,
    NavState,
    Point,
    Publisher,
    Twist,
    TwistStamped,
)

logger = logging.getLogger(__name__)

BASE_FRAME = "base_link"
MARKERS_TOPIC = "vff/markers_vff"
CLOSEST_POINT_MARKER_ID = 456
GOAL_CHANGE_TOLERANCE = 0.01
PRE_FILTER_BOUND = 10.0

XYZ = tuple[float, float, float]


def normalize_angle(angle: float) -> float:
    """Wrap an angle in radians into [-pi, pi)."""
    angle = math.fmod(angle + math.pi, 2.0 * math.pi)
    if angle < 0:
        angle += 2.0 * math.pi
    return angle - math.pi


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _xyz(point: Any) -> XYZ:
    if hasattr(point, "x"):
        return float(point.x), float(point.y), float(getattr(point, "z", 0.0))
    x, y, *rest = point
    return float(x), float(y), float(rest[0]) if rest else 0.0


def _perception_points(perception: Any) -> Iterable[Any]:
    if getattr(perception, "valid", True) is False:
        return ()
    points = getattr(perception, "points", None)
    return perception if points is None else points


def _in_box(point: XYZ, low: XYZ, high: XYZ) -> bool:
    return all(lo <= v <= hi for v, lo, hi in zip(point, low, high))


class VFFColor(enum.Enum):
    """Colour of a force vector in the debug markers."""

    RED = 0
    GREEN = 1
    BLUE = 2


_COLOR_CHANNELS = {
    VFFColor.RED: ColorRGBA(r=1.0, a=1.0),
    VFFColor.GREEN: ColorRGBA(g=1.0, a=1.0),
    VFFColor.BLUE: ColorRGBA(b=1.0, a=1.0),
}


@dataclass
class VFFVectors:
    """Attractive, repulsive and resulting 2-D force vectors."""

    attractive: list[float] = field(default_factory=lambda: [0.0, 0.0])
    repulsive: list[float] = field(default_factory=lambda: [0.0, 0.0])
    result: list[float] = field(default_factory=lambda: [0.0, 0.0])


@dataclass
class VffParameters:
    """Tuning of the controller; distances in metres, speeds in m/s and rad/s."""

    distance_obstacle_detection: float = 3.0
    distance_to_goal: float = 1.0
    obstacle_detection_x_min: float = 0.5
    obstacle_detection_x_max: float = 10.0
    obstacle_detection_y_min: float = -10.0
    obstacle_detection_y_max: float = 10.0
    obstacle_detection_z_min: float = 0.10
    obstacle_detection_z_max: float = 1.00
    max_speed: float = 0.8
    max_angular_speed: float = 1.5

    @property
    def box_min(self) -> XYZ:
        return (
            self.obstacle_detection_x_min,
            self.obstacle_detection_y_min,
            self.obstacle_detection_z_min,
        )

    @property
    def box_max(self) -> XYZ:
        return (
            self.obstacle_detection_x_max,
            self.obstacle_detection_y_max,
            self.obstacle_detection_z_max,
        )


class VffController:
    """Computes velocity commands toward the first goal with a virtual force field.

    Perceptions in the navigation state are taken to be point sets in the
    robot frame: either objects with a ``points`` attribute or plain
    iterables of points given as (x, y, z) sequences or objects with x, y, z.
    """

    def __init__(
        self,
        parameters: VffParameters | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.parameters = parameters if parameters is not None else VffParameters()
        self._clock = clock
        self._cmd_vel = TwistStamped(header=Header(frame_id=BASE_FRAME))
        self.goal = Point()
        self.previous_goal: Point | None = None
        self.target_reached = False
        self.markers: Publisher[MarkerArray] = Publisher(MARKERS_TOPIC)

    @property
    def cmd_vel(self) -> TwistStamped:
        """The last computed velocity command."""
        return copy.deepcopy(self._cmd_vel)

    def on_initialize(self) -> None:
        """Reset the command to zero velocity in the robot frame."""
        self._cmd_vel = TwistStamped(
            header=Header(stamp=self._clock(), frame_id=BASE_FRAME),
            twist=Twist(),
        )

    def make_marker(self, vector: Sequence[float], color: VFFColor, frame_id: str) -> Marker:
        """Build an arrow marker for one force vector."""
        end = Point()
        start = Point(x=vector[0], y=vector[1])
        return Marker(
            header=Header(stamp=self._clock(), frame_id=frame_id),
            id=color.value,
            type=Marker.ARROW,
            points=[end, start],
            scale=_ArrowScale.make(),
            color=copy.copy(_COLOR_CHANNELS[color]),
        )

    def debug_markers(self, vectors: VFFVectors, frame_id: str) -> MarkerArray:
        """Arrows for the attractive (blue), repulsive (red) and result (green) vectors."""
        return MarkerArray(
            markers=[
                self.make_marker(vectors.attractive, VFFColor.BLUE, frame_id),
                self.make_marker(vectors.repulsive, VFFColor.RED, frame_id),
                self.make_marker(vectors.result, VFFColor.GREEN, frame_id),
            ]
        )

    def compute_vff(self, angle_error: float, points: Iterable[Any], frame_id: str) -> VFFVectors:
        """Combine attraction toward the goal with repulsion from the closest point."""
        vectors = VFFVectors(attractive=[math.cos(angle_error), math.sin(angle_error)])

        closest: XYZ = (0.0, 0.0, 0.0)
        min_distance = math.inf
        for point in map(_xyz, points):
            distance = math.hypot(point[0], point[1])
            if distance < min_distance:
                min_distance = distance
                closest = point

        threshold = self.parameters.distance_obstacle_detection
        if min_distance < threshold:
            opposite = math.atan2(closest[1], closest[0]) + math.pi
            strength = threshold - min_distance
            vectors.repulsive = [math.cos(opposite) * strength, math.sin(opposite) * strength]

        vectors.result = [a + r for a, r in zip(vectors.attractive, vectors.repulsive)]

        if self.markers.subscription_count > 0:
            sphere = Marker(
                header=Header(stamp=self._clock(), frame_id=self._cmd_vel.header.frame_id),
                id=CLOSEST_POINT_MARKER_ID,
                type=Marker.SPHERE,
                color=ColorRGBA(r=1.0, a=1.0),
            )
            sphere.pose.position = Point(*closest)
            sphere.scale.x = sphere.scale.y = sphere.scale.z = 0.1
            array = self.debug_markers(vectors, frame_id)
            array.markers.append(sphere)
            self.markers.publish(array)

        return vectors

    def _obstacle_points(self, perceptions: Iterable[Any]) -> list[XYZ]:
        outer_min = (-PRE_FILTER_BOUND,) * 3
        outer_max = (PRE_FILTER_BOUND,) * 3
        box_min, box_max = self.parameters.box_min, self.parameters.box_max
        return [
            point
            for perception in perceptions
            for point in map(_xyz, _perception_points(perception))
            if _in_box(point, outer_min, outer_max) and _in_box(point, box_min, box_max)
        ]

    def update_rt(self, nav_state: NavState) -> None:
        """Update the velocity command from the current pose, goal and perceptions."""
        if not nav_state.goals:
            return

        position = nav_state.odom.pose.position
        target = nav_state.goals[0].position
        new_goal = Point(target.x, target.y)

        if self.previous_goal is None or math.hypot(
            new_goal.x - self.previous_goal.x, new_goal.y - self.previous_goal.y
        ) > GOAL_CHANGE_TOLERANCE:
            logger.info("New goal [%f, %f]", new_goal.x, new_goal.y)
            self.target_reached = False
            self.previous_goal = copy.copy(new_goal)

        self.goal = new_goal

        dx = self.goal.x - position.x
        dy = self.goal.y - position.y
        distance = math.hypot(dx, dy)
        bearing = normalize_angle(math.atan2(dy, dx))
        _, _, yaw = nav_state.odom.pose.orientation.to_rpy()
        angle_error = normalize_angle(bearing - yaw)

        if distance < self.parameters.distance_to_goal:
            if self.target_reached:
                return
            logger.info("Target reached")
            self._cmd_vel.twist.linear.x = 0.0
            self._cmd_vel.twist.angular.z = 0.0
            self.goal = Point()
            self.target_reached = True
            return
        self.target_reached = False

        points = self._obstacle_points(nav_state.perceptions)
        vff = self.compute_vff(angle_error, points, self._cmd_vel.header.frame_id)

        vx, vy = vff.result
        angle = math.atan2(vy, vx)
        module = math.hypot(vx, vy)

        self._cmd_vel.header.stamp = nav_state.timestamp
        self._cmd_vel.twist.linear.x = _clamp(module, 0.0, self.parameters.max_speed)
        limit = self.parameters.max_angular_speed
        self._cmd_vel.twist.angular.z = _clamp(angle, -limit, limit)
        logger.info("[distance: %.2f, yaw_error: %.2f]", distance, angle_error)


class _ArrowScale:
    @staticmethod
    def make():
        from outdoornav.messages import Vector3

        return Vector3(x=0.05, y=0.1)