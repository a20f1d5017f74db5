"""Plain message types shared by the navigation components, plus a simple publisher."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Generic, TypeVar

T = TypeVar("T")


@dataclass
class Point:
    """A position in space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Vector3:
    """A free vector in space."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Quaternion:
    """An orientation as a quaternion; the default is the identity rotation."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    def to_rpy(self) -> tuple[float, float, float]:
        """Return (roll, pitch, yaw) in radians of this rotation."""
        norm_sq = self.x * self.x + self.y * self.y + self.z * self.z + self.w * self.w
        if norm_sq == 0.0:
            raise ValueError("cannot take angles of a zero quaternion")
        s = 2.0 / norm_sq
        xs, ys, zs = self.x * s, self.y * s, self.z * s
        wx, wy, wz = self.w * xs, self.w * ys, self.w * zs
        xx, xy, xz = self.x * xs, self.x * ys, self.x * zs
        yy, yz, zz = self.y * ys, self.y * zs, self.z * zs

        m00 = 1.0 - (yy + zz)
        m10 = xy + wz
        m20 = xz - wy
        m21 = yz + wx
        m22 = 1.0 - (xx + yy)

        if abs(m20) >= 1.0:
            yaw = 0.0
            roll = math.atan2(m21, m22)
            pitch = math.pi / 2 if m20 < 0 else -math.pi / 2
            return roll, pitch, yaw

        pitch = -math.asin(m20)
        cos_pitch = math.cos(pitch)
        roll = math.atan2(m21 / cos_pitch, m22 / cos_pitch)
        yaw = math.atan2(m10 / cos_pitch, m00 / cos_pitch)
        return roll, pitch, yaw


@dataclass
class Pose:
    """A position together with an orientation."""

    position: Point = field(default_factory=Point)
    orientation: Quaternion = field(default_factory=Quaternion)


@dataclass
class Header:
    """Time stamp (seconds) and coordinate frame of a message."""

    stamp: float = 0.0
    frame_id: str = ""


@dataclass
class Twist:
    """Linear and angular velocity."""

    linear: Vector3 = field(default_factory=Vector3)
    angular: Vector3 = field(default_factory=Vector3)


@dataclass
class Odometry:
    """An estimated pose and velocity of a body in a frame."""

    header: Header = field(default_factory=Header)
    child_frame_id: str = ""
    pose: Pose = field(default_factory=Pose)
    twist: Twist = field(default_factory=Twist)


@dataclass
class TwistStamped:
    """A velocity command with a header."""

    header: Header = field(default_factory=Header)
    twist: Twist = field(default_factory=Twist)


@dataclass
class TransformStamped:
    """A rigid transform from header.frame_id to child_frame_id."""

    header: Header = field(default_factory=Header)
    child_frame_id: str = ""
    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)


@dataclass
class NavSatFix:
    """A satellite navigation fix in geographic coordinates (degrees, metres)."""

    header: Header = field(default_factory=Header)
    status: int = 0
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0


@dataclass
class Imu:
    """An inertial measurement."""

    header: Header = field(default_factory=Header)
    orientation: Quaternion = field(default_factory=Quaternion)
    angular_velocity: Vector3 = field(default_factory=Vector3)
    linear_acceleration: Vector3 = field(default_factory=Vector3)


@dataclass
class NavState:
    """What a navigation component sees on each update."""

    timestamp: float = 0.0
    odom: Odometry = field(default_factory=Odometry)
    goals: list[Pose] = field(default_factory=list)
    perceptions: list[Any] = field(default_factory=list)


@dataclass
class ColorRGBA:
    """A colour with alpha, each channel in [0, 1]."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 0.0


@dataclass
class Marker:
    """A visualisation primitive."""

    ARROW: ClassVar[int] = 0
    CUBE: ClassVar[int] = 1
    SPHERE: ClassVar[int] = 2
    ADD: ClassVar[int] = 0

    header: Header = field(default_factory=Header)
    ns: str = ""
    id: int = 0
    type: int = 0
    action: int = 0
    pose: Pose = field(default_factory=Pose)
    scale: Vector3 = field(default_factory=Vector3)
    color: ColorRGBA = field(default_factory=ColorRGBA)
    points: list[Point] = field(default_factory=list)


@dataclass
class MarkerArray:
    """A batch of markers."""

    markers: list[Marker] = field(default_factory=list)


class Publisher(Generic[T]):
    """An in-process topic that delivers messages to subscribed callbacks.

    An inactive publisher drops what it is given. A transient-local publisher
    hands its last message to every subscriber that joins later.
    """

    def __init__(self, topic: str, *, active: bool = True, transient_local: bool = False):
        self.topic = topic
        self.active = active
        self.transient_local = transient_local
        self.last_message: T | None = None
        self._callbacks: list[Callable[[T], Any]] = []

    @property
    def subscription_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], Any]) -> Callable[[], None]:
        """Register a callback; return a function that removes it again."""
        self._callbacks.append(callback)
        if self.transient_local and self.last_message is not None:
            callback(self.last_message)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def publish(self, message: T) -> bool:
        """Deliver a message; return False if it was dropped because inactive."""
        if not self.active:
            return False
        self.last_message = message
        for callback in list(self._callbacks):
            callback(message)
        return True

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False