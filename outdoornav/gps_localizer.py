"""Localizer that places the robot from satellite fixes and IMU orientation."""

from __future__ import annotations

import copy
import time
from typing import Callable

from outdoornav.messages import (
    Header,
    Imu,
    NavSatFix,
    NavState,
    Odometry,
    Point,
    Publisher,
    TransformStamped,
)
from outdoornav.utm import utm_forward

GPS_TOPIC = "robot/gps/fix"
IMU_TOPIC = "imu/data"
MAP_FRAME = "map"
ODOM_FRAME = "odom"
BASE_FRAME = "base_link"


class GpsLocalizer:
    """Estimates position in UTM metres relative to the first fix received.

    The first valid fix after start-up becomes the origin of the map frame;
    orientation is taken from the latest IMU message.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._odom = Odometry()
        self._origin = Point()
        self._gps = NavSatFix()
        self._imu = Imu()
        self.utm_zone = ""
        self.static_transforms: Publisher[TransformStamped] = Publisher(
            "tf_static", transient_local=True
        )

    @property
    def odom(self) -> Odometry:
        """The latest estimate."""
        return copy.deepcopy(self._odom)

    @property
    def origin(self) -> Point:
        """The UTM position used as the map origin."""
        return copy.copy(self._origin)

    def on_initialize(self) -> None:
        """Reset the estimate frames and announce the identity map-to-odom transform."""
        self._odom.header = Header(stamp=self._clock(), frame_id=MAP_FRAME)
        self._odom.child_frame_id = BASE_FRAME
        transform = TransformStamped(
            header=Header(stamp=self._clock(), frame_id=MAP_FRAME),
            child_frame_id=ODOM_FRAME,
        )
        self.static_transforms.publish(transform)

    def gps_callback(self, msg: NavSatFix) -> None:
        self._gps = msg

    def imu_callback(self, msg: Imu) -> None:
        self._imu = msg

    def update(self, nav_state: NavState) -> None:
        self.update_rt(nav_state)

    def update_rt(self, nav_state: NavState) -> None:
        """Recompute the estimate from the latest fix and orientation."""
        utm = utm_forward(self._gps.latitude, self._gps.longitude)
        self.utm_zone = utm.zone_label

        if self._origin == Point() and self._gps != NavSatFix():
            self._origin = Point(utm.easting, utm.northing)

        self._odom.header = Header(stamp=nav_state.timestamp, frame_id=MAP_FRAME)
        self._odom.child_frame_id = BASE_FRAME
        self._odom.pose.position.x = utm.easting - self._origin.x
        self._odom.pose.position.y = utm.northing - self._origin.y
        self._odom.pose.orientation = copy.copy(self._imu.orientation)