import math

import pytest

from outdoornav.gps_localizer import GpsLocalizer
from outdoornav.messages import Imu, NavSatFix, NavState, Point, Quaternion
from outdoornav.utm import utm_forward


@pytest.fixture
def localizer():
    loc = GpsLocalizer(clock=lambda: 42.0)
    loc.on_initialize()
    return loc


def test_initialize_sets_frames(localizer):
    odom = localizer.odom
    assert odom.header.frame_id == "map"
    assert odom.child_frame_id == "base_link"
    assert odom.header.stamp == 42.0


def test_initialize_publishes_identity_map_to_odom(localizer):
    received = []
    localizer.static_transforms.subscribe(received.append)
    assert len(received) == 1
    transform = received[0]
    assert transform.header.frame_id == "map"
    assert transform.child_frame_id == "odom"
    assert transform.rotation == Quaternion()
    assert (transform.translation.x, transform.translation.y, transform.translation.z) == (0.0, 0.0, 0.0)


def test_without_fix_origin_stays_zero(localizer):
    localizer.update_rt(NavState(timestamp=5.0))
    raw = utm_forward(0.0, 0.0)
    assert localizer.origin == Point()
    assert localizer.odom.pose.position.x == pytest.approx(raw.easting)
    assert localizer.odom.pose.position.y == pytest.approx(raw.northing)


def test_first_fix_becomes_origin(localizer):
    localizer.gps_callback(NavSatFix(latitude=40.3, longitude=-3.8))
    localizer.update_rt(NavState(timestamp=1.5))
    odom = localizer.odom
    assert odom.pose.position.x == pytest.approx(0.0)
    assert odom.pose.position.y == pytest.approx(0.0)
    assert odom.header.stamp == 1.5
    start = utm_forward(40.3, -3.8)
    assert localizer.origin == Point(start.easting, start.northing)


def test_later_fix_is_relative_to_origin(localizer):
    localizer.gps_callback(NavSatFix(latitude=40.3, longitude=-3.8))
    localizer.update(NavState(timestamp=1.0))
    localizer.gps_callback(NavSatFix(latitude=40.301, longitude=-3.799))
    localizer.update(NavState(timestamp=2.0))
    start = utm_forward(40.3, -3.8)
    now = utm_forward(40.301, -3.799)
    odom = localizer.odom
    assert odom.pose.position.x == pytest.approx(now.easting - start.easting)
    assert odom.pose.position.y == pytest.approx(now.northing - start.northing)
    assert odom.pose.position.x > 0
    assert odom.pose.position.y > 0


def test_zone_label_follows_fix(localizer):
    localizer.gps_callback(NavSatFix(latitude=-33.0, longitude=151.0))
    localizer.update_rt(NavState())
    assert localizer.utm_zone == utm_forward(-33.0, 151.0).zone_label
    assert localizer.utm_zone.endswith("S")


def test_orientation_comes_from_imu(localizer):
    q = Quaternion(z=math.sin(0.3), w=math.cos(0.3))
    localizer.imu_callback(Imu(orientation=q))
    localizer.update_rt(NavState())
    assert localizer.odom.pose.orientation == q


def test_odom_is_a_copy(localizer):
    localizer.update_rt(NavState())
    raw = utm_forward(0.0, 0.0)
    odom = localizer.odom
    odom.pose.position.x = 1e9
    assert localizer.odom.pose.position.x == pytest.approx(raw.easting)


def test_bad_latitude_raises(localizer):
    localizer.gps_callback(NavSatFix(latitude=120.0, longitude=0.0))
    with pytest.raises(ValueError):
        localizer.update_rt(NavState())