import pytest

from outdoornav.maps_builder import Parameters, Perception
from outdoornav.pointcloud_builder import PointcloudMapsBuilder


def _ready(perceptions, overrides=None):
    builder = PointcloudMapsBuilder(Parameters(overrides), perceptions)
    builder.on_configure()
    builder.on_activate()
    received = []
    builder.publisher.subscribe(received.append)
    return builder, received


def test_declares_defaults():
    params = Parameters()
    PointcloudMapsBuilder(params, [])
    assert params["pcl.downsample_resolution"] == 1.0
    assert params["pcl.perception_default_frame"] == "map"


def test_publisher_topic():
    builder = PointcloudMapsBuilder(Parameters(), [])
    assert builder.publisher.topic == "map_builder/cloud_filtered"


def test_configure_reads_overrides():
    builder = PointcloudMapsBuilder(
        Parameters({"pcl.downsample_resolution": 0.5, "pcl.perception_default_frame": "odom"}), []
    )
    builder.on_configure()
    assert builder.downsample_resolution == 0.5
    assert builder.perception_default_frame == "odom"


def test_cycle_publishes_downsampled_cloud():
    perceptions = [
        Perception(points=[(0.1, 0.1, 0.1), (0.3, 0.5, 0.7), (5.5, 5.5, 5.5)], stamp=12.0, valid=True)
    ]
    builder, received = _ready(perceptions)
    builder.cycle()
    assert len(received) == 1
    msg = received[0]
    assert msg.header.frame_id == "map"
    assert msg.header.stamp == 12.0
    assert len(msg.points) == 2
    assert (5.5, 5.5, 5.5) in msg.points


def test_cycle_uses_frame_override():
    perceptions = [Perception(points=[(1.0, 1.0, 1.0)], valid=True)]
    builder, received = _ready(perceptions, {"pcl.perception_default_frame": "odom"})
    builder.cycle()
    assert received[0].header.frame_id == "odom"


def test_no_publish_without_subscribers():
    perceptions = [Perception(points=[(1.0, 1.0, 1.0)], valid=True)]
    builder = PointcloudMapsBuilder(Parameters(), perceptions)
    builder.on_configure()
    builder.on_activate()
    builder.cycle()
    assert builder.publisher.last_message is None


def test_no_publish_when_no_points():
    builder, received = _ready([Perception(valid=False)])
    builder.cycle()
    assert received == []


def test_inactive_publisher_drops():
    perceptions = [Perception(points=[(1.0, 1.0, 1.0)], valid=True)]
    builder, received = _ready(perceptions)
    builder.on_deactivate()
    builder.cycle()
    assert received == []
    builder.on_activate()
    builder.cycle()
    assert len(received) == 1


def test_cycle_before_configure_raises():
    builder = PointcloudMapsBuilder(Parameters(), [])
    with pytest.raises(RuntimeError):
        builder.cycle()


def test_cleanup_releases_publisher():
    builder, _ = _ready([])
    builder.on_cleanup()
    assert builder.publisher is None
    with pytest.raises(RuntimeError):
        builder.cycle()