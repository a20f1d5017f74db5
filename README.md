# outdoornav

Building blocks for outdoor robot navigation, in plain Python with no
third-party dependencies.

- `outdoornav.utm` – `utm_forward(latitude, longitude)` projects a WGS84
  position into its standard UTM zone (or UPS near the poles) and returns a
  `UtmCoordinate` with `zone`, `northp`, `easting`, `northing` and a
  `zone_label` such as `"30N"`. A latitude outside [-90, 90] raises
  `ValueError`.
- `outdoornav.gps_localizer.GpsLocalizer` – keeps the latest `NavSatFix`
  and `Imu` (fed through `gps_callback` and `imu_callback`). On `update` /
  `update_rt` it projects the fix to UTM, takes the first non-empty fix as the
  map origin and sets `odom` to the position relative to that origin, with the
  orientation copied from the IMU. `on_initialize` publishes an identity
  `map` → `odom` transform on its `static_transforms` publisher.
- `outdoornav.vff_controller.VffController` – a virtual force field
  controller. `update_rt(nav_state)` steers toward the first goal: an
  attractive unit vector points at the goal, a repulsive vector pushes away
  from the closest obstacle point within `distance_obstacle_detection`, and
  their sum gives the command in `cmd_vel`, clamped by `max_speed` and
  `max_angular_speed`. Inside `distance_to_goal` the robot is stopped. Tuning
  lives in `VffParameters`; debug arrows are published on `markers` when
  something is subscribed. `normalize_angle` wraps angles into [-π, π).
- `outdoornav.node.OutdoorMapsBuilderNode` – a lifecycle node that holds one
  sensor perception and runs map builders over it:
  - `outdoornav.pointcloud_builder.PointcloudMapsBuilder` publishes the
    voxel-downsampled cloud as a `PointCloudMessage`;
  - `outdoornav.gridmap_builder.GridMapMapsBuilder` publishes a `GridMap`
    with an `elevation` layer of 1 m cells covering the downsampled points.
- `outdoornav.messages` – the plain dataclass messages used throughout
  (`Point`, `Pose`, `Odometry`, `TwistStamped`, `NavSatFix`, `Imu`,
  `NavState`, `Marker`, ...) and `Publisher`, an in-process topic with
  `subscribe`, `publish`, `activate` and `deactivate`.
- `outdoornav.maps_builder` – `Perception`, `Parameters`, the abstract
  `MapsBuilder`, and the helpers `downsample(points, resolution)` (voxel
  centroids) and `fused_points(perceptions)`.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Converting a GPS fix to UTM

```python
from outdoornav.utm import utm_forward

coord = utm_forward(40.4168, -3.7038)
print(coord.zone_label, coord.easting, coord.northing)
```

## Building maps

The node goes through `configure()`, `activate()`, `deactivate()`,
`cleanup()` and `shutdown()`; a transition from the wrong state, or one whose
builder callback fails, raises `outdoornav.node.LifecycleError`. Used as a
context manager, the node is shut down on exit.

Builders are chosen with the `map_types` parameter (`"pcl"` and/or
`"gridmap"`); unknown types are logged as warnings and skipped. Each builder
publishes only while active and only when its publisher has a subscriber.

```python
from outdoornav.node import OutdoorMapsBuilderNode

received = []
with OutdoorMapsBuilderNode({"map_types": ["pcl", "gridmap"]}) as node:
    node.configure()
    for builder in node.builders:
        builder.publisher.subscribe(received.append)
    node.activate()

    node.receive_point_cloud([(1.0, 2.0, 0.3), (4.5, 6.0, 0.4)], "map", 0.0)
    node.cycle()
```

`receive_point_cloud` returns `False` when the node has no open sensor entry
(before `configure` or after `cleanup`/`shutdown`). `cycle()` marks the
perceptions as no longer new.

Parameters and their defaults:

| Parameter                          | Default  |
|------------------------------------|----------|
| `sensor_topic`                     | `points` |
| `map_types`                        | `[]`     |
| `pcl.downsample_resolution`        | `1.0`    |
| `pcl.perception_default_frame`     | `map`    |
| `gridmap.downsample_resolution`    | `1.0`    |
| `gridmap.perception_default_frame` | `map`    |

## Command line

```
outdoor-maps-builder --map-types pcl gridmap
```

This configures and activates a map builder node and runs its loop at
`--rate` Hz (default 100), calling `cycle()` while there is new perception
data. Other options: `--sensor-topic`, `--param NAME=VALUE` (the value is read
as JSON when it parses) and `--iterations N` to stop after N loop turns. The
command exits with status 1 if the node cannot be configured or activated.

## What this package does not do

There is no messaging middleware: `Publisher` delivers only to callbacks in
the same process, and `sensor_topic` is a stored name, not a connection. The
command line therefore receives no point clouds from outside and publishes
nothing beyond its own process; feed data through `receive_point_cloud` and
read results by subscribing to the builders' publishers in your own code.