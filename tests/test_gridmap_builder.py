import math

import pytest

from outdoornav.gridmap_builder import ELEVATION, GridMap, GridMapMapsBuilder
from outdoornav.maps_builder import Parameters, Perception


def _ready(perceptions, overrides=None):
    builder = GridMapMapsBuilder(Parameters(overrides), perceptions)
    builder.on_configure()
    builder.on_activate()
    received = []
    builder.publisher.subscribe(received.append)
    return builder, received


def test_set_geometry_fills_layers_with_nan():
    grid = GridMap([ELEVATION])
    grid.set_geometry(4.0, 2.0, 1.0, 0.0, 0.0)
    assert grid.size == (4, 2)
    assert len(grid[ELEVATION]) == 4
    assert all(len(row) == 2 for row in grid[ELEVATION])
    assert all(math.isnan(v) for row in grid[ELEVATION] for v in row)


def test_index_of_max_corner_is_origin():
    grid = GridMap([ELEVATION])
    grid.set_geometry(4.0, 2.0, 1.0, 0.0, 0.0)
    assert grid.index_of(2.0, 1.0) == (0, 0)


def test_index_of_min_corner_is_last_cell():
    grid = GridMap([ELEVATION])
    grid.set_geometry(4.0, 2.0, 1.0, 0.0, 0.0)
    size_x, size_y = grid.size
    assert grid.index_of(-2.0, -1.0) == (size_x - 1, size_y - 1)


def test_index_of_outside_is_none():
    grid = GridMap([ELEVATION])
    grid.set_geometry(4.0, 2.0, 1.0, 0.0, 0.0)
    assert grid.index_of(5.0, 0.0) is None
    assert grid.index_of(0.0, float("nan")) is None


def test_every_inside_position_has_valid_index():
    grid = GridMap([ELEVATION])
    grid.set_geometry(6.0, 3.0, 1.0, 10.0, -5.0)
    for k in range(25):
        x = 7.0 + k * 0.24
        y = -6.5 + (k % 7) * 0.5
        i, j = grid.index_of(x, y)
        assert 0 <= i < grid.size[0]
        assert 0 <= j < grid.size[1]


def test_set_geometry_rejects_bad_resolution():
    grid = GridMap([ELEVATION])
    with pytest.raises(ValueError):
        grid.set_geometry(1.0, 1.0, 0.0, 0.0, 0.0)


def test_declares_defaults():
    params = Parameters()
    builder = GridMapMapsBuilder(params, [])
    assert params["gridmap.downsample_resolution"] == 1.0
    assert params["gridmap.perception_default_frame"] == "map"
    assert builder.publisher.topic == "map_builder/grid_map"


def test_cycle_publishes_elevation_grid():
    points = [(0.0, 0.0, 2.0), (4.0, 4.0, 4.0)]
    perceptions = [Perception(points=points, stamp=1.5, valid=True)]
    builder, received = _ready(perceptions, {"gridmap.perception_default_frame": "odom"})
    builder.cycle()
    assert len(received) == 1
    grid = received[0]
    assert grid.frame_id == "odom"
    assert grid.timestamp == 1_500_000_000
    layer = grid[ELEVATION]
    touched = set()
    for x, y, z in points:
        i, j = grid.index_of(x, y)
        touched.add((i, j))
        assert layer[i][j] == pytest.approx(z / 2.0)
    for i, row in enumerate(layer):
        for j, value in enumerate(row):
            if (i, j) not in touched:
                assert value == 0.0


def test_single_point_gives_empty_grid():
    perceptions = [Perception(points=[(2.0, 3.0, 1.0)], valid=True)]
    builder, received = _ready(perceptions)
    builder.cycle()
    assert received[0].size == (0, 0)


def test_no_publish_without_points_or_subscribers():
    builder, received = _ready([Perception(valid=False)])
    builder.cycle()
    assert received == []
    lonely = GridMapMapsBuilder(Parameters(), [Perception(points=[(1.0, 1.0, 1.0)], valid=True)])
    lonely.on_configure()
    lonely.on_activate()
    lonely.cycle()
    assert lonely.publisher.last_message is None


def test_cleanup_and_unconfigured_raise():
    fresh = GridMapMapsBuilder(Parameters(), [])
    with pytest.raises(RuntimeError):
        fresh.cycle()
    builder, _ = _ready([])
    builder.on_cleanup()
    with pytest.raises(RuntimeError):
        builder.on_activate()