"""Map builder that publishes an elevation grid made from the point cloud."""

from __future__ import annotations

import math
from typing import Iterable

from outdoornav.maps_builder import MapsBuilder, Parameters, Perception
from outdoornav.messages import Publisher

TOPIC = "map_builder/grid_map"
RESOLUTION_PARAM = "gridmap.downsample_resolution"
FRAME_PARAM = "gridmap.perception_default_frame"
ELEVATION = "elevation"
CELL_RESOLUTION = 1.0

_FLT_MAX = 3.4028234663852886e38
# Smallest positive single-precision value: the initial maximum of the bounds.
_FLT_MIN = 1.1754943508222875e-38


class GridMap:
    """A rectangular grid of cells with one value per layer.

    Index (0, 0) is the cell at the maximum x and maximum y corner.
    """

    def __init__(self, layers: Iterable[str], frame_id: str = "", timestamp: int = 0):
        self.layers = list(layers)
        self.frame_id = frame_id
        self.timestamp = timestamp
        self.resolution = 0.0
        self.length_x = 0.0
        self.length_y = 0.0
        self.center_x = 0.0
        self.center_y = 0.0
        self.size: tuple[int, int] = (0, 0)
        self.data: dict[str, list[list[float]]] = {layer: [] for layer in self.layers}

    def __getitem__(self, layer: str) -> list[list[float]]:
        return self.data[layer]

    def set_geometry(
        self,
        length_x: float,
        length_y: float,
        resolution: float,
        center_x: float,
        center_y: float,
    ) -> None:
        """Resize the grid; every layer is filled with NaN."""
        if not resolution > 0:
            raise ValueError(f"resolution must be positive, got {resolution}")
        if length_x < 0 or length_y < 0:
            raise ValueError("grid lengths must not be negative")
        size_x = math.floor(length_x / resolution + 0.5)
        size_y = math.floor(length_y / resolution + 0.5)
        self.size = (size_x, size_y)
        self.resolution = resolution
        self.length_x = size_x * resolution
        self.length_y = size_y * resolution
        self.center_x = center_x
        self.center_y = center_y
        self.data = {
            layer: [[math.nan] * size_y for _ in range(size_x)] for layer in self.layers
        }

    def index_of(self, x: float, y: float) -> tuple[int, int] | None:
        """Cell holding the position, or None when it lies outside the grid."""
        size_x, size_y = self.size
        if size_x == 0 or size_y == 0:
            return None
        half_x = self.length_x / 2.0
        half_y = self.length_y / 2.0
        if not (
            self.center_x - half_x <= x <= self.center_x + half_x
            and self.center_y - half_y <= y <= self.center_y + half_y
        ):
            return None
        i = min(int((self.center_x + half_x - x) / self.resolution), size_x - 1)
        j = min(int((self.center_y + half_y - y) / self.resolution), size_y - 1)
        return i, j


class GridMapMapsBuilder(MapsBuilder):
    """Publishes an elevation grid covering the downsampled perceptions."""

    def __init__(self, parameters: Parameters, perceptions: list[Perception]):
        super().__init__(parameters, perceptions)
        parameters.declare(RESOLUTION_PARAM, 1.0)
        parameters.declare(FRAME_PARAM, "map")
        self.publisher: Publisher[GridMap] | None = Publisher(
            TOPIC, active=False, transient_local=True
        )
        self.downsample_resolution: float | None = None
        self.perception_default_frame: str | None = None

    def _require_publisher(self) -> Publisher[GridMap]:
        if self.publisher is None:
            raise RuntimeError("grid map builder has been cleaned up")
        return self.publisher

    def on_configure(self) -> None:
        self.downsample_resolution = float(self.parameters[RESOLUTION_PARAM])
        self.perception_default_frame = str(self.parameters[FRAME_PARAM])

    def on_activate(self) -> None:
        self._require_publisher().activate()

    def on_deactivate(self) -> None:
        self._require_publisher().deactivate()

    def on_cleanup(self) -> None:
        self.publisher = None

    def cycle(self) -> None:
        """Build and publish the elevation grid when someone listens and there are points."""
        publisher = self._require_publisher()
        if self.downsample_resolution is None:
            raise RuntimeError("grid map builder is not configured")
        if publisher.subscription_count == 0:
            return
        points = self._current_points(self.downsample_resolution)
        if not points:
            return

        grid = GridMap(
            [ELEVATION],
            frame_id=self.perception_default_frame,
            timestamp=round(self.perceptions[0].stamp * 1e9),
        )

        min_x, max_x = _FLT_MAX, _FLT_MIN
        min_y, max_y = _FLT_MAX, _FLT_MIN
        for x, y, z in points:
            if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
                continue
            min_x, max_x = min(min_x, x), max(max_x, x)
            min_y, max_y = min(min_y, y), max(max_y, y)

        grid.set_geometry(
            max_x - min_x,
            max_y - min_y,
            CELL_RESOLUTION,
            (max_x + min_x) / 2.0,
            (max_y + min_y) / 2.0,
        )
        layer = grid[ELEVATION]
        for row in layer:
            row[:] = [0.0] * len(row)

        for x, y, z in points:
            index = grid.index_of(x, y)
            if index is None:
                continue
            i, j = index
            cell = layer[i][j]
            layer[i][j] = z if math.isnan(cell) else (cell + z) / 2.0

        publisher.publish(grid)