"""Map builder that publishes the downsampled point cloud."""

from __future__ import annotations

from dataclasses import dataclass, field

from outdoornav.maps_builder import XYZ, MapsBuilder, Parameters, Perception
from outdoornav.messages import Header, Publisher

TOPIC = "map_builder/cloud_filtered"
RESOLUTION_PARAM = "pcl.downsample_resolution"
FRAME_PARAM = "pcl.perception_default_frame"


@dataclass
class PointCloudMessage:
    """A set of points in a frame."""

    header: Header = field(default_factory=Header)
    points: list[XYZ] = field(default_factory=list)


class PointcloudMapsBuilder(MapsBuilder):
    """Publishes the voxel-downsampled perceptions as a point cloud."""

    def __init__(self, parameters: Parameters, perceptions: list[Perception]):
        super().__init__(parameters, perceptions)
        parameters.declare(RESOLUTION_PARAM, 1.0)
        parameters.declare(FRAME_PARAM, "map")
        self.publisher: Publisher[PointCloudMessage] | None = Publisher(
            TOPIC, active=False, transient_local=True
        )
        self.downsample_resolution: float | None = None
        self.perception_default_frame: str | None = None

    def _require_publisher(self) -> Publisher[PointCloudMessage]:
        if self.publisher is None:
            raise RuntimeError("point cloud builder has been cleaned up")
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
        """Publish the downsampled cloud when someone listens and there are points."""
        publisher = self._require_publisher()
        if self.downsample_resolution is None:
            raise RuntimeError("point cloud builder is not configured")
        if publisher.subscription_count == 0:
            return
        points = self._current_points(self.downsample_resolution)
        if not points:
            return
        message = PointCloudMessage(
            header=Header(stamp=self.perceptions[0].stamp, frame_id=self.perception_default_frame),
            points=points,
        )
        publisher.publish(message)