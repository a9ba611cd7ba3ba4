from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional
import math

from .geometry_utils import Segment, segment_intersect, distance_squared


@dataclass
class SensorConfig:
    """Configuration for the ring of distance sensors around the vehicle."""

    num_sensors: int
    sensor_range: float


class Sensor:
    """Single distance ray anchored to the vehicle.

    The ray starts at the vehicle centre and points along the vehicle heading
    plus ``offset``. Its length is ``sensor_range + vehicle_radius`` so that
    readings are normalized against the whole ray, vehicle body included.

    Readings use squared distances: ``min_d2 / (sensor_range + r) ** 2``.
    A reading of 1.0 means nothing within range; lower means closer. Readings
    stay in (0, 1] for any collision-free pose; 0 needs an obstacle through the
    vehicle centre, which the simulator never accepts as a pose.
    """

    def __init__(self, offset: float, sensor_range: float) -> None:
        if sensor_range <= 0.0:
            raise ValueError(f"sensor_range must be positive, got {sensor_range}")
        self.offset = offset
        self.sensor_range = sensor_range
        self.ray: Optional[Segment] = None
        self.max_distance_sq = 0.0
        self.value = 1.0

    def reposition(self, x: float, y: float, theta: float, radius: float) -> Segment:
        """Rebuild the ray from the vehicle pose for the current tick."""
        length = self.sensor_range + radius
        angle = theta + self.offset
        self.ray = Segment(x, y, x + length * math.cos(angle), y + length * math.sin(angle))
        self.max_distance_sq = length * length
        return self.ray

    def compute_reading(self, obstacles: Iterable[Segment]) -> float:
        """Normalized squared distance to the nearest obstacle along the ray."""
        if self.ray is None:
            raise RuntimeError("sensor must be repositioned before computing a reading")
        ray = self.ray
        min_distance_sq = self.max_distance_sq
        for obs in obstacles:
            hit = segment_intersect(ray.x1, ray.y1, ray.x2, ray.y2, obs.x1, obs.y1, obs.x2, obs.y2)
            if hit is None:
                continue
            d2 = distance_squared(ray.x1, ray.y1, hit.x, hit.y)
            if d2 < min_distance_sq:
                min_distance_sq = d2
        self.value = min_distance_sq / self.max_distance_sq
        return self.value


def make_sensor_ring(config: SensorConfig) -> List[Sensor]:
    """Sensors spaced equally around the vehicle, the first one facing forward."""
    if config.num_sensors < 1:
        raise ValueError(f"num_sensors must be >= 1, got {config.num_sensors}")
    spacing = 2.0 * math.pi / config.num_sensors
    return [Sensor(i * spacing, config.sensor_range) for i in range(config.num_sensors)]
