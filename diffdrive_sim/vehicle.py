from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Iterable, List
import math

import numpy as np

from .geometry_utils import Segment, normalize_angle_positive, regular_polygon, segment_intersect
from .sensors import Sensor, SensorConfig, make_sensor_ring


@dataclass
class VehicleState:
    """State of the vehicle in world coordinates.

    Attributes
    ----------
    x : float
        X position (meters).
    y : float
        Y position (meters).
    theta : float
        Heading (radians), CCW from +x, kept in [0, 2*pi).
    speed_left : float
        Left wheel speed (m/s).
    speed_right : float
        Right wheel speed (m/s).
    """

    x: float
    y: float
    theta: float
    speed_left: float
    speed_right: float


def integrate_pose(
    x: float,
    y: float,
    theta: float,
    speed_left: float,
    speed_right: float,
    radius: float,
    delta: float,
) -> Tuple[float, float, float]:
    """Advance a differential-drive pose by ``delta`` seconds.

    Closed-form circular-arc motion, exact for wheel speeds held constant over
    the step. ``radius`` is half the wheelbase.

    Equal wheel speeds move the vehicle in a straight line. Otherwise the pose
    rotates about the instantaneous center of curvature (ICC). The curvature
    radius is overridden to 0 for opposite speeds (spin in place) and then to
    ``radius`` when either wheel is stopped, in that order.
    """
    if speed_left == speed_right:
        speed = (speed_left + speed_right) / 2.0
        new_x = x + delta * speed * math.cos(theta)
        new_y = y + delta * speed * math.sin(theta)
        return new_x, new_y, theta

    R = radius * (speed_left + speed_right) / (speed_right - speed_left)
    if speed_right == -speed_left:
        R = 0.0
    if speed_right == 0.0 or speed_left == 0.0:
        R = radius

    icc_x = x - R * math.sin(theta)
    icc_y = y + R * math.cos(theta)
    omega = (speed_right - speed_left) / (2.0 * radius)

    c = math.cos(omega * delta)
    s = math.sin(omega * delta)
    new_x = c * (x - icc_x) - s * (y - icc_y) + icc_x
    new_y = s * (x - icc_x) + c * (y - icc_y) + icc_y
    new_theta = normalize_angle_positive(theta + omega * delta)
    return new_x, new_y, new_theta


class Vehicle:
    """Differential-drive vehicle with a ring of distance sensors.

    The footprint is a disc of radius ``radius`` centred on the pose. For
    intersection tests the disc is approximated by a regular polygon with
    ``body_segments`` edges.
    """

    def __init__(
        self,
        radius: float,
        max_speed: float,
        sensor_range: float,
        num_sensors: int,
        body_segments: int = 16,
    ) -> None:
        if radius <= 0.0:
            raise ValueError(f"radius must be positive, got {radius}")
        if max_speed < 0.0:
            raise ValueError(f"max_speed must be non-negative, got {max_speed}")
        if body_segments < 3:
            raise ValueError(f"body_segments must be >= 3, got {body_segments}")
        self.radius = radius
        self.max_speed = max_speed
        self.sensor_range = sensor_range
        self.body_segment_count = body_segments

        self.sensors: List[Sensor] = make_sensor_ring(
            SensorConfig(num_sensors=num_sensors, sensor_range=sensor_range)
        )
        self.sensor_values = np.ones(len(self.sensors), dtype=np.float64)
        self.state = VehicleState(x=0.0, y=0.0, theta=0.0, speed_left=0.0, speed_right=0.0)

    # ------------------------------------------------------------------
    # State manipulation
    # ------------------------------------------------------------------
    def reset(self, x: float, y: float, theta: float = 0.0) -> None:
        """Place the vehicle at a new pose with both wheels stopped."""
        self.state = VehicleState(
            x=x,
            y=y,
            theta=normalize_angle_positive(theta),
            speed_left=0.0,
            speed_right=0.0,
        )
        self.sensor_values = np.ones(len(self.sensors), dtype=np.float64)

    def get_state(self) -> VehicleState:
        """Return a copy of current state."""
        s = self.state
        return VehicleState(
            x=s.x, y=s.y, theta=s.theta, speed_left=s.speed_left, speed_right=s.speed_right
        )

    def set_wheel_speeds(self, left_fraction: float, right_fraction: float) -> None:
        """Scale motor activations by the max wheel speed. Values are not clamped."""
        self.state.speed_left = float(left_fraction) * self.max_speed
        self.state.speed_right = float(right_fraction) * self.max_speed

    # ------------------------------------------------------------------
    # Kinematics
    # ------------------------------------------------------------------
    def next_pose(self, delta: float) -> Tuple[float, float, float]:
        """Pose after ``delta`` seconds at the current wheel speeds."""
        s = self.state
        return integrate_pose(s.x, s.y, s.theta, s.speed_left, s.speed_right, self.radius, delta)

    # ------------------------------------------------------------------
    # Sensing and collision
    # ------------------------------------------------------------------
    def update_sensors(self, obstacles: Iterable[Segment]) -> np.ndarray:
        """Reposition every sensor at the current pose and refresh readings."""
        obstacles = tuple(obstacles)
        s = self.state
        for i, sensor in enumerate(self.sensors):
            sensor.reposition(s.x, s.y, s.theta, self.radius)
            self.sensor_values[i] = sensor.compute_reading(obstacles)
        return self.sensor_values

    def body_segments(self) -> List[Segment]:
        """Polygon edges approximating the vehicle disc at the current pose."""
        s = self.state
        return regular_polygon(s.x, s.y, self.radius, self.body_segment_count, phase=s.theta)

    def collides(self, obstacles: Iterable[Segment]) -> bool:
        """True if any body edge intersects any obstacle."""
        body = self.body_segments()
        for obs in obstacles:
            for edge in body:
                if segment_intersect(
                    edge.x1, edge.y1, edge.x2, edge.y2, obs.x1, obs.y1, obs.x2, obs.y2
                ) is not None:
                    return True
        return False
