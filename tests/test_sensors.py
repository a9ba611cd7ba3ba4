from __future__ import annotations

import math

import pytest

from diffdrive_sim.geometry_utils import Segment
from diffdrive_sim.sensors import Sensor, SensorConfig, make_sensor_ring
from diffdrive_sim.vehicle import Vehicle


def _sensor_at_origin(offset: float = 0.0, theta: float = 0.0) -> Sensor:
    # range 0.5 + radius 0.5 gives a unit-length ray
    sensor = Sensor(offset=offset, sensor_range=0.5)
    sensor.reposition(0.0, 0.0, theta, 0.5)
    return sensor


def test_reading_is_one_without_obstacles() -> None:
    sensor = _sensor_at_origin()
    assert sensor.compute_reading([]) == 1.0


def test_reading_uses_squared_distance() -> None:
    sensor = _sensor_at_origin()
    wall = Segment(0.5, -1.0, 0.5, 1.0)
    # 0.5 m out of a 1 m ray reads 0.25, not 0.5
    assert math.isclose(sensor.compute_reading([wall]), 0.25)


def test_reading_keeps_the_nearest_obstacle() -> None:
    sensor = _sensor_at_origin()
    far = Segment(0.8, -1.0, 0.8, 1.0)
    near = Segment(0.5, -1.0, 0.5, 1.0)
    assert math.isclose(sensor.compute_reading([near, far]), 0.25)
    assert math.isclose(sensor.compute_reading([far, near]), 0.25)


def test_obstacles_out_of_range_or_behind_are_ignored() -> None:
    sensor = _sensor_at_origin()
    beyond = Segment(1.5, -1.0, 1.5, 1.0)
    behind = Segment(-0.5, -1.0, -0.5, 1.0)
    assert sensor.compute_reading([beyond, behind]) == 1.0


def test_ray_follows_heading_plus_offset() -> None:
    sensor = _sensor_at_origin(offset=math.pi / 2.0, theta=0.0)
    ceiling = Segment(-1.0, 0.5, 1.0, 0.5)
    wall_ahead = Segment(0.5, -1.0, 0.5, 1.0)
    assert sensor.compute_reading([wall_ahead]) == 1.0
    assert math.isclose(sensor.compute_reading([ceiling]), 0.25)


def test_reading_requires_a_ray() -> None:
    sensor = Sensor(offset=0.0, sensor_range=1.0)
    with pytest.raises(RuntimeError):
        sensor.compute_reading([])


def test_sensor_ring_is_evenly_spaced() -> None:
    sensors = make_sensor_ring(SensorConfig(num_sensors=4, sensor_range=1.0))
    offsets = [s.offset for s in sensors]
    assert offsets[0] == 0.0
    for a, b in zip(offsets, [0.0, math.pi / 2.0, math.pi, 1.5 * math.pi]):
        assert math.isclose(a, b)


def test_vehicle_readings_stay_in_unit_interval_inside_a_box() -> None:
    box = [
        Segment(0.0, 0.0, 1.0, 0.0),
        Segment(1.0, 0.0, 1.0, 1.0),
        Segment(1.0, 1.0, 0.0, 1.0),
        Segment(0.0, 1.0, 0.0, 0.0),
    ]
    vehicle = Vehicle(radius=0.1, max_speed=1.0, sensor_range=0.5, num_sensors=12)
    vehicle.reset(0.3, 0.6, 0.4)
    readings = vehicle.update_sensors(box)
    assert readings.shape == (12,)
    assert all(0.0 < r <= 1.0 for r in readings)
    assert min(readings) < 1.0
