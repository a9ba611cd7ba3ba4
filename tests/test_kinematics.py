from __future__ import annotations

import math

import pytest

from diffdrive_sim.vehicle import Vehicle, integrate_pose


def test_equal_speeds_drive_straight() -> None:
    theta = math.pi / 3.0
    x, y, new_theta = integrate_pose(1.0, 2.0, theta, 0.4, 0.4, radius=0.17, delta=0.5)
    assert math.isclose(x, 1.0 + 0.2 * math.cos(theta))
    assert math.isclose(y, 2.0 + 0.2 * math.sin(theta))
    assert new_theta == theta


def test_opposite_speeds_spin_in_place() -> None:
    x, y, theta = integrate_pose(1.0, 2.0, 0.3, -0.4, 0.4, radius=0.2, delta=0.1)
    # omega = (0.4 - -0.4) / (2 * 0.2) = 2 rad/s
    assert x == 1.0
    assert y == 2.0
    assert math.isclose(theta, 0.5)


def test_heading_wraps_into_zero_two_pi() -> None:
    _, _, theta = integrate_pose(0.0, 0.0, 0.05, 0.4, -0.4, radius=0.2, delta=0.1)
    assert math.isclose(theta, 2.0 * math.pi - 0.15)
    assert 0.0 <= theta < 2.0 * math.pi


def test_arc_stays_on_circle_around_icc() -> None:
    # R = 0.1 * 0.8 / 0.4 = 0.2, omega = 0.4 / 0.2 = 2
    x, y, theta = integrate_pose(0.0, 0.0, 0.0, 0.2, 0.6, radius=0.1, delta=0.25)
    icc_x, icc_y = 0.0, 0.2
    assert math.isclose(math.hypot(x - icc_x, y - icc_y), 0.2)
    assert math.isclose(theta, 0.5)
    assert math.isclose(x, 0.2 * math.sin(0.5))
    assert math.isclose(y, 0.2 - 0.2 * math.cos(0.5))


def test_stopped_left_wheel_pivots_at_radius() -> None:
    x, y, theta = integrate_pose(0.0, 0.0, 0.0, 0.0, 0.4, radius=0.1, delta=0.25)
    assert math.isclose(math.hypot(x - 0.0, y - 0.1), 0.1)
    assert math.isclose(theta, 0.5)


def test_stopped_right_wheel_also_uses_positive_radius() -> None:
    # The stopped-wheel override forces R = +r even when turning clockwise,
    # so the ICC sits on the left of the vehicle.
    x, y, theta = integrate_pose(0.0, 0.0, 0.0, 0.4, 0.0, radius=0.1, delta=0.25)
    assert math.isclose(math.hypot(x - 0.0, y - 0.1), 0.1)
    assert math.isclose(x, 0.1 * math.sin(-0.5))
    assert math.isclose(y, 0.1 * (1.0 - math.cos(0.5)))
    assert math.isclose(theta, 2.0 * math.pi - 0.5)


def test_straight_integration_has_no_drift_over_many_steps() -> None:
    x, y, theta = 0.0, 0.0, 0.7
    for _ in range(1000):
        x, y, theta = integrate_pose(x, y, theta, 0.3, 0.3, radius=0.17, delta=0.005)
    assert math.isclose(x, 1.5 * math.cos(0.7), rel_tol=1e-9)
    assert math.isclose(y, 1.5 * math.sin(0.7), rel_tol=1e-9)
    assert theta == 0.7


def test_vehicle_scales_activations_without_clamping() -> None:
    vehicle = Vehicle(radius=0.17, max_speed=0.5, sensor_range=0.5, num_sensors=12)
    vehicle.reset(x=0.0, y=0.0, theta=0.0)
    vehicle.set_wheel_speeds(2.0, -0.5)
    state = vehicle.get_state()
    assert state.speed_left == 1.0
    assert state.speed_right == -0.25


def test_vehicle_rejects_bad_geometry() -> None:
    with pytest.raises(ValueError):
        Vehicle(radius=0.0, max_speed=0.5, sensor_range=0.5, num_sensors=12)
    with pytest.raises(ValueError):
        Vehicle(radius=0.17, max_speed=0.5, sensor_range=0.5, num_sensors=0)
    with pytest.raises(ValueError):
        Vehicle(radius=0.17, max_speed=0.5, sensor_range=0.5, num_sensors=12, body_segments=2)
