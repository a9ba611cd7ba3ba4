"""
Top-level package for the 2D differential-drive coverage simulator.

Components:
- geometry_utils: segments, segment intersection, angle helpers
- sensors: distance rays with squared-distance readings
- vehicle: differential-drive kinematics, sensor ring, collision shape
- world: line-segment obstacles and the coverage grid
- simulator: per-run tick loop, collision rollback, coverage fitness
- env: Gymnasium-compatible wrapper around the simulator
- map_generator: procedural segment maps (arena, clutter, rooms)
"""

from .geometry_utils import Segment, intersects
from .world import World, Obstacle, CoverageGrid, OutOfBoundsError
from .vehicle import VehicleState, Vehicle, integrate_pose
from .sensors import Sensor, SensorConfig
from .simulator import Simulator, SimulatorConfig, SimulatorState, RunContext, RunSummary

__all__ = [
    "Segment",
    "intersects",
    "World",
    "Obstacle",
    "CoverageGrid",
    "OutOfBoundsError",
    "VehicleState",
    "Vehicle",
    "integrate_pose",
    "Sensor",
    "SensorConfig",
    "Simulator",
    "SimulatorConfig",
    "SimulatorState",
    "RunContext",
    "RunSummary",
]
