from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import math

import numpy as np

from .vehicle import Vehicle, VehicleState
from .world import World, CoverageGrid
from evo.controller import Controller
from evo.fitness import FitnessComponents, compute_fitness


@dataclass
class SimulatorConfig:
    step_size: float = 0.005
    num_sensors: int = 12
    vehicle_radius: float = 0.17
    sensor_range: float = 0.5
    max_speed: float = 0.5
    body_segments: int = 16
    out_of_bounds: str = "ignore"

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "SimulatorConfig":
        """Build from the ``sim`` and ``vehicle`` sections of a YAML config."""
        sim_cfg = cfg.get("sim", {})
        vehicle_cfg = cfg.get("vehicle", {})
        defaults = cls()
        return cls(
            step_size=float(sim_cfg.get("step_size", defaults.step_size)),
            out_of_bounds=str(sim_cfg.get("out_of_bounds", defaults.out_of_bounds)),
            num_sensors=int(vehicle_cfg.get("num_sensors", defaults.num_sensors)),
            vehicle_radius=float(vehicle_cfg.get("radius", defaults.vehicle_radius)),
            sensor_range=float(vehicle_cfg.get("sensor_range", defaults.sensor_range)),
            max_speed=float(vehicle_cfg.get("max_speed", defaults.max_speed)),
            body_segments=int(vehicle_cfg.get("body_segments", defaults.body_segments)),
        )


class SimulatorState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass
class RunContext:
    """Mutable state of one evaluation run. Discarded by the next ``init``."""

    grid: CoverageGrid
    duration: float
    num_ticks: int
    tick: int = 0
    elapsed: float = 0.0
    previous_cell: Tuple[int, int] = (-1, -1)
    collisions: int = 0
    state: SimulatorState = SimulatorState.IDLE


@dataclass
class RunSummary:
    """Outcome of a finished run, for telemetry."""

    fitness: FitnessComponents
    final_state: VehicleState
    ticks: int
    elapsed: float
    collisions: int
    visited_cells: int
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        s = self.final_state
        record = {
            "fitness": self.fitness.total(),
            "fitness_components": self.fitness.as_dict(),
            "x": s.x,
            "y": s.y,
            "theta": s.theta,
            "ticks": self.ticks,
            "elapsed": self.elapsed,
            "collisions": self.collisions,
            "visited_cells": self.visited_cells,
        }
        record.update(self.extra)
        return record


def num_ticks_for(duration: float, step_size: float) -> int:
    """Ticks needed for ``ticks * step_size`` to reach ``duration``."""
    if step_size <= 0.0:
        raise ValueError(f"step_size must be positive, got {step_size}")
    if duration <= 0.0:
        return 0
    return max(0, math.ceil(duration / step_size - 1e-9))


class Simulator:
    """Runs one vehicle through one world and scores its coverage.

    Usage::

        sim = Simulator(SimulatorConfig())
        sim.init(controller, world, start_x=0.5, start_y=0.5, duration=30.0)
        fitness = sim()

    Each tick queries the controller, integrates the pose, refreshes the
    sensors at the new pose, rolls position (not heading) back on collision
    and marks the coverage grid.

    A cell is recorded only when both its X and its Y index differ from the
    previously recorded cell. Purely horizontal or vertical cell transitions
    are therefore skipped. Trained networks depend on this scoring, so it is
    kept as is.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None, sim_id: int = 0) -> None:
        self.cfg = config or SimulatorConfig()
        self.sim_id = sim_id
        self.vehicle = Vehicle(
            radius=self.cfg.vehicle_radius,
            max_speed=self.cfg.max_speed,
            sensor_range=self.cfg.sensor_range,
            num_sensors=self.cfg.num_sensors,
            body_segments=self.cfg.body_segments,
        )
        self.controller: Optional[Controller] = None
        self.world: Optional[World] = None
        self.context: Optional[RunContext] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def init(
        self,
        controller: Controller,
        world: World,
        start_x: float,
        start_y: float,
        duration: float,
        start_theta: float = 0.0,
    ) -> np.ndarray:
        """Prepare a fresh run and return the primed sensor readings.

        Raises ValueError if the vehicle body overlaps an obstacle at the
        start pose.
        """
        self.vehicle.reset(start_x, start_y, start_theta)
        if self.vehicle.collides(world.obstacles):
            raise ValueError(
                f"start pose ({start_x:.4f}, {start_y:.4f}) overlaps an obstacle"
            )
        self.controller = controller
        self.world = world
        self.context = RunContext(
            grid=world.new_coverage_grid(self.cfg.out_of_bounds),
            duration=float(duration),
            num_ticks=num_ticks_for(duration, self.cfg.step_size),
        )
        return self.vehicle.update_sensors(world.obstacles).copy()

    @property
    def state(self) -> SimulatorState:
        if self.context is None:
            return SimulatorState.IDLE
        return self.context.state

    def is_running(self) -> bool:
        return self.state is SimulatorState.RUNNING

    def _require_context(self) -> RunContext:
        if self.context is None or self.world is None:
            raise RuntimeError("simulator has not been initialised; call init() first")
        return self.context

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------
    def step(self, left_fraction: float, right_fraction: float) -> bool:
        """Advance one tick from explicit motor activations.

        The first tick moves the run to RUNNING and the tick that reaches the
        configured duration moves it to FINISHED. Stepping a finished run
        raises RuntimeError.

        Returns True if the tick ended in a collision.
        """
        ctx = self._require_context()
        if ctx.state is SimulatorState.FINISHED or ctx.tick >= ctx.num_ticks:
            raise RuntimeError("run is finished; call init() to start a new one")
        ctx.state = SimulatorState.RUNNING

        obstacles = self.world.obstacles
        vehicle = self.vehicle
        delta = self.cfg.step_size

        vehicle.set_wheel_speeds(left_fraction, right_fraction)
        new_x, new_y, new_theta = vehicle.next_pose(delta)

        old_x = vehicle.state.x
        old_y = vehicle.state.y
        vehicle.state.x = new_x
        vehicle.state.y = new_y
        vehicle.state.theta = new_theta

        vehicle.update_sensors(obstacles)

        collided = vehicle.collides(obstacles)
        if collided:
            # heading is kept on purpose
            vehicle.state.x = old_x
            vehicle.state.y = old_y
            ctx.collisions += 1

        self._mark_coverage(ctx)

        ctx.tick += 1
        ctx.elapsed = ctx.tick * delta
        if ctx.tick >= ctx.num_ticks:
            ctx.state = SimulatorState.FINISHED
        return collided

    def update(self) -> bool:
        """Query the controller and advance one tick."""
        self._require_context()
        if self.controller is None:
            raise RuntimeError("simulator has no controller")
        left, right = self.controller(self.vehicle.sensor_values)
        return self.step(left, right)

    def _mark_coverage(self, ctx: RunContext) -> None:
        s = self.vehicle.state
        cell = ctx.grid.cell_of(s.x, s.y)
        if cell is None:
            return
        prev_x, prev_y = ctx.previous_cell
        ix, iy = cell
        if ix != prev_x and iy != prev_y:
            ctx.grid.mark(ix, iy)
            ctx.previous_cell = cell

    def run(self) -> None:
        """Tick until the configured duration has elapsed."""
        ctx = self._require_context()
        if ctx.state is not SimulatorState.IDLE:
            raise RuntimeError(f"cannot run a simulator in state {ctx.state.value}")
        while ctx.tick < ctx.num_ticks:
            self.update()
        ctx.state = SimulatorState.FINISHED

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------
    def fitness_components(self) -> FitnessComponents:
        ctx = self._require_context()
        return compute_fitness(ctx.grid.counts)

    def evaluate(self) -> float:
        """Coverage fitness of the finished run."""
        ctx = self._require_context()
        if ctx.state is not SimulatorState.FINISHED:
            raise RuntimeError("evaluate() needs a finished run")
        return self.fitness_components().total()

    def summary(self) -> RunSummary:
        ctx = self._require_context()
        return RunSummary(
            fitness=self.fitness_components(),
            final_state=self.vehicle.get_state(),
            ticks=ctx.tick,
            elapsed=ctx.elapsed,
            collisions=ctx.collisions,
            visited_cells=ctx.grid.visited_cells(),
            extra={"sim_id": self.sim_id},
        )

    def __call__(self) -> float:
        self.run()
        return self.evaluate()
