from __future__ import annotations

from typing import Any, Dict, Tuple, Optional

import gymnasium as gym
from gymnasium import spaces
import numpy as np

from .world import World
from .simulator import Simulator, SimulatorConfig, SimulatorState


class CoverageEnv(gym.Env):
    """Gymnasium view of the coverage simulator.

    An external agent supplies the wheel activations that a network would
    otherwise produce. The reward is the change of coverage fitness caused by
    the tick, so an episode's return equals the simulator's final fitness.
    """

    metadata = {"render_modes": ["none"]}

    def __init__(
        self,
        world: World,
        config: Optional[SimulatorConfig] = None,
        duration: float = 10.0,
        start: Tuple[float, float, float] = (0.5, 0.5, 0.0),
        seed: int = 0,
        random_start: bool = False,
    ) -> None:
        super().__init__()
        self.world = world
        self.cfg = config or SimulatorConfig()
        self.duration = float(duration)
        self.start = start
        self.random_start = random_start

        self.np_random, _ = gym.utils.seeding.np_random(seed)
        self.sim = Simulator(self.cfg)
        self._last_fitness = 0.0

        self.observation_space = spaces.Box(
            low=0.0, high=1.0, shape=(self.cfg.num_sensors,), dtype=np.float32
        )
        # Action: [left_fraction, right_fraction]
        self.action_space = spaces.Box(low=-1.0, high=1.0, shape=(2,), dtype=np.float32)

    # ------------------------------------------------------------------
    # Gym API
    # ------------------------------------------------------------------
    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        super().reset(seed=seed)

        x, y, theta = self.start
        if self.random_start:
            x, y, theta = self._sample_start()

        # No controller: actions come from step().
        readings = self.sim.init(
            controller=_no_controller,
            world=self.world,
            start_x=x,
            start_y=y,
            duration=self.duration,
            start_theta=theta,
        )
        self._last_fitness = 0.0
        return readings.astype(np.float32), {"x": x, "y": y, "theta": theta}

    def step(
        self, action: np.ndarray
    ) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        action = np.asarray(action, dtype=np.float32)
        action = np.clip(action, self.action_space.low, self.action_space.high)

        collided = self.sim.step(float(action[0]), float(action[1]))
        fitness = self.sim.fitness_components().total()
        reward = fitness - self._last_fitness
        self._last_fitness = fitness

        ctx = self.sim.context
        if ctx is None:
            raise RuntimeError("call reset() before step()")
        truncated = ctx.state is SimulatorState.FINISHED

        obs = self.sim.vehicle.sensor_values.astype(np.float32)
        info: Dict[str, Any] = {
            "collision": collided,
            "fitness": fitness,
            "elapsed": ctx.elapsed,
            "visited_cells": ctx.grid.visited_cells(),
        }
        return obs, float(reward), False, bool(truncated), info

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _sample_start(self) -> Tuple[float, float, float]:
        """Sample a start pose whose body does not touch any obstacle."""
        r = self.cfg.vehicle_radius
        for _ in range(100):
            x = float(self.np_random.uniform(r, self.world.width - r))
            y = float(self.np_random.uniform(r, self.world.height - r))
            theta = float(self.np_random.uniform(0.0, 2.0 * np.pi))
            self.sim.vehicle.reset(x, y, theta)
            if not self.sim.vehicle.collides(self.world.obstacles):
                return x, y, theta
        # Fallback: configured start
        return self.start


def _no_controller(readings: Any) -> Tuple[float, float]:
    raise RuntimeError("CoverageEnv is driven through step(); the simulator has no controller")
