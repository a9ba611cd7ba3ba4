"""
Motor-command sources for the simulated vehicle.

A controller is any callable mapping the sensor reading vector to a pair of
wheel activations ``(left_fraction, right_fraction)``. The simulator scales
activations by the vehicle's max wheel speed and never clamps them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np


Controller = Callable[[Sequence[float]], Tuple[float, float]]

NUM_OUTPUTS = 2


class ConstantController:
    """Ignores the sensors and always returns the same activations."""

    def __init__(self, left: float, right: float) -> None:
        self.left = float(left)
        self.right = float(right)

    def __call__(self, readings: Sequence[float]) -> Tuple[float, float]:
        return self.left, self.right


@dataclass
class Individual:
    """Weight set of one member of the GA population.

    Attributes
    ----------
    input_weights : np.ndarray
        Shape ``(2, num_sensors + 1)``; the last column is the bias.
    recur_weights : np.ndarray
        Shape ``(2, 2)``; feedback from the previous outputs.
    """

    input_weights: np.ndarray
    recur_weights: np.ndarray

    def __post_init__(self) -> None:
        self.input_weights = np.asarray(self.input_weights, dtype=np.float64)
        self.recur_weights = np.asarray(self.recur_weights, dtype=np.float64)
        if self.input_weights.ndim != 2 or self.input_weights.shape[0] != NUM_OUTPUTS:
            raise ValueError(
                f"input_weights must have shape (2, num_sensors + 1), got {self.input_weights.shape}"
            )
        if self.recur_weights.shape != (NUM_OUTPUTS, NUM_OUTPUTS):
            raise ValueError(f"recur_weights must have shape (2, 2), got {self.recur_weights.shape}")

    @property
    def num_sensors(self) -> int:
        return self.input_weights.shape[1] - 1

    @classmethod
    def random(
        cls,
        num_sensors: int,
        rng: Optional[np.random.Generator] = None,
        scale: float = 1.0,
    ) -> "Individual":
        """Uniform random weights in [-scale, scale]."""
        rng = rng or np.random.default_rng()
        return cls(
            input_weights=rng.uniform(-scale, scale, size=(NUM_OUTPUTS, num_sensors + 1)),
            recur_weights=rng.uniform(-scale, scale, size=(NUM_OUTPUTS, NUM_OUTPUTS)),
        )

    @classmethod
    def from_flat(cls, genome: Sequence[float], num_sensors: int) -> "Individual":
        """Rebuild weights from a flat genome as produced by :meth:`to_flat`."""
        genome = np.asarray(genome, dtype=np.float64)
        n_in = NUM_OUTPUTS * (num_sensors + 1)
        expected = n_in + NUM_OUTPUTS * NUM_OUTPUTS
        if genome.shape != (expected,):
            raise ValueError(f"genome must have {expected} values, got shape {genome.shape}")
        return cls(
            input_weights=genome[:n_in].reshape(NUM_OUTPUTS, num_sensors + 1),
            recur_weights=genome[n_in:].reshape(NUM_OUTPUTS, NUM_OUTPUTS),
        )

    def to_flat(self) -> np.ndarray:
        return np.concatenate([self.input_weights.ravel(), self.recur_weights.ravel()])


class RecurrentController:
    """Single-layer recurrent network with tanh outputs.

    ``out_t = tanh(W_in @ [readings, 1] + W_rec @ out_{t-1})``

    Outputs lie in (-1, 1), so wheel speeds stay within the max speed.
    """

    def __init__(self, individual: Individual) -> None:
        self.individual = individual
        self._prev = np.zeros(NUM_OUTPUTS, dtype=np.float64)
        self._inputs = np.ones(individual.num_sensors + 1, dtype=np.float64)

    def reset(self) -> None:
        self._prev[:] = 0.0

    def __call__(self, readings: Sequence[float]) -> Tuple[float, float]:
        n = self.individual.num_sensors
        if len(readings) != n:
            raise ValueError(f"expected {n} sensor readings, got {len(readings)}")
        self._inputs[:n] = readings
        out = np.tanh(
            self.individual.input_weights @ self._inputs
            + self.individual.recur_weights @ self._prev
        )
        self._prev = out
        return float(out[0]), float(out[1])
