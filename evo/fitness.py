from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np


# Cells visited at most this many times add to fitness; busier cells subtract.
MAX_REWARDED_VISITS = 1


@dataclass
class FitnessComponents:
    """Decomposed coverage fitness for easier logging and testing."""

    unique_cells: int
    revisit_penalty: int
    revisited_cells: int = 0

    def total(self) -> float:
        """Return the scalar fitness handed to the genetic algorithm."""
        return float(self.unique_cells + self.revisit_penalty)

    def as_dict(self) -> Dict[str, float]:
        return {
            "unique_cells": float(self.unique_cells),
            "revisit_penalty": float(self.revisit_penalty),
            "revisited_cells": float(self.revisited_cells),
            "total": self.total(),
        }


def compute_fitness(counts: np.ndarray) -> FitnessComponents:
    """Reduce a grid of visit counts to coverage fitness.

    Every cell with count ``v`` contributes ``+v`` when ``v <= 1`` and ``-v``
    otherwise, so breadth is rewarded and lingering is punished. The sum is
    independent of visit order.

    Parameters
    ----------
    counts : np.ndarray
        Integer visit counts, any shape.
    """
    counts = np.asarray(counts, dtype=np.int64)
    rewarded = counts <= MAX_REWARDED_VISITS
    unique_cells = int(counts[rewarded].sum())
    revisit_penalty = -int(counts[~rewarded].sum())
    return FitnessComponents(
        unique_cells=unique_cells,
        revisit_penalty=revisit_penalty,
        revisited_cells=int(np.count_nonzero(~rewarded)),
    )
