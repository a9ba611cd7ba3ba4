from __future__ import annotations

from typing import Tuple, Dict, Any, Optional, Iterable
import json
import math

import numpy as np

from .geometry_utils import Segment


# Obstacles are plain immutable segments.
Obstacle = Segment

OUT_OF_BOUNDS_POLICIES = ("ignore", "clamp", "raise")


class OutOfBoundsError(ValueError):
    """Raised when the vehicle leaves the gridded area under the "raise" policy."""


class CoverageGrid:
    """2D array of visit counts over square cells of side ``subdivision_size``.

    Cell (ix, iy) covers ``[ix*s, (ix+1)*s) x [iy*s, (iy+1)*s)``. Counts only
    ever increase. Positions outside the grid are handled according to
    ``out_of_bounds``:

    - ``"ignore"``: no cell is returned, nothing is recorded
    - ``"clamp"``: the index is clamped onto the nearest border cell
    - ``"raise"``: :class:`OutOfBoundsError`
    """

    def __init__(
        self,
        shape: Tuple[int, int],
        subdivision_size: float,
        out_of_bounds: str = "ignore",
    ) -> None:
        if subdivision_size <= 0.0:
            raise ValueError(f"subdivision_size must be positive, got {subdivision_size}")
        if out_of_bounds not in OUT_OF_BOUNDS_POLICIES:
            raise ValueError(
                f"out_of_bounds must be one of {OUT_OF_BOUNDS_POLICIES}, got {out_of_bounds!r}"
            )
        self.subdivision_size = float(subdivision_size)
        self.out_of_bounds = out_of_bounds
        self.counts = np.zeros(shape, dtype=np.int64)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.counts.shape  # type: ignore[return-value]

    def cell_of(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """Grid cell containing (x, y), subject to the out-of-bounds policy."""
        ix = math.floor(x / self.subdivision_size)
        iy = math.floor(y / self.subdivision_size)
        nx, ny = self.counts.shape
        if 0 <= ix < nx and 0 <= iy < ny:
            return ix, iy
        if self.out_of_bounds == "clamp":
            return min(max(ix, 0), nx - 1), min(max(iy, 0), ny - 1)
        if self.out_of_bounds == "raise":
            raise OutOfBoundsError(
                f"position ({x:.4f}, {y:.4f}) maps to cell ({ix}, {iy}) outside grid {nx}x{ny}"
            )
        return None

    def mark(self, ix: int, iy: int) -> int:
        """Increment the visit count of a cell and return the new count."""
        self.counts[ix, iy] += 1
        return int(self.counts[ix, iy])

    def visited_cells(self) -> int:
        """Number of cells visited at least once."""
        return int(np.count_nonzero(self.counts))


class World:
    """2D world of static line-segment obstacles.

    The world is read-only during evaluation and can be shared by many
    concurrent runs. Coverage state lives in :class:`CoverageGrid` objects
    created per run by :meth:`new_coverage_grid`.

    Parameters
    ----------
    width : float
        World width in meters.
    height : float
        World height in meters.
    obstacles : iterable of Segment
        Obstacle segments; stored as a tuple.
    subdivision_size : float
        Side length of a coverage grid cell in meters.
    """

    def __init__(
        self,
        width: float,
        height: float,
        obstacles: Optional[Iterable[Segment]] = None,
        subdivision_size: float = 0.1,
    ) -> None:
        if width <= 0.0 or height <= 0.0:
            raise ValueError(f"world size must be positive, got {width}x{height}")
        if subdivision_size <= 0.0:
            raise ValueError(f"subdivision_size must be positive, got {subdivision_size}")
        self.width = float(width)
        self.height = float(height)
        self.subdivision_size = float(subdivision_size)
        obstacles = tuple(obstacles) if obstacles is not None else ()
        for i, obs in enumerate(obstacles):
            if obs.length <= 0.0:
                raise ValueError(f"obstacle {i} has zero length: {obs}")
        self.obstacles: Tuple[Segment, ...] = obstacles

    # ------------------------------------------------------------------
    # Map loading
    # ------------------------------------------------------------------
    @classmethod
    def from_map_dict(cls, data: Dict[str, Any]) -> "World":
        """Create world from a dict describing size, grid and obstacle segments."""
        obstacles = [
            Segment(float(o["x1"]), float(o["y1"]), float(o["x2"]), float(o["y2"]))
            for o in data.get("obstacles", [])
        ]
        return cls(
            width=float(data["width"]),
            height=float(data["height"]),
            obstacles=obstacles,
            subdivision_size=float(data.get("subdivision_size", 0.1)),
        )

    @classmethod
    def from_map_file(cls, path: str) -> "World":
        """Create world from a JSON map file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_map_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize world description to a Python dict."""
        return {
            "width": self.width,
            "height": self.height,
            "subdivision_size": self.subdivision_size,
            "obstacles": [
                {"x1": o.x1, "y1": o.y1, "x2": o.x2, "y2": o.y2} for o in self.obstacles
            ],
        }

    # ------------------------------------------------------------------
    # Coverage
    # ------------------------------------------------------------------
    @property
    def grid_shape(self) -> Tuple[int, int]:
        # tolerance keeps exact multiples (1.0 / 0.1) from gaining a cell
        nx = max(1, math.ceil(self.width / self.subdivision_size - 1e-9))
        ny = max(1, math.ceil(self.height / self.subdivision_size - 1e-9))
        return nx, ny

    def new_coverage_grid(self, out_of_bounds: str = "ignore") -> CoverageGrid:
        """Fresh all-zero coverage grid for one evaluation run."""
        return CoverageGrid(self.grid_shape, self.subdivision_size, out_of_bounds)
