"""
Geometry utilities for the differential-drive simulation.

Provides line segments, segment intersection, angle normalization and the
polygonal approximation of the vehicle disc used by the sensor raycasts and
the collision checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Optional
import math


# Cross products below this are treated as parallel segments.
_PARALLEL_EPS = 1e-12


# ---------------------------------------------------------------------------
# Angle helpers
# ---------------------------------------------------------------------------


def normalize_angle_positive(theta: float) -> float:
    """Wrap angle to [0, 2*pi)."""
    t = theta % (2.0 * math.pi)
    if t < 0.0:
        t += 2.0 * math.pi
    # -tiny % 2pi can round up to exactly 2pi
    if t >= 2.0 * math.pi:
        t = 0.0
    return t


def distance_squared(x1: float, y1: float, x2: float, y2: float) -> float:
    """Squared Euclidean distance between two points."""
    dx = x2 - x1
    dy = y2 - y1
    return dx * dx + dy * dy


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Segment:
    """Immutable line segment (x1, y1)-(x2, y2) in world coordinates."""

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    def intersects(self, other: "Segment") -> Optional[Tuple[float, float]]:
        """Intersection point with another segment, or None."""
        return intersects(self, other)


@dataclass
class SegmentIntersection:
    """Result of segment-segment intersection test."""

    x: float
    y: float
    t_a: float  # parameter on segment A [0,1]
    t_b: float  # parameter on segment B [0,1]


def segment_intersect(
    a_x1: float,
    a_y1: float,
    a_x2: float,
    a_y2: float,
    b_x1: float,
    b_y1: float,
    b_x2: float,
    b_y2: float,
) -> Optional[SegmentIntersection]:
    """
    Find intersection of line segment A (a_x1,a_y1)-(a_x2,a_y2)
    and segment B (b_x1,b_y1)-(b_x2,b_y2).
    Returns SegmentIntersection or None if the segments are parallel or
    the crossing lies outside either segment.
    """
    dx_a = a_x2 - a_x1
    dy_a = a_y2 - a_y1
    dx_b = b_x2 - b_x1
    dy_b = b_y2 - b_y1

    denom = dx_a * dy_b - dy_a * dx_b
    if abs(denom) < _PARALLEL_EPS:
        return None

    t_num = (b_x1 - a_x1) * dy_b - (b_y1 - a_y1) * dx_b
    s_num = (b_x1 - a_x1) * dy_a - (b_y1 - a_y1) * dx_a
    t = t_num / denom
    s = s_num / denom

    if 0.0 <= t <= 1.0 and 0.0 <= s <= 1.0:
        x = a_x1 + t * dx_a
        y = a_y1 + t * dy_a
        return SegmentIntersection(x=x, y=y, t_a=t, t_b=s)
    return None


def intersects(a: Segment, b: Segment) -> Optional[Tuple[float, float]]:
    """Intersection point of two segments, or None when they do not meet."""
    hit = segment_intersect(a.x1, a.y1, a.x2, a.y2, b.x1, b.y1, b.x2, b.y2)
    if hit is None:
        return None
    return hit.x, hit.y


# ---------------------------------------------------------------------------
# Polygon helpers
# ---------------------------------------------------------------------------


def regular_polygon(
    cx: float,
    cy: float,
    radius: float,
    sides: int,
    phase: float = 0.0,
) -> List[Segment]:
    """Edges of a regular polygon inscribed in the circle (cx, cy, radius).

    The first vertex sits at angle ``phase``.
    """
    if sides < 3:
        raise ValueError(f"polygon needs at least 3 sides, got {sides}")
    vertices = []
    for i in range(sides):
        a = phase + i * 2.0 * math.pi / sides
        vertices.append((cx + radius * math.cos(a), cy + radius * math.sin(a)))
    edges: List[Segment] = []
    for i in range(sides):
        x1, y1 = vertices[i]
        x2, y2 = vertices[(i + 1) % sides]
        edges.append(Segment(x1, y1, x2, y2))
    return edges


def rect_overlap(
    a_xmin: float,
    a_ymin: float,
    a_xmax: float,
    a_ymax: float,
    b_xmin: float,
    b_ymin: float,
    b_xmax: float,
    b_ymax: float,
) -> bool:
    """Return True if two axis-aligned rectangles overlap."""
    if a_xmax < b_xmin or b_xmax < a_xmin:
        return False
    if a_ymax < b_ymin or b_ymax < a_ymin:
        return False
    return True
