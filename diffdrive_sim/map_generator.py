"""
Procedural map generation for coverage evaluation.

Generates line-segment obstacle layouts: an empty walled arena, random
clutter and a grid of rooms with doorways. Output is compatible with
World.from_map_dict().
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple, Optional
import json
import math
import os
import random

from .geometry_utils import rect_overlap


def _seg(x1: float, y1: float, x2: float, y2: float) -> Dict[str, float]:
    return {"x1": x1, "y1": y1, "x2": x2, "y2": y2}


def _map(width: float, height: float, subdivision_size: float, obstacles: List[Dict[str, float]]) -> Dict[str, Any]:
    return {
        "width": width,
        "height": height,
        "subdivision_size": subdivision_size,
        "obstacles": obstacles,
    }


# ---------------------------------------------------------------------------
# Arena
# ---------------------------------------------------------------------------


def boundary_walls(width: float, height: float) -> List[Dict[str, float]]:
    """Four walls along the world border."""
    return [
        _seg(0.0, 0.0, width, 0.0),
        _seg(width, 0.0, width, height),
        _seg(width, height, 0.0, height),
        _seg(0.0, height, 0.0, 0.0),
    ]


def generate_arena_map(
    width: float,
    height: float,
    subdivision_size: float = 0.1,
) -> Dict[str, Any]:
    """Empty rectangular arena enclosed by walls."""
    return _map(width, height, subdivision_size, boundary_walls(width, height))


# ---------------------------------------------------------------------------
# Random clutter
# ---------------------------------------------------------------------------


def generate_clutter_map(
    width: float,
    height: float,
    num_min: int = 5,
    num_max: int = 15,
    min_length: float = 0.3,
    max_length: float = 1.5,
    start_zone: Tuple[float, float, float, float] = (0.0, 0.0, 1.0, 1.0),
    subdivision_size: float = 0.1,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Walled arena with random interior segments.

    Segments whose bounding box overlaps ``start_zone`` (xmin, ymin, xmax, ymax)
    are rejected so the vehicle can start there.
    """
    rng = rng or random.Random()
    obstacles = boundary_walls(width, height)
    num = rng.randint(num_min, num_max)

    placed = 0
    attempts = 0
    max_attempts = num * 50
    while placed < num and attempts < max_attempts:
        attempts += 1
        length = rng.uniform(min_length, max_length)
        angle = rng.uniform(0.0, math.pi)
        cx = rng.uniform(0.0, width)
        cy = rng.uniform(0.0, height)
        dx = 0.5 * length * math.cos(angle)
        dy = 0.5 * length * math.sin(angle)
        x1 = min(max(cx - dx, 0.0), width)
        y1 = min(max(cy - dy, 0.0), height)
        x2 = min(max(cx + dx, 0.0), width)
        y2 = min(max(cy + dy, 0.0), height)
        if math.hypot(x2 - x1, y2 - y1) < 1e-6:
            continue
        if rect_overlap(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2), *start_zone):
            continue
        obstacles.append(_seg(x1, y1, x2, y2))
        placed += 1

    return _map(width, height, subdivision_size, obstacles)


# ---------------------------------------------------------------------------
# Grid of rooms with doors
# ---------------------------------------------------------------------------


def generate_rooms_map(
    width: float,
    height: float,
    num_rooms_x: int = 2,
    num_rooms_y: int = 2,
    door_width: float = 0.6,
    subdivision_size: float = 0.1,
) -> Dict[str, Any]:
    """
    Walled arena split into a grid of rooms by interior walls with a centred
    door gap in every wall section.
    """
    obstacles = boundary_walls(width, height)
    room_w = width / num_rooms_x
    room_h = height / num_rooms_y
    half_door = door_width / 2.0

    # Vertical walls (between columns)
    for col in range(1, num_rooms_x):
        x = col * room_w
        for row in range(num_rooms_y):
            y0 = row * room_h
            y1 = (row + 1) * room_h
            mid = (y0 + y1) / 2.0
            if mid - half_door > y0:
                obstacles.append(_seg(x, y0, x, mid - half_door))
            if mid + half_door < y1:
                obstacles.append(_seg(x, mid + half_door, x, y1))

    # Horizontal walls (between rows)
    for row in range(1, num_rooms_y):
        y = row * room_h
        for col in range(num_rooms_x):
            x0 = col * room_w
            x1 = (col + 1) * room_w
            mid = (x0 + x1) / 2.0
            if mid - half_door > x0:
                obstacles.append(_seg(x0, y, mid - half_door, y))
            if mid + half_door < x1:
                obstacles.append(_seg(mid + half_door, y, x1, y))

    return _map(width, height, subdivision_size, obstacles)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------


def generate_map(
    kind: str,
    width: float,
    height: float,
    subdivision_size: float = 0.1,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Generate a map by name: 'arena', 'clutter' or 'rooms'."""
    if kind == "arena":
        return generate_arena_map(width, height, subdivision_size)
    if kind == "clutter":
        return generate_clutter_map(width, height, subdivision_size=subdivision_size, rng=rng)
    if kind == "rooms":
        return generate_rooms_map(width, height, subdivision_size=subdivision_size)
    raise ValueError(f"unknown map kind {kind!r}; expected 'arena', 'clutter' or 'rooms'")


def save_map(data: Dict[str, Any], path: str) -> None:
    """Write a map dict as JSON."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
