#!/usr/bin/env python3
"""Egocentric occupancy grid and its rasterizer.

Cell values:
- 100: occupied (laser return)
-  70: unknown / not observed this cycle
- 50..0: remaining path, 50 at the nearest waypoint down to 0 at the goal
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

OCCUPIED = 100
UNKNOWN = 70
PATH_START = 50
PATH_GOAL = 0


def round_half_away(value: float) -> int:
    """Round to nearest integer, ties away from zero (C ``round`` semantics)."""
    if value >= 0.0:
        return int(math.floor(value + 0.5))
    return int(math.ceil(value - 0.5))


def round_half_away_array(values: np.ndarray) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    return np.where(values >= 0.0, np.floor(values + 0.5), np.ceil(values - 0.5)).astype(np.int64)


@dataclass(frozen=True)
class GridGeometry:
    """Fixed grid layout, centered on the robot body frame."""
    width: int
    height: int
    resolution: float
    size_x: float
    size_y: float

    @classmethod
    def from_cells(cls, width: int, height: int, resolution: float,
                   size_x: Optional[float] = None, size_y: Optional[float] = None) -> 'GridGeometry':
        if width <= 0 or height <= 0:
            raise ValueError(f"grid dimensions must be positive, got {width}x{height}")
        if resolution <= 0.0:
            raise ValueError(f"grid resolution must be positive, got {resolution}")
        return cls(
            width=int(width),
            height=int(height),
            resolution=float(resolution),
            size_x=float(size_x) if size_x is not None else width * resolution,
            size_y=float(size_y) if size_y is not None else height * resolution,
        )

    @property
    def origin_x(self) -> float:
        return -self.size_x / 2.0

    @property
    def origin_y(self) -> float:
        return -self.size_y / 2.0

    @property
    def cell_count(self) -> int:
        return self.width * self.height


class LocalGrid:
    def __init__(self, geometry: GridGeometry, fill: int = UNKNOWN):
        self.geometry = geometry
        self.data = np.full((geometry.height, geometry.width), fill, dtype=np.int8)

    def reset(self, fill: int = UNKNOWN) -> None:
        # Refill in place; the array is never reallocated after construction
        self.data.fill(fill)

    def world_to_cell(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """Map a body-frame point to (col, row), or None when outside the grid."""
        g = self.geometry
        col = round_half_away(((x - g.origin_x) / g.size_x) * g.width - 0.5)
        row = round_half_away(((y - g.origin_y) / g.size_y) * g.height - 0.5)
        if 0 <= col < g.width and 0 <= row < g.height:
            return col, row
        return None

    def world_to_cells(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Vectorized ``world_to_cell``; returns (cols, rows, inside_mask)."""
        g = self.geometry
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        cols = round_half_away_array(((pts[:, 0] - g.origin_x) / g.size_x) * g.width - 0.5)
        rows = round_half_away_array(((pts[:, 1] - g.origin_y) / g.size_y) * g.height - 0.5)
        inside = (cols >= 0) & (rows >= 0) & (cols < g.width) & (rows < g.height)
        return cols, rows, inside

    def mark(self, x: float, y: float, value: int) -> bool:
        cell = self.world_to_cell(x, y)
        if cell is None:
            return False
        col, row = cell
        self.data[row, col] = value
        return True

    def mark_points(self, points: np.ndarray, value: int) -> Tuple[int, int]:
        """Write ``value`` at every in-bounds point; returns (written, dropped)."""
        cols, rows, inside = self.world_to_cells(points)
        written = int(np.count_nonzero(inside))
        if written:
            self.data[rows[inside], cols[inside]] = value
        return written, int(inside.size - written)

    def flat(self) -> np.ndarray:
        return self.data.reshape(-1)
