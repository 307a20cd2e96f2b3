#!/usr/bin/env python3
"""Egocentric grid builder.

One call to ``LocalGridBuilder.process_scan`` runs a full cycle:
1. reset the grid to unknown (allocated on the first cycle only)
2. rasterize valid laser returns as occupied, using the latest sensor->body transform
3. rasterize the remaining plan as a 50..0 progress gradient, using transforms
   matched to the scan stamp
4. hand back an immutable snapshot

Transform failures only drop the points that depended on them; a cycle always
produces a snapshot, even when nothing could be rasterized.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from .local_grid import (
    GridGeometry,
    LocalGrid,
    PATH_GOAL,
    PATH_START,
    OCCUPIED,
    UNKNOWN,
    round_half_away_array,
)
from .plan_buffer import PlanBuffer
from .scan_points import ScanData, scan_to_points
from .transforms import TransformProvider, TransformResult


class UninitializedGridError(RuntimeError):
    """Grid accessed before geometry was available or before the first cycle."""


class GeometryProvider:
    def get_geometry(self) -> Optional[GridGeometry]:
        raise NotImplementedError


class StaticGeometryProvider(GeometryProvider):
    def __init__(self, width: int, height: int, resolution: float):
        self._geometry = GridGeometry.from_cells(width, height, resolution)

    def get_geometry(self) -> Optional[GridGeometry]:
        return self._geometry


class LatchedGeometryProvider(GeometryProvider):
    """Geometry taken from the first costmap that is reported; later updates are ignored."""

    def __init__(self):
        self._geometry: Optional[GridGeometry] = None

    def update(self, geometry: GridGeometry) -> bool:
        if self._geometry is not None:
            return False
        self._geometry = geometry
        return True

    def get_geometry(self) -> Optional[GridGeometry]:
        return self._geometry


@dataclass(frozen=True)
class GridSnapshot:
    seq: int
    stamp: Any
    frame_id: str
    geometry: GridGeometry
    data: np.ndarray  # flat, row-major, read-only int8

    def as_grid(self) -> np.ndarray:
        return self.data.reshape(self.geometry.height, self.geometry.width)


@dataclass
class CycleStats:
    invalid_samples: int = 0
    obstacle_points: int = 0
    obstacle_dropped: int = 0
    obstacle_transform_failed: bool = False
    path_points: int = 0
    path_failed: int = 0
    path_dropped: int = 0


def path_gradient(count: int) -> np.ndarray:
    """Cell values for ``count`` in-bounds path points, 50 at the first down to 0 at the last."""
    if count <= 0:
        return np.zeros(0, dtype=np.int8)
    if count == 1:
        return np.array([PATH_START], dtype=np.int8)
    progress = np.arange(count, dtype=np.float64) / float(count - 1) * PATH_START
    return np.maximum(round_half_away_array(PATH_START - progress), PATH_GOAL).astype(np.int8)


class LocalGridBuilder:
    def __init__(self,
                 geometry_provider: GeometryProvider,
                 transform_provider: TransformProvider,
                 plan_buffer: Optional[PlanBuffer] = None,
                 body_frame: str = 'base_footprint',
                 path_transform_timeout: float = 0.2,
                 logger=None,
                 enable_debug: bool = False):
        self.geometry_provider = geometry_provider
        self.transform_provider = transform_provider
        self.plan_buffer = plan_buffer if plan_buffer is not None else PlanBuffer()
        self.body_frame = body_frame
        self.path_transform_timeout = float(path_transform_timeout)
        self.logger = logger
        self.enable_debug = enable_debug

        self._grid: Optional[LocalGrid] = None
        self._next_seq = 0

        self.last_stats = CycleStats()
        self.cycles = 0
        self.obstacle_transform_failures = 0
        self.path_transform_failures = 0

    # --- Logging ---
    # rclpy pins severity and throttle options to each calling line
    def _print(self, message: str) -> None:
        print(f"[LocalGridBuilder] {message}")

    # --- State ---
    @property
    def initialized(self) -> bool:
        return self._grid is not None

    @property
    def grid(self) -> LocalGrid:
        if self._grid is None:
            raise UninitializedGridError("grid has not been created; no scan processed yet")
        return self._grid

    @property
    def geometry(self) -> GridGeometry:
        return self.grid.geometry

    def reset(self) -> LocalGrid:
        """Allocate the grid on first use, otherwise refill it with the unknown value."""
        if self._grid is None:
            geometry = self.geometry_provider.get_geometry()
            if geometry is None:
                raise UninitializedGridError("costmap geometry is not available yet")
            self._grid = LocalGrid(geometry, fill=UNKNOWN)
            message = (
                f"Grid initialized: {geometry.width}x{geometry.height} cells @ {geometry.resolution:.3f}m, "
                f"origin=({geometry.origin_x:.2f}, {geometry.origin_y:.2f})"
            )
            if self.logger is not None:
                self.logger.info(message)
            elif self.enable_debug:
                self._print(message)
        else:
            self._grid.reset(UNKNOWN)
        return self._grid

    # --- Cycle ---
    def process_scan(self, scan: ScanData) -> GridSnapshot:
        grid = self.reset()
        stats = CycleStats()

        self._obstacle_pass(grid, scan, stats)
        self._path_pass(grid, scan.stamp, stats)

        data = grid.flat().copy()
        data.setflags(write=False)
        snapshot = GridSnapshot(
            seq=self._next_seq,
            stamp=scan.stamp,
            frame_id=self.body_frame,
            geometry=grid.geometry,
            data=data,
        )
        self._next_seq += 1
        self.cycles += 1
        self.last_stats = stats

        if self.enable_debug:
            message = (
                f"Cycle {snapshot.seq}: obstacles={stats.obstacle_points} (dropped {stats.obstacle_dropped}, "
                f"invalid {stats.invalid_samples}) path={stats.path_points} "
                f"(failed {stats.path_failed}, dropped {stats.path_dropped})"
            )
            if self.logger is not None:
                self.logger.debug(message)
            else:
                self._print(message)
        return snapshot

    def _obstacle_pass(self, grid: LocalGrid, scan: ScanData, stats: CycleStats) -> None:
        points, stats.invalid_samples = scan_to_points(scan)
        if points.shape[0] == 0:
            return

        result = self.transform_provider.lookup_latest(self.body_frame, scan.frame_id)
        if not result.ok:
            stats.obstacle_transform_failed = True
            stats.obstacle_dropped = points.shape[0]
            self.obstacle_transform_failures += 1
            message = f"Skipping {points.shape[0]} scan points: {result.failure.value} ({result.detail})"
            if self.logger is not None:
                self.logger.warn(message, throttle_duration_sec=5.0)
            elif self.enable_debug:
                self._print(message)
            return

        body_points = result.transform.apply_many(points)
        stats.obstacle_points, stats.obstacle_dropped = grid.mark_points(body_points, OCCUPIED)

    def _path_pass(self, grid: LocalGrid, stamp, stats: CycleStats) -> None:
        plan = self.plan_buffer.snapshot()
        if not plan:
            return

        # Poses of one plan share a frame in practice; resolve each frame once per cycle
        lookups: Dict[str, TransformResult] = {}
        inside = []
        for pose in plan:
            result = lookups.get(pose.frame_id)
            if result is None:
                result = self.transform_provider.lookup_at_time(
                    self.body_frame, pose.frame_id, stamp, self.path_transform_timeout
                )
                lookups[pose.frame_id] = result
                if not result.ok:
                    self.path_transform_failures += 1
                    message = f"Plan frame '{pose.frame_id}' not resolved: {result.failure.value} ({result.detail})"
                    if self.logger is not None:
                        self.logger.warn(message, throttle_duration_sec=5.0)
                    elif self.enable_debug:
                        self._print(message)
            if not result.ok:
                stats.path_failed += 1
                continue

            bx, by = result.transform.apply(pose.x, pose.y)
            if grid.world_to_cell(bx, by) is None:
                stats.path_dropped += 1
                continue
            inside.append((bx, by))

        if not inside:
            return
        values = path_gradient(len(inside))
        # Sequential writes keep plan order when two waypoints share a cell
        for (bx, by), value in zip(inside, values):
            grid.mark(bx, by, int(value))
        stats.path_points = len(inside)
