#!/usr/bin/env python3
"""Range scan sample container and polar to Cartesian conversion."""

from dataclasses import dataclass
from typing import Any, Sequence, Tuple

import numpy as np


@dataclass
class ScanData:
    ranges: Sequence[float]
    range_min: float
    range_max: float
    angle_min: float
    angle_increment: float
    frame_id: str = 'laser'
    stamp: Any = None


def valid_sample_mask(ranges: np.ndarray, range_min: float, range_max: float) -> np.ndarray:
    # NaN and inf fail the strict comparisons and are dropped with the rest
    with np.errstate(invalid='ignore'):
        return (ranges > range_min) & (ranges < range_max)


def scan_to_points(scan: ScanData) -> Tuple[np.ndarray, int]:
    """Return (N, 2) sensor-frame points for valid samples and the invalid count.

    The i-th sample lies at bearing ``angle_min + i * angle_increment``.
    """
    ranges = np.asarray(scan.ranges, dtype=np.float64)
    if ranges.size == 0:
        return np.zeros((0, 2), dtype=np.float64), 0

    angles = scan.angle_min + np.arange(ranges.size, dtype=np.float64) * scan.angle_increment
    valid = valid_sample_mask(ranges, scan.range_min, scan.range_max)

    r = ranges[valid]
    theta = angles[valid]
    points = np.stack((r * np.cos(theta), r * np.sin(theta)), axis=-1)
    return points, int(ranges.size - r.size)
