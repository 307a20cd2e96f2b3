#!/usr/bin/env python3
"""Planar rigid transforms between sensor, plan and body frames.

Lookups never raise into the grid cycle. A provider answers with a
``TransformResult`` that either carries a ``Transform2D`` or the reason the
lookup failed, and the caller skips whatever depended on it.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class TransformFailure(Enum):
    UNAVAILABLE = 'transform_unavailable'
    TIMEOUT = 'transform_timeout'


@dataclass(frozen=True)
class Transform2D:
    """Translation (x, y) followed by a rotation of ``yaw`` radians."""
    x: float = 0.0
    y: float = 0.0
    yaw: float = 0.0

    def apply(self, px: float, py: float) -> Tuple[float, float]:
        tx = px + self.x
        ty = py + self.y
        c = math.cos(self.yaw)
        s = math.sin(self.yaw)
        return c * tx - s * ty, s * tx + c * ty

    def apply_many(self, points: np.ndarray) -> np.ndarray:
        """Vectorized ``apply`` over an (N, 2) array."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        shifted = pts + np.array([self.x, self.y], dtype=np.float64)
        c = math.cos(self.yaw)
        s = math.sin(self.yaw)
        rot = np.array([[c, -s], [s, c]], dtype=np.float64)
        return shifted @ rot.T


@dataclass(frozen=True)
class TransformResult:
    transform: Optional[Transform2D] = None
    failure: Optional[TransformFailure] = None
    detail: str = ''

    @property
    def ok(self) -> bool:
        return self.transform is not None

    @classmethod
    def success(cls, transform: Transform2D) -> 'TransformResult':
        return cls(transform=transform)

    @classmethod
    def failed(cls, failure: TransformFailure, detail: str = '') -> 'TransformResult':
        return cls(failure=failure, detail=detail)


class TransformProvider:
    """Interface of the transform lookup service.

    ``lookup_latest`` must not block. ``lookup_at_time`` may wait up to
    ``timeout`` seconds for a transform at ``stamp``.
    """

    def lookup_latest(self, target_frame: str, source_frame: str) -> TransformResult:
        raise NotImplementedError

    def lookup_at_time(self, target_frame: str, source_frame: str, stamp,
                       timeout: float) -> TransformResult:
        raise NotImplementedError


class StaticTransformProvider(TransformProvider):
    """Fixed table of transforms keyed by (target_frame, source_frame).

    Identical frames always resolve to the identity.
    """

    def __init__(self, transforms=None):
        self._transforms = dict(transforms or {})

    def set_transform(self, target_frame: str, source_frame: str, transform: Transform2D) -> None:
        self._transforms[(target_frame, source_frame)] = transform

    def remove_transform(self, target_frame: str, source_frame: str) -> None:
        self._transforms.pop((target_frame, source_frame), None)

    def _find(self, target_frame: str, source_frame: str) -> Optional[Transform2D]:
        if target_frame == source_frame:
            return Transform2D()
        return self._transforms.get((target_frame, source_frame))

    def lookup_latest(self, target_frame: str, source_frame: str) -> TransformResult:
        transform = self._find(target_frame, source_frame)
        if transform is None:
            return TransformResult.failed(
                TransformFailure.UNAVAILABLE,
                f"no transform from '{source_frame}' to '{target_frame}'",
            )
        return TransformResult.success(transform)

    def lookup_at_time(self, target_frame: str, source_frame: str, stamp,
                       timeout: float) -> TransformResult:
        transform = self._find(target_frame, source_frame)
        if transform is None:
            return TransformResult.failed(
                TransformFailure.TIMEOUT,
                f"no transform from '{source_frame}' to '{target_frame}' within {timeout:.2f}s",
            )
        return TransformResult.success(transform)


def yaw_from_quaternion(x: float, y: float, z: float, w: float) -> float:
    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    return float(np.arctan2(siny_cosp, cosy_cosp))
