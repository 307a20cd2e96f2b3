#!/usr/bin/env python3
"""Holder for the current global plan, replaced atomically by the plan callback."""

import threading
from dataclasses import dataclass
from typing import Iterable, Tuple


@dataclass(frozen=True)
class PlanPose:
    x: float
    y: float
    frame_id: str = 'map'


class PlanBuffer:
    def __init__(self):
        self._lock = threading.Lock()
        self._poses: Tuple[PlanPose, ...] = ()

    def set_plan(self, poses: Iterable[PlanPose]) -> None:
        poses = tuple(poses)
        with self._lock:
            self._poses = poses

    def clear(self) -> None:
        with self._lock:
            self._poses = ()

    def snapshot(self) -> Tuple[PlanPose, ...]:
        """Copy of the plan that later ``set_plan`` calls cannot modify."""
        with self._lock:
            return self._poses

    def __len__(self) -> int:
        with self._lock:
            return len(self._poses)
