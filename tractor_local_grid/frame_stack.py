#!/usr/bin/env python3
"""Temporal stack of consecutive grid snapshots.

Snapshots are appended into a preallocated flat buffer. The append that fills
the buffer returns the stacked frames and leaves the buffer empty, so the next
append always starts a new stack.
"""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from .grid_builder import GridSnapshot


@dataclass(frozen=True)
class StackedFrames:
    seq: int
    stamp: Any
    frame_id: str
    width: int
    height: int
    depth: int
    data: np.ndarray  # flat int8, depth * height * width, oldest frame first


class FrameStack:
    def __init__(self, width: int, height: int, depth: int = 4):
        if width <= 0 or height <= 0:
            raise ValueError(f"stack frame dimensions must be positive, got {width}x{height}")
        if depth <= 0:
            raise ValueError(f"stack depth must be positive, got {depth}")
        self.width = int(width)
        self.height = int(height)
        self.depth = int(depth)
        self.frame_size = self.width * self.height
        self.capacity = self.frame_size * self.depth

        self._buffer = np.zeros(self.capacity, dtype=np.int8)
        self._length = 0
        self._next_seq = 0

    def __len__(self) -> int:
        return self._length

    @property
    def frames_buffered(self) -> int:
        return self._length // self.frame_size

    @property
    def stacks_emitted(self) -> int:
        return self._next_seq

    def clear(self) -> None:
        self._length = 0

    def append(self, snapshot: GridSnapshot) -> Optional[StackedFrames]:
        """Add one snapshot; returns the full stack when this append completes it."""
        frame = np.asarray(snapshot.data, dtype=np.int8).reshape(-1)
        if frame.size != self.frame_size:
            raise ValueError(
                f"snapshot has {frame.size} cells, stack expects {self.width}x{self.height}={self.frame_size}"
            )

        self._buffer[self._length:self._length + self.frame_size] = frame
        self._length += self.frame_size

        if self._length < self.capacity:
            return None

        stacked = StackedFrames(
            seq=self._next_seq,
            stamp=snapshot.stamp,
            frame_id=snapshot.frame_id,
            width=self.width,
            height=self.height,
            depth=self.depth,
            data=self._buffer.copy(),
        )
        self._next_seq += 1
        self._length = 0
        return stacked


def unstack(stacked: StackedFrames) -> np.ndarray:
    """View the flat stack as (depth, height, width)."""
    return stacked.data.reshape(stacked.depth, stacked.height, stacked.width)
