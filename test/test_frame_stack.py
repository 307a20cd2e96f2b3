import numpy as np
import pytest

from tractor_local_grid.frame_stack import FrameStack, unstack
from tractor_local_grid.grid_builder import GridSnapshot
from tractor_local_grid.local_grid import GridGeometry


def make_snapshot(seq, value, width=4, height=3):
    geometry = GridGeometry.from_cells(width, height, 0.1)
    data = np.full(width * height, value, dtype=np.int8)
    return GridSnapshot(seq=seq, stamp=float(seq), frame_id='base_footprint', geometry=geometry, data=data)


def test_emits_once_per_depth():
    stack = FrameStack(4, 3, depth=4)
    emitted = []
    for seq in range(12):
        result = stack.append(make_snapshot(seq, seq))
        if result is not None:
            emitted.append((seq, result))
    assert [seq for seq, _ in emitted] == [3, 7, 11]
    assert [result.seq for _, result in emitted] == [0, 1, 2]
    assert stack.stacks_emitted == 3


def test_length_grows_then_clears_on_emit():
    stack = FrameStack(4, 3, depth=3)
    assert len(stack) == 0
    assert stack.append(make_snapshot(0, 1)) is None
    assert len(stack) == 12 and stack.frames_buffered == 1
    assert stack.append(make_snapshot(1, 2)) is None
    assert len(stack) == 24 and stack.frames_buffered == 2

    stacked = stack.append(make_snapshot(2, 3))
    assert stacked is not None
    assert stacked.data.size == stack.capacity == 36
    assert len(stack) == 0
    assert stack.frames_buffered == 0


def test_stack_keeps_arrival_order_and_completing_metadata():
    stack = FrameStack(4, 3, depth=4)
    for seq in range(3):
        stack.append(make_snapshot(seq, 10 * seq))
    stacked = stack.append(make_snapshot(3, 30))

    assert stacked.stamp == 3.0
    assert stacked.frame_id == 'base_footprint'
    assert (stacked.width, stacked.height, stacked.depth) == (4, 3, 4)
    frames = unstack(stacked)
    assert frames.shape == (4, 3, 4)
    assert [int(frame[0, 0]) for frame in frames] == [0, 10, 20, 30]
    assert np.array_equal(stacked.data[:12], np.zeros(12, dtype=np.int8))


def test_emitted_stack_is_independent_of_later_appends():
    stack = FrameStack(4, 3, depth=1)
    first = stack.append(make_snapshot(0, 5))
    stack.append(make_snapshot(1, 9))
    assert np.all(first.data == 5)


def test_clear_discards_partial_stack():
    stack = FrameStack(4, 3, depth=2)
    stack.append(make_snapshot(0, 1))
    stack.clear()
    assert len(stack) == 0
    assert stack.append(make_snapshot(1, 2)) is None
    stacked = stack.append(make_snapshot(2, 3))
    assert [int(frame[0, 0]) for frame in unstack(stacked)] == [2, 3]


def test_rejects_mismatched_snapshot():
    stack = FrameStack(4, 3, depth=2)
    with pytest.raises(ValueError):
        stack.append(make_snapshot(0, 1, width=5, height=3))
    assert len(stack) == 0


def test_rejects_bad_configuration():
    with pytest.raises(ValueError):
        FrameStack(4, 3, depth=0)
    with pytest.raises(ValueError):
        FrameStack(0, 3, depth=4)
