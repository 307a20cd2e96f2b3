import numpy as np

from tractor_local_grid.frame_stack import FrameStack, unstack
from tractor_local_grid.local_grid import UNKNOWN

from conftest import empty_scan, plan_through_cells


def test_four_scans_make_one_transition(builder, plan_buffer):
    path_cells = [(40, 45), (40, 50), (40, 55)]
    plan_buffer.set_plan(plan_through_cells(path_cells))
    stack = FrameStack(80, 80, depth=4)

    results = []
    for i in range(4):
        snapshot = builder.process_scan(empty_scan(samples=360, stamp=float(i)))
        results.append(stack.append(snapshot))

    assert results[:3] == [None, None, None]
    stacked = results[3]
    assert stacked is not None
    assert stacked.stamp == 3.0
    assert len(stack) == 0

    frames = unstack(stacked)
    assert frames.shape == (4, 80, 80)
    expected = np.full((80, 80), UNKNOWN, dtype=np.int8)
    for (col, row), value in zip(path_cells, (50, 25, 0)):
        expected[row, col] = value
    for frame in frames:
        assert np.array_equal(frame, expected)


def test_stream_emits_every_fourth_scan(builder, plan_buffer):
    plan_buffer.set_plan(plan_through_cells([(10, 10)]))
    stack = FrameStack(80, 80, depth=4)
    emitted_at = [i for i in range(10) if stack.append(builder.process_scan(empty_scan(stamp=float(i)))) is not None]
    assert emitted_at == [3, 7]
    assert len(stack) == 2 * 80 * 80
