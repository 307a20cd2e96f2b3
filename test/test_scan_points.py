import math

import numpy as np
import pytest

from tractor_local_grid.scan_points import ScanData, scan_to_points


def test_polar_to_cartesian():
    scan = ScanData(
        ranges=[1.0, 2.0, 3.0],
        range_min=0.1,
        range_max=10.0,
        angle_min=0.0,
        angle_increment=math.pi / 2,
    )
    points, invalid = scan_to_points(scan)
    assert invalid == 0
    np.testing.assert_allclose(points, [[1.0, 0.0], [0.0, 2.0], [-3.0, 0.0]], atol=1e-12)


def test_range_limits_are_exclusive():
    scan = ScanData(
        ranges=[0.1, 0.0999, 0.10001, 5.0, 9.9999, 10.0, 12.0, float('nan'), float('inf'), -float('inf')],
        range_min=0.1,
        range_max=10.0,
        angle_min=0.0,
        angle_increment=0.0,
    )
    points, invalid = scan_to_points(scan)
    assert invalid == 7
    np.testing.assert_allclose(points[:, 0], [0.10001, 5.0, 9.9999])


def test_invalid_samples_keep_bearing_of_valid_ones():
    scan = ScanData(
        ranges=[float('inf'), float('inf'), 2.0],
        range_min=0.1,
        range_max=10.0,
        angle_min=-math.pi / 2,
        angle_increment=math.pi / 2,
    )
    points, _ = scan_to_points(scan)
    assert points.shape == (1, 2)
    assert tuple(points[0]) == pytest.approx((math.cos(math.pi / 2) * 2.0, 2.0))


def test_empty_scan():
    points, invalid = scan_to_points(ScanData([], 0.1, 10.0, 0.0, 0.01))
    assert points.shape == (0, 2)
    assert invalid == 0
