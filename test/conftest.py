import inspect
import math

import pytest

from tractor_local_grid.grid_builder import LocalGridBuilder, StaticGeometryProvider
from tractor_local_grid.local_grid import GridGeometry
from tractor_local_grid.plan_buffer import PlanBuffer, PlanPose
from tractor_local_grid.scan_points import ScanData
from tractor_local_grid.transforms import StaticTransformProvider, Transform2D

BODY = 'base_footprint'
LASER = 'laser'
MAP = 'map'


class RecordingLogger:
    """Records messages and enforces rclpy's per-call-site contract.

    An rclpy logger remembers the severity and filter options of each call
    site and raises ValueError if a later call from that site changes them.
    """

    def __init__(self):
        self.records = []
        self.sites = {}

    def _record(self, level, message, **kwargs):
        caller = inspect.currentframe().f_back.f_back
        site = (caller.f_code.co_filename, caller.f_code.co_name, caller.f_lineno, caller.f_lasti)
        options = tuple(sorted(kwargs.items()))
        known = self.sites.setdefault(site, (level, options))
        if known[0] != level:
            raise ValueError('Logger severity cannot be changed between calls.')
        if known[1] != options:
            raise ValueError('Logger filters cannot be changed between calls.')
        self.records.append((level, message))

    def debug(self, message, **kwargs):
        self._record('debug', message, **kwargs)

    def info(self, message, **kwargs):
        self._record('info', message, **kwargs)

    def warn(self, message, **kwargs):
        self._record('warn', message, **kwargs)

    def error(self, message, **kwargs):
        self._record('error', message, **kwargs)

    def messages(self, level):
        return [m for lvl, m in self.records if lvl == level]


def cell_center(col, row, resolution=0.05, origin=-2.0):
    return origin + (col + 0.5) * resolution, origin + (row + 0.5) * resolution


def empty_scan(samples=8, stamp=0.0):
    return ScanData(
        ranges=[float('inf')] * samples,
        range_min=0.1,
        range_max=10.0,
        angle_min=-math.pi,
        angle_increment=2.0 * math.pi / samples,
        frame_id=LASER,
        stamp=stamp,
    )


@pytest.fixture
def geometry():
    return GridGeometry.from_cells(80, 80, 0.05)


@pytest.fixture
def transforms():
    return StaticTransformProvider({
        (BODY, LASER): Transform2D(),
        (BODY, MAP): Transform2D(),
    })


@pytest.fixture
def plan_buffer():
    return PlanBuffer()


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def builder(transforms, plan_buffer, logger):
    return LocalGridBuilder(
        StaticGeometryProvider(80, 80, 0.05),
        transforms,
        plan_buffer=plan_buffer,
        body_frame=BODY,
        logger=logger,
    )


def plan_through_cells(cells, frame_id=MAP):
    return [PlanPose(*cell_center(c, r), frame_id=frame_id) for c, r in cells]
