#!/usr/bin/env python3
"""Conversions between ROS messages and the grid core types."""

from typing import List

from nav_msgs.msg import OccupancyGrid, Path
from sensor_msgs.msg import LaserScan
from std_msgs.msg import Header, Int8MultiArray, MultiArrayDimension

from .frame_stack import StackedFrames
from .grid_builder import GridSnapshot
from .local_grid import GridGeometry
from .plan_buffer import PlanPose
from .scan_points import ScanData


def scan_from_msg(msg: LaserScan) -> ScanData:
    return ScanData(
        ranges=msg.ranges,
        range_min=float(msg.range_min),
        range_max=float(msg.range_max),
        angle_min=float(msg.angle_min),
        angle_increment=float(msg.angle_increment),
        frame_id=msg.header.frame_id,
        stamp=msg.header.stamp,
    )


def plan_from_msg(msg: Path) -> List[PlanPose]:
    poses = []
    for pose_stamped in msg.poses:
        # Poses without their own frame inherit the path header frame
        frame_id = pose_stamped.header.frame_id or msg.header.frame_id
        position = pose_stamped.pose.position
        poses.append(PlanPose(x=float(position.x), y=float(position.y), frame_id=frame_id))
    return poses


def geometry_from_costmap(msg: OccupancyGrid) -> GridGeometry:
    info = msg.info
    return GridGeometry.from_cells(int(info.width), int(info.height), float(info.resolution))


def snapshot_to_msg(snapshot: GridSnapshot) -> OccupancyGrid:
    geometry = snapshot.geometry
    msg = OccupancyGrid()
    msg.header.frame_id = snapshot.frame_id
    if snapshot.stamp is not None:
        msg.header.stamp = snapshot.stamp
    msg.info.width = geometry.width
    msg.info.height = geometry.height
    msg.info.resolution = float(geometry.resolution)
    msg.info.origin.position.x = float(geometry.origin_x)
    msg.info.origin.position.y = float(geometry.origin_y)
    msg.info.origin.position.z = 0.0
    msg.info.origin.orientation.w = 1.0
    msg.data = snapshot.data.tolist()
    return msg


def stack_header(stacked: StackedFrames) -> Header:
    header = Header()
    header.frame_id = stacked.frame_id
    if stacked.stamp is not None:
        header.stamp = stacked.stamp
    return header


def stack_to_msg(stacked: StackedFrames) -> Int8MultiArray:
    frame_size = stacked.height * stacked.width
    msg = Int8MultiArray()
    msg.layout.dim = [
        MultiArrayDimension(label='depth', size=stacked.depth, stride=stacked.depth * frame_size),
        MultiArrayDimension(label='height', size=stacked.height, stride=frame_size),
        MultiArrayDimension(label='width', size=stacked.width, stride=stacked.width),
    ]
    msg.layout.data_offset = 0
    msg.data = stacked.data.tolist()
    return msg
