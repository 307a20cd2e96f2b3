#!/usr/bin/env python3
"""tf2_ros backed TransformProvider."""

import math

import tf2_ros
from rclpy.duration import Duration
from rclpy.time import Time

from .transforms import Transform2D, TransformFailure, TransformProvider, TransformResult, yaw_from_quaternion


def transform_from_tf(tx: float, ty: float, yaw: float) -> Transform2D:
    """Express a tf transform (rotate, then translate) as translate-then-rotate.

    tf maps ``p_target = R p_source + t``; the same mapping written as
    ``R (p_source + t')`` needs ``t' = R^-1 t``.
    """
    c = math.cos(yaw)
    s = math.sin(yaw)
    return Transform2D(x=c * tx + s * ty, y=-s * tx + c * ty, yaw=yaw)


def transform_from_msg(msg) -> Transform2D:
    """Planar part of a geometry_msgs/Transform."""
    q = msg.rotation
    yaw = yaw_from_quaternion(q.x, q.y, q.z, q.w)
    return transform_from_tf(float(msg.translation.x), float(msg.translation.y), yaw)


class TfTransformProvider(TransformProvider):
    def __init__(self, tf_buffer: tf2_ros.Buffer):
        self.tf_buffer = tf_buffer

    def lookup_latest(self, target_frame: str, source_frame: str) -> TransformResult:
        try:
            stamped = self.tf_buffer.lookup_transform(target_frame, source_frame, Time())
        except tf2_ros.TransformException as exc:
            return TransformResult.failed(TransformFailure.UNAVAILABLE, str(exc))
        return TransformResult.success(transform_from_msg(stamped.transform))

    def lookup_at_time(self, target_frame: str, source_frame: str, stamp,
                       timeout: float) -> TransformResult:
        try:
            stamped = self.tf_buffer.lookup_transform(
                target_frame,
                source_frame,
                Time.from_msg(stamp),
                timeout=Duration(seconds=timeout),
            )
        except tf2_ros.ExtrapolationException as exc:
            return TransformResult.failed(TransformFailure.TIMEOUT, str(exc))
        except tf2_ros.TransformException as exc:
            return TransformResult.failed(TransformFailure.UNAVAILABLE, str(exc))
        return TransformResult.success(transform_from_msg(stamped.transform))
