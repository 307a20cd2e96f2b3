#!/usr/bin/env python3
"""Local grid node.

Turns every incoming LaserScan into an egocentric occupancy grid around the
robot (obstacles = 100, unknown = 70, remaining plan = 50..0) and stacks
``stack_depth`` consecutive grids into one transition tensor for the policy.

Publishes:
- customized_costmap (OccupancyGrid), one per scan
- transition (Int8MultiArray, layout depth x height x width), one per full stack
- transition/header (Header), stamp/frame of the grid that completed the stack
- global_plan (Path), the received plan republished for visualization
- diagnostics (DiagnosticArray), cycle counters at 1 Hz
"""

import rclpy
from rclpy.node import Node
from rclpy.duration import Duration
from rclpy.callback_groups import MutuallyExclusiveCallbackGroup
from rclpy.executors import MultiThreadedExecutor
from rclpy.logging import LoggingSeverity
from rclpy.qos import qos_profile_sensor_data

from nav_msgs.msg import OccupancyGrid, Path
from sensor_msgs.msg import LaserScan
from std_msgs.msg import Header, Int8MultiArray
from diagnostic_msgs.msg import DiagnosticArray, DiagnosticStatus, KeyValue

import tf2_ros

from .frame_stack import FrameStack
from .grid_builder import (
    LatchedGeometryProvider,
    LocalGridBuilder,
    StaticGeometryProvider,
    UninitializedGridError,
)
from .msg_conversions import (
    geometry_from_costmap,
    plan_from_msg,
    scan_from_msg,
    snapshot_to_msg,
    stack_header,
    stack_to_msg,
)
from .plan_buffer import PlanBuffer
from .tf_adapter import TfTransformProvider


class LocalGridNode(Node):
    def __init__(self) -> None:
        super().__init__('local_grid')

        # Topics
        self.declare_parameter('scan_topic', '/scan')
        self.declare_parameter('plan_topic', 'global_plan_in')
        self.declare_parameter('costmap_topic', '')
        self.declare_parameter('grid_topic', 'customized_costmap')
        self.declare_parameter('transition_topic', 'transition')
        self.declare_parameter('republish_plan', True)

        # Grid geometry (ignored once a costmap topic supplies it) and stacking
        self.declare_parameter('body_frame', 'base_footprint')
        self.declare_parameter('grid_width', 80)
        self.declare_parameter('grid_height', 80)
        self.declare_parameter('grid_resolution', 0.05)
        self.declare_parameter('stack_depth', 4)
        self.declare_parameter('path_transform_timeout', 0.2)
        self.declare_parameter('enable_debug', False)

        self.scan_topic = str(self.get_parameter('scan_topic').value)
        self.plan_topic = str(self.get_parameter('plan_topic').value)
        self.costmap_topic = str(self.get_parameter('costmap_topic').value)
        self.grid_topic = str(self.get_parameter('grid_topic').value)
        self.transition_topic = str(self.get_parameter('transition_topic').value)
        self.republish_plan = bool(self.get_parameter('republish_plan').value)
        self.body_frame = str(self.get_parameter('body_frame').value)
        self.grid_width = int(self.get_parameter('grid_width').value)
        self.grid_height = int(self.get_parameter('grid_height').value)
        self.grid_resolution = float(self.get_parameter('grid_resolution').value)
        self.stack_depth = int(self.get_parameter('stack_depth').value)
        self.path_transform_timeout = float(self.get_parameter('path_transform_timeout').value)
        self.enable_debug = bool(self.get_parameter('enable_debug').value)

        if self.enable_debug:
            self.get_logger().set_level(LoggingSeverity.DEBUG)

        # TF
        self.tf_buffer = tf2_ros.Buffer(cache_time=Duration(seconds=10.0))
        self.tf_listener = tf2_ros.TransformListener(self.tf_buffer, self)

        # Grid state, owned by the scan callback
        if self.costmap_topic:
            self.geometry_provider = LatchedGeometryProvider()
        else:
            self.geometry_provider = StaticGeometryProvider(
                self.grid_width, self.grid_height, self.grid_resolution
            )
        self.plan_buffer = PlanBuffer()
        self.builder = LocalGridBuilder(
            self.geometry_provider,
            TfTransformProvider(self.tf_buffer),
            plan_buffer=self.plan_buffer,
            body_frame=self.body_frame,
            path_transform_timeout=self.path_transform_timeout,
            logger=self.get_logger(),
            enable_debug=self.enable_debug,
        )
        self.frame_stack = None

        # Counters
        self.scans_received = 0
        self.scans_dropped = 0
        self.stacks_published = 0
        self.last_stack_seq = -1

        # Scans are handled one at a time; plan/costmap updates may interleave
        scan_group = MutuallyExclusiveCallbackGroup()
        input_group = MutuallyExclusiveCallbackGroup()

        # Publishers
        self.grid_pub = self.create_publisher(OccupancyGrid, self.grid_topic, 1)
        self.transition_pub = self.create_publisher(Int8MultiArray, self.transition_topic, 1)
        self.transition_header_pub = self.create_publisher(Header, self.transition_topic + '/header', 1)
        self.plan_pub = self.create_publisher(Path, 'global_plan', 1)
        self.diagnostics_pub = self.create_publisher(DiagnosticArray, 'diagnostics', 5)

        # Subscriptions
        self.create_subscription(
            LaserScan, self.scan_topic, self.scan_callback, qos_profile_sensor_data,
            callback_group=scan_group,
        )
        self.create_subscription(
            Path, self.plan_topic, self.plan_callback, 10,
            callback_group=input_group,
        )
        if self.costmap_topic:
            self.create_subscription(
                OccupancyGrid, self.costmap_topic, self.costmap_callback, 1,
                callback_group=input_group,
            )

        self.create_timer(1.0, self._publish_diagnostics, callback_group=input_group)

        self.get_logger().info(
            f"Local grid active: scan={self.scan_topic} plan={self.plan_topic} "
            f"frame={self.body_frame} depth={self.stack_depth}"
        )

    # --- Callbacks ---
    def costmap_callback(self, msg: OccupancyGrid) -> None:
        try:
            geometry = geometry_from_costmap(msg)
        except ValueError as exc:
            self.get_logger().warn(f'Ignoring costmap with invalid geometry: {exc}')
            return
        if self.geometry_provider.update(geometry):
            self.get_logger().info(
                f"Grid geometry from {self.costmap_topic}: {geometry.width}x{geometry.height} "
                f"@ {geometry.resolution:.3f}m"
            )

    def plan_callback(self, msg: Path) -> None:
        poses = plan_from_msg(msg)
        if not poses:
            self.plan_buffer.clear()
            self.get_logger().debug("Empty plan received, path overlay cleared")
        else:
            self.plan_buffer.set_plan(poses)
            goal = poses[-1]
            self.get_logger().debug(
                f"Plan received: {len(poses)} poses, goal=({goal.x:.2f}, {goal.y:.2f}) in '{goal.frame_id}'"
            )
        if self.republish_plan:
            self.plan_pub.publish(msg)

    def scan_callback(self, msg: LaserScan) -> None:
        self.scans_received += 1
        try:
            snapshot = self.builder.process_scan(scan_from_msg(msg))
        except UninitializedGridError as exc:
            self.scans_dropped += 1
            self.get_logger().warn(f'Dropping scan: {exc}', once=True)
            return

        self.grid_pub.publish(snapshot_to_msg(snapshot))

        if self.frame_stack is None:
            geometry = snapshot.geometry
            self.frame_stack = FrameStack(geometry.width, geometry.height, self.stack_depth)

        stacked = self.frame_stack.append(snapshot)
        if stacked is None:
            return

        self.transition_header_pub.publish(stack_header(stacked))
        self.transition_pub.publish(stack_to_msg(stacked))
        self.stacks_published += 1
        self.last_stack_seq = stacked.seq
        self.get_logger().debug(
            f"Transition {stacked.seq} published ({stacked.depth} frames, completed by grid {snapshot.seq})"
        )

    # --- Diagnostics ---
    def _publish_diagnostics(self) -> None:
        diag = DiagnosticArray()
        diag.header.stamp = self.get_clock().now().to_msg()
        diag.status.append(self._build_status())
        self.diagnostics_pub.publish(diag)

    def _build_status(self) -> DiagnosticStatus:
        stats = self.builder.last_stats
        st = DiagnosticStatus()
        st.name = 'local_grid'
        st.hardware_id = self.body_frame
        if not self.builder.initialized:
            st.level = DiagnosticStatus.WARN
            st.message = 'Waiting for grid geometry'
        elif stats.obstacle_transform_failed:
            st.level = DiagnosticStatus.WARN
            st.message = 'Scan transform unavailable'
        else:
            st.level = DiagnosticStatus.OK
            st.message = 'OK'
        st.values = [
            self._kv('scans_received', self.scans_received),
            self._kv('scans_dropped', self.scans_dropped),
            self._kv('grids_built', self.builder.cycles),
            self._kv('stacks_published', self.stacks_published),
            self._kv('last_stack_seq', self.last_stack_seq),
            self._kv('obstacle_points', stats.obstacle_points),
            self._kv('obstacle_dropped', stats.obstacle_dropped),
            self._kv('path_points', stats.path_points),
            self._kv('path_failed', stats.path_failed),
            self._kv('obstacle_transform_failures', self.builder.obstacle_transform_failures),
            self._kv('path_transform_failures', self.builder.path_transform_failures),
            self._kv('plan_length', len(self.plan_buffer)),
        ]
        return st

    @staticmethod
    def _kv(key: str, value) -> KeyValue:
        return KeyValue(key=str(key), value=str(value))


def main(args=None) -> None:
    rclpy.init(args=args)
    node = LocalGridNode()
    executor = MultiThreadedExecutor()
    try:
        rclpy.spin(node, executor=executor)
    except KeyboardInterrupt:
        pass
    finally:
        node.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
