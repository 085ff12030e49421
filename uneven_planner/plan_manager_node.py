#!/usr/bin/env python3
import math
from dataclasses import fields

import rclpy
from rclpy.node import Node
from rclpy.time import Time
from rclpy.callback_groups import MutuallyExclusiveCallbackGroup
from rclpy.executors import MultiThreadedExecutor
from rclpy.logging import get_logger
from rclpy.qos import QoSProfile, QoSDurabilityPolicy, QoSReliabilityPolicy
from rclpy.exceptions import ParameterException
from rcl_interfaces.msg import ParameterDescriptor
from ament_index_python.packages import get_package_share_directory
from nav_msgs.msg import Odometry, Path
from sensor_msgs.msg import PointCloud2
from geometry_msgs.msg import Point, PoseStamped, PoseWithCovarianceStamped
from tf_transformations import euler_from_quaternion, quaternion_from_euler
from mpc_controller.msg import SE2Traj

from uneven_planner.config import PlannerConfig
from uneven_planner.errors import InvalidConfigurationError
from uneven_planner.plan_manager import PlanManager
from uneven_planner.reference_path import CsvPathSource
from uneven_planner.warm_start import SplineWarmStart


class PlanManagerNode(Node):
    def __init__(self):
        super().__init__('plan_manager')

        # relative CSV paths live in the installed package, like the launch config
        self.config = self.load_config().resolve_paths(get_package_share_directory('uneven_planner'))
        self.map_received = False
        self.frame_id = 'world'

        qos = QoSProfile(
            reliability=QoSReliabilityPolicy.RELIABLE,
            durability=QoSDurabilityPolicy.TRANSIENT_LOCAL,
            depth=1
        )

        self.traj_pub = self.create_publisher(SE2Traj, 'traj', 1)
        self.ref_path_pub = self.create_publisher(Path, '/reference_path', qos)
        self.result_path_pub = self.create_publisher(Path, '/uneven_result_path', qos)

        self.csv_source = CsvPathSource(self.config.reference_csv, self.config.mirror_reference,
                                        logger=self.get_logger())
        self.manager = PlanManager(
            self.config,
            map_status=self,
            path_source=self,
            optimizer=SplineWarmStart(),
            traj_sink=self,
            vis_sink=self,
            clock=lambda: self.get_clock().now().nanoseconds * 1e-9,
            logger=self.get_logger(),
        )

        # goals get their own group so odometry keeps updating while planning
        plan_group = MutuallyExclusiveCallbackGroup()
        self.map_sub = self.create_subscription(PointCloud2, self.config.map_topic, self.map_callback, qos)
        self.odom_sub = self.create_subscription(Odometry, 'odom', self.odom_callback, 1)
        self.start_sub = self.create_subscription(
            PoseWithCovarianceStamped, '/initialpose', self.start_callback, 1)
        self.goal_sub = self.create_subscription(
            PoseStamped, '/goal_pose', self.goal_callback, 1, callback_group=plan_group)

        self.get_logger().info(f"Plan manager ready, reference path: {self.config.reference_csv}")

    def load_config(self):
        defaults = PlannerConfig()
        values = {}
        for f in fields(PlannerConfig):
            name = f'manager.{f.name}'
            if f.name == 'terminal_position':
                # unset when the key is missing, the path end is used then
                self.declare_parameter(name, None, ParameterDescriptor(dynamic_typing=True))
            else:
                self.declare_parameter(name, getattr(defaults, f.name))
            values[f.name] = self.get_parameter(name).value
        return PlannerConfig(**values).validate()

    # --- collaborators for PlanManager ---

    def map_ready(self):
        return self.map_received or not self.config.require_map

    def plan(self, start, goal):
        path = self.csv_source.plan(start, goal)
        self.ref_path_pub.publish(self.to_path_msg(path))
        return path

    def show(self, traj):
        self.result_path_pub.publish(self.to_path_msg(traj.sample_positions(self.config.sample_dt)))

    def publish(self, msg):
        traj_msg = SE2Traj()
        traj_msg.start_time = Time(nanoseconds=int(msg.start_time * 1e9)).to_msg()
        traj_msg.init_v.x, traj_msg.init_v.y, traj_msg.init_v.z = msg.init_v
        traj_msg.init_a.x, traj_msg.init_a.y, traj_msg.init_a.z = msg.init_a
        for x, y in msg.pos_pts:
            traj_msg.pos_pts.append(Point(x=x, y=y))
        traj_msg.posT_pts = list(msg.posT_pts)
        for yaw in msg.angle_pts:
            traj_msg.angle_pts.append(Point(x=yaw))
        traj_msg.angleT_pts = list(msg.angleT_pts)
        self.traj_pub.publish(traj_msg)

    # --- callbacks ---

    def map_callback(self, msg):
        if not self.map_received:
            self.get_logger().info(f"Map received: {msg.width * msg.height} points")
        self.map_received = True

    def odom_callback(self, msg):
        q = msg.pose.pose.orientation
        _, _, yaw = euler_from_quaternion([q.x, q.y, q.z, q.w])
        self.manager.update_odom(msg.pose.pose.position.x, msg.pose.pose.position.y, yaw)

    def start_callback(self, msg):
        q = msg.pose.pose.orientation
        _, _, yaw = euler_from_quaternion([q.x, q.y, q.z, q.w])
        self.manager.update_odom(msg.pose.pose.position.x, msg.pose.pose.position.y, yaw)
        self.get_logger().info(
            f"Start pose: [{msg.pose.pose.position.x:.2f}, {msg.pose.pose.position.y:.2f}, {yaw:.2f}]")

    def goal_callback(self, msg):
        q = msg.pose.orientation
        yaw = math.atan2(2.0 * q.z * q.w, 2.0 * q.w ** 2 - 1.0)
        goal = (msg.pose.position.x, msg.pose.position.y, yaw)
        if self.manager.handle_goal(goal) is not None:
            self.get_logger().info("Trajectory published")

    def to_path_msg(self, points):
        path_msg = Path()
        path_msg.header.frame_id = self.frame_id
        path_msg.header.stamp = self.get_clock().now().to_msg()

        for p in points:
            pose = PoseStamped()
            pose.header = path_msg.header
            pose.pose.position.x = float(p[0])
            pose.pose.position.y = float(p[1])
            q = quaternion_from_euler(0, 0, p[2] if len(p) > 2 else 0.0)
            pose.pose.orientation.x = q[0]
            pose.pose.orientation.y = q[1]
            pose.pose.orientation.z = q[2]
            pose.pose.orientation.w = q[3]
            path_msg.poses.append(pose)
        return path_msg


def main(args=None):
    rclpy.init(args=args)
    try:
        node = PlanManagerNode()
    except (InvalidConfigurationError, ParameterException) as ex:
        get_logger('plan_manager').fatal(str(ex))
        rclpy.shutdown()
        return

    executor = MultiThreadedExecutor()
    executor.add_node(node)
    try:
        executor.spin()
    except KeyboardInterrupt:
        pass
    node.destroy_node()
    rclpy.shutdown()


if __name__ == '__main__':
    main()
