import os

from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch_ros.actions import Node


def generate_launch_description():
    config_file = os.path.join(get_package_share_directory('uneven_planner'), 'config', 'plan_manager.yaml')
    return LaunchDescription([
        Node(
            package='uneven_planner',
            executable='plan_manager',
            name='plan_manager',
            output='screen',
            emulate_tty=True,
            parameters=[config_file],
            remappings=[('odom', '/odom'), ('traj', '/traj')],
        ),
    ])
