import os
from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    default_config = os.path.join(
        get_package_share_directory('tractor_local_grid'), 'config', 'local_grid.yaml'
    )

    return LaunchDescription([
        DeclareLaunchArgument(
            'config_file',
            default_value=default_config,
            description='Parameter file for the local grid node'
        ),
        DeclareLaunchArgument(
            'scan_topic',
            default_value='/scan',
            description='LaserScan input topic'
        ),

        Node(
            package='tractor_local_grid',
            executable='local_grid_node',
            name='local_grid',
            output='screen',
            parameters=[
                LaunchConfiguration('config_file'),
                {'scan_topic': LaunchConfiguration('scan_topic')},
            ]
        ),
    ])
