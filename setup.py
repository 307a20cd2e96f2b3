from setuptools import find_packages, setup
import os
from glob import glob

package_name = "tractor_local_grid"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test"]),
    data_files=[
        ("share/ament_index/resource_index/packages", ["resource/" + package_name]),
        ("share/" + package_name, ["package.xml"]),
        (os.path.join("share", package_name, "launch"), glob("launch/*.launch.py")),
        (os.path.join("share", package_name, "config"), glob("config/*.yaml")),
    ],
    install_requires=["setuptools", "numpy"],
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    maintainer="benson",
    maintainer_email="benson@todo.todo",
    description="Egocentric laser/plan grid and stacked transitions for the learned local planner",
    license="MIT",
    tests_require=["pytest"],
    entry_points={
        "console_scripts": [
            "local_grid_node = tractor_local_grid.local_grid_node:main",
        ],
    },
)
