from setuptools import find_packages, setup
import os
from glob import glob

package_name = 'uneven_planner'

setup(
    name=package_name,
    version='0.0.0',
    packages=find_packages(exclude=['test']),
    data_files=[
        ('share/ament_index/resource_index/packages',
            ['resource/' + package_name]),
        ('share/' + package_name, ['package.xml']),
        (os.path.join('share', package_name, 'launch'), glob('launch/*')),
        (os.path.join('share', package_name, 'config'), glob('config/*')),
        (os.path.join('share', package_name, 'data'), glob('data/*.csv'))

    ],
    install_requires=['setuptools', 'numpy', 'scipy', 'pandas', 'PyYAML'],
    extras_require={'test': ['pytest']},
    zip_safe=True,
    maintainer='siddarth',
    maintainer_email='siddarth.dayasagar@gmail.com',
    description='Reference path discretization and plan manager for SE2 trajectories on uneven terrain',
    license='MIT',
    entry_points={
        'console_scripts': [
            'plan_manager = uneven_planner.plan_manager_node:main',
        ],
    },

)
