#!/usr/bin/env python3
import os
from dataclasses import dataclass, fields, replace
from typing import Optional, Tuple

import yaml

from uneven_planner.errors import InvalidConfigurationError


@dataclass(frozen=True)
class PlannerConfig:
    """Parameters read from the ``manager.*`` namespace."""

    piece_len: float = 1.0
    mean_vel: float = 1.0
    init_time_times: float = 1.0
    yaw_piece_times: float = 2.0
    init_sig_vel: float = 0.0

    # None keeps the end position of the reference path
    terminal_position: Optional[Tuple[float, float]] = None
    reference_csv: str = ''
    result_csv: str = ''
    mirror_reference: bool = True
    sample_dt: float = 0.03
    map_topic: str = '/map'
    require_map: bool = True

    def __post_init__(self):
        # ROS parameters cannot be None, an empty list means "no override"
        tp = self.terminal_position
        if tp is not None:
            tp = tuple(float(v) for v in tp)
            object.__setattr__(self, 'terminal_position', tp if tp else None)

    @property
    def yaw_piece_len(self):
        return self.piece_len / self.yaw_piece_times

    def validate(self):
        if self.piece_len <= 0.0:
            raise InvalidConfigurationError(f"piece_len must be > 0, got {self.piece_len}")
        if self.mean_vel <= 0.0:
            raise InvalidConfigurationError(f"mean_vel must be > 0, got {self.mean_vel}")
        if self.init_time_times < 0.0:
            raise InvalidConfigurationError(
                f"init_time_times must be >= 0, got {self.init_time_times}")
        if self.yaw_piece_times < 1.0:
            raise InvalidConfigurationError(
                f"yaw_piece_times must be >= 1, got {self.yaw_piece_times}")
        if self.sample_dt <= 0.0:
            raise InvalidConfigurationError(f"sample_dt must be > 0, got {self.sample_dt}")
        if self.terminal_position is not None and len(self.terminal_position) != 2:
            raise InvalidConfigurationError(
                f"terminal_position needs two values, got {list(self.terminal_position)}")
        return self

    def resolve_paths(self, base_dir):
        """Return a copy with relative CSV paths joined onto ``base_dir``."""
        def resolve(path):
            if not path or os.path.isabs(path):
                return path
            return os.path.join(base_dir, path)
        return replace(self, reference_csv=resolve(self.reference_csv),
                       result_csv=resolve(self.result_csv))

    @classmethod
    def from_dict(cls, params):
        known = {f.name for f in fields(cls)}
        unknown = set(params) - known
        if unknown:
            raise InvalidConfigurationError(f"Unknown manager parameters: {sorted(unknown)}")
        return cls(**params).validate()

    @classmethod
    def from_yaml(cls, yaml_path, node_name=None):
        """
        Load the manager section of a YAML file.

        Accepts either a flat mapping of options, a mapping with a ``manager``
        key, or a ROS 2 parameter file::

            plan_manager:
              ros__parameters:
                manager:
                  piece_len: 1.0
        """
        if not os.path.exists(yaml_path):
            raise InvalidConfigurationError(f"Config file not found: {yaml_path}")
        with open(yaml_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        if node_name is not None:
            data = data.get(node_name, {})
        elif len(data) == 1:
            only = next(iter(data.values()))
            if isinstance(only, dict) and 'ros__parameters' in only:
                data = only
        data = data.get('ros__parameters', data)
        data = data.get('manager', data)
        return cls.from_dict(data)
