#!/usr/bin/env python3
"""
Initial guess for the SE2 trajectory optimizer.

Boundary states are laid out the way the optimizer expects them:
position boundaries are 2x3 matrices [p, v, a] (one column each), yaw
boundaries are [yaw, yaw_rate, yaw_acc].
"""
from dataclasses import dataclass

import numpy as np

from uneven_planner.errors import InvalidConfigurationError
from uneven_planner.resampling import path_length, resample_positions, resample_yaw


@dataclass(frozen=True, eq=False)
class InitialGuess:
    init_xy: np.ndarray     # (2, 3)
    end_xy: np.ndarray      # (2, 3)
    inner_xy: np.ndarray    # (2, M)
    init_yaw: np.ndarray    # (3,)
    end_yaw: np.ndarray     # (3,)
    inner_yaw: np.ndarray   # (K,)
    total_time: float

    def __post_init__(self):
        for name in ('init_xy', 'end_xy', 'inner_xy', 'init_yaw', 'end_yaw', 'inner_yaw'):
            arr = np.array(getattr(self, name), dtype=np.float64)
            arr.flags.writeable = False
            object.__setattr__(self, name, arr)

    @property
    def pos_piece_num(self):
        return self.inner_xy.shape[1] + 1

    @property
    def yaw_piece_num(self):
        return self.inner_yaw.shape[0] + 1


def position_boundary(pose, sig_vel, position=None):
    """
    Position boundary [p, v, a] for a pose (x, y, theta).

    The velocity points along theta with signed magnitude ``sig_vel``;
    ``position`` replaces the pose position when given.
    """
    x, y, theta = pose
    state = np.zeros((2, 3))
    state[:, 0] = (x, y) if position is None else position
    state[:, 1] = sig_vel * np.cos(theta), sig_vel * np.sin(theta)
    return state


def yaw_boundary(theta):
    return np.array([theta, 0.0, 0.0])


def estimate_total_time(total_len, mean_vel, init_time_times):
    if mean_vel <= 0.0:
        raise InvalidConfigurationError(f"mean_vel must be > 0, got {mean_vel}")
    return total_len / mean_vel * init_time_times


def build_initial_guess(path, config):
    """
    Assemble the optimizer initial guess from an unwrapped (N, 3) path.

    Configuration is checked before any resampling happens.
    """
    config.validate()
    path = np.asarray(path, dtype=np.float64)

    init_xy = position_boundary(path[0], config.init_sig_vel)
    end_xy = position_boundary(path[-1], config.init_sig_vel, config.terminal_position)

    inner_xy = resample_positions(path, config.piece_len)
    inner_yaw = resample_yaw(path, config.yaw_piece_len)

    total_time = estimate_total_time(path_length(path), config.mean_vel, config.init_time_times)

    return InitialGuess(
        init_xy=init_xy,
        end_xy=end_xy,
        inner_xy=inner_xy,
        init_yaw=yaw_boundary(path[0, 2]),
        end_yaw=yaw_boundary(path[-1, 2]),
        inner_yaw=inner_yaw,
        total_time=float(total_time),
    )
