#!/usr/bin/env python3
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


class Piece:
    """
    One polynomial piece.

    coeffs: (dim, order + 1) array, highest power first, in local time
    t in [0, duration].
    """

    def __init__(self, coeffs, duration):
        self.coeffs = np.atleast_2d(np.asarray(coeffs, dtype=np.float64))
        self.duration = float(duration)

    @property
    def dim(self):
        return self.coeffs.shape[0]

    def value(self, t):
        return np.array([np.polyval(c, t) for c in self.coeffs])

    def derivative(self, t, order=1):
        return np.array([np.polyval(np.polyder(c, order), t) for c in self.coeffs])


class PiecewisePolynomial:
    def __init__(self, pieces):
        self.pieces = list(pieces)

    @property
    def piece_num(self):
        return len(self.pieces)

    def __len__(self):
        return len(self.pieces)

    def __getitem__(self, i):
        return self.pieces[i]

    def __iter__(self):
        return iter(self.pieces)

    def durations(self):
        return np.array([p.duration for p in self.pieces])

    def total_duration(self):
        return float(np.sum(self.durations()))

    def locate(self, t):
        """Piece index and local time for global time t, clamped to the trajectory."""
        t = min(max(t, 0.0), self.total_duration())
        for i, piece in enumerate(self.pieces):
            if t <= piece.duration or i == len(self.pieces) - 1:
                return i, min(t, piece.duration)
            t -= piece.duration

    def value(self, t):
        i, local_t = self.locate(t)
        return self.pieces[i].value(local_t)

    def derivative(self, t, order=1):
        i, local_t = self.locate(t)
        return self.pieces[i].derivative(local_t, order)


class SE2Trajectory:
    """Planar trajectory: 2-D position polynomial plus 1-D yaw polynomial."""

    def __init__(self, pos_traj, yaw_traj):
        self.pos_traj = pos_traj
        self.yaw_traj = yaw_traj

    def total_duration(self):
        return self.pos_traj.total_duration()

    def position(self, t):
        return self.pos_traj.value(t)

    def heading(self, t):
        return float(self.yaw_traj.value(t)[0])

    def sample_positions(self, dt):
        """Positions every dt seconds for t < total duration, as (N, 2)."""
        ts = np.arange(0.0, self.total_duration(), dt)
        if ts.size == 0:
            return np.zeros((0, 2))
        return np.array([self.position(t) for t in ts])

    def max_speed(self, dt=0.05):
        ts = np.arange(0.0, self.total_duration() + dt, dt)
        return float(max(np.linalg.norm(self.pos_traj.derivative(t)) for t in ts))

    def nonholonomic_error(self, dt=0.05):
        """Mean lateral velocity in the body frame; zero for a car-like path."""
        ts = np.arange(0.0, self.total_duration() + dt, dt)
        errs = []
        for t in ts:
            vx, vy = self.pos_traj.derivative(t)
            yaw = self.heading(t)
            errs.append(abs(-np.sin(yaw) * vx + np.cos(yaw) * vy))
        return float(np.mean(errs))


@dataclass
class TrajectoryMessage:
    """Field layout of the SE2 trajectory message consumed by the MPC tracker."""

    start_time: float
    init_v: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    init_a: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    pos_pts: List[Tuple[float, float]] = field(default_factory=list)
    posT_pts: List[float] = field(default_factory=list)
    angle_pts: List[float] = field(default_factory=list)
    angleT_pts: List[float] = field(default_factory=list)


def build_trajectory_message(traj, start_time):
    """
    Piece start points with their durations, for position and yaw.

    Both point lists end with one extra sample at the trajectory end, so
    they hold one more entry than their duration lists.
    """
    msg = TrajectoryMessage(start_time=start_time)

    for piece in traj.pos_traj:
        x, y = piece.value(0.0)
        msg.pos_pts.append((float(x), float(y)))
        msg.posT_pts.append(piece.duration)
    x, y = traj.pos_traj.value(traj.pos_traj.total_duration())
    msg.pos_pts.append((float(x), float(y)))

    for piece in traj.yaw_traj:
        msg.angle_pts.append(float(piece.value(0.0)[0]))
        msg.angleT_pts.append(piece.duration)
    msg.angle_pts.append(float(traj.yaw_traj.value(traj.yaw_traj.total_duration())[0]))

    return msg
