#!/usr/bin/env python3
import logging

import numpy as np
from scipy.interpolate import CubicSpline

from uneven_planner.errors import OptimizerFailure
from uneven_planner.trajectory import Piece, PiecewisePolynomial, SE2Trajectory

logger = logging.getLogger(__name__)


def _clamped_spline(nodes, total_time, start_rate, end_rate):
    """
    Clamped cubic spline through ``nodes`` (n, dim) with the total time
    spread evenly over the pieces.
    """
    nodes = np.asarray(nodes, dtype=np.float64)
    ts = np.linspace(0.0, total_time, nodes.shape[0])
    spline = CubicSpline(ts, nodes, axis=0,
                         bc_type=((1, np.asarray(start_rate)), (1, np.asarray(end_rate))))
    # spline.c: (4, pieces, dim), highest power first
    return PiecewisePolynomial(
        Piece(spline.c[:, i, :].T, ts[i + 1] - ts[i]) for i in range(nodes.shape[0] - 1)
    )


class SplineWarmStart:
    """
    Turns an initial guess directly into an SE2 trajectory.

    Stands in for the SE2 optimizer when none is attached: the nodes are
    interpolated with clamped cubic splines that match the boundary
    position/velocity and yaw/yaw rate. Boundary accelerations are not
    enforced and nothing is optimized.
    """

    def optimize(self, guess):
        if not np.isfinite(guess.total_time) or guess.total_time <= 0.0:
            raise OptimizerFailure(f"Cannot allocate time, total_time={guess.total_time}")

        pos_nodes = np.column_stack([guess.init_xy[:, 0], guess.inner_xy, guess.end_xy[:, 0]]).T
        pos_traj = _clamped_spline(pos_nodes, guess.total_time,
                                   guess.init_xy[:, 1], guess.end_xy[:, 1])

        yaw_nodes = np.concatenate([[guess.init_yaw[0]], guess.inner_yaw, [guess.end_yaw[0]]])
        yaw_traj = _clamped_spline(yaw_nodes[:, None], guess.total_time,
                                   guess.init_yaw[1:2], guess.end_yaw[1:2])

        logger.debug(f"Warm start: {pos_traj.piece_num} position pieces, "
                     f"{yaw_traj.piece_num} yaw pieces over {guess.total_time:.2f} s")
        return SE2Trajectory(pos_traj, yaw_traj)
