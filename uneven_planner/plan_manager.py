#!/usr/bin/env python3
"""
Plan manager: turns a goal into an SE2 trajectory.

A goal is accepted only while the map is ready and no other plan is running.
The accepted goal runs the whole pipeline (reference path, headings, initial
guess, optimizer, publish/save) before the next one can be accepted.
"""
import enum
import logging
import threading
import time
from typing import Protocol

import numpy as np

from uneven_planner.errors import (
    EmptyPathError, InsufficientDataError, OptimizerFailure, PersistenceError,
)
from uneven_planner.initial_guess import build_initial_guess
from uneven_planner.reference_path import estimate_headings, save_path_to_csv, unwrap_yaw
from uneven_planner.trajectory import build_trajectory_message


class MapStatus(Protocol):
    def map_ready(self) -> bool: ...


class PathSource(Protocol):
    def plan(self, start, goal) -> np.ndarray: ...


class Optimizer(Protocol):
    def optimize(self, guess): ...


class TrajectorySink(Protocol):
    def publish(self, msg) -> None: ...


class PlanState(enum.Enum):
    IDLE = 0
    PLANNING = 1


class PlanManager:
    def __init__(self, config, map_status, path_source, optimizer, traj_sink,
                 vis_sink=None, clock=time.time, logger=None):
        self.config = config.validate()
        self.map_status = map_status
        self.path_source = path_source
        self.optimizer = optimizer
        self.traj_sink = traj_sink
        self.vis_sink = vis_sink
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

        # held for the whole pipeline, only ever acquired without blocking
        self._in_plan = threading.Lock()
        self._odom_lock = threading.Lock()
        self._odom_pos = np.zeros(3)

    @property
    def state(self):
        return PlanState.PLANNING if self._in_plan.locked() else PlanState.IDLE

    def update_odom(self, x, y, yaw):
        with self._odom_lock:
            self._odom_pos = np.array([x, y, yaw], dtype=np.float64)

    def odom_pose(self):
        with self._odom_lock:
            return self._odom_pos.copy()

    def handle_goal(self, goal):
        """
        Run one planning cycle for ``goal`` (x, y, yaw).

        Returns the optimized trajectory, or None when the goal was dropped
        or the cycle aborted.
        """
        if not self.map_status.map_ready():
            self.logger.debug("Goal dropped: map not ready")
            return None
        if not self._in_plan.acquire(blocking=False):
            self.logger.debug("Goal dropped: already planning")
            return None

        try:
            start = self.odom_pose()
            return self._plan(start, np.asarray(goal, dtype=np.float64))
        except (EmptyPathError, InsufficientDataError, OptimizerFailure) as ex:
            self.logger.warning(f"Planning aborted: {ex}")
            return None
        finally:
            self._in_plan.release()

    def _plan(self, start, goal):
        self.logger.info(f"Planning from [{start[0]:.2f}, {start[1]:.2f}, {start[2]:.2f}] "
                         f"to [{goal[0]:.2f}, {goal[1]:.2f}, {goal[2]:.2f}]")

        raw_path = np.asarray(self.path_source.plan(start, goal), dtype=np.float64)
        if raw_path.size == 0:
            raise EmptyPathError("Path source returned no reference path")

        path = unwrap_yaw(estimate_headings(raw_path), logger=self.logger)
        guess = build_initial_guess(path, self.config)
        self.logger.info(f"Initial guess: {len(path)} samples, {guess.inner_xy.shape[1]} xy nodes, "
                         f"{guess.inner_yaw.shape[0]} yaw nodes, T={guess.total_time:.2f} s")

        traj = self.optimizer.optimize(guess)
        self.logger.info(f"Trajectory: {traj.pos_traj.piece_num} pieces, "
                         f"duration {traj.total_duration():.2f} s, "
                         f"max speed {traj.max_speed():.2f}, "
                         f"nonholonomic error {traj.nonholonomic_error():.4f}")

        if self.vis_sink is not None:
            self.vis_sink.show(traj)

        if self.config.result_csv:
            self._save(traj)

        self.traj_sink.publish(build_trajectory_message(traj, self.clock()))
        return traj

    def _save(self, traj):
        try:
            save_path_to_csv(traj.sample_positions(self.config.sample_dt), self.config.result_csv)
            self.logger.info(f"Saved result to {self.config.result_csv}")
        except PersistenceError as ex:
            self.logger.warning(str(ex))
