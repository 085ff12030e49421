#!/usr/bin/env python3
"""
Reference path handling: CSV loading, heading estimation, yaw unwrapping
and saving of the planned result.
"""
import logging
import os

import numpy as np
import pandas as pd

from uneven_planner.errors import EmptyPathError, InsufficientDataError, PersistenceError

logger = logging.getLogger(__name__)


def estimate_headings(path_xy):
    """
    Attach a heading to every sample of a 2-D path.

    Forward difference at the first sample, backward difference at the last
    and central differences in between.

    Args:
        path_xy: (N, 2) array-like of positions, N >= 2

    Returns:
        (N, 3) array of [x, y, theta]
    """
    xy = np.asarray(path_xy, dtype=np.float64)
    if xy.ndim != 2 or xy.shape[1] != 2:
        if xy.size == 0:
            raise InsufficientDataError("Need at least 2 path samples for headings, got 0")
        raise InsufficientDataError(f"Path samples must be (N, 2) positions, got shape {xy.shape}")
    n = xy.shape[0]
    if n < 2:
        raise InsufficientDataError(f"Need at least 2 path samples for headings, got {n}")

    diff = np.empty_like(xy)
    diff[0] = xy[1] - xy[0]
    diff[1:-1] = xy[2:] - xy[:-2]
    diff[-1] = xy[-1] - xy[-2]

    theta = np.arctan2(diff[:, 1], diff[:, 0])
    return np.column_stack([xy, theta])


def unwrap_yaw(path, logger=logger):
    """
    Shift headings by multiples of 2*pi so neighbours differ by less than pi/2.

    Corrections are sequential: sample i+1 is compared against the already
    corrected sample i.
    """
    out = np.array(path, dtype=np.float64)
    two_pi = 2.0 * np.pi
    for i in range(out.shape[0] - 1):
        dyaw = out[i + 1, 2] - out[i, 2]
        while dyaw >= np.pi / 2:
            out[i + 1, 2] -= two_pi
            dyaw = out[i + 1, 2] - out[i, 2]
        while dyaw <= -np.pi / 2:
            out[i + 1, 2] += two_pi
            dyaw = out[i + 1, 2] - out[i, 2]
        if abs(dyaw) >= np.pi / 2:
            # a cusp: no multiple of 2*pi brings this pair inside the bound
            logger.warning(f"Heading reversal of {dyaw:.2f} rad between samples {i} and {i + 1}")
    return out


def read_path_from_csv(file_path, mirror=True):
    """
    Read x, y from a reference path CSV.

    The first line is a header, blank lines and '#' lines are skipped and only
    the first two columns are used. The stored frame is mirrored on both
    axes, so positions are negated unless ``mirror`` is False.
    """
    try:
        df = pd.read_csv(file_path, header=None, skiprows=1, comment='#', usecols=[0, 1],
                         skip_blank_lines=True, skipinitialspace=True)
        xy = df.to_numpy(dtype=np.float64)
    except pd.errors.EmptyDataError:
        return np.empty((0, 2))
    except (pd.errors.ParserError, ValueError) as ex:
        raise EmptyPathError(f"Could not parse reference path {file_path}: {ex}") from ex

    if mirror:
        xy = -xy
    return xy


def save_path_to_csv(result_path, file_path):
    """Write one ``x,y`` line per point. Raises PersistenceError if the file cannot be opened."""
    try:
        f = open(file_path, 'w')
    except OSError as ex:
        raise PersistenceError(f"Could not open file {file_path}: {ex}") from ex

    with f:
        for x, y in np.asarray(result_path, dtype=np.float64).reshape(-1, 2):
            f.write(f"{x},{y}\n")
    return True


class CsvPathSource:
    """Path source that replays a stored reference path for every goal."""

    def __init__(self, file_path, mirror=True, logger=logger):
        self.file_path = file_path
        self.mirror = mirror
        self.logger = logger

    def plan(self, start, goal):
        # start and goal are ignored, the stored path already connects them
        if not self.file_path or not os.path.exists(self.file_path):
            self.logger.error(f"Reference path file not found: {self.file_path}")
            return np.empty((0, 2))

        path = read_path_from_csv(self.file_path, mirror=self.mirror)
        self.logger.info(f"Loaded {len(path)} reference samples from {self.file_path}")
        return path
