#!/usr/bin/env python3
import numpy as np

from uneven_planner.errors import InvalidConfigurationError


def segment_lengths(path):
    """Euclidean length of every segment, positions only."""
    xy = np.asarray(path, dtype=np.float64)[:, :2]
    return np.linalg.norm(np.diff(xy, axis=0), axis=1)


def path_length(path):
    return float(np.sum(segment_lengths(path)))


def _walk(path, resolution):
    """
    Yield (k, t) for every inner node at spacing ``resolution``.

    k is the segment index and t the interpolation parameter on segment
    k -> k+1. The running length is only compared strictly, so no node is
    placed on the last sample.
    """
    if not resolution > 0.0:
        raise InvalidConfigurationError(f"Resampling resolution must be > 0, got {resolution}")

    acc = 0.0
    for k, seg in enumerate(segment_lengths(path)):
        acc += seg
        while acc > resolution:
            yield k, 1.0 - (acc - resolution) / seg
            acc -= resolution


def resample_positions(path, piece_len):
    """
    Inner position nodes every ``piece_len`` of arc length.

    Returns:
        (2, M) array, one column per node
    """
    path = np.asarray(path, dtype=np.float64)
    nodes = [path[k, :2] + t * (path[k + 1, :2] - path[k, :2]) for k, t in _walk(path, piece_len)]
    if not nodes:
        return np.zeros((2, 0))
    return np.stack(nodes, axis=1)


def resample_yaw(path, piece_len):
    """Inner heading nodes every ``piece_len`` of arc length, as an (K,) array."""
    path = np.asarray(path, dtype=np.float64)
    nodes = [path[k, 2] + t * (path[k + 1, 2] - path[k, 2]) for k, t in _walk(path, piece_len)]
    return np.array(nodes, dtype=np.float64)
