"""
Spatial utilities for 2D agent populations.

Neighbor search with two interchangeable backends:
- scipy.cKDTree radius queries (default, constants.USE_CKDTREE)
- O(n^2) numpy scan

Both return identical neighbor sets: other agents (by id) strictly closer
than the interaction radius.
"""

import numpy as np
from typing import List, Optional
from scipy.spatial import cKDTree

from .constants import USE_CKDTREE, CKDTREE_LEAFSIZE


def clamp_speed(velocity: np.ndarray, max_speed: float) -> np.ndarray:
    """
    Clamp velocity magnitude to maximum speed.

    Args:
        velocity: Velocity vector [vx, vy]
        max_speed: Maximum allowed speed

    Returns:
        Velocity with clamped magnitude
    """
    speed = np.hypot(velocity[0], velocity[1])

    if speed > max_speed:
        # Rescale to max_speed
        return velocity * (max_speed / speed)

    return velocity


def _neighbors_scan(positions: np.ndarray, ids: np.ndarray, radius: float) -> List[np.ndarray]:
    """O(n^2) pairwise distance scan"""
    diff = positions[np.newaxis, :, :] - positions[:, np.newaxis, :]
    dist = np.hypot(diff[..., 0], diff[..., 1])
    mask = (dist < radius) & (ids[:, np.newaxis] != ids[np.newaxis, :])
    return [np.flatnonzero(row) for row in mask]


def _neighbors_ckdtree(
    positions: np.ndarray,
    ids: np.ndarray,
    radius: float,
    leafsize: int
) -> List[np.ndarray]:
    """cKDTree query_ball_point, then strict-radius and self filtering"""
    tree = cKDTree(positions, leafsize=leafsize)
    candidates = tree.query_ball_point(positions, r=radius)

    result = []
    for row, indices in enumerate(candidates):
        indices = np.asarray(indices, dtype=np.intp)
        if indices.size == 0:
            result.append(indices)
            continue

        # query_ball_point is inclusive (<= r); interaction uses strict < r
        offsets = positions[indices] - positions[row]
        dist = np.hypot(offsets[:, 0], offsets[:, 1])
        keep = (dist < radius) & (ids[indices] != ids[row])
        result.append(np.sort(indices[keep]))

    return result


def neighbors_within(
    positions: np.ndarray,
    ids: np.ndarray,
    radius: float,
    use_ckdtree: Optional[bool] = None,
    leafsize: Optional[int] = None
) -> List[np.ndarray]:
    """
    Find neighbor rows for every agent.

    Args:
        positions: (N, 2) positions
        ids: (N,) agent ids (rows sharing the source id are excluded)
        radius: Interaction radius (strict)
        use_ckdtree: Override USE_CKDTREE constant (for testing)
        leafsize: Override CKDTREE_LEAFSIZE constant (for testing)

    Returns:
        List of N sorted row-index arrays
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
    ids = np.asarray(ids)
    n = len(positions)

    if n == 0:
        return []

    # Nothing is strictly closer than a non-positive radius
    if not radius > 0:
        return [np.empty(0, dtype=np.intp) for _ in range(n)]

    use_ckdtree = USE_CKDTREE if use_ckdtree is None else use_ckdtree
    if use_ckdtree:
        return _neighbors_ckdtree(positions, ids, radius, leafsize or CKDTREE_LEAFSIZE)

    return _neighbors_scan(positions, ids, radius)
