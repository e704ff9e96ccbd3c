"""
Canvas boundary resolution for agent movement.

Applied after integration so positions end each step inside
[0, width] x [0, height].
"""

import numpy as np
from typing import Tuple

from .constants import ABSORB_VELOCITY_FACTOR


def _wrap_axis(value: float, limit: float) -> float:
    if limit <= 0.0:
        return 0.0
    if value < 0.0 or value > limit:
        # Re-enter from the opposite edge, keeping the overshoot
        return value % limit
    return value


def apply_boundary(
    position: np.ndarray,
    velocity: np.ndarray,
    width: float,
    height: float,
    behavior: str
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Resolve an integrated position against the canvas edges.

    Supported behaviors:
    - wrap: toroidal canvas
    - bounce: flip the crossed velocity component, clamp position
    - absorb: clamp position, halve velocity when resting on an edge

    Unknown behaviors leave position and velocity untouched.

    Args:
        position: Integrated position [x, y]
        velocity: Current velocity [vx, vy]
        width: Canvas width
        height: Canvas height
        behavior: Boundary behavior id

    Returns:
        Tuple of (position, velocity) as new arrays
    """
    pos = np.array(position, dtype=np.float64)
    vel = np.array(velocity, dtype=np.float64)
    limits = (float(width), float(height))

    if behavior == "wrap":
        for axis in range(2):
            pos[axis] = _wrap_axis(pos[axis], limits[axis])

    elif behavior == "bounce":
        for axis in range(2):
            if pos[axis] < 0.0 or pos[axis] > limits[axis]:
                vel[axis] = -vel[axis]
                pos[axis] = min(max(pos[axis], 0.0), limits[axis])

    elif behavior == "absorb":
        for axis in range(2):
            pos[axis] = min(max(pos[axis], 0.0), limits[axis])

        on_edge = (
            pos[0] == 0.0 or pos[0] == limits[0] or
            pos[1] == 0.0 or pos[1] == limits[1]
        )
        if on_edge:
            vel *= ABSORB_VELOCITY_FACTOR

    return pos, vel
