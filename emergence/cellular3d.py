"""
3D cellular automata on a fully toroidal grid.

Grids are (depth, height, width) uint8 arrays indexed grid[z][y][x]. A single
fixed rule applies: survival with 4-6 live neighbors, birth with exactly 5
(26-cell Moore neighborhood).
"""

import numpy as np
from typing import Any, Optional

from .cellular import coerce_grid, apply_rule
from .rng import ensure_rng
from .constants import (
    GRID_3D_DEFAULT_WIDTH,
    GRID_3D_DEFAULT_HEIGHT,
    GRID_3D_DEFAULT_DEPTH,
    GRID_3D_DENSITY,
    CROSS_3D_HALF,
)


BIRTH_3D = frozenset({5})
SURVIVAL_3D = frozenset({4, 5, 6})

MOORE_OFFSETS_3D = tuple(
    (dz, dy, dx)
    for dz in (-1, 0, 1)
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if not (dz == 0 and dy == 0 and dx == 0)
)


def empty_grid_3d() -> np.ndarray:
    return np.zeros((0, 0, 0), dtype=np.uint8)


def _cell_value_3d(grid: Any, z: int, y: int, x: int) -> int:
    layer = grid[z]
    if layer is None or y >= len(layer):
        return 0
    row = layer[y]
    if row is None or x >= len(row):
        return 0
    value = row[x]
    return 0 if value is None else int(value)


def count_neighbors_3d(grid: Any, x: int, y: int, z: int) -> int:
    """
    Count live neighbors among the 26 surrounding cells, wrapping every axis.

    On a 1x1x1 grid every offset wraps back to the cell itself, so it is
    counted 26 times.

    Args:
        grid: 3D grid indexed grid[z][y][x]
        x, y, z: Cell coordinates

    Returns:
        Neighbor count (0 for malformed grids)
    """
    try:
        depth = len(grid)
        height = len(grid[0]) if depth else 0
        width = len(grid[0][0]) if height else 0
    except TypeError:
        return 0

    if depth == 0 or height == 0 or width == 0:
        return 0

    count = 0
    for dz, dy, dx in MOORE_OFFSETS_3D:
        count += _cell_value_3d(grid, (z + dz) % depth, (y + dy) % height, (x + dx) % width)

    return count


def neighbor_counts_3d(grid: np.ndarray) -> np.ndarray:
    """Vectorized toroidal 26-neighbor counts, shape (D, H, W) int16"""
    source = grid.astype(np.int16, copy=False)
    counts = np.zeros(grid.shape, dtype=np.int16)
    for dz, dy, dx in MOORE_OFFSETS_3D:
        counts += np.roll(source, shift=(-dz, -dy, -dx), axis=(0, 1, 2))
    return counts


def step_grid_3d(grid: Any, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Advance a 3D grid by one generation (B5/S456).

    Args:
        grid: Current (D, H, W) grid
        out: Optional preallocated buffer for double buffering

    Returns:
        Next generation, or an empty (0, 0, 0) grid for malformed input
    """
    current = coerce_grid(grid, 3)
    if current is None:
        return empty_grid_3d()

    counts = neighbor_counts_3d(current)
    return apply_rule(current, counts, BIRTH_3D, SURVIVAL_3D, out=out)


def initialize_grid_3d(
    width: int = GRID_3D_DEFAULT_WIDTH,
    height: int = GRID_3D_DEFAULT_HEIGHT,
    depth: int = GRID_3D_DEFAULT_DEPTH,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """
    Create a random 3D grid with a seed cross through the center.

    The cross is 5 cells long on each axis and is stamped over the random
    background.

    Returns:
        (depth, height, width) uint8 grid
    """
    rng = ensure_rng(rng)
    width = max(int(width), 0)
    height = max(int(height), 0)
    depth = max(int(depth), 0)
    grid = (rng.random((depth, height, width)) < GRID_3D_DENSITY).astype(np.uint8)

    if grid.size == 0:
        return grid

    cx, cy, cz = width // 2, height // 2, depth // 2
    for i in range(-CROSS_3D_HALF, CROSS_3D_HALF + 1):
        if 0 <= cx + i < width:
            grid[cz, cy, cx + i] = 1
        if 0 <= cy + i < height:
            grid[cz, cy + i, cx] = 1
        if 0 <= cz + i < depth:
            grid[cz + i, cy, cx] = 1

    return grid


def toggle_cell_3d(grid: Any, x: int, y: int, z: int) -> np.ndarray:
    """Return a copy with cell (x, y, z) flipped; out-of-range is a no-op copy"""
    current = coerce_grid(grid, 3)
    if current is None:
        return empty_grid_3d()

    toggled = current.copy()
    depth, height, width = toggled.shape
    if 0 <= z < depth and 0 <= y < height and 0 <= x < width:
        toggled[z, y, x] = 1 - toggled[z, y, x]
    return toggled
