"""
2D cellular automata on a toroidal grid.

Grids are (height, width) uint8 arrays of {0, 1}. Transition rules are
selected by CellularRuleset; string ids resolve through
CellularRuleset.parse (unknown ids run conway).

Malformed input (None, empty, ragged, wrong rank) never raises: neighbor
counts treat absent cells as 0 and steps return an empty grid.
"""

import numpy as np
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from .data_types import CellularRuleset
from .rng import ensure_rng
from .constants import (
    GRID_2D_DEFAULT_WIDTH,
    GRID_2D_DEFAULT_HEIGHT,
    GRID_2D_DENSITY,
    CONWAY_CLEAR_HALF,
    GLIDER_CELLS,
    PULSAR_ORIGIN,
    PULSAR_BOX,
    PULSAR_CELLS,
)


# (birth counts, survival counts) per ruleset
RULE_TABLE: Dict[CellularRuleset, Tuple[FrozenSet[int], FrozenSet[int]]] = {
    CellularRuleset.CONWAY: (frozenset({3}), frozenset({2, 3})),
    CellularRuleset.MAZE: (frozenset({3}), frozenset({1, 2, 3, 4, 5})),
    CellularRuleset.CORAL: (frozenset({3, 6, 7}), frozenset({4, 5, 6, 7})),
}

# Moore neighborhood offsets as (dy, dx)
MOORE_OFFSETS_2D = tuple(
    (dy, dx)
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if not (dy == 0 and dx == 0)
)


def empty_grid() -> np.ndarray:
    """The 'could not advance' result"""
    return np.zeros((0, 0), dtype=np.uint8)


def coerce_grid(grid: Any, ndim: int) -> Optional[np.ndarray]:
    """
    Convert grid-like input to a non-empty uint8 array of rank ndim.

    Returns:
        Array view/copy of the grid, or None when the input is malformed
    """
    if grid is None:
        return None

    try:
        arr = np.asarray(grid)
    except (ValueError, TypeError):
        # Ragged nested sequences
        return None

    if arr.ndim != ndim or arr.size == 0 or arr.dtype == object:
        return None

    return arr.astype(np.uint8, copy=False)


def _cell_value(grid: Any, row: int, col: int) -> int:
    """Cell value, or 0 when the row is short or the cell is missing"""
    line = grid[row]
    if line is None or col >= len(line):
        return 0
    value = line[col]
    return 0 if value is None else int(value)


def count_neighbors(grid: Any, x: int, y: int) -> int:
    """
    Count live Moore neighbors of (x, y) with toroidal wrapping.

    Width is taken from the first row, so cells missing from shorter rows
    count as 0.

    Args:
        grid: 2D grid (array or nested lists), indexed grid[y][x]
        x: Column
        y: Row

    Returns:
        Neighbor count in [0, 8] for binary grids (0 for malformed grids)
    """
    try:
        height = len(grid)
        width = len(grid[0]) if height else 0
    except TypeError:
        return 0

    if height == 0 or width == 0:
        return 0

    count = 0
    for dy, dx in MOORE_OFFSETS_2D:
        ny = (y + dy) % height
        nx = (x + dx) % width
        count += _cell_value(grid, ny, nx)

    return count


def neighbor_counts(grid: np.ndarray) -> np.ndarray:
    """
    Vectorized toroidal Moore neighbor counts for a whole grid.

    Args:
        grid: (H, W) array

    Returns:
        (H, W) int16 array of neighbor counts
    """
    source = grid.astype(np.int16, copy=False)
    counts = np.zeros(grid.shape, dtype=np.int16)
    for dy, dx in MOORE_OFFSETS_2D:
        counts += np.roll(source, shift=(-dy, -dx), axis=(0, 1))
    return counts


def apply_rule(
    grid: np.ndarray,
    counts: np.ndarray,
    birth: FrozenSet[int],
    survival: FrozenSet[int],
    out: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Apply a birth/survival rule given precomputed neighbor counts.

    Writes into out when it matches the grid shape, otherwise allocates.
    """
    alive = grid == 1
    survives = np.isin(counts, list(survival))
    born = np.isin(counts, list(birth))
    next_state = np.where(alive, survives, born)

    if out is not None and out.shape == grid.shape:
        out[...] = next_state
        return out

    return next_state.astype(np.uint8)


def step_grid(grid: Any, ruleset_id: Any = CellularRuleset.CONWAY, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Advance a 2D grid by one generation.

    Args:
        grid: Current (H, W) grid (not mutated unless passed as out)
        ruleset_id: CellularRuleset or id string (unknown -> conway)
        out: Optional preallocated (H, W) buffer for double buffering

    Returns:
        Next generation (out when supplied and shape-compatible), or an
        empty (0, 0) grid for malformed input
    """
    current = coerce_grid(grid, 2)
    if current is None:
        return empty_grid()

    birth, survival = RULE_TABLE[CellularRuleset.parse(ruleset_id)]
    counts = neighbor_counts(current)
    return apply_rule(current, counts, birth, survival, out=out)


def initialize_grid(
    ruleset_id: Any = CellularRuleset.CONWAY,
    width: int = GRID_2D_DEFAULT_WIDTH,
    height: int = GRID_2D_DEFAULT_HEIGHT,
    rng: Optional[np.random.Generator] = None
) -> np.ndarray:
    """
    Create a random 2D grid, seeded with fixed shapes for conway.

    For conway: clear the centered 10x10 region, stamp the glider at the
    top-left, and when the grid is larger than 29x29 clear the 15x15 box at
    (15, 15) and stamp the pulsar inside it.

    Args:
        ruleset_id: Ruleset the grid is seeded for
        width: Columns
        height: Rows
        rng: Optional generator (fresh entropy when None)

    Returns:
        (height, width) uint8 grid
    """
    rng = ensure_rng(rng)
    width = max(int(width), 0)
    height = max(int(height), 0)
    grid = (rng.random((height, width)) < GRID_2D_DENSITY).astype(np.uint8)

    if ruleset_id != CellularRuleset.CONWAY:
        return grid

    center_x = width // 2
    center_y = height // 2
    grid[
        max(center_y - CONWAY_CLEAR_HALF, 0):max(center_y + CONWAY_CLEAR_HALF, 0),
        max(center_x - CONWAY_CLEAR_HALF, 0):max(center_x + CONWAY_CLEAR_HALF, 0)
    ] = 0

    if width > 5 and height > 5:
        stamp(grid, GLIDER_CELLS)

    origin_y, origin_x = PULSAR_ORIGIN
    if origin_x + PULSAR_BOX - 1 < width and origin_y + PULSAR_BOX - 1 < height:
        grid[origin_y:origin_y + PULSAR_BOX, origin_x:origin_x + PULSAR_BOX] = 0
        stamp(grid, PULSAR_CELLS, origin=PULSAR_ORIGIN)

    return grid


def stamp(grid: np.ndarray, cells, origin: Tuple[int, int] = (0, 0)) -> np.ndarray:
    """Set (row, col) cells live relative to origin, skipping out-of-range cells"""
    height, width = grid.shape
    for row, col in cells:
        y = origin[0] + row
        x = origin[1] + col
        if 0 <= y < height and 0 <= x < width:
            grid[y, x] = 1
    return grid


def toggle_cell(grid: Any, x: int, y: int) -> np.ndarray:
    """
    Return a copy of the grid with cell (x, y) flipped.

    Out-of-range coordinates return an unchanged copy; malformed grids
    return an empty grid.
    """
    current = coerce_grid(grid, 2)
    if current is None:
        return empty_grid()

    toggled = current.copy()
    height, width = toggled.shape
    if 0 <= y < height and 0 <= x < width:
        toggled[y, x] = 1 - toggled[y, x]
    return toggled


def count_live(grid: Any) -> int:
    """Number of cells equal to 1 (any rank; malformed input counts 0)"""
    try:
        arr = np.asarray(grid)
    except (ValueError, TypeError):
        return 0
    if arr.dtype == object:
        return 0
    return int(np.count_nonzero(arr == 1))


class GridBuffers:
    """
    Two fixed allocations for in-place generation stepping.

    advance() writes the next generation into the back buffer and swaps,
    so steady-state stepping allocates nothing. Not safe for concurrent
    advance() calls on the same instance.
    """

    def __init__(self, grid: np.ndarray):
        self.front = np.array(grid, dtype=np.uint8)
        self.back = np.zeros_like(self.front)

    def advance(self, step_fn: Callable[..., np.ndarray], *args) -> np.ndarray:
        """
        Step front into back and swap.

        Args:
            step_fn: step_grid or step_grid_3d (must accept out=)
            *args: Extra positional args after the grid (e.g. ruleset id)

        Returns:
            New front buffer (empty grid if the step could not advance)
        """
        result = step_fn(self.front, *args, out=self.back)
        if result is not self.back:
            # Step degraded (malformed/empty front)
            return result

        self.front, self.back = self.back, self.front
        return self.front

    def replace(self, grid: np.ndarray):
        """Load new contents (e.g. after an edit), reallocating on resize"""
        grid = np.asarray(grid, dtype=np.uint8)
        if grid.shape != self.front.shape:
            self.front = grid.copy()
            self.back = np.zeros_like(self.front)
        else:
            self.front[...] = grid
