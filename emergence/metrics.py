"""
Emergent-behavior metrics.

Derives coherence, diversity, and efficiency from either an agent
population or a cellular grid. Every value is clamped to [0, 1] and NaN
collapses to 0. Calls are read-only.
"""

import math
from collections import deque
from typing import Any, Deque, Dict, List, Optional

import numpy as np

from .agent import Agent
from .data_types import Metrics, SimulationRules
from .cellular import count_live
from .constants import (
    DIVERSITY_NORMALIZATION,
    GRID_EFFICIENCY_GENERATION_WEIGHT,
    GRID_EFFICIENCY_CELL_WEIGHT,
    METRICS_HISTORY_LIMIT,
)


def clamp_unit(value: float) -> float:
    """Clamp to [0, 1]; NaN and None become 0"""
    if value is None or math.isnan(value):
        return 0.0
    return float(min(1.0, max(0.0, value)))


def _efficiency(energies: np.ndarray) -> float:
    """1 - variance / mean^2, with the all-zero population defined as 1"""
    mean_energy = energies.mean()

    if mean_energy != 0:
        variance = np.mean((energies - mean_energy) ** 2)
        return float(1.0 - variance / (mean_energy * mean_energy))

    if np.all(energies == 0):
        return 1.0

    return 0.0


def compute_agent_metrics(agents: List[Agent], rules: Optional[SimulationRules]) -> Metrics:
    """
    Metrics for an agent population.

    - coherence: |mean velocity| / interaction.speed (0 when speed unset or 0)
    - diversity: mean distance from the centroid / 200
    - efficiency: 1 - energy variance / mean energy^2
    - emergence: coherence * diversity
    - complexity: 4 * coherence * (1 - coherence) * diversity

    Args:
        agents: Population to measure
        rules: Simulation rules (None yields zero metrics)

    Returns:
        Metrics with every field in [0, 1]
    """
    if rules is None or len(agents) == 0:
        return Metrics()

    positions = np.array([a.position for a in agents], dtype=np.float64).reshape(-1, 2)
    velocities = np.array([a.velocity for a in agents], dtype=np.float64).reshape(-1, 2)
    energies = np.array([a.energy for a in agents], dtype=np.float64)

    speed = rules.interaction.speed
    with np.errstate(invalid='ignore', divide='ignore', over='ignore'):
        if speed:
            mean_velocity = velocities.mean(axis=0)
            coherence = float(np.hypot(mean_velocity[0], mean_velocity[1]) / speed)
        else:
            coherence = 0.0

        centroid = positions.mean(axis=0)
        offsets = positions - centroid
        mean_distance = float(np.hypot(offsets[:, 0], offsets[:, 1]).mean())
        diversity = mean_distance / DIVERSITY_NORMALIZATION

        efficiency = _efficiency(energies)

    coherence = clamp_unit(coherence)
    diversity = clamp_unit(diversity)

    return Metrics(
        coherence=coherence,
        diversity=diversity,
        efficiency=clamp_unit(efficiency),
        emergence=clamp_unit(coherence * diversity),
        # Peaks at coherence 0.5
        complexity=clamp_unit(4.0 * coherence * (1.0 - coherence) * diversity)
    )


def compute_grid_metrics(grid: Any, generation: int) -> Metrics:
    """
    Metrics for a 2D or 3D cellular grid.

    - coherence: live-cell density
    - diversity: |0.5 - density| * 2
    - efficiency: min(1, live / (generation*0.1 + live*0.01)) once the
      run has advanced and cells are alive, else 0
    - emergence: sin(pi * density), 0 for an empty grid
    - complexity: 4 * density * (1 - density)

    Args:
        grid: 2D or 3D grid (malformed grids count as empty)
        generation: Steps taken since initialization

    Returns:
        Metrics with every field in [0, 1]
    """
    try:
        total_cells = int(np.asarray(grid).size)
    except (ValueError, TypeError):
        total_cells = 0

    live_cells = count_live(grid) if total_cells else 0
    density = live_cells / total_cells if total_cells > 0 else 0.0

    if generation > 0 and live_cells > 0:
        efficiency = min(1.0, live_cells / (
            generation * GRID_EFFICIENCY_GENERATION_WEIGHT + live_cells * GRID_EFFICIENCY_CELL_WEIGHT
        ))
    else:
        efficiency = 0.0

    return Metrics(
        coherence=clamp_unit(density),
        diversity=clamp_unit(abs(0.5 - density) * 2.0),
        efficiency=clamp_unit(efficiency),
        emergence=clamp_unit(math.sin(math.pi * density)) if density > 0 else 0.0,
        # Peaks at half density
        complexity=clamp_unit(4.0 * density * (1.0 - density))
    )


class MetricsHistory:
    """
    Bounded rolling record of metrics, oldest evicted first.

    Each entry is Metrics.to_dict() plus the generation it was taken at.
    """

    def __init__(self, limit: int = METRICS_HISTORY_LIMIT):
        self._entries: Deque[Dict[str, float]] = deque(maxlen=limit)

    def record(self, metrics: Metrics, generation: int):
        entry = metrics.to_dict()
        entry['generation'] = int(generation)
        self._entries.append(entry)

    def clear(self):
        self._entries.clear()

    def latest(self) -> Optional[Dict[str, float]]:
        return self._entries[-1] if self._entries else None

    def to_list(self) -> List[Dict[str, float]]:
        return list(self._entries)

    def mean(self) -> Metrics:
        """Average of recorded metrics (zero metrics when empty)"""
        if not self._entries:
            return Metrics()
        n = len(self._entries)
        return Metrics(
            coherence=sum(e['coherence'] for e in self._entries) / n,
            diversity=sum(e['diversity'] for e in self._entries) / n,
            efficiency=sum(e['efficiency'] for e in self._entries) / n,
            emergence=sum(e['emergence'] for e in self._entries) / n,
            complexity=sum(e['complexity'] for e in self._entries) / n
        )

    def __len__(self) -> int:
        return len(self._entries)
