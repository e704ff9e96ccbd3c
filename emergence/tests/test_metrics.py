"""
Test emergent-behavior metrics for agents and grids.
"""

import sys
import math
import numpy as np
import pytest
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from emergence.agent import Agent
from emergence.behavior import step_agents
from emergence.data_types import CanvasSize, SimulationRules, InteractionRules, Metrics
from emergence.metrics import (
    compute_agent_metrics, compute_grid_metrics, clamp_unit, MetricsHistory
)
from emergence.rules import DEFAULT_INTERACTION
from emergence.spawning import initialize_agents
from emergence.rng import make_rng


def _agents(positions, velocities=None, energies=None):
    n = len(positions)
    velocities = velocities or [(0.0, 0.0)] * n
    energies = energies or [100.0] * n
    return [
        Agent(id=i, position=list(p), velocity=list(v), energy=e)
        for i, (p, v, e) in enumerate(zip(positions, velocities, energies))
    ]


def _rules(speed=2.0):
    return SimulationRules(interaction=InteractionRules(speed=speed))


def test_coherence_from_mean_velocity():
    agents = _agents([(0, 0), (10, 0)], velocities=[(1.0, 0.0), (1.0, 0.0)])

    assert compute_agent_metrics(agents, _rules(2.0)).coherence == pytest.approx(0.5)
    assert compute_agent_metrics(agents, _rules(None)).coherence == 0.0
    assert compute_agent_metrics(agents, _rules(0.0)).coherence == 0.0

    # Fast population saturates at 1
    assert compute_agent_metrics(agents, _rules(0.5)).coherence == 1.0


def test_diversity_from_centroid_distance():
    agents = _agents([(0, 0), (200, 0)])
    assert compute_agent_metrics(agents, _rules()).diversity == pytest.approx(0.5)

    spread = _agents([(0, 0), (1000, 0)])
    assert compute_agent_metrics(spread, _rules()).diversity == 1.0


@pytest.mark.parametrize("energies,expected", [
    ([100.0, 100.0, 100.0], 1.0),
    ([0.0, 0.0], 1.0),
    ([0.0, 100.0], 0.0),
    ([50.0, 150.0], 0.75),
    ([5.0, -5.0], 0.0),
])
def test_efficiency_from_energy_spread(energies, expected):
    agents = _agents([(0, 0)] * len(energies), energies=energies)
    assert compute_agent_metrics(agents, _rules()).efficiency == pytest.approx(expected)


def test_missing_rules_or_agents_give_zero():
    agents = _agents([(0, 0)])
    assert compute_agent_metrics(agents, None) == Metrics()
    assert compute_agent_metrics([], _rules()) == Metrics()


def test_metrics_stay_in_unit_range_while_stepping():
    """Every pattern keeps metrics within [0, 1] over a short run"""
    canvas = CanvasSize(800, 500)
    rules = SimulationRules(interaction=DEFAULT_INTERACTION)

    for pattern in ('flocking', 'neurons', 'economy', 'physics'):
        rng = make_rng(21)
        agents = initialize_agents(pattern, canvas, rules, rng=rng)
        for _ in range(20):
            agents = step_agents(agents, canvas, rules, pattern, rng=rng)
            m = compute_agent_metrics(agents, rules)
            for value in (m.coherence, m.diversity, m.efficiency, m.emergence, m.complexity):
                assert 0.0 <= value <= 1.0, f"{pattern}: {m}"
        print(f"[OK] {pattern}: {m.to_dict()}")


def test_grid_metrics():
    grid = np.zeros((4, 4), dtype=np.uint8)
    grid[0, :] = 1

    start = compute_grid_metrics(grid, 0)
    assert start.coherence == pytest.approx(0.25)
    assert start.diversity == pytest.approx(0.5)
    assert start.efficiency == 0.0

    assert compute_grid_metrics(grid, 10).efficiency == pytest.approx(1.0)
    assert compute_grid_metrics(grid, 100).efficiency == pytest.approx(4 / 10.04)


def test_grid_metrics_empty_and_3d():
    empty = compute_grid_metrics(np.zeros((5, 5), dtype=np.uint8), 3)
    assert empty.coherence == 0.0
    assert empty.diversity == 1.0
    assert empty.efficiency == 0.0

    cube = np.ones((2, 2, 2), dtype=np.uint8)
    full = compute_grid_metrics(cube, 1)
    assert full.coherence == 1.0
    assert full.diversity == 1.0

    assert compute_grid_metrics([], 5) == Metrics(coherence=0.0, diversity=1.0, efficiency=0.0)


def test_clamp_unit():
    assert clamp_unit(float('nan')) == 0.0
    assert clamp_unit(None) == 0.0
    assert clamp_unit(-0.1) == 0.0
    assert clamp_unit(math.inf) == 1.0
    assert clamp_unit(0.3) == pytest.approx(0.3)


def test_agent_derived_indicators():
    """Agent populations derive emergence and complexity from coherence and diversity"""
    agents = _agents([(0, 0), (200, 0)], velocities=[(1.0, 0.0), (1.0, 0.0)])

    m = compute_agent_metrics(agents, _rules(2.0))
    assert m.coherence == pytest.approx(0.5)
    assert m.diversity == pytest.approx(0.5)
    assert m.emergence == pytest.approx(0.25)
    assert m.complexity == pytest.approx(0.5)
    assert set(m.to_dict()) == {'coherence', 'diversity', 'efficiency', 'emergence', 'complexity'}


def test_grid_derived_indicators_peak_at_half_density():
    """Half-full grid: emergence sin(pi/2) and complexity 4*0.5*0.5 are both 1"""
    grid = np.zeros((4, 4), dtype=np.uint8)
    grid[:2, :] = 1

    m = compute_grid_metrics(grid, 1)
    print(f"[OK] Half-density grid metrics: {m.to_dict()}")
    assert m.coherence == pytest.approx(0.5)
    assert m.diversity == pytest.approx(0.0)
    assert m.emergence == pytest.approx(1.0)
    assert m.complexity == pytest.approx(1.0)

    # Fully alive grid
    full = compute_grid_metrics(grid[:1, :], 1)
    assert full.emergence == pytest.approx(0.0, abs=1e-12)

    sparse = np.zeros((4, 4), dtype=np.uint8)
    sparse[0, :] = 1
    m = compute_grid_metrics(sparse, 1)
    assert m.emergence == pytest.approx(np.sin(np.pi * 0.25))
    assert m.complexity == pytest.approx(0.75)

    empty = compute_grid_metrics(np.zeros((4, 4), dtype=np.uint8), 1)
    assert empty.emergence == 0.0
    assert empty.complexity == 0.0


def test_history_is_bounded():
    history = MetricsHistory(limit=100)
    for generation in range(1, 151):
        history.record(Metrics(coherence=0.5), generation)

    assert len(history) == 100
    assert history.to_list()[0]['generation'] == 51
    assert history.latest()['generation'] == 150
    assert history.mean().coherence == pytest.approx(0.5)

    history.clear()
    assert len(history) == 0
    assert history.latest() is None
    assert history.mean() == Metrics()
