"""
Test agent stepping: per-pattern rules, speed clamp, boundaries.

Verifies:
- Wrap, bounce, and absorb edge handling
- Economy trade and trader bonus with energy clamp
- Neuron firing and activation decay
- Physics gravity and friction
- Speed limit fallback chain
- Steps are pure (input population untouched)
- cKDTree and scan neighbor backends agree
"""

import sys
import numpy as np
import pytest
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from emergence.agent import Agent
from emergence.behavior import step_agents
from emergence.boundaries import apply_boundary
from emergence.data_types import (
    CanvasSize, SimulationRules, InteractionRules, PhysicsRules, EnvironmentRules
)
from emergence.spatial import neighbors_within
from emergence.rng import make_rng


CANVAS = CanvasSize(800, 500)


def _rules(boundary='wrap', physics=None, **interaction):
    interaction.setdefault('randomness', 0.0)
    return SimulationRules(
        interaction=InteractionRules(**interaction),
        physics=physics,
        environment=EnvironmentRules(boundary_behavior=boundary)
    )


def _agent(agent_id, x, y, vx=0.0, vy=0.0, energy=100.0, activation=0.0, role='agent'):
    return Agent(id=agent_id, position=[x, y], velocity=[vx, vy],
                 energy=energy, activation=activation, role=role)


def test_wrap_reenters_from_opposite_edge():
    """Overshoot past the right edge reappears at the left"""
    agents = [_agent(0, 799.5, 250.0, vx=1.0)]

    result = step_agents(agents, CANVAS, _rules('wrap'), 'flocking', rng=make_rng(1))

    print(f"[OK] Wrapped x = {result[0].x:.3f}")
    assert result[0].x == pytest.approx(0.5)
    assert result[0].y == pytest.approx(250.0)
    assert result[0].vx == pytest.approx(1.0)


def test_bounce_reflects_velocity():
    agents = [_agent(0, 799.5, 250.0, vx=1.0)]

    result = step_agents(agents, CANVAS, _rules('bounce'), 'flocking', rng=make_rng(1))

    assert result[0].x == pytest.approx(800.0)
    assert result[0].vx == pytest.approx(-1.0)


def test_absorb_clamps_and_damps():
    agents = [_agent(0, 799.5, 250.0, vx=1.0)]

    result = step_agents(agents, CANVAS, _rules('absorb'), 'flocking', rng=make_rng(1))

    assert result[0].x == pytest.approx(800.0)
    assert result[0].vx == pytest.approx(0.5)


def test_boundary_negative_side_and_unknown_behavior():
    pos, vel = apply_boundary(np.array([-3.0, 10.0]), np.array([-4.0, 0.0]), 800, 500, 'wrap')
    assert pos[0] == pytest.approx(797.0)

    pos, vel = apply_boundary(np.array([-3.0, 10.0]), np.array([-4.0, 0.0]), 800, 500, 'bounce')
    assert pos[0] == 0.0 and vel[0] == pytest.approx(4.0)

    pos, vel = apply_boundary(np.array([-3.0, 10.0]), np.array([-4.0, 0.0]), 800, 500, 'teleport')
    assert pos[0] == pytest.approx(-3.0) and vel[0] == pytest.approx(-4.0)


def test_producer_trades_with_consumer_until_cap():
    """Producer gains min(own*0.1, consumer*0.05) per step, consumer unchanged"""
    print("=" * 60)
    print("Test: Economy trade")
    print("=" * 60)

    agents = [
        _agent(0, 100.0, 100.0, energy=100.0, role='producer'),
        _agent(1, 110.0, 100.0, energy=150.0, role='consumer'),
    ]
    rules = _rules(interaction_radius=60.0)
    rng = make_rng(2)

    agents = step_agents(agents, CANVAS, rules, 'economy', rng=rng)
    assert agents[0].energy == pytest.approx(107.5)
    assert agents[1].energy == pytest.approx(150.0)

    for _ in range(20):
        agents = step_agents(agents, CANVAS, rules, 'economy', rng=rng)

    print(f"[OK] Producer energy capped at {agents[0].energy}")
    assert agents[0].energy == pytest.approx(200.0)
    assert agents[1].energy == pytest.approx(150.0)


def test_trader_bonus_per_neighbor():
    agents = [
        _agent(0, 200.0, 200.0, energy=50.0, role='trader'),
        _agent(1, 210.0, 200.0, energy=50.0, role='consumer'),
        _agent(2, 200.0, 210.0, energy=50.0, role='consumer'),
    ]

    result = step_agents(agents, CANVAS, _rules(interaction_radius=60.0), 'economy', rng=make_rng(3))

    # Two neighbors -> 2 * (2 * 0.5)
    assert result[0].energy == pytest.approx(52.0)


def test_economy_clamps_low_energy():
    agents = [_agent(0, 50.0, 50.0, energy=3.0, role='consumer')]
    result = step_agents(agents, CANVAS, _rules(), 'economy', rng=make_rng(4))
    assert result[0].energy == pytest.approx(10.0)


def test_neuron_fires_above_threshold():
    """Neighbor activation 35 exceeds the default threshold of 30"""
    agents = [
        _agent(0, 100.0, 100.0, vx=1.0, energy=50.0, activation=0.0),
        _agent(1, 110.0, 100.0, energy=50.0, activation=35.0),
    ]

    result = step_agents(agents, CANVAS, _rules(interaction_radius=40.0), 'neurons', rng=make_rng(5))

    fired, other = result
    print(f"[OK] Neuron fired: activation={fired.activation}, energy={fired.energy}")
    assert fired.activation == pytest.approx(100.0)
    assert fired.energy == pytest.approx(48.0)
    assert fired.vx == pytest.approx(0.95)

    # Stimulation uses pre-step activations, so the other neuron only decays
    assert other.activation == pytest.approx(31.5)
    assert other.energy == pytest.approx(50.0)


def test_neuron_below_threshold_decays():
    agents = [
        _agent(0, 100.0, 100.0, activation=0.0),
        _agent(1, 110.0, 100.0, activation=20.0),
    ]

    result = step_agents(agents, CANVAS, _rules(interaction_radius=40.0), 'neurons', rng=make_rng(6))

    assert result[0].activation == pytest.approx(0.0)
    assert result[1].activation == pytest.approx(18.0)


def test_physics_gravity_and_friction():
    agents = [_agent(0, 100.0, 100.0, vx=1.0)]

    defaults = step_agents(agents, CANVAS, _rules(), 'physics', rng=make_rng(7))
    assert defaults[0].vx == pytest.approx(0.99)
    assert defaults[0].vy == pytest.approx(0.099)

    custom = _rules(physics=PhysicsRules(gravity={'x': 0.0, 'y': 0.5}, friction=0.5))
    result = step_agents(agents, CANVAS, custom, 'physics', rng=make_rng(7))
    assert result[0].vx == pytest.approx(0.5)
    assert result[0].vy == pytest.approx(0.25)


@pytest.mark.parametrize("physics,radius,expected", [
    (None, None, 5.0),
    (PhysicsRules(max_speed=2.0), 40.0, 2.0),
    (None, 3.0, 3.0),
])
def test_speed_limit_fallback_chain(physics, radius, expected):
    agents = [_agent(0, 400.0, 250.0, vx=10.0)]
    rules = _rules(physics=physics, interaction_radius=radius)

    result = step_agents(agents, CANVAS, rules, 'flocking', rng=make_rng(8))

    assert np.hypot(result[0].vx, result[0].vy) == pytest.approx(expected)


def test_flocking_steers_toward_group():
    """Two distant-but-visible agents drift toward each other"""
    agents = [
        _agent(0, 100.0, 100.0),
        _agent(1, 140.0, 100.0),
    ]
    rules = _rules(interaction_radius=50.0, cohesion=1.0, separation=0.0, alignment=0.0)

    result = step_agents(agents, CANVAS, rules, 'flocking', rng=make_rng(9))

    assert result[0].vx > 0.0
    assert result[1].vx < 0.0


def test_step_is_pure():
    agents = [_agent(i, 100.0 + 5 * i, 100.0, vx=0.5, energy=80.0) for i in range(5)]
    before = [a.to_dict() for a in agents]

    result = step_agents(agents, CANVAS, _rules(randomness=0.2), 'flocking', rng=make_rng(10))

    assert [a.to_dict() for a in agents] == before
    assert all(new is not old for new, old in zip(result, agents))
    assert [a.id for a in result] == [a.id for a in agents]


def test_missing_inputs_return_population():
    agents = [_agent(0, 1.0, 1.0)]
    assert step_agents(agents, None, _rules(), 'flocking') is agents
    assert step_agents(agents, CANVAS, None, 'flocking') is agents
    assert step_agents([], CANVAS, _rules(), 'flocking') == []


def test_neighbor_backends_agree():
    rng = make_rng(11)
    positions = rng.random((300, 2)) * np.array([800.0, 500.0])
    ids = np.arange(300)

    tree = neighbors_within(positions, ids, 30.0, use_ckdtree=True)
    scan = neighbors_within(positions, ids, 30.0, use_ckdtree=False)

    assert len(tree) == len(scan) == 300
    for a, b in zip(tree, scan):
        assert np.array_equal(a, b)


def test_neighbors_exclude_self_and_boundary_distance():
    positions = np.array([[0.0, 0.0], [10.0, 0.0], [5.0, 0.0]])
    ids = np.array([0, 1, 2])

    for use_tree in (True, False):
        rows = neighbors_within(positions, ids, 10.0, use_ckdtree=use_tree)
        # Exactly at the radius is not a neighbor
        assert list(rows[0]) == [2]
        assert list(rows[2]) == [0, 1]

    assert neighbors_within(np.empty((0, 2)), np.empty(0), 10.0) == []
    assert all(r.size == 0 for r in neighbors_within(positions, ids, 0.0))
