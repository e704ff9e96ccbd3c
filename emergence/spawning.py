"""
Agent spawning system.

Creates the initial population for an agent-based pattern with randomized
position, velocity, and energy. Cellular patterns spawn no agents (the grid
simulators own that state).
"""

import numpy as np
from typing import Dict, List, Optional

from .agent import Agent
from .data_types import CanvasSize, SimulationRules, AgentRole
from .rng import ensure_rng
from .constants import (
    DEFAULT_AGENT_COUNTS,
    ENERGY_INIT_MIN,
    ENERGY_INIT_SPAN,
    INITIAL_VELOCITY_SCALE,
    ECONOMY_ROLE_CYCLE,
)


def role_for_index(index: int, pattern: str) -> str:
    """
    Deterministic role assignment.

    Economy agents cycle producer/consumer/trader by index mod 3; every
    other pattern uses the plain 'agent' role.
    """
    if pattern == 'economy':
        return ECONOMY_ROLE_CYCLE[index % len(ECONOMY_ROLE_CYCLE)]
    return AgentRole.AGENT.value


def initialize_agents(
    pattern: str,
    canvas_size: Optional[CanvasSize],
    rules: Optional[SimulationRules] = None,
    count_overrides: Optional[Dict[str, int]] = None,
    rng: Optional[np.random.Generator] = None
) -> List[Agent]:
    """
    Spawn the initial population for a pattern.

    Args:
        pattern: flocking, neurons, economy, physics, or cellular
        canvas_size: Canvas dimensions (None spawns nothing)
        rules: Simulation rules (accepted for signature parity, unused)
        count_overrides: Optional per-pattern agent counts
        rng: Optional generator (fresh entropy when None)

    Returns:
        List of spawned Agent instances

    Example (test override):
        agents = initialize_agents('flocking', CanvasSize(800, 500), rules, {'flocking': 80})
    """
    if pattern == 'cellular':
        return []

    if canvas_size is None:
        return []

    if count_overrides and count_overrides.get(pattern) is not None:
        count = int(count_overrides[pattern])
    elif pattern in DEFAULT_AGENT_COUNTS:
        count = DEFAULT_AGENT_COUNTS[pattern]
    else:
        print(f"[WARN] Unknown pattern '{pattern}', spawning no agents")
        count = 0

    rng = ensure_rng(rng)
    return [spawn_agent(i, pattern, canvas_size, rng) for i in range(count)]


def spawn_agent(
    agent_id: int,
    pattern: str,
    canvas_size: CanvasSize,
    rng: Optional[np.random.Generator] = None,
    x: Optional[float] = None,
    y: Optional[float] = None,
    role_index: Optional[int] = None
) -> Agent:
    """
    Create one agent with randomized state.

    Args:
        agent_id: Id of the new agent
        pattern: Pattern the agent belongs to (selects the role)
        canvas_size: Canvas dimensions for random placement
        rng: Optional generator (fresh entropy when None)
        x, y: Fixed position components (random when None)
        role_index: Index used for role assignment (defaults to agent_id)

    Returns:
        New Agent
    """
    rng = ensure_rng(rng)
    if x is None:
        x = rng.random() * float(canvas_size.width)
    if y is None:
        y = rng.random() * float(canvas_size.height)
    velocity = (rng.random(2) - 0.5) * INITIAL_VELOCITY_SCALE
    energy = rng.random() * ENERGY_INIT_SPAN + ENERGY_INIT_MIN

    return Agent(
        id=agent_id,
        position=np.array([x, y], dtype=np.float64),
        velocity=velocity,
        energy=float(energy),
        activation=0.0,
        role=role_for_index(agent_id if role_index is None else role_index, pattern)
    )
