"""
Agent stepping engine.

Finds neighbors, applies the active pattern's local rule (flocking, neurons,
economy, physics), then jitter, speed clamp, integration, and boundary
resolution. A step is pure: it returns new Agent instances and leaves the
input population untouched.
"""

import numpy as np
from typing import List, Optional, Tuple

from .agent import Agent
from .data_types import CanvasSize, SimulationRules, InteractionRules, PhysicsRules
from .spatial import neighbors_within, clamp_speed
from .boundaries import apply_boundary
from .rng import ensure_rng
from .rules import (
    resolve_interaction_radius,
    resolve_cohesion,
    resolve_separation,
    resolve_alignment,
    resolve_randomness,
    resolve_stimulation_threshold,
    resolve_max_speed,
    resolve_gravity_y,
    resolve_friction,
    resolve_boundary,
)
from .constants import (
    COHESION_SCALE,
    SEPARATION_SCALE,
    ALIGNMENT_SCALE,
    SEPARATION_DISTANCE,
    SEPARATION_MIN_DISTANCE,
    ACTIVATION_DECAY,
    FIRING_ACTIVATION,
    FIRING_ENERGY_COST,
    NEURON_VELOCITY_DECAY,
    PRODUCER_TRADE_FRACTION,
    CONSUMER_TRADE_FRACTION,
    TRADER_BONUS_PER_NEIGHBOR,
    ECONOMY_ENERGY_MIN,
    ECONOMY_ENERGY_MAX,
)


class PopulationView:
    """
    Read-only structure-of-arrays snapshot of a population.

    Built once per step so the per-agent rules index neighbor rows instead
    of walking Agent objects.
    """

    def __init__(self, agents: List[Agent]):
        self.ids = np.array([a.id for a in agents])
        self.positions = np.array([a.position for a in agents], dtype=np.float64).reshape(-1, 2)
        self.velocities = np.array([a.velocity for a in agents], dtype=np.float64).reshape(-1, 2)
        self.energies = np.array([a.energy for a in agents], dtype=np.float64)
        self.activations = np.array([a.activation for a in agents], dtype=np.float64)
        self.roles = np.array([a.role for a in agents], dtype=object)


def _apply_flocking(
    row: int,
    velocity: np.ndarray,
    neighbors: np.ndarray,
    view: PopulationView,
    interaction: InteractionRules
) -> np.ndarray:
    """
    Cohesion, separation, and alignment against the neighbor set.

    Alignment steers from the agent's pre-step velocity.
    """
    if len(neighbors) == 0:
        return velocity

    position = view.positions[row]
    neighbor_positions = view.positions[neighbors]

    # Cohesion: toward neighbor centroid
    centroid = neighbor_positions.mean(axis=0)
    velocity = velocity + (centroid - position) * resolve_cohesion(interaction) * COHESION_SCALE

    # Separation: 1/d repulsion from crowding neighbors
    offsets = neighbor_positions - position
    distances = np.hypot(offsets[:, 0], offsets[:, 1])
    close = distances < SEPARATION_DISTANCE
    if np.any(close):
        force = resolve_separation(interaction) * SEPARATION_SCALE / np.maximum(distances[close], SEPARATION_MIN_DISTANCE)
        velocity = velocity - (offsets[close] * force[:, np.newaxis]).sum(axis=0)

    # Alignment: toward neighbor mean velocity
    mean_velocity = view.velocities[neighbors].mean(axis=0)
    velocity = velocity + (mean_velocity - view.velocities[row]) * resolve_alignment(interaction) * ALIGNMENT_SCALE

    return velocity


def _apply_neurons(
    velocity: np.ndarray,
    energy: float,
    activation: float,
    neighbors: np.ndarray,
    view: PopulationView,
    interaction: InteractionRules
) -> Tuple[np.ndarray, float, float]:
    """
    Fire when summed neighbor activation exceeds the threshold.

    The caller has already decayed this agent's activation; neighbor
    activations are read at their pre-step values.
    """
    stimulation = float(view.activations[neighbors].sum()) if len(neighbors) else 0.0

    if stimulation > resolve_stimulation_threshold(interaction):
        activation = FIRING_ACTIVATION
        energy -= FIRING_ENERGY_COST

    return velocity * NEURON_VELOCITY_DECAY, energy, activation


def _apply_economy(row: int, energy: float, neighbors: np.ndarray, view: PopulationView) -> float:
    """
    Producer/consumer trade and trader bonus, then clamp to [10, 200].

    Trade credits the producer only; consumers are never debited. The trader
    bonus (0.5 per neighbor) is granted once for every neighbor.
    """
    role = view.roles[row]
    count = len(neighbors)

    if role == 'producer' and count:
        own_energy = view.energies[row]
        neighbor_roles = view.roles[neighbors]
        consumer_energy = view.energies[neighbors][neighbor_roles == 'consumer']
        if consumer_energy.size:
            trades = np.minimum(own_energy * PRODUCER_TRADE_FRACTION, consumer_energy * CONSUMER_TRADE_FRACTION)
            energy += float(trades.sum())

    elif role == 'trader':
        energy += count * (count * TRADER_BONUS_PER_NEIGHBOR)

    return min(max(energy, ECONOMY_ENERGY_MIN), ECONOMY_ENERGY_MAX)


def _apply_physics(velocity: np.ndarray, physics: Optional[PhysicsRules]) -> np.ndarray:
    """Gravity on y, then friction on both axes"""
    velocity = velocity.copy()
    velocity[1] += resolve_gravity_y(physics)
    return velocity * resolve_friction(physics)


def step_agents(
    agents: List[Agent],
    canvas_size: Optional[CanvasSize],
    rules: Optional[SimulationRules],
    pattern: str,
    rng: Optional[np.random.Generator] = None,
    use_ckdtree: Optional[bool] = None
) -> List[Agent]:
    """
    Advance a population by one step.

    Args:
        agents: Current population (not mutated)
        canvas_size: Canvas dimensions (None returns agents unchanged)
        rules: Simulation rules (None returns agents unchanged)
        pattern: flocking, neurons, economy, or physics (others apply
            only jitter, clamp, integration, and boundaries)
        rng: Optional generator for jitter (fresh entropy when None)
        use_ckdtree: Override neighbor search backend (for testing)

    Returns:
        New list of Agent instances

    Example:
        agents = step_agents(agents, CanvasSize(800, 500), rules, 'flocking', rng)
    """
    if canvas_size is None or rules is None:
        return agents

    if len(agents) == 0:
        return []

    rng = ensure_rng(rng)
    interaction = rules.interaction
    width = float(canvas_size.width)
    height = float(canvas_size.height)

    view = PopulationView(agents)
    neighbor_rows = neighbors_within(
        view.positions,
        view.ids,
        resolve_interaction_radius(interaction),
        use_ckdtree=use_ckdtree
    )

    randomness = resolve_randomness(interaction)
    max_speed = resolve_max_speed(rules)
    boundary = resolve_boundary(rules)

    updated = []
    for row, agent in enumerate(agents):
        velocity = view.velocities[row].copy()
        energy = float(agent.energy)
        activation = float(agent.activation) * ACTIVATION_DECAY
        neighbors = neighbor_rows[row]

        if pattern == "flocking":
            velocity = _apply_flocking(row, velocity, neighbors, view, interaction)

        elif pattern == "neurons":
            velocity, energy, activation = _apply_neurons(
                velocity, energy, activation, neighbors, view, interaction
            )

        elif pattern == "economy":
            energy = _apply_economy(row, energy, neighbors, view)

        elif pattern == "physics":
            velocity = _apply_physics(velocity, rules.physics)

        # Jitter, independent per axis
        velocity = velocity + (rng.random(2) - 0.5) * randomness

        velocity = clamp_speed(velocity, max_speed)

        position = view.positions[row] + velocity
        position, velocity = apply_boundary(position, velocity, width, height, boundary)

        updated.append(Agent(
            id=agent.id,
            position=position,
            velocity=velocity,
            energy=energy,
            activation=activation,
            role=agent.role
        ))

    return updated
