"""
Rule presets and fallback resolution.

Presets return InteractionRules tuned per pattern. The resolve_* helpers
apply the engine fallbacks for unset (None) rule fields in one place so
every simulator reads the same effective values.
"""

from typing import Optional

from .data_types import InteractionRules, PhysicsRules, SimulationRules
from .constants import (
    INTERACTION_RADIUS_DEFAULT,
    COHESION_DEFAULT,
    SEPARATION_DEFAULT,
    ALIGNMENT_DEFAULT,
    RANDOMNESS_DEFAULT,
    STIMULATION_THRESHOLD_DEFAULT,
    MAX_SPEED_FALLBACK,
    GRAVITY_Y_DEFAULT,
    FRICTION_DEFAULT,
    BOUNDARY_DEFAULT,
    SHOWCASE_INTERACTION,
)


# Showcase values; also the interaction rules of a default EngineConfig
DEFAULT_INTERACTION = InteractionRules(**SHOWCASE_INTERACTION)


def create_flocking_rules(
    cohesion: float = 0.1,
    separation: float = 0.15,
    alignment: float = 0.1,
    randomness: float = 0.05
) -> InteractionRules:
    """Flocking preset with a 50 unit interaction radius"""
    return InteractionRules(
        cohesion=cohesion,
        separation=separation,
        alignment=alignment,
        randomness=randomness,
        interaction_radius=50.0
    )


def create_neuron_rules(stimulation_threshold: float = 30.0, randomness: float = 0.02) -> InteractionRules:
    """Neuron preset with a 40 unit interaction radius"""
    return InteractionRules(
        stimulation_threshold=stimulation_threshold,
        randomness=randomness,
        interaction_radius=40.0
    )


def create_economic_rules(randomness: float = 0.03) -> InteractionRules:
    """Economy preset with a 60 unit trading radius"""
    return InteractionRules(randomness=randomness, interaction_radius=60.0)


def _or_default(value: Optional[float], default: float) -> float:
    return default if value is None else value


def resolve_interaction_radius(interaction: InteractionRules) -> float:
    return _or_default(interaction.interaction_radius, INTERACTION_RADIUS_DEFAULT)


def resolve_cohesion(interaction: InteractionRules) -> float:
    return _or_default(interaction.cohesion, COHESION_DEFAULT)


def resolve_separation(interaction: InteractionRules) -> float:
    return _or_default(interaction.separation, SEPARATION_DEFAULT)


def resolve_alignment(interaction: InteractionRules) -> float:
    return _or_default(interaction.alignment, ALIGNMENT_DEFAULT)


def resolve_randomness(interaction: InteractionRules) -> float:
    return _or_default(interaction.randomness, RANDOMNESS_DEFAULT)


def resolve_stimulation_threshold(interaction: InteractionRules) -> float:
    return _or_default(interaction.stimulation_threshold, STIMULATION_THRESHOLD_DEFAULT)


def resolve_max_speed(rules: SimulationRules) -> float:
    """
    Speed limit for the clamp step.

    Fallback chain: physics.max_speed, then interaction.interaction_radius,
    then MAX_SPEED_FALLBACK.
    """
    if rules.physics is not None and rules.physics.max_speed is not None:
        return rules.physics.max_speed
    return _or_default(rules.interaction.interaction_radius, MAX_SPEED_FALLBACK)


def resolve_gravity_y(physics: Optional[PhysicsRules]) -> float:
    if physics is None or physics.gravity is None:
        return GRAVITY_Y_DEFAULT
    return _or_default(physics.gravity.get('y'), GRAVITY_Y_DEFAULT)


def resolve_friction(physics: Optional[PhysicsRules]) -> float:
    if physics is None:
        return FRICTION_DEFAULT
    return _or_default(physics.friction, FRICTION_DEFAULT)


def resolve_boundary(rules: SimulationRules) -> str:
    if rules.environment is None:
        return BOUNDARY_DEFAULT
    return rules.environment.boundary_behavior or BOUNDARY_DEFAULT
