"""
Data types mirroring the engine configuration YAML structures.

These dataclasses are populated by loader.py from YAML files, or built
directly by callers that configure the engine in code.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Any
from enum import Enum

from .constants import (
    DEFAULT_AGENT_COUNTS,
    GRID_2D_DEFAULT_WIDTH,
    GRID_2D_DEFAULT_HEIGHT,
    GRID_3D_DEFAULT_WIDTH,
    GRID_3D_DEFAULT_HEIGHT,
    GRID_3D_DEFAULT_DEPTH,
    RULESET_DEFAULT,
    SIMULATION_SPEEDS,
    DEFAULT_WORLD_SEED,
    DEFAULT_CANVAS_SIZE,
    SHOWCASE_INTERACTION,
)


# ============================================================================
# Identifiers
# ============================================================================

PATTERNS = ('flocking', 'neurons', 'economy', 'physics', 'cellular')
BOUNDARY_BEHAVIORS = ('wrap', 'bounce', 'absorb')


class AgentRole(str, Enum):
    """Role of an agent; only the economy pattern assigns non-default roles"""
    AGENT = 'agent'
    PRODUCER = 'producer'
    CONSUMER = 'consumer'
    TRADER = 'trader'


class CellularRuleset(str, Enum):
    """Named 2D cellular automaton transition rules"""
    CONWAY = 'conway'  # B3/S23
    MAZE = 'maze'      # B3/S12345
    CORAL = 'coral'    # B367/S4567

    @classmethod
    def parse(cls, ruleset_id: Any) -> 'CellularRuleset':
        """
        Resolve a ruleset id, falling back to CONWAY for unrecognized ids.

        Args:
            ruleset_id: CellularRuleset member or string id

        Returns:
            Matching CellularRuleset (CONWAY when unknown)
        """
        if isinstance(ruleset_id, cls):
            return ruleset_id
        try:
            return cls(ruleset_id)
        except ValueError:
            return cls.CONWAY

    @classmethod
    def is_known(cls, ruleset_id: Any) -> bool:
        return ruleset_id in {r.value for r in cls}


# ============================================================================
# Rule Configuration
# ============================================================================

@dataclass(frozen=True)
class InteractionRules:
    """
    Local interaction coefficients.

    None means "not configured"; the simulators substitute their own
    fallbacks (see constants.py), so the fallback chain for the speed limit
    (max_speed -> interaction_radius -> 5) stays observable.
    """
    cohesion: Optional[float] = None
    separation: Optional[float] = None
    alignment: Optional[float] = None
    randomness: Optional[float] = None
    interaction_radius: Optional[float] = None
    stimulation_threshold: Optional[float] = None
    speed: Optional[float] = None  # Reference speed for the coherence metric


@dataclass(frozen=True)
class PhysicsRules:
    """Global physics applied by the physics pattern and the speed clamp"""
    gravity: Optional[Dict[str, float]] = None  # {x, y}
    friction: Optional[float] = None
    max_speed: Optional[float] = None


@dataclass(frozen=True)
class EnvironmentRules:
    """Canvas edge handling"""
    boundary_behavior: str = 'wrap'  # wrap, bounce, absorb


@dataclass(frozen=True)
class SimulationRules:
    """Complete rule set consumed (never mutated) by a step call"""
    interaction: InteractionRules = field(default_factory=InteractionRules)
    physics: Optional[PhysicsRules] = None
    environment: Optional[EnvironmentRules] = None
    cellular_ruleset: str = RULESET_DEFAULT


@dataclass(frozen=True)
class CanvasSize:
    """Simulation surface in canvas units"""
    width: float
    height: float


# ============================================================================
# Metrics
# ============================================================================

@dataclass(frozen=True)
class Metrics:
    """
    Normalized emergent-behavior indicators, each in [0, 1].

    emergence and complexity are derived by the metrics functions, which
    use different formulas for agent populations and cellular grids.
    """
    coherence: float = 0.0
    diversity: float = 0.0
    efficiency: float = 0.0
    emergence: float = 0.0
    complexity: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        """Serialize with builtin floats (no numpy scalars)"""
        return {
            'coherence': float(self.coherence),
            'diversity': float(self.diversity),
            'efficiency': float(self.efficiency),
            'emergence': float(self.emergence),
            'complexity': float(self.complexity),
        }


# ============================================================================
# Engine Configuration
# ============================================================================

@dataclass
class GridConfig:
    """Cellular grid dimensions (depth is only used in 3D)"""
    width: int
    height: int
    depth: int = 1


@dataclass
class EngineConfig:
    """Engine defaults loaded from data/config/engine.yaml"""
    rules: SimulationRules = field(
        default_factory=lambda: SimulationRules(interaction=InteractionRules(**SHOWCASE_INTERACTION))
    )
    agent_counts: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_AGENT_COUNTS))
    grid_2d: GridConfig = field(
        default_factory=lambda: GridConfig(GRID_2D_DEFAULT_WIDTH, GRID_2D_DEFAULT_HEIGHT)
    )
    grid_3d: GridConfig = field(
        default_factory=lambda: GridConfig(GRID_3D_DEFAULT_WIDTH, GRID_3D_DEFAULT_HEIGHT, GRID_3D_DEFAULT_DEPTH)
    )
    canvas: CanvasSize = field(default_factory=lambda: CanvasSize(*DEFAULT_CANVAS_SIZE))
    initial_pattern: str = 'flocking'
    initial_ruleset: str = RULESET_DEFAULT
    speeds: Dict[str, int] = field(default_factory=lambda: dict(SIMULATION_SPEEDS))
    seed: int = DEFAULT_WORLD_SEED
    description: Optional[str] = None
