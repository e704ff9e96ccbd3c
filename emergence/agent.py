"""
Agent runtime representation.

Agents are created at pattern initialization and replaced (never mutated)
by each step. Each agent has an integer id, a 2D position and velocity,
an energy budget, a neuron activation level, and a role.
"""

import numpy as np
from dataclasses import dataclass


@dataclass
class Agent:
    """
    Point agent in a flocking, neuron, economy, or physics population.

    Attributes:
        id: Unique integer identifier (index at initialization)
        position: 2D position [x, y] in canvas units
        velocity: 2D velocity [vx, vy] in canvas units per step
        energy: Energy budget (economy clamps to [10, 200])
        activation: Neuron activation (100 on firing, decays x0.9 per step)
        role: 'agent', 'producer', 'consumer' or 'trader'
    """
    id: int
    position: np.ndarray  # [x, y] float64
    velocity: np.ndarray  # [vx, vy] float64
    energy: float
    activation: float = 0.0
    role: str = 'agent'

    def __post_init__(self):
        """Ensure position and velocity are float64 arrays"""
        if not isinstance(self.position, np.ndarray):
            self.position = np.array(self.position, dtype=np.float64)
        else:
            self.position = self.position.astype(np.float64, copy=False)

        if not isinstance(self.velocity, np.ndarray):
            self.velocity = np.array(self.velocity, dtype=np.float64)
        else:
            self.velocity = self.velocity.astype(np.float64, copy=False)

        # Roles may arrive as AgentRole members
        self.role = getattr(self.role, 'value', self.role)

    @property
    def x(self) -> float:
        return float(self.position[0])

    @property
    def y(self) -> float:
        return float(self.position[1])

    @property
    def vx(self) -> float:
        return float(self.velocity[0])

    @property
    def vy(self) -> float:
        return float(self.velocity[1])

    def to_dict(self) -> dict:
        """
        Serialize agent to JSON-compatible dict.

        Returns:
            Dict with all agent fields
        """
        return {
            'id': int(self.id),
            'position': self.position.tolist(),
            'velocity': self.velocity.tolist(),
            'energy': float(self.energy),
            'activation': float(self.activation),
            'role': self.role
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Agent':
        """
        Deserialize agent from dict.

        Args:
            data: Dict with agent fields

        Returns:
            Agent instance
        """
        return cls(
            id=int(data['id']),
            position=np.array(data['position'], dtype=np.float64),
            velocity=np.array(data['velocity'], dtype=np.float64),
            energy=float(data['energy']),
            activation=float(data.get('activation', 0.0)),
            role=data.get('role', 'agent')
        )
