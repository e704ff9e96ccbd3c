"""
Emergence Engine

A headless simulation core for emergent behavior demos: boid flocking,
toy spiking neurons, a toy exchange economy, and 2D/3D cellular automata,
with normalized coherence/diversity/efficiency metrics.

Architecture: every step is a pure state transition (state in, new state
out). The driver and any renderer are consumers.
"""

__version__ = "0.1.0"
