"""
Emergence simulation driver.

Owns the selected pattern, rule set, and state (agent population or
cellular grid), and runs the tick loop: step, then metrics. Grids are
stepped through two fixed buffers that swap each generation.
"""

import dataclasses
import time
from collections import deque
import numpy as np
from typing import Deque, Dict, List, Optional, Union
from pathlib import Path

from .agent import Agent
from .data_types import (
    EngineConfig, SimulationRules, EnvironmentRules, CanvasSize, Metrics,
    CellularRuleset, PATTERNS, BOUNDARY_BEHAVIORS
)
from .loader import load_all_data
from .spawning import initialize_agents, spawn_agent
from .behavior import step_agents
from .cellular import initialize_grid, step_grid, toggle_cell, count_live, GridBuffers
from .cellular3d import initialize_grid_3d, step_grid_3d, toggle_cell_3d
from .metrics import compute_agent_metrics, compute_grid_metrics, MetricsHistory
from .rng import make_seed, make_rng
from .constants import TICK_TIME_WINDOW, BOUNDARY_DEFAULT, RULESET_DEFAULT, MAX_AGENTS


class EmergenceSimulation:
    """
    Interactive driver for the emergence engine.

    Pattern, ruleset, dimensionality, or boundary changes reinitialize the
    state; tick() advances one step and recomputes metrics.
    """

    def __init__(
        self,
        data_root: Optional[Path] = None,
        schema_dir: Optional[Path] = None,
        config: Optional[EngineConfig] = None,
        seed: Optional[int] = None,
        use_ckdtree: Optional[bool] = None
    ):
        """
        Initialize simulation from a data pack or an in-memory config.

        Args:
            data_root: Optional path to data directory (config/engine.yaml)
            schema_dir: Optional path to JSON schemas
            config: Engine config used when data_root is None
            seed: Override the configured world seed
            use_ckdtree: Override neighbor search backend (for testing)
        """
        if data_root is not None:
            print("Loading engine config...")
            config = load_all_data(data_root, schema_dir)['engine']
        elif config is None:
            config = EngineConfig()

        self.config: EngineConfig = config
        self.rules: SimulationRules = config.rules
        self.canvas: CanvasSize = config.canvas
        self.seed: int = config.seed if seed is None else seed
        self._use_ckdtree = use_ckdtree

        # Selection state
        self.pattern: str = config.initial_pattern
        self.ruleset: str = config.initial_ruleset
        self.is_3d: bool = False
        self.step_interval_ms: int = config.speeds['default']
        self.max_agents: int = MAX_AGENTS

        # Simulation state
        self.agents: List[Agent] = []
        self._buffers: Optional[GridBuffers] = None
        self.generation: int = 0
        self.metrics: Metrics = Metrics()
        self.history = MetricsHistory()
        self._reset_count: int = 0
        self._step_rng: np.random.Generator = make_rng(make_seed(self.seed, "steps"))
        self._edit_rng: np.random.Generator = make_rng(make_seed(self.seed, "edits"))

        # Performance metrics
        self._tick_times: Deque[float] = deque(maxlen=TICK_TIME_WINDOW)

        self.reset()

        print(f"[OK] Simulation initialized: pattern={self.pattern}, "
              f"{self._describe_state()}, seed={self.seed}")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def set_pattern(self, pattern: str):
        """Switch pattern and reinitialize (unknown patterns are ignored)"""
        if pattern not in PATTERNS:
            print(f"[WARN] Unknown pattern '{pattern}', keeping '{self.pattern}'")
            return
        self.pattern = pattern
        if pattern != 'cellular':
            self.is_3d = False
        self.reset()

    def set_ruleset(self, ruleset_id: str):
        """Switch cellular ruleset and reseed the grid"""
        if not CellularRuleset.is_known(ruleset_id):
            print(f"[WARN] Unknown ruleset '{ruleset_id}', using '{RULESET_DEFAULT}'")
            ruleset_id = RULESET_DEFAULT
        self.ruleset = ruleset_id
        self.rules = dataclasses.replace(self.rules, cellular_ruleset=ruleset_id)
        if self.pattern == 'cellular':
            self.reset()

    def set_boundary(self, behavior: str):
        """Change boundary behavior (takes effect on the next tick)"""
        if behavior not in BOUNDARY_BEHAVIORS:
            print(f"[WARN] Unknown boundary behavior '{behavior}', using '{BOUNDARY_DEFAULT}'")
            behavior = BOUNDARY_DEFAULT
        self.rules = dataclasses.replace(self.rules, environment=EnvironmentRules(boundary_behavior=behavior))

    def set_rules(self, rules: SimulationRules):
        """Replace the rule set (takes effect on the next tick)"""
        self.rules = rules

    def set_3d(self, enabled: bool):
        """Toggle 3D cellular mode and reinitialize"""
        self.is_3d = bool(enabled)
        if self.pattern == 'cellular':
            self.reset()

    def set_speed(self, speed: Union[str, int]):
        """
        Set the step interval from a preset name or milliseconds.

        Args:
            speed: 'slow', 'default', 'fast', or a positive interval in ms
        """
        if isinstance(speed, str):
            if speed not in self.config.speeds:
                print(f"[WARN] Unknown speed preset '{speed}', using 'default'")
                speed = 'default'
            self.step_interval_ms = self.config.speeds[speed]
        elif speed > 0:
            self.step_interval_ms = int(speed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self):
        """Discard current state and initialize the selected pattern"""
        self._reset_count += 1
        init_rng = make_rng(make_seed(self.seed, self.pattern, self.ruleset, self.is_3d, self._reset_count))

        self.generation = 0
        self.metrics = Metrics()
        self.history.clear()

        if self.pattern == 'cellular':
            self.agents = []
            if self.is_3d:
                grid_cfg = self.config.grid_3d
                grid = initialize_grid_3d(grid_cfg.width, grid_cfg.height, grid_cfg.depth, rng=init_rng)
            else:
                grid_cfg = self.config.grid_2d
                grid = initialize_grid(self.ruleset, grid_cfg.width, grid_cfg.height, rng=init_rng)
            self._buffers = GridBuffers(grid)
        else:
            self._buffers = None
            self.agents = initialize_agents(
                self.pattern, self.canvas, self.rules, self.config.agent_counts, rng=init_rng
            )

    def tick(self) -> Metrics:
        """
        Advance one step and recompute metrics.

        Returns:
            Metrics for the new state
        """
        tick_start = time.perf_counter()

        if self.pattern == 'cellular':
            if self.is_3d:
                grid = self._buffers.advance(step_grid_3d)
            else:
                grid = self._buffers.advance(step_grid, self.ruleset)

            if grid.size == 0:
                # Could not advance (empty grid); leave state as is
                print("[WARN] Grid step returned no cells, state unchanged")
                self._record_tick_time(time.perf_counter() - tick_start)
                return self.metrics

            self.generation += 1
            self.metrics = compute_grid_metrics(grid, self.generation)
        else:
            self.agents = step_agents(
                self.agents, self.canvas, self.rules, self.pattern,
                rng=self._step_rng, use_ckdtree=self._use_ckdtree
            )
            self.generation += 1
            self.metrics = compute_agent_metrics(self.agents, self.rules)

        self.history.record(self.metrics, self.generation)
        self._record_tick_time(time.perf_counter() - tick_start)

        return self.metrics

    def run(self, ticks: int, realtime: bool = False) -> Metrics:
        """
        Tick repeatedly.

        Args:
            ticks: Number of steps
            realtime: Sleep step_interval_ms between steps

        Returns:
            Metrics after the last step
        """
        for _ in range(ticks):
            self.tick()
            if realtime:
                time.sleep(self.step_interval_ms / 1000.0)
        return self.metrics

    # ------------------------------------------------------------------
    # Grid access
    # ------------------------------------------------------------------

    @property
    def grid(self) -> Optional[np.ndarray]:
        """Current cellular grid (front buffer), None for agent patterns"""
        return None if self._buffers is None else self._buffers.front

    def toggle_cell(self, x: int, y: int, z: int = 0):
        """Flip one cell of the current grid (no-op for agent patterns)"""
        if self._buffers is None:
            return
        if self.is_3d:
            edited = toggle_cell_3d(self._buffers.front, x, y, z)
        else:
            edited = toggle_cell(self._buffers.front, x, y)
        if edited.size:
            self._buffers.replace(edited)

    def clear_grid(self):
        """
        Replace the grid with an all-dead one of the configured size.

        Resets generation, metrics, and history so cells can be drawn in
        with toggle_cell. No-op for agent patterns.
        """
        if self._buffers is None:
            return

        if self.is_3d:
            cfg = self.config.grid_3d
            shape = (cfg.depth, cfg.height, cfg.width)
        else:
            cfg = self.config.grid_2d
            shape = (cfg.height, cfg.width)

        self._buffers = GridBuffers(np.zeros(shape, dtype=np.uint8))
        self.generation = 0
        self.metrics = Metrics()
        self.history.clear()

    # ------------------------------------------------------------------
    # Population editing
    # ------------------------------------------------------------------

    def add_agent(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[Agent]:
        """
        Add one agent to the current population.

        Args:
            x: Position x (random within the canvas when None)
            y: Position y (random within the canvas when None)

        Returns:
            The new Agent, or None for cellular patterns or a full population
        """
        if self.pattern == 'cellular':
            return None
        if len(self.agents) >= self.max_agents:
            print(f"[WARN] Population at max_agents={self.max_agents}, agent not added")
            return None

        next_id = max((a.id for a in self.agents), default=-1) + 1
        agent = spawn_agent(
            next_id, self.pattern, self.canvas, self._edit_rng,
            x=x, y=y, role_index=len(self.agents)
        )
        self.agents = self.agents + [agent]
        return agent

    def remove_agent(self, agent_id: int) -> bool:
        """
        Remove the agent with the given id.

        Returns:
            True if an agent was removed
        """
        remaining = [a for a in self.agents if a.id != agent_id]
        removed = len(remaining) != len(self.agents)
        self.agents = remaining
        return removed

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def _describe_state(self) -> str:
        if self._buffers is not None:
            return f"grid={'x'.join(str(s) for s in self._buffers.front.shape)}"
        return f"{len(self.agents)} agents"

    def get_tick_stats(self) -> dict:
        """Tick count plus mean and last tick duration (ms) over the rolling window"""
        times_ms = np.array(self._tick_times, dtype=np.float64) * 1000.0
        return {
            'tick_count': self.generation,
            'avg_tick_time_ms': float(times_ms.mean()) if times_ms.size else 0.0,
            'last_tick_time_ms': float(times_ms[-1]) if times_ms.size else 0.0,
            'window': int(times_ms.size)
        }

    def _record_tick_time(self, elapsed: float):
        """Append a tick duration in seconds (oldest dropped past the window)"""
        self._tick_times.append(elapsed)

    def get_snapshot(self) -> Dict:
        """
        Get complete simulation state snapshot.

        Returns:
            Dict with pattern, generation, state, metrics, timing
        """
        snapshot = {
            'pattern': self.pattern,
            'generation': self.generation,
            'metrics': self.metrics.to_dict(),
            'timing': self.get_tick_stats()
        }

        if self._buffers is not None:
            snapshot['ruleset'] = self.ruleset
            snapshot['is_3d'] = self.is_3d
            snapshot['live_cells'] = count_live(self._buffers.front)
            snapshot['grid'] = self._buffers.front.tolist()
        else:
            snapshot['agent_count'] = len(self.agents)
            snapshot['agents'] = [a.to_dict() for a in self.agents]

        return snapshot

    def print_tick_summary(self):
        """Print tick summary to console (lightweight monitoring)"""
        stats = self.get_tick_stats()
        print(f"Tick {stats['tick_count']:5d} | "
              f"Avg: {stats['avg_tick_time_ms']:6.3f} ms | "
              f"Last: {stats['last_tick_time_ms']:6.3f} ms | "
              f"{self._describe_state()} | "
              f"C={self.metrics.coherence:.2f} D={self.metrics.diversity:.2f} "
              f"E={self.metrics.efficiency:.2f}")
