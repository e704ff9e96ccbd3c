"""
Multi-N performance check for agent stepping and grid stepping.

Steps flocking populations at 80, 500, 1000, 2000 agents with both neighbor
backends, and 2D/3D grids at a few sizes, reporting median/p90 per step.
"""

# Pin threading for stable measurement
import os
os.environ.update({
    'OPENBLAS_NUM_THREADS': '1',
    'MKL_NUM_THREADS': '1',
    'NUMEXPR_NUM_THREADS': '1',
    'OMP_NUM_THREADS': '1'
})

import numpy as np
import time
import gc
from typing import Callable

from emergence.behavior import step_agents
from emergence.cellular import initialize_grid, step_grid, GridBuffers
from emergence.cellular3d import initialize_grid_3d, step_grid_3d
from emergence.data_types import CanvasSize, SimulationRules
from emergence.rules import create_flocking_rules
from emergence.spawning import initialize_agents
from emergence.rng import make_rng, make_seed


CANVAS = CanvasSize(800, 500)
TARGET_MS = 16.0  # One frame at 60 Hz


def _time_runs(step: Callable[[], None], runs: int) -> dict:
    """Warm up once, then time runs with GC disabled"""
    step()

    gc.collect()
    gc.disable()

    times_ns = []
    try:
        for _ in range(runs):
            start = time.perf_counter_ns()
            step()
            times_ns.append(time.perf_counter_ns() - start)
    finally:
        gc.enable()

    times_ms = np.array(times_ns) / 1_000_000
    return {
        'runs': runs,
        'p50_ms': float(np.percentile(times_ms, 50)),
        'p90_ms': float(np.percentile(times_ms, 90)),
        'min_ms': float(np.min(times_ms)),
        'max_ms': float(np.max(times_ms)),
    }


def run_agent_perf_test(agent_count: int, use_ckdtree: bool, runs: int = 7) -> dict:
    """
    Time flocking steps at a given population size.

    Args:
        agent_count: Number of agents
        use_ckdtree: Neighbor search backend
        runs: Number of timed steps (default 7 for stable median)

    Returns:
        Dict with p50, p90, min, max
    """
    interaction = create_flocking_rules()
    rules = SimulationRules(interaction=interaction)
    rng = make_rng(make_seed(42, 'perf', agent_count))
    state = {
        'agents': initialize_agents('flocking', CANVAS, rules, {'flocking': agent_count}, rng=rng)
    }

    def step():
        state['agents'] = step_agents(state['agents'], CANVAS, rules, 'flocking',
                                      rng=rng, use_ckdtree=use_ckdtree)

    result = _time_runs(step, runs)
    result['agent_count'] = agent_count
    result['backend'] = 'ckdtree' if use_ckdtree else 'scan'
    return result


def run_grid_perf_test(shape: tuple, runs: int = 7) -> dict:
    """Time double-buffered grid steps for a 2D (H, W) or 3D (D, H, W) shape"""
    rng = make_rng(make_seed(42, 'perf', *shape))
    if len(shape) == 3:
        depth, height, width = shape
        buffers = GridBuffers(initialize_grid_3d(width, height, depth, rng=rng))
        args = (step_grid_3d,)
    else:
        height, width = shape
        buffers = GridBuffers(initialize_grid('conway', width, height, rng=rng))
        args = (step_grid, 'conway')

    result = _time_runs(lambda: buffers.advance(*args), runs)
    result['shape'] = 'x'.join(str(s) for s in shape)
    return result


def main():
    """Run multi-N performance check."""
    print("=" * 80)
    print("Emergence Engine Multi-N Performance Check")
    print("=" * 80)
    print()

    results = []

    for agent_count in [80, 500, 1000, 2000]:
        for use_ckdtree in (True, False):
            result = run_agent_perf_test(agent_count, use_ckdtree, runs=7)
            print(f"[N = {agent_count}, {result['backend']}]")
            print(f"  p50: {result['p50_ms']:.3f}ms")
            print(f"  p90: {result['p90_ms']:.3f}ms")
            print(f"  min: {result['min_ms']:.3f}ms, max: {result['max_ms']:.3f}ms")

            if agent_count <= 1000:
                if result['p50_ms'] >= TARGET_MS:
                    print(f"  WARNING: p50 {result['p50_ms']:.3f}ms >= {TARGET_MS}ms target!")
                else:
                    headroom_pct = ((TARGET_MS - result['p50_ms']) / TARGET_MS) * 100
                    print(f"  PASS: {headroom_pct:.1f}% headroom under {TARGET_MS}ms target")
            else:
                print(f"  (log-only, no assertion)")

            results.append(result)
            print()

    grid_results = []
    for shape in [(40, 60), (200, 300), (20, 20, 20), (50, 50, 50)]:
        result = run_grid_perf_test(shape, runs=7)
        print(f"[Grid {result['shape']}] p50: {result['p50_ms']:.3f}ms, p90: {result['p90_ms']:.3f}ms")
        grid_results.append(result)
    print()

    # Summary table
    print("=" * 80)
    print("Summary Table")
    print("=" * 80)
    print()
    print("| Agents | Backend | p50 (ms) | p90 (ms) |")
    print("|--------|---------|----------|----------|")
    for r in results:
        print(f"| {r['agent_count']:6d} | {r['backend']:7s} | {r['p50_ms']:8.3f} | {r['p90_ms']:8.3f} |")
    print()
    print("| Grid     | p50 (ms) | p90 (ms) |")
    print("|----------|----------|----------|")
    for r in grid_results:
        print(f"| {r['shape']:8s} | {r['p50_ms']:8.3f} | {r['p90_ms']:8.3f} |")

    print()
    print("=" * 80)


if __name__ == '__main__':
    main()
