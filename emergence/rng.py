"""
Deterministic RNG utilities for the emergence engine.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(world_seed, pattern, component_name). All randomness uses
numpy.random.Generator(PCG64) for reproducible cross-session results.
"""

import hashlib
import numpy as np
from typing import Any, Optional


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Uses SHA256 to hash components into stable seed value.

    Args:
        *components: Seed components (world_seed, pattern, reset count, etc.)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        agents_seed = make_seed(world_seed, "flocking", "agents")
        step_seed = make_seed(agents_seed, "steps")
    """
    hash_input = ":".join(str(c) for c in components)

    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    seed = int.from_bytes(hash_bytes[:8], byteorder='big')

    return seed


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Build a PCG64 generator.

    Args:
        seed: RNG seed (from make_seed()); None draws fresh OS entropy

    Returns:
        numpy Generator
    """
    return np.random.Generator(np.random.PCG64(seed))


def ensure_rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    """Return rng unchanged, or a freshly seeded generator when None"""
    if rng is None:
        return make_rng()
    return rng
