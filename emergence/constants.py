"""
Central configuration constants for the emergence engine.

Defines default values, thresholds, and configuration parameters
used across multiple modules.
"""

# ============================================================================
# Neighbor Search Configuration
# ============================================================================

# Use scipy.cKDTree radius queries for neighbor search
# Set to False to use the O(n^2) numpy scan for comparison
USE_CKDTREE = True

# cKDTree build parameters
CKDTREE_LEAFSIZE = 16


# ============================================================================
# Agent Population Defaults
# ============================================================================

# Agent counts per pattern (cellular uses the grid instead)
DEFAULT_AGENT_COUNTS = {
    'flocking': 80,
    'neurons': 60,
    'economy': 40,
    'physics': 50,
    'cellular': 0,
}

# Initial energy is uniform in [ENERGY_INIT_MIN, ENERGY_INIT_MIN + ENERGY_INIT_SPAN)
ENERGY_INIT_MIN = 50.0
ENERGY_INIT_SPAN = 100.0

# Initial velocity components are (rand - 0.5) * INITIAL_VELOCITY_SCALE
INITIAL_VELOCITY_SCALE = 2.0

# Economy roles, assigned by index mod 3
ECONOMY_ROLE_CYCLE = ('producer', 'consumer', 'trader')

# Population cap for agents added one at a time by the driver
MAX_AGENTS = 500


# ============================================================================
# Interaction Fallbacks (used when a rule field is None)
# ============================================================================

INTERACTION_RADIUS_DEFAULT = 50.0
COHESION_DEFAULT = 0.1
SEPARATION_DEFAULT = 0.1
ALIGNMENT_DEFAULT = 0.1
RANDOMNESS_DEFAULT = 0.1
STIMULATION_THRESHOLD_DEFAULT = 30.0

# Last resort speed limit when neither max_speed nor interaction_radius is set
MAX_SPEED_FALLBACK = 5.0

# Interaction rules an unconfigured engine starts with (matches engine.yaml)
SHOWCASE_INTERACTION = {
    'cohesion': 0.5,
    'separation': 0.8,
    'alignment': 0.6,
    'randomness': 0.2,
    'speed': 1.5,
}


# ============================================================================
# Flocking
# ============================================================================

COHESION_SCALE = 0.001
SEPARATION_SCALE = 0.01
ALIGNMENT_SCALE = 0.1
SEPARATION_DISTANCE = 25.0   # Neighbors closer than this repel
SEPARATION_MIN_DISTANCE = 0.1  # Floor for the 1/d repulsion term


# ============================================================================
# Neurons
# ============================================================================

ACTIVATION_DECAY = 0.9
FIRING_ACTIVATION = 100.0
FIRING_ENERGY_COST = 2.0
NEURON_VELOCITY_DECAY = 0.95


# ============================================================================
# Economy
# ============================================================================

PRODUCER_TRADE_FRACTION = 0.1   # Of the producer's own energy
CONSUMER_TRADE_FRACTION = 0.05  # Of the consumer's energy
TRADER_BONUS_PER_NEIGHBOR = 0.5
ECONOMY_ENERGY_MIN = 10.0
ECONOMY_ENERGY_MAX = 200.0


# ============================================================================
# Physics
# ============================================================================

GRAVITY_Y_DEFAULT = 0.1
FRICTION_DEFAULT = 0.99


# ============================================================================
# Boundaries
# ============================================================================

BOUNDARY_DEFAULT = 'wrap'
ABSORB_VELOCITY_FACTOR = 0.5


# ============================================================================
# Cellular Automata
# ============================================================================

GRID_2D_DEFAULT_WIDTH = 60
GRID_2D_DEFAULT_HEIGHT = 40
GRID_2D_DENSITY = 0.3

GRID_3D_DEFAULT_WIDTH = 20
GRID_3D_DEFAULT_HEIGHT = 20
GRID_3D_DEFAULT_DEPTH = 20
GRID_3D_DENSITY = 0.2

RULESET_DEFAULT = 'conway'

# Half-size of the region cleared around the center for conway seeding
CONWAY_CLEAR_HALF = 5

# Glider cells as (row, col)
GLIDER_CELLS = ((1, 2), (2, 3), (3, 1), (3, 2), (3, 3))

# Pulsar box origin (row, col), box size, and cells relative to the origin
PULSAR_ORIGIN = (15, 15)
PULSAR_BOX = 15
PULSAR_CELLS = (
    (2, 4), (2, 5), (2, 6), (2, 10), (2, 11), (2, 12),
    (4, 2), (4, 7), (4, 9), (4, 14),
    (5, 2), (5, 7), (5, 9), (5, 14),
    (6, 2), (6, 7), (6, 9), (6, 14),
    (7, 4), (7, 5), (7, 6), (7, 10), (7, 11), (7, 12),
    (9, 4), (9, 5), (9, 6), (9, 10), (9, 11), (9, 12),
    (10, 2), (10, 7), (10, 9), (10, 14),
    (11, 2), (11, 7), (11, 9), (11, 14),
    (12, 2), (12, 7), (12, 9), (12, 14),
    (14, 4), (14, 5), (14, 6), (14, 10), (14, 11), (14, 12),
)

# Half-length of the seed cross through the 3D grid center
CROSS_3D_HALF = 2


# ============================================================================
# Metrics
# ============================================================================

DIVERSITY_NORMALIZATION = 200.0
GRID_EFFICIENCY_GENERATION_WEIGHT = 0.1
GRID_EFFICIENCY_CELL_WEIGHT = 0.01

# Bounded metrics history kept by the driver
METRICS_HISTORY_LIMIT = 100


# ============================================================================
# Driver Configuration
# ============================================================================

# Step interval presets in milliseconds
SIMULATION_SPEEDS = {
    'slow': 300,
    'default': 150,
    'fast': 50,
}

DEFAULT_CANVAS_SIZE = (800, 500)
DEFAULT_WORLD_SEED = 42

# Tick timing window for rolling average
TICK_TIME_WINDOW = 100
