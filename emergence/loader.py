"""
YAML engine configuration loader with schema validation.

Loads interaction/physics/environment rules and engine defaults (agent
counts, grid sizes, step speeds, seed) from YAML and validates against a
JSON schema.
"""

import yaml
import json
from pathlib import Path
from typing import Optional
import jsonschema

from .data_types import (
    EngineConfig, SimulationRules, InteractionRules, PhysicsRules,
    EnvironmentRules, GridConfig, CanvasSize, PATTERNS, BOUNDARY_BEHAVIORS,
    CellularRuleset
)
from .constants import (
    DEFAULT_AGENT_COUNTS,
    SIMULATION_SPEEDS,
    DEFAULT_WORLD_SEED,
    DEFAULT_CANVAS_SIZE,
    GRID_2D_DEFAULT_WIDTH,
    GRID_2D_DEFAULT_HEIGHT,
    GRID_3D_DEFAULT_WIDTH,
    GRID_3D_DEFAULT_HEIGHT,
    GRID_3D_DEFAULT_DEPTH,
)


class DataLoadError(Exception):
    """Raised when data loading or validation fails"""
    pass


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DataLoadError(f"YAML parse error in {file_path}: {e}")

    if not isinstance(data, dict):
        raise DataLoadError(f"Expected a mapping at top level of {file_path}")

    return data


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        # Schema validation is optional when the schema is not shipped
        print(f"[WARN] Schema not found: {schema_path}, skipping validation")
        return

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise DataLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON schema {schema_path}: {e}")


def parse_rules(data: dict) -> SimulationRules:
    """Build SimulationRules from the 'rules' mapping"""
    interaction = InteractionRules(**(data.get('interaction') or {}))

    physics = None
    if data.get('physics') is not None:
        physics = PhysicsRules(**data['physics'])

    environment = None
    if data.get('environment') is not None:
        environment = EnvironmentRules(**data['environment'])
        if environment.boundary_behavior not in BOUNDARY_BEHAVIORS:
            raise DataLoadError(f"Unknown boundary behavior: {environment.boundary_behavior}")

    ruleset = data.get('cellular_ruleset', CellularRuleset.CONWAY.value)
    if not CellularRuleset.is_known(ruleset):
        raise DataLoadError(f"Unknown cellular ruleset: {ruleset}")

    return SimulationRules(
        interaction=interaction,
        physics=physics,
        environment=environment,
        cellular_ruleset=ruleset
    )


def load_engine_config(file_path: Path, schema_dir: Optional[Path] = None) -> EngineConfig:
    """Load engine configuration from YAML"""
    file_path = Path(file_path)
    data = load_yaml(file_path)

    # Validate if schema available
    if schema_dir:
        schema_path = Path(schema_dir) / "engine.schema.json"
        validate_against_schema(data, schema_path, file_path)

    try:
        rules = parse_rules(data.get('rules') or {})

        agent_counts = dict(DEFAULT_AGENT_COUNTS)
        agent_counts.update(data.get('agent_counts') or {})

        grids = data.get('grids') or {}
        grid_2d = GridConfig(**grids.get('grid_2d', {
            'width': GRID_2D_DEFAULT_WIDTH,
            'height': GRID_2D_DEFAULT_HEIGHT,
        }))
        grid_3d = GridConfig(**grids.get('grid_3d', {
            'width': GRID_3D_DEFAULT_WIDTH,
            'height': GRID_3D_DEFAULT_HEIGHT,
            'depth': GRID_3D_DEFAULT_DEPTH,
        }))

        canvas_data = data.get('canvas', {
            'width': DEFAULT_CANVAS_SIZE[0],
            'height': DEFAULT_CANVAS_SIZE[1],
        })
        canvas = CanvasSize(width=canvas_data['width'], height=canvas_data['height'])

        speeds = dict(SIMULATION_SPEEDS)
        speeds.update(data.get('speeds') or {})
    except (TypeError, AttributeError, ValueError) as e:
        # Unexpected keys, or a section that is not a mapping
        raise DataLoadError(f"Invalid field in {file_path}: {e}")

    initial_pattern = data.get('initial_pattern', 'flocking')
    if initial_pattern not in PATTERNS:
        raise DataLoadError(f"Unknown initial pattern: {initial_pattern}")

    return EngineConfig(
        rules=rules,
        agent_counts=agent_counts,
        grid_2d=grid_2d,
        grid_3d=grid_3d,
        canvas=canvas,
        initial_pattern=initial_pattern,
        initial_ruleset=data.get('initial_ruleset', rules.cellular_ruleset),
        speeds=speeds,
        seed=data.get('seed', DEFAULT_WORLD_SEED),
        description=data.get('description')
    )


def load_all_data(data_root: Path, schema_dir: Optional[Path] = None) -> dict:
    """Load all engine data from data directory

    Returns dict with keys: engine
    """
    data_root = Path(data_root)
    if schema_dir is None and (data_root / "schemas").exists():
        schema_dir = data_root / "schemas"

    engine = load_engine_config(data_root / "config" / "engine.yaml", schema_dir)

    return {
        'engine': engine
    }
