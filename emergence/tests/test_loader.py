"""
Test engine config loading

Verifies YAML -> dataclass conversion and schema validation.
"""

import sys
import pytest
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from emergence.loader import load_engine_config, load_all_data, DataLoadError
from emergence.data_types import CellularRuleset


DATA_ROOT = Path(__file__).parent.parent.parent / "data"
SCHEMA_DIR = DATA_ROOT / "schemas"


def test_load_engine_config():
    """Shipped engine config loads with the showcase defaults"""
    config = load_engine_config(DATA_ROOT / "config" / "engine.yaml", SCHEMA_DIR)

    print(f"[OK] Loaded engine config: seed={config.seed}, pattern={config.initial_pattern}")
    print(f"  Agent counts: {config.agent_counts}")
    print(f"  Speeds: {config.speeds}")

    assert config.seed == 42
    assert config.initial_pattern == 'flocking'
    assert config.canvas.width == 800 and config.canvas.height == 500

    interaction = config.rules.interaction
    assert interaction.cohesion == 0.5
    assert interaction.separation == 0.8
    assert interaction.alignment == 0.6
    assert interaction.randomness == 0.2
    assert interaction.speed == 1.5
    assert config.rules.environment.boundary_behavior == 'wrap'
    assert CellularRuleset.parse(config.rules.cellular_ruleset) is CellularRuleset.CONWAY

    assert config.agent_counts['flocking'] == 80
    assert config.agent_counts['cellular'] == 0
    assert (config.grid_2d.width, config.grid_2d.height) == (60, 40)
    assert (config.grid_3d.width, config.grid_3d.height, config.grid_3d.depth) == (20, 20, 20)
    assert config.speeds == {'slow': 300, 'default': 150, 'fast': 50}


def test_load_all_data_finds_schemas():
    data = load_all_data(DATA_ROOT)
    assert 'engine' in data
    assert data['engine'].initial_ruleset == 'conway'


def test_minimal_config_uses_defaults(tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("rules:\n  interaction:\n    cohesion: 0.3\n")

    config = load_engine_config(config_file, SCHEMA_DIR)

    assert config.rules.interaction.cohesion == 0.3
    assert config.rules.interaction.separation is None
    assert config.rules.physics is None
    assert config.agent_counts['economy'] == 40
    assert (config.grid_2d.width, config.grid_2d.height) == (60, 40)
    assert config.speeds['default'] == 150


def test_invalid_boundary_rejected(tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("rules:\n  environment:\n    boundary_behavior: portal\n")

    # Rejected by the schema
    with pytest.raises(DataLoadError):
        load_engine_config(config_file, SCHEMA_DIR)

    # And by the parser when no schema is given
    with pytest.raises(DataLoadError):
        load_engine_config(config_file)


def test_invalid_ruleset_and_pattern_rejected(tmp_path):
    bad_ruleset = tmp_path / "ruleset.yaml"
    bad_ruleset.write_text("rules:\n  cellular_ruleset: highlife\n")
    with pytest.raises(DataLoadError):
        load_engine_config(bad_ruleset)

    bad_pattern = tmp_path / "pattern.yaml"
    bad_pattern.write_text("initial_pattern: swarm\n")
    with pytest.raises(DataLoadError):
        load_engine_config(bad_pattern)


def test_null_sections_use_defaults(tmp_path):
    """Empty YAML sections load as if absent"""
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("rules:\ngrids:\nagent_counts:\nspeeds:\n")

    config = load_engine_config(config_file)

    assert config.rules.interaction.cohesion is None
    assert (config.grid_2d.width, config.grid_2d.height) == (60, 40)
    assert config.agent_counts['flocking'] == 80
    assert config.speeds['fast'] == 50

    nested = tmp_path / "nested.yaml"
    nested.write_text("rules:\n  interaction:\n")
    assert load_engine_config(nested).rules.interaction.speed is None


def test_non_mapping_sections_rejected(tmp_path):
    for index, body in enumerate([
        "rules: [1, 2]\n",
        "grids: 5\n",
        "agent_counts: abc\n",
        "canvas: wide\n",
    ]):
        config_file = tmp_path / f"engine-{index}.yaml"
        config_file.write_text(body)
        with pytest.raises(DataLoadError):
            load_engine_config(config_file)


def test_unknown_field_rejected(tmp_path):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("rules:\n  interaction:\n    viscosity: 2.0\n")

    with pytest.raises(DataLoadError):
        load_engine_config(config_file)


def test_missing_and_malformed_files(tmp_path):
    with pytest.raises(DataLoadError):
        load_engine_config(tmp_path / "nope.yaml")

    not_mapping = tmp_path / "list.yaml"
    not_mapping.write_text("- 1\n- 2\n")
    with pytest.raises(DataLoadError):
        load_engine_config(not_mapping)

    broken = tmp_path / "broken.yaml"
    broken.write_text("rules: [unclosed\n")
    with pytest.raises(DataLoadError):
        load_engine_config(broken)
