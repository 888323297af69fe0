"""
tests/test_config_schema.py - EngineConfig File Loading Tests

Validates:
- Variant base plus per-field overrides
- Schema violations raise ConfigError
- Non-strict loading drops unknown fields with warnings
- JSON and YAML files load; missing or malformed files fail clearly
"""

import json

import pytest

import config_schema
from occupancy import (
    VARIANT_ALL_FLAGS,
    VARIANT_BATCHED,
    VARIANT_DEFAULT,
    ConfigError,
)


class TestFromDict:
    """Config data to EngineConfig."""

    def test_empty_is_default(self):
        assert config_schema.from_dict({}) == VARIANT_DEFAULT

    def test_variant_only(self):
        assert config_schema.from_dict({"variant": "batched"}) == VARIANT_BATCHED

    def test_variant_with_override(self):
        config = config_schema.from_dict({"variant": "BATCHED", "force_even_band": True})
        assert config.batch_rescale is True
        assert config.force_even_band is True
        assert config.variant_name == "BATCHED+CUSTOM"

    def test_override_without_variant(self):
        config = config_schema.from_dict({"zero_policy": "exact"})
        assert config.zero_policy == "exact"
        assert config.split_loop is True
        assert config.variant_name == "CUSTOM"

    def test_explicit_name_kept(self):
        config = config_schema.from_dict({"split_loop": False, "variant_name": "MINE"})
        assert config.variant_name == "MINE"

    def test_round_trip(self):
        data = config_schema.to_dict(VARIANT_ALL_FLAGS)
        assert config_schema.from_dict(data) == VARIANT_ALL_FLAGS

    @pytest.mark.parametrize("data", [
        {"variant": "TURBO"},
        {"zero_policy": "fuzzy"},
        {"split_loop": "yes"},
        {"progress_interval": 0},
        {"tolerance": 0.0},
        {"tolerance": 1.0},
        {"bogus": 1},
    ])
    def test_schema_violations(self, data):
        with pytest.raises(ConfigError, match="validation failed"):
            config_schema.from_dict(data)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            config_schema.from_dict([1, 2])

    def test_non_strict_drops_unknown(self):
        with pytest.warns(UserWarning, match="bogus"):
            config = config_schema.from_dict({"bogus": 1, "batch_rescale": True}, strict=False)
        assert config.batch_rescale is True


class TestValidateData:
    """Raw schema validation."""

    def test_valid(self):
        assert config_schema.validate_data({"variant": "EVEN_BAND", "tolerance": 0.01}) == []

    def test_errors_name_the_field(self):
        errors = config_schema.validate_data({"tolerance": "small"})
        assert len(errors) == 1
        assert errors[0].startswith("tolerance:")


class TestLoad:
    """Config files."""

    def test_load_json(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"variant": "EXACT_ZERO"}))
        assert config_schema.load(str(path)).zero_policy == "exact"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("variant: batched\nforce_even_band: true\nprogress_interval: 64\n")
        config = config_schema.load(str(path))
        assert config.batch_rescale is True
        assert config.force_even_band is True
        assert config.progress_interval == 64

    def test_load_empty_yaml(self, tmp_path):
        path = tmp_path / "engine.yml"
        path.write_text("")
        assert config_schema.load(str(path)) == VARIANT_DEFAULT

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            config_schema.load(str(tmp_path / "absent.json"))

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Cannot parse"):
            config_schema.load(str(path))
