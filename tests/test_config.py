"""
Tests for gramaton/config.py - GramatonConfig class.
"""

import json
import pytest

from gramaton.config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_STATES,
    DEFAULT_STEP_BUDGET,
    GramatonConfig,
)
from gramaton.errors import ConfigError


class TestGramatonConfig:
    """Tests for the GramatonConfig class."""

    def test_config_init_defaults(self):
        """Test config initialization with default values."""
        config = GramatonConfig()
        assert config.max_states == DEFAULT_MAX_STATES
        assert config.max_depth == DEFAULT_MAX_DEPTH
        assert config.on_depth_limit == "fail"
        assert config.edge_union == "set"
        assert config.step_budget == DEFAULT_STEP_BUDGET

    def test_config_init_custom_values(self, sample_config_data):
        """Test config initialization with custom values."""
        config = GramatonConfig(**sample_config_data)
        assert config.as_dict() == sample_config_data

    def test_config_get_method(self):
        """Test the get method with default fallback."""
        config = GramatonConfig(max_depth=8)
        assert config.get("max_depth") == 8
        assert config.get("nonexistent_key") is None
        assert config.get("nonexistent_key", "default") == "default"

    def test_config_attribute_set(self):
        """Test setting config values via attributes."""
        config = GramatonConfig()
        config.edge_union = "multiset"
        assert config.edge_union == "multiset"

    def test_config_invalid_attribute(self):
        """Test accessing non-existent attribute raises error."""
        config = GramatonConfig()
        with pytest.raises(AttributeError):
            _ = config.nonexistent_attribute

    def test_merged_returns_copy(self):
        """Test merged() returns a modified copy."""
        config = GramatonConfig()
        merged = config.merged(max_depth=4, on_depth_limit="truncate")
        assert merged.max_depth == 4
        assert merged.on_depth_limit == "truncate"
        assert config.max_depth == DEFAULT_MAX_DEPTH

    @pytest.mark.parametrize("key,value", [
        ("max_states", 0),
        ("max_states", "many"),
        ("max_depth", 0),
        ("max_depth", "deep"),
        ("on_depth_limit", "ignore"),
        ("edge_union", "bag"),
        ("step_budget", -1),
    ])
    def test_invalid_values(self, key, value):
        """Test that invalid values are rejected at construction."""
        with pytest.raises(ConfigError):
            GramatonConfig(**{key: value})

    def test_deep_max_depth_accepted(self):
        """Test max_depth has no upper bound."""
        config = GramatonConfig(max_depth=10_000)
        assert config.max_depth == 10_000

    def test_validate_after_assignment(self):
        """Test validate() catches values assigned after construction."""
        config = GramatonConfig()
        config.max_depth = -1
        with pytest.raises(ConfigError):
            config.validate()

    def test_config_save_and_load(self, tmp_path, monkeypatch):
        """Test saving and loading config from the default location."""
        gramaton_dir = tmp_path / ".gramaton"
        gramaton_dir.mkdir()
        monkeypatch.setattr("gramaton.config._ensure_gramaton_dir", lambda: str(gramaton_dir))

        config = GramatonConfig(max_depth=12, edge_union="multiset")
        config.save()

        config_path = gramaton_dir / "config.json"
        assert config_path.exists()

        loaded = GramatonConfig.load()
        assert loaded.max_depth == 12
        assert loaded.edge_union == "multiset"

    def test_load_creates_default_file(self, tmp_path, monkeypatch):
        """Test load() writes defaults when no config file exists."""
        monkeypatch.setattr("gramaton.config._ensure_gramaton_dir", lambda: str(tmp_path))

        config = GramatonConfig.load()

        assert config.as_dict() == GramatonConfig().as_dict()
        with open(tmp_path / "config.json") as f:
            assert json.load(f)["max_states"] == DEFAULT_MAX_STATES

    def test_load_explicit_path(self, tmp_path, sample_config_data):
        """Test loading from an explicit path."""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps(sample_config_data))

        config = GramatonConfig.load(str(path))
        assert config.step_budget == 250

    def test_load_invalid_json(self, tmp_path):
        """Test that corrupt JSON raises ConfigError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            GramatonConfig.load(str(path))

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ConfigError):
            GramatonConfig.load(str(path))

    def test_load_invalid_value(self, tmp_path):
        """Test that out-of-range values in the file raise ConfigError."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"edge_union": "bag"}))
        with pytest.raises(ConfigError):
            GramatonConfig.load(str(path))

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            GramatonConfig.load(str(tmp_path / "missing.json"))
