# gramaton/config.py
import os
import json
from typing import Any, Dict, Optional

from gramaton.errors import ConfigError

DEFAULT_MAX_STATES = 100_000
DEFAULT_MAX_DEPTH = 64
DEFAULT_STEP_BUDGET = 1000

DEPTH_LIMIT_POLICIES = ("fail", "truncate")
EDGE_UNION_POLICIES = ("set", "multiset")


class GramatonConfig:
    def __init__(self, **kwargs):
        self._data = {
            "max_states": kwargs.get("max_states", DEFAULT_MAX_STATES),
            "max_depth": kwargs.get("max_depth", DEFAULT_MAX_DEPTH),
            "on_depth_limit": kwargs.get("on_depth_limit", "fail"),
            "edge_union": kwargs.get("edge_union", "set"),
            "step_budget": kwargs.get("step_budget", DEFAULT_STEP_BUDGET),
        }
        self.validate()

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __getattr__(self, name: str) -> Any:
        if name in self._data:
            return self._data[name]
        raise AttributeError(f"'GramatonConfig' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "_data":
            super().__setattr__(name, value)
        else:
            self._data[name] = value

    def __repr__(self) -> str:
        return f"GramatonConfig({self._data!r})"

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def merged(self, **overrides) -> "GramatonConfig":
        """Return a copy with the given keys replaced."""
        data = self.as_dict()
        data.update(overrides)
        return GramatonConfig(**data)

    def validate(self) -> None:
        """
        Check every known key.

        Raises:
            ConfigError: On the first invalid value
        """
        max_states = self._data["max_states"]
        if not isinstance(max_states, int) or max_states < 1:
            raise ConfigError(f"max_states must be a positive integer, got {max_states!r}")

        max_depth = self._data["max_depth"]
        if not isinstance(max_depth, int) or max_depth < 1:
            raise ConfigError(f"max_depth must be a positive integer, got {max_depth!r}")

        if self._data["on_depth_limit"] not in DEPTH_LIMIT_POLICIES:
            raise ConfigError(
                f"on_depth_limit must be one of {DEPTH_LIMIT_POLICIES}, "
                f"got {self._data['on_depth_limit']!r}"
            )

        if self._data["edge_union"] not in EDGE_UNION_POLICIES:
            raise ConfigError(
                f"edge_union must be one of {EDGE_UNION_POLICIES}, got {self._data['edge_union']!r}"
            )

        step_budget = self._data["step_budget"]
        if not isinstance(step_budget, int) or step_budget < 0:
            raise ConfigError(f"step_budget must be a non-negative integer, got {step_budget!r}")

    @classmethod
    def load(cls, path: Optional[str] = None) -> "GramatonConfig":
        """
        Load configuration from JSON.

        Args:
            path: Config file (default: ~/.gramaton/config.json, created with
                defaults when missing)

        Returns:
            Loaded configuration
        """
        if path is None:
            config_path = os.path.join(_ensure_gramaton_dir(), "config.json")
            if not os.path.exists(config_path):
                config = cls()
                config.save(config_path)
                return config
        else:
            config_path = os.path.expanduser(path)

        try:
            with open(config_path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load config from {config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a JSON object")
        return cls(**data)

    def save(self, path: Optional[str] = None) -> None:
        if path is None:
            config_path = os.path.join(_ensure_gramaton_dir(), "config.json")
        else:
            config_path = os.path.expanduser(path)
        try:
            with open(config_path, "w") as f:
                json.dump(self._data, f, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save gramaton config: {e}")


def _ensure_gramaton_dir() -> str:
    """Ensure that ~/.gramaton/ directory exists. Return its path."""
    home = os.path.expanduser("~")
    gramaton_dir = os.path.join(home, ".gramaton")
    os.makedirs(gramaton_dir, exist_ok=True)
    return gramaton_dir
