"""
Configuration management.

Defaults live here; a YAML file can override any of them. Values are read
with dotted keys:

    from fastsep.config import get_config

    config = get_config()
    config.get('ica.max_iterations', 1000)

The process config is read once from $FASTSEP_CONFIG (if set) and cached.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'FASTSEP_CONFIG'

DEFAULTS: Dict[str, Any] = {
    'ica': {
        'approach': 'symmetric',
        'n_components': None,        # None = one component per signal
        'nonlinearity': 'tanh',
        'max_iterations': 1000,
        'epsilon': 1e-4,
        'random_seed': None,
    },
    'whitening': {
        # Added to every eigenvalue before 1/sqrt, scaled by the largest one
        'eigenvalue_floor': 1e-12,
        # Eigenvalues below this fraction of the largest are degenerate
        'degenerate_tolerance': 1e-10,
    },
}


class Config:
    """Nested configuration dict with dotted-key access."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = copy.deepcopy(DEFAULTS)
        if data:
            _deep_merge(self._data, data)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up 'section.sub.key'; return default when any part is missing."""
        node: Any = self._data
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def section(self, name: str) -> Dict[str, Any]:
        """Return a copy of a top-level section."""
        return copy.deepcopy(self._data.get(name, {}))

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base in place; nested dicts merge, values replace."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from a YAML file merged over the defaults.

    Args:
        path: YAML file. None returns the defaults.

    Returns:
        Config
    """
    if path is None:
        return Config()

    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")

    with open(config_file) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a mapping: {config_file}")

    logger.debug("Loaded config overrides from %s", config_file)
    return Config(raw)


_config: Optional[Config] = None


def get_config() -> Config:
    """Process-wide config (defaults + $FASTSEP_CONFIG), loaded once."""
    global _config
    if _config is None:
        _config = load_config(os.environ.get(CONFIG_ENV_VAR))
    return _config


def reset_config() -> None:
    """Drop the cached process config so the next get_config() re-reads it."""
    global _config
    _config = None
