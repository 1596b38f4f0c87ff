# config.py
"""
Config loader for the plant engine.

Provides a single entry `load_config(path=None)` that reads YAML config from
`config/defaults.yaml` by default and returns a nested dict. Also exposes
`get_default_config()` for quick access and `engine_config(cfg)` which picks
out the sections PlantEngine understands.

Every section is optional; components fall back to their built-in defaults.
"""

import os
import yaml

DEFAULT_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), 'config', 'defaults.yaml'))

ENGINE_KEYS = ('species', 'gas_baseline', 'realtime', 'care_targets', 'tracker', 'states', 'reminders', 'max_events')


def load_config(path=None):
    """Load YAML config and return a dict (empty file -> {})."""
    p = path or DEFAULT_PATH
    if not os.path.exists(p):
        raise FileNotFoundError(f"Config file not found: {p}")
    with open(p, 'r', encoding='utf-8') as f:
        cfg = yaml.safe_load(f)
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {p} must contain a mapping at the top level")
    return cfg


def get_default_config():
    return load_config(DEFAULT_PATH)


def engine_config(cfg):
    """Subset of a loaded config that is passed to PlantEngine."""
    cfg = cfg or {}
    return {k: cfg[k] for k in ENGINE_KEYS if k in cfg}


if __name__ == '__main__':
    print(load_config())
