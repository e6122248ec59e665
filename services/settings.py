# services/settings.py
"""
Configuration loading.

- Reads config.yaml (if present) and overlays it onto built-in defaults, so a
  partial file never leaves a key missing.
- The task database path can be overridden with PROJECT_MANAGER_DB_FILE.
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

DB_ENV_VAR = "PROJECT_MANAGER_DB_FILE"
DEFAULT_CONFIG_PATH = Path("config.yaml")

DEFAULTS: Dict[str, Any] = {
    "paths": {
        "database": "db/tasks.db",
        "charts_dir": "charts",
        "processed_dir": "data/processed",
    },
    "chart": {
        "format": "png",
        "width": 1800,
        "height": 1000,
        "scale": 1.0,
        "title": "Earned Value Chart",
        "x_title": "Week #",
        "y_title": "Done %",
    },
    "buckets": {"on_missing": "raise"},
    "logging": {"level": "INFO"},
}


def load_config(cfg_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Return a config dict: defaults overlaid with the YAML file if it exists."""
    cfg = copy.deepcopy(DEFAULTS)
    fp = Path(cfg_path) if cfg_path is not None else DEFAULT_CONFIG_PATH
    if fp.exists():
        with fp.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        for k, v in user_cfg.items():
            if isinstance(v, dict) and isinstance(cfg.get(k), dict):
                cfg[k].update(v)  # shallow-merge sections
            else:
                cfg[k] = v
    return cfg


def database_path(cfg: Dict[str, Any], override: Optional[str] = None) -> Path:
    """CLI flag, then env var, then config."""
    if override:
        return Path(override)
    env = os.environ.get(DB_ENV_VAR, "").strip()
    if env:
        return Path(env)
    return Path(cfg["paths"]["database"])
