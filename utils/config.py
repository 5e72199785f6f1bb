"""Configuration loading helpers backed by YAML."""
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

DEFAULT_SETTINGS: Dict[str, Any] = {
    "pipes": {
        # bounded queue size per pipe, in chunks
        "buffer_size": 64,
        "chunk_size": 1024,
        "read_timeout_sec": None,
    },
    "pipeline": {
        "max_workers": None,
    },
}


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_settings(path: str | os.PathLike[str] | None = None) -> Dict[str, Any]:
    """Load YAML configuration merged over the defaults.

    Missing files yield a copy of ``DEFAULT_SETTINGS``.
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    cfg_path = Path(path or os.environ.get("TEXTFLOW_SETTINGS", "config/settings.yaml"))
    if not cfg_path.exists():
        return settings
    with cfg_path.open("r", encoding="utf-8") as fh:
        loaded = yaml.safe_load(fh) or {}
    if not isinstance(loaded, Mapping):
        raise ValueError(f"Settings file {cfg_path} must contain a mapping")
    return _merge(settings, loaded)
