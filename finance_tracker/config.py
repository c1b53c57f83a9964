from __future__ import annotations

import os
from pathlib import Path
from typing import Dict

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "db_path": "data/finance.sqlite",
    "host": "127.0.0.1",
    "port": 8000,
    "secret_key": None,
    "log_level": "INFO",
    "session_cookie": "micdog_session",
}

ENV_OVERRIDES: Dict[str, str] = {
    "MICDOG_DB": "db_path",
    "MICDOG_SECRET_KEY": "secret_key",
    "MICDOG_LOG_LEVEL": "log_level",
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def _apply_env(config: Dict[str, object]) -> Dict[str, object]:
    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value
    return config


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    """Load settings from *path* (YAML), filling gaps from DEFAULT_CONFIG.

    Environment variables listed in ENV_OVERRIDES win over the file.
    """
    data: Dict[str, object] = {}
    if path is not None:
        target = Path(path)
        if target.exists():
            with target.open("r", encoding="utf-8") as fp:
                data = yaml.safe_load(fp) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Config file {target} must contain a mapping")
    return _apply_env(_merge_defaults(data, DEFAULT_CONFIG))
