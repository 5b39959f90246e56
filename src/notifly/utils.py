from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env(val) for key, val in value.items()}
    return value


def load_yaml_file(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return expand_env(data)


def env_value(name: Optional[str]) -> Optional[str]:
    """Return the stripped value of an environment variable, or None when unset or blank."""
    if not name:
        return None
    key = str(name).strip()
    if not key:
        return None
    raw = os.environ.get(key)
    if raw is None:
        return None
    return raw.strip() or None


def client_alias(entry: Dict[str, Any], index: int) -> str:
    """Return the alias for the ``index``-th (1-based) client entry, defaulting to ``<type>_<index>``."""
    client_type = str(entry.get("type", "")).strip().lower()
    return str(entry.get("alias") or f"{client_type or 'client'}_{index}").strip()
