from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from .constants import DEFAULT_TIMEOUT, DEFAULT_USERNAME
from .errors import ConfigurationError
from .utils import client_alias, load_yaml_file
from .validation import ValidationReport, validate_config_data

LOGGER = logging.getLogger(__name__)

# Keys that describe the entry itself rather than the client it builds
_ENTRY_KEYS = frozenset({"alias", "type", "enabled"})


@dataclass
class Settings:
    log_level: str = "INFO"
    timeout: float = DEFAULT_TIMEOUT
    username: str = DEFAULT_USERNAME
    max_workers: Optional[int] = None


@dataclass
class ClientConfig:
    alias: str
    type: str
    enabled: bool = True
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class GroupConfig:
    name: str
    clients: list[str] = field(default_factory=list)  # empty means every enabled client


@dataclass
class AppConfig:
    settings: Settings
    clients: list[ClientConfig] = field(default_factory=list)
    groups: list[GroupConfig] = field(default_factory=list)

    def enabled_clients(self) -> list[ClientConfig]:
        return [client for client in self.clients if client.enabled]


def _build_settings(data: dict[str, Any]) -> Settings:
    max_workers = data.get("max_workers")
    return Settings(
        log_level=str(data.get("log_level", "INFO")).upper(),
        timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        username=str(data.get("username") or DEFAULT_USERNAME),
        max_workers=int(max_workers) if max_workers is not None else None,
    )


def _build_client_config(data: dict[str, Any], index: int) -> ClientConfig:
    client_type = str(data.get("type", "")).strip().lower()
    alias = client_alias(data, index)
    options = {key: value for key, value in data.items() if key not in _ENTRY_KEYS}
    return ClientConfig(
        alias=alias,
        type=client_type,
        enabled=bool(data.get("enabled", True)),
        options=options,
    )


def _ensure_string_list(value: Any, *, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, Iterable):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ConfigurationError(f"'{field_name}' must be a string or list of strings")


def _build_group_config(data: dict[str, Any], index: int) -> GroupConfig:
    name = str(data.get("name") or f"group_{index}").strip()
    return GroupConfig(
        name=name,
        clients=_ensure_string_list(data.get("clients"), field_name=f"groups[{index}].clients"),
    )


def _raise_for_report(path: Path, report: ValidationReport) -> None:
    if report.is_valid:
        return
    details = "; ".join(f"{issue.path}: {issue.message}" for issue in report.errors[:3])
    extra = len(report.errors) - 3
    if extra > 0:
        details += f" (+{extra} more)"
    raise ConfigurationError(f"Invalid configuration in {path}: {details}")


def build_app_config(data: dict[str, Any]) -> AppConfig:
    """Build typed configuration from already-validated raw data."""
    settings = _build_settings(data.get("settings") or {})
    clients = [_build_client_config(entry, index) for index, entry in enumerate(data.get("clients") or [], start=1)]
    groups = [_build_group_config(entry, index) for index, entry in enumerate(data.get("groups") or [], start=1)]
    return AppConfig(settings=settings, clients=clients, groups=groups)


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        data = load_yaml_file(path)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")

    report = validate_config_data(data)
    for issue in report.warnings:
        LOGGER.warning("Config warning at %s: %s", issue.path, issue.message)
    _raise_for_report(path, report)

    config = build_app_config(data)
    LOGGER.debug(
        "Loaded %d client(s) and %d group(s) from %s",
        len(config.clients),
        len(config.groups),
        path,
    )
    return config
