from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from jsonschema import Draft7Validator

from .constants import AVAILABLE_PLATFORMS
from .utils import client_alias, env_value
from .validators import is_valid_webhook_url

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_WEBHOOK_TYPES = ("discord", "slack", "webhook")

_STRING_OR_LIST = {
    "oneOf": [
        {"type": "array", "items": {"type": "string"}},
        {"type": "string"},
    ]
}


@dataclass(slots=True)
class ValidationIssue:
    """Represents a single validation problem."""

    severity: str
    path: str
    message: str
    code: str
    fix_suggestion: Optional[str] = None


@dataclass(slots=True)
class ValidationReport:
    """Aggregates validation warnings and errors."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, severity: str, path: str, message: str, code: str) -> None:
        issue = ValidationIssue(
            severity=severity,
            path=path,
            message=message,
            code=code,
            fix_suggestion=get_fix_suggestion(code, path),
        )
        if severity == "error":
            self.errors.append(issue)
        else:
            self.warnings.append(issue)


CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "settings": {
            "type": "object",
            "properties": {
                "log_level": {"type": "string"},
                "timeout": {"type": "number", "exclusiveMinimum": 0},
                "username": {"type": "string"},
                "max_workers": {"type": "integer", "minimum": 1},
            },
            "additionalProperties": True,
        },
        "clients": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["type"],
                "properties": {
                    "alias": {"type": "string", "minLength": 1},
                    "type": {"type": "string", "enum": list(AVAILABLE_PLATFORMS)},
                    "enabled": {"type": "boolean"},
                    "webhook_url": {"type": "string"},
                    "url": {"type": "string"},
                    "webhook_env": {"type": "string"},
                    "username": {"type": "string"},
                    "avatar_url": {"type": "string"},
                    "icon_emoji": {"type": "string"},
                    "icon_url": {"type": "string"},
                    "channel": {"type": "string"},
                    "method": {"type": "string", "enum": ["POST", "PUT", "PATCH", "post", "put", "patch"]},
                    "headers": {"type": "object", "additionalProperties": {"type": "string"}},
                    "timeout": {"type": "number", "exclusiveMinimum": 0},
                    "smtp": {
                        "type": "object",
                        "properties": {
                            "host": {"type": "string"},
                            "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                            "username": {"type": "string"},
                            "password": {"type": "string"},
                            "use_tls": {"type": "boolean"},
                            "timeout": {"type": "integer", "minimum": 1},
                        },
                        "additionalProperties": True,
                    },
                    "from": {"type": "string"},
                    "to": _STRING_OR_LIST,
                    "subject": {"type": "string"},
                },
                "additionalProperties": True,
            },
        },
        "groups": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "clients": _STRING_OR_LIST,
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": True,
}


FIX_SUGGESTION_REGISTRY: Dict[str, Callable[[str], str]] = {
    "duplicate-alias": lambda path: f"Give the client at {path} an alias that no other client uses.",
    "duplicate-group": lambda path: f"Rename the group at {path}; group names must be unique.",
    "unknown-client": lambda path: "Reference clients by the 'alias' declared under 'clients'.",
    "webhook-missing": lambda path: "Set 'webhook_url' (or 'url') or point 'webhook_env' at an environment variable.",
    "webhook-url": lambda path: "Copy the URL exactly as shown in the platform's incoming webhook settings.",
    "webhook-env": lambda path: "Export the named environment variable before running notifly.",
    "email-missing": lambda path: "Email clients need 'smtp.host', 'from' and at least one 'to' address.",
    "log-level": lambda path: f"Use one of: {', '.join(_LOG_LEVELS)}.",
}


def get_fix_suggestion(code: str, path: str) -> Optional[str]:
    factory = FIX_SUGGESTION_REGISTRY.get(code)
    return factory(path) if factory else None


def _format_jsonschema_path(path: Sequence[Any]) -> str:
    if not path:
        return "<root>"
    tokens: List[str] = []
    for part in path:
        if isinstance(part, int):
            if tokens:
                tokens[-1] = f"{tokens[-1]}[{part}]"
            else:
                tokens.append(f"[{part}]")
        else:
            tokens.append(str(part))
    return ".".join(tokens) if tokens else "<root>"


def validate_config_data(data: Dict[str, Any]) -> ValidationReport:
    """Validate configuration data against the schema and semantic rules.

    Semantic rules run only when the schema passes, since they assume its shape.
    """
    report = ValidationReport()
    validator = Draft7Validator(CONFIG_SCHEMA)

    for error in sorted(validator.iter_errors(data), key=lambda exc: _format_jsonschema_path(exc.absolute_path)):
        report.add("error", _format_jsonschema_path(error.absolute_path), error.message, "schema")

    if report.is_valid:
        _validate_semantics(data, report)
    return report


def _validate_semantics(data: Dict[str, Any], report: ValidationReport) -> None:
    settings = data.get("settings") or {}
    log_level = settings.get("log_level")
    if isinstance(log_level, str) and log_level.strip().upper() not in _LOG_LEVELS:
        report.add("error", "settings.log_level", f"Unknown log level '{log_level}'", "log-level")

    clients = data.get("clients") or []
    aliases: List[str] = []
    enabled_aliases: set[str] = set()
    for index, entry in enumerate(clients, start=1):
        path = f"clients[{index - 1}]"
        client_type = str(entry.get("type", "")).strip().lower()
        alias = client_alias(entry, index)
        aliases.append(alias)
        enabled = bool(entry.get("enabled", True))
        if enabled:
            enabled_aliases.add(alias)
        if client_type in _WEBHOOK_TYPES:
            _validate_webhook_entry(entry, path, client_type, enabled, report)
        elif client_type == "email":
            _validate_email_entry(entry, path, report)

    for alias, count in Counter(aliases).items():
        if count > 1:
            report.add("error", "clients", f"Alias '{alias}' is used by {count} clients", "duplicate-alias")

    groups = data.get("groups") or []
    names = Counter(str(group.get("name")).strip() for group in groups)
    for name, count in names.items():
        if count > 1:
            report.add("error", "groups", f"Group '{name}' is defined {count} times", "duplicate-group")

    known = set(aliases)
    for index, group in enumerate(groups):
        path = f"groups[{index}]"
        members = group.get("clients")
        if isinstance(members, str):
            members = [members]
        members = [str(member).strip() for member in members or [] if str(member).strip()]
        if not members:
            if not enabled_aliases:
                report.add("warning", path, f"Group '{group.get('name')}' has no enabled clients", "empty-group")
            continue
        for member in members:
            if member not in known:
                report.add("error", f"{path}.clients", f"Unknown client alias '{member}'", "unknown-client")
            elif member not in enabled_aliases:
                report.add(
                    "warning",
                    f"{path}.clients",
                    f"Client '{member}' is disabled and will be skipped",
                    "client-disabled",
                )
        if not any(member in enabled_aliases for member in members):
            report.add("warning", path, f"Group '{group.get('name')}' has no enabled clients", "empty-group")


def _validate_webhook_entry(
    entry: Dict[str, Any],
    path: str,
    client_type: str,
    enabled: bool,
    report: ValidationReport,
) -> None:
    url = entry.get("webhook_url") or entry.get("url")
    env_name = entry.get("webhook_env")
    if isinstance(url, str) and url.strip():
        if not is_valid_webhook_url(url.strip(), client_type):
            report.add("error", f"{path}.webhook_url", f"Invalid {client_type} webhook URL", "webhook-url")
        return
    if not env_name:
        report.add("error", path, f"{client_type} client needs a webhook URL", "webhook-missing")
        return
    if enabled and env_value(env_name) is None:
        report.add(
            "warning",
            f"{path}.webhook_env",
            f"Environment variable '{env_name}' is not set",
            "webhook-env",
        )


def _validate_email_entry(entry: Dict[str, Any], path: str, report: ValidationReport) -> None:
    smtp = entry.get("smtp") or {}
    missing = []
    if not smtp.get("host"):
        missing.append("smtp.host")
    if not entry.get("from"):
        missing.append("from")
    if not entry.get("to"):
        missing.append("to")
    if missing:
        report.add("error", path, f"Email client is missing {', '.join(missing)}", "email-missing")
