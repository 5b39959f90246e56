from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional
from urllib.parse import urlparse

from .constants import WEBHOOK_PATTERNS
from .errors import ConfigurationError


def is_valid_webhook_url(url: Optional[str], platform: str) -> bool:
    """Return True when ``url`` looks like an incoming webhook for ``platform``.

    Platforms without a dedicated pattern accept any http(s) URL with a host.
    """
    if not url or not isinstance(url, str):
        return False
    pattern = WEBHOOK_PATTERNS.get(platform.lower())
    if pattern is not None:
        return bool(pattern.match(url.strip()))
    return validate_url(url)


def validate_url(url: Optional[str]) -> bool:
    """Validate that URL is a valid http/https URL."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_required(config: Mapping[str, Any], fields: Iterable[str], platform: str) -> None:
    """Raise ConfigurationError naming every blank or missing field."""
    missing = []
    for name in fields:
        value = config.get(name)
        if value is None or (isinstance(value, str) and not value.strip()) or value == []:
            missing.append(name)
    if missing:
        raise ConfigurationError(f"{platform} configuration is missing required field(s): {', '.join(missing)}")
