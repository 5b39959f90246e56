from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from requests import Response


def _render_template(template: Any, data: dict[str, Any]) -> Any:
    """Recursively render template structures by formatting strings with the provided data."""
    if isinstance(template, dict):
        return {key: _render_template(value, data) for key, value in template.items()}
    if isinstance(template, list):
        return [_render_template(value, data) for value in template]
    if isinstance(template, str):
        try:
            return template.format(**data)
        except (KeyError, IndexError, ValueError):
            return template
    return template


def _trim(value: str, limit: int) -> str:
    """Trim a string to a maximum length, appending '...' if truncated."""
    stripped = value.strip()
    if len(stripped) <= limit:
        return stripped
    if limit <= 3:
        return stripped[:limit]
    return stripped[: limit - 3] + "..."


def _excerpt_response(response: Response) -> str:
    """Extract a short excerpt from an HTTP response for error messages."""
    try:
        text = response.text
    except Exception:  # pragma: no cover - defensive fallback
        return "<no response body>"
    return _trim(text or "<empty>", 200)


def _color_to_hex(color: int) -> str:
    """Convert an RGB integer such as ``0x36a64f`` to ``#36a64f``."""
    return f"#{color:06x}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _drop_empty(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}
