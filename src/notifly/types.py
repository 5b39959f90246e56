from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass
class EmbedFooter:
    text: str
    icon_url: Optional[str] = None


@dataclass
class EmbedAuthor:
    name: str
    url: Optional[str] = None
    icon_url: Optional[str] = None


@dataclass
class EmbedOptions:
    """Platform-neutral rich message body.

    Discord renders it natively, Slack converts it to an attachment and clients
    without rich support receive :meth:`plain_text`.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[int] = None
    fields: List[EmbedField] = field(default_factory=list)
    footer: Optional[EmbedFooter] = None
    author: Optional[EmbedAuthor] = None
    thumbnail_url: Optional[str] = None
    image_url: Optional[str] = None
    url: Optional[str] = None
    timestamp: Optional[datetime] = None

    def plain_text(self) -> str:
        return f"**{self.title or ''}**\n{self.description or ''}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EmbedOptions:
        """Build from the Discord-shaped dict form (``{"footer": {"text": ...}}``)."""
        fields = [
            EmbedField(
                name=str(item.get("name", "")),
                value=str(item.get("value", "")),
                inline=bool(item.get("inline", False)),
            )
            for item in data.get("fields") or []
        ]

        footer = data.get("footer")
        if isinstance(footer, str):
            footer = {"text": footer}
        author = data.get("author")
        if isinstance(author, str):
            author = {"name": author}

        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            title=data.get("title"),
            description=data.get("description"),
            color=_coerce_color(data.get("color")),
            fields=fields,
            footer=EmbedFooter(text=str(footer["text"]), icon_url=footer.get("icon_url")) if footer else None,
            author=EmbedAuthor(name=str(author["name"]), url=author.get("url"), icon_url=author.get("icon_url"))
            if author
            else None,
            thumbnail_url=_nested_url(data, "thumbnail") or data.get("thumbnail_url"),
            image_url=_nested_url(data, "image") or data.get("image_url"),
            url=data.get("url"),
            timestamp=timestamp,
        )


def _nested_url(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, Mapping):
        return value.get("url")
    if isinstance(value, str):
        return value
    return None


def _coerce_color(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip().lstrip("#")
    if text.lower().startswith("0x"):
        text = text[2:]
    if not text:
        return None
    return int(text, 16)


@dataclass
class DeliveryReceipt:
    """What the bundled clients return from a successful send."""

    platform: str
    timestamp: str
    status_code: Optional[int] = None
    message_id: Optional[str] = None


@dataclass
class BroadcastResult:
    success: bool
    platform: str
    result: Any = None
    error: Optional[str] = None
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "platform": self.platform}
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        if self.note is not None:
            data["note"] = self.note
        return data


@dataclass
class BroadcastSummary:
    group_name: str
    total_clients: int
    results: Dict[str, BroadcastResult] = field(default_factory=dict)

    @property
    def succeeded(self) -> List[str]:
        return [alias for alias, outcome in self.results.items() if outcome.success]

    @property
    def failed(self) -> List[str]:
        return [alias for alias, outcome in self.results.items() if not outcome.success]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groupName": self.group_name,
            "totalClients": self.total_clients,
            "results": {alias: outcome.to_dict() for alias, outcome in self.results.items()},
        }


@dataclass
class ConnectionTestResult:
    platform: str
    connected: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ClientInfo:
    alias: str
    platform: str
