from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from ..constants import (
    CONNECTION_TEST_MESSAGE,
    DEFAULT_TIMEOUT,
    DEFAULT_USERNAME,
    ERROR_EMOJI,
    INFO_EMOJI,
    SLACK_DEFAULT_COLOR,
    SLACK_DEFAULT_ICON,
    SLACK_SEVERITY_COLORS,
    SUCCESS_EMOJI,
    WARNING_EMOJI,
)
from ..errors import MessageSendError
from ..types import DeliveryReceipt, EmbedOptions
from .base import WebhookClient
from .utils import _color_to_hex, _drop_empty

LOGGER = logging.getLogger(__name__)


class SlackClient(WebhookClient):
    """Slack incoming-webhook client.

    Slack has no embeds; :meth:`send_embed` converts an :class:`EmbedOptions`
    into a legacy message attachment, which renders with a colored side bar.
    """

    platform = "slack"
    display_name = "Slack"
    url_hint = "https://hooks.slack.com/services/..."

    def __init__(
        self,
        webhook_url: str | None,
        *,
        username: str = DEFAULT_USERNAME,
        icon_emoji: str = SLACK_DEFAULT_ICON,
        icon_url: str | None = None,
        channel: str | None = None,
        default_color: str = SLACK_DEFAULT_COLOR,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(webhook_url, timeout=timeout)
        self.username = username or DEFAULT_USERNAME
        self.icon_emoji = icon_emoji or SLACK_DEFAULT_ICON
        self.icon_url = icon_url or None
        self.channel = channel or None
        self.default_color = default_color or SLACK_DEFAULT_COLOR

    def send(self, message: str | Mapping[str, Any], options: Mapping[str, Any] | None = None) -> DeliveryReceipt:
        payload = self._build_payload(message, dict(options or {}))
        response = self._post(payload)
        return self._receipt(response)

    def send_attachment(self, attachment: Mapping[str, Any]) -> DeliveryReceipt:
        """Send a single attachment; the caller's keys win over the defaults."""
        merged = {"color": self.default_color, "ts": int(time.time())}
        merged.update({key: value for key, value in attachment.items() if value is not None})
        return self.send({"attachments": [merged]})

    def send_embed(self, embed: EmbedOptions | Mapping[str, Any]) -> DeliveryReceipt:
        if not isinstance(embed, EmbedOptions):
            embed = EmbedOptions.from_mapping(embed)

        fields = [{"title": item.name, "value": item.value, "short": bool(item.inline)} for item in embed.fields]
        attachment = {
            "color": _color_to_hex(embed.color) if embed.color is not None else self.default_color,
            "title": embed.title,
            "title_link": embed.url,
            "text": embed.description,
            "fields": fields or None,
            "footer": embed.footer.text if embed.footer else None,
            "footer_icon": embed.footer.icon_url if embed.footer else None,
            "author_name": embed.author.name if embed.author else None,
            "author_link": embed.author.url if embed.author else None,
            "author_icon": embed.author.icon_url if embed.author else None,
            "thumb_url": embed.thumbnail_url,
            "image_url": embed.image_url,
            "ts": int(embed.timestamp.timestamp()) if embed.timestamp else int(time.time()),
        }
        return self.send_attachment(_drop_empty(attachment))

    def send_success(self, title: str, description: str) -> DeliveryReceipt:
        return self._send_severity("success", f"{SUCCESS_EMOJI} {title}", description)

    def send_error(self, title: str, description: str) -> DeliveryReceipt:
        return self._send_severity("error", f"{ERROR_EMOJI} {title}", description)

    def send_warning(self, title: str, description: str) -> DeliveryReceipt:
        return self._send_severity("warning", f"{WARNING_EMOJI} {title}", description)

    def send_info(self, title: str, description: str) -> DeliveryReceipt:
        return self._send_severity("info", f"{INFO_EMOJI} {title}", description)

    def test_connection(self) -> bool:
        try:
            self.send(CONNECTION_TEST_MESSAGE)
        except MessageSendError as exc:
            LOGGER.debug("Slack connection test failed: %s", exc)
            return False
        return True

    def _send_severity(self, severity: str, title: str, description: str) -> DeliveryReceipt:
        return self.send_attachment({"color": SLACK_SEVERITY_COLORS[severity], "title": title, "text": description})

    def _build_payload(self, message: str | Mapping[str, Any], options: Mapping[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "username": options.get("username") or self.username,
            "icon_emoji": options.get("icon_emoji") or self.icon_emoji,
        }

        # icon_url overrides the emoji
        icon_url = options.get("icon_url") or self.icon_url
        if icon_url:
            payload["icon_url"] = icon_url
            del payload["icon_emoji"]

        channel = options.get("channel") or self.channel
        if channel:
            payload["channel"] = channel

        for key in ("attachments", "blocks"):
            if options.get(key):
                payload[key] = list(options[key])

        if isinstance(message, str):
            payload["text"] = message
        elif isinstance(message, Mapping):
            payload.update(message)
        return payload
