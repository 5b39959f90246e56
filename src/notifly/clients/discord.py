from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from requests import Response

from ..constants import (
    CONNECTION_TEST_MESSAGE,
    DEFAULT_TIMEOUT,
    DEFAULT_USERNAME,
    DISCORD_CONTENT_LIMIT,
    DISCORD_DESCRIPTION_LIMIT,
    DISCORD_FIELD_NAME_LIMIT,
    DISCORD_FIELD_VALUE_LIMIT,
    DISCORD_FOOTER_LIMIT,
    DISCORD_MAX_FIELDS,
    DISCORD_TITLE_LIMIT,
    ERROR_COLOR,
    ERROR_EMOJI,
    INFO_COLOR,
    INFO_EMOJI,
    SUCCESS_COLOR,
    SUCCESS_EMOJI,
    WARNING_COLOR,
    WARNING_EMOJI,
)
from ..errors import MessageSendError
from ..types import DeliveryReceipt, EmbedField, EmbedOptions
from .base import WebhookClient
from .utils import _drop_empty, _trim, _utc_now

LOGGER = logging.getLogger(__name__)


class DiscordClient(WebhookClient):
    """Discord incoming-webhook client with native embed support."""

    platform = "discord"
    display_name = "Discord"
    url_hint = "https://discord.com/api/webhooks/<id>/<token>"

    def __init__(
        self,
        webhook_url: str | None,
        *,
        username: str = DEFAULT_USERNAME,
        avatar_url: str | None = None,
        default_color: int = INFO_COLOR,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(webhook_url, timeout=timeout)
        self.username = username or DEFAULT_USERNAME
        self.avatar_url = avatar_url or None
        self.default_color = default_color

    def send(self, message: str | Mapping[str, Any], options: Mapping[str, Any] | None = None) -> DeliveryReceipt:
        options = dict(options or {})
        payload = self._build_payload(message, options)

        params: dict[str, str] = {}
        wait = bool(options.get("wait"))
        if wait:
            params["wait"] = "true"
        if options.get("thread_id"):
            params["thread_id"] = str(options["thread_id"])

        response = self._post(payload, params=params)
        message_id = self._extract_message_id(response) if wait else None
        return self._receipt(response, message_id)

    def send_embed(self, embed: EmbedOptions | Mapping[str, Any]) -> DeliveryReceipt:
        if not isinstance(embed, EmbedOptions):
            embed = EmbedOptions.from_mapping(embed)
        return self.send({"embeds": [self._build_embed(embed)]})

    def send_success(self, title: str, description: str) -> DeliveryReceipt:
        return self.send_embed(
            EmbedOptions(title=f"{SUCCESS_EMOJI} {title}", description=description, color=SUCCESS_COLOR)
        )

    def send_error(self, title: str, description: str) -> DeliveryReceipt:
        return self.send_embed(
            EmbedOptions(title=f"{ERROR_EMOJI} {title}", description=description, color=ERROR_COLOR)
        )

    def send_warning(self, title: str, description: str) -> DeliveryReceipt:
        return self.send_embed(
            EmbedOptions(title=f"{WARNING_EMOJI} {title}", description=description, color=WARNING_COLOR)
        )

    def send_info(self, title: str, description: str) -> DeliveryReceipt:
        return self.send_embed(
            EmbedOptions(title=f"{INFO_EMOJI} {title}", description=description, color=INFO_COLOR)
        )

    def test_connection(self) -> bool:
        try:
            self.send(CONNECTION_TEST_MESSAGE)
        except MessageSendError as exc:
            LOGGER.debug("Discord connection test failed: %s", exc)
            return False
        return True

    def _build_payload(self, message: str | Mapping[str, Any], options: Mapping[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {"username": options.get("username") or self.username}
        avatar_url = options.get("avatar_url") or self.avatar_url
        if avatar_url:
            payload["avatar_url"] = avatar_url
        if options.get("tts"):
            payload["tts"] = True
        if options.get("embeds"):
            payload["embeds"] = list(options["embeds"])

        if isinstance(message, str):
            payload["content"] = _trim(message, DISCORD_CONTENT_LIMIT)
        elif isinstance(message, Mapping):
            payload.update(message)
        return payload

    def _build_embed(self, embed: EmbedOptions) -> dict[str, Any]:
        timestamp = embed.timestamp or _utc_now()
        data: dict[str, Any] = {
            "title": _trim(embed.title, DISCORD_TITLE_LIMIT) if embed.title else None,
            "description": _trim(embed.description, DISCORD_DESCRIPTION_LIMIT) if embed.description else None,
            "url": embed.url,
            "color": embed.color if embed.color is not None else self.default_color,
            "timestamp": timestamp.isoformat(),
        }

        fields = [field for field in (self._embed_field(item) for item in embed.fields) if field is not None]
        if fields:
            if len(fields) > DISCORD_MAX_FIELDS:
                LOGGER.debug("Dropping %d embed fields over the Discord limit", len(fields) - DISCORD_MAX_FIELDS)
            data["fields"] = fields[:DISCORD_MAX_FIELDS]
        if embed.footer:
            data["footer"] = _drop_empty(
                {"text": _trim(embed.footer.text, DISCORD_FOOTER_LIMIT), "icon_url": embed.footer.icon_url}
            )
        if embed.author:
            data["author"] = _drop_empty(
                {"name": embed.author.name, "url": embed.author.url, "icon_url": embed.author.icon_url}
            )
        if embed.thumbnail_url:
            data["thumbnail"] = {"url": embed.thumbnail_url}
        if embed.image_url:
            data["image"] = {"url": embed.image_url}
        return _drop_empty(data)

    @staticmethod
    def _embed_field(item: EmbedField) -> dict[str, Any] | None:
        value = _trim(str(item.value), DISCORD_FIELD_VALUE_LIMIT) if item.value is not None else ""
        if not value:
            return None
        return {"name": _trim(str(item.name), DISCORD_FIELD_NAME_LIMIT), "value": value, "inline": item.inline}

    @staticmethod
    def _extract_message_id(response: Response) -> str | None:
        try:
            payload = response.json()
        except ValueError:
            return None
        message_id = payload.get("id") if isinstance(payload, dict) else None
        return str(message_id) if message_id else None
