from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..constants import DEFAULT_TIMEOUT
from ..types import DeliveryReceipt
from .base import WebhookClient
from .utils import _render_template

LOGGER = logging.getLogger(__name__)


class GenericWebhookClient(WebhookClient):
    """Generic webhook client with configurable method, headers, and template.

    Offers only ``send``: embeds reach it as plain text and connection probes
    go through a regular send.
    """

    platform = "webhook"
    display_name = "Webhook"

    def __init__(
        self,
        url: str | None,
        *,
        method: str = "POST",
        headers: dict[str, str] | None = None,
        template: Any | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(url, timeout=timeout)
        self.method = method.upper()
        self.headers = {str(k): str(v) for k, v in (headers or {}).items()}
        self.template = template

    @property
    def url(self) -> str:
        return self.webhook_url

    def send(self, message: str | Mapping[str, Any], options: Mapping[str, Any] | None = None) -> DeliveryReceipt:
        payload = self._build_payload(message, dict(options or {}))
        response = self._post(payload, method=self.method, headers=self.headers)
        return self._receipt(response)

    def _build_payload(self, message: str | Mapping[str, Any], options: dict[str, Any]) -> Any:
        if self.template is None:
            if isinstance(message, Mapping):
                return dict(message)
            return {"text": message}

        data = {str(key): value for key, value in options.items()}
        if isinstance(message, Mapping):
            data.update({str(key): value for key, value in message.items()})
            data.setdefault("message", data.get("text", ""))
        else:
            data["message"] = message
        return _render_template(self.template, data)
