from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests
from requests import Response
from requests.exceptions import RequestException

from ..constants import DEFAULT_TIMEOUT
from ..errors import ConfigurationError, MessageSendError
from ..types import DeliveryReceipt
from ..validators import is_valid_webhook_url
from .utils import _excerpt_response, _utc_now

LOGGER = logging.getLogger(__name__)


class PlatformClient:
    """Minimal contract for anything that can take part in a broadcast.

    Subclasses declare ``platform`` and implement :meth:`send`. ``send_embed``
    and ``test_connection`` are optional; a group checks for them once when the
    client is registered and falls back to ``send`` when they are absent.
    """

    platform: str = "generic"

    def send(self, message: str | Mapping[str, Any], options: Mapping[str, Any] | None = None) -> Any:
        raise NotImplementedError


class WebhookClient(PlatformClient):
    """Shared plumbing for clients that POST JSON to a single incoming webhook URL."""

    display_name = "Webhook"
    url_hint = "an http(s) URL"

    def __init__(self, webhook_url: str | None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.webhook_url = webhook_url.strip() if isinstance(webhook_url, str) else ""
        self.timeout = float(timeout) if timeout else DEFAULT_TIMEOUT
        self._validate_config()

    def _validate_config(self) -> None:
        if not self.webhook_url:
            raise ConfigurationError(f"{self.display_name} configuration is missing required field(s): webhook_url")
        if not is_valid_webhook_url(self.webhook_url, self.platform):
            raise ConfigurationError(
                f"Invalid {self.display_name} webhook URL format. Expected: {self.url_hint}"
            )

    def _post(
        self,
        payload: Any,
        *,
        method: str = "POST",
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Response:
        LOGGER.debug("Posting %s payload to %s", self.display_name, self.webhook_url)
        try:
            response = requests.request(
                method,
                self.webhook_url,
                json=payload,
                params=params or None,
                headers=headers or None,
                timeout=self.timeout,
            )
        except RequestException as exc:
            LOGGER.warning("Failed to reach %s webhook: %s", self.display_name, exc)
            raise MessageSendError(self.display_name, exc) from exc

        if response.status_code >= 400:
            detail = f"{self.display_name} API Error: {response.status_code} - {_excerpt_response(response)}"
            LOGGER.warning("%s webhook responded with %s", self.display_name, response.status_code)
            raise MessageSendError(self.display_name, detail)
        return response

    def _receipt(self, response: Response, message_id: str | None = None) -> DeliveryReceipt:
        return DeliveryReceipt(
            platform=self.platform,
            timestamp=_utc_now().isoformat(),
            status_code=response.status_code,
            message_id=message_id,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(platform={self.platform!r})"
