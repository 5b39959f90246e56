"""Platform clients that a BroadcastGroup can fan out to."""

from __future__ import annotations

from .base import PlatformClient, WebhookClient
from .discord import DiscordClient
from .email import EmailClient
from .slack import SlackClient
from .webhook import GenericWebhookClient

__all__ = [
    "PlatformClient",
    "WebhookClient",
    "DiscordClient",
    "SlackClient",
    "GenericWebhookClient",
    "EmailClient",
]
