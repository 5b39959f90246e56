"""notifly: broadcast notifications to chat platforms through incoming webhooks.

The package is organized into focused modules:

- **broadcast**: ``BroadcastGroup``, which fans one notification out to many clients
- **clients**: Discord, Slack, generic webhook and email platform clients
- **types**: embeds and the result objects a broadcast returns
- **config** / **validation**: YAML configuration loading and schema checks
- **service**: builds clients and groups from configuration
- **cli**: the ``notifly`` command

Most callers only need ``BroadcastGroup`` and one or more clients::

    from notifly import BroadcastGroup, DiscordClient, SlackClient

    group = BroadcastGroup("alerts", [DiscordClient(discord_url), SlackClient(slack_url)])
    group.broadcast_error("Deploy failed", "api-7 rolled back")
"""

from . import errors
from .broadcast import BroadcastGroup
from .clients import DiscordClient, EmailClient, GenericWebhookClient, PlatformClient, SlackClient
from .errors import ConfigurationError, MessageSendError, NotiflyError
from .service import NotifierService
from .types import (
    BroadcastResult,
    BroadcastSummary,
    ClientInfo,
    ConnectionTestResult,
    DeliveryReceipt,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedOptions,
)
from .version import __version__

__all__ = [
    "__version__",
    "errors",
    # Core
    "BroadcastGroup",
    "NotifierService",
    # Clients
    "PlatformClient",
    "DiscordClient",
    "SlackClient",
    "GenericWebhookClient",
    "EmailClient",
    # Types
    "BroadcastResult",
    "BroadcastSummary",
    "ClientInfo",
    "ConnectionTestResult",
    "DeliveryReceipt",
    "EmbedAuthor",
    "EmbedField",
    "EmbedFooter",
    "EmbedOptions",
    # Errors
    "NotiflyError",
    "ConfigurationError",
    "MessageSendError",
]
