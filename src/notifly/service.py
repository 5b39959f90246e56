from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .broadcast import BroadcastGroup
from .clients import DiscordClient, EmailClient, GenericWebhookClient, PlatformClient, SlackClient
from .config import AppConfig, ClientConfig, Settings, load_config
from .errors import ConfigurationError
from .utils import env_value

LOGGER = logging.getLogger(__name__)

DEFAULT_GROUP_NAME = "default"


class NotifierService:
    """Builds platform clients and broadcast groups from an :class:`AppConfig`.

    Each enabled client is constructed once and shared by every group that
    lists it. When the configuration declares no groups, a single
    ``default`` group holding every enabled client is created.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._clients = self._build_clients(config)
        self._groups = self._build_groups(config)

    @classmethod
    def from_path(cls, path: Path) -> NotifierService:
        return cls(load_config(path))

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def clients(self) -> dict[str, PlatformClient]:
        return dict(self._clients)

    @property
    def groups(self) -> dict[str, BroadcastGroup]:
        return dict(self._groups)

    def group(self, name: str) -> BroadcastGroup:
        try:
            return self._groups[name]
        except KeyError:
            known = ", ".join(sorted(self._groups)) or "<none>"
            raise ConfigurationError(f"Unknown group '{name}' (known: {known})") from None

    def _build_clients(self, config: AppConfig) -> dict[str, PlatformClient]:
        clients: dict[str, PlatformClient] = {}
        for entry in config.clients:
            if not entry.enabled:
                LOGGER.debug("Skipping disabled client '%s'", entry.alias)
                continue
            clients[entry.alias] = build_client(entry, config.settings)
        return clients

    def _build_groups(self, config: AppConfig) -> dict[str, BroadcastGroup]:
        max_workers = config.settings.max_workers
        if not config.groups:
            return {DEFAULT_GROUP_NAME: BroadcastGroup(DEFAULT_GROUP_NAME, self._clients, max_workers=max_workers)}

        known = {entry.alias for entry in config.clients}
        groups: dict[str, BroadcastGroup] = {}
        for group_config in config.groups:
            members = group_config.clients or list(self._clients)
            group = BroadcastGroup(group_config.name, max_workers=max_workers)
            for alias in members:
                if alias not in known:
                    raise ConfigurationError(f"Group '{group_config.name}' references unknown client '{alias}'")
                client = self._clients.get(alias)
                if client is None:
                    LOGGER.warning("Group '%s': client '%s' is disabled; skipping", group_config.name, alias)
                    continue
                group.add_client(client, alias)
            groups[group_config.name] = group
        return groups


def build_client(entry: ClientConfig, settings: Settings) -> PlatformClient:
    """Construct the platform client described by one ``clients`` entry."""
    options = entry.options
    timeout = float(options.get("timeout", settings.timeout))

    if entry.type == "discord":
        return DiscordClient(
            _webhook_url_from(entry),
            username=options.get("username") or settings.username,
            avatar_url=options.get("avatar_url"),
            timeout=timeout,
        )
    if entry.type == "slack":
        kwargs: dict[str, Any] = {}
        if options.get("icon_emoji"):
            kwargs["icon_emoji"] = options["icon_emoji"]
        return SlackClient(
            _webhook_url_from(entry),
            username=options.get("username") or settings.username,
            icon_url=options.get("icon_url"),
            channel=options.get("channel"),
            timeout=timeout,
            **kwargs,
        )
    if entry.type == "webhook":
        return GenericWebhookClient(
            _webhook_url_from(entry),
            method=options.get("method", "POST"),
            headers=options.get("headers"),
            template=options.get("template"),
            timeout=timeout,
        )
    if entry.type == "email":
        smtp = options.get("smtp") or {}
        return EmailClient(
            smtp.get("host"),
            port=int(smtp.get("port", 587)),
            username=smtp.get("username"),
            password=smtp.get("password"),
            use_tls=bool(smtp.get("use_tls", True)),
            timeout=int(smtp.get("timeout", 10)),
            sender=options.get("from"),
            recipients=options.get("to"),
            subject=options.get("subject") or "",
        )
    raise ConfigurationError(f"Unknown client type '{entry.type or '<missing>'}' for client '{entry.alias}'")


def _webhook_url_from(entry: ClientConfig) -> str:
    url = entry.options.get("webhook_url") or entry.options.get("url")
    if isinstance(url, str) and url.strip():
        return url.strip()

    env_name = entry.options.get("webhook_env")
    if not env_name:
        raise ConfigurationError(f"Client '{entry.alias}' has no webhook_url, url or webhook_env")
    value = env_value(env_name)
    if value is None:
        raise ConfigurationError(f"Client '{entry.alias}': environment variable '{env_name}' is not set")
    return value
