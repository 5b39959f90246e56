from __future__ import annotations

import logging
from pathlib import Path

import pytest

from notifly.clients import DiscordClient, EmailClient, GenericWebhookClient, SlackClient
from notifly.config import build_app_config, load_config
from notifly.errors import ConfigurationError
from notifly.service import NotifierService

DISCORD_URL = "https://discord.com/api/webhooks/123/abc"
SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "notifly.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_builds_settings_clients_and_groups(tmp_path) -> None:
    path = _write(
        tmp_path,
        f"""
settings:
  log_level: debug
  timeout: 3
  username: Ops Bot
  max_workers: 2
clients:
  - alias: ops-discord
    type: discord
    webhook_url: {DISCORD_URL}
  - type: slack
    webhook_url: {SLACK_URL}
    channel: "#ops"
  - alias: pager
    type: webhook
    url: https://hooks.example.com/pager
    enabled: false
groups:
  - name: alerts
    clients: [ops-discord, slack_2]
""",
    )

    config = load_config(path)

    assert config.settings.log_level == "DEBUG"
    assert config.settings.timeout == 3.0
    assert config.settings.username == "Ops Bot"
    assert config.settings.max_workers == 2
    assert [client.alias for client in config.clients] == ["ops-discord", "slack_2", "pager"]
    assert config.clients[1].options == {"webhook_url": SLACK_URL, "channel": "#ops"}
    assert [client.alias for client in config.enabled_clients()] == ["ops-discord", "slack_2"]
    assert config.groups[0].clients == ["ops-discord", "slack_2"]


def test_load_config_strips_aliases_before_resolving_groups(tmp_path) -> None:
    path = _write(
        tmp_path,
        f"""
clients:
  - alias: ' ops '
    type: discord
    webhook_url: {DISCORD_URL}
groups:
  - name: alerts
    clients: [' ops']
""",
    )

    config = load_config(path)

    assert config.clients[0].alias == "ops"
    assert config.groups[0].clients == ["ops"]


def test_load_config_expands_environment_variables(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("OPS_DISCORD_URL", DISCORD_URL)
    path = _write(
        tmp_path,
        """
clients:
  - type: discord
    webhook_url: ${OPS_DISCORD_URL}
""",
    )

    config = load_config(path)

    assert config.clients[0].options["webhook_url"] == DISCORD_URL


def test_load_config_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="Config file not found"):
        load_config(tmp_path / "absent.yaml")


def test_load_config_rejects_invalid_yaml(tmp_path) -> None:
    path = _write(tmp_path, "clients: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Unable to read config file"):
        load_config(path)


def test_load_config_rejects_non_mapping(tmp_path) -> None:
    path = _write(tmp_path, "- just\n- a list\n")

    with pytest.raises(ConfigurationError, match="mapping at the top level"):
        load_config(path)


def test_load_config_reports_validation_errors(tmp_path) -> None:
    path = _write(
        tmp_path,
        """
clients:
  - type: carrier-pigeon
  - type: discord
  - type: slack
    webhook_url: https://example.com/not-slack
  - type: email
""",
    )

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(path)

    message = str(excinfo.value)
    assert "Invalid configuration" in message
    assert "clients[0].type" in message


def test_load_config_logs_warnings(tmp_path, caplog, monkeypatch) -> None:
    monkeypatch.delenv("NOTIFLY_TEST_UNSET_VARIABLE", raising=False)
    path = _write(
        tmp_path,
        """
clients:
  - type: slack
    webhook_env: NOTIFLY_TEST_UNSET_VARIABLE
    enabled: false
  - type: discord
    webhook_env: NOTIFLY_TEST_UNSET_VARIABLE
""",
    )

    with caplog.at_level(logging.WARNING, logger="notifly.config"):
        load_config(path)

    assert "NOTIFLY_TEST_UNSET_VARIABLE" in caplog.text


def test_service_builds_each_client_type(monkeypatch) -> None:
    monkeypatch.setenv("SLACK_HOOK", f"  {SLACK_URL}  ")
    config = build_app_config(
        {
            "settings": {"username": "Ops", "timeout": 2},
            "clients": [
                {"alias": "d", "type": "discord", "webhook_url": DISCORD_URL},
                {"alias": "s", "type": "slack", "webhook_env": "SLACK_HOOK", "icon_emoji": ":bell:"},
                {"alias": "w", "type": "webhook", "url": "https://hooks.example.com/x", "method": "put"},
                {
                    "alias": "e",
                    "type": "email",
                    "smtp": {"host": "smtp.example.com", "port": 2525},
                    "from": "bot@example.com",
                    "to": "ops@example.com",
                },
            ],
        }
    )

    service = NotifierService(config)
    clients = service.clients

    assert isinstance(clients["d"], DiscordClient)
    assert clients["d"].username == "Ops"
    assert clients["d"].timeout == 2.0
    assert isinstance(clients["s"], SlackClient)
    assert clients["s"].webhook_url == SLACK_URL
    assert clients["s"].icon_emoji == ":bell:"
    assert isinstance(clients["w"], GenericWebhookClient)
    assert clients["w"].method == "PUT"
    assert isinstance(clients["e"], EmailClient)
    assert clients["e"].port == 2525
    assert clients["e"].recipients == ["ops@example.com"]


def test_service_creates_default_group_without_groups() -> None:
    config = build_app_config(
        {
            "clients": [
                {"type": "discord", "webhook_url": DISCORD_URL},
                {"type": "slack", "webhook_url": SLACK_URL, "enabled": False},
            ]
        }
    )

    service = NotifierService(config)

    assert list(service.groups) == ["default"]
    assert [info.alias for info in service.group("default").list_clients()] == ["discord_1"]


def test_service_shares_clients_between_groups_and_skips_disabled(caplog) -> None:
    config = build_app_config(
        {
            "clients": [
                {"alias": "d", "type": "discord", "webhook_url": DISCORD_URL},
                {"alias": "s", "type": "slack", "webhook_url": SLACK_URL},
                {"alias": "off", "type": "slack", "webhook_url": SLACK_URL, "enabled": False},
            ],
            "groups": [
                {"name": "alerts", "clients": ["d", "off"]},
                {"name": "everyone"},
            ],
        }
    )

    with caplog.at_level(logging.WARNING, logger="notifly.service"):
        service = NotifierService(config)

    alerts = service.group("alerts")
    everyone = service.group("everyone")
    assert [info.alias for info in alerts.list_clients()] == ["d"]
    assert [info.alias for info in everyone.list_clients()] == ["d", "s"]
    assert "'off' is disabled" in caplog.text


def test_service_rejects_unknown_group_and_client() -> None:
    config = build_app_config(
        {
            "clients": [{"alias": "d", "type": "discord", "webhook_url": DISCORD_URL}],
            "groups": [{"name": "alerts", "clients": ["ghost"]}],
        }
    )
    with pytest.raises(ConfigurationError, match="unknown client 'ghost'"):
        NotifierService(config)

    service = NotifierService(build_app_config({"clients": []}))
    with pytest.raises(ConfigurationError, match="Unknown group 'missing'"):
        service.group("missing")


def test_service_requires_webhook_source(monkeypatch) -> None:
    monkeypatch.delenv("NOTIFLY_TEST_UNSET_VARIABLE", raising=False)

    with pytest.raises(ConfigurationError, match="no webhook_url"):
        NotifierService(build_app_config({"clients": [{"type": "discord"}]}))
    with pytest.raises(ConfigurationError, match="is not set"):
        NotifierService(
            build_app_config({"clients": [{"type": "discord", "webhook_env": "NOTIFLY_TEST_UNSET_VARIABLE"}]})
        )


def test_service_from_path(tmp_path) -> None:
    path = _write(
        tmp_path,
        f"""
clients:
  - alias: d
    type: discord
    webhook_url: {DISCORD_URL}
""",
    )

    service = NotifierService.from_path(path)

    assert service.config.clients[0].alias == "d"
    assert len(service.group("default")) == 1
