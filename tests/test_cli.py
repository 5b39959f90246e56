from __future__ import annotations

import argparse
import io
from pathlib import Path
from typing import Any, Dict, List

import pytest
from rich.console import Console

from notifly import cli

DISCORD_URL = "https://discord.com/api/webhooks/123/abc"
SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


class FakeResponse:
    def __init__(self, status_code: int, text: str = ""):
        self.status_code = status_code
        self.text = text


def _write_config(path: Path) -> None:
    path.write_text(
        f"""
settings:
  log_level: WARNING
clients:
  - alias: ops-discord
    type: discord
    webhook_url: {DISCORD_URL}
  - alias: ops-slack
    type: slack
    webhook_url: {SLACK_URL}
groups:
  - name: alerts
    clients: [ops-discord, ops-slack]
""",
        encoding="utf-8",
    )


@pytest.fixture
def config_path(tmp_path) -> Path:
    path = tmp_path / "notifly.yaml"
    _write_config(path)
    return path


class FakeTransport:
    """Records webhook posts; Slack posts fail once `fail_slack` is set."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.fail_slack = False

    def request(self, method, url, json=None, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json})
        if self.fail_slack and "slack" in url:
            return FakeResponse(500, "boom")
        return FakeResponse(204)


@pytest.fixture
def transport(monkeypatch) -> FakeTransport:
    fake = FakeTransport()
    monkeypatch.setattr("notifly.cli.configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr("notifly.clients.base.requests.request", fake.request)
    return fake


def _run(config_path: Path, *argv: str) -> tuple[int, str]:
    args = cli.build_parser().parse_args(["--config", str(config_path), *argv])
    buffer = io.StringIO()
    exit_code = cli.run(args, console=Console(file=buffer, width=120, color_system=None))
    return exit_code, buffer.getvalue()


def test_parser_defaults_config_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("NOTIFLY_CONFIG", "/etc/notifly/custom.yaml")

    args = cli.build_parser().parse_args(["send", "alerts", "hi"])

    assert args.config == Path("/etc/notifly/custom.yaml")
    assert args.command == "send"
    assert args.verbose is False


def test_parser_rejects_verbose_with_log_level() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["-v", "--log-level", "INFO", "validate"])


@pytest.mark.parametrize("value, expected", [("#3498db", 0x3498DB), ("0xFF0000", 0xFF0000), ("00ff00", 0x00FF00)])
def test_parse_color(value, expected) -> None:
    assert cli._parse_color(value) == expected


@pytest.mark.parametrize("value", ["zzz", "#1000000"])
def test_parse_color_rejects_invalid(value) -> None:
    with pytest.raises(argparse.ArgumentTypeError):
        cli._parse_color(value)


def test_resolve_level_precedence() -> None:
    verbose = argparse.Namespace(verbose=True, log_level="ERROR")
    explicit = argparse.Namespace(verbose=False, log_level="error")
    neither = argparse.Namespace(verbose=False, log_level=None)

    assert cli._resolve_level(verbose, "INFO") == "DEBUG"
    assert cli._resolve_level(explicit, "INFO") == "ERROR"
    assert cli._resolve_level(neither, "WARNING") == "WARNING"
    assert cli._resolve_level(neither) == "INFO"


def test_send_broadcasts_to_group(config_path, transport) -> None:
    exit_code, output = _run(config_path, "send", "alerts", "Server online")

    assert exit_code == cli.EXIT_OK
    assert {call["url"] for call in transport.calls} == {DISCORD_URL, SLACK_URL}
    assert {call["json"].get("content") or call["json"].get("text") for call in transport.calls} == {"Server online"}
    assert "2/2 delivered" in output


def test_send_returns_delivery_failure_exit_code(config_path, transport) -> None:
    transport.fail_slack = True

    exit_code, output = _run(config_path, "send", "alerts", "Server online")

    assert exit_code == cli.EXIT_DELIVERY_FAILED
    assert "1/2 delivered" in output


def test_embed_command_builds_embed(config_path, transport) -> None:
    exit_code, _ = _run(
        config_path,
        "embed",
        "alerts",
        "--title",
        "Deploy",
        "--description",
        "api-7 live",
        "--color",
        "#00ff00",
        "--footer",
        "ci",
    )

    assert exit_code == cli.EXIT_OK
    discord_payload = next(call["json"] for call in transport.calls if call["url"] == DISCORD_URL)
    embed = discord_payload["embeds"][0]
    assert embed["title"] == "Deploy"
    assert embed["color"] == 0x00FF00
    assert embed["footer"] == {"text": "ci"}


def test_severity_command_uses_shortcut(config_path, transport) -> None:
    exit_code, _ = _run(config_path, "error", "alerts", "Deploy", "rolled back")

    assert exit_code == cli.EXIT_OK
    slack_payload = next(call["json"] for call in transport.calls if call["url"] == SLACK_URL)
    assert slack_payload["attachments"][0]["title"] == "❌ Deploy"
    assert slack_payload["attachments"][0]["color"] == "#ff0000"


def test_test_command_reports_connectivity(config_path, transport) -> None:
    exit_code, output = _run(config_path, "test", "alerts")
    assert exit_code == cli.EXIT_OK
    assert "connected" in output

    transport.fail_slack = True
    exit_code, output = _run(config_path, "test", "alerts")
    assert exit_code == cli.EXIT_DELIVERY_FAILED
    assert "unreachable" in output


def test_list_command_shows_groups(config_path, transport) -> None:
    exit_code, output = _run(config_path, "list")

    assert exit_code == cli.EXIT_OK
    assert "Group: alerts" in output
    assert "ops-slack" in output
    assert transport.calls == []


def test_unknown_group_is_a_config_error(config_path, transport) -> None:
    exit_code, _ = _run(config_path, "send", "nobody", "hi")

    assert exit_code == cli.EXIT_CONFIG_ERROR
    assert transport.calls == []


def test_missing_config_is_a_config_error(tmp_path, transport) -> None:
    exit_code, _ = _run(tmp_path / "absent.yaml", "send", "alerts", "hi")

    assert exit_code == cli.EXIT_CONFIG_ERROR


def test_validate_command(config_path, tmp_path, transport) -> None:
    exit_code, output = _run(config_path, "validate")
    assert exit_code == cli.EXIT_OK
    assert "is valid" in output

    broken = tmp_path / "broken.yaml"
    broken.write_text("clients:\n  - type: discord\n    webhook_url: https://example.com/x\n", encoding="utf-8")
    exit_code, output = _run(broken, "validate")
    assert exit_code == cli.EXIT_CONFIG_ERROR
    assert "ERROR" in output
    assert "clients[0].webhook_url" in output

    exit_code, _ = _run(tmp_path / "absent.yaml", "validate")
    assert exit_code == cli.EXIT_CONFIG_ERROR


def test_validate_prints_bracketed_names_literally(tmp_path, transport) -> None:
    path = tmp_path / "notifly.yaml"
    path.write_text(
        f"""
clients:
  - alias: ops
    type: discord
    webhook_url: {DISCORD_URL}
groups:
  - name: alerts
    clients: ["[/quote]", "[bold]ghost"]
""",
        encoding="utf-8",
    )

    exit_code, output = _run(path, "validate")

    assert exit_code == cli.EXIT_CONFIG_ERROR
    assert "Unknown client alias '[/quote]'" in output
    assert "Unknown client alias '[bold]ghost'" in output


def test_main_parses_argv(config_path, transport, capsys) -> None:
    exit_code = cli.main(["--config", str(config_path), "list", "alerts"])

    assert exit_code == cli.EXIT_OK
    assert "ops-discord" in capsys.readouterr().out
