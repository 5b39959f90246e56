from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from rich.console import Console
from rich.markup import escape

from .config import load_config
from .errors import ConfigurationError
from .logging_utils import configure_logging, render_connection_results
from .service import NotifierService
from .summary_table import SummaryTableRenderer
from .types import BroadcastSummary, EmbedOptions
from .utils import load_yaml_file
from .validation import validate_config_data
from .version import __version__

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DELIVERY_FAILED = 1
EXIT_CONFIG_ERROR = 2

SEVERITY_COMMANDS = ("success", "error", "warning", "info")


def _default_config_path() -> Path:
    return Path(os.getenv("NOTIFLY_CONFIG", "notifly.yaml"))


def _parse_color(value: str) -> int:
    text = value.strip().lstrip("#")
    if text.lower().startswith("0x"):
        text = text[2:]
    try:
        color = int(text, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid color '{value}' (expected hex such as #3498db)") from None
    if not 0 <= color <= 0xFFFFFF:
        raise argparse.ArgumentTypeError(f"color '{value}' is outside the RGB range")
    return color


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notifly",
        description="Broadcast notifications to Discord, Slack, webhooks and email.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=_default_config_path(),
        help="Path to the notifly YAML config (default: $NOTIFLY_CONFIG or ./notifly.yaml)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--log-level", help="Override settings.log_level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send a plain text message to a group")
    send.add_argument("group")
    send.add_argument("message")

    embed = subparsers.add_parser("embed", help="Send a rich embed to a group")
    embed.add_argument("group")
    embed.add_argument("--title", required=True)
    embed.add_argument("--description", default="")
    embed.add_argument("--color", type=_parse_color)
    embed.add_argument("--url")
    embed.add_argument("--footer")

    for severity in SEVERITY_COMMANDS:
        shortcut = subparsers.add_parser(severity, help=f"Send a {severity} embed to a group")
        shortcut.add_argument("group")
        shortcut.add_argument("title")
        shortcut.add_argument("description")

    test = subparsers.add_parser("test", help="Check that every client in a group is reachable")
    test.add_argument("group")

    listing = subparsers.add_parser("list", help="List groups and their clients")
    listing.add_argument("group", nargs="?")

    subparsers.add_parser("validate", help="Validate the config file without sending anything")
    return parser


def _resolve_level(args: argparse.Namespace, configured: Optional[str] = None) -> str:
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "log_level", None):
        return str(args.log_level).upper()
    return configured or "INFO"


def _exit_code(summary: BroadcastSummary) -> int:
    return EXIT_OK if summary.all_succeeded else EXIT_DELIVERY_FAILED


def run_validate(args: argparse.Namespace, console: Console) -> int:
    path: Path = args.config
    if not path.exists():
        console.print(f"[red]Config file not found:[/red] {escape(str(path))}")
        return EXIT_CONFIG_ERROR
    try:
        data = load_yaml_file(path)
    except (OSError, yaml.YAMLError) as exc:
        console.print(f"[red]Unable to read {escape(str(path))}:[/red] {escape(str(exc))}")
        return EXIT_CONFIG_ERROR
    if not isinstance(data, dict):
        console.print(f"[red]{escape(str(path))} must contain a mapping at the top level[/red]")
        return EXIT_CONFIG_ERROR
    report = validate_config_data(data)
    for issue in report.errors + report.warnings:
        color = "red" if issue.severity == "error" else "yellow"
        console.print(f"[{color}]{issue.severity.upper()}[/{color}] {escape(issue.path)}: {escape(issue.message)}")
        if issue.fix_suggestion:
            console.print(f"    [dim]{escape(issue.fix_suggestion)}[/dim]")
    if report.is_valid:
        console.print(f"[green]✓[/green] {escape(str(path))} is valid ({len(report.warnings)} warning(s))")
        return EXIT_OK
    return EXIT_CONFIG_ERROR


def run_command(args: argparse.Namespace, service: NotifierService, renderer: SummaryTableRenderer) -> int:
    command = args.command

    if command == "list":
        names = [args.group] if args.group else sorted(service.groups)
        for name in names:
            group = service.group(name)
            renderer.render_clients(group.name, group.list_clients())
        return EXIT_OK

    group = service.group(args.group)

    if command == "test":
        results = group.test_connections()
        LOGGER.debug(render_connection_results(group.name, results))
        renderer.render_connections(group.name, results)
        return EXIT_OK if all(outcome.connected for outcome in results.values()) else EXIT_DELIVERY_FAILED

    if command == "send":
        summary = group.broadcast(args.message)
    elif command == "embed":
        embed = EmbedOptions.from_mapping(
            {
                "title": args.title,
                "description": args.description,
                "color": args.color,
                "url": args.url,
                "footer": args.footer,
            }
        )
        summary = group.broadcast_embed(embed)
    elif command in SEVERITY_COMMANDS:
        shortcut = getattr(group, f"broadcast_{command}")
        summary = shortcut(args.title, args.description)
    else:  # pragma: no cover - argparse restricts choices
        raise ValueError(f"Unsupported command: {command}")

    renderer.render_broadcast(summary)
    return _exit_code(summary)


def run(args: argparse.Namespace, *, console: Optional[Console] = None) -> int:
    console = console or Console()
    configure_logging(_resolve_level(args), log_file=args.log_file)

    if args.command == "validate":
        return run_validate(args, console)

    try:
        config = load_config(args.config)
        if not (args.verbose or args.log_level):
            configure_logging(_resolve_level(args, config.settings.log_level), log_file=args.log_file)
        service = NotifierService(config)
        return run_command(args, service, SummaryTableRenderer(console))
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return EXIT_CONFIG_ERROR


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
