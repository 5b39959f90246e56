from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableSequence, Sequence
from pathlib import Path
from textwrap import wrap
from typing import TYPE_CHECKING, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from .utils import ensure_directory

if TYPE_CHECKING:  # pragma: no cover
    from .types import BroadcastSummary, ConnectionTestResult

DEFAULT_WRAP_WIDTH = 110
DEFAULT_LABEL_WIDTH = 22
DEFAULT_INDENT = "    "
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

FieldMapping = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def _coerce_items(fields: FieldMapping) -> list[tuple[str, object]]:
    if isinstance(fields, Mapping):
        return list(fields.items())
    return list(fields)


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple, set)):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


def _wrap_text(text: str, width: int) -> list[str]:
    if not text:
        return [""]
    lines: list[str] = []
    for raw_line in text.splitlines() or [""]:
        lines.extend(wrap(raw_line, width=width) or [""])
    return lines


class LogBlockBuilder:
    """Builds an indented, titled multi-line block for log output."""

    def __init__(
        self,
        title: str,
        *,
        wrap_width: int = DEFAULT_WRAP_WIDTH,
        label_width: int = DEFAULT_LABEL_WIDTH,
        indent: str = DEFAULT_INDENT,
        pad_top: bool = True,
    ) -> None:
        self.title = title
        self.wrap_width = wrap_width
        self.label_width = label_width
        self.indent = indent
        self.lines: MutableSequence[str] = []
        if pad_top:
            self.lines.append("")
        self.lines.append(title)
        self.lines.append("-" * len(title))

    def add_blank_line(self) -> None:
        if not self.lines or self.lines[-1] == "":
            return
        self.lines.append("")

    def add_fields(self, fields: FieldMapping | None) -> None:
        items = _coerce_items(fields) if fields else []
        if not items:
            return

        longest = max(len(str(key)) for key, _ in items)
        label_width = max(min(longest, self.label_width), 8)
        value_width = max(self.wrap_width - len(self.indent) - label_width - 4, 32)

        for key, value in items:
            first, *rest = _wrap_text(_stringify(value), value_width)
            self.lines.append(f"{self.indent}{str(key):<{label_width}}: {first}")
            self.lines.extend(f"{self.indent}{'':<{label_width}}  {line}" for line in rest)

    def add_section(self, heading: str, items: Iterable[str], *, empty_label: str = "(none)") -> None:
        self.add_blank_line()
        self.lines.append(f"{heading}:")
        materialized = [item for item in items if item is not None]
        if not materialized:
            self.lines.append(f"{self.indent}{empty_label}")
            return

        bullet = self.indent + "- "
        continuation = self.indent + "  "
        width = max(self.wrap_width - len(bullet), 24)
        for item in materialized:
            first, *rest = _wrap_text(_stringify(item), width)
            self.lines.append(f"{bullet}{first}")
            self.lines.extend(f"{continuation}{line}" for line in rest)

    def render(self) -> str:
        return "\n".join(self.lines).rstrip()


def render_broadcast_summary(summary: BroadcastSummary, *, pad_top: bool = True) -> str:
    """Render a broadcast summary as a log block: totals, then one line per client."""
    builder = LogBlockBuilder(f"Broadcast Summary: {summary.group_name}", pad_top=pad_top)
    builder.add_fields(
        [
            ("Clients", summary.total_clients),
            ("Delivered", len(summary.succeeded)),
            ("Failed", len(summary.failed)),
        ]
    )
    lines = []
    for alias, outcome in summary.results.items():
        if outcome.success:
            suffix = f" ({outcome.note})" if outcome.note else ""
            lines.append(f"{alias} [{outcome.platform}] ok{suffix}")
        else:
            lines.append(f"{alias} [{outcome.platform}] failed: {outcome.error}")
    builder.add_section("Results", lines)
    return builder.render()


def render_connection_results(
    group_name: str,
    results: Mapping[str, ConnectionTestResult],
    *,
    pad_top: bool = True,
) -> str:
    fields = []
    for alias, outcome in results.items():
        status = "connected" if outcome.connected else "unreachable"
        if outcome.error:
            status = f"{status} ({outcome.error})"
        fields.append((f"{alias} [{outcome.platform}]", status))
    builder = LogBlockBuilder(f"Connection Test: {group_name}", pad_top=pad_top)
    if fields:
        builder.add_fields(fields)
    else:
        builder.add_section("Clients", [])
    return builder.render()


def configure_logging(
    level: str | int = logging.INFO,
    *,
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """Install a rich console handler on the root logger, plus an optional plain file handler."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        level = resolved if isinstance(resolved, int) else logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(level)
    root.addHandler(console_handler)

    if log_file is not None:
        ensure_directory(log_file.parent)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        file_handler.setLevel(level)
        root.addHandler(file_handler)

    # requests/urllib3 connection chatter is rarely useful
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
