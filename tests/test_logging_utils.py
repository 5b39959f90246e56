from __future__ import annotations

import io
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from notifly.logging_utils import (
    LogBlockBuilder,
    _coerce_items,
    _stringify,
    _wrap_text,
    configure_logging,
    render_broadcast_summary,
    render_connection_results,
)
from notifly.types import BroadcastResult, BroadcastSummary, ConnectionTestResult


# Tests for helper functions


class TestCoerceItems:
    """Tests for _coerce_items helper function."""

    def test_coerce_items_with_dict(self):
        assert _coerce_items({"key1": "value1"}) == [("key1", "value1")]

    def test_coerce_items_preserves_order_in_sequence(self):
        fields = [("z", 1), ("a", 2), ("m", 3)]
        assert _coerce_items(fields) == [("z", 1), ("a", 2), ("m", 3)]


class TestStringify:
    """Tests for _stringify helper function."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            ("  hello  ", "hello"),
            (True, "yes"),
            (False, "no"),
            (["a", None, 3], "a, , 3"),
            (42, "42"),
        ],
    )
    def test_stringify(self, value, expected):
        assert _stringify(value) == expected


class TestWrapText:
    def test_wrap_text_empty(self):
        assert _wrap_text("", 20) == [""]

    def test_wrap_text_splits_long_lines(self):
        lines = _wrap_text("one two three four five six", 10)
        assert all(len(line) <= 10 for line in lines)
        assert " ".join(lines) == "one two three four five six"


class TestLogBlockBuilder:
    def test_title_is_underlined(self):
        block = LogBlockBuilder("Summary", pad_top=False).render()
        assert block.splitlines() == ["Summary", "-------"]

    def test_fields_are_aligned(self):
        builder = LogBlockBuilder("Summary", pad_top=False)
        builder.add_fields([("Clients", 3), ("Failed", 0)])

        lines = builder.render().splitlines()
        assert lines[2] == "    Clients : 3"
        assert lines[3] == "    Failed  : 0"

    def test_empty_section_uses_placeholder(self):
        builder = LogBlockBuilder("Summary", pad_top=False)
        builder.add_section("Results", [])

        assert builder.render().splitlines()[-2:] == ["Results:", "    (none)"]


def test_render_broadcast_summary_lists_each_client() -> None:
    summary = BroadcastSummary(
        group_name="alerts",
        total_clients=3,
        results={
            "ops-discord": BroadcastResult(success=True, platform="discord"),
            "pager": BroadcastResult(success=True, platform="webhook", note="Embed not supported; sent as plain text."),
            "ops-slack": BroadcastResult(success=False, platform="slack", error="timeout"),
        },
    )

    block = render_broadcast_summary(summary, pad_top=False)
    lines = block.splitlines()

    assert lines[0] == "Broadcast Summary: alerts"
    assert "    Clients  : 3" in lines
    assert "    Delivered: 2" in lines
    assert "    Failed   : 1" in lines
    assert "    - ops-discord [discord] ok" in lines
    assert "    - pager [webhook] ok (Embed not supported; sent as plain text.)" in lines
    assert "    - ops-slack [slack] failed: timeout" in lines


def test_render_connection_results() -> None:
    block = render_connection_results(
        "alerts",
        {
            "a": ConnectionTestResult(platform="discord", connected=True),
            "b": ConnectionTestResult(platform="slack", connected=False, error="dns"),
        },
        pad_top=False,
    )

    assert block.startswith("Connection Test: alerts")
    assert "connected" in block
    assert "unreachable (dns)" in block


def test_render_connection_results_for_empty_group() -> None:
    block = render_connection_results("empty", {}, pad_top=False)
    assert block.splitlines()[-1] == "    (none)"


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in list(root.handlers):
        if isinstance(handler, (RichHandler, logging.FileHandler)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_configure_logging_installs_rich_and_file_handlers(tmp_path, restore_root_logger) -> None:
    log_file = tmp_path / "logs" / "notifly.log"
    console = Console(file=io.StringIO())

    configure_logging("debug", log_file=log_file, console=console)
    logging.getLogger("notifly.test").debug("hello file")

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert any(isinstance(handler, RichHandler) for handler in root.handlers)
    assert any(isinstance(handler, logging.FileHandler) for handler in root.handlers)
    assert logging.getLogger("urllib3").level == logging.WARNING
    for handler in root.handlers:
        handler.flush()
    assert "hello file" in log_file.read_text(encoding="utf-8")


def test_configure_logging_unknown_level_falls_back_to_info(restore_root_logger) -> None:
    configure_logging("chatty", console=Console(file=io.StringIO()))

    assert restore_root_logger.level == logging.INFO
