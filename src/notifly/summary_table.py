from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:  # pragma: no cover
    from .types import BroadcastSummary, ClientInfo, ConnectionTestResult


# Color constants for status indicators
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
DIM_COLOR = "dim"

# Symbol indicators for quick scanning
SUCCESS_SYMBOL = "✓"
WARNING_SYMBOL = "⚠"
ERROR_SYMBOL = "✗"


class SummaryTableRenderer:
    """Renders broadcast outcomes as Rich Tables with color-coded status indicators."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @staticmethod
    def _status_cell(ok: bool, *, degraded: bool = False) -> str:
        """Return the colored symbol for one client's outcome.

        ``degraded`` marks a success that needed a fallback, such as an embed
        delivered as plain text.
        """
        if not ok:
            return f"[{ERROR_COLOR}]{ERROR_SYMBOL}[/{ERROR_COLOR}]"
        if degraded:
            return f"[{WARNING_COLOR}]{WARNING_SYMBOL}[/{WARNING_COLOR}]"
        return f"[{SUCCESS_COLOR}]{SUCCESS_SYMBOL}[/{SUCCESS_COLOR}]"

    def build_broadcast_table(self, summary: BroadcastSummary) -> Table:
        delivered = len(summary.succeeded)
        color = SUCCESS_COLOR if summary.all_succeeded else (ERROR_COLOR if delivered == 0 else WARNING_COLOR)
        table = Table(
            title=f"Broadcast: {escape(summary.group_name)}",
            caption=f"[{color}]{delivered}/{summary.total_clients} delivered[/{color}]",
            show_lines=False,
        )
        table.add_column("", width=2, no_wrap=True)
        table.add_column("Client", style="bold")
        table.add_column("Platform")
        table.add_column("Detail", overflow="fold")

        for alias, outcome in summary.results.items():
            if outcome.success:
                detail = escape(outcome.note or "")
            else:
                detail = f"[{ERROR_COLOR}]{escape(outcome.error or 'failed')}[/{ERROR_COLOR}]"
            table.add_row(
                self._status_cell(outcome.success, degraded=bool(outcome.note)),
                escape(alias),
                escape(outcome.platform),
                detail,
            )
        return table

    def build_connection_table(self, group_name: str, results: Mapping[str, ConnectionTestResult]) -> Table:
        table = Table(title=f"Connection test: {escape(group_name)}")
        table.add_column("", width=2, no_wrap=True)
        table.add_column("Client", style="bold")
        table.add_column("Platform")
        table.add_column("Status")

        for alias, outcome in results.items():
            if outcome.connected:
                status = f"[{SUCCESS_COLOR}]connected[/{SUCCESS_COLOR}]"
            elif outcome.error:
                status = f"[{ERROR_COLOR}]error: {escape(outcome.error)}[/{ERROR_COLOR}]"
            else:
                status = f"[{ERROR_COLOR}]unreachable[/{ERROR_COLOR}]"
            table.add_row(self._status_cell(outcome.connected), escape(alias), escape(outcome.platform), status)
        return table

    def build_clients_table(self, group_name: str, clients: Sequence[ClientInfo]) -> Table:
        table = Table(title=f"Group: {escape(group_name)}")
        table.add_column("#", justify="right", style=DIM_COLOR)
        table.add_column("Client", style="bold")
        table.add_column("Platform")
        for position, info in enumerate(clients, start=1):
            table.add_row(str(position), escape(info.alias), escape(info.platform))
        if not clients:
            table.add_row("", f"[{DIM_COLOR}](no clients)[/{DIM_COLOR}]", "")
        return table

    def render_broadcast(self, summary: BroadcastSummary) -> None:
        self.console.print(self.build_broadcast_table(summary))

    def render_connections(self, group_name: str, results: Mapping[str, ConnectionTestResult]) -> None:
        self.console.print(self.build_connection_table(group_name, results))

    def render_clients(self, group_name: str, clients: Sequence[ClientInfo]) -> None:
        self.console.print(self.build_clients_table(group_name, clients))
