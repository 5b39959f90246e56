from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from .constants import (
    EMBED_FALLBACK_NOTE,
    ERROR_COLOR,
    ERROR_EMOJI,
    INFO_COLOR,
    INFO_EMOJI,
    PROBE_MESSAGE,
    SUCCESS_COLOR,
    SUCCESS_EMOJI,
    WARNING_COLOR,
    WARNING_EMOJI,
)
from .errors import ConfigurationError
from .logging_utils import render_broadcast_summary
from .types import BroadcastResult, BroadcastSummary, ClientInfo, ConnectionTestResult, EmbedOptions

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _ClientEntry:
    """A registered client with its capabilities resolved once at registration."""

    client: Any
    alias: str
    platform: str
    send: Callable[..., Any]
    send_embed: Optional[Callable[[EmbedOptions], Any]] = None
    test_connection: Optional[Callable[[], Any]] = None


def _optional_method(client: Any, name: str) -> Optional[Callable[..., Any]]:
    method = getattr(client, name, None)
    return method if callable(method) else None


def _platform_label(client: Any) -> str:
    """Prefer the client's declared ``platform``; fall back to its type name minus ``Client``."""
    declared = getattr(client, "platform", None)
    if isinstance(declared, str) and declared.strip():
        return declared.strip().lower()
    type_name = type(client).__name__
    if type_name.endswith("Client") and len(type_name) > len("Client"):
        type_name = type_name[: -len("Client")]
    return type_name.lower()


def _error_text(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class BroadcastGroup:
    """Fans one notification out to many platform clients at once.

    Every operation starts one task per registered client and waits for all of
    them to settle. A failing client is recorded in the returned report and
    never affects the others, so the aggregate call only raises for
    registration mistakes.

    Example::

        group = BroadcastGroup("alerts", [discord_client, slack_client])
        summary = group.broadcast("Server online")
        summary.failed  # aliases whose send raised
    """

    def __init__(
        self,
        name: str,
        clients: Iterable[Any] | Mapping[str, Any] | None = None,
        *,
        max_workers: int | None = None,
    ) -> None:
        self._name = name
        self._entries: list[_ClientEntry] = []
        self._max_workers = max_workers
        if isinstance(clients, Mapping):
            for alias, client in clients.items():
                self.add_client(client, alias)
        else:
            for client in clients or []:
                self.add_client(client)

    @property
    def name(self) -> str:
        return self._name

    # Registration

    def add_client(self, client: Any, alias: str | None = None) -> BroadcastGroup:
        """Register a client. Returns the group so calls can be chained.

        Raises:
            ConfigurationError: if ``client`` has no callable ``send`` or ``alias`` is taken.
        """
        send = _optional_method(client, "send") if client is not None else None
        if send is None:
            raise ConfigurationError("Invalid client: must implement send()")

        taken = {entry.alias for entry in self._entries}
        if alias:
            if alias in taken:
                raise ConfigurationError(f"Alias '{alias}' is already registered in group '{self._name}'")
        else:
            index = len(self._entries) + 1
            while f"client_{index}" in taken:
                index += 1
            alias = f"client_{index}"

        entry = _ClientEntry(
            client=client,
            alias=alias,
            platform=_platform_label(client),
            send=send,
            send_embed=_optional_method(client, "send_embed"),
            test_connection=_optional_method(client, "test_connection"),
        )
        self._entries.append(entry)
        LOGGER.debug(
            "Registered %s client as '%s' in group '%s' (embed=%s, probe=%s)",
            entry.platform,
            alias,
            self._name,
            entry.send_embed is not None,
            entry.test_connection is not None,
        )
        return self

    def remove_client(self, alias: str) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.alias == alias:
                del self._entries[index]
                LOGGER.debug("Removed '%s' from group '%s'", alias, self._name)
                return True
        return False

    # Dispatch

    def broadcast(self, message: str | Mapping[str, Any], options: Mapping[str, Any] | None = None) -> BroadcastSummary:
        """Send ``message`` through every client's ``send``."""

        def deliver(entry: _ClientEntry) -> BroadcastResult:
            try:
                if options is None:
                    result = entry.send(message)
                else:
                    result = entry.send(message, options)
            except Exception as exc:
                return self._failure(entry, exc)
            return BroadcastResult(success=True, platform=entry.platform, result=result)

        return self._summarize("broadcast", *self._dispatch(deliver))

    def broadcast_embed(self, embed: EmbedOptions | Mapping[str, Any]) -> BroadcastSummary:
        """Send a rich message; clients without ``send_embed`` get ``**title**\\ndescription``."""
        if not isinstance(embed, EmbedOptions):
            embed = EmbedOptions.from_mapping(embed)

        def deliver(entry: _ClientEntry) -> BroadcastResult:
            try:
                if entry.send_embed is not None:
                    result = entry.send_embed(embed)
                    return BroadcastResult(success=True, platform=entry.platform, result=result)
                result = entry.send(embed.plain_text())
            except Exception as exc:
                return self._failure(entry, exc)
            return BroadcastResult(success=True, platform=entry.platform, result=result, note=EMBED_FALLBACK_NOTE)

        return self._summarize("broadcast_embed", *self._dispatch(deliver))

    def broadcast_success(self, title: str, description: str) -> BroadcastSummary:
        return self.broadcast_embed(
            EmbedOptions(title=f"{SUCCESS_EMOJI} {title}", description=description, color=SUCCESS_COLOR)
        )

    def broadcast_error(self, title: str, description: str) -> BroadcastSummary:
        return self.broadcast_embed(
            EmbedOptions(title=f"{ERROR_EMOJI} {title}", description=description, color=ERROR_COLOR)
        )

    def broadcast_warning(self, title: str, description: str) -> BroadcastSummary:
        return self.broadcast_embed(
            EmbedOptions(title=f"{WARNING_EMOJI} {title}", description=description, color=WARNING_COLOR)
        )

    def broadcast_info(self, title: str, description: str) -> BroadcastSummary:
        return self.broadcast_embed(
            EmbedOptions(title=f"{INFO_EMOJI} {title}", description=description, color=INFO_COLOR)
        )

    def test_connections(self) -> dict[str, ConnectionTestResult]:
        """Probe every client, via ``test_connection`` when available or a ``send("Test")`` otherwise."""

        def probe(entry: _ClientEntry) -> ConnectionTestResult:
            try:
                if entry.test_connection is not None:
                    connected = bool(entry.test_connection())
                else:
                    connected = self._probe_with_send(entry)
            except Exception as exc:
                LOGGER.warning("Connection probe for '%s' (%s) failed: %s", entry.alias, entry.platform, exc)
                return ConnectionTestResult(platform=entry.platform, connected=False, error=_error_text(exc))
            return ConnectionTestResult(platform=entry.platform, connected=connected)

        _, results = self._dispatch(probe)
        LOGGER.info(
            "Group '%s' connection test: %d/%d connected",
            self._name,
            sum(1 for outcome in results.values() if outcome.connected),
            len(results),
        )
        return results

    # Introspection

    def list_clients(self) -> list[ClientInfo]:
        return [ClientInfo(alias=entry.alias, platform=entry.platform) for entry in self._entries]

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, alias: object) -> bool:
        return any(entry.alias == alias for entry in self._entries)

    def __repr__(self) -> str:
        return f"BroadcastGroup(name={self._name!r}, clients={len(self._entries)})"

    # Internals

    def _dispatch(self, task: Callable[[_ClientEntry], T]) -> tuple[int, dict[str, T]]:
        """Run ``task`` for every entry concurrently and wait for all of them to settle.

        Returns the number of clients dispatched to and the outcomes keyed by
        alias, in registration order.
        """
        entries = list(self._entries)
        if not entries:
            return 0, {}

        workers = len(entries)
        if self._max_workers:
            workers = max(1, min(self._max_workers, workers))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notifly-broadcast") as executor:
            futures = {entry.alias: executor.submit(task, entry) for entry in entries}
            wait(futures.values(), return_when=ALL_COMPLETED)

        return len(entries), {alias: future.result() for alias, future in futures.items()}

    def _summarize(self, operation: str, total: int, results: dict[str, BroadcastResult]) -> BroadcastSummary:
        summary = BroadcastSummary(group_name=self._name, total_clients=total, results=results)
        LOGGER.info(
            "Group '%s' %s: %d/%d delivered",
            self._name,
            operation,
            len(summary.succeeded),
            total,
        )
        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug(render_broadcast_summary(summary))
        return summary

    def _failure(self, entry: _ClientEntry, exc: Exception) -> BroadcastResult:
        LOGGER.warning("Client '%s' (%s) in group '%s' failed: %s", entry.alias, entry.platform, self._name, exc)
        return BroadcastResult(success=False, platform=entry.platform, error=_error_text(exc))

    @staticmethod
    def _probe_with_send(entry: _ClientEntry) -> bool:
        try:
            entry.send(PROBE_MESSAGE)
        except Exception as exc:
            LOGGER.debug("Probe send for '%s' failed: %s", entry.alias, exc)
            return False
        return True
