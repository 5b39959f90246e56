from __future__ import annotations

import logging
import smtplib
from collections.abc import Iterable, Mapping
from email.message import EmailMessage
from typing import Any

from ..constants import DEFAULT_EMAIL_SUBJECT, DEFAULT_SMTP_TIMEOUT
from ..errors import MessageSendError
from ..types import DeliveryReceipt, EmbedOptions
from ..validators import validate_required
from .base import PlatformClient
from .utils import _utc_now

LOGGER = logging.getLogger(__name__)


class EmailClient(PlatformClient):
    """SMTP client that delivers each message as a plain-text email."""

    platform = "email"

    def __init__(
        self,
        host: str | None,
        *,
        sender: str | None,
        recipients: str | Iterable[str] | None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: int = DEFAULT_SMTP_TIMEOUT,
        subject: str = DEFAULT_EMAIL_SUBJECT,
    ) -> None:
        self.host = host.strip() if isinstance(host, str) else None
        self.port = int(port)
        self.username = username
        self.password = password
        self.use_tls = bool(use_tls)
        self.timeout = int(timeout)
        self.sender = sender
        if isinstance(recipients, str):
            recipients = [recipients]
        self.recipients = [addr.strip() for addr in recipients or [] if addr and addr.strip()]
        self.subject = subject or DEFAULT_EMAIL_SUBJECT

        validate_required(
            {"host": self.host, "from": self.sender, "to": self.recipients},
            ("host", "from", "to"),
            "Email",
        )

    def send(self, message: str | Mapping[str, Any], options: Mapping[str, Any] | None = None) -> DeliveryReceipt:
        options = options or {}
        if isinstance(message, Mapping):
            subject = message.get("subject") or self.subject
            body = str(message.get("body") or message.get("text") or "")
        else:
            subject = self.subject
            body = str(message)
        subject = options.get("subject") or subject
        return self._deliver(str(subject), body)

    def send_embed(self, embed: EmbedOptions | Mapping[str, Any]) -> DeliveryReceipt:
        if not isinstance(embed, EmbedOptions):
            embed = EmbedOptions.from_mapping(embed)

        lines: list[str] = []
        if embed.description:
            lines.append(embed.description)
        if embed.fields:
            lines.append("")
            lines.extend(f"{item.name}: {item.value}" for item in embed.fields)
        if embed.url:
            lines.append("")
            lines.append(embed.url)
        if embed.footer:
            lines.append("")
            lines.append(f"-- {embed.footer.text}")
        return self._deliver(embed.title or self.subject, "\n".join(lines))

    def test_connection(self) -> bool:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                self._prepare(server)
                code, _ = server.noop()
        except (smtplib.SMTPException, OSError) as exc:
            LOGGER.debug("SMTP connection test against %s:%s failed: %s", self.host, self.port, exc)
            return False
        return code == 250

    def _deliver(self, subject: str, body: str) -> DeliveryReceipt:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = ", ".join(self.recipients)
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                self._prepare(server)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            LOGGER.warning("Failed to send email via %s:%s - %s", self.host, self.port, exc)
            raise MessageSendError("Email", exc) from exc

        return DeliveryReceipt(platform=self.platform, timestamp=_utc_now().isoformat())

    def _prepare(self, server: smtplib.SMTP) -> None:
        if self.use_tls:
            server.starttls()
        if self.username and self.password:
            server.login(self.username, self.password)

    def __repr__(self) -> str:
        return f"EmailClient(host={self.host!r}, recipients={len(self.recipients)})"
