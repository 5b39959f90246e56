from __future__ import annotations


class NotiflyError(Exception):
    """Base class for every error raised by notifly."""

    code: str = "NOTIFLY_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ConfigurationError(NotiflyError, ValueError):
    """Invalid client, group or file configuration. Raised before any network activity."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class MessageSendError(NotiflyError):
    """A platform rejected a message or could not be reached."""

    code = "MESSAGE_SEND_ERROR"

    def __init__(self, platform: str, original_error: BaseException | str | None) -> None:
        if isinstance(original_error, BaseException):
            detail = str(original_error) or original_error.__class__.__name__
        else:
            detail = original_error or "unknown error"
        super().__init__(f"Failed to send message via {platform}: {detail}")
        self.platform = platform
        self.original_error = original_error
