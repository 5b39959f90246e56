from __future__ import annotations

import re

AVAILABLE_PLATFORMS = ("discord", "slack", "webhook", "email")

WEBHOOK_PATTERNS: dict[str, re.Pattern[str]] = {
    "discord": re.compile(r"^https://(?:discord|discordapp)\.com/api/webhooks/\d+/.+$"),
    "slack": re.compile(r"^https://hooks\.slack\.com/services/.+$"),
}

DEFAULT_USERNAME = "Notifly Bot"
DEFAULT_TIMEOUT = 5.0
DEFAULT_SMTP_TIMEOUT = 10
DEFAULT_EMAIL_SUBJECT = "Notifly notification"
CONNECTION_TEST_MESSAGE = "Notifly connection test successful! 🚀"

# Severity presets shared by the group shortcuts and the per-platform helpers
SUCCESS_COLOR = 0x00FF00
ERROR_COLOR = 0xFF0000
WARNING_COLOR = 0xFFFF00
INFO_COLOR = 0x3498DB

SUCCESS_EMOJI = "✅"
ERROR_EMOJI = "❌"
WARNING_EMOJI = "⚠️"
INFO_EMOJI = "ℹ️"

EMBED_FALLBACK_NOTE = "Embed not supported; sent as plain text."
PROBE_MESSAGE = "Test"

# Discord webhook payload limits
DISCORD_CONTENT_LIMIT = 2000
DISCORD_TITLE_LIMIT = 256
DISCORD_DESCRIPTION_LIMIT = 4096
DISCORD_FIELD_NAME_LIMIT = 256
DISCORD_FIELD_VALUE_LIMIT = 1024
DISCORD_FOOTER_LIMIT = 2048
DISCORD_MAX_FIELDS = 25

# Slack attachment colors
SLACK_DEFAULT_COLOR = "#3498db"
SLACK_SEVERITY_COLORS = {
    "success": "good",
    "error": "danger",
    "warning": "warning",
    "info": SLACK_DEFAULT_COLOR,
}
SLACK_DEFAULT_ICON = ":robot_face:"
