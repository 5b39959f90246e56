"""Version detection with support for CI builds."""

from __future__ import annotations

import os
from importlib import metadata

# Fallback version if nothing else works
_FALLBACK_VERSION = "unknown"

_DISTRIBUTION_NAME = "notifly"


def _get_installed_version() -> str | None:
    """Return the version recorded in the installed distribution metadata, if any."""
    try:
        return metadata.version(_DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return None


def get_version() -> str:
    """Get the current version string.

    Priority:
    1. BUILD_VERSION environment variable (set during CI/CD)
    2. Installed package metadata
    3. Fallback to "unknown"
    """
    build_version = os.environ.get("BUILD_VERSION")
    if build_version and build_version.strip():
        return build_version.strip()

    return _get_installed_version() or _FALLBACK_VERSION


# Cache the version on module load
__version__ = get_version()
