"""Shared configuration constants for the application."""

from __future__ import annotations

import os
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    """Read an integer from the environment, falling back on bad values."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


SCAN_API_URL = os.getenv(
    "LINK_SHIELD_API_URL",
    "https://public-link-shield-api.onrender.com/api/scan",
)
DEFAULT_TIMEOUT = _env_int("LINK_SHIELD_TIMEOUT", 30)
STORE_FILE = Path(os.getenv("LINK_SHIELD_STORE", "data/link_shield.json"))
SERVER_PORT = _env_int("LINK_SHIELD_PORT", 8080)

USER_AGENT = "LinkShield/1.0 (+https://public-link-shield-api.onrender.com)"

HISTORY_KEY = "scanHistory"
THEME_KEY = "theme"
HISTORY_LIMIT = 5

CHECKED_BY = "Nasrev"
SCAN_FAILED_MESSAGE = "Scan failed. Please try again."

_EXPORTED_NAMES = (
    "SCAN_API_URL",
    "DEFAULT_TIMEOUT",
    "STORE_FILE",
    "SERVER_PORT",
    "USER_AGENT",
    "HISTORY_KEY",
    "THEME_KEY",
    "HISTORY_LIMIT",
    "CHECKED_BY",
    "SCAN_FAILED_MESSAGE",
)

__all__ = [name for name in _EXPORTED_NAMES if name in globals()]
