"""Persisted light/dark display preference."""

from __future__ import annotations

import logging
from typing import Optional

from constants import THEME_KEY
from models import Preference
from storage import KeyValueStore

__all__ = ["DEFAULT_THEME", "PreferenceStore"]

logger = logging.getLogger(__name__)

DEFAULT_THEME: Preference = "light"


class PreferenceStore:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._current: Preference = DEFAULT_THEME

    @property
    def current(self) -> Preference:
        return self._current

    def load(self) -> Preference:
        """Read the stored theme, defaulting to light when absent or unknown."""
        raw = self._store.get(THEME_KEY)
        value = raw.strip().lower() if isinstance(raw, str) else None
        if value == "dark":
            self._current = "dark"
        else:
            if value not in (None, "light"):
                logger.warning("Unknown stored theme %r, using %s", raw, DEFAULT_THEME)
            self._current = DEFAULT_THEME
        return self._current

    def toggle(self, current: Optional[Preference] = None) -> Preference:
        """Flip the theme and persist it with a single write."""
        base = self._current if current is None else current
        flipped: Preference = "light" if base == "dark" else "dark"
        self._store.set(THEME_KEY, flipped)
        self._current = flipped
        logger.info("Theme switched to %s", flipped)
        return flipped

    def root_class(self) -> str:
        """CSS class for the document root."""
        return "dark" if self._current == "dark" else ""
