"""Scan lifecycle: idle, scanning, completed or failed."""

from __future__ import annotations

import copy
import datetime
import logging
import threading
from typing import Callable, Optional, Protocol

from constants import CHECKED_BY, SCAN_FAILED_MESSAGE
from history import HistoryLedger, format_timestamp, make_entry
from models import (
    ControllerSnapshot,
    ControllerState,
    Preference,
    ScanOutcome,
    ScanVerdict,
    Timestamp,
)
from preferences import PreferenceStore
from risk import bar_width, chart_split, classify

__all__ = ["ScanBackend", "ScanController", "build_outcome", "format_checked_at"]

logger = logging.getLogger(__name__)


class ScanBackend(Protocol):
    def scan(self, url: str) -> ScanVerdict: ...


def format_checked_at(raw: Timestamp) -> str:
    """Render the service's timestamp in local time.

    Numbers are epoch milliseconds, strings ISO 8601. Unknown formats pass
    through unchanged.
    """
    if isinstance(raw, bool):
        return ""
    if isinstance(raw, (int, float)):
        try:
            moment = datetime.datetime.fromtimestamp(raw / 1000, tz=datetime.timezone.utc)
        except (OverflowError, OSError, ValueError):
            return str(raw)
        return format_timestamp(moment.astimezone())
    if not raw:
        return ""
    try:
        parsed = datetime.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return format_timestamp(parsed)


def build_outcome(url: str, verdict: ScanVerdict) -> ScanOutcome:
    """Enrich a verdict with checker identity and its risk level."""
    return {
        "url": url,
        "status": verdict["status"],
        "message": verdict["message"],
        "checked_at": verdict["checkedAt"],
        "checked_at_display": format_checked_at(verdict["checkedAt"]),
        "checked_by": CHECKED_BY,
        "risk": classify(verdict["status"]),
        "chart": chart_split(verdict["status"]),
    }


class ScanController:
    """Drives one scan at a time and records completed scans.

    Every submission gets a new token. A response is applied only when its
    token is still the latest one, so a slow earlier scan can never
    overwrite a newer result. The network call runs outside the lock.
    """

    def __init__(
        self,
        backend: ScanBackend,
        history: HistoryLedger,
        preferences: PreferenceStore,
        *,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> None:
        self._backend = backend
        self._history = history
        self._preferences = preferences
        self._clock = clock
        self._lock = threading.Lock()
        self._input = ""
        self._state: ControllerState = "idle"
        self._outcome: Optional[ScanOutcome] = None
        self._error: Optional[str] = None
        self._token = 0
        self._pending_url = ""
        self._started = False

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state == "scanning"

    @property
    def outcome(self) -> Optional[ScanOutcome]:
        return copy.deepcopy(self._outcome)

    @property
    def error(self) -> Optional[str]:
        return self._error

    def set_input(self, text: str) -> None:
        with self._lock:
            self._input = text

    def begin(self, url: str) -> Optional[int]:
        """Enter ``scanning`` for ``url`` and return its token; blank input is ignored."""
        target = (url or "").strip()
        if not target:
            return None
        with self._lock:
            self._token += 1
            self._input = target
            self._pending_url = target
            self._outcome = None
            self._error = None
            self._state = "scanning"
            token = self._token
        logger.info("Scan %d submitted for %s", token, target)
        return token

    def resolve(self, token: int, verdict: ScanVerdict) -> bool:
        """Apply a verdict for ``token``; returns False when it is stale."""
        with self._lock:
            if token != self._token or self._state != "scanning":
                logger.debug("Discarding stale verdict for scan %d", token)
                return False
            url = self._pending_url
            outcome = build_outcome(url, verdict)
            self._outcome = outcome
            self._state = "completed"
            self._history.record(make_entry(url, verdict["status"], self._clock()))
        logger.info(
            "Scan %d completed: %s (risk %d%%)",
            token,
            verdict["status"],
            outcome["risk"]["risk_percent"],
        )
        return True

    def reject(self, token: int, exc: BaseException) -> bool:
        """Collapse any failure for ``token`` into the generic error state."""
        with self._lock:
            if token != self._token or self._state != "scanning":
                logger.debug("Discarding stale failure for scan %d: %s", token, exc)
                return False
            self._outcome = None
            self._error = SCAN_FAILED_MESSAGE
            self._state = "failed"
        logger.warning("Scan %d failed: %s", token, exc)
        return True

    def submit(self, url: str) -> Optional[int]:
        """Run a full scan cycle for ``url`` and return its token."""
        token = self.begin(url)
        if token is None:
            return None
        target = (url or "").strip()
        try:
            verdict = self._backend.scan(target)
        except Exception as exc:  # pylint: disable=broad-except
            self.reject(token, exc)
        else:
            self.resolve(token, verdict)
        return token

    def start(self, initial_url: Optional[str]) -> Optional[int]:
        """Auto-scan a deep-linked URL; only the first call can trigger it."""
        with self._lock:
            if self._started:
                return None
            self._started = True
        if not initial_url or not initial_url.strip():
            return None
        logger.info("Deep link requested a scan of %s", initial_url.strip())
        return self.submit(initial_url)

    def toggle_theme(self) -> Preference:
        return self._preferences.toggle()

    def root_class(self) -> str:
        return self._preferences.root_class()

    def snapshot(self) -> ControllerSnapshot:
        with self._lock:
            status = self._outcome["status"] if self._outcome else None
            risk = classify(status)
            return {
                "input": self._input,
                "state": self._state,
                "loading": self._state == "scanning",
                "outcome": copy.deepcopy(self._outcome),
                "error": self._error,
                "history": self._history.entries,
                "risk": risk,
                "chart": chart_split(status),
                "bar_width": bar_width(risk),
                "theme": self._preferences.current,
            }
