"""Data structures used across the application."""

from __future__ import annotations

from typing import List, Literal, Optional, TypedDict, Union

Preference = Literal["light", "dark"]
ColorToken = Literal["none", "safe", "warning", "danger"]
ControllerState = Literal["idle", "scanning", "completed", "failed"]
Timestamp = Union[str, int, float]


class ScanVerdict(TypedDict):
    """Raw verdict returned by the remote scanning service."""

    status: str
    message: str
    checkedAt: Timestamp


class RiskDescriptor(TypedDict):
    """Normalized risk level derived from a verdict status."""

    risk_percent: int
    color: ColorToken


class ChartSplit(TypedDict):
    risk_share: int
    safe_share: int


class ScanOutcome(TypedDict):
    """Verdict enriched for display once a scan completes."""

    url: str
    status: str
    message: str
    checked_at: Timestamp
    checked_at_display: str
    checked_by: str
    risk: RiskDescriptor
    chart: ChartSplit


class HistoryEntry(TypedDict):
    """One line of the recent scans list."""

    url: str
    status: str
    time: str


class ControllerSnapshot(TypedDict):
    """Everything the presentation layer may observe."""

    input: str
    state: ControllerState
    loading: bool
    outcome: Optional[ScanOutcome]
    error: Optional[str]
    history: List[HistoryEntry]
    risk: RiskDescriptor
    chart: ChartSplit
    bar_width: str
    theme: Preference


__all__ = [
    "Preference",
    "ColorToken",
    "ControllerState",
    "Timestamp",
    "ScanVerdict",
    "RiskDescriptor",
    "ChartSplit",
    "ScanOutcome",
    "HistoryEntry",
    "ControllerSnapshot",
]
