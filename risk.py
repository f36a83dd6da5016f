"""Map scan verdict statuses to display risk levels."""

from __future__ import annotations

from typing import Dict, Optional

from models import ChartSplit, RiskDescriptor

__all__ = ["classify", "chart_split", "bar_width"]

_NO_RISK: RiskDescriptor = {"risk_percent": 0, "color": "none"}

_STATUS_RISK: Dict[str, RiskDescriptor] = {
    "safe": {"risk_percent": 0, "color": "safe"},
    "warning": {"risk_percent": 50, "color": "warning"},
    "malicious": {"risk_percent": 100, "color": "danger"},
    "danger": {"risk_percent": 100, "color": "danger"},
    "phishing": {"risk_percent": 100, "color": "danger"},
}


def classify(status: Optional[str]) -> RiskDescriptor:
    """Return the risk descriptor for a verdict status.

    Matching is case-insensitive. Unknown, empty or missing statuses map to
    the neutral ``none`` descriptor rather than raising.
    """
    if not isinstance(status, str):
        return dict(_NO_RISK)  # type: ignore[return-value]
    descriptor = _STATUS_RISK.get(status.lower(), _NO_RISK)
    return dict(descriptor)  # type: ignore[return-value]


def chart_split(status: Optional[str]) -> ChartSplit:
    """Split 100 between risky and safe shares for the verdict chart."""
    risk_share = classify(status)["risk_percent"]
    return {"risk_share": risk_share, "safe_share": 100 - risk_share}


def bar_width(descriptor: RiskDescriptor) -> str:
    """CSS width of the risk bar."""
    return f"{descriptor['risk_percent']}%"
