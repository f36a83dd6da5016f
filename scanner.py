"""HTTP client for the remote link scanning service."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from constants import DEFAULT_TIMEOUT, SCAN_API_URL, USER_AGENT
from models import ScanVerdict

__all__ = ["ScanFailure", "build_session", "parse_verdict", "ScanClient"]

logger = logging.getLogger(__name__)


class ScanFailure(Exception):
    """The remote scan could not produce a usable verdict."""


def build_session() -> requests.Session:
    """Create a configured `requests.Session` for talking to the scan API.

    Only connection failures are retried: the request never reached the
    service, so re-sending the POST cannot duplicate a scan.
    """
    session = requests.Session()
    retry = Retry(
        total=2,
        connect=2,
        read=0,
        status=0,
        backoff_factor=0.6,
        allowed_methods=frozenset(["POST"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    })
    return session


def parse_verdict(payload: Any) -> ScanVerdict:
    """Validate a decoded response body and return it as a verdict."""
    if not isinstance(payload, dict):
        raise ScanFailure("response body is not a JSON object")
    status = payload.get("status")
    if not isinstance(status, str):
        raise ScanFailure("response has no status")
    message = payload.get("message")
    checked_at = payload.get("checkedAt")
    if isinstance(checked_at, bool) or not isinstance(checked_at, (str, int, float)):
        checked_at = ""
    return {
        "status": status,
        "message": message if isinstance(message, str) else "",
        "checkedAt": checked_at,
    }


class ScanClient:
    """Submits one URL per call to the scan endpoint."""

    def __init__(
        self,
        api_url: str = SCAN_API_URL,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or build_session()

    def scan(self, url: str) -> ScanVerdict:
        """POST ``url`` to the service and return its verdict.

        Every transport error, non-2xx status or unusable body is raised as
        :class:`ScanFailure`.
        """
        try:
            resp = self.session.post(self.api_url, json={"url": url}, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise ScanFailure(f"request to scan service failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise ScanFailure(f"scan service answered HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ScanFailure("scan service returned invalid JSON") from exc
        return parse_verdict(payload)

    def close(self) -> None:
        self.session.close()
