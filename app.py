#!/usr/bin/env python3
"""Flask front end and command line entry for Link Shield."""

from __future__ import annotations

import argparse
import csv
import datetime
import io
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from flask import (
    Flask,
    current_app,
    jsonify,
    redirect,
    render_template,
    request,
    send_file,
    url_for,
)

from constants import SERVER_PORT, STORE_FILE
from controller import ScanBackend, ScanController
from history import HistoryLedger
from models import HistoryEntry
from preferences import PreferenceStore
from scanner import ScanClient
from storage import JsonFileStore, KeyValueStore

__all__ = ["build_controller", "create_app", "to_csv_bytes", "main"]

logger = logging.getLogger(__name__)


def build_controller(
    store: Optional[KeyValueStore] = None,
    backend: Optional[ScanBackend] = None,
) -> ScanController:
    """Wire storage, ledger, preference and scan client into a controller."""
    kv = store if store is not None else JsonFileStore(STORE_FILE)
    history = HistoryLedger(kv)
    history.load()
    preferences = PreferenceStore(kv)
    preferences.load()
    return ScanController(backend or ScanClient(), history, preferences)


def to_csv_bytes(rows: Iterable[HistoryEntry]) -> bytes:
    """Serialize history entries into CSV and return the encoded bytes."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=["url", "status", "time"])
    writer.writeheader()
    for r in rows:
        writer.writerow(dict(r))
    return output.getvalue().encode("utf-8")


def _controller() -> ScanController:
    return current_app.extensions["link_shield"]


def _requested_url() -> str:
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    value = payload.get("url", request.form.get("url", ""))
    return value if isinstance(value, str) else ""


def index():
    controller = _controller()
    controller.start(request.args.get("url"))
    snapshot = controller.snapshot()
    return render_template(
        "index.html",
        snap=snapshot,
        root_class=controller.root_class(),
    )


def scan_form():
    _controller().submit(_requested_url())
    return redirect(url_for("index"))


def toggle_theme_form():
    _controller().toggle_theme()
    return redirect(url_for("index"))


def api_state():
    return jsonify(_controller().snapshot())


def api_scan():
    controller = _controller()
    controller.submit(_requested_url())
    return jsonify(controller.snapshot())


def api_input():
    controller = _controller()
    controller.set_input(_requested_url())
    return jsonify(controller.snapshot())


def api_toggle_theme():
    return jsonify({"theme": _controller().toggle_theme()})


def download_csv():
    csv_bytes = to_csv_bytes(_controller().snapshot()["history"])
    ts = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%d_%H%M%S")
    mem = io.BytesIO(csv_bytes)
    mem.seek(0)
    return send_file(
        mem,
        mimetype="text/csv; charset=utf-8",
        as_attachment=True,
        download_name=f"scan_history_{ts}.csv",
    )


def create_app(controller: Optional[ScanController] = None) -> Flask:
    """Application factory; ``flask --app app run`` picks this up."""
    app = Flask(__name__)
    app.extensions["link_shield"] = controller or build_controller()
    app.add_url_rule("/", "index", index)
    app.add_url_rule("/scan", "scan_form", scan_form, methods=["POST"])
    app.add_url_rule("/theme", "toggle_theme_form", toggle_theme_form, methods=["POST"])
    app.add_url_rule("/api/state", "api_state", api_state)
    app.add_url_rule("/api/scan", "api_scan", api_scan, methods=["POST"])
    app.add_url_rule("/api/input", "api_input", api_input, methods=["POST"])
    app.add_url_rule("/api/theme/toggle", "api_toggle_theme", api_toggle_theme, methods=["POST"])
    app.add_url_rule("/download_csv", "download_csv", download_csv)
    return app


# ---------- CLI entry ----------
def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Check a link against the Link Shield scan service.")
    p.add_argument("--url", "-u", help="Scan this URL once and print the verdict.")
    p.add_argument("--history", action="store_true", help="Print the recent scans.")
    p.add_argument("--toggle-theme", action="store_true", help="Switch between light and dark.")
    p.add_argument("--store", type=Path, default=STORE_FILE, help="Path of the JSON store file.")
    p.add_argument("--port", type=int, default=SERVER_PORT, help="Port for the web server.")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return p.parse_args(argv)


def _print_history(entries: List[HistoryEntry]) -> None:
    if not entries:
        print("No recent scans.")
        return
    for h in entries:
        print(f"{h['time']}  [{h['status']}]  {h['url']}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)s  [%(name)s]  %(message)s",
        datefmt="%H:%M:%S",
    )
    controller = build_controller(JsonFileStore(args.store))

    if args.toggle_theme:
        print(f"[OK] Theme is now {controller.toggle_theme()}")
        return 0

    if args.url is not None:
        controller.start(args.url)
        snap = controller.snapshot()
        if snap["state"] == "failed":
            print(f"[FAIL] {snap['error']}")
            return 1
        if snap["outcome"] is None:
            print("Nothing to scan.")
            return 0
        outcome = snap["outcome"]
        print(f"Status:     {outcome['status']}")
        print(f"Message:    {outcome['message']}")
        print(f"Checked By: {outcome['checked_by']}")
        print(f"Checked At: {outcome['checked_at_display']}")
        print(f"Risk:       {outcome['risk']['risk_percent']}% ({outcome['risk']['color']})")
        return 0

    if args.history:
        _print_history(controller.snapshot()["history"])
        return 0

    logger.info("Serving Link Shield on port %d", args.port)
    create_app(controller).run(host="0.0.0.0", port=args.port, debug=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
