"""
Replay runner and read-only telemetry server for GNSS Sentinel.

Replays a recorded measurement log through the detection pipeline, persists
the resulting anomaly history, and optionally serves the final telemetry
snapshot over HTTP.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from backend.export import event_to_geojson, events_to_geojson
from backend.lifecycle import AnomalyLifecycleController, DetectionSnapshot
from backend.notifications import LoggingNotifier
from backend.storage import JsonFileAnomalyStorage
from gnss_sentinel.core.config import config
from gnss_sentinel.core.exceptions import MeasurementIngestionError
from gnss_sentinel.core.logging_config import setup_logging
from gnss_sentinel.data import ingest_measurement_log

load_dotenv()

logger = logging.getLogger("backend")


def replay_log(path: Path, controller: AnomalyLifecycleController) -> int:
    """
    Feed every batch of a recorded log through the controller.

    Returns:
        Number of batches replayed
    """
    if not controller.start():
        return 0

    batches = 0
    for batch in ingest_measurement_log(path):
        controller.on_measurements(batch.measurements, batch.location, batch.timestamp)
        batches += 1

    controller.stop()
    return batches


def _snapshot_payload(snapshot: DetectionSnapshot) -> Dict[str, object]:
    return json.loads(snapshot.model_dump_json(exclude={"history"}))


class TelemetryServer(ThreadingHTTPServer):
    """HTTP server bound to one frozen snapshot."""

    def __init__(self, address, snapshot: DetectionSnapshot) -> None:
        super().__init__(address, TelemetryHandler)
        self.snapshot = snapshot


class TelemetryHandler(BaseHTTPRequestHandler):
    server_version = "GnssSentinel/0.1"

    def _send_json(self, status: int, payload: object) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:
        snapshot: DetectionSnapshot = self.server.snapshot

        if self.path == "/health":
            self._send_json(200, {"status": "ok"})
            return

        if self.path == "/status":
            self._send_json(200, _snapshot_payload(snapshot))
            return

        if self.path == "/anomalies":
            events = [json.loads(e.model_dump_json()) for e in snapshot.history]
            self._send_json(200, {"anomalies": events, "total_count": len(events)})
            return

        if self.path == "/anomalies/geojson":
            self._send_json(200, events_to_geojson(snapshot.history))
            return

        if self.path.startswith("/anomalies/") and self.path.endswith("/geojson"):
            parts = self.path.strip("/").split("/")
            if len(parts) != 3:
                self._send_json(400, {"detail": "Invalid anomaly path"})
                return
            event = next((e for e in snapshot.history if e.id == parts[1]), None)
            if event is None:
                self._send_json(404, {"detail": "Anomaly not found"})
                return
            self._send_json(200, event_to_geojson(event))
            return

        self._send_json(404, {"detail": "Not found"})

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def run(
    log_path: Path,
    history_path: Path,
    serve: bool,
    host: str,
    port: int,
) -> Optional[DetectionSnapshot]:
    controller = AnomalyLifecycleController(
        storage=JsonFileAnomalyStorage(history_path),
        notifier=LoggingNotifier(),
    )

    try:
        batches = replay_log(log_path, controller)
    except MeasurementIngestionError as exc:
        logger.error("Replay failed: %s", exc)
        return None

    snapshot = controller.snapshot()
    logger.info(
        "Replayed %d batches from %s; %d anomaly events in history (%s)",
        batches,
        log_path,
        len(snapshot.history),
        history_path,
    )

    if serve:
        logger.info("Serving telemetry on %s:%s", host, port)
        server = TelemetryServer((host, port), snapshot)
        server.serve_forever()

    return snapshot


def main() -> None:
    parser = argparse.ArgumentParser(description="GNSS Sentinel measurement log replay")
    parser.add_argument("log", type=Path, help="Recorded CSV measurement log")
    parser.add_argument(
        "--history",
        type=Path,
        default=Path(os.getenv("GNSS_HISTORY_PATH", str(config.storage.history_path))),
        help="JSON file holding anomaly history",
    )
    parser.add_argument("--serve", action="store_true", help="Serve telemetry after replay")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    setup_logging("gnss_sentinel")
    setup_logging("backend")

    run(args.log, args.history, args.serve, args.host, args.port)


if __name__ == "__main__":
    main()
