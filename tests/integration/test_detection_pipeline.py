"""
Integration test for the full detection pipeline.

Tests end-to-end flow from a recorded measurement log, through the lifecycle
controller, to persisted anomaly history and the telemetry server.
"""

import json
import threading
from datetime import datetime, timezone
from urllib.error import HTTPError
from urllib.request import urlopen

import pandas as pd
import pytest

from backend.lifecycle import AnomalyLifecycleController, AnomalyStatus
from backend.main import TelemetryServer, replay_log, run
from backend.storage import JsonFileAnomalyStorage
from gnss_sentinel.anomaly.schema import AnomalyCause, AnomalySeverity

T0 = datetime(2025, 3, 14, 8, 0, tzinfo=timezone.utc)


def _lat(i: int) -> float:
    return round(59.9 + i * 0.0001, 6)


@pytest.fixture
def jammed_log(tmp_path):
    """
    75 one-second batches: 50 clean, 15 degraded, 10 clean.

    Each batch is followed by a location fix, so batch i carries fix i.
    """
    base_ms = int(T0.timestamp() * 1000)
    rows = []
    for i in range(75):
        degraded = 50 <= i < 65
        cn0 = 35.0 if degraded else 42.0
        agc = 8.0 if degraded else 10.0
        for svid in (3, 8, 14, 22):
            rows.append({
                "timestamp": base_ms + i * 1000,
                "type": "measurement",
                "svid": svid,
                "constellation": "GPS",
                "cn0DbHz": cn0,
                "carrierFrequencyHz": 1575420030.0,
                "timeNanos": i * 1_000_000_000,
                "agcLevelDb": agc,
            })
        rows.append({
            "timestamp": base_ms + i * 1000 + 500,
            "type": "location",
            "latitude": _lat(i),
            "longitude": 10.75,
            "accuracy": 4.0,
            "provider": "gps",
        })

    path = tmp_path / "jammed.csv"
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


@pytest.mark.integration
class TestReplayPipeline:
    def test_replay_detects_single_event(self, jammed_log, tmp_path):
        storage = JsonFileAnomalyStorage(tmp_path / "anomalies.json")
        controller = AnomalyLifecycleController(storage=storage)

        batches = replay_log(jammed_log, controller)

        assert batches == 75
        assert not controller.is_detecting
        history = controller.history
        assert len(history) == 1

        event = history[0]
        assert event.status == AnomalyStatus.COMPLETED
        assert event.cause == AnomalyCause.BOTH_DROPPED
        assert event.severity == AnomalySeverity.HIGH
        # Opens on the 10th degraded batch, closes on the 6th clean one.
        assert event.start_location.lat == pytest.approx(_lat(59))
        assert event.end_location.lat == pytest.approx(_lat(70))
        assert (event.end_time - event.start_time).total_seconds() == pytest.approx(11.0)
        assert len(event.path) == 11

    def test_history_persisted_and_reloaded(self, jammed_log, tmp_path):
        history_path = tmp_path / "anomalies.json"
        replay_log(jammed_log, AnomalyLifecycleController(storage=JsonFileAnomalyStorage(history_path)))

        reloaded = AnomalyLifecycleController(storage=JsonFileAnomalyStorage(history_path))

        assert len(reloaded.history) == 1
        assert json.loads(history_path.read_text(encoding="utf-8"))[0]["status"] == "completed"

    def test_run_returns_snapshot(self, jammed_log, tmp_path):
        snapshot = run(jammed_log, tmp_path / "anomalies.json", serve=False, host="127.0.0.1", port=0)

        assert snapshot is not None
        assert snapshot.detector_ready
        assert snapshot.active_event is None
        assert len(snapshot.history) == 1

    def test_run_missing_log(self, tmp_path):
        assert run(tmp_path / "missing.csv", tmp_path / "anomalies.json", serve=False, host="127.0.0.1", port=0) is None

    def test_run_undecodable_log(self, tmp_path):
        path = tmp_path / "corrupt.csv"
        path.write_bytes(b"timestamp,type,svid,cn0DbHz,timeNanos\n1741939200000,measurement,\xff,41.5,100\n")

        assert run(path, tmp_path / "anomalies.json", serve=False, host="127.0.0.1", port=0) is None


@pytest.mark.integration
class TestTelemetryServer:
    @pytest.fixture
    def server(self, jammed_log, tmp_path):
        snapshot = run(jammed_log, tmp_path / "anomalies.json", serve=False, host="127.0.0.1", port=0)
        server = TelemetryServer(("127.0.0.1", 0), snapshot)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        yield server
        server.shutdown()
        server.server_close()

    def _get(self, server, path):
        host, port = server.server_address[:2]
        with urlopen(f"http://{host}:{port}{path}", timeout=5) as response:
            return response.status, json.loads(response.read())

    def test_health(self, server):
        assert self._get(server, "/health") == (200, {"status": "ok"})

    def test_status_excludes_history(self, server):
        status, body = self._get(server, "/status")

        assert status == 200
        assert body["calibration_progress"] == 100
        assert "history" not in body

    def test_anomalies_and_geojson(self, server):
        _, body = self._get(server, "/anomalies")
        assert body["total_count"] == 1
        event_id = body["anomalies"][0]["id"]

        _, geojson = self._get(server, f"/anomalies/{event_id}/geojson")
        assert geojson["type"] == "FeatureCollection"
        assert len(geojson["features"]) == 3

        _, collection = self._get(server, "/anomalies/geojson")
        assert len(collection["features"]) == 3

    @pytest.mark.parametrize("path", ["/anomalies/unknown/geojson", "/nowhere"])
    def test_not_found(self, server, path):
        with pytest.raises(HTTPError) as exc_info:
            self._get(server, path)
        assert exc_info.value.code == 404
