"""
Pytest configuration and shared fixtures.

Provides deterministic epoch builders, a controllable clock, and a recorded
measurement log for unit and integration tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional
import pandas as pd

from gnss_sentinel.core.config import DetectorConfig
from gnss_sentinel.data.schema import Epoch, Location, Measurement

T0 = datetime(2025, 3, 14, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def detector_config() -> DetectorConfig:
    """
    Fixture providing the default detector configuration (50 + 10 epochs).

    Explicit values so tests don't depend on GNSS_* environment overrides.
    """
    return DetectorConfig(baseline_window=50, recent_window=10, min_gain_coverage=0.5)


@pytest.fixture
def make_epochs() -> Callable[..., List[Epoch]]:
    """
    Fixture returning a builder for runs of identical epochs.

    Usage:
        make_epochs(42.0, 50, gain=-3.0, start=0)

    Timestamps advance one second per epoch from T0 + start seconds.
    """

    def _build(
        signal: float,
        count: int,
        gain: Optional[float] = None,
        start: int = 0,
        satellites: int = 8,
        location: Optional[Location] = None,
    ) -> List[Epoch]:
        return [
            Epoch(
                timestamp=T0 + timedelta(seconds=start + i),
                avg_signal_db=signal,
                avg_gain_db=gain,
                satellite_count=satellites,
                location=location,
            )
            for i in range(count)
        ]

    return _build


@pytest.fixture
def measurements() -> Callable[..., List[Measurement]]:
    """
    Fixture returning a builder for one measurement batch.

    Every satellite reports the same C/N0 (and AGC, if given).
    """

    def _build(signal: float, gain: Optional[float] = None, satellites: int = 8) -> List[Measurement]:
        return [
            Measurement(satellite_id=i + 1, signal_db=signal, gain_db=gain, constellation="GPS")
            for i in range(satellites)
        ]

    return _build


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def location_at() -> Callable[[float, float], Location]:
    def _build(lat: float, lon: float) -> Location:
        return Location(lat=lat, lon=lon, provider="gps", time=T0)

    return _build


@pytest.fixture
def recorded_log(tmp_path) -> Path:
    """
    Fixture writing a small recorded measurement log to disk.

    Three batches of two satellites each, with a location fix before the
    first and third batch, one malformed row, and an AGC column.

    Returns:
        Path to the CSV file
    """
    base_ms = int(T0.timestamp() * 1000)
    rows = [
        {"timestamp": base_ms, "type": "location", "latitude": 59.91, "longitude": 10.75, "provider": "gps"},
        {"timestamp": base_ms + 10, "type": "measurement", "svid": 5, "constellation": "GPS", "cn0DbHz": 41.0, "timeNanos": 1000, "agcLevelDb": 2.0},
        {"timestamp": base_ms + 11, "type": "measurement", "svid": 7, "constellation": "GPS", "cn0DbHz": 43.0, "timeNanos": 1000, "agcLevelDb": 4.0},
        {"timestamp": base_ms + 1000, "type": "measurement", "svid": 5, "constellation": "GPS", "cn0DbHz": 40.0, "timeNanos": 2000},
        {"timestamp": base_ms + 1001, "type": "measurement", "svid": "bad", "constellation": "GPS", "cn0DbHz": 40.0, "timeNanos": 2000},
        {"timestamp": base_ms + 1002, "type": "measurement", "svid": 7, "constellation": "GPS", "cn0DbHz": None, "timeNanos": 2000},
        {"timestamp": base_ms + 1500, "type": "location", "latitude": 59.92, "longitude": 10.76, "provider": "gps"},
        {"timestamp": base_ms + 2000, "type": "measurement", "svid": 5, "constellation": "GPS", "cn0DbHz": 39.0, "timeNanos": 3000},
        {"timestamp": base_ms + 2001, "type": "measurement", "svid": 9, "constellation": "GALILEO", "cn0DbHz": 38.0, "timeNanos": 3000},
    ]
    columns = [
        "timestamp", "datetime", "type", "latitude", "longitude", "altitude", "accuracy",
        "speed", "bearing", "provider", "svid", "constellation", "cn0DbHz",
        "carrierFrequencyHz", "timeNanos", "agcLevelDb",
    ]
    df = pd.DataFrame(rows, columns=columns)
    path = tmp_path / "gnss_log.csv"
    df.to_csv(path, index=False)
    return path


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
