"""
Unit tests for epoch aggregation.

Tests reduction of one measurement batch into an Epoch summary.
"""

import pytest
from datetime import datetime, timezone

from gnss_sentinel.data.aggregation import make_epoch
from gnss_sentinel.data.schema import Measurement


class TestMakeEpoch:
    """Test make_epoch averaging and filtering."""

    def test_averages_valid_signals(self):
        batch = [
            Measurement(satellite_id=1, signal_db=40.0),
            Measurement(satellite_id=2, signal_db=44.0),
            Measurement(satellite_id=3, signal_db=36.0),
        ]

        epoch = make_epoch(batch)

        assert epoch.avg_signal_db == pytest.approx(40.0)
        assert epoch.satellite_count == 3
        assert epoch.avg_gain_db is None

    def test_invalid_signals_excluded_from_average_and_count(self):
        batch = [
            Measurement(satellite_id=1, signal_db=40.0),
            Measurement(satellite_id=2, signal_db=None),
            Measurement(satellite_id=3, signal_db=0.0),
            Measurement(satellite_id=4, signal_db=-5.0),
            Measurement(satellite_id=5, signal_db=30.0),
        ]

        epoch = make_epoch(batch)

        assert epoch.avg_signal_db == pytest.approx(35.0)
        assert epoch.satellite_count == 2

    def test_gain_averaged_over_valid_satellites_reporting_it(self):
        batch = [
            Measurement(satellite_id=1, signal_db=40.0, gain_db=2.0),
            Measurement(satellite_id=2, signal_db=40.0),
            Measurement(satellite_id=3, signal_db=40.0, gain_db=4.0),
            # Invalid C/N0: gain ignored as well
            Measurement(satellite_id=4, signal_db=0.0, gain_db=100.0),
        ]

        epoch = make_epoch(batch)

        assert epoch.avg_gain_db == pytest.approx(3.0)

    def test_empty_batch_yields_zero_epoch(self):
        epoch = make_epoch([])

        assert epoch.avg_signal_db == 0.0
        assert epoch.satellite_count == 0
        assert epoch.avg_gain_db is None

    def test_location_and_timestamp_carried_through(self, location_at):
        ts = datetime(2025, 3, 14, 8, 30, tzinfo=timezone.utc)
        fix = location_at(59.9, 10.7)

        epoch = make_epoch([Measurement(satellite_id=1, signal_db=40.0)], fix, ts)

        assert epoch.timestamp == ts
        assert epoch.location == fix

    def test_timestamp_defaults_to_utc_now(self):
        before = datetime.now(timezone.utc)
        epoch = make_epoch([Measurement(satellite_id=1, signal_db=40.0)])

        assert epoch.timestamp >= before
        assert epoch.timestamp.tzinfo is not None

    def test_accepts_generator(self):
        epoch = make_epoch(Measurement(satellite_id=i, signal_db=40.0) for i in range(4))

        assert epoch.satellite_count == 4
