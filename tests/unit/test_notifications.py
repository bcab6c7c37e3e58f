"""
Unit tests for anomaly notifiers.
"""

import logging

import pytest

from backend.notifications import SEVERITY_COLORS, LoggingNotifier
from gnss_sentinel.anomaly.schema import AnomalyCause, AnomalySeverity


@pytest.mark.parametrize(
    "severity, level",
    [
        (AnomalySeverity.HIGH, logging.ERROR),
        (AnomalySeverity.MEDIUM, logging.WARNING),
        (AnomalySeverity.LOW, logging.INFO),
    ],
)
def test_logging_notifier_level_follows_severity(caplog, severity, level):
    notifier = LoggingNotifier("tests.alerts")

    with caplog.at_level(logging.DEBUG, logger="tests.alerts"):
        notifier.notify(AnomalyCause.BOTH_DROPPED, severity, "C/N0 collapsed")

    record = caplog.records[-1]
    assert record.levelno == level
    assert "GNSS Anomaly Detected" in record.getMessage()
    assert "Both C/N0 and AGC dropped" in record.getMessage()
    assert "C/N0 collapsed" in record.getMessage()


def test_severity_colors_cover_all_levels():
    assert set(SEVERITY_COLORS) == set(AnomalySeverity)
    assert SEVERITY_COLORS[AnomalySeverity.HIGH] == "#DC2626"
