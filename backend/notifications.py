"""
Notification collaborators for newly opened anomalies.

Delivery is not required for correctness; the controller logs and ignores
notifier failures.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from gnss_sentinel.anomaly.schema import AnomalyCause, AnomalySeverity

logger = logging.getLogger(__name__)

SEVERITY_COLORS = {
    AnomalySeverity.HIGH: "#DC2626",
    AnomalySeverity.MEDIUM: "#F59E0B",
    AnomalySeverity.LOW: "#3B82F6",
}

_SEVERITY_LOG_LEVELS = {
    AnomalySeverity.HIGH: logging.ERROR,
    AnomalySeverity.MEDIUM: logging.WARNING,
    AnomalySeverity.LOW: logging.INFO,
}


class BaseNotifier(ABC):
    """Receives one call per newly opened anomaly event."""

    @abstractmethod
    def notify(self, cause: AnomalyCause, severity: AnomalySeverity, description: str) -> None:
        pass


class LoggingNotifier(BaseNotifier):
    """
    Emits anomaly alerts to the log, at a level matching severity.
    """

    title = "GNSS Anomaly Detected"

    def __init__(self, logger_name: str = "backend.alerts") -> None:
        self._logger = logging.getLogger(logger_name)

    def notify(self, cause: AnomalyCause, severity: AnomalySeverity, description: str) -> None:
        self._logger.log(
            _SEVERITY_LOG_LEVELS[severity],
            "%s: %s severity, %s. %s",
            self.title,
            severity.value.capitalize(),
            cause.label,
            description,
        )
