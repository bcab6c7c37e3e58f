"""
Anomaly lifecycle controller.

Bridges the detection stream and the location stream into durable
AnomalyEvent records: opens an event when detection starts, extends its path
while detection continues, and closes it when the signal recovers or the
operator stops or recalibrates. Also exposes calibration and baseline
telemetry for display.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from gnss_sentinel.anomaly.detector import SlidingWindowDetector
from gnss_sentinel.anomaly.schema import BaselineStats, DetectionResult
from gnss_sentinel.data.aggregation import make_epoch
from gnss_sentinel.data.schema import Epoch, Location, Measurement

from backend.notifications import BaseNotifier

from .config import LifecycleConfig
from .schema import AnomalyEvent, AnomalyStatus, DetectionSnapshot

if TYPE_CHECKING:
    from backend.storage import BaseAnomalyStorage

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnomalyLifecycleController:
    """
    Single-writer controller that owns the open event and the history list.

    Collaborators are passed in explicitly:
    - storage: history persistence (loaded once here, saved on change)
    - notifier: optional alert sink for newly opened events
    - is_tracking: reports whether the location/measurement feed is running
    - clock: time source for stop/recalibrate timestamps

    Every public operation is total. Precondition violations are logged as
    warnings and become no-ops; collaborator failures are logged and ignored.
    Getters return copies, so callers hold snapshots rather than live state.
    """

    def __init__(
        self,
        storage: Optional[BaseAnomalyStorage] = None,
        notifier: Optional[BaseNotifier] = None,
        detector: Optional[SlidingWindowDetector] = None,
        is_tracking: Optional[Callable[[], bool]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        settings: Optional[LifecycleConfig] = None,
    ) -> None:
        self.settings = settings or LifecycleConfig()
        if storage is None:
            # backend.storage imports this package for AnomalyEvent
            from backend.storage import InMemoryAnomalyStorage

            storage = InMemoryAnomalyStorage()
        self._storage = storage
        self._notifier = notifier
        self._detector = detector or SlidingWindowDetector()
        self._is_tracking = is_tracking or (lambda: True)
        self._clock = clock or _utc_now

        self._is_detecting = False
        self._active_event: Optional[AnomalyEvent] = None
        self._current_epoch: Optional[Epoch] = None
        self._last_location: Optional[Location] = None
        self._reset_telemetry()

        self._history: List[AnomalyEvent] = self._load_history()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Begin detection from a cold detector.

        Returns:
            True if detection started, False if tracking is not active
        """
        if not self._is_tracking():
            logger.warning("Cannot start detection: GNSS tracking not active")
            return False

        self._detector.reset()
        self._reset_telemetry()
        self._is_detecting = True
        logger.info("Anomaly detection started")
        return True

    def stop(self, location: Optional[Location] = None) -> Optional[AnomalyEvent]:
        """
        Stop detection, completing any open event.

        Args:
            location: Fix to stamp as end location (defaults to last known)

        Returns:
            The completed event, if one was open
        """
        self._is_detecting = False
        logger.info("Anomaly detection stopped")
        return self._close_active(self._clock(), location or self._last_location)

    def recalibrate(self, location: Optional[Location] = None) -> bool:
        """
        Discard the current baseline and start calibrating a new one.

        An open event is completed, since it was measured against the baseline
        being discarded.

        Returns:
            True if recalibration happened, False if detection is not running
        """
        if not self._is_detecting:
            logger.warning("Cannot recalibrate: detection not active")
            return False

        self._detector.recalibrate()
        self._reset_telemetry()
        self._close_active(self._clock(), location or self._last_location)
        logger.info("Baseline recalibration started")
        return True

    def on_tracking_stopped(self) -> None:
        """Stop detection when the upstream feed goes away."""
        if self._is_detecting:
            logger.info("GNSS tracking stopped; stopping anomaly detection")
            self.stop()

    def clear(self) -> None:
        """Discard history and any open event, and clear persisted history."""
        self._history = []
        self._active_event = None
        try:
            self._storage.clear_history()
        except Exception as exc:
            logger.error("Failed to clear stored anomaly history: %s", exc)

    # ------------------------------------------------------------------
    # Measurement feed
    # ------------------------------------------------------------------

    def on_measurements(
        self,
        measurements: Iterable[Measurement],
        location: Optional[Location] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[DetectionResult]:
        """
        Process one measurement batch.

        Args:
            measurements: Per-satellite measurements for this cycle
            location: Current device fix (optional)
            timestamp: Cycle time (defaults to the controller clock)

        Returns:
            The detector's result for this batch (None if no anomaly, still
            calibrating, or the batch was skipped)
        """
        if not self._is_detecting or not self._is_tracking():
            return None

        measurements = list(measurements)
        if not measurements:
            return None

        if location is not None:
            self._last_location = location

        epoch = make_epoch(measurements, location, timestamp or self._clock())
        self._current_epoch = epoch

        if epoch.satellite_count == 0 and self.settings.skip_empty_epochs:
            logger.debug("Skipping epoch with no valid C/N0 readings")
            return None

        result = self._detector.add_epoch(epoch)
        self._refresh_telemetry()

        if result is not None and result.is_anomaly:
            if self._active_event is None:
                self._open_event(result, epoch)
            else:
                self._extend_event(result, location)
        elif self._active_event is not None:
            self._close_active(epoch.timestamp, location or self._last_location)

        return result

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    @property
    def is_detecting(self) -> bool:
        return self._is_detecting

    @property
    def detector_ready(self) -> bool:
        return self._detector_ready

    @property
    def active_event(self) -> Optional[AnomalyEvent]:
        return self._active_event.model_copy(deep=True) if self._active_event else None

    @property
    def history(self) -> List[AnomalyEvent]:
        return [e.model_copy(deep=True) for e in self._history]

    @property
    def current_epoch(self) -> Optional[Epoch]:
        return self._current_epoch

    @property
    def calibration_progress(self) -> int:
        return self._calibration_progress

    @property
    def remaining_epochs(self) -> int:
        return self._remaining_epochs

    @property
    def baseline_stats(self) -> Optional[BaselineStats]:
        return self._baseline_stats

    @property
    def is_baseline_frozen(self) -> bool:
        return self._is_baseline_frozen

    def snapshot(self) -> DetectionSnapshot:
        return DetectionSnapshot(
            is_detecting=self._is_detecting,
            detector_ready=self._detector_ready,
            calibration_progress=self._calibration_progress,
            remaining_epochs=self._remaining_epochs,
            baseline_stats=self._baseline_stats,
            is_baseline_frozen=self._is_baseline_frozen,
            current_epoch=self._current_epoch,
            active_event=self.active_event,
            history=self.history,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset_telemetry(self) -> None:
        self._detector_ready = False
        self._calibration_progress = 0
        self._remaining_epochs = self._detector.settings.capacity
        self._baseline_stats: Optional[BaselineStats] = None
        self._is_baseline_frozen = False

    def _refresh_telemetry(self) -> None:
        self._detector_ready = self._detector.is_ready()
        self._calibration_progress = self._detector.calibration_progress()
        self._remaining_epochs = self._detector.remaining_epochs()
        self._baseline_stats = self._detector.baseline_stats()
        self._is_baseline_frozen = self._detector.is_baseline_frozen()

    def _open_event(self, result: DetectionResult, epoch: Epoch) -> None:
        location = epoch.location
        self._active_event = AnomalyEvent(
            cause=result.cause,
            severity=result.severity,
            start_time=epoch.timestamp,
            start_location=location,
            path=[location] if location is not None else [],
            metrics=result.metrics,
            description=result.description or "",
        )
        logger.warning(
            "Anomaly %s opened: %s (%s severity)",
            self._active_event.id,
            result.cause.label,
            result.severity.value,
        )
        if self._notifier is not None and self.settings.notify_on_open:
            try:
                self._notifier.notify(result.cause, result.severity, self._active_event.description)
            except Exception as exc:
                logger.error("Anomaly notification failed: %s", exc)

    def _extend_event(self, result: DetectionResult, location: Optional[Location]) -> None:
        event = self._active_event
        if location is not None:
            last = event.path[-1] if event.path else None
            if not location.same_position(last):
                event.path.append(location)
        event.metrics = result.metrics

    def _close_active(
        self, end_time: datetime, location: Optional[Location]
    ) -> Optional[AnomalyEvent]:
        event = self._active_event
        if event is None:
            return None

        # Replayed epochs may carry times later than the controller clock.
        event.end_time = max(end_time, event.start_time)
        event.end_location = location
        event.status = AnomalyStatus.COMPLETED
        self._active_event = None

        self._history.append(event)
        logger.info(
            "Anomaly %s completed after %.1fs with %d path points",
            event.id,
            event.duration().total_seconds(),
            len(event.path),
        )
        self._persist()
        return event.model_copy(deep=True)

    def _load_history(self) -> List[AnomalyEvent]:
        try:
            events = self._storage.load_history()
        except Exception as exc:
            logger.error("Failed to load anomaly history, starting empty: %s", exc)
            return []
        logger.info("Loaded %d stored anomaly events", len(events))
        return list(events)

    def _persist(self) -> None:
        if not self.settings.persist_on_change:
            return
        try:
            self._storage.save_history(self.history)
        except Exception as exc:
            logger.error("Failed to save anomaly history: %s", exc)
