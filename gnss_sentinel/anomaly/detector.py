"""
Sliding-window GNSS anomaly detector.

Consumes Epoch objects one at a time, keeps a bounded rolling buffer, and
compares the newest epochs against an older baseline. While an anomaly is
open the baseline is frozen so degraded epochs cannot drag down the
reference they are compared against.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from gnss_sentinel.core.config import DetectorConfig, config
from gnss_sentinel.data.schema import Epoch

from .baselines import RollingEpochBuffer, gain_values, has_gain_coverage, mean_signal, summarize_baseline
from .schema import BaselineStats, DetectionMetrics, DetectionResult
from .scoring import SeverityMapper, describe, drop_percentage

logger = logging.getLogger(__name__)


class SlidingWindowDetector:
    """
    Deterministic sliding-window detector.

    States:
    - Calibrating: fewer than capacity epochs buffered, add_epoch returns None.
    - Ready: buffer full, every add_epoch runs a detection pass.

    Notes:
    - The baseline freezes when an anomaly opens and unfreezes on the first
      clean pass.
    - recalibrate() keeps the open-anomaly flag; only reset() clears it.
    - Not thread-safe. Calls must be serialized by the caller.
    """

    def __init__(self, settings: Optional[DetectorConfig] = None) -> None:
        self.settings = settings or config.detector
        self._buffer = RollingEpochBuffer(
            baseline_window=self.settings.baseline_window,
            recent_window=self.settings.recent_window,
        )
        self._frozen_baseline: Optional[List[Epoch]] = None
        self._anomaly_open = False
        self._mapper = SeverityMapper(self.settings.thresholds)

    def add_epoch(self, epoch: Epoch) -> Optional[DetectionResult]:
        """
        Buffer an epoch and, once calibrated, run detection.

        Returns:
            DetectionResult while an anomaly is present, otherwise None
        """
        self._buffer.append(epoch)
        if not self.is_ready():
            return None
        return self._detect()

    def _detect(self) -> Optional[DetectionResult]:
        recent = self._buffer.recent()
        baseline = self._authoritative_baseline()

        recent_cn0 = mean_signal(recent)
        baseline_cn0 = mean_signal(baseline)
        cn0_drop = drop_percentage(baseline_cn0, recent_cn0)
        if cn0_drop is None:
            logger.debug("Baseline C/N0 mean is zero; treating drop as 0%")
            cn0_drop = 0.0

        agc_drop: Optional[float] = None
        recent_agc: Optional[float] = None
        baseline_agc: Optional[float] = None
        coverage = self.settings.min_gain_coverage
        if has_gain_coverage(recent, self.settings.recent_window, coverage) and has_gain_coverage(
            baseline, self.settings.baseline_window, coverage
        ):
            recent_gains = gain_values(recent)
            baseline_gains = gain_values(baseline)
            recent_agc = sum(recent_gains) / len(recent_gains)
            baseline_agc = sum(baseline_gains) / len(baseline_gains)
            agc_drop = drop_percentage(baseline_agc, recent_agc)
            if agc_drop is None:
                recent_agc = baseline_agc = None

        if not self._mapper.is_anomalous(cn0_drop):
            if self._anomaly_open:
                logger.debug("Signal recovered (C/N0 drop %.2f%%); unfreezing baseline", cn0_drop)
                self._anomaly_open = False
                self._frozen_baseline = None
            return None

        if not self._anomaly_open:
            self._anomaly_open = True
            self._frozen_baseline = list(baseline)
            logger.debug("Anomaly opened (C/N0 drop %.2f%%); baseline frozen", cn0_drop)

        cause = self._mapper.cause(agc_drop)
        return DetectionResult(
            is_anomaly=True,
            cause=cause,
            severity=self._mapper.severity(cn0_drop),
            metrics=DetectionMetrics(
                cn0_drop_pct=cn0_drop,
                agc_drop_pct=agc_drop,
                recent_avg_cn0=recent_cn0,
                recent_avg_agc=recent_agc,
                baseline_cn0=baseline_cn0,
                baseline_agc=baseline_agc,
            ),
            description=describe(cause, cn0_drop, agc_drop),
        )

    def _authoritative_baseline(self) -> List[Epoch]:
        if self._anomaly_open and self._frozen_baseline is not None:
            return self._frozen_baseline
        return self._buffer.baseline()

    def reset(self) -> None:
        """Cold restart: clear buffer, frozen baseline and open-anomaly flag."""
        self._buffer.clear()
        self._frozen_baseline = None
        self._anomaly_open = False

    def recalibrate(self) -> None:
        """
        Clear buffer and frozen baseline to establish a fresh baseline.

        The open-anomaly flag is kept: an anomaly in progress ends on the first
        clean pass against the new baseline.
        """
        self._buffer.clear()
        self._frozen_baseline = None

    def is_ready(self) -> bool:
        return self._buffer.is_full()

    def buffer_size(self) -> int:
        return len(self._buffer)

    def calibration_progress(self) -> int:
        if self.is_ready():
            return 100
        return min(100, round(len(self._buffer) / self._buffer.capacity * 100))

    def remaining_epochs(self) -> int:
        return max(0, self._buffer.capacity - len(self._buffer))

    def baseline_stats(self) -> Optional[BaselineStats]:
        if not self.is_ready():
            return None
        return summarize_baseline(
            self._authoritative_baseline(),
            window_size=self.settings.baseline_window,
            min_gain_coverage=self.settings.min_gain_coverage,
        )

    def is_baseline_frozen(self) -> bool:
        return self._anomaly_open
