"""
Drop computation, severity mapping and cause classification.

Maps percentage drops to severity levels and AGC behaviour to a probable
cause with configurable thresholds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from gnss_sentinel.core.config import DropThresholds

from .schema import AnomalyCause, AnomalySeverity


def drop_percentage(baseline_mean: float, recent_mean: float) -> Optional[float]:
    """
    Relative drop of recent_mean below baseline_mean, in percent.

    Positive means the recent value is lower. Returns None when the baseline
    mean is zero and the ratio is undefined.
    """

    if baseline_mean == 0:
        return None
    return (baseline_mean - recent_mean) / baseline_mean * 100.0


@dataclass
class SeverityMapper:
    """
    Maps C/N0 drops to severity levels and AGC drops to causes.
    """

    thresholds: DropThresholds

    def is_anomalous(self, cn0_drop: float) -> bool:
        return cn0_drop >= self.thresholds.low

    def severity(self, cn0_drop: float) -> Optional[AnomalySeverity]:
        if cn0_drop >= self.thresholds.high:
            return AnomalySeverity.HIGH
        if cn0_drop >= self.thresholds.medium:
            return AnomalySeverity.MEDIUM
        if cn0_drop >= self.thresholds.low:
            return AnomalySeverity.LOW
        return None

    def cause(self, agc_drop: Optional[float]) -> AnomalyCause:
        if agc_drop is not None and agc_drop >= self.thresholds.low:
            return AnomalyCause.BOTH_DROPPED
        if agc_drop is not None and agc_drop <= -self.thresholds.low:
            return AnomalyCause.CN0_DROPPED_AGC_INCREASED
        return AnomalyCause.CN0_DROPPED_AGC_STABLE_OR_UNAVAILABLE


def describe(cause: AnomalyCause, cn0_drop: float, agc_drop: Optional[float]) -> str:
    """
    Human-readable summary used for alerts and exports.
    """

    if cause == AnomalyCause.BOTH_DROPPED:
        return (
            f"Possible anomaly detected: Both C/N0 and AGC dropped "
            f"(C/N0: {cn0_drop:.1f}%, AGC: {agc_drop:.1f}%)"
        )
    if cause == AnomalyCause.CN0_DROPPED_AGC_INCREASED:
        return (
            f"Possible anomaly detected: C/N0 dropped {cn0_drop:.1f}% "
            f"but AGC increased {abs(agc_drop):.1f}%"
        )
    return f"Possible anomaly detected: C/N0 dropped {cn0_drop:.1f}%"
