"""
Schema definitions for GNSS anomaly detection.

All detection outputs are deterministic and explainable. Each result carries
the recent and baseline averages it was computed from, alongside the derived
drop percentages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AnomalySeverity(str, Enum):
    """Severity levels for anomalies, ordered by C/N0 drop magnitude."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AnomalyCause(str, Enum):
    """
    Probable cause, inferred from how AGC moved while C/N0 dropped.
    """

    BOTH_DROPPED = "both_dropped"
    CN0_DROPPED_AGC_INCREASED = "cn0_dropped_agc_increased"
    CN0_DROPPED_AGC_STABLE_OR_UNAVAILABLE = "cn0_dropped_agc_stable_or_unavailable"

    @property
    def label(self) -> str:
        return _CAUSE_LABELS[self]


_CAUSE_LABELS = {
    AnomalyCause.BOTH_DROPPED: "Both C/N0 and AGC dropped",
    AnomalyCause.CN0_DROPPED_AGC_INCREASED: "C/N0 dropped but AGC increased",
    AnomalyCause.CN0_DROPPED_AGC_STABLE_OR_UNAVAILABLE: "C/N0 dropped but AGC stable/unavailable",
}


class DetectionMetrics(BaseModel):
    """
    Numbers behind one detection pass.

    Fields:
    - cn0_drop_pct: percentage drop of recent C/N0 vs baseline (positive = weaker)
    - agc_drop_pct: percentage drop of recent AGC vs baseline (None if AGC coverage too low)
    - recent_avg_cn0 / baseline_cn0: window means in dB-Hz
    - recent_avg_agc / baseline_agc: window means in dB (None if unavailable)
    """

    cn0_drop_pct: float
    agc_drop_pct: Optional[float] = None
    recent_avg_cn0: float
    recent_avg_agc: Optional[float] = None
    baseline_cn0: float
    baseline_agc: Optional[float] = None


class DetectionResult(BaseModel):
    """
    Output of one detection pass.

    cause, severity and description are populated only when is_anomaly is True.
    """

    is_anomaly: bool
    cause: Optional[AnomalyCause] = None
    severity: Optional[AnomalySeverity] = None
    metrics: DetectionMetrics
    description: Optional[str] = None


class BaselineStats(BaseModel):
    """
    Summary of whichever baseline (frozen or live) is authoritative.

    Fields:
    - avg_signal: mean C/N0 in dB-Hz
    - avg_gain: mean AGC in dB (None unless enough epochs report it)
    - satellite_count: mean satellites per epoch, rounded
    - epoch_count: number of epochs in the baseline
    """

    avg_signal: float
    avg_gain: Optional[float] = None
    satellite_count: int = Field(ge=0)
    epoch_count: int = Field(ge=0)
