"""
Anomaly module: Sliding-window GNSS signal anomaly detection.

Implements the rolling baseline, drop scoring, and detection results.
"""

from .baselines import RollingEpochBuffer, mean_signal, summarize_baseline
from .detector import SlidingWindowDetector
from .schema import AnomalyCause, AnomalySeverity, BaselineStats, DetectionMetrics, DetectionResult
from .scoring import SeverityMapper, describe, drop_percentage

__all__ = [
	"SlidingWindowDetector",
	"DetectionResult",
	"DetectionMetrics",
	"AnomalyCause",
	"AnomalySeverity",
	"BaselineStats",
	"RollingEpochBuffer",
	"mean_signal",
	"summarize_baseline",
	"SeverityMapper",
	"describe",
	"drop_percentage",
]
