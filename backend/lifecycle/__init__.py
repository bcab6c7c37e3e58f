"""
Anomaly lifecycle controller exports.
"""

from .config import LifecycleConfig
from .schema import AnomalyEvent, AnomalyStatus, DetectionSnapshot
from .controller import AnomalyLifecycleController

__all__ = [
    "AnomalyLifecycleController",
    "LifecycleConfig",
    "AnomalyEvent",
    "AnomalyStatus",
    "DetectionSnapshot",
]
