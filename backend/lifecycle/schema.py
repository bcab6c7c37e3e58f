"""
Schema for the anomaly lifecycle controller.

AnomalyEvent records are the durable output of detection: one record per
contiguous anomalous interval, with the path the vessel travelled while it
lasted.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from gnss_sentinel.anomaly.schema import AnomalyCause, AnomalySeverity, BaselineStats, DetectionMetrics
from gnss_sentinel.data.geo import path_distance
from gnss_sentinel.data.schema import Epoch, Location


class AnomalyStatus(str, Enum):
    """Lifecycle state of an anomaly event."""

    ACTIVE = "active"
    COMPLETED = "completed"


class AnomalyEvent(BaseModel):
    """
    A detected anomaly interval.

    Fields:
    - id: unique identifier
    - cause / severity: classification at the moment the event opened
    - status: active while detection continues, completed once closed
    - start_time / end_time: interval bounds (end_time None while active)
    - start_location / end_location: fixes at open and close (optional)
    - path: fixes sampled while active, consecutive duplicates dropped
    - metrics: latest detection metrics observed while active
    - description: human-readable summary
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    cause: AnomalyCause
    severity: AnomalySeverity
    status: AnomalyStatus = AnomalyStatus.ACTIVE
    start_time: datetime
    end_time: Optional[datetime] = None
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None
    path: List[Location] = Field(default_factory=list)
    metrics: DetectionMetrics
    description: str = ""

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        """Elapsed time; open events are measured up to now."""
        end = self.end_time or now or datetime.now(timezone.utc)
        return end - self.start_time

    def path_distance_m(self) -> float:
        return path_distance(self.path)


class DetectionSnapshot(BaseModel):
    """
    Read-only view of controller telemetry taken at a single instant.
    """

    is_detecting: bool
    detector_ready: bool
    calibration_progress: int = Field(ge=0, le=100)
    remaining_epochs: int = Field(ge=0)
    baseline_stats: Optional[BaselineStats] = None
    is_baseline_frozen: bool
    current_epoch: Optional[Epoch] = None
    active_event: Optional[AnomalyEvent] = None
    history: List[AnomalyEvent] = Field(default_factory=list)
