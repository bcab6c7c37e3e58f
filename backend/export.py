"""
Export helpers for anomaly events.

Produces GeoJSON for map display, and CSV/JSON for reports. Pure functions
over AnomalyEvent; nothing here touches controller state.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from backend.lifecycle.schema import AnomalyEvent
from backend.notifications import SEVERITY_COLORS
from gnss_sentinel.data.schema import Location

CSV_HEADERS = [
    "Cause",
    "Severity",
    "Status",
    "Start Time",
    "End Time",
    "Duration (s)",
    "Start Lat",
    "Start Lon",
    "End Lat",
    "End Lon",
    "Path Points",
    "Path Distance (m)",
    "C/N0 Drop (%)",
    "AGC Drop (%)",
    "Description",
]


def _point_feature(location: Location, properties: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [location.lon, location.lat]},
        "properties": properties,
    }


def _base_properties(event: AnomalyEvent) -> Dict[str, Any]:
    return {
        "anomalyId": event.id,
        "cause": event.cause.value,
        "severity": event.severity.value,
        "color": SEVERITY_COLORS[event.severity],
    }


def event_features(event: AnomalyEvent, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    GeoJSON features for one event.

    Start point (if known), end point (if completed with a known location),
    and a path LineString when the path has at least two points.
    """
    features: List[Dict[str, Any]] = []

    if event.start_location is not None:
        features.append(
            _point_feature(
                event.start_location,
                {
                    **_base_properties(event),
                    "type": "anomaly-start",
                    "timestamp": event.start_time.isoformat(),
                    "description": f"Anomaly Start: {event.cause.label}",
                },
            )
        )

    if event.end_location is not None and event.end_time is not None:
        features.append(
            _point_feature(
                event.end_location,
                {
                    **_base_properties(event),
                    "type": "anomaly-end",
                    "timestamp": event.end_time.isoformat(),
                    "description": f"Anomaly End: {event.cause.label}",
                },
            )
        )

    if len(event.path) > 1:
        features.append(
            {
                "type": "Feature",
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[loc.lon, loc.lat] for loc in event.path],
                },
                "properties": {
                    **_base_properties(event),
                    "type": "anomaly-path",
                    "status": event.status.value,
                    "startTime": event.start_time.isoformat(),
                    "endTime": event.end_time.isoformat() if event.end_time else None,
                    "durationSeconds": event.duration(now).total_seconds(),
                    "pathLength": len(event.path),
                    "pathDistanceMeters": event.path_distance_m(),
                    "description": event.description,
                    "cn0Drop": event.metrics.cn0_drop_pct,
                    "agcDrop": event.metrics.agc_drop_pct,
                },
            }
        )

    return features


def event_to_geojson(event: AnomalyEvent, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": event_features(event, now)}


def events_to_geojson(events: Iterable[AnomalyEvent], now: Optional[datetime] = None) -> Dict[str, Any]:
    features: List[Dict[str, Any]] = []
    for event in events:
        features.extend(event_features(event, now))
    return {"type": "FeatureCollection", "features": features}


def event_to_json(event: AnomalyEvent) -> str:
    return event.model_dump_json(indent=2)


def _coord(location: Optional[Location], attr: str) -> str:
    if location is None:
        return ""
    return f"{getattr(location, attr):.6f}"


def events_to_csv(events: Iterable[AnomalyEvent], now: Optional[datetime] = None) -> str:
    """
    CSV report with one row per event. Open events show "Ongoing" as end time.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for event in events:
        agc_drop = event.metrics.agc_drop_pct
        writer.writerow(
            [
                event.cause.value,
                event.severity.value,
                event.status.value,
                event.start_time.isoformat(),
                event.end_time.isoformat() if event.end_time else "Ongoing",
                f"{event.duration(now).total_seconds():.1f}",
                _coord(event.start_location, "lat"),
                _coord(event.start_location, "lon"),
                _coord(event.end_location, "lat"),
                _coord(event.end_location, "lon"),
                len(event.path),
                f"{event.path_distance_m():.1f}",
                f"{event.metrics.cn0_drop_pct:.2f}",
                f"{agc_drop:.2f}" if agc_drop is not None else "N/A",
                event.description,
            ]
        )

    return buffer.getvalue()


def event_to_csv(event: AnomalyEvent, now: Optional[datetime] = None) -> str:
    return events_to_csv([event], now)
