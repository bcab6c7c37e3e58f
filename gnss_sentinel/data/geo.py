"""
Geographic and formatting helpers for locations and anomaly paths.
"""

from datetime import timedelta
from math import atan2, cos, radians, sin, sqrt
from typing import Optional, Sequence

from gnss_sentinel.data.schema import Location

EARTH_RADIUS_M = 6371e3


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in meters.
    """
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    delta_phi = radians(lat2 - lat1)
    delta_lambda = radians(lon2 - lon1)

    a = sin(delta_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(delta_lambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * atan2(sqrt(a), sqrt(1 - a))


def path_distance(path: Sequence[Location]) -> float:
    """Total length of a path in meters; 0.0 for fewer than two points."""
    return sum(
        haversine_distance(a.lat, a.lon, b.lat, b.lon)
        for a, b in zip(path, path[1:])
    )


def format_duration(duration: timedelta) -> str:
    """
    Format a duration as "1h 2m 3s", "2m 3s" or "3s".
    """
    seconds = int(duration.total_seconds())
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_location(location: Optional[Location]) -> str:
    if location is None:
        return "Unknown"
    return f"{location.lat:.6f}, {location.lon:.6f}"
