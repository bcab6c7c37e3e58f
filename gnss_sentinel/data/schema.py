"""
Canonical internal measurement schema for the GNSS anomaly pipeline.

This module defines the standardized representation of per-satellite signal
measurements, device fixes, and the per-cycle epoch summary that the detector
consumes. All sensor sources are converted to these models before detection.

Design rationale:
- Minimal fields (only what's needed for anomaly detection)
- All timestamps in UTC for consistency
- Optional readings stay None rather than being coerced to 0
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Measurement(BaseModel):
    """
    Raw signal measurement for a single satellite in one measurement cycle.

    Attributes:
        satellite_id: Satellite vehicle ID (svid)
        signal_db: Carrier-to-noise density ratio C/N0 in dB-Hz (optional)
        gain_db: Automatic gain control level in dB (optional)
        constellation: GPS, GLONASS, GALILEO, BEIDOU, ... (optional)
        carrier_freq_hz: Carrier frequency in Hz (optional)

    Notes:
        - signal_db may be missing or non-positive; such readings are
          excluded from epoch statistics rather than rejected here
    """

    satellite_id: int = Field(
        ...,
        description="Satellite vehicle ID"
    )

    signal_db: Optional[float] = Field(
        default=None,
        description="C/N0 in dB-Hz"
    )

    gain_db: Optional[float] = Field(
        default=None,
        description="AGC level in dB"
    )

    constellation: Optional[str] = Field(
        default=None,
        max_length=32,
        description="Constellation name"
    )

    carrier_freq_hz: Optional[float] = Field(
        default=None,
        ge=0,
        description="Carrier frequency in Hz"
    )

    @property
    def has_valid_signal(self) -> bool:
        return self.signal_db is not None and self.signal_db > 0


class Location(BaseModel):
    """
    Device position fix.

    Attributes:
        lat: Latitude in degrees
        lon: Longitude in degrees
        altitude: Meters above sea level (optional)
        accuracy: Horizontal accuracy in meters (optional)
        speed: Meters per second (optional)
        bearing: Degrees from North, 0-360 (optional)
        provider: "gps", "network", ... (optional)
        time: UTC time of the fix
    """

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")
    altitude: Optional[float] = Field(default=None, description="Altitude in meters")
    accuracy: Optional[float] = Field(default=None, ge=0, description="Horizontal accuracy in meters")
    speed: Optional[float] = Field(default=None, ge=0, description="Speed in m/s")
    bearing: Optional[float] = Field(default=None, ge=0, le=360, description="Bearing in degrees")
    provider: Optional[str] = Field(default=None, description="Location provider")
    time: datetime = Field(..., description="UTC time of the fix")

    def same_position(self, other: Optional["Location"]) -> bool:
        """True if other has identical latitude and longitude."""
        if other is None:
            return False
        return self.lat == other.lat and self.lon == other.lon


class Epoch(BaseModel):
    """
    One summarized measurement cycle.

    This is produced by the aggregation step and fed to the detector.

    Attributes:
        timestamp: UTC instant of the cycle
        avg_signal_db: Mean C/N0 over satellites with a valid reading (0 if none)
        avg_gain_db: Mean AGC over valid satellites that report it (None if none do)
        satellite_count: Number of satellites contributing to avg_signal_db
        location: Device fix at the time of the epoch (optional)
    """

    timestamp: datetime = Field(
        ...,
        description="UTC timestamp of the cycle"
    )

    avg_signal_db: float = Field(
        ...,
        ge=0,
        description="Mean C/N0 in dB-Hz"
    )

    avg_gain_db: Optional[float] = Field(
        default=None,
        description="Mean AGC level in dB"
    )

    satellite_count: int = Field(
        ...,
        ge=0,
        description="Satellites with a valid C/N0 reading"
    )

    location: Optional[Location] = Field(
        default=None,
        description="Device fix at epoch time"
    )

    @property
    def has_gain(self) -> bool:
        return self.avg_gain_db is not None
