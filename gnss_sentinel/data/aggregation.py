"""
Epoch aggregation for GNSS measurements.

Reduces one batch of per-satellite measurements (plus an optional fix) into a
single Epoch summary. The function is pure and total: degraded input such as
an empty batch or missing readings produces a zero-satellite epoch, never an
exception.
"""

from datetime import datetime, timezone
from statistics import fmean
from typing import Iterable, Optional

from gnss_sentinel.data.schema import Epoch, Location, Measurement


def make_epoch(
    measurements: Iterable[Measurement],
    location: Optional[Location] = None,
    timestamp: Optional[datetime] = None,
) -> Epoch:
    """
    Summarize a measurement batch into an Epoch.

    Args:
        measurements: Per-satellite measurements from one cycle
        location: Device fix for this cycle (optional)
        timestamp: Epoch time (defaults to now, UTC)

    Returns:
        Epoch with averages over satellites reporting a positive C/N0

    Notes:
        - Satellites without a positive C/N0 are excluded from the signal
          average, the gain average, and the satellite count
        - avg_gain_db is None if no valid satellite reports AGC
    """
    valid = [m for m in measurements if m.has_valid_signal]

    avg_signal = fmean(m.signal_db for m in valid) if valid else 0.0

    gains = [m.gain_db for m in valid if m.gain_db is not None]
    avg_gain = fmean(gains) if gains else None

    return Epoch(
        timestamp=timestamp or datetime.now(timezone.utc),
        avg_signal_db=avg_signal,
        avg_gain_db=avg_gain,
        satellite_count=len(valid),
        location=location,
    )
