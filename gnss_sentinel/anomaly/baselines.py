"""
Rolling epoch buffer and baseline statistics.

The buffer is a bounded FIFO split into a baseline region (oldest epochs) and
a recent region (newest epochs) once full. Statistics helpers are pure
functions over epoch lists so the same code serves the live and the frozen
baseline.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from math import ceil
from statistics import fmean
from typing import Deque, List, Optional, Sequence

from gnss_sentinel.data.schema import Epoch

from .schema import BaselineStats


def mean_signal(epochs: Sequence[Epoch]) -> float:
    """Mean of avg_signal_db across epochs, 0.0 for an empty sequence."""
    if not epochs:
        return 0.0
    return fmean(e.avg_signal_db for e in epochs)


def gain_values(epochs: Sequence[Epoch]) -> List[float]:
    return [e.avg_gain_db for e in epochs if e.has_gain]


def has_gain_coverage(epochs: Sequence[Epoch], window_size: int, min_coverage: float) -> bool:
    """
    True if enough epochs report AGC to trust a gain average.

    Coverage is measured against the nominal window size, not len(epochs).
    """
    return len(gain_values(epochs)) >= ceil(window_size * min_coverage)


def summarize_baseline(
    epochs: Sequence[Epoch],
    window_size: int,
    min_gain_coverage: float,
) -> BaselineStats:
    gains = gain_values(epochs)
    avg_gain = fmean(gains) if gains and has_gain_coverage(epochs, window_size, min_gain_coverage) else None
    satellites = fmean(e.satellite_count for e in epochs) if epochs else 0.0
    return BaselineStats(
        avg_signal=mean_signal(epochs),
        avg_gain=avg_gain,
        satellite_count=round(satellites),
        epoch_count=len(epochs),
    )


@dataclass
class RollingEpochBuffer:
    """
    Fixed-capacity FIFO of epochs.

    Regions are only defined once the buffer is full; before that,
    baseline() and recent() return None.
    """

    baseline_window: int
    recent_window: int
    _epochs: Deque[Epoch] = None

    def __post_init__(self) -> None:
        self._epochs = deque(maxlen=self.capacity)

    @property
    def capacity(self) -> int:
        return self.baseline_window + self.recent_window

    def append(self, epoch: Epoch) -> None:
        self._epochs.append(epoch)

    def clear(self) -> None:
        self._epochs.clear()

    def is_full(self) -> bool:
        return len(self._epochs) >= self.capacity

    def baseline(self) -> Optional[List[Epoch]]:
        if not self.is_full():
            return None
        return list(self._epochs)[: self.baseline_window]

    def recent(self) -> Optional[List[Epoch]]:
        if not self.is_full():
            return None
        return list(self._epochs)[-self.recent_window:]

    def __len__(self) -> int:
        return len(self._epochs)
