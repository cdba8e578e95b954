from __future__ import annotations

from typing import Sequence

import numpy as np

MINUTES_PER_DAY: int = 1440
"""Size of the circular minute-of-day domain."""

TEN_MINUTES: int = 10
"""Width of the aggregated start-time bins."""


def wrap_minute(index: int) -> int:
    """Map any integer onto the minute-of-day ring (0..1439)."""
    return index % MINUTES_PER_DAY


def minute_of_day(hour: int, minute: int) -> int:
    """
    Convert an ``HH:MM`` pair into a minute index.

    Raises ValueError when the pair is not a valid clock time.
    """
    if not (0 <= hour <= 23):
        raise ValueError("hour must be between 0 and 23")
    if not (0 <= minute <= 59):
        raise ValueError("minute must be between 0 and 59")
    return hour * 60 + minute


def aggregate_start_time_distribution(
    values: Sequence[float] | np.ndarray,
    bin_minutes: int = TEN_MINUTES,
) -> np.ndarray:
    """
    Downsample a per-minute distribution into coarser bins.

    Each output bin is the sum of ``bin_minutes`` consecutive minutes, so a
    1440-minute distribution becomes 144 ten-minute bins with the same total
    mass. Trailing minutes that do not fill a whole bin are dropped.

    Args:
        values: Per-minute probability masses.
        bin_minutes: Number of minutes summed into one output bin.

    Returns:
        np.ndarray of length ``len(values) // bin_minutes``.
    """
    if bin_minutes <= 0:
        raise ValueError("bin_minutes must be positive")
    data = np.asarray(values, dtype=float)
    n_bins = data.size // bin_minutes
    return data[: n_bins * bin_minutes].reshape(n_bins, bin_minutes).sum(axis=1)
