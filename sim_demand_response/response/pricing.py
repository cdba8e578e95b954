"""
Comparison of a baseline and a new daily pricing scheme.

The shifting engine never looks at raw price arrays directly; it consumes the
two views built here:

* `PricingVector` partitions the day into contiguous constant-price intervals
  of the new scheme and knows which one is the cheapest.
* `Incentive` objects describe contiguous intervals where the new price
  differs from the baseline, tagged penalty (price went up) or reward
  (price went down).

Intervals are half-open ``[start_minute, end_minute)`` over the minute-of-day
domain and do not wrap across midnight.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..day_utils import MINUTES_PER_DAY, wrap_minute


def _contiguous_runs(keys: np.ndarray) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` pairs of runs where consecutive rows are equal."""
    if keys.ndim == 1:
        changes = keys[1:] != keys[:-1]
    else:
        changes = np.any(keys[1:] != keys[:-1], axis=1)
    boundaries = np.flatnonzero(changes) + 1
    starts = np.concatenate(([0], boundaries))
    ends = np.concatenate((boundaries, [len(keys)]))
    return [(int(s), int(e)) for s, e in zip(starts, ends)]


@dataclass(frozen=True)
class PriceInterval:
    """Contiguous block of minutes sharing one price in the new scheme."""

    start_minute: int
    end_minute: int
    price: float

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute


class PricingVector:
    """
    Partition of the day into constant-price intervals.

    Args:
        base_scheme: Baseline per-minute prices (kept for reference).
        new_scheme: New per-minute prices, partitioned into intervals.
    """

    def __init__(
        self,
        base_scheme: Sequence[float] | np.ndarray,
        new_scheme: Sequence[float] | np.ndarray,
    ) -> None:
        self.base_scheme = np.asarray(base_scheme, dtype=float)
        self.new_scheme = np.asarray(new_scheme, dtype=float)
        self.prices: List[PriceInterval] = [
            PriceInterval(start, end, float(self.new_scheme[start]))
            for start, end in _contiguous_runs(self.new_scheme)
        ]
        # first interval wins on ties
        self.cheapest: int = int(np.argmin([interval.price for interval in self.prices]))

    def __len__(self) -> int:
        return len(self.prices)

    def __iter__(self):
        return iter(self.prices)

    @property
    def is_uniform(self) -> bool:
        return len(self.prices) <= 1

    @property
    def cheapest_interval(self) -> PriceInterval:
        return self.prices[self.cheapest]


@dataclass(frozen=True)
class Incentive:
    """
    One contiguous interval where the new price differs from the baseline.

    Attributes:
        start_minute: First minute of the interval.
        end_minute: Minute after the last one (exclusive bound).
        base: Baseline price inside the interval.
        price: New price inside the interval.
        before_difference: New price inside the interval minus the new price
            of the minute just before it (wrapping across midnight).
        after_difference: New price of the minute just after the interval
            minus the new price inside it (wrapping across midnight).
    """

    start_minute: int
    end_minute: int
    base: float
    price: float
    before_difference: float
    after_difference: float

    @property
    def is_penalty(self) -> bool:
        return self.price > self.base

    @property
    def length(self) -> int:
        return self.end_minute - self.start_minute

    def get_before_difference(self) -> float:
        return self.before_difference

    def get_after_difference(self) -> float:
        return self.after_difference


def derive_incentives(
    base_scheme: Sequence[float] | np.ndarray,
    new_scheme: Sequence[float] | np.ndarray,
) -> List[Incentive]:
    """
    List the incentives implied by moving from ``base_scheme`` to ``new_scheme``.

    Incentives are returned in chronological order; the incentive-window
    shifting policy applies them in exactly this order.

    Args:
        base_scheme: Baseline per-minute prices (length 1440).
        new_scheme: New per-minute prices (length 1440).

    Returns:
        List of Incentive, one per maximal run of minutes where the
        ``(base, new)`` price pair is constant and the two prices differ.
    """
    base = np.asarray(base_scheme, dtype=float)
    new = np.asarray(new_scheme, dtype=float)
    if base.shape != (MINUTES_PER_DAY,) or new.shape != (MINUTES_PER_DAY,):
        raise ValueError("pricing schemes must have one price per minute of the day")

    incentives: List[Incentive] = []
    for start, end in _contiguous_runs(np.column_stack((base, new))):
        if base[start] == new[start]:
            continue
        inside = float(new[start])
        before = float(new[wrap_minute(start - 1)])
        after = float(new[wrap_minute(end)])
        incentives.append(
            Incentive(
                start_minute=start,
                end_minute=end,
                base=float(base[start]),
                price=inside,
                before_difference=inside - before,
                after_difference=after - inside,
            )
        )
    return incentives


class IncentiveVector:
    """Ordered collection of incentives for a pair of schemes."""

    def __init__(
        self,
        base_scheme: Sequence[float] | np.ndarray,
        new_scheme: Sequence[float] | np.ndarray,
    ) -> None:
        self.incentives = derive_incentives(base_scheme, new_scheme)

    def __len__(self) -> int:
        return len(self.incentives)

    def __iter__(self):
        return iter(self.incentives)
