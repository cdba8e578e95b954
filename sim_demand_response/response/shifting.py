"""
Load-shifting engine.

Redistributes the probability mass of a per-minute activity distribution when
the household moves from a baseline pricing scheme to a new one. Three
policies are available:

* ``OPTIMAL``: every minute is re-weighted by the inverse of its new price and
  the whole day is renormalized (a fully price-rational consumer).
* ``NORMAL`` (incentive-window): mass is moved locally around every interval
  whose price changed, using a fixed-size shifting window on one or both
  sides of the interval.
* ``DISCRETE``: mass is moved from every pricing interval into the single
  cheapest interval of the day.

All policies conserve the total mass of the input. Minute indices wrap modulo
1440 because activity around midnight is continuous across the day boundary.

`apply_shift` is the entry point used by the distributions: it validates the
schemes, rejects inputs that would divide by zero (returning a rejected
`ShiftResult` instead of raising) and never modifies the array it is given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import numpy as np

from ..config import get_shifting_window
from ..day_utils import MINUTES_PER_DAY
from .pricing import Incentive, PricingVector, derive_incentives

logger = logging.getLogger(__name__)


class ShiftingPolicy(Enum):
    """Selectable shifting algorithms (legacy integer codes 0, 1, 2)."""

    OPTIMAL = "optimal"
    NORMAL = "normal"
    DISCRETE = "discrete"

    @classmethod
    def from_value(cls, value: "ShiftingPolicy | str | int") -> "ShiftingPolicy":
        """
        Resolve a policy from a member, a name or a legacy integer code.

        Raises:
            ValueError: If the value does not name a known policy.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            codes = {0: cls.OPTIMAL, 1: cls.NORMAL, 2: cls.DISCRETE}
            if value in codes:
                return codes[value]
            raise ValueError(f"Unknown shifting policy code: {value}")
        key = str(value).strip().lower()
        aliases = {"incentive-window": cls.NORMAL, "incentive_window": cls.NORMAL}
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown shifting policy: {value!r}") from None


class IncentiveCase(Enum):
    """Which side(s) of an incentive interval take part in the redistribution."""

    BOTH = "both"
    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


@dataclass(frozen=True)
class ShiftResult:
    """
    Outcome of a shifting operation.

    Attributes:
        policy: Policy that produced the result.
        bins: Shifted per-minute (or aggregated) masses, None when rejected.
        reason: Why the shift was rejected, None on success.
    """

    policy: ShiftingPolicy
    bins: np.ndarray | None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.bins is not None

    @classmethod
    def rejected(cls, policy: ShiftingPolicy, reason: str) -> "ShiftResult":
        return cls(policy=policy, bins=None, reason=reason)


def classify_incentive(incentive: Incentive) -> IncentiveCase:
    """
    Decide where mass moves for one incentive.

    The rules are evaluated in order and a later match overrides an earlier
    one; a combination that matches no rule is treated as NONE.
    """
    before = incentive.before_difference
    after = incentive.after_difference
    case = IncentiveCase.NONE
    if incentive.is_penalty:
        if before > 0 and after < 0:
            case = IncentiveCase.BOTH
        if before > 0 and after >= 0:
            case = IncentiveCase.LEFT
        if before <= 0 and after < 0:
            case = IncentiveCase.RIGHT
        if before < 0 and after > 0:
            case = IncentiveCase.NONE
    else:
        if before < 0 and after > 0:
            case = IncentiveCase.BOTH
        if before < 0 and after <= 0:
            case = IncentiveCase.LEFT
        if before >= 0 and after > 0:
            case = IncentiveCase.RIGHT
        if before > 0 and after < 0:
            case = IncentiveCase.NONE
    return case


def _minutes_before(start: int, count: int) -> np.ndarray:
    return (start - 1 - np.arange(count)) % MINUTES_PER_DAY


def _minutes_after(end: int, count: int) -> np.ndarray:
    return (end + np.arange(count)) % MINUTES_PER_DAY


def shift_optimal(values: np.ndarray, new_scheme: np.ndarray) -> np.ndarray:
    """
    Re-weight every minute by the inverse of its new price and renormalize.

    A uniform scheme leaves the input untouched. Prices must be strictly
    positive; `apply_shift` checks this before calling.
    """
    if np.all(new_scheme == new_scheme[0]):
        return values.copy()
    result = values / new_scheme
    return result / result.sum()


def apply_incentive(
    values: np.ndarray,
    incentive: Incentive,
    window: int,
) -> np.ndarray:
    """
    Redistribute mass around a single incentive, in place.

    Penalty: minutes inside the interval are scaled by ``base / price`` and the
    removed mass is spread evenly over ``window`` minutes next to it (half on
    each side for BOTH). Reward: ``2 * window`` minutes on the selected
    side(s) are scaled by ``price / base`` and the freed mass is spread evenly
    over the interval.

    Returns:
        The same ``values`` array, for chaining.
    """
    case = classify_incentive(incentive)
    if case is IncentiveCase.NONE:
        return values

    start, end = incentive.start_minute, incentive.end_minute

    if incentive.is_penalty:
        inside = values[start:end]
        scaled = inside * incentive.base / incentive.price
        over_diff = float(inside.sum() - scaled.sum())
        values[start:end] = scaled

        if case is IncentiveCase.BOTH:
            side = max(window // 2, 1)
            targets = np.concatenate((_minutes_before(start, side), _minutes_after(end, side)))
        elif case is IncentiveCase.LEFT:
            targets = _minutes_before(start, window)
        else:
            targets = _minutes_after(end, window)
        np.add.at(values, targets, over_diff / targets.size)
        return values

    side = 2 * window
    if case is IncentiveCase.BOTH:
        sources = np.concatenate((_minutes_before(start, side), _minutes_after(end, side)))
    elif case is IncentiveCase.LEFT:
        sources = _minutes_before(start, side)
    else:
        sources = _minutes_after(end, side)
    sources = np.unique(sources)

    original = values[sources]
    scaled = original * incentive.price / incentive.base
    over_diff = float(original.sum() - scaled.sum())
    values[sources] = scaled
    values[start:end] += over_diff / (end - start)
    return values


def shift_incentive_window(
    values: np.ndarray,
    pricing: PricingVector,
    incentives: Iterable[Incentive],
    window: int,
) -> np.ndarray:
    """
    Apply every incentive sequentially to a copy of ``values``.

    Overlapping shifting windows make the result order-sensitive; incentives
    are applied in the order given (chronological for `derive_incentives`).
    A uniform new scheme returns an unchanged copy.
    """
    result = values.copy()
    if pricing.is_uniform:
        return result
    for incentive in incentives:
        apply_incentive(result, incentive, window)
    return result


def shift_discrete(values: np.ndarray, pricing: PricingVector) -> np.ndarray:
    """
    Move mass from every pricing interval into the cheapest interval.

    Each non-cheapest interval is scaled by ``cheapest_price / interval_price``
    and the removed mass is added evenly over the cheapest interval. Intervals
    are processed in schedule order; a single-interval day is returned as an
    unchanged copy.
    """
    result = values.copy()
    if pricing.is_uniform:
        return result

    cheapest = pricing.cheapest_interval
    for index, interval in enumerate(pricing.prices):
        if index == pricing.cheapest:
            continue
        segment = result[interval.start_minute : interval.end_minute]
        scaled = segment * cheapest.price / interval.price
        removed = float(segment.sum() - scaled.sum())
        result[interval.start_minute : interval.end_minute] = scaled
        result[cheapest.start_minute : cheapest.end_minute] += removed / cheapest.duration
    return result


def _as_day_array(values: Sequence[float] | np.ndarray, label: str) -> np.ndarray:
    array = np.array(values, dtype=float)
    if array.shape != (MINUTES_PER_DAY,):
        raise ValueError(f"{label} must have shape ({MINUTES_PER_DAY},), got {array.shape}")
    return array


def _rejection_reason(
    policy: ShiftingPolicy,
    values: np.ndarray,
    base: np.ndarray,
    new: np.ndarray,
) -> str | None:
    if not np.all(np.isfinite(values)):
        return "distribution contains non-finite values"
    if not (np.all(np.isfinite(new)) and np.all(np.isfinite(base))):
        return "pricing schemes contain non-finite prices"
    if np.any(new <= 0):
        return "new pricing scheme contains zero or negative prices"
    if policy is ShiftingPolicy.NORMAL and np.any(base <= 0):
        return "baseline pricing scheme contains zero or negative prices"
    if policy is ShiftingPolicy.OPTIMAL and np.sum(values / new) <= 0:
        return "distribution has no mass to redistribute"
    return None


def apply_shift(
    values: Sequence[float] | np.ndarray,
    policy: ShiftingPolicy | str | int,
    base_scheme: Sequence[float] | np.ndarray,
    new_scheme: Sequence[float] | np.ndarray,
    window: int | None = None,
) -> ShiftResult:
    """
    Run one shifting policy on a per-minute distribution.

    Args:
        values: Per-minute masses (length 1440), expected to sum to 1.
        policy: Policy member, name or legacy integer code.
        base_scheme: Baseline per-minute prices (length 1440).
        new_scheme: New per-minute prices (length 1440).
        window: Shifting window in minutes for the incentive-window policy;
            defaults to the configured value.

    Returns:
        ShiftResult holding a new array, or a rejection reason when the
        inputs would make the computation degenerate.

    Raises:
        ValueError: If an array does not have one entry per minute of the day,
            or the policy is unknown.
    """
    resolved = ShiftingPolicy.from_value(policy)
    current = _as_day_array(values, "values")
    base = _as_day_array(base_scheme, "base_scheme")
    new = _as_day_array(new_scheme, "new_scheme")
    window = get_shifting_window() if window is None else int(window)

    reason = _rejection_reason(resolved, current, base, new)
    if reason is None and window <= 0:
        reason = "shifting window must be positive"
    if reason is not None:
        logger.warning("Rejected %s shift: %s", resolved.value, reason)
        return ShiftResult.rejected(resolved, reason)

    if resolved is ShiftingPolicy.OPTIMAL:
        shifted = shift_optimal(current, new)
    else:
        pricing = PricingVector(base, new)
        if pricing.cheapest_interval.duration <= 0:
            logger.warning("Rejected %s shift: empty cheapest interval", resolved.value)
            return ShiftResult.rejected(resolved, "cheapest interval has zero duration")
        if resolved is ShiftingPolicy.NORMAL:
            shifted = shift_incentive_window(
                current, pricing, derive_incentives(base, new), window
            )
        else:
            shifted = shift_discrete(current, pricing)

    if not np.all(np.isfinite(shifted)):
        logger.warning("Rejected %s shift: result is not finite", resolved.value)
        return ShiftResult.rejected(resolved, "shift produced non-finite values")
    return ShiftResult(policy=resolved, bins=shifted)
