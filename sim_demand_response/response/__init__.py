"""
Demand-response layer: pricing comparison and load shifting.

* `pricing` turns a baseline and a new per-minute pricing scheme into the
  interval views used by the engine (`PricingVector`, `Incentive`).
* `shifting` implements the three mass-conserving shifting policies.
"""

from __future__ import annotations

from .pricing import Incentive, IncentiveVector, PriceInterval, PricingVector, derive_incentives
from .shifting import (
    IncentiveCase,
    ShiftingPolicy,
    ShiftResult,
    apply_incentive,
    apply_shift,
    classify_incentive,
    shift_discrete,
    shift_incentive_window,
    shift_optimal,
)

__all__ = [
    # Pricing comparison
    "PriceInterval",
    "PricingVector",
    "Incentive",
    "IncentiveVector",
    "derive_incentives",
    # Shifting engine
    "ShiftingPolicy",
    "IncentiveCase",
    "ShiftResult",
    "classify_incentive",
    "apply_incentive",
    "apply_shift",
    "shift_optimal",
    "shift_incentive_window",
    "shift_discrete",
]
