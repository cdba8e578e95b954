from .day_utils import MINUTES_PER_DAY, TEN_MINUTES, aggregate_start_time_distribution
from .distributions import (
    DiscretizedDistribution,
    HistogramDistribution,
    NormalDistribution,
    ResidualMode,
    distribution_from_dict,
)
from .errors import MalformedInputError
from .parsing import load_scheme_file, parse_measurements_file, parse_pricing_scheme, parse_scheme
from .response import (
    Incentive,
    IncentiveCase,
    IncentiveVector,
    PriceInterval,
    PricingVector,
    ShiftingPolicy,
    ShiftResult,
    apply_shift,
    derive_incentives,
)

__all__ = [
    "MINUTES_PER_DAY",
    "TEN_MINUTES",
    "aggregate_start_time_distribution",
    "DiscretizedDistribution",
    "NormalDistribution",
    "HistogramDistribution",
    "ResidualMode",
    "distribution_from_dict",
    "MalformedInputError",
    "parse_pricing_scheme",
    "parse_scheme",
    "load_scheme_file",
    "parse_measurements_file",
    "PriceInterval",
    "PricingVector",
    "Incentive",
    "IncentiveVector",
    "derive_incentives",
    "ShiftingPolicy",
    "IncentiveCase",
    "ShiftResult",
    "apply_shift",
]
