"""
Probability-distribution engine.

* `base.DiscretizedDistribution` – shared bin lookup, sampling, tail sums and
  the hooks into the load-shifting engine.
* `normal.NormalDistribution` – Gaussian discretized through a Taylor CDF.
* `histogram.HistogramDistribution` – empirical frequencies with peak
  smoothing.
"""

from __future__ import annotations

from typing import Any, Mapping

from .base import DiscretizedDistribution, ResidualMode
from .histogram import HistogramDistribution
from .normal import NormalDistribution, normal_cdf, standard_normal_cdf, standard_normal_pdf


def distribution_from_dict(payload: Mapping[str, Any]) -> DiscretizedDistribution:
    """
    Rebuild a distribution from its `to_dict` form.

    Raises:
        ValueError: If the type is unknown or the payload is inconsistent.
    """
    dist_type = payload.get("type")
    name = payload.get("name") or "Generic"
    bins = payload.get("bins") or []
    domain = payload.get("domain")

    if dist_type == NormalDistribution.distribution_type:
        params = payload.get("parameters") or {}
        distribution = NormalDistribution(
            mean=float(params.get("mean", 0.0)),
            sigma=float(params.get("sigma", 1.0)),
            name=name,
        )
        if bins and domain:
            distribution.restore_bins(bins, domain["from"], domain["to"])
        return distribution

    if dist_type == HistogramDistribution.distribution_type:
        return HistogramDistribution(bins, name=name, normalize=False)

    raise ValueError(f"Unsupported distribution type: {dist_type!r}")


__all__ = [
    "DiscretizedDistribution",
    "ResidualMode",
    "NormalDistribution",
    "HistogramDistribution",
    "standard_normal_pdf",
    "standard_normal_cdf",
    "normal_cdf",
    "distribution_from_dict",
]
