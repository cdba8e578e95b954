"""
Normal (Gaussian) distribution discretized into equal-width bins.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict

import numpy as np

from ..config import get_residual_mode
from ..errors import MalformedInputError
from .base import DiscretizedDistribution, ResidualMode

logger = logging.getLogger(__name__)

_SQRT_TWO_PI = math.sqrt(2.0 * math.pi)


def standard_normal_pdf(x: float) -> float:
    """Standard Gaussian density."""
    return math.exp(-(x * x) / 2.0) / _SQRT_TWO_PI


def standard_normal_cdf(z: float) -> float:
    """
    Standard Gaussian CDF via a Taylor expansion.

    Phi(z) = 0.5 + phi(z) * (z + z^3/3 + z^5/(3*5) + ...), summed until a term
    drops below 1e-5 in magnitude. Values beyond |z| > 8 are clamped to 0/1.
    """
    if z < -8.0:
        return 0.0
    if z > 8.0:
        return 1.0

    total = 0.0
    term = z
    i = 3
    while abs(term) > 1e-5:
        total += term
        term *= (z * z) / i
        i += 2
    return 0.5 + total * standard_normal_pdf(z)


def normal_cdf(x: float, mean: float, sigma: float) -> float:
    return standard_normal_cdf((x - mean) / sigma)


class NormalDistribution(DiscretizedDistribution):
    """
    Normal distribution with mean ``mean`` and standard deviation ``sigma``.

    Used by the activity models for start times (minute of day), durations
    (minutes) and number of daily uses. `precompute` turns the continuous
    density into a bin array through CDF differences, folding the mass that
    lies outside the requested range back into the bins so that they still
    sum to 1.

    Attributes:
        mean: Mean of the distribution.
        sigma: Standard deviation (strictly positive).
        residual_mode: How out-of-range mass is redistributed on precompute.

    Example:
        ```python
        import numpy as np
        from sim_demand_response.distributions import NormalDistribution

        start_time = NormalDistribution(mean=620.0, sigma=200.0)
        start_time.precompute(0, 1440, 1440)

        start_time.precomputed_probability_at(620)   # mass of minute 620
        start_time.sample_bin(rng=np.random.default_rng(7))
        ```

    Notes:
        - Changing a parameter does not recompute the bins; call
          `precompute` again to refresh them.
        - Bin ``i`` is centred on ``start + i * width``.
    """

    distribution_type = "Normal Distribution"
    description = "Gaussian probability density function"

    def __init__(
        self,
        mean: float = 0.0,
        sigma: float = 1.0,
        name: str = "Generic",
        residual_mode: ResidualMode | str | None = None,
    ) -> None:
        if sigma <= 0 or not math.isfinite(sigma):
            raise ValueError("sigma must be a positive finite number")
        if not math.isfinite(mean):
            raise ValueError("mean must be finite")
        super().__init__(name=name)
        self.mean = float(mean)
        self.sigma = float(sigma)
        self.residual_mode = ResidualMode.from_value(
            residual_mode if residual_mode is not None else get_residual_mode()
        )

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        residual_mode: ResidualMode | str | None = None,
    ) -> "NormalDistribution":
        """
        Build a distribution from a parameter file.

        The file holds the mean and the standard deviation on consecutive
        lines, optionally preceded by a ``<label>:<max value>`` header. When
        the header is present the distribution is precomputed over
        ``[0, max]`` with one bin per unit. Decimal commas are accepted.

        Raises:
            MalformedInputError: With the 1-based line of the bad entry.
        """
        file_path = Path(path)
        lines = file_path.read_text(encoding="utf-8").splitlines()
        numbered = [(number, line.strip()) for number, line in enumerate(lines, start=1) if line.strip()]

        max_value: int | None = None
        if numbered and ":" in numbered[0][1]:
            number, header = numbered.pop(0)
            try:
                max_value = int(header.split(":", 1)[1].strip())
            except ValueError as exc:
                raise MalformedInputError("invalid max value header", number) from exc

        if len(numbered) < 2:
            raise MalformedInputError(
                f"expected mean and sigma in {file_path}",
                numbered[-1][0] + 1 if numbered else len(lines) + 1,
            )

        values = []
        for number, line in numbered[:2]:
            try:
                values.append(float(line.replace(",", ".")))
            except ValueError as exc:
                raise MalformedInputError(f"not a number: {line!r}", number) from exc

        try:
            distribution = cls(values[0], values[1], name=str(file_path), residual_mode=residual_mode)
        except ValueError as exc:
            raise MalformedInputError(str(exc), numbered[1][0]) from exc
        if max_value is not None:
            distribution.precompute(0, max_value, max_value)
        return distribution

    @property
    def number_of_parameters(self) -> int:
        return 2

    def get_parameter(self, index: int) -> float:
        if index == 0:
            return self.mean
        if index == 1:
            return self.sigma
        return 0.0

    def set_parameter(self, index: int, value: float) -> None:
        if index == 0:
            self.mean = float(value)
        elif index == 1:
            if value <= 0:
                logger.warning("Ignoring non-positive sigma %s for %s", value, self.name)
                return
            self.sigma = float(value)

    def parameters(self) -> Dict[str, float]:
        return {"mean": self.mean, "sigma": self.sigma}

    def probability_at(self, x: int) -> float:
        return standard_normal_pdf((x - self.mean) / self.sigma) / self.sigma

    def precompute(self, start: int, end: int, n_bins: int) -> bool:
        """
        Discretize the distribution into ``n_bins`` equal-width bins.

        Bin ``i`` is centred on ``x = start + i * w`` (``w = (end - start) /
        n_bins``) and receives ``Phi(x + w/2) - Phi(x - w/2)``. The residual
        mass outside the covered range is added back according to
        `residual_mode`, so the bins sum to 1. The residual is taken as
        ``1 - sum(bins)`` instead of the ratio
        ``(Phi(start) + 1 - Phi(end)) / (1 - Phi(centre))``, which does not
        restore unit mass.

        Args:
            start: Lower bound of the domain (inclusive).
            end: Upper bound of the domain (inclusive).
            n_bins: Number of bins.

        Returns:
            True on success; False (with a warning, state unchanged) when
            ``start >= end`` or ``n_bins <= 0``.
        """
        if start >= end or n_bins <= 0:
            logger.warning(
                "Invalid precompute configuration for %s: start=%s end=%s bins=%s",
                self.name,
                start,
                end,
                n_bins,
            )
            return False

        width = (end - start) / float(n_bins)
        edges = start - width / 2.0 + width * np.arange(n_bins + 1)
        cdf = np.array([normal_cdf(edge, self.mean, self.sigma) for edge in edges])
        masses = np.clip(np.diff(cdf), 0.0, None)

        in_range = float(masses.sum())
        residual = 1.0 - in_range
        if self.residual_mode is ResidualMode.PROPORTIONAL and in_range > 0:
            masses += masses * residual / in_range
        else:
            if self.residual_mode is ResidualMode.PROPORTIONAL:
                logger.warning(
                    "No mass of %s falls in [%s, %s]; spreading residual equally",
                    self.name,
                    start,
                    end,
                )
            masses += residual / n_bins

        # a negative residual (approximation error) may push tail bins below 0
        masses = np.clip(masses, 0.0, None)
        masses /= masses.sum()
        self._replace_bins(masses, start, end)
        return True
