"""
Discretized probability distributions over consecutive integer bins.

The activity models describe *when* (minute of day) and *how long* (minutes)
an appliance runs through probability mass functions stored as bin arrays.
This module holds the behaviour shared by every variant: bin lookup,
inverse-CDF sampling, tail probabilities and the hooks into the load-shifting
engine.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Sequence

import numpy as np

from ..day_utils import aggregate_start_time_distribution
from ..response.shifting import ShiftingPolicy, ShiftResult, apply_shift

logger = logging.getLogger(__name__)


class ResidualMode(Enum):
    """
    How mass falling outside a discretization range is folded back in.

    PROPORTIONAL adds to every bin a share proportional to its own mass,
    EQUAL_SHARE adds the same amount to every bin.
    """

    PROPORTIONAL = "proportional"
    EQUAL_SHARE = "equal"

    @classmethod
    def from_value(cls, value: "ResidualMode | str") -> "ResidualMode":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in ("equal_share", "equal-share"):
            key = "equal"
        return cls(key)


class DiscretizedDistribution(ABC):
    """
    Abstract probability mass function over ``number_of_bins`` integer bins.

    A distribution starts without bins, is discretized by `precompute` (or is
    built directly from bin values), and can then be queried, sampled and
    transformed by the load-shifting engine. Every committed transformation
    keeps the bins summing to 1.

    Subclasses must implement:
    - probability_at(): closed-form density/frequency at an integer point
    - precompute(): populate the bin array
    - get_parameter() / set_parameter(): parameter introspection
    - parameters(): mapping used by serialization

    Attributes:
        name: Human-readable identifier (file name or "Generic").
        distribution_id: Identifier assigned by an external store.
        precomputed: Whether the bin array is populated.
        precompute_from: Inclusive lower bound of the discretized domain.
        precompute_to: Inclusive upper bound of the discretized domain.
        number_of_bins: Length of the bin array.
        bins: Probability mass per bin.

    Notes:
        - precompute, shift and move_peak replace ``bins`` wholesale; a single
          instance must not be mutated from several threads at once.
        - Preview methods only read ``bins`` and are safe to call
          concurrently on an unchanged instance.
        - Randomness is injected per call; each instance keeps its own
          fallback generator instead of sharing a process-wide one.
    """

    distribution_type: str = "Discretized Distribution"
    description: str = "Discretized probability mass function"

    def __init__(self, name: str = "Generic") -> None:
        self.name = name
        self.distribution_id = ""
        self.precomputed = False
        self.precompute_from = 0.0
        self.precompute_to = 0.0
        self.number_of_bins = 0
        self.bins: np.ndarray = np.zeros(0, dtype=float)
        self._fallback_rng = np.random.default_rng()

    @property
    def type(self) -> str:
        return self.distribution_type

    @property
    def bin_width(self) -> float:
        if self.number_of_bins == 0:
            return 0.0
        return (self.precompute_to - self.precompute_from) / self.number_of_bins

    @property
    @abstractmethod
    def number_of_parameters(self) -> int:
        """Number of scalar parameters exposed by `get_parameter`."""

    @abstractmethod
    def get_parameter(self, index: int) -> float:
        """Return parameter ``index`` (0.0 for unknown indices)."""

    @abstractmethod
    def set_parameter(self, index: int, value: float) -> None:
        """Update parameter ``index``; unknown indices are ignored."""

    @abstractmethod
    def parameters(self) -> Dict[str, float]:
        """Named parameters used by `to_dict`."""

    @abstractmethod
    def probability_at(self, x: int) -> float:
        """Instantaneous density (or frequency) at integer ``x``."""

    @abstractmethod
    def precompute(self, start: int, end: int, n_bins: int) -> bool:
        """
        Populate the bin array over ``[start, end]``.

        Returns:
            True when bins were (re)computed, False when the configuration
            was rejected and the previous state was kept.
        """

    def _replace_bins(
        self,
        values: Sequence[float] | np.ndarray,
        start: float | None = None,
        end: float | None = None,
    ) -> None:
        bins = np.array(values, dtype=float)
        self.bins = bins
        self.number_of_bins = int(bins.size)
        if start is not None:
            self.precompute_from = float(start)
        if end is not None:
            self.precompute_to = float(end)
        self.precomputed = True

    def restore_bins(
        self,
        values: Sequence[float] | np.ndarray,
        start: float,
        end: float,
    ) -> None:
        """
        Install bins computed elsewhere (e.g. loaded from a store).

        Raises:
            ValueError: If the values are empty, negative or ``start >= end``.
        """
        bins = np.asarray(values, dtype=float)
        if bins.ndim != 1 or bins.size == 0:
            raise ValueError("bins must be a non-empty 1D sequence")
        if np.any(bins < 0):
            raise ValueError("bins must be non-negative")
        if start >= end:
            raise ValueError("start must be lower than end")
        self._replace_bins(bins, start, end)

    def precomputed_probability_at(self, x: int) -> float | None:
        """
        Mass of the bin covering ``x``.

        ``x == precompute_to`` resolves to the last bin. Points outside
        ``[precompute_from, precompute_to]`` have mass 0.

        Returns:
            The bin mass, or None when the distribution was never
            precomputed.
        """
        if not self.precomputed:
            return None
        if x < self.precompute_from or x > self.precompute_to:
            return 0.0
        index = int(math.floor((x - self.precompute_from) / self.bin_width))
        if index >= self.number_of_bins:
            index = self.number_of_bins - 1
        return float(self.bins[index])

    def sample_bin(self, rng: np.random.Generator | None = None) -> int | None:
        """
        Draw one bin index by inverse-CDF sampling.

        Draws ``u ~ U(0, 1)`` and returns the first index whose cumulative
        mass exceeds ``u``.

        Args:
            rng: Random generator to draw from. Defaults to the instance's
                own fallback generator.

        Returns:
            Bin index, or None when not precomputed or when the cumulative
            mass never exceeds ``u`` (unnormalized bins).
        """
        if not self.precomputed:
            return None
        generator = rng if rng is not None else self._fallback_rng
        dice = generator.random()
        cumulative = np.cumsum(self.bins)
        index = int(np.searchsorted(cumulative, dice, side="right"))
        if index >= self.number_of_bins:
            return None
        return index

    def probability_greater_or_equal(self, x: int) -> float | None:
        """Total mass of bins ``x .. number_of_bins - 1`` (None if not precomputed)."""
        if not self.precomputed:
            return None
        start = max(int(x), 0)
        return float(self.bins[start:].sum())

    def probability_less(self, x: int) -> float | None:
        """Complement of `probability_greater_or_equal`."""
        tail = self.probability_greater_or_equal(x)
        if tail is None:
            return None
        return 1.0 - tail

    def shift_preview(
        self,
        policy: ShiftingPolicy | str | int,
        base_scheme: Sequence[float] | np.ndarray,
        new_scheme: Sequence[float] | np.ndarray,
        binned: bool = False,
        window: int | None = None,
    ) -> ShiftResult:
        """
        Compute the shifted distribution without touching the stored bins.

        Args:
            policy: Shifting policy (member, name or legacy code).
            base_scheme: Baseline per-minute prices.
            new_scheme: New per-minute prices.
            binned: Aggregate the result into ten-minute bins.
            window: Optional shifting window override (minutes).
        """
        resolved = ShiftingPolicy.from_value(policy)
        if not self.precomputed:
            logger.warning("Cannot shift %s: distribution not precomputed", self.name)
            return ShiftResult.rejected(resolved, "distribution has not been precomputed")
        result = apply_shift(self.bins, resolved, base_scheme, new_scheme, window=window)
        if binned and result.ok:
            return ShiftResult(
                policy=result.policy,
                bins=aggregate_start_time_distribution(result.bins),
            )
        return result

    def shift(
        self,
        policy: ShiftingPolicy | str | int,
        base_scheme: Sequence[float] | np.ndarray,
        new_scheme: Sequence[float] | np.ndarray,
        window: int | None = None,
    ) -> ShiftResult:
        """
        Shift the distribution and commit the new bins.

        Rejected shifts leave the stored bins untouched.
        """
        result = self.shift_preview(policy, base_scheme, new_scheme, window=window)
        if result.ok:
            self._replace_bins(result.bins)
        return result

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the stable ``{name, type, parameters, bins}`` contract.

        The discretization domain is included so the bins can be restored.
        """
        return {
            "name": self.name,
            "type": self.distribution_type,
            "parameters": self.parameters(),
            "bins": [float(value) for value in self.bins],
            "domain": {
                "from": self.precompute_from,
                "to": self.precompute_to,
            }
            if self.precomputed
            else None,
        }

    def status(self) -> str:
        """Human-readable dump of parameters and bin contents."""
        params = " ".join(f"{key.capitalize()}: {value}" for key, value in self.parameters().items())
        lines = [f"{self.distribution_type} with {params}".rstrip(), f"Precomputed: {self.precomputed}"]
        if self.precomputed:
            lines.append(
                f"Number of Bins: {self.number_of_bins} "
                f"Starting Point: {self.precompute_from} "
                f"Ending Point: {self.precompute_to}"
            )
            lines.append(np.array2string(self.bins, threshold=self.number_of_bins + 1))
        return "\n".join(lines)
