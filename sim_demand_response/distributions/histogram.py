"""
Empirical histogram distribution built from observed frequencies.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Sequence

import numpy as np
import pandas as pd

from ..errors import MalformedInputError
from .base import DiscretizedDistribution

logger = logging.getLogger(__name__)

_BAD_ROW = "<malformed>"


class HistogramDistribution(DiscretizedDistribution):
    """
    Distribution whose bins are the observed frequencies themselves.

    One bin per integer value starting at 0 (minute of day, duration in
    minutes, number of daily uses). The bins are available immediately; there
    is nothing to precompute.

    Attributes:
        bins: Frequencies, normalized to sum to 1 unless disabled.
    """

    distribution_type = "Histogram Distribution"
    description = "Histogram probability frequency function"

    def __init__(
        self,
        values: Sequence[float] | np.ndarray,
        name: str = "Generic",
        normalize: bool = True,
    ) -> None:
        frequencies = np.array(values, dtype=float)
        if frequencies.ndim != 1 or frequencies.size == 0:
            raise ValueError("values must be a non-empty 1D sequence")
        if np.any(frequencies < 0) or not np.all(np.isfinite(frequencies)):
            raise ValueError("values must be finite and non-negative")
        if normalize:
            total = frequencies.sum()
            if total <= 0:
                raise ValueError("values must contain some mass")
            frequencies = frequencies / total
        super().__init__(name=name)
        self._replace_bins(frequencies, 0, frequencies.size)

    @classmethod
    def from_file(cls, path: str | Path, normalize: bool = True) -> "HistogramDistribution":
        """
        Load a histogram file.

        The first line is a header; each following line is ``index-value``
        (decimal commas accepted). Indices missing from the file get a
        frequency of 0 and the number of bins is the highest index plus one.

        Raises:
            MalformedInputError: With the 1-based line of the first bad row.
        """
        file_path = Path(path)
        try:
            frame = pd.read_csv(
                file_path,
                sep="-",
                header=None,
                skiprows=1,
                names=["index", "value"],
                dtype=str,
                skip_blank_lines=True,
                engine="python",
                # keep over-long rows (e.g. "1-2-9", "3--0.5") with an
                # unparsable value so they are reported with their line
                on_bad_lines=lambda fields: [fields[0], _BAD_ROW],
            )
        except pd.errors.EmptyDataError as exc:
            raise MalformedInputError(f"no histogram rows in {file_path}", 2) from exc
        except pd.errors.ParserError as exc:
            raise MalformedInputError(f"invalid histogram file {file_path}: {exc}") from exc
        indices = pd.to_numeric(frame["index"].str.strip(), errors="coerce")
        values = pd.to_numeric(frame["value"].str.strip().str.replace(",", ".", regex=False), errors="coerce")

        invalid = indices.isna() | values.isna() | (indices < 0) | (indices % 1 != 0)
        if invalid.any():
            # frame rows start on the second line of the file
            first_bad = int(np.flatnonzero(invalid.to_numpy())[0])
            raise MalformedInputError(f"invalid histogram row in {file_path}", first_bad + 2)
        if frame.empty:
            raise MalformedInputError(f"no histogram rows in {file_path}", 2)

        series = pd.Series(values.to_numpy(), index=indices.astype(int).to_numpy())
        series = series.groupby(level=0).last()
        frequencies = np.zeros(int(series.index.max()) + 1, dtype=float)
        frequencies[series.index.to_numpy()] = series.to_numpy()
        return cls(frequencies, name=str(file_path), normalize=normalize)

    @property
    def number_of_parameters(self) -> int:
        return 1

    def get_parameter(self, index: int) -> float:
        return float(self.number_of_bins)

    def set_parameter(self, index: int, value: float) -> None:
        logger.debug("Histogram %s has no settable parameters", self.name)

    def parameters(self) -> Dict[str, float]:
        return {"bins": float(self.number_of_bins)}

    def precompute(self, start: int, end: int, n_bins: int) -> bool:
        logger.debug("Histogram %s is already discretized; precompute ignored", self.name)
        return True

    def probability_at(self, x: int) -> float:
        if x < 0 or x >= self.number_of_bins:
            return 0.0
        return float(self.bins[x])

    def moving_average(self, index: int, window: int) -> np.ndarray | None:
        """
        Smooth the bins around ``index`` and renormalize.

        The window is rounded up to an odd width and ``side = window // 2``.
        Every bin within ``index ± side`` becomes the mean of the ``window``
        bins centred on it (taken from the unsmoothed values). The change in
        total mass is then compensated by an equal additive correction over
        ``window`` bins just outside the smoothed region on each side. All
        indices wrap around the ends of the bin array.

        Bins driven below 0 by the correction are clipped and the result is
        renormalized.

        Returns:
            New bin array, or None when ``window`` is not positive.
        """
        if window <= 0:
            logger.warning("Invalid moving-average window %s for %s", window, self.name)
            return None
        if window % 2 == 0:
            window += 1
        side = window // 2
        n = self.number_of_bins

        original = self.bins
        values = original.copy()
        offsets = np.arange(-side, side + 1)
        centres = index + offsets
        for centre in centres:
            values[centre % n] = original[(centre + offsets) % n].mean()

        diff = 1.0 - float(values.sum())
        correction_bins = np.concatenate(
            (
                (index + side + 1 + np.arange(window)) % n,
                (index - side - 1 - np.arange(window)) % n,
            )
        )
        np.add.at(values, correction_bins, diff / correction_bins.size)

        # a negative correction can push sparse neighbours below 0
        if np.any(values < 0):
            values = np.clip(values, 0.0, None)
            total = float(values.sum())
            if total <= 0:
                logger.warning("Moving average around %s left %s without mass", index, self.name)
                return None
            logger.debug("Clipped negative bins after smoothing %s around %s", self.name, index)
            values /= total
        return values

    def move_peak(self, index: int, window: int) -> bool:
        """Commit `moving_average` to the bins; False when rejected."""
        values = self.moving_average(index, window)
        if values is None:
            return False
        self._replace_bins(values)
        return True

    def move_peak_preview(self, index: int, window: int) -> np.ndarray | None:
        return self.moving_average(index, window)
