"""
Parsers for the textual inputs consumed by the shifting engine.

Pricing schemes are written one interval per line as ``HH:MM-HH:MM-price``,
e.g. ``00:00-06:59-0.08``. Both clock times are inclusive, so
``00:00-23:59-0.2`` covers the whole day. Validation reports the 1-based line
of the first malformed entry instead of raising, so that callers can point
the user at the offending line.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

import numpy as np

from .day_utils import MINUTES_PER_DAY, minute_of_day
from .errors import MalformedInputError

logger = logging.getLogger(__name__)


def _parse_clock(token: str) -> int:
    parts = token.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"invalid clock time {token!r}")
    return minute_of_day(int(parts[0]), int(parts[1]))


def _parse_line(line: str) -> Tuple[int, int, float]:
    fields = line.split("-")
    if len(fields) != 3:
        raise ValueError(f"expected 'HH:MM-HH:MM-price', got {line!r}")
    start = _parse_clock(fields[0])
    end = _parse_clock(fields[1])
    if start >= end:
        raise ValueError(f"interval start {fields[0]} is not before end {fields[1]}")
    price = float(fields[2].strip().replace(",", "."))
    return start, end, price


def _scheme_lines(text: str) -> List[Tuple[int, str]]:
    return [
        (number, line)
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip()
    ]


def parse_pricing_scheme(text: str) -> int | None:
    """
    Validate a pricing scheme.

    Args:
        text: Scheme text, one ``HH:MM-HH:MM-price`` interval per line.

    Returns:
        1-based line number of the first malformed entry, or None when the
        whole scheme is valid. Blank lines are ignored but still counted.
    """
    for number, line in _scheme_lines(text):
        try:
            _parse_line(line)
        except ValueError as exc:
            logger.debug("Pricing scheme line %d rejected: %s", number, exc)
            return number
    return None


def parse_scheme(text: str) -> np.ndarray:
    """
    Expand a pricing scheme into a per-minute price array.

    Later lines overwrite earlier ones where intervals overlap; minutes not
    covered by any line keep a price of 0.

    Raises:
        MalformedInputError: If any line fails validation.
    """
    prices = np.zeros(MINUTES_PER_DAY, dtype=float)
    for number, line in _scheme_lines(text):
        try:
            start, end, price = _parse_line(line)
        except ValueError as exc:
            raise MalformedInputError(str(exc), line_number=number) from exc
        prices[start : end + 1] = price
    return prices


def load_scheme_file(path: str | Path) -> np.ndarray:
    """Read and expand a pricing scheme stored in a text file."""
    return parse_scheme(Path(path).read_text(encoding="utf-8"))


def parse_measurements_file(path: str | Path, active_only: bool = True) -> int | None:
    """
    Check a CSV measurement file before it is handed to the training layer.

    The first line is a header; every following row must hold a timestamp and
    either the active power (``active_only``) or active and reactive power.

    Returns:
        1-based line number of the first malformed row, or None.
    """
    expected_columns = 2 if active_only else 3
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    for number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        fields = line.split(",")
        if len(fields) != expected_columns:
            return number
        try:
            for value in fields[1:]:
                float(value)
        except ValueError:
            return number
    return None
