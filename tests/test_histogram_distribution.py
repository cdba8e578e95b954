from __future__ import annotations

import numpy as np
import pytest

from sim_demand_response.distributions import HistogramDistribution
from sim_demand_response.errors import MalformedInputError


def test_histogram_normalizes_counts() -> None:
    hist = HistogramDistribution([1, 1, 2])
    np.testing.assert_allclose(hist.bins, [0.25, 0.25, 0.5])
    assert hist.precomputed
    assert hist.number_of_bins == 3
    assert hist.get_parameter(0) == 3.0


def test_histogram_rejects_empty_or_negative_values() -> None:
    with pytest.raises(ValueError):
        HistogramDistribution([])
    with pytest.raises(ValueError):
        HistogramDistribution([0.5, -0.1])
    with pytest.raises(ValueError):
        HistogramDistribution([0.0, 0.0])


def test_probability_lookups() -> None:
    hist = HistogramDistribution([0.2, 0.3, 0.5])
    assert hist.probability_at(-1) == 0.0
    assert hist.probability_at(3) == 0.0
    assert hist.probability_at(2) == pytest.approx(0.5)
    assert hist.precomputed_probability_at(1) == pytest.approx(0.3)
    # upper domain bound resolves to the last bin
    assert hist.precomputed_probability_at(3) == pytest.approx(0.5)
    assert hist.probability_greater_or_equal(1) == pytest.approx(0.8)
    assert hist.probability_less(1) == pytest.approx(0.2)


def test_precompute_is_a_no_op() -> None:
    hist = HistogramDistribution([0.2, 0.8])
    assert hist.precompute(0, 100, 10)
    assert hist.number_of_bins == 2


def test_from_file_fills_missing_indices(tmp_path) -> None:
    hist_file = tmp_path / "DurationHistogram.csv"
    hist_file.write_text("Duration-Frequency\n0-0,2\n1-0,3\n3-0,5\n", encoding="utf-8")

    hist = HistogramDistribution.from_file(hist_file)
    np.testing.assert_allclose(hist.bins, [0.2, 0.3, 0.0, 0.5])
    assert hist.name == str(hist_file)


def test_from_file_reports_bad_row(tmp_path) -> None:
    hist_file = tmp_path / "broken.csv"
    hist_file.write_text("Index-Value\n0-0.5\n1-abc\n", encoding="utf-8")

    with pytest.raises(MalformedInputError) as excinfo:
        HistogramDistribution.from_file(hist_file)
    assert excinfo.value.line_number == 3


def test_sampling_uses_injected_rng() -> None:
    hist = HistogramDistribution([0.0, 1.0, 0.0])
    rng = np.random.default_rng(3)
    assert {hist.sample_bin(rng) for _ in range(50)} == {1}


def test_moving_average_spreads_isolated_peak() -> None:
    values = np.zeros(1440)
    values[100] = 1.0
    hist = HistogramDistribution(values)

    smoothed = hist.move_peak_preview(100, 3)
    np.testing.assert_allclose(smoothed[99:102], [1 / 3, 1 / 3, 1 / 3])
    assert smoothed.sum() == pytest.approx(1.0)
    # preview leaves the stored bins untouched
    assert hist.bins[100] == 1.0


def test_moving_average_rounds_even_window_up() -> None:
    values = np.zeros(50)
    values[20] = 1.0
    hist = HistogramDistribution(values)

    smoothed = hist.moving_average(20, 4)
    np.testing.assert_allclose(smoothed[18:23], [0.2] * 5)
    assert smoothed.sum() == pytest.approx(1.0)


def test_moving_average_wraps_at_array_ends() -> None:
    values = np.zeros(10)
    values[0] = 1.0
    hist = HistogramDistribution(values)

    smoothed = hist.moving_average(0, 3)
    np.testing.assert_allclose(smoothed[[9, 0, 1]], [1 / 3, 1 / 3, 1 / 3])
    assert smoothed.sum() == pytest.approx(1.0)


def test_moving_average_correction_restores_unit_mass() -> None:
    values = np.full(20, 0.7 / 19)
    values[0] = 0.3
    hist = HistogramDistribution(values)
    original = hist.bins.copy()

    smoothed = hist.moving_average(2, 3)
    assert smoothed.sum() == pytest.approx(1.0)

    # corrections land on 3 bins after (4, 5, 6) and 3 before, wrapping (0, 19, 18)
    delta = smoothed - original
    assert delta[19] == pytest.approx(delta[18])
    assert delta[19] == pytest.approx(delta[4])
    assert delta[7] == pytest.approx(0.0)


def test_move_peak_commits_and_rejects_bad_window() -> None:
    values = np.zeros(30)
    values[10] = 1.0
    hist = HistogramDistribution(values)

    assert hist.move_peak(10, 0) is False
    assert hist.move_peak_preview(10, -2) is None
    assert hist.bins[10] == 1.0

    assert hist.move_peak(10, 5) is True
    assert hist.bins[10] == pytest.approx(0.2)
    assert hist.bins.sum() == pytest.approx(1.0)


def test_move_peak_never_commits_negative_bins() -> None:
    values = np.zeros(20)
    values[7] = 1.0
    hist = HistogramDistribution(values)

    assert hist.move_peak(5, 3) is True
    assert np.all(hist.bins >= 0.0)
    assert hist.bins.sum() == pytest.approx(1.0)
    # smoothed bin 6 (1/3) and corrected spike (1 - 1/18) keep their ratio
    assert hist.bins[6] == pytest.approx(6 / 23)
    assert hist.bins[7] == pytest.approx(17 / 23)
    assert hist.sample_bin(np.random.default_rng(0)) in (6, 7)


@pytest.mark.parametrize(
    "body, line",
    [
        ("0-1\n1-2-9\n2-3\n", 3),
        ("0-1\n1-2\n2-3-4\n", 4),
        ("0-1\n3--0.5\n", 3),
    ],
)
def test_from_file_reports_line_of_over_long_row(tmp_path, body, line) -> None:
    hist_file = tmp_path / "extra_fields.csv"
    hist_file.write_text("Index-Value\n" + body, encoding="utf-8")

    with pytest.raises(MalformedInputError) as excinfo:
        HistogramDistribution.from_file(hist_file)
    assert excinfo.value.line_number == line
