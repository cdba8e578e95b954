from __future__ import annotations

import numpy as np
import pytest

from sim_demand_response.distributions import HistogramDistribution, NormalDistribution
from sim_demand_response.errors import MalformedInputError
from sim_demand_response.persistence import PersistenceService


def test_normal_distribution_round_trip(persistence: PersistenceService):
    """Verify a precomputed Normal distribution is restored with its bins."""
    start_time = NormalDistribution(620.0, 200.0, name="washing_machine_start")
    start_time.precompute(0, 1440, 144)

    record = persistence.upsert_distribution(start_time)
    assert record.id is not None
    assert record.distribution_type == "Normal Distribution"

    restored = persistence.load_distribution("washing_machine_start")
    assert isinstance(restored, NormalDistribution)
    assert restored.mean == 620.0
    assert restored.sigma == 200.0
    assert restored.precomputed
    assert restored.precompute_to == 1440.0
    np.testing.assert_allclose(restored.bins, start_time.bins)


def test_histogram_round_trip_and_upsert(persistence: PersistenceService):
    """Verify histograms round-trip and upserts overwrite by name."""
    persistence.upsert_distribution(HistogramDistribution([1, 3], name="daily_uses"))
    persistence.upsert_distribution(HistogramDistribution([1, 1, 2]), name="daily_uses")

    records = persistence.list_distributions()
    assert len(records) == 1

    restored = persistence.load_distribution("daily_uses")
    assert isinstance(restored, HistogramDistribution)
    np.testing.assert_allclose(restored.bins, [0.25, 0.25, 0.5])
    assert persistence.load_distribution("missing") is None


def test_upsert_distribution_requires_name(persistence: PersistenceService):
    with pytest.raises(ValueError):
        persistence.upsert_distribution({"type": "Histogram Distribution", "bins": [1.0]})


def test_pricing_scheme_storage(persistence: PersistenceService):
    """Verify pricing schemes are stored with their expanded prices."""
    record = persistence.upsert_pricing_scheme("two_tier", "00:00-11:59-0.10\n12:00-23:59-0.30\n")
    assert record.id is not None
    assert len(record.prices) == 1440

    persistence.upsert_pricing_scheme("two_tier", "00:00-23:59-0.20\n")
    stored = persistence.get_pricing_scheme("two_tier")
    assert stored.prices[0] == 0.2
    assert [rec.name for rec in persistence.list_pricing_schemes()] == ["two_tier"]

    with pytest.raises(MalformedInputError):
        persistence.upsert_pricing_scheme("broken", "00:00-23:59\n")
