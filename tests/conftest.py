from __future__ import annotations

import pytest
from pathlib import Path
import sys

import numpy as np
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sim_demand_response.day_utils import MINUTES_PER_DAY  # noqa: E402
from sim_demand_response.db.session import Base  # noqa: E402
from sim_demand_response.persistence import PersistenceService  # noqa: E402


@pytest.fixture()
def sqlite_session_factory():
    """Provide a session factory bound to an in-memory SQLite database."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
    yield Session
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def persistence(sqlite_session_factory):
    """Provide a PersistenceService bound to the temporary SQLite DB."""
    return PersistenceService(session_factory=sqlite_session_factory)


@pytest.fixture()
def uniform_day() -> np.ndarray:
    """Activity spread evenly over the day."""
    return np.full(MINUTES_PER_DAY, 1.0 / MINUTES_PER_DAY)


@pytest.fixture()
def flat_scheme() -> np.ndarray:
    """Single-price day at 0.20 per kWh."""
    return np.full(MINUTES_PER_DAY, 0.20)


@pytest.fixture()
def two_tier_scheme() -> np.ndarray:
    """Cheap first half of the day (0.10), expensive second half (0.30)."""
    prices = np.full(MINUTES_PER_DAY, 0.30)
    prices[:720] = 0.10
    return prices
