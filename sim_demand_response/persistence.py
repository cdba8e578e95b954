"""
Database persistence layer for distributions and pricing schemes.

Distributions are stored through their serialized ``{name, type, parameters,
bins}`` form (see `DiscretizedDistribution.to_dict`), pricing schemes as the
original text plus the expanded per-minute prices.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.models import DistributionRecord, PricingSchemeRecord
from .db.session import SessionLocal
from .distributions import DiscretizedDistribution, distribution_from_dict
from .parsing import parse_scheme


def _distribution_payload(distribution: DiscretizedDistribution | Mapping[str, Any]) -> Dict[str, Any]:
    if isinstance(distribution, DiscretizedDistribution):
        return distribution.to_dict()
    if isinstance(distribution, Mapping):
        return dict(distribution)
    raise TypeError(f"Unsupported object type for serialization: {type(distribution)!r}")


class PersistenceService:
    """
    Database persistence service for distributions and pricing schemes.

    All database operations use transactional sessions with automatic
    commit/rollback handling. Upserts use the record name as unique key.

    Example:
        ```python
        from sim_demand_response.distributions import NormalDistribution
        from sim_demand_response.persistence import PersistenceService

        service = PersistenceService()
        start_time = NormalDistribution(620.0, 200.0, name="washing_machine_start")
        start_time.precompute(0, 1440, 1440)
        service.upsert_distribution(start_time)

        restored = service.load_distribution("washing_machine_start")
        ```
    """

    def __init__(self, session_factory: type[Session] | None = None) -> None:
        """
        Args:
            session_factory: SQLAlchemy session factory. Defaults to
                SessionLocal; tests pass an in-memory SQLite factory.
        """
        self._session_factory = session_factory or SessionLocal

    @contextmanager
    def session(self) -> Iterable[Session]:
        """
        Context manager providing a transactional database session.

        Commits on success, rolls back and re-raises on error, always closes.
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def upsert_distribution(
        self,
        distribution: DiscretizedDistribution | Mapping[str, Any],
        name: str | None = None,
    ) -> DistributionRecord:
        """
        Insert or update a distribution record.

        Args:
            distribution: Distribution object or its serialized mapping.
            name: Store under this name instead of the distribution's own.

        Returns:
            Persisted DistributionRecord.
        """
        payload = _distribution_payload(distribution)
        record_name = name or payload.get("name")
        if not record_name:
            raise ValueError("distribution name is required")
        domain = payload.get("domain") or {}
        with self.session() as session:
            stmt = select(DistributionRecord).where(DistributionRecord.name == record_name)
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                record = DistributionRecord(name=record_name)
                session.add(record)
            record.distribution_type = payload.get("type")
            record.parameters = dict(payload.get("parameters") or {})
            record.bins = list(payload.get("bins") or [])
            record.precompute_from = domain.get("from")
            record.precompute_to = domain.get("to")
            session.flush()
            return record

    def get_distribution(self, name: str) -> DistributionRecord | None:
        with self.session() as session:
            stmt = select(DistributionRecord).where(DistributionRecord.name == name)
            return session.execute(stmt).scalar_one_or_none()

    def load_distribution(self, name: str) -> DiscretizedDistribution | None:
        """Rebuild the stored distribution object, or None when missing."""
        record = self.get_distribution(name)
        if record is None:
            return None
        domain = None
        if record.precompute_from is not None and record.precompute_to is not None:
            domain = {"from": record.precompute_from, "to": record.precompute_to}
        return distribution_from_dict(
            {
                "name": record.name,
                "type": record.distribution_type,
                "parameters": record.parameters,
                "bins": record.bins,
                "domain": domain,
            }
        )

    def list_distributions(self) -> list[DistributionRecord]:
        """List all stored distributions ordered by name."""
        with self.session() as session:
            stmt = select(DistributionRecord).order_by(DistributionRecord.name)
            return list(session.execute(stmt).scalars().all())

    def upsert_pricing_scheme(self, name: str, text: str) -> PricingSchemeRecord:
        """
        Store a pricing scheme, expanding it to per-minute prices.

        Raises:
            MalformedInputError: If the scheme text is invalid.
        """
        prices = [float(value) for value in parse_scheme(text)]
        with self.session() as session:
            stmt = select(PricingSchemeRecord).where(PricingSchemeRecord.name == name)
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                record = PricingSchemeRecord(name=name, text=text, prices=prices)
                session.add(record)
            else:
                record.text = text
                record.prices = prices
            session.flush()
            return record

    def get_pricing_scheme(self, name: str) -> PricingSchemeRecord | None:
        with self.session() as session:
            stmt = select(PricingSchemeRecord).where(PricingSchemeRecord.name == name)
            return session.execute(stmt).scalar_one_or_none()

    def list_pricing_schemes(self) -> list[PricingSchemeRecord]:
        with self.session() as session:
            stmt = select(PricingSchemeRecord).order_by(PricingSchemeRecord.name)
            return list(session.execute(stmt).scalars().all())
