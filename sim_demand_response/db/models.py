"""
SQLAlchemy database models for distribution and pricing-scheme persistence.

Distributions are stored in their serialized ``{name, type, parameters,
bins}`` form so that other components can rely on the same field set.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text, func

from .session import Base


class TimestampMixin:
    """
    Mixin adding automatic created_at and updated_at timestamps.

    Notes:
        - Timestamps managed by database (server_default, onupdate)
        - updated_at changes on every UPDATE
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class DistributionRecord(Base, TimestampMixin):
    """
    Stored activity distribution (start time, duration, daily times...).

    Attributes:
        id: Primary key (auto-increment).
        name: Unique distribution name (upsert key).
        distribution_type: "Normal Distribution" or "Histogram Distribution".
        parameters: Named parameters, e.g. {"mean": 620.0, "sigma": 200.0}.
        bins: Bin masses (JSON list), empty when never precomputed.
        precompute_from: Lower bound of the discretized domain.
        precompute_to: Upper bound of the discretized domain.
    """

    __tablename__ = "distributions"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    distribution_type = Column(String(50), nullable=False)
    parameters = Column(JSON, nullable=False)
    bins = Column(JSON, nullable=False)
    precompute_from = Column(Float, nullable=True)
    precompute_to = Column(Float, nullable=True)


class PricingSchemeRecord(Base, TimestampMixin):
    """
    Stored daily pricing scheme.

    Attributes:
        name: Unique scheme name.
        text: Original ``HH:MM-HH:MM-price`` lines.
        prices: Expanded per-minute prices (1440 values).
    """

    __tablename__ = "pricing_schemes"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    text = Column(Text, nullable=False)
    prices = Column(JSON, nullable=False)
