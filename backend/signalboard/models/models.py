"""
SQLAlchemy models for SignalBoard.
"""
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Float, Index, Integer, JSON, String, Text,
)
from sqlalchemy.sql import func

from signalboard.core.database import Base


class Signal(Base):
    """A unit of customer feedback captured by a PM."""
    __tablename__ = "signals"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    impact = Column(Float, nullable=False, default=0)
    urgency = Column(String(20), nullable=False, default="low")
    source = Column(String(20), nullable=False, default="internal")
    category = Column(String(32), nullable=False, default="feedback")
    tier = Column(String(20), nullable=False, default="free")
    context = Column(Text, nullable=False, default="")
    # Set once at capture time, never updated.
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("impact >= 0 AND impact <= 100", name="valid_impact"),
        CheckConstraint("urgency IN ('low', 'medium', 'high', 'critical')", name="valid_urgency"),
        CheckConstraint("tier IN ('enterprise', 'pro', 'free')", name="valid_tier"),
        Index("idx_signals_timestamp", "timestamp"),
    )


class AnalyticsEvent(Base):
    """Instrumentation record of a tracked interaction."""
    __tablename__ = "analytics_events"

    id = Column(Integer, primary_key=True)
    event_type = Column(String(64), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    session_id = Column(String(128), nullable=True)
    user_id = Column(String(128), nullable=True)
    properties = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_analytics_events_type", "event_type"),
        Index("idx_analytics_events_user", "user_id"),
    )


class Benchmark(Base):
    """Baseline target used to weight daily impact."""
    __tablename__ = "benchmarks"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    target_impact = Column(Float, nullable=False)
    urgency_threshold = Column(Integer, nullable=False, default=3)
    tier_weights = Column(JSON, nullable=False, default=dict)
    active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("target_impact > 0", name="positive_target_impact"),
    )
