"""
SQLAlchemy ORM models for hotel identity resolution

hotel_aliases holds one row per (property, platform): the latest
resolution outcome, overwritten on every re-resolution.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON, TIMESTAMP, CheckConstraint, Column, Float, Index, Integer, Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), 'postgresql')


def _utcnow():
    return datetime.now(timezone.utc)


class HotelAlias(Base):
    """Resolved (or attempted) platform identity for a property"""
    __tablename__ = 'hotel_aliases'

    property_id = Column(Text, primary_key=True)
    platform = Column(Text, primary_key=True)

    resolution_status = Column(Text, nullable=False, index=True)

    # Platform identity (set when resolved)
    platform_id = Column(Text)
    platform_url = Column(Text)
    platform_name = Column(Text)
    confidence_score = Column(Float)
    match_reason = Column(Text)

    # Review queue and diagnostics
    candidate_options = Column(JSONType, default=list)
    queries_tried = Column(JSONType, default=list)
    attempts = Column(Integer, default=0)
    duration_ms = Column(Integer, default=0)
    last_error = Column(Text)

    last_resolved_at = Column(TIMESTAMP(timezone=True), default=_utcnow)
    last_verified_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "resolution_status IN ('resolved', 'needs_review', 'not_listed', 'scrape_failed', 'timeout')",
            name='check_resolution_status',
        ),
        CheckConstraint(
            "confidence_score IS NULL OR (confidence_score >= 0 AND confidence_score <= 1)",
            name='check_confidence_range',
        ),
        Index('idx_hotel_aliases_platform_status', 'platform', 'resolution_status'),
    )

    def __repr__(self):
        return f"<HotelAlias {self.property_id}/{self.platform}: {self.resolution_status}>"
