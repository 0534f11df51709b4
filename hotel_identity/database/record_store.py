"""
Resolution record stores.

Records are keyed by (property_id, platform) and always written whole:
an upsert replaces the previous outcome for that pair.
"""
import asyncio
import copy
from abc import ABC, abstractmethod
from datetime import timezone
from typing import Dict, List, Optional, Tuple

import structlog
from sqlalchemy import delete, select

from ..resolution_types import Platform, ResolutionRecord, ResolutionStatus, ScoredCandidate
from .connection import DatabaseManager
from .models import HotelAlias

logger = structlog.get_logger(__name__)


class ResolutionRecordStore(ABC):
    """Persistence boundary for resolution records"""

    @abstractmethod
    async def upsert(self, record: ResolutionRecord) -> None:
        ...

    @abstractmethod
    async def get(self, property_id: str, platform: Platform) -> Optional[ResolutionRecord]:
        ...

    @abstractmethod
    async def list_for_property(self, property_id: str) -> List[ResolutionRecord]:
        ...

    @abstractmethod
    async def delete_for_property(self, property_id: str) -> int:
        """Remove every record of a deleted property; returns the count removed."""


class InMemoryRecordStore(ResolutionRecordStore):
    """Dict-backed store for tests and dry runs"""

    def __init__(self):
        self._records: Dict[Tuple[str, str], ResolutionRecord] = {}
        self._lock = asyncio.Lock()

    async def upsert(self, record: ResolutionRecord) -> None:
        async with self._lock:
            self._records[record.key] = copy.deepcopy(record)

    async def get(self, property_id: str, platform: Platform) -> Optional[ResolutionRecord]:
        record = self._records.get((property_id, platform.value))
        return copy.deepcopy(record) if record else None

    async def list_for_property(self, property_id: str) -> List[ResolutionRecord]:
        return [
            copy.deepcopy(record)
            for (owner, _), record in sorted(self._records.items())
            if owner == property_id
        ]

    async def delete_for_property(self, property_id: str) -> int:
        async with self._lock:
            keys = [key for key in self._records if key[0] == property_id]
            for key in keys:
                del self._records[key]
            return len(keys)

    def __len__(self):
        return len(self._records)


def record_to_row(record: ResolutionRecord) -> HotelAlias:
    return HotelAlias(
        property_id=record.property_id,
        platform=record.platform.value,
        resolution_status=record.status.value,
        platform_id=record.identifier,
        platform_url=record.url,
        platform_name=record.display_name,
        confidence_score=record.confidence,
        match_reason=record.reason,
        candidate_options=[candidate.to_dict() for candidate in record.candidates],
        queries_tried=list(record.queries_tried),
        attempts=record.attempts,
        duration_ms=record.duration_ms,
        last_error=record.last_error,
        last_resolved_at=record.resolved_at,
        last_verified_at=record.resolved_at if record.is_resolved else None,
    )


def row_to_record(row: HotelAlias) -> ResolutionRecord:
    resolved_at = row.last_resolved_at
    if resolved_at is not None and resolved_at.tzinfo is None:
        resolved_at = resolved_at.replace(tzinfo=timezone.utc)

    fields = dict(
        property_id=row.property_id,
        platform=Platform(row.platform),
        status=ResolutionStatus(row.resolution_status),
        identifier=row.platform_id,
        url=row.platform_url,
        display_name=row.platform_name,
        confidence=row.confidence_score,
        reason=row.match_reason,
        candidates=[ScoredCandidate.from_dict(c) for c in row.candidate_options or []],
        last_error=row.last_error,
        attempts=row.attempts or 0,
        queries_tried=list(row.queries_tried or []),
        duration_ms=row.duration_ms or 0,
    )
    if resolved_at is not None:
        fields['resolved_at'] = resolved_at
    return ResolutionRecord(**fields)


class SqlAlchemyRecordStore(ResolutionRecordStore):
    """hotel_aliases table via async SQLAlchemy"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def upsert(self, record: ResolutionRecord) -> None:
        async with self.db.get_session() as session:
            await session.merge(record_to_row(record))
            await session.commit()
        logger.debug(
            "record_upserted",
            property_id=record.property_id,
            platform=record.platform.value,
            status=record.status.value,
        )

    async def get(self, property_id: str, platform: Platform) -> Optional[ResolutionRecord]:
        async with self.db.get_session() as session:
            row = await session.get(HotelAlias, (property_id, platform.value))
            return row_to_record(row) if row else None

    async def list_for_property(self, property_id: str) -> List[ResolutionRecord]:
        async with self.db.get_session() as session:
            result = await session.execute(
                select(HotelAlias)
                .where(HotelAlias.property_id == property_id)
                .order_by(HotelAlias.platform)
            )
            return [row_to_record(row) for row in result.scalars().all()]

    async def delete_for_property(self, property_id: str) -> int:
        async with self.db.get_session() as session:
            result = await session.execute(
                delete(HotelAlias).where(HotelAlias.property_id == property_id)
            )
            await session.commit()
            return result.rowcount or 0
