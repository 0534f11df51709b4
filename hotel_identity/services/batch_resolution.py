"""
Batch resolution - many properties concurrently, platforms sequentially

Properties run in parallel under a semaphore sized to the most restrictive
upstream; each property's platforms still run one after another through
ResolutionOrchestrator.resolve_platforms.
"""
import asyncio
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import structlog

from ..resolution_types import Platform, PropertyRef, ResolutionRecord
from ..scrapers.base.source_adapter import SourceAdapter
from .resolution_orchestrator import ResolutionCancelled, ResolutionOrchestrator

logger = structlog.get_logger(__name__)


@dataclass
class BatchResult:
    """Outcome of a batch run"""
    records: Dict[str, List[ResolutionRecord]] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    cancelled: List[str] = field(default_factory=list)

    def status_counts(self) -> Dict[str, int]:
        counts = Counter(
            record.status.value
            for records in self.records.values()
            for record in records
        )
        return dict(counts)


class BatchResolver:
    """Parallel resolution across properties"""

    def __init__(
        self,
        orchestrator: ResolutionOrchestrator,
        adapters: Sequence[SourceAdapter],
        max_concurrent: int = 4,
    ):
        """
        Args:
            orchestrator: ResolutionOrchestrator (owns the record store)
            adapters: Adapters to run for every property, in order
            max_concurrent: Max properties in flight
        """
        self.orchestrator = orchestrator
        self.adapters = list(adapters)
        self.semaphore = asyncio.Semaphore(max_concurrent)

    async def resolve_one(
        self,
        prop: PropertyRef,
        existing: Optional[Dict[Platform, ResolutionRecord]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> tuple:
        """
        Resolve one property with concurrency limiting

        Returns:
            (property_id, records or None, error or None, cancelled)
        """
        async with self.semaphore:
            try:
                records = await self.orchestrator.resolve_platforms(
                    prop, self.adapters, existing=existing, cancel_event=cancel_event
                )
                return (prop.id, records, None, False)
            except ResolutionCancelled as e:
                return (prop.id, e.records or None, None, True)
            except Exception as e:
                logger.error("property_resolution_failed", property_id=prop.id, error=str(e))
                return (prop.id, None, str(e), False)

    async def resolve_many(
        self,
        properties: Sequence[PropertyRef],
        existing: Optional[Dict[str, Dict[Platform, ResolutionRecord]]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchResult:
        """
        Resolve many properties in parallel

        Args:
            properties: Properties to resolve
            existing: Optional {property_id: {platform: record}} for the fast path
            cancel_event: Set to stop remaining work between query attempts

        Returns:
            BatchResult with records per property, errors and cancelled ids
        """
        result = BatchResult()
        if not properties:
            return result

        logger.info("batch_resolution_started", properties=len(properties), platforms=len(self.adapters))

        tasks = [
            self.resolve_one(prop, (existing or {}).get(prop.id), cancel_event)
            for prop in properties
        ]
        for property_id, records, error, cancelled in await asyncio.gather(*tasks):
            if records is not None:
                result.records[property_id] = records
            if error is not None:
                result.errors[property_id] = error
            if cancelled:
                result.cancelled.append(property_id)

        logger.info(
            "batch_resolution_complete",
            resolved_properties=len(result.records),
            errors=len(result.errors),
            cancelled=len(result.cancelled),
            statuses=result.status_counts(),
        )
        return result
