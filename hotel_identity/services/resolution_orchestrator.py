"""
ResolutionOrchestrator - resolve one property on one platform

Strategy:
1. Fast path: re-verify a previously resolved listing by id
2. Up to N query variants, most specific first
3. Score up to M candidates per query; first confirmed match wins
4. No confirmed match -> needs_review with the first non-empty candidate list
5. Nothing found -> not_listed; upstream failures -> scrape_failed / timeout

Design principles:
- Never fall back to "first result": resolution needs a positive verdict
- Name match in the wrong city keeps scanning instead of resolving
- An explicit rate-limit signal ends the unit immediately
- resolve() always returns a record; only cancellation propagates
"""
import asyncio
import time
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import structlog

from ..resolution_types import (
    ListingCandidate,
    Platform,
    PropertyRef,
    ResolutionRecord,
    ResolutionStatus,
    ScoredCandidate,
)
from ..scrapers.base.errors import RateLimitedError, SourceAdapterError, UpstreamTimeoutError
from ..scrapers.base.source_adapter import SourceAdapter
from ..utils.hotel_matcher import analyze_match, validate_city
from ..utils.query_generator import generate_queries

logger = structlog.get_logger(__name__)

NON_MATCH_CONFIDENCE = 0.3
RATE_LIMITED = "RATE_LIMITED"


class ResolutionCancelled(Exception):
    """
    Unit aborted between query attempts; no record is written for it.

    ``records`` holds units already finished by resolve_platforms.
    """

    def __init__(self, message: str = "Resolution cancelled", records=None):
        super().__init__(message)
        self.records = list(records or [])


def _error_text(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


def classify_failure(error: BaseException) -> ResolutionStatus:
    """Timeouts (by type or message) map to TIMEOUT, everything else to SCRAPE_FAILED."""
    if isinstance(error, (UpstreamTimeoutError, asyncio.TimeoutError)):
        return ResolutionStatus.TIMEOUT
    if 'timeout' in str(error).lower():
        return ResolutionStatus.TIMEOUT
    return ResolutionStatus.SCRAPE_FAILED


class ResolutionOrchestrator:
    """
    Drives query generation, adapter calls, matching and city validation
    for (property, platform) units and persists the outcome.
    """

    def __init__(
        self,
        store=None,
        match_threshold: float = 0.85,
        max_query_variants: int = 3,
        max_candidates: int = 5,
        call_timeout: float = 30.0,
        inter_platform_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            store: Optional ResolutionRecordStore; records are upserted into it
            match_threshold: Minimum confidence for an automatic resolution
            max_query_variants: Query variants tried per unit
            max_candidates: Candidates scored per query
            call_timeout: Seconds allowed for a single adapter call
            inter_platform_delay: Seconds between platforms for one property
        """
        self.store = store
        self.match_threshold = match_threshold
        self.max_query_variants = max_query_variants
        self.max_candidates = max_candidates
        self.call_timeout = call_timeout
        self.inter_platform_delay = inter_platform_delay
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, store=None) -> 'ResolutionOrchestrator':
        return cls(
            store=store,
            match_threshold=settings.MATCH_THRESHOLD,
            max_query_variants=settings.MAX_QUERY_VARIANTS,
            max_candidates=settings.MAX_CANDIDATES_PER_QUERY,
            call_timeout=settings.ADAPTER_CALL_TIMEOUT_SECONDS,
            inter_platform_delay=settings.INTER_PLATFORM_DELAY_SECONDS,
        )

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ResolutionCancelled("Resolution cancelled")

    async def _call(self, adapter: SourceAdapter, coro, what: str, timeout: Optional[float] = None):
        timeout = timeout or self.call_timeout
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                f"{adapter.platform.value} {what} timeout after {timeout:.0f}s"
            ) from e

    def _score(self, prop: PropertyRef, adapter: SourceAdapter, listing: ListingCandidate) -> ScoredCandidate:
        verdict = analyze_match(prop.name, listing.display_name)
        city_ok = validate_city(listing.formatted_address, prop.city)

        confidence = NON_MATCH_CONFIDENCE
        reason = verdict.reason
        if verdict.is_match:
            if not city_ok:
                reason = f'{reason}; city mismatch (expected "{prop.city}")'
            elif not (listing.identifier or listing.url):
                reason = f'{reason}; no identifier or URL'
            else:
                confidence = adapter.match_confidence

        return ScoredCandidate(
            candidate=listing,
            is_match=verdict.is_match,
            confidence=confidence,
            reason=reason,
            city_ok=city_ok,
        )

    def _accepts(self, scored: ScoredCandidate) -> bool:
        return scored.is_match and scored.city_ok and scored.confidence >= self.match_threshold

    async def resolve(
        self,
        prop: PropertyRef,
        adapter: SourceAdapter,
        existing: Optional[ResolutionRecord] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ResolutionRecord:
        """
        Resolve ``prop`` on the adapter's platform.

        Args:
            prop: Internal property
            adapter: Source adapter for the target platform
            existing: Previous record for this (property, platform), if any
            cancel_event: Set to abort between query attempts

        Returns:
            ResolutionRecord in one of the five terminal states

        Raises:
            ResolutionCancelled: cancel_event was set; nothing is returned or written
        """
        started = time.monotonic()
        attempts = 0
        queries_tried: List[str] = []
        log = logger.bind(property_id=prop.id, platform=adapter.platform.value)

        def finish(status: ResolutionStatus, **fields) -> ResolutionRecord:
            return ResolutionRecord(
                property_id=prop.id,
                platform=adapter.platform,
                status=status,
                attempts=attempts,
                queries_tried=list(queries_tried),
                duration_ms=int((time.monotonic() - started) * 1000),
                **fields,
            )

        def resolved(scored: ScoredCandidate) -> ResolutionRecord:
            listing = scored.candidate
            log.info(
                "resolution_resolved",
                identifier=listing.identifier,
                display_name=listing.display_name,
                confidence=scored.confidence,
                reason=scored.reason,
            )
            return finish(
                ResolutionStatus.RESOLVED,
                identifier=listing.identifier,
                url=listing.url,
                display_name=listing.display_name,
                confidence=scored.confidence,
                reason=scored.reason,
            )

        try:
            # Fast path: the stored listing still matches
            if existing is not None and existing.is_resolved:
                key = adapter.lookup_key(existing.identifier, existing.url)
                if key:
                    self._check_cancelled(cancel_event)
                    attempts += 1
                    lookup_timeout = max(self.call_timeout, adapter.lookup_timeout or 0)
                    try:
                        listing = await self._call(
                            adapter, adapter.fetch_by_id(key), "lookup", timeout=lookup_timeout
                        )
                    except RateLimitedError:
                        log.warning("resolution_rate_limited", stage="lookup")
                        return finish(ResolutionStatus.SCRAPE_FAILED, last_error=RATE_LIMITED)
                    except ResolutionCancelled:
                        raise
                    except Exception as e:
                        log.warning("lookup_failed", key=key, error=_error_text(e))
                        listing = None

                    if listing is not None:
                        scored = self._score(prop, adapter, listing)
                        if self._accepts(scored):
                            return resolved(scored)
                        log.info("lookup_no_longer_matches", key=key, reason=scored.reason)

            review_candidates: List[ScoredCandidate] = []
            last_error: Optional[BaseException] = None

            for query in generate_queries(prop.name, prop.city, prop.state)[:self.max_query_variants]:
                self._check_cancelled(cancel_event)
                attempts += 1
                queries_tried.append(query)

                try:
                    listings = await self._call(adapter, adapter.search(query), "search")
                except RateLimitedError:
                    log.warning("resolution_rate_limited", query=query)
                    return finish(ResolutionStatus.SCRAPE_FAILED, last_error=RATE_LIMITED)
                except ResolutionCancelled:
                    raise
                except Exception as e:
                    last_error = e
                    if isinstance(e, SourceAdapterError):
                        log.warning("query_failed", query=query, error=_error_text(e))
                    else:
                        log.error("query_failed", query=query, error=_error_text(e), exc_info=True)
                    continue

                if not listings:
                    log.debug("query_no_results", query=query)
                    continue

                scored_listings = []
                for listing in listings[:self.max_candidates]:
                    scored = self._score(prop, adapter, listing)
                    scored_listings.append(scored)
                    if self._accepts(scored):
                        return resolved(scored)

                if not review_candidates:
                    review_candidates = scored_listings

            if review_candidates:
                log.info("resolution_needs_review", candidates=len(review_candidates))
                return finish(
                    ResolutionStatus.NEEDS_REVIEW,
                    candidates=review_candidates,
                    reason="No candidate confirmed by name and city",
                )

            if last_error is not None:
                status = classify_failure(last_error)
                log.warning("resolution_failed", status=status.value, error=_error_text(last_error))
                return finish(status, last_error=_error_text(last_error))

            log.info("resolution_not_listed", queries=len(queries_tried))
            return finish(ResolutionStatus.NOT_LISTED, reason="No results for any query")

        except ResolutionCancelled:
            log.info("resolution_cancelled", attempts=attempts)
            raise
        except Exception as e:
            log.error("resolution_error", error=_error_text(e), exc_info=True)
            return finish(classify_failure(e), last_error=_error_text(e))

    async def _load_existing(self, prop: PropertyRef, platform: Platform) -> Optional[ResolutionRecord]:
        if self.store is None:
            return None
        try:
            return await self.store.get(prop.id, platform)
        except Exception as e:
            logger.warning("record_load_failed", property_id=prop.id, platform=platform.value, error=str(e))
            return None

    async def _persist(self, record: ResolutionRecord) -> None:
        if self.store is None:
            return
        try:
            await self.store.upsert(record)
        except Exception as e:
            logger.error(
                "record_upsert_failed",
                property_id=record.property_id,
                platform=record.platform.value,
                error=str(e),
            )

    async def resolve_platforms(
        self,
        prop: PropertyRef,
        adapters: Sequence[SourceAdapter],
        existing: Optional[Dict[Platform, ResolutionRecord]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ResolutionRecord]:
        """
        Resolve one property on several platforms, strictly one after another.

        Each finished record is upserted before moving on. A cancelled unit
        stops the run without writing anything for it; the raised
        ResolutionCancelled carries the records finished before it.
        """
        records = []
        for index, adapter in enumerate(adapters):
            if index and self.inter_platform_delay > 0:
                await self._sleep(self.inter_platform_delay)
            previous = (existing or {}).get(adapter.platform)
            try:
                self._check_cancelled(cancel_event)
                if previous is None:
                    previous = await self._load_existing(prop, adapter.platform)
                record = await self.resolve(prop, adapter, existing=previous, cancel_event=cancel_event)
            except ResolutionCancelled as e:
                raise ResolutionCancelled(str(e), records=records) from e
            await self._persist(record)
            records.append(record)

        return records
