"""Tests for ResolutionOrchestrator: every terminal state and the run loop rules."""

import asyncio

import pytest

from hotel_identity.resolution_types import (
    ListingCandidate,
    Platform,
    PropertyRef,
    ResolutionRecord,
    ResolutionStatus,
)
from hotel_identity.scrapers.base.errors import (
    PollTimeoutError,
    RateLimitedError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from hotel_identity.scrapers.platforms.unconfigured import UnconfiguredAdapter
from hotel_identity.services.resolution_orchestrator import (
    NON_MATCH_CONFIDENCE,
    RATE_LIMITED,
    ResolutionCancelled,
    ResolutionOrchestrator,
    classify_failure,
)


def hilton(n: int) -> ListingCandidate:
    return ListingCandidate(
        display_name=f"Hilton Sacramento Arden West {n}",
        formatted_address="2200 Harvard St, Sacramento, CA",
        identifier=f"hilton-{n}",
    )


@pytest.fixture
def orchestrator(store, no_sleep):
    return ResolutionOrchestrator(store=store, call_timeout=1.0, sleep=no_sleep)


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolves_on_first_query(self, orchestrator, fake_adapter, westin, westin_listing):
        adapter = fake_adapter(responses=[[westin_listing]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.RESOLVED
        assert record.identifier == "ChIJ-westin"
        assert record.display_name == "Westin Sacramento Riverfront"
        assert record.confidence == 0.9
        assert "brand family" in record.reason and "containment" in record.reason
        assert record.attempts == 1
        assert record.queries_tried == ["westin sacramento hotel Sacramento CA"]
        assert record.candidates == []

    @pytest.mark.asyncio
    async def test_brand_mismatch_goes_to_review(self, orchestrator, fake_adapter):
        prop = PropertyRef(id="p-andaz", name="Andaz West Hollywood", city="West Hollywood", state="CA")
        marriott = ListingCandidate(
            display_name="Marriott West Hollywood",
            formatted_address="8440 Sunset Blvd, West Hollywood, CA",
            identifier="m-1",
        )
        adapter = fake_adapter(responses=[[marriott]])

        record = await orchestrator.resolve(prop, adapter)

        assert record.status == ResolutionStatus.NEEDS_REVIEW
        assert record.attempts == 3
        assert len(record.candidates) == 1
        candidate = record.candidates[0]
        assert candidate.confidence == NON_MATCH_CONFIDENCE
        assert candidate.reason.startswith("Brand mismatch")
        assert all(c.confidence < orchestrator.match_threshold for c in record.candidates)

    @pytest.mark.asyncio
    async def test_not_listed_when_every_query_empty(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter()

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.NOT_LISTED
        assert record.attempts == 3
        assert len(adapter.queries) == 3
        assert record.candidates == []

    @pytest.mark.asyncio
    async def test_rate_limit_ends_unit(self, orchestrator, fake_adapter, westin, westin_listing):
        adapter = fake_adapter(responses=[RateLimitedError(), [westin_listing]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.SCRAPE_FAILED
        assert record.last_error == RATE_LIMITED
        assert record.attempts == 1
        assert len(adapter.queries) == 1

    @pytest.mark.asyncio
    async def test_upstream_timeouts_classified(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter(responses=[UpstreamTimeoutError("google request timeout")] * 3)

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.TIMEOUT
        assert "timeout" in record.last_error
        assert record.attempts == 3

    @pytest.mark.asyncio
    async def test_slow_adapter_hits_call_timeout(self, fake_adapter, westin):
        orchestrator = ResolutionOrchestrator(call_timeout=0.01, max_query_variants=1)
        adapter = fake_adapter(delay=1.0)

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.TIMEOUT
        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_other_failures_are_scrape_failed(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter(responses=[UpstreamUnavailableError("HTTP 500")] * 3)

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.SCRAPE_FAILED
        assert record.last_error == "HTTP 500"

    @pytest.mark.asyncio
    async def test_failed_variant_advances_to_next(self, orchestrator, fake_adapter, westin, westin_listing):
        adapter = fake_adapter(responses=[UpstreamUnavailableError("boom"), [westin_listing]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.RESOLVED
        assert record.attempts == 2

    @pytest.mark.asyncio
    async def test_failure_plus_empty_results_is_not_not_listed(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter(responses=[UpstreamUnavailableError("boom"), [], []])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.SCRAPE_FAILED
        assert record.last_error == "boom"

    @pytest.mark.asyncio
    async def test_unexpected_exception_never_escapes(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter(responses=[ValueError("bad payload")])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.SCRAPE_FAILED
        assert record.last_error == "bad payload"
        assert record.attempts == 3

    @pytest.mark.asyncio
    async def test_unexpected_exception_advances_to_next_variant(
        self, orchestrator, fake_adapter, westin, westin_listing
    ):
        adapter = fake_adapter(responses=[
            [hilton(1)],
            ValueError("Expecting value: line 1 column 1 (char 0)"),
            [westin_listing],
        ])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.RESOLVED
        assert record.identifier == "ChIJ-westin"
        assert record.attempts == 3

    @pytest.mark.asyncio
    async def test_unexpected_exception_keeps_collected_candidates(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter(responses=[
            [hilton(1)],
            AttributeError("'NoneType' object has no attribute 'get'"),
            [],
        ])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.NEEDS_REVIEW
        assert [c.candidate.identifier for c in record.candidates] == ["hilton-1"]

    @pytest.mark.asyncio
    async def test_unexpected_timeout_message(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter(responses=[RuntimeError("APIFY_WAIT_TIMEOUT")])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.TIMEOUT

    @pytest.mark.asyncio
    async def test_wrong_city_keeps_scanning(self, orchestrator, fake_adapter, westin, westin_listing):
        portland = ListingCandidate(
            display_name="Westin Sacramento Riverfront",
            formatted_address="750 SW Alder St, Portland, OR",
            identifier="ChIJ-portland",
        )
        adapter = fake_adapter(responses=[[portland], [westin_listing]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.RESOLVED
        assert record.identifier == "ChIJ-westin"
        assert record.attempts == 2

    @pytest.mark.asyncio
    async def test_wrong_city_only_needs_review(self, orchestrator, fake_adapter, westin):
        portland = ListingCandidate(
            display_name="Westin Sacramento Riverfront",
            formatted_address="750 SW Alder St, Portland, OR",
            identifier="ChIJ-portland",
        )
        adapter = fake_adapter(responses=[[portland]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.NEEDS_REVIEW
        candidate = record.candidates[0]
        assert candidate.is_match
        assert not candidate.city_ok
        assert candidate.confidence == NON_MATCH_CONFIDENCE
        assert 'city mismatch (expected "Sacramento")' in candidate.reason

    @pytest.mark.asyncio
    async def test_candidate_cap(self, orchestrator, fake_adapter, westin, westin_listing):
        adapter = fake_adapter(responses=[[hilton(n) for n in range(5)] + [westin_listing]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.NEEDS_REVIEW
        assert len(record.candidates) == 5
        assert all(c.candidate.identifier.startswith("hilton") for c in record.candidates)

    @pytest.mark.asyncio
    async def test_review_list_comes_from_first_non_empty_query(self, orchestrator, fake_adapter, westin):
        adapter = fake_adapter(responses=[[], [hilton(1)], [hilton(2), hilton(3)]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.NEEDS_REVIEW
        assert [c.candidate.identifier for c in record.candidates] == ["hilton-1"]

    @pytest.mark.asyncio
    async def test_match_without_identity_is_not_resolved(self, orchestrator, fake_adapter, westin):
        anonymous = ListingCandidate(
            display_name="Westin Sacramento Riverfront",
            formatted_address="4800 Riverside Blvd, Sacramento, CA",
        )
        adapter = fake_adapter(responses=[[anonymous]])

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.NEEDS_REVIEW
        assert record.candidates[0].is_match
        assert record.candidates[0].reason.endswith("; no identifier or URL")
        assert all(c.confidence < orchestrator.match_threshold for c in record.candidates)

    @pytest.mark.asyncio
    async def test_adapter_confidence_below_threshold(self, orchestrator, fake_adapter, westin, westin_listing):
        adapter = fake_adapter(responses=[[westin_listing]], match_confidence=0.8)

        record = await orchestrator.resolve(westin, adapter)

        assert record.status == ResolutionStatus.NEEDS_REVIEW
        assert record.candidates[0].is_match
        assert record.candidates[0].confidence == 0.8

    @pytest.mark.asyncio
    async def test_query_variant_cap(self, fake_adapter):
        orchestrator = ResolutionOrchestrator(max_query_variants=2)
        prop = PropertyRef(id="p", name="The Sanctuary Beach Resort Monterey", city="Marina", state="CA")
        adapter = fake_adapter()

        record = await orchestrator.resolve(prop, adapter)

        assert record.attempts == 2
        assert len(adapter.queries) == 2

    @pytest.mark.asyncio
    async def test_unconfigured_platform(self, orchestrator, westin):
        adapter = UnconfiguredAdapter(Platform.BOOKING, "SERPAPI_API_KEY not configured")

        record = await orchestrator.resolve(westin, adapter)

        assert record.platform == Platform.BOOKING
        assert record.status == ResolutionStatus.SCRAPE_FAILED
        assert record.last_error == "SERPAPI_API_KEY not configured"


class TestFastPath:
    @pytest.fixture
    def previous(self):
        return ResolutionRecord(
            property_id="prop-westin",
            platform=Platform.GOOGLE,
            status=ResolutionStatus.RESOLVED,
            identifier="ChIJ-westin",
            confidence=0.9,
        )

    @pytest.mark.asyncio
    async def test_lookup_still_matches(self, orchestrator, fake_adapter, westin, westin_listing, previous):
        adapter = fake_adapter(lookup=westin_listing)

        record = await orchestrator.resolve(westin, adapter, existing=previous)

        assert record.status == ResolutionStatus.RESOLVED
        assert adapter.lookups == ["ChIJ-westin"]
        assert adapter.queries == []
        assert record.attempts == 1

    @pytest.mark.asyncio
    async def test_lookup_mismatch_falls_back_to_search(
        self, orchestrator, fake_adapter, westin, westin_listing, previous
    ):
        adapter = fake_adapter(lookup=hilton(1), responses=[[westin_listing]])

        record = await orchestrator.resolve(westin, adapter, existing=previous)

        assert record.status == ResolutionStatus.RESOLVED
        assert len(adapter.queries) == 1
        assert record.attempts == 2

    @pytest.mark.asyncio
    async def test_lookup_error_falls_back_to_search(
        self, orchestrator, fake_adapter, westin, westin_listing, previous
    ):
        adapter = fake_adapter(lookup=UpstreamUnavailableError("gone"), responses=[[westin_listing]])

        record = await orchestrator.resolve(westin, adapter, existing=previous)

        assert record.status == ResolutionStatus.RESOLVED
        assert len(adapter.queries) == 1

    @pytest.mark.asyncio
    @pytest.mark.asyncio
    async def test_slow_lookup_gets_adapter_bound(self, fake_adapter, westin, westin_listing, previous):
        class SlowLookupAdapter(fake_adapter):
            lookup_timeout = 0.5

            async def fetch_by_id(self, identifier):
                await asyncio.sleep(0.1)
                return await super().fetch_by_id(identifier)

        orchestrator = ResolutionOrchestrator(call_timeout=0.05)
        adapter = SlowLookupAdapter(lookup=westin_listing)

        record = await orchestrator.resolve(westin, adapter, existing=previous)

        assert record.status == ResolutionStatus.RESOLVED
        assert adapter.queries == []

    @pytest.mark.asyncio
    async def test_unexpected_lookup_error_falls_back_to_search(
        self, orchestrator, fake_adapter, westin, westin_listing, previous
    ):
        adapter = fake_adapter(lookup=ValueError("bad payload"), responses=[[westin_listing]])

        record = await orchestrator.resolve(westin, adapter, existing=previous)

        assert record.status == ResolutionStatus.RESOLVED
        assert len(adapter.queries) == 1

    @pytest.mark.asyncio
    async def test_unresolved_previous_record_skips_lookup(self, orchestrator, fake_adapter, westin):
        previous = ResolutionRecord(
            property_id="prop-westin", platform=Platform.GOOGLE, status=ResolutionStatus.NOT_LISTED
        )
        adapter = fake_adapter()

        await orchestrator.resolve(westin, adapter, existing=previous)

        assert adapter.lookups == []


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_before_start(self, orchestrator, fake_adapter, westin, store):
        event = asyncio.Event()
        event.set()

        with pytest.raises(ResolutionCancelled):
            await orchestrator.resolve_platforms(westin, [fake_adapter()], cancel_event=event)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_cancel_between_queries_writes_nothing(self, orchestrator, fake_adapter, westin, store):
        event = asyncio.Event()

        def handler(query):
            event.set()
            return []

        adapter = fake_adapter(handler=handler)

        with pytest.raises(ResolutionCancelled):
            await orchestrator.resolve_platforms(westin, [adapter], cancel_event=event)
        assert len(adapter.queries) == 1
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_cancel_carries_finished_records(
        self, orchestrator, fake_adapter, westin, westin_listing, store
    ):
        event = asyncio.Event()
        google = fake_adapter(Platform.GOOGLE, handler=lambda q: event.set() or [westin_listing])
        booking = fake_adapter(Platform.BOOKING)

        with pytest.raises(ResolutionCancelled) as exc_info:
            await orchestrator.resolve_platforms(westin, [google, booking], cancel_event=event)

        assert [r.platform for r in exc_info.value.records] == [Platform.GOOGLE]
        assert booking.queries == []
        assert len(store) == 1


class TestResolvePlatforms:
    @pytest.mark.asyncio
    async def test_sequential_with_delay_and_persisted(
        self, orchestrator, fake_adapter, westin, westin_listing, store, no_sleep
    ):
        google = fake_adapter(Platform.GOOGLE, responses=[[westin_listing]])
        booking = fake_adapter(Platform.BOOKING, match_confidence=0.85)

        records = await orchestrator.resolve_platforms(westin, [google, booking])

        assert [r.platform for r in records] == [Platform.GOOGLE, Platform.BOOKING]
        assert [r.status for r in records] == [ResolutionStatus.RESOLVED, ResolutionStatus.NOT_LISTED]
        assert no_sleep.calls == [1.0]

        stored = await store.get(westin.id, Platform.GOOGLE)
        assert stored.status == ResolutionStatus.RESOLVED
        assert stored.identifier == "ChIJ-westin"
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_stored_record_drives_fast_path(
        self, orchestrator, fake_adapter, westin, westin_listing, store
    ):
        await orchestrator.resolve_platforms(westin, [fake_adapter(responses=[[westin_listing]])])

        rerun = fake_adapter(lookup=westin_listing)
        records = await orchestrator.resolve_platforms(westin, [rerun])

        assert records[0].status == ResolutionStatus.RESOLVED
        assert rerun.lookups == ["ChIJ-westin"]
        assert rerun.queries == []

    @pytest.mark.asyncio
    async def test_store_failure_does_not_abort(self, fake_adapter, westin, westin_listing, no_sleep):
        class BrokenStore:
            async def get(self, property_id, platform):
                return None

            async def upsert(self, record):
                raise RuntimeError("database down")

        orchestrator = ResolutionOrchestrator(store=BrokenStore(), sleep=no_sleep)

        records = await orchestrator.resolve_platforms(
            westin,
            [fake_adapter(responses=[[westin_listing]]), fake_adapter(Platform.EXPEDIA)],
        )

        assert len(records) == 2


class TestClassifyFailure:
    @pytest.mark.parametrize("error, status", [
        (UpstreamTimeoutError("slow"), ResolutionStatus.TIMEOUT),
        (PollTimeoutError("poll"), ResolutionStatus.TIMEOUT),
        (asyncio.TimeoutError(), ResolutionStatus.TIMEOUT),
        (RuntimeError("Request TIMEOUT"), ResolutionStatus.TIMEOUT),
        (UpstreamUnavailableError("HTTP 502"), ResolutionStatus.SCRAPE_FAILED),
        (ValueError("bad json"), ResolutionStatus.SCRAPE_FAILED),
    ])
    def test_classification(self, error, status):
        assert classify_failure(error) == status
