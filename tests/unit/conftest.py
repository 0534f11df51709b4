"""Shared fixtures: scripted source adapters and sample properties."""

import asyncio
from typing import Callable, List, Optional, Sequence, Union

import pytest

from hotel_identity.database import InMemoryRecordStore
from hotel_identity.resolution_types import ListingCandidate, Platform, PropertyRef
from hotel_identity.scrapers.base.source_adapter import SourceAdapter

Response = Union[List[ListingCandidate], BaseException]


class FakeAdapter(SourceAdapter):
    """
    Adapter returning scripted responses.

    ``responses`` are consumed one per search call (an exception instance is
    raised instead of returned); once exhausted every search returns [].
    ``handler`` overrides ``responses`` and is called with the query.
    """

    def __init__(
        self,
        platform: Platform = Platform.GOOGLE,
        responses: Sequence[Response] = (),
        match_confidence: float = 0.9,
        handler: Optional[Callable[[str], Response]] = None,
        lookup: Optional[Union[ListingCandidate, BaseException]] = None,
        delay: float = 0.0,
    ):
        super().__init__(platform, match_confidence)
        self.responses = list(responses)
        self.handler = handler
        self.lookup = lookup
        self.delay = delay
        self.queries: List[str] = []
        self.lookups: List[str] = []

    async def search(self, query: str) -> List[ListingCandidate]:
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)

        if self.handler is not None:
            response = self.handler(query)
        elif self.responses:
            response = self.responses.pop(0)
        else:
            response = []

        if isinstance(response, BaseException):
            raise response
        return response

    async def fetch_by_id(self, identifier: str) -> Optional[ListingCandidate]:
        self.lookups.append(identifier)
        if isinstance(self.lookup, BaseException):
            raise self.lookup
        return self.lookup


@pytest.fixture
def fake_adapter():
    """Factory for FakeAdapter instances"""
    return FakeAdapter


@pytest.fixture
def westin() -> PropertyRef:
    return PropertyRef(id="prop-westin", name="The Westin Sacramento", city="Sacramento", state="CA")


@pytest.fixture
def westin_listing() -> ListingCandidate:
    return ListingCandidate(
        display_name="Westin Sacramento Riverfront",
        formatted_address="4800 Riverside Blvd, Sacramento, CA 95822, USA",
        identifier="ChIJ-westin",
        url="https://maps.google.com/?cid=1",
    )


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def no_sleep():
    """Recording replacement for asyncio.sleep"""
    calls = []

    async def _sleep(seconds):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep
