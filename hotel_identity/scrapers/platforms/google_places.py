"""
Google Places adapter.

Text search restricted to lodging; place details for re-verification of a
known place_id.
"""
from typing import Any, Dict, List, Optional

import aiohttp

from ...resolution_types import ListingCandidate, Platform
from ..base.errors import AdapterConfigurationError, RateLimitedError, UpstreamUnavailableError
from ..base.source_adapter import HttpSourceAdapter

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
DETAILS_FIELDS = "place_id,name,formatted_address,url"


class GooglePlacesAdapter(HttpSourceAdapter):
    """Resolves properties to Google place_ids."""

    def __init__(
        self,
        api_key: str,
        match_confidence: float = 0.9,
        min_call_interval: float = 0.2,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not api_key:
            raise AdapterConfigurationError("GOOGLE_PLACES_API_KEY not configured")
        super().__init__(
            Platform.GOOGLE,
            match_confidence=match_confidence,
            min_call_interval=min_call_interval,
            timeout=timeout,
            session=session,
        )
        self.api_key = api_key

    @staticmethod
    def _check_status(data: Optional[Dict[str, Any]], allowed=('OK', 'ZERO_RESULTS')) -> str:
        if not isinstance(data, dict):
            raise UpstreamUnavailableError(f"Google Places returned an unexpected body: {data!r:.100}")
        status = data.get('status', 'UNKNOWN_ERROR')
        if status == 'OVER_QUERY_LIMIT':
            raise RateLimitedError()
        if status not in allowed:
            message = data.get('error_message') or status
            raise UpstreamUnavailableError(f"Google Places error: {message}")
        return status

    @staticmethod
    def _to_candidate(place: Dict[str, Any]) -> Optional[ListingCandidate]:
        name = place.get('name')
        if not name:
            return None
        place_id = place.get('place_id')
        url = place.get('url')
        if not url and place_id:
            url = f"https://www.google.com/maps/place/?q=place_id:{place_id}"
        return ListingCandidate(
            display_name=name,
            formatted_address=place.get('formatted_address'),
            identifier=place_id,
            url=url,
        )

    async def search(self, query: str) -> List[ListingCandidate]:
        data = await self._request_json(
            'GET',
            TEXT_SEARCH_URL,
            params={'query': query, 'type': 'lodging', 'key': self.api_key},
        )
        if self._check_status(data) == 'ZERO_RESULTS':
            return []

        candidates = [self._to_candidate(place) for place in data.get('results') or []]
        return [c for c in candidates if c is not None]

    async def fetch_by_id(self, identifier: str) -> Optional[ListingCandidate]:
        data = await self._request_json(
            'GET',
            DETAILS_URL,
            params={'place_id': identifier, 'fields': DETAILS_FIELDS, 'key': self.api_key},
        )
        status = self._check_status(data, allowed=('OK', 'NOT_FOUND', 'ZERO_RESULTS'))
        if status != 'OK' or not data.get('result'):
            return None

        place = dict(data['result'])
        place.setdefault('place_id', identifier)
        return self._to_candidate(place)
