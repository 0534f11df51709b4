"""
Search-engine backed adapters for OTA platforms.

Booking.com, TripAdvisor and Expedia have no public search API, so their
listings are discovered through SerpApi Google results restricted with a
``site:`` filter. Listing titles are stripped of platform decoration and
platform identifiers are parsed from the result URLs.
"""
import re
from abc import abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import aiohttp

from ...resolution_types import ListingCandidate, Platform
from ..base.errors import AdapterConfigurationError, UpstreamUnavailableError
from ..base.source_adapter import HttpSourceAdapter
from .apify import ApifyActorRunner

SERPAPI_URL = "https://serpapi.com/search.json"

_NO_RESULTS_MARKER = "hasn't returned any results"

# Cut at the first separator whose remainder is platform/pricing decoration
_TITLE_DECORATION = re.compile(
    r'\s+[-|\u2013]\s+(?=.*\b(?:updated|tripadvisor|booking\.com|expedia|hotels\.com|prices|deals)\b).*$',
    re.IGNORECASE,
)
_TITLE_PAREN_TAIL = re.compile(r'\s*\([^)]*(?:updated|prices|deals|\d{4})[^)]*\)\s*$', re.IGNORECASE)

_BOOKING_SLUG = re.compile(r'booking\.com/hotel/([a-z]{2})/([^/?#.]+)', re.IGNORECASE)
_TRIPADVISOR_ID = re.compile(r'-d(\d+)-')
_EXPEDIA_HO_ID = re.compile(r'/ho(\d+)')
_EXPEDIA_DOT_ID = re.compile(r'\.h(\d+)\.')


def clean_listing_title(title: str) -> str:
    """
    Strip search-result decoration from a listing title.

    "THE WESTIN SACRAMENTO - Updated 2024 Prices" -> "THE WESTIN SACRAMENTO"
    "Hotel Nia (Updated 2024 Prices)"             -> "Hotel Nia"
    """
    if not title:
        return ''
    cleaned = _TITLE_DECORATION.sub('', title.strip())
    cleaned = _TITLE_PAREN_TAIL.sub('', cleaned)
    return cleaned.strip(' -|')


def extract_booking_slug(url: str) -> Optional[str]:
    match = _BOOKING_SLUG.search(url or '')
    if not match:
        return None
    return f"{match.group(1).lower()}/{match.group(2)}"


def extract_tripadvisor_id(url: str) -> Optional[str]:
    match = _TRIPADVISOR_ID.search(url or '')
    return match.group(1) if match else None


def extract_expedia_hotel_id(url: str) -> Optional[str]:
    """
    Hotel id from an Expedia or Hotels.com URL.

    Tries "/ho<id>", then the ``selected``/``hotelId`` query parameter,
    then ".h<id>." in the path.
    """
    if not url:
        return None

    match = _EXPEDIA_HO_ID.search(url)
    if match:
        return match.group(1)

    query = parse_qs(urlparse(url).query)
    for key in ('selected', 'hotelId'):
        values = query.get(key)
        if values and values[0].isdigit():
            return values[0]

    match = _EXPEDIA_DOT_ID.search(url)
    return match.group(1) if match else None


class SerpSearchAdapter(HttpSourceAdapter):
    """Google results via SerpApi, restricted to one platform's listing pages."""

    platform_value: Platform = None
    default_site_filter: str = ''
    listing_url_pattern: re.Pattern = None

    def __init__(
        self,
        api_key: str,
        site_filter: Optional[str] = None,
        match_confidence: float = 0.85,
        min_call_interval: float = 0.5,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not api_key:
            raise AdapterConfigurationError("SERPAPI_API_KEY not configured")
        super().__init__(
            self.platform_value,
            match_confidence=match_confidence,
            min_call_interval=min_call_interval,
            timeout=timeout,
            session=session,
        )
        self.api_key = api_key
        self.site_filter = site_filter or self.default_site_filter

    def extract_identifier(self, url: str) -> Optional[str]:
        return None

    def is_listing_url(self, url: str) -> bool:
        return bool(url) and bool(self.listing_url_pattern.search(url))

    def _to_candidate(self, result: Dict[str, Any]) -> Optional[ListingCandidate]:
        link = result.get('link')
        if not link or not self.is_listing_url(link):
            return None
        title = clean_listing_title(result.get('title', ''))
        if not title:
            return None
        return ListingCandidate(
            display_name=title,
            formatted_address=result.get('address'),
            identifier=self.extract_identifier(link),
            url=link,
        )

    async def search(self, query: str) -> List[ListingCandidate]:
        data = await self._request_json(
            'GET',
            SERPAPI_URL,
            params={
                'engine': 'google',
                'q': f"{query} {self.site_filter}",
                'api_key': self.api_key,
                'num': 10,
            },
        )
        data = data or {}

        error = data.get('error')
        if error:
            if _NO_RESULTS_MARKER in error:
                return []
            raise UpstreamUnavailableError(f"SerpApi error: {error}")

        candidates = [self._to_candidate(result) for result in data.get('organic_results') or []]
        return [c for c in candidates if c is not None]


def _coerce_address(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        for key in ('full', 'fullAddress', 'street'):
            if value.get(key):
                return value[key]
    return None


class ApifyBackedSerpAdapter(SerpSearchAdapter):
    """SERP search plus listing re-verification through an Apify actor."""

    # Margin over the actor poll bound for starting the run and reading its dataset
    LOOKUP_MARGIN_SECONDS = 30.0

    def __init__(
        self,
        api_key: str,
        apify_token: Optional[str] = None,
        actor_id: Optional[str] = None,
        poll_interval: float = 4.0,
        poll_timeout: float = 150.0,
        **kwargs,
    ):
        super().__init__(api_key, **kwargs)
        self.actor_id = actor_id
        self.runner = None
        if apify_token and actor_id:
            self.runner = ApifyActorRunner(
                self, apify_token, poll_interval=poll_interval, poll_timeout=poll_timeout
            )

    def lookup_key(self, identifier: Optional[str], url: Optional[str]) -> Optional[str]:
        return url or identifier

    @property
    def lookup_timeout(self) -> Optional[float]:
        if self.runner is None:
            return None
        return self.runner.poll_timeout + self.LOOKUP_MARGIN_SECONDS

    def listing_url(self, identifier: str) -> str:
        return identifier

    @abstractmethod
    def build_run_input(self, url: str) -> Dict[str, Any]:
        """Actor input that scrapes exactly one listing URL."""

    async def fetch_by_id(self, identifier: str) -> Optional[ListingCandidate]:
        if self.runner is None or not identifier:
            return None

        url = self.listing_url(identifier)
        items = await self.runner.run(self.actor_id, self.build_run_input(url))
        if not items:
            return None

        item = items[0]
        name = item.get('name') or item.get('hotelName')
        if not name:
            return None
        return ListingCandidate(
            display_name=name,
            formatted_address=_coerce_address(item.get('address')),
            identifier=self.extract_identifier(url) or identifier,
            url=url,
        )


class BookingScraper(ApifyBackedSerpAdapter):
    platform_value = Platform.BOOKING
    default_site_filter = "site:booking.com/hotel"
    listing_url_pattern = re.compile(r'booking\.com/hotel/', re.IGNORECASE)

    def extract_identifier(self, url: str) -> Optional[str]:
        return extract_booking_slug(url)

    def listing_url(self, identifier: str) -> str:
        if identifier.startswith('http'):
            return identifier
        return f"https://www.booking.com/hotel/{identifier}.html"

    def build_run_input(self, url: str) -> Dict[str, Any]:
        return {'startUrls': [url], 'maxItems': 1, 'simple': True}


class TripAdvisorScraper(ApifyBackedSerpAdapter):
    platform_value = Platform.TRIPADVISOR
    default_site_filter = "site:tripadvisor.com inurl:Hotel_Review"
    listing_url_pattern = re.compile(r'tripadvisor\.[a-z.]+/Hotel_Review', re.IGNORECASE)

    def extract_identifier(self, url: str) -> Optional[str]:
        return extract_tripadvisor_id(url)

    def build_run_input(self, url: str) -> Dict[str, Any]:
        return {'startUrls': [{'url': url}], 'maxItems': 1}

    async def fetch_by_id(self, identifier: str) -> Optional[ListingCandidate]:
        # Bare location ids cannot be turned back into a review URL
        if not identifier or not identifier.startswith('http'):
            return None
        return await super().fetch_by_id(identifier)


class ExpediaProvider(SerpSearchAdapter):
    platform_value = Platform.EXPEDIA
    default_site_filter = "site:expedia.com inurl:Hotel"
    listing_url_pattern = re.compile(r'(?:expedia|hotels)\.com/', re.IGNORECASE)

    def extract_identifier(self, url: str) -> Optional[str]:
        return extract_expedia_hotel_id(url)
