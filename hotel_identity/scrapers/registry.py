"""
Adapter construction.

Chooses the adapter implementation for each platform once, from settings
and platform config. A platform with missing credentials gets an
UnconfiguredAdapter so its resolution is recorded as failed, not skipped.
"""
from typing import Dict, Iterable, Optional

import aiohttp
import structlog

from ..config.schemas import PlatformsConfig
from ..config.settings import Settings
from ..resolution_types import Platform
from .base.errors import AdapterConfigurationError
from .base.source_adapter import SourceAdapter
from .platforms.google_places import GooglePlacesAdapter
from .platforms.serp_search import BookingScraper, ExpediaProvider, TripAdvisorScraper
from .platforms.unconfigured import UnconfiguredAdapter

logger = structlog.get_logger(__name__)

_SERP_ADAPTERS = {
    Platform.BOOKING: BookingScraper,
    Platform.TRIPADVISOR: TripAdvisorScraper,
    Platform.EXPEDIA: ExpediaProvider,
}


def _build_one(
    platform: Platform,
    settings: Settings,
    platforms_config: PlatformsConfig,
    session: Optional[aiohttp.ClientSession],
) -> SourceAdapter:
    config = platforms_config.for_platform(platform)
    common = dict(
        match_confidence=config.match_confidence,
        min_call_interval=config.min_call_interval_seconds,
        timeout=settings.ADAPTER_CALL_TIMEOUT_SECONDS,
        session=session,
    )

    if platform == Platform.GOOGLE:
        return GooglePlacesAdapter(settings.GOOGLE_PLACES_API_KEY, **common)

    adapter_class = _SERP_ADAPTERS[platform]
    if adapter_class is ExpediaProvider:
        return adapter_class(settings.SERPAPI_API_KEY, site_filter=config.site_filter, **common)
    return adapter_class(
        settings.SERPAPI_API_KEY,
        apify_token=settings.APIFY_API_TOKEN,
        actor_id=config.actor_id,
        poll_interval=config.poll_interval_seconds,
        poll_timeout=config.poll_timeout_seconds,
        site_filter=config.site_filter,
        **common,
    )


def build_adapters(
    settings: Settings,
    platforms_config: PlatformsConfig,
    platforms: Optional[Iterable[Platform]] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> Dict[Platform, SourceAdapter]:
    """
    Build one adapter per requested (and enabled) platform.

    Args:
        settings: Application settings (API keys, timeouts)
        platforms_config: Per-platform config
        platforms: Subset to build; defaults to all platforms
        session: Optional shared aiohttp session

    Returns:
        Ordered dict of platform -> adapter
    """
    adapters: Dict[Platform, SourceAdapter] = {}
    for platform in platforms or list(Platform):
        if not platforms_config.for_platform(platform).enabled:
            logger.info("platform_disabled", platform=platform.value)
            continue
        try:
            adapters[platform] = _build_one(platform, settings, platforms_config, session)
        except AdapterConfigurationError as e:
            logger.warning("platform_unconfigured", platform=platform.value, reason=str(e))
            adapters[platform] = UnconfiguredAdapter(platform, str(e))
    return adapters
