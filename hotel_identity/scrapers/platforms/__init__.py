from .google_places import GooglePlacesAdapter
from .serp_search import BookingScraper, ExpediaProvider, SerpSearchAdapter, TripAdvisorScraper
from .unconfigured import UnconfiguredAdapter

__all__ = [
    'GooglePlacesAdapter',
    'BookingScraper',
    'ExpediaProvider',
    'SerpSearchAdapter',
    'TripAdvisorScraper',
    'UnconfiguredAdapter',
]
