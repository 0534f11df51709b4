from .errors import (
    AdapterConfigurationError,
    PollTimeoutError,
    RateLimitedError,
    SourceAdapterError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from .source_adapter import FixedIntervalRateLimiter, HttpSourceAdapter, SourceAdapter

__all__ = [
    'AdapterConfigurationError',
    'PollTimeoutError',
    'RateLimitedError',
    'SourceAdapterError',
    'UpstreamTimeoutError',
    'UpstreamUnavailableError',
    'FixedIntervalRateLimiter',
    'HttpSourceAdapter',
    'SourceAdapter',
]
