"""Errors raised by source adapters."""


class SourceAdapterError(Exception):
    """Base class for adapter failures"""


class RateLimitedError(SourceAdapterError):
    """Upstream explicitly signalled rate limiting (e.g. HTTP 429)"""

    def __init__(self, message: str = "RATE_LIMITED", retry_after: float = None):
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamTimeoutError(SourceAdapterError):
    """Upstream call or job did not finish in time"""


class PollTimeoutError(UpstreamTimeoutError):
    """A polled job never reached a terminal state"""


class UpstreamUnavailableError(SourceAdapterError):
    """Transport failure or unexpected upstream response"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class AdapterConfigurationError(SourceAdapterError):
    """Adapter cannot run, typically a missing API key"""
