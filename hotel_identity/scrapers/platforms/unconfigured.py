from typing import List

from ...resolution_types import ListingCandidate, Platform
from ..base.errors import AdapterConfigurationError
from ..base.source_adapter import SourceAdapter


class UnconfiguredAdapter(SourceAdapter):
    """Placeholder for a platform whose credentials are missing; every search fails."""

    def __init__(self, platform: Platform, reason: str):
        super().__init__(platform)
        self.reason = reason

    async def search(self, query: str) -> List[ListingCandidate]:
        raise AdapterConfigurationError(self.reason)
