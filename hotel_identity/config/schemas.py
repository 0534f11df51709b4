"""
Pydantic schemas for per-platform configuration.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..resolution_types import Platform


class PlatformConfig(BaseModel):
    """Configuration for one review platform adapter."""
    enabled: bool = True
    min_call_interval_seconds: float = Field(default=0.5, ge=0, description="Fixed delay between calls to this platform")
    match_confidence: float = Field(default=0.85, gt=0, le=1.0, description="Confidence assigned to a positive match")
    site_filter: Optional[str] = Field(None, description="Search-engine site filter (SERP platforms only)")
    actor_id: Optional[str] = Field(None, description="Apify actor used for listing re-verification")
    poll_interval_seconds: float = Field(default=4.0, gt=0)
    poll_timeout_seconds: float = Field(default=150.0, gt=0)

    @field_validator('site_filter')
    @classmethod
    def validate_site_filter(cls, v):
        if v is not None and 'site:' not in v:
            raise ValueError("site_filter must contain a 'site:' operator")
        return v


class PlatformsConfig(BaseModel):
    """All platform configs, keyed by platform name."""
    google: PlatformConfig = Field(default_factory=lambda: PlatformConfig(match_confidence=0.9))
    booking: PlatformConfig = Field(default_factory=PlatformConfig)
    tripadvisor: PlatformConfig = Field(default_factory=PlatformConfig)
    expedia: PlatformConfig = Field(default_factory=PlatformConfig)

    def for_platform(self, platform: Platform) -> PlatformConfig:
        return getattr(self, platform.value)
