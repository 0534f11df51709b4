"""
Shared value types for hotel identity resolution.

PropertyRef is the input, ListingCandidate is what a platform returns,
ResolutionRecord is the persisted outcome of one (property, platform) unit.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class Platform(str, Enum):
    GOOGLE = "google"
    BOOKING = "booking"
    TRIPADVISOR = "tripadvisor"
    EXPEDIA = "expedia"


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    NEEDS_REVIEW = "needs_review"
    NOT_LISTED = "not_listed"
    SCRAPE_FAILED = "scrape_failed"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class PropertyRef:
    """Internal property being resolved"""
    id: str
    name: str
    city: str
    state: Optional[str] = None


@dataclass(frozen=True)
class ListingCandidate:
    """One listing returned by a platform search"""
    display_name: str
    formatted_address: Optional[str] = None
    identifier: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'display_name': self.display_name,
            'formatted_address': self.formatted_address,
            'identifier': self.identifier,
            'url': self.url,
        }


@dataclass
class ScoredCandidate:
    """Candidate plus the matcher's verdict, as shown to a reviewer"""
    candidate: ListingCandidate
    is_match: bool
    confidence: float
    reason: str
    city_ok: bool = True

    def to_dict(self) -> Dict[str, Any]:
        data = self.candidate.to_dict()
        data.update({
            'is_match': self.is_match,
            'confidence': self.confidence,
            'reason': self.reason,
            'city_ok': self.city_ok,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScoredCandidate':
        return cls(
            candidate=ListingCandidate(
                display_name=data.get('display_name', ''),
                formatted_address=data.get('formatted_address'),
                identifier=data.get('identifier'),
                url=data.get('url'),
            ),
            is_match=bool(data.get('is_match', False)),
            confidence=float(data.get('confidence', 0.0)),
            reason=data.get('reason', ''),
            city_ok=bool(data.get('city_ok', True)),
        )


@dataclass
class ResolutionRecord:
    """Outcome of resolving one property on one platform"""
    property_id: str
    platform: Platform
    status: ResolutionStatus
    identifier: Optional[str] = None
    url: Optional[str] = None
    display_name: Optional[str] = None
    confidence: Optional[float] = None
    reason: Optional[str] = None
    candidates: List[ScoredCandidate] = field(default_factory=list)
    last_error: Optional[str] = None
    attempts: int = 0
    queries_tried: List[str] = field(default_factory=list)
    duration_ms: int = 0
    resolved_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def key(self) -> tuple:
        return (self.property_id, self.platform.value)

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly form for review tooling and CLI output"""
        return {
            'property_id': self.property_id,
            'platform': self.platform.value,
            'status': self.status.value,
            'identifier': self.identifier,
            'url': self.url,
            'display_name': self.display_name,
            'confidence': self.confidence,
            'reason': self.reason,
            'candidates': [c.to_dict() for c in self.candidates],
            'last_error': self.last_error,
            'attempts': self.attempts,
            'queries_tried': list(self.queries_tried),
            'duration_ms': self.duration_ms,
            'resolved_at': self.resolved_at.isoformat(),
        }
