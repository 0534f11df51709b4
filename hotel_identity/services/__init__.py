from .resolution_orchestrator import (
    NON_MATCH_CONFIDENCE,
    RATE_LIMITED,
    ResolutionCancelled,
    ResolutionOrchestrator,
    classify_failure,
)
from .batch_resolution import BatchResolver, BatchResult

__all__ = [
    'NON_MATCH_CONFIDENCE',
    'RATE_LIMITED',
    'ResolutionCancelled',
    'ResolutionOrchestrator',
    'classify_failure',
    'BatchResolver',
    'BatchResult',
]
