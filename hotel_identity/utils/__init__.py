"""Utility modules for hotel identity resolution"""

from .hotel_matcher import MatchVerdict, analyze_match, validate_city
from .name_normalizer import brands_compatible, extract_brand_prefix, get_brand_family, normalize
from .query_generator import generate_queries

__all__ = [
    'MatchVerdict',
    'analyze_match',
    'validate_city',
    'brands_compatible',
    'extract_brand_prefix',
    'get_brand_family',
    'normalize',
    'generate_queries',
]
