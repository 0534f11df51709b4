"""
Hotel Name Matching

Decides whether a platform listing names the same hotel as an internal
property. Every decision carries a human-readable reason for reviewers.

Rule order (first satisfied rule wins):
1. Conflicting chain brands veto the match
2. Brand only on the search side needs an exact match or a sibling brand
3. Exact match after normalization
4. Containment, when the contained name is specific enough
5. Significant-word overlap with a size-dependent threshold
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .name_normalizer import (
    brands_compatible,
    extract_brand_prefix,
    family_brands,
    get_brand_family,
    normalize,
    significant_words,
    strip_diacritics,
)
from .brand_table import FILLER_WORDS, LOCATION_STOPWORDS


@dataclass
class MatchVerdict:
    """Result of comparing a search name with a candidate name"""
    is_match: bool
    matching_word_count: int
    search_words: List[str]
    candidate_words: List[str]
    reason: str
    normalized_search: str = ''
    normalized_candidate: str = ''
    search_brand: Optional[str] = None
    candidate_brand: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_match': self.is_match,
            'matching_word_count': self.matching_word_count,
            'search_words': list(self.search_words),
            'candidate_words': list(self.candidate_words),
            'reason': self.reason,
            'normalized_search': self.normalized_search,
            'normalized_candidate': self.normalized_candidate,
            'search_brand': self.search_brand,
            'candidate_brand': self.candidate_brand,
        }


def words_match_fuzzy(word_a: str, word_b: str) -> bool:
    """Identical, or the shorter word (4+ chars) sits inside the longer one."""
    if word_a == word_b:
        return True
    shorter, longer = sorted((word_a, word_b), key=len)
    return len(shorter) >= 4 and shorter in longer


def _specific_words(normalized_name: str) -> List[str]:
    return [
        word for word in normalized_name.split()
        if len(word) > 2 and word not in FILLER_WORDS and word not in LOCATION_STOPWORDS
    ]


def _mentions_family_brand(family: Optional[str], candidate_name: str) -> bool:
    if not family:
        return False
    text = strip_diacritics(candidate_name.lower())
    return any(
        re.search(rf'\b{re.escape(brand)}\b', text)
        for brand in family_brands(family)
    )


def _word_overlap(search_words: List[str], candidate_words: List[str]) -> Tuple[bool, int, str]:
    matching = sum(
        1 for search_word in search_words
        if any(words_match_fuzzy(search_word, candidate_word) for candidate_word in candidate_words)
    )
    total = len(search_words)

    if total <= 2:
        is_match = total > 0 and matching >= total
        if is_match:
            reason = f"Short name: all {total} significant words match"
        else:
            reason = f"Short name: only {matching}/{total} significant words match"
        return is_match, matching, reason

    required = max(2, math.ceil(total * 0.5))
    if matching >= required:
        return True, matching, f"{matching}/{total} significant words match (>={required} required)"
    return False, matching, f"Only {matching}/{total} significant words match (<{required} required)"


def analyze_match(search_name: str, candidate_name: str) -> MatchVerdict:
    """
    Compare an internal property name with a listing's display name.

    Args:
        search_name: Property name as stored internally
        candidate_name: Listing name as returned by a platform

    Returns:
        MatchVerdict with is_match, supporting word lists and the reason
    """
    normalized_search = normalize(search_name)
    normalized_candidate = normalize(candidate_name)
    search_words = significant_words(normalized_search)
    candidate_words = significant_words(normalized_candidate)
    search_brand = extract_brand_prefix(search_name)
    candidate_brand = extract_brand_prefix(candidate_name)

    def verdict(is_match: bool, reason: str, matching: Optional[int] = None) -> MatchVerdict:
        if matching is None:
            matching = len(search_words) if is_match else 0
        return MatchVerdict(
            is_match=is_match,
            matching_word_count=matching,
            search_words=search_words,
            candidate_words=candidate_words,
            reason=reason,
            normalized_search=normalized_search,
            normalized_candidate=normalized_candidate,
            search_brand=search_brand,
            candidate_brand=candidate_brand,
        )

    # 1. Brand gate
    if search_brand and candidate_brand and not brands_compatible(search_brand, candidate_brand):
        return verdict(
            False,
            f'Brand mismatch: searching for "{search_brand}" but found "{candidate_brand}"',
        )

    # 2. Brand on the search side only
    if search_brand and not candidate_brand:
        if normalized_search and normalized_search == normalized_candidate:
            return verdict(True, "Exact normalized match (brand in search only)")
        if not _mentions_family_brand(get_brand_family(search_brand), candidate_name):
            return verdict(
                False,
                f'Brand "{search_brand}" in search but no brand in result - likely different hotel',
            )
        is_match, matching, reason = _word_overlap(search_words, candidate_words)
        return verdict(is_match, reason, matching)

    # 3. Exact
    if normalized_search and normalized_search == normalized_candidate:
        return verdict(True, "Exact match after normalization")

    # 4. Containment
    if normalized_search and normalized_candidate and (
        normalized_search in normalized_candidate or normalized_candidate in normalized_search
    ):
        shorter, longer = sorted((normalized_search, normalized_candidate), key=len)
        specific = _specific_words(shorter)

        if len(specific) >= 2:
            return verdict(True, "One name contains the other")
        if search_brand and candidate_brand:
            family = get_brand_family(search_brand) or search_brand
            return verdict(True, f'Same brand family "{family}" + containment match')
        if any(len(word) >= 6 for word in specific):
            return verdict(True, f'"{shorter}" is distinctive enough and contained in "{longer}"')

    # 5. Word overlap
    is_match, matching, reason = _word_overlap(search_words, candidate_words)
    return verdict(is_match, reason, matching)


def validate_city(candidate_address: Optional[str], expected_city: Optional[str]) -> bool:
    """
    Check a listing's address against the property's city.

    A missing address or city passes; otherwise the first comma-separated
    segment of the city must appear in the address (case-insensitive).
    """
    if not candidate_address or not expected_city:
        return True

    city = strip_diacritics(expected_city.split(',')[0].strip().lower())
    if not city:
        return True
    return city in strip_diacritics(candidate_address.lower())
