"""
Hotel Name Normalization

Reduces listing and property names to a canonical comparison form and
recognizes chain brand prefixes.

Examples:
    "The Sanctuary Beach Resort"            -> "sanctuary beach resort"
    "Hotel Nia, Autograph Collection"       -> "hotel nia"
    "Courtyard by Marriott Tyler"           -> "tyler"
    "Hyatt Regency West Hollywood"          -> "west hollywood"
    "Hampton Inn" (brand strip leaves "inn") -> "hampton inn"
"""
import re
import unicodedata
from typing import List, Optional

from .brand_table import (
    BRAND_ANYWHERE,
    BRAND_FAMILIES,
    BRAND_PREFIX_GROUPS,
    BRAND_STRIP_GROUPS,
    COLLECTION_SUFFIX_PATTERNS,
    FILLER_WORDS,
    LOCATION_STOPWORDS,
)

_LEADING_THE = re.compile(r'^(?:the\s+)+')
_SEPARATORS = re.compile(r'[,\-/]')
_LOCATION_TAIL = re.compile(r'\s+(?:near|at|in)\s+.*$')
_WHITESPACE = re.compile(r'\s+')

_STRIP_PATTERNS = tuple(re.compile(rf'^(?:{group})\b\s*') for group in BRAND_STRIP_GROUPS)
_PREFIX_PATTERNS = tuple(re.compile(rf'^(?:{group})\b') for group in BRAND_PREFIX_GROUPS)
_ANYWHERE_PATTERN = re.compile(rf'\b(?:{BRAND_ANYWHERE})\b')

# Every pass only removes text, so the pipeline settles quickly
_MAX_PASSES = 8


def strip_diacritics(text: str) -> str:
    """Decompose and drop combining marks: "Méridien" -> "Meridien"."""
    decomposed = unicodedata.normalize('NFD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(' ', text).strip()


def _has_identifying_word(text: str) -> bool:
    return any(
        len(word) > 2 and word not in LOCATION_STOPWORDS and word not in FILLER_WORDS
        for word in text.split()
    )


def _strip_brand_prefix(name: str) -> str:
    stripped = name
    for pattern in _STRIP_PATTERNS:
        stripped = pattern.sub('', stripped, count=1)
    stripped = _collapse(stripped)

    if stripped != name and _has_identifying_word(stripped):
        return stripped
    return name


def _normalize_once(name: str, keep_brand_prefix: bool) -> str:
    normalized = _LEADING_THE.sub('', name.lower().strip())

    for pattern in COLLECTION_SUFFIX_PATTERNS:
        normalized = pattern.sub('', normalized)

    normalized = normalized.replace('&', ' and ').replace('.', '')
    normalized = _SEPARATORS.sub(' ', normalized)
    normalized = strip_diacritics(normalized)
    normalized = _LOCATION_TAIL.sub('', normalized)
    normalized = _LEADING_THE.sub('', _collapse(normalized))

    if not keep_brand_prefix:
        normalized = _strip_brand_prefix(normalized)

    return normalized


def normalize(raw_name: str, keep_brand_prefix: bool = False) -> str:
    """
    Normalize a hotel name for comparison.

    Args:
        raw_name: Name as entered or as displayed by a platform
        keep_brand_prefix: Skip the final chain-prefix strip

    Returns:
        Lowercase, punctuation-free name without collection suffixes or
        location tails. Applying it twice gives the same result.
    """
    if not raw_name:
        return ''

    current = raw_name
    for _ in range(_MAX_PASSES):
        following = _normalize_once(current, keep_brand_prefix)
        if following == current:
            break
        current = following
    return current


def extract_brand_prefix(name: str) -> Optional[str]:
    """
    Find the chain brand a name belongs to.

    Leading prefixes are checked family by family, then a short list of
    unmistakable brand words anywhere in the name.

    Returns:
        Lowercase brand token (e.g. "westin", "hyatt regency") or None
    """
    if not name:
        return None

    cleaned = _collapse(_LEADING_THE.sub('', strip_diacritics(name.lower()).strip()))

    for pattern in _PREFIX_PATTERNS:
        match = pattern.match(cleaned)
        if match:
            return match.group(0)

    match = _ANYWHERE_PATTERN.search(cleaned)
    return match.group(0) if match else None


def get_brand_family(brand: Optional[str]) -> Optional[str]:
    """Parent family for a brand token, None when unknown."""
    if not brand:
        return None
    return BRAND_FAMILIES.get(brand.lower().strip())


def brands_compatible(brand_a: Optional[str], brand_b: Optional[str]) -> bool:
    """Same brand, or two sub-brands of one family."""
    if not brand_a or not brand_b:
        return False
    if brand_a == brand_b:
        return True
    family_a = get_brand_family(brand_a)
    return family_a is not None and family_a == get_brand_family(brand_b)


def family_brands(family: str) -> List[str]:
    """All sub-brands registered under a family."""
    return [brand for brand, owner in BRAND_FAMILIES.items() if owner == family]


def significant_words(normalized_name: str) -> List[str]:
    """Words that carry identity: longer than one char and not filler."""
    return [
        word for word in normalized_name.split()
        if len(word) > 1 and word not in FILLER_WORDS
    ]
