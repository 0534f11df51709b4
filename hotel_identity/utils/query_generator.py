"""
Search query variants for a property, ordered by specificity.
"""
from typing import List, Optional

from .brand_table import LODGING_WORDS
from .name_normalizer import normalize, significant_words


def _with_lodging_suffix(name: str) -> str:
    if any(word in LODGING_WORDS for word in name.split()):
        return name
    return f"{name} hotel"


def generate_queries(hotel_name: str, city: str, state: Optional[str] = None) -> List[str]:
    """
    Build search queries for a property, most specific first.

    Order: normalized name + city + state, normalized name + city,
    original name + city, first two significant words + city. The
    normalized name keeps its brand prefix since search backends rank on
    it. Duplicates (ignoring case and spacing) are dropped.

    Example:
        generate_queries("The Westin Sacramento", "Sacramento", "CA")[0]
        -> "westin sacramento hotel Sacramento CA"
    """
    city = (city or '').strip()
    state = (state or '').strip()
    original = ' '.join((hotel_name or '').split())
    normalized = normalize(original, keep_brand_prefix=True)

    candidates = []
    if normalized:
        base = _with_lodging_suffix(normalized)
        if state:
            candidates.append(f"{base} {city} {state}")
        candidates.append(f"{base} {city}")

    if original:
        candidates.append(f"{original} {city}")

    words = significant_words(normalized)
    if len(words) > 2:
        candidates.append(f"{_with_lodging_suffix(' '.join(words[:2]))} {city}")

    queries = []
    seen = set()
    for query in candidates:
        query = ' '.join(query.split())
        key = query.lower()
        if query and key not in seen:
            seen.add(key)
            queries.append(query)
    return queries
