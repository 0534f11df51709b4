"""
Hotel chain brand tables.

Read-only module data shared by the normalizer and matcher. Family
membership is used for compatibility checks only, never to rewrite names.
"""
import re
from types import MappingProxyType
from typing import Tuple

# Sub-brand -> parent family
BRAND_FAMILIES = MappingProxyType({
    # Marriott
    'marriott': 'marriott', 'jw marriott': 'marriott', 'sheraton': 'marriott',
    'westin': 'marriott', 'le meridien': 'marriott', 'st. regis': 'marriott',
    'st regis': 'marriott', 'w hotel': 'marriott', 'delta hotel': 'marriott',
    'delta hotels': 'marriott', 'edition': 'marriott', 'moxy': 'marriott',
    'aloft': 'marriott', 'element': 'marriott', 'ac hotel': 'marriott',
    'courtyard': 'marriott', 'residence inn': 'marriott',
    'springhill suites': 'marriott', 'towneplace suites': 'marriott',
    'fairfield': 'marriott', 'ritz-carlton': 'marriott', 'ritz carlton': 'marriott',
    # Hilton
    'hilton': 'hilton', 'waldorf astoria': 'hilton', 'conrad': 'hilton',
    'doubletree': 'hilton', 'embassy suites': 'hilton', 'hampton': 'hilton',
    'homewood suites': 'hilton', 'home2 suites': 'hilton', 'tru': 'hilton',
    'canopy': 'hilton',
    # Hyatt
    'hyatt': 'hyatt', 'park hyatt': 'hyatt', 'grand hyatt': 'hyatt',
    'hyatt regency': 'hyatt', 'hyatt centric': 'hyatt', 'hyatt place': 'hyatt',
    'hyatt house': 'hyatt', 'andaz': 'hyatt', 'thompson': 'hyatt', 'alila': 'hyatt',
    # IHG
    'intercontinental': 'ihg', 'kimpton': 'ihg', 'hotel indigo': 'ihg',
    'crowne plaza': 'ihg', 'holiday inn': 'ihg', 'staybridge': 'ihg',
    'candlewood': 'ihg', 'avid': 'ihg', 'atwell': 'ihg',
    # Accor
    'fairmont': 'accor', 'sofitel': 'accor', 'raffles': 'accor',
    # Wyndham
    'wyndham': 'wyndham', 'ramada': 'wyndham', 'days inn': 'wyndham',
    'super 8': 'wyndham', 'la quinta': 'wyndham',
    # Choice
    'quality inn': 'choice', 'comfort inn': 'choice',
    # Single-brand families
    'best western': 'best_western',
    'radisson': 'radisson',
})

# Prefixes tried (in order) when looking for the brand a name starts with.
# Alternations within a group are ordered longest/most specific first.
BRAND_PREFIX_GROUPS: Tuple[str, ...] = (
    r'andaz|thompson|alila|park hyatt|grand hyatt|hyatt regency|hyatt centric|hyatt place|hyatt house',
    r'jw marriott|marriott|sheraton|westin|le meridien|st\. regis|st regis|w hotel|delta hotels?|'
    r'edition|moxy|aloft|element|ac hotel|courtyard|residence inn|springhill suites|towneplace suites|fairfield',
    r'waldorf astoria|conrad|hilton|doubletree|embassy suites|hampton|homewood suites|home2 suites|tru|canopy',
    r'intercontinental|kimpton|hotel indigo|crowne plaza|holiday inn|staybridge|candlewood|avid|atwell',
    r'four seasons|ritz[- ]carlton|peninsula|mandarin oriental|rosewood|fairmont|sofitel|nobu',
    r'wyndham|radisson|best western|la quinta|quality inn|comfort inn|days inn|super 8|ramada',
)

# Well-known brand words that identify a chain wherever they appear
BRAND_ANYWHERE = (
    r'marriott|sheraton|westin|hilton|hyatt|doubletree|hampton|holiday inn|'
    r'crowne plaza|fairmont|sofitel|courtyard|residence inn'
)

# Prefixes stripped by the normalizer, applied group by group
BRAND_STRIP_GROUPS: Tuple[str, ...] = (
    r'park hyatt|grand hyatt|hyatt regency|hyatt centric|hyatt place|hyatt house|andaz|thompson|alila',
    r'jw marriott|marriott|sheraton|westin|le meridien|st\. regis|st regis|w hotel|delta hotels?|'
    r'edition|moxy|aloft|element|ac hotel|courtyard|residence inn|springhill suites|towneplace suites',
    r'waldorf astoria|conrad|hilton|doubletree|embassy suites|hampton|homewood suites|home2 suites|tru',
    r'intercontinental|kimpton|hotel indigo|crowne plaza|holiday inn|staybridge|candlewood|avid|atwell|vignette',
    r'four seasons|ritz[- ]carlton|peninsula|mandarin oriental|rosewood|aman|banyan tree|raffles|fairmont|sofitel|nobu',
    r'wyndham|radisson|best western|choice|la quinta|motel 6|red roof|quality inn|comfort inn|days inn|super 8|ramada',
)

# Collection/soft-brand markers and "by <chain>" tails that carry no identity
COLLECTION_SUFFIX_PATTERNS = tuple(re.compile(p) for p in (
    r',?\s*\b(?:a tribute portfolio hotel|tribute portfolio hotel|tribute portfolio|autograph collection)\b',
    r',?\s*\b(?:luxury collection|curio collection|tapestry collection|unbound collection|vignette collection)\b',
    r',?\s*\b(?:joie de vivre|destination|regent|six senses|lxr hotels?|canopy|signia)\b',
    r',?\s*\bby\s+(?:marriott|hilton|hyatt|ihg|wyndham|accor|choice|best western|radisson|sonesta)\b',
))

# Words that alone do not identify a hotel once a brand prefix is removed
LOCATION_STOPWORDS = frozenset({
    'hotel', 'inn', 'resort', 'suites', 'lodge', 'motel',
    'west', 'east', 'north', 'south', 'downtown', 'airport', 'beach',
    'center', 'centre',
})

# Dropped before word-overlap comparison
FILLER_WORDS = frozenset({
    'hotel', 'hotels', 'inn', 'inns', 'suites', 'suite', 'resort', 'resorts',
    'and', 'the', 'a', 'an', 'at', 'in', 'on', 'by', 'of', 'to',
    'spa', 'lodge', 'motel', 'house', 'place', 'center', 'centre',
})

# Lodging nouns; a query already containing one gets no extra "hotel"
LODGING_WORDS = frozenset({
    'hotel', 'hotels', 'inn', 'resort', 'suites', 'lodge', 'motel', 'hostel',
})
