"""String scoring for matching free-text grocery items to catalog names.

Scores are in the 0-1 range. calculate_match_score applies tiered rules
(substring, token coverage, partial token coverage) before falling back to
normalized Levenshtein similarity.
"""
from typing import List, Optional

from rapidfuzz.distance import Levenshtein

SUBSTRING_SCORE = 0.95
ALL_TOKENS_SCORE = 0.85
PARTIAL_TOKENS_WEIGHT = 0.75
PARTIAL_TOKENS_MIN_RATIO = 0.70


def calculate_similarity(a: str, b: str) -> float:
    """Normalized edit similarity: 1 - levenshtein(a, b) / max(len(a), len(b)).

    Case-insensitive and whitespace-trimmed. Two empty strings are identical.
    """
    s1 = a.lower().strip()
    s2 = b.lower().strip()

    if s1 == s2:
        return 1.0

    return Levenshtein.normalized_similarity(s1, s2)


def _token_matches(token: str, candidates: List[str]) -> bool:
    return any(token in candidate or candidate in token for candidate in candidates)


def calculate_match_score(
    user_input: str,
    product_name: str,
    product_brand: Optional[str] = None,
) -> float:
    """Score how well a free-text item describes a catalog product.

    The first applicable rule wins:
        1. 0.95 if the name contains the input or the input contains the name
        2. 0.85 if every input token matches some token of "brand name"
        3. 0.75 * ratio if at least 70% of input tokens match
        4. best Levenshtein similarity against the name or "brand name"

    Args:
        user_input: Free-text line typed by the shopper, e.g. "milk 2%"
        product_name: Catalog product name
        product_brand: Catalog brand, prepended to the name for token matching

    Returns:
        Score in [0, 1]
    """
    item = user_input.lower().strip()
    name = product_name.lower().strip()
    brand = (product_brand or "").lower().strip()
    full_name = f"{brand} {name}" if brand else name

    if item in name or name in item:
        return SUBSTRING_SCORE

    item_tokens = item.split()
    full_name_tokens = full_name.split()

    matched = [token for token in item_tokens if _token_matches(token, full_name_tokens)]
    if len(matched) == len(item_tokens):
        return ALL_TOKENS_SCORE

    ratio = len(matched) / len(item_tokens)
    if ratio >= PARTIAL_TOKENS_MIN_RATIO:
        return PARTIAL_TOKENS_WEIGHT * ratio

    return max(
        calculate_similarity(item, name),
        calculate_similarity(item, full_name),
    )
