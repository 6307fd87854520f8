"""Product matching services.

Key Components:
    - calculate_similarity / calculate_match_score: 0-1 string scoring
    - ProductMatcher: Local catalog matching and catalog growth
    - CatalogStore: Protocol for the catalog persistence it needs
"""
from pricecompare.services.matching.scoring import (
    calculate_similarity,
    calculate_match_score,
)
from pricecompare.services.matching.matcher import (
    CatalogStore,
    ProductMatcher,
)

__all__ = [
    "calculate_similarity",
    "calculate_match_score",
    "CatalogStore",
    "ProductMatcher",
]
