"""Third-party catalog API clients and price source adapters.

Available Components:
    - KrogerClient: Kroger products API (OAuth2, UPC lookup)
    - WalmartClient: Walmart search through SerpApi
    - OpenFoodFactsClient: Open product database used for enrichment
    - SearchCache: Redis cache of normalized search results
    - ExternalPriceSource, KrogerPriceSource, WalmartPriceSource: adapters
      consumed by the price aggregator
"""
from pricecompare.services.external.base import BaseApiClient
from pricecompare.services.external.search_cache import SearchCache, normalize_query
from pricecompare.services.external.kroger_client import KrogerClient
from pricecompare.services.external.walmart_client import WalmartClient
from pricecompare.services.external.openfoodfacts_client import OpenFoodFactsClient
from pricecompare.services.external.sources import (
    ExternalPriceSource,
    KrogerPriceSource,
    WalmartPriceSource,
)

__all__ = [
    "BaseApiClient",
    "SearchCache",
    "normalize_query",
    "KrogerClient",
    "WalmartClient",
    "OpenFoodFactsClient",
    "ExternalPriceSource",
    "KrogerPriceSource",
    "WalmartPriceSource",
]
