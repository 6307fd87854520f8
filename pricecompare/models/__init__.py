"""Pydantic validation and transfer models."""
from pricecompare.models.catalog import (
    CatalogSource,
    StorePriceRecord,
    CatalogProduct,
    CatalogProductIn,
    ListItemRecord,
    PriceHistoryRecord,
    ProductEnrichmentUpdate,
)
from pricecompare.models.external import (
    ExternalPrice,
    Nutrition,
    ProductAttributes,
    NormalizedProduct,
)
from pricecompare.models.matching import (
    MatchedProduct,
    LocalProductMatch,
    MatchStats,
    ProductMatchResult,
)
from pricecompare.models.pricing import (
    DataQuality,
    PriceSource,
    PriceRange,
    AggregatedPrice,
    LookupStatus,
    ProductPriceLookup,
    StoreTotal,
    ComparisonResult,
    PriceTrendPoint,
    EnrichmentResult,
)

__all__ = [
    # Catalog records
    "CatalogSource",
    "StorePriceRecord",
    "CatalogProduct",
    "CatalogProductIn",
    "ListItemRecord",
    "PriceHistoryRecord",
    "ProductEnrichmentUpdate",
    # External sources
    "ExternalPrice",
    "Nutrition",
    "ProductAttributes",
    "NormalizedProduct",
    # Matching
    "MatchedProduct",
    "LocalProductMatch",
    "MatchStats",
    "ProductMatchResult",
    # Pricing
    "DataQuality",
    "PriceSource",
    "PriceRange",
    "AggregatedPrice",
    "LookupStatus",
    "ProductPriceLookup",
    "StoreTotal",
    "ComparisonResult",
    "PriceTrendPoint",
    "EnrichmentResult",
]
