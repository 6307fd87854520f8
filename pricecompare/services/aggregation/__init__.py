"""Price aggregation services.

Key Components:
    - PriceAggregator: Multi-source price merging, list comparison,
      enrichment, trends and price observations
    - build_comparison / rank_stores: Store ranking for a shopping list
    - daily_price_trends: Per-day price statistics
"""
from pricecompare.services.aggregation.comparison import (
    build_comparison,
    calculate_store_totals,
    rank_stores,
)
from pricecompare.services.aggregation.service import PriceAggregator
from pricecompare.services.aggregation.stats import data_quality_for, summarize_prices
from pricecompare.services.aggregation.trends import daily_price_trends

__all__ = [
    "PriceAggregator",
    "build_comparison",
    "calculate_store_totals",
    "rank_stores",
    "data_quality_for",
    "summarize_prices",
    "daily_price_trends",
]
