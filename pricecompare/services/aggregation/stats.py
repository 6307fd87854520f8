"""Summary statistics over a product's merged per-store prices."""
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from pricecompare.models.pricing import DataQuality, PriceRange, PriceSource

CENTS = Decimal("0.01")


def round_price(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def data_quality_for(source_count: int, high_min: int = 5, medium_min: int = 2) -> DataQuality:
    """Tier by number of sources: high >= 5, medium >= 2, otherwise low."""
    if source_count >= high_min:
        return DataQuality.HIGH
    if source_count >= medium_min:
        return DataQuality.MEDIUM
    return DataQuality.LOW


@dataclass
class PriceSummary:
    lowest_price: Optional[PriceSource]
    average_price: Optional[Decimal]
    price_range: Optional[PriceRange]
    data_quality: DataQuality
    last_updated: datetime


def summarize_prices(
    prices: Sequence[PriceSource],
    now: datetime,
    high_min: int = 5,
    medium_min: int = 2,
) -> PriceSummary:
    """Compute lowest, mean, range, quality tier and freshness.

    The lowest price is the first minimum in encounter order. With no
    prices, every statistic is None and last_updated is `now`.
    """
    if not prices:
        return PriceSummary(
            lowest_price=None,
            average_price=None,
            price_range=None,
            data_quality=data_quality_for(0, high_min, medium_min),
            last_updated=now,
        )

    lowest = prices[0]
    for price in prices[1:]:
        if price.price < lowest.price:
            lowest = price

    values = [p.price for p in prices]
    return PriceSummary(
        lowest_price=lowest,
        average_price=round_price(sum(values, Decimal("0")) / len(values)),
        price_range=PriceRange(min=min(values), max=max(values)),
        data_quality=data_quality_for(len(prices), high_min, medium_min),
        last_updated=max(p.last_updated for p in prices),
    )
