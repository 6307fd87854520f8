"""Daily price trend statistics from price history."""
from datetime import date, timezone
from decimal import Decimal
from typing import Dict, List, Sequence

from pricecompare.models.catalog import PriceHistoryRecord
from pricecompare.models.pricing import PriceTrendPoint
from pricecompare.services.aggregation.stats import round_price


def daily_price_trends(history: Sequence[PriceHistoryRecord]) -> List[PriceTrendPoint]:
    """Group observations by UTC calendar date and compute avg/min/max per day."""
    by_day: Dict[date, List[Decimal]] = {}
    for record in history:
        recorded_at = record.recorded_at
        if recorded_at.tzinfo is not None:
            recorded_at = recorded_at.astimezone(timezone.utc)
        by_day.setdefault(recorded_at.date(), []).append(record.price)

    return [
        PriceTrendPoint(
            date=day,
            avg_price=round_price(sum(prices, Decimal("0")) / len(prices)),
            min_price=min(prices),
            max_price=max(prices),
        )
        for day, prices in sorted(by_day.items())
    ]
