"""Store-by-store shopping list comparison.

A store's total is the sum of price * quantity over the list products it
prices. Stores are ranked by how many list items they miss, fewest first,
and only then by cost.
"""
from decimal import Decimal
from typing import Dict, List, Sequence
from uuid import UUID

from pricecompare.models.catalog import ListItemRecord
from pricecompare.models.pricing import AggregatedPrice, ComparisonResult, StoreTotal

UNKNOWN_STORE_NAME = "Unknown Store"


def calculate_store_totals(
    products: Sequence[AggregatedPrice],
    items: Sequence[ListItemRecord],
) -> List[StoreTotal]:
    """Accumulate basket cost per store.

    The quantity for a product comes from the first list item matched to
    it. missing_items is the number of list lines (matched or not) the
    store does not price.
    """
    quantities: Dict[UUID, int] = {}
    for item in items:
        if item.matched_product_id and item.matched_product_id not in quantities:
            quantities[item.matched_product_id] = item.effective_quantity

    totals: Dict[str, StoreTotal] = {}
    for product in products:
        quantity = quantities.get(product.product_id, 1)
        for price in product.prices:
            if not price.store_id:
                continue
            total = totals.get(price.store_id)
            if total is None:
                total = StoreTotal(
                    store_id=price.store_id,
                    store_name=price.store_name or UNKNOWN_STORE_NAME,
                )
                totals[price.store_id] = total
            total.total_cost += price.price * quantity
            total.item_count += 1

    for total in totals.values():
        total.missing_items = len(items) - total.item_count

    return list(totals.values())


def rank_stores(totals: Sequence[StoreTotal]) -> List[StoreTotal]:
    """Fewest missing items first, then ascending total cost (stable)."""
    return sorted(totals, key=lambda s: (s.missing_items, s.total_cost))


def build_comparison(
    products: List[AggregatedPrice],
    items: Sequence[ListItemRecord],
    max_alternatives: int = 4,
) -> ComparisonResult:
    ranked = rank_stores(calculate_store_totals(products, items))

    if not ranked:
        return ComparisonResult(products=products)

    recommended = next((s for s in ranked if s.missing_items == 0), ranked[0])
    alternatives = [s for s in ranked if s is not recommended][:max_alternatives]

    # Ranking is coverage-first, so the last total can be below the first
    savings = max(ranked[-1].total_cost - ranked[0].total_cost, Decimal("0"))

    return ComparisonResult(
        products=products,
        total_potential_savings=savings,
        recommended_store=recommended,
        alternative_stores=alternatives,
    )
