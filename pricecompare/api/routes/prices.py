"""
Price Routes
============

Endpoints:
- POST /prices/aggregate - Aggregated prices for several products
- GET /lists/{list_id}/comparison - Shopping list store comparison
"""
from uuid import UUID

from fastapi import APIRouter

from pricecompare.api.dependencies import AggregatorDep
from pricecompare.api.schemas import (
    AggregatePricesRequest,
    AggregatePricesResponse,
    LookupSummary,
)
from pricecompare.models.pricing import ComparisonResult

router = APIRouter()


@router.post(
    "/prices/aggregate",
    response_model=AggregatePricesResponse,
    summary="Aggregate prices for products",
)
async def aggregate_prices(
    request: AggregatePricesRequest,
    aggregator: AggregatorDep,
) -> AggregatePricesResponse:
    """Unknown or failed ids are absent from `products` and flagged in `lookups`."""
    lookups = await aggregator.lookup_prices(request.product_ids)
    return AggregatePricesResponse(
        products=[lookup.aggregated for lookup in lookups if lookup.aggregated is not None],
        lookups=[
            LookupSummary(product_id=lookup.product_id, status=lookup.status)
            for lookup in lookups
        ],
    )


@router.get(
    "/lists/{list_id}/comparison",
    response_model=ComparisonResult,
    summary="Compare a shopping list across stores",
    responses={502: {"description": "List items could not be loaded"}},
)
async def compare_list(list_id: UUID, aggregator: AggregatorDep) -> ComparisonResult:
    return await aggregator.compare_shopping_list(list_id)
