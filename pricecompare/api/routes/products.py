"""
Product Routes
==============

Endpoints:
- POST /products/{product_id}/enrich - Enrich from Open Food Facts
- GET /products/{product_id}/trends - Daily price trends
- POST /products/{product_id}/prices - Record a price observation
"""
from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from pricecompare.api.dependencies import AggregatorDep
from pricecompare.api.schemas import PriceObservationRequest, PriceObservationResponse
from pricecompare.models.pricing import EnrichmentResult, PriceTrendPoint

router = APIRouter(prefix="/products")


@router.post(
    "/{product_id}/enrich",
    response_model=EnrichmentResult,
    summary="Enrich product data by UPC",
)
async def enrich_product(product_id: UUID, aggregator: AggregatorDep) -> EnrichmentResult:
    return await aggregator.enrich_product_data(product_id)


@router.get(
    "/{product_id}/trends",
    response_model=List[PriceTrendPoint],
    summary="Daily price trends",
)
async def price_trends(
    product_id: UUID,
    aggregator: AggregatorDep,
    days: Annotated[int, Query(ge=1, le=365)] = 30,
) -> List[PriceTrendPoint]:
    return await aggregator.get_price_trends(product_id, days=days)


@router.post(
    "/{product_id}/prices",
    response_model=PriceObservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a price observation",
    responses={503: {"description": "Observation could not be stored"}},
)
async def record_price(
    product_id: UUID,
    request: PriceObservationRequest,
    aggregator: AggregatorDep,
) -> PriceObservationResponse:
    recorded = await aggregator.record_price_observation(
        product_id=product_id,
        store_id=request.store_id,
        price=request.price,
        confidence=request.confidence,
        source=request.source.value,
        observed_at=request.observed_at,
    )
    if not recorded:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Price observation could not be stored",
        )
    return PriceObservationResponse(recorded=True)
