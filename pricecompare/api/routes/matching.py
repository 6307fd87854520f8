"""
Matching Routes
===============

Endpoints:
- POST /match - Resolve free-text items against the local catalog
- POST /catalog/products - Save externally discovered products
"""
import structlog
from fastapi import APIRouter, status

from pricecompare.api.dependencies import MatcherDep
from pricecompare.api.schemas import MatchRequest, SaveProductsRequest, SaveProductsResponse
from pricecompare.models.matching import ProductMatchResult

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/match",
    response_model=ProductMatchResult,
    summary="Match shopping list items to catalog products",
)
async def match_items(request: MatchRequest, matcher: MatcherDep) -> ProductMatchResult:
    """Items without a confident local match are returned in `unmatched`."""
    return await matcher.find_local_product_matches(
        request.items,
        store_id=request.store_id,
        min_confidence=request.min_confidence,
    )


@router.post(
    "/catalog/products",
    response_model=SaveProductsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add discovered products to the catalog",
)
async def save_products(request: SaveProductsRequest, matcher: MatcherDep) -> SaveProductsResponse:
    created = await matcher.save_products_to_catalog(request.products)
    logger.info("catalog_save_requested", submitted=len(request.products), created=created)
    return SaveProductsResponse(created=created)
