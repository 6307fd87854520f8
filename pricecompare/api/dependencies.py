"""
Request-scoped dependency factories.

Repositories share the request's AsyncSession; HTTP clients are created
once in the application lifespan and read from app.state.
"""
from typing import Annotated, List, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pricecompare.config import get_aggregation_settings, get_matching_settings
from pricecompare.db import get_session
from pricecompare.db.repositories import (
    CatalogRepository,
    PriceRepository,
    ShoppingListRepository,
)
from pricecompare.services.aggregation import PriceAggregator
from pricecompare.services.external import (
    ExternalPriceSource,
    KrogerClient,
    KrogerPriceSource,
    OpenFoodFactsClient,
    WalmartClient,
    WalmartPriceSource,
)
from pricecompare.services.matching import ProductMatcher

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_price_sources(request: Request) -> List[ExternalPriceSource]:
    """External price sources in merge order: Kroger, then Walmart."""
    settings = get_aggregation_settings()
    kroger: Optional[KrogerClient] = getattr(request.app.state, "kroger_client", None)
    walmart: Optional[WalmartClient] = getattr(request.app.state, "walmart_client", None)

    sources: List[ExternalPriceSource] = []
    if kroger is not None:
        sources.append(KrogerPriceSource(kroger, confidence=settings.kroger_confidence))
    if walmart is not None:
        sources.append(
            WalmartPriceSource(
                walmart,
                confidence=settings.walmart_confidence,
                limit=settings.walmart_search_limit,
            )
        )
    return sources


def get_product_matcher(session: SessionDep) -> ProductMatcher:
    return ProductMatcher(CatalogRepository(session), get_matching_settings())


def get_price_aggregator(
    request: Request,
    session: SessionDep,
    sources: Annotated[List[ExternalPriceSource], Depends(get_price_sources)],
) -> PriceAggregator:
    product_info: Optional[OpenFoodFactsClient] = getattr(
        request.app.state, "openfoodfacts_client", None
    )
    return PriceAggregator(
        catalog=CatalogRepository(session),
        prices=PriceRepository(session),
        lists=ShoppingListRepository(session),
        sources=sources,
        product_info=product_info,
        settings=get_aggregation_settings(),
    )


MatcherDep = Annotated[ProductMatcher, Depends(get_product_matcher)]
AggregatorDep = Annotated[PriceAggregator, Depends(get_price_aggregator)]
