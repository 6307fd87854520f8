"""API route modules."""
from pricecompare.api.routes.matching import router as matching_router
from pricecompare.api.routes.prices import router as prices_router
from pricecompare.api.routes.products import router as products_router

__all__ = [
    "matching_router",
    "prices_router",
    "products_router",
]
