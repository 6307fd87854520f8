"""Request and response bodies for the HTTP API."""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from pricecompare.db.models import PriceSourceType
from pricecompare.models.catalog import CatalogProductIn
from pricecompare.models.pricing import AggregatedPrice, LookupStatus


class MatchRequest(BaseModel):
    """Free-text shopping list lines to resolve against the local catalog."""

    items: List[str] = Field(..., max_length=500)
    store_id: Optional[UUID] = None
    min_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    model_config = {
        "json_schema_extra": {
            "example": {"items": ["milk 2%", "eggs", "wheat bread"]}
        }
    }


class SaveProductsRequest(BaseModel):
    products: List[CatalogProductIn] = Field(..., max_length=500)


class SaveProductsResponse(BaseModel):
    created: int


class AggregatePricesRequest(BaseModel):
    product_ids: List[UUID] = Field(..., max_length=100)


class LookupSummary(BaseModel):
    product_id: UUID
    status: LookupStatus


class AggregatePricesResponse(BaseModel):
    """Resolved products plus a status for every requested id."""

    products: List[AggregatedPrice]
    lookups: List[LookupSummary]


class PriceObservationRequest(BaseModel):
    """A crowdsourced or receipt price for a product at a store.

    Confidence above 1.0 is clamped to 1.0.
    """

    store_id: UUID
    price: Decimal = Field(..., ge=Decimal("0"), max_digits=10, decimal_places=2)
    confidence: float = Field(default=0.5, ge=0.0)
    source: PriceSourceType = PriceSourceType.LOCAL
    observed_at: Optional[datetime] = None


class PriceObservationResponse(BaseModel):
    recorded: bool
