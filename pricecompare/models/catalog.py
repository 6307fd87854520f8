"""Pydantic models for catalog records exchanged with the repositories.

Repositories map ORM rows into these snapshots so the matching and
aggregation services never touch a live session directly.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from pricecompare.db.models import PriceSourceType


class CatalogSource(str, Enum):
    """External source a catalog record was discovered from."""
    KROGER = "kroger"
    WALMART = "walmart"
    SERPAPI = "serpapi"

    @property
    def price_source(self) -> PriceSourceType:
        """Tag written to prices rows saved from this source."""
        if self is CatalogSource.KROGER:
            return PriceSourceType.KROGER_API
        return PriceSourceType.SERPAPI_WALMART


class StorePriceRecord(BaseModel):
    """A price row joined with its store."""

    price: Decimal
    sale_price: Optional[Decimal] = None
    store_id: Optional[UUID] = None
    store_name: Optional[str] = None
    retailer: Optional[str] = None
    source: Optional[str] = None
    confidence: Optional[float] = None
    effective_date: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CatalogProduct(BaseModel):
    """Catalog product with its known prices (most recent first)."""

    id: UUID
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    upc: Optional[str] = None
    size: Optional[str] = None
    image_url: Optional[str] = None
    prices: List[StorePriceRecord] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class CatalogProductIn(BaseModel):
    """A normalized product discovered from an external source.

    Attributes:
        name: Product display name
        brand, upc, size, image_url: Optional descriptive fields
        price: Regular price at store_id (saved only when store_id is set)
        sale_price: Promotional price, if any
        store_id: Local store the price applies to
        source: Which external API produced the record
    """

    name: str = Field(..., min_length=1, max_length=500)
    brand: Optional[str] = None
    upc: Optional[str] = Field(default=None, max_length=32)
    size: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    sale_price: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    store_id: Optional[UUID] = None
    source: CatalogSource

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Great Value 2% Reduced Fat Milk, 1 gal",
                "brand": "Great Value",
                "upc": "078742351865",
                "size": "1 gal",
                "price": "3.48",
                "store_id": "550e8400-e29b-41d4-a716-446655440000",
                "source": "walmart",
            }
        }
    }


class ListItemRecord(BaseModel):
    """A shopping list line as read by the aggregator."""

    id: UUID
    user_input: str
    matched_product_id: Optional[UUID] = None
    quantity: Optional[int] = None

    model_config = {"from_attributes": True}

    @property
    def effective_quantity(self) -> int:
        """Quantity used for totals; absent or zero counts as one."""
        return self.quantity or 1


class PriceHistoryRecord(BaseModel):
    """A single historical price observation."""

    price: Decimal
    recorded_at: datetime

    model_config = {"from_attributes": True}


class ProductEnrichmentUpdate(BaseModel):
    """Fields written back to a product after enrichment."""

    brand: Optional[str] = None
    category: Optional[str] = None
    size: Optional[str] = None
    image_url: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
