"""Pydantic models for aggregated prices and shopping list comparison."""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from pricecompare.models.external import NormalizedProduct


class DataQuality(str, Enum):
    """Coarse confidence tier based on the number of store sources."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PriceSource(BaseModel):
    """One store's current price for a product.

    Attributes:
        source: Origin tag (local, receipt, kroger_api, serpapi_walmart, ...)
        price: Effective price (sale price when on sale)
        store_id: Local store UUID or a synthetic key such as "kroger-0001111041700"
        confidence: Trust in this observation (0-1)
        last_updated: When the observation was made
    """

    source: str
    price: Decimal
    store_name: Optional[str] = None
    store_id: Optional[str] = None
    confidence: float = Field(..., ge=0, le=1)
    last_updated: datetime
    is_on_sale: bool = False


class PriceRange(BaseModel):
    min: Decimal
    max: Decimal


class AggregatedPrice(BaseModel):
    """A product with all current per-store prices and summary statistics."""

    product_id: UUID
    product_name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    upc: Optional[str] = None
    prices: List[PriceSource] = Field(default_factory=list)
    lowest_price: Optional[PriceSource] = None
    average_price: Optional[Decimal] = None
    price_range: Optional[PriceRange] = None
    data_quality: DataQuality = DataQuality.LOW
    last_updated: datetime


class LookupStatus(str, Enum):
    """Outcome of aggregating one requested product id."""
    FOUND = "found"
    NO_PRICES = "no_prices"
    NOT_FOUND = "not_found"
    ERROR = "error"


class ProductPriceLookup(BaseModel):
    """Tagged per-id aggregation result."""

    product_id: UUID
    status: LookupStatus
    aggregated: Optional[AggregatedPrice] = None

    @property
    def resolved(self) -> bool:
        return self.aggregated is not None


class StoreTotal(BaseModel):
    """Basket cost at a single store."""

    store_id: str
    store_name: str
    total_cost: Decimal = Decimal("0")
    item_count: int = 0
    missing_items: int = 0


class ComparisonResult(BaseModel):
    """Store-by-store comparison of a shopping list."""

    products: List[AggregatedPrice] = Field(default_factory=list)
    total_potential_savings: Decimal = Decimal("0")
    recommended_store: Optional[StoreTotal] = None
    alternative_stores: List[StoreTotal] = Field(default_factory=list)


class PriceTrendPoint(BaseModel):
    """Daily price statistics for a product."""

    date: date
    avg_price: Decimal
    min_price: Decimal
    max_price: Decimal


class EnrichmentResult(BaseModel):
    success: bool
    enriched: Optional[NormalizedProduct] = None
