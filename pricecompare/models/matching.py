"""Pydantic models for local catalog matching results."""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class MatchedProduct(BaseModel):
    """Catalog attributes returned with a match."""

    id: UUID
    name: str
    brand: Optional[str] = None
    upc: Optional[str] = None
    size: Optional[str] = None
    image_url: Optional[str] = None


class LocalProductMatch(BaseModel):
    """A user input resolved to a catalog product.

    Attributes:
        user_input: Original free-text line
        product: Best scoring catalog product
        price, sale_price, store_id, store_name: Most recent known price snapshot
        confidence: Match score in [0, 1]
    """

    user_input: str
    product: MatchedProduct
    price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    store_id: Optional[UUID] = None
    store_name: Optional[str] = None
    confidence: float = Field(..., ge=0, le=1)


class MatchStats(BaseModel):
    total_items: int = 0
    matched_count: int = 0
    unmatched_count: int = 0
    avg_confidence: float = 0.0


class ProductMatchResult(BaseModel):
    """Matched items (served locally) and unmatched items (need external search)."""

    matched: List[LocalProductMatch] = Field(default_factory=list)
    unmatched: List[str] = Field(default_factory=list)
    stats: MatchStats = Field(default_factory=MatchStats)

    @classmethod
    def all_unmatched(cls, user_items: List[str]) -> "ProductMatchResult":
        """Result used when the catalog is unavailable or empty."""
        return cls(
            matched=[],
            unmatched=list(user_items),
            stats=MatchStats(
                total_items=len(user_items),
                matched_count=0,
                unmatched_count=len(user_items),
                avg_confidence=0.0,
            ),
        )
