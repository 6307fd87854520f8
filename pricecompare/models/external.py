"""Normalized shapes for third-party catalog API responses.

Every provider adapter maps its raw JSON into NormalizedProduct at the
boundary; nothing downstream reads provider payloads.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ExternalPrice(BaseModel):
    """Provider price shape: regular price plus optional sale price."""

    regular: Decimal
    sale: Optional[Decimal] = None

    @property
    def effective(self) -> Decimal:
        """Price a shopper would pay today."""
        return self.sale or self.regular


class Nutrition(BaseModel):
    """Per-100g nutrition facts."""

    calories: Optional[float] = None
    fat: Optional[float] = None
    carbs: Optional[float] = None
    protein: Optional[float] = None
    sugar: Optional[float] = None
    fiber: Optional[float] = None
    sodium: Optional[float] = None


class ProductAttributes(BaseModel):
    nutri_score: Optional[str] = None
    nova_group: Optional[int] = None
    allergens: List[str] = Field(default_factory=list)
    ingredients: Optional[str] = None


class NormalizedProduct(BaseModel):
    """Product as returned by any external source adapter."""

    id: str
    name: str
    upc: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    size: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[ExternalPrice] = None
    nutrition: Optional[Nutrition] = None
    attributes: Optional[ProductAttributes] = None
