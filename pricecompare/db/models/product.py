"""Product ORM model for the local grocery catalog."""
from sqlalchemy import String, Text, Index, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pricecompare.db.base import Base, UUIDMixin, TimestampMixin
from typing import Any, Dict, List, TYPE_CHECKING

if TYPE_CHECKING:
    from pricecompare.db.models.price import Price


def normalize_product_name(name: str) -> str:
    """Normalized form used for case-insensitive catalog dedup."""
    return " ".join(name.lower().split())


class Product(Base, UUIDMixin, TimestampMixin):
    """Product model representing the local catalog.

    Attributes:
        name: Product display name (always present)
        normalized_name: Lower-cased, whitespace-collapsed name for dedup
        brand: Brand name (optional)
        category: Top-level category (optional)
        upc: Universal Product Code, unique when present
        size: Package size as printed, e.g. "1 gal"
        image_url: Product image reference
        attributes: JSONB bag (import source, nutrition, nutri-score, allergens)

    Relationships:
        prices: Current per-store price rows
    """

    __tablename__ = "products"
    __table_args__ = (
        # Name-based dedup only applies to products without a UPC
        Index(
            "uq_products_normalized_name_no_upc",
            "normalized_name",
            unique=True,
            postgresql_where=text("upc IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    normalized_name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    brand: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    upc: Mapped[str | None] = mapped_column(String(32), nullable=True, unique=True)
    size: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    attributes: Mapped[Dict[str, Any]] = mapped_column(
        postgresql.JSONB(astext_type=Text),
        nullable=False,
        server_default="{}",
    )

    # Relationships
    prices: Mapped[List["Price"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', upc={self.upc})>"
