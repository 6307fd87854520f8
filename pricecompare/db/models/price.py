"""Price ORM model holding the current price of a product at a store."""
from sqlalchemy import (
    ForeignKey,
    Numeric,
    String,
    CheckConstraint,
    UniqueConstraint,
    DateTime,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pricecompare.db.base import Base, UUIDMixin
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from pricecompare.db.models.product import Product
    from pricecompare.db.models.store import Store


class PriceSourceType(str, PyEnum):
    """Where a price observation came from."""
    LOCAL = "local"
    RECEIPT = "receipt"
    KROGER_API = "kroger_api"
    SERPAPI_WALMART = "serpapi_walmart"


class Price(Base, UUIDMixin):
    """Current price of a product at a store.

    The (product_id, store_id) pair is unique so catalog imports can upsert;
    the full observation timeline lives in price_history.
    """

    __tablename__ = "prices"
    __table_args__ = (
        UniqueConstraint("product_id", "store_id", name="uq_prices_product_store"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint(
            "sale_price IS NULL OR sale_price >= 0",
            name="check_sale_price_non_negative"
        ),
        CheckConstraint(
            "confidence IS NULL OR (confidence >= 0 AND confidence <= 1)",
            name="check_price_confidence"
        ),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    store_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    sale_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    # Stored as plain text so new provider tags need no enum migration
    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        server_default=PriceSourceType.LOCAL.value,
    )
    confidence: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)
    effective_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="prices")
    store: Mapped["Store"] = relationship(back_populates="prices")

    def __repr__(self) -> str:
        return f"<Price(product_id={self.product_id}, store_id={self.store_id}, price={self.price})>"
