"""PriceHistory ORM model for time-series price tracking."""
from sqlalchemy import ForeignKey, Numeric, String, CheckConstraint, func, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from pricecompare.db.base import Base, UUIDMixin
from decimal import Decimal
from datetime import datetime
import uuid


class PriceHistory(Base, UUIDMixin):
    """PriceHistory model tracking price observations over time."""

    __tablename__ = "price_history"
    __table_args__ = (
        CheckConstraint('price >= 0', name='check_history_price_non_negative'),
    )

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    store_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("stores.id", ondelete="SET NULL"),
        nullable=True,
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<PriceHistory(id={self.id}, price={self.price}, recorded_at={self.recorded_at})>"
