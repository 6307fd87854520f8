"""Store ORM model."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pricecompare.db.base import Base, UUIDMixin, TimestampMixin
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from pricecompare.db.models.price import Price


class Store(Base, UUIDMixin, TimestampMixin):
    """A physical store or partner bodega. Read-only for the pricing core."""

    __tablename__ = "stores"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    retailer: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        index=True,
        doc="Retailer chain tag (e.g. kroger, walmart, bodega)"
    )

    prices: Mapped[List["Price"]] = relationship(back_populates="store")

    def __repr__(self) -> str:
        return f"<Store(id={self.id}, name='{self.name}', retailer={self.retailer})>"
