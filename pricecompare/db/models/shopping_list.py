"""Shopping list ORM models."""
from sqlalchemy import String, Text, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from pricecompare.db.base import Base, UUIDMixin, TimestampMixin
from typing import List, Optional, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from pricecompare.db.models.product import Product


class ShoppingList(Base, UUIDMixin, TimestampMixin):
    """A user's shopping list. Authored outside the pricing core."""

    __tablename__ = "shopping_lists"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    items: Mapped[List["ListItem"]] = relationship(
        back_populates="shopping_list",
        cascade="all, delete-orphan",
    )


class ListItem(Base, UUIDMixin, TimestampMixin):
    """One free-text line of a shopping list, optionally resolved to a product."""

    __tablename__ = "list_items"
    __table_args__ = (
        CheckConstraint('quantity IS NULL OR quantity >= 0', name='check_quantity_non_negative'),
    )

    list_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("shopping_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_input: Mapped[str] = mapped_column(Text, nullable=False)
    matched_product_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True, server_default="1")

    shopping_list: Mapped["ShoppingList"] = relationship(back_populates="items")
    matched_product: Mapped[Optional["Product"]] = relationship()

    def __repr__(self) -> str:
        return f"<ListItem(id={self.id}, user_input='{self.user_input}', quantity={self.quantity})>"
