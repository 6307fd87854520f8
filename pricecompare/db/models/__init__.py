"""Database models for the grocery catalog and pricing."""
from pricecompare.db.models.product import Product, normalize_product_name
from pricecompare.db.models.store import Store
from pricecompare.db.models.price import Price, PriceSourceType
from pricecompare.db.models.price_history import PriceHistory
from pricecompare.db.models.shopping_list import ShoppingList, ListItem

__all__ = [
    "Product",
    "normalize_product_name",
    "Store",
    "Price",
    "PriceSourceType",
    "PriceHistory",
    "ShoppingList",
    "ListItem",
]
