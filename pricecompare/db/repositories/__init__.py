"""
Database Repositories
=====================

Data access layer following repository pattern.

Components:
    - CatalogRepository: products and catalog price upserts
    - PriceRepository: current prices, observations and price history
    - ShoppingListRepository: list item reads
"""

from pricecompare.db.repositories.catalog_repo import CatalogRepository
from pricecompare.db.repositories.prices_repo import PriceRepository
from pricecompare.db.repositories.lists_repo import ShoppingListRepository

__all__ = [
    "CatalogRepository",
    "PriceRepository",
    "ShoppingListRepository",
]
