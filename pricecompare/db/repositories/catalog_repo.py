"""
Catalog Repository
==================

Data access layer for the products table and the current per-store
price rows written by catalog imports.

Deduplication relies on the unique indexes on products.upc and on
products.normalized_name (for rows without a UPC): inserts use
ON CONFLICT DO NOTHING and a conflict resolves to the existing row.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import cast, select, update
from sqlalchemy.dialects.postgresql import JSONB, insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pricecompare.db.models import Price, Product, normalize_product_name
from pricecompare.errors import DatabaseError
from pricecompare.models.catalog import (
    CatalogProduct,
    CatalogProductIn,
    ProductEnrichmentUpdate,
    StorePriceRecord,
)

logger = structlog.get_logger(__name__)


def _to_catalog_product(product: Product, with_prices: bool = True) -> CatalogProduct:
    prices: List[StorePriceRecord] = []
    if with_prices:
        ordered = sorted(
            product.prices,
            key=lambda p: p.effective_date or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        prices = [
            StorePriceRecord(
                price=p.price,
                sale_price=p.sale_price,
                store_id=p.store_id,
                store_name=p.store.name if p.store else None,
                retailer=p.store.retailer if p.store else None,
                source=p.source,
                confidence=float(p.confidence) if p.confidence is not None else None,
                effective_date=p.effective_date,
                expires_at=p.expires_at,
            )
            for p in ordered
        ]
    return CatalogProduct(
        id=product.id,
        name=product.name,
        brand=product.brand,
        category=product.category,
        upc=product.upc,
        size=product.size,
        image_url=product.image_url,
        prices=prices,
    )


class CatalogRepository:
    """
    Repository for catalog reads and writes.

    Used by:
    - ProductMatcher: bulk catalog load, catalog growth from external APIs
    - PriceAggregator: product metadata lookup and enrichment updates
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with async session.

        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    async def list_products_with_prices(self, limit: int = 1000) -> List[CatalogProduct]:
        """
        Load catalog products with their prices and stores in one round-trip set.

        Args:
            limit: Maximum number of products (ordered by name)

        Returns:
            Products with prices ordered most recent first
        """
        stmt = (
            select(Product)
            .where(Product.name.isnot(None))
            .options(selectinload(Product.prices).selectinload(Price.store))
            .order_by(Product.name)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        products = result.scalars().all()

        logger.debug("catalog_loaded", product_count=len(products), limit=limit)
        return [_to_catalog_product(p) for p in products]

    async def get_product(self, product_id: UUID) -> Optional[CatalogProduct]:
        """Get product metadata (without prices) by id."""
        result = await self._session.execute(
            select(Product).where(Product.id == product_id)
        )
        product = result.scalar_one_or_none()
        if product is None:
            return None
        return _to_catalog_product(product, with_prices=False)

    async def find_product_id_by_upc(self, upc: str) -> Optional[UUID]:
        result = await self._session.execute(
            select(Product.id).where(Product.upc == upc)
        )
        return result.scalar_one_or_none()

    async def find_product_id_by_name(self, name: str) -> Optional[UUID]:
        """Case-insensitive exact name lookup (oldest product wins)."""
        result = await self._session.execute(
            select(Product.id)
            .where(Product.normalized_name == normalize_product_name(name))
            .order_by(Product.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_or_create_product(self, record: CatalogProductIn) -> Tuple[UUID, bool]:
        """
        Resolve a discovered product to a catalog row, creating it if needed.

        Lookup order is UPC first, then case-insensitive name. The insert
        uses ON CONFLICT DO NOTHING so a concurrent request that created the
        same product first is detected by the unique index, not by the
        preceding lookups.

        Args:
            record: Normalized external product

        Returns:
            Tuple of (product_id, created)

        Raises:
            DatabaseError: If the product can be neither inserted nor found
        """
        if record.upc:
            existing_id = await self.find_product_id_by_upc(record.upc)
            if existing_id:
                return existing_id, False

        existing_id = await self.find_product_id_by_name(record.name)
        if existing_id:
            return existing_id, False

        stmt = (
            insert(Product)
            .values(
                name=record.name,
                normalized_name=normalize_product_name(record.name),
                brand=record.brand,
                upc=record.upc,
                size=record.size,
                image_url=record.image_url,
                attributes={
                    "source": record.source.value,
                    "imported_at": datetime.now(timezone.utc).isoformat(),
                },
            )
            .on_conflict_do_nothing()
            .returning(Product.id)
        )

        async with self._session.begin_nested():
            result = await self._session.execute(stmt)
            new_id = result.scalar_one_or_none()

        if new_id is not None:
            logger.info(
                "catalog_product_created",
                product_id=str(new_id),
                name=record.name[:80],
                source=record.source.value,
            )
            return new_id, True

        # Lost an insert race: the unique index already holds this product
        existing_id = None
        if record.upc:
            existing_id = await self.find_product_id_by_upc(record.upc)
        if existing_id is None:
            existing_id = await self.find_product_id_by_name(record.name)
        if existing_id is None:
            raise DatabaseError(
                "Product insert conflicted but no existing row was found",
                details={"name": record.name, "upc": record.upc},
            )

        logger.debug("catalog_product_conflict_resolved", product_id=str(existing_id))
        return existing_id, False

    async def upsert_price(
        self,
        product_id: UUID,
        store_id: UUID,
        price: Decimal,
        sale_price: Optional[Decimal],
        source: str,
        confidence: Optional[float] = None,
        effective_date: Optional[datetime] = None,
    ) -> None:
        """
        Insert or overwrite the current price of a product at a store.

        This is a point update keyed on (product_id, store_id); the
        previous value is replaced rather than historized.
        """
        stmt = insert(Price).values(
            product_id=product_id,
            store_id=store_id,
            price=price,
            sale_price=sale_price,
            source=source,
            confidence=confidence,
            effective_date=effective_date or datetime.now(timezone.utc),
            expires_at=None,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_prices_product_store",
            set_={
                "price": stmt.excluded.price,
                "sale_price": stmt.excluded.sale_price,
                "source": stmt.excluded.source,
                "confidence": stmt.excluded.confidence,
                "effective_date": stmt.excluded.effective_date,
                "expires_at": None,
            },
        )

        async with self._session.begin_nested():
            await self._session.execute(stmt)

        logger.debug(
            "price_upserted",
            product_id=str(product_id),
            store_id=str(store_id),
            price=str(price),
            source=source,
        )

    async def update_product_enrichment(
        self,
        product_id: UUID,
        changes: ProductEnrichmentUpdate,
    ) -> bool:
        """
        Write enrichment fields back to a product.

        Only non-null fields are written; attributes are merged into the
        existing JSONB document.

        Returns:
            True if a product row was updated
        """
        values = changes.model_dump(exclude_none=True, exclude={"attributes"})
        if changes.attributes:
            values["attributes"] = Product.attributes.op("||")(cast(changes.attributes, JSONB))

        if not values:
            return False

        try:
            result = await self._session.execute(
                update(Product)
                .where(Product.id == product_id)
                .values(**values)
                .returning(Product.id)
            )
        except Exception as e:
            logger.error(
                "product_enrichment_update_failed",
                product_id=str(product_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DatabaseError(f"Failed to update product {product_id}: {e}") from e

        return result.scalar_one_or_none() is not None
