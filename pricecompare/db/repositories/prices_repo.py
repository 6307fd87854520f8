"""
Prices Repository
=================

Data access layer for current prices (prices table) and the
append-only observation timeline (price_history table).
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from pricecompare.db.models import Price, PriceHistory, Store
from pricecompare.models.catalog import PriceHistoryRecord, StorePriceRecord

logger = structlog.get_logger(__name__)


class PriceRepository:
    """
    Repository for price reads used by aggregation and trends.

    Table Schema:
        prices: one current row per (product_id, store_id)
        price_history: every observation, ordered by recorded_at
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with async session.

        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    async def get_current_prices(
        self,
        product_id: UUID,
        now: Optional[datetime] = None,
    ) -> List[StorePriceRecord]:
        """
        Get non-expired price rows for a product joined with their store.

        Args:
            product_id: Product to look up
            now: Reference time for expiry (defaults to current UTC time)

        Returns:
            Price records ordered newest first
        """
        now = now or datetime.now(timezone.utc)
        stmt = (
            select(Price, Store)
            .join(Store, Price.store_id == Store.id)
            .where(Price.product_id == product_id)
            .where(or_(Price.expires_at.is_(None), Price.expires_at >= now))
            .order_by(Price.effective_date.desc())
        )
        result = await self._session.execute(stmt)

        records = []
        for price, store in result.all():
            records.append(
                StorePriceRecord(
                    price=price.price,
                    sale_price=price.sale_price,
                    store_id=price.store_id,
                    store_name=store.name,
                    retailer=store.retailer,
                    source=price.source,
                    confidence=float(price.confidence) if price.confidence is not None else None,
                    effective_date=price.effective_date,
                    expires_at=price.expires_at,
                )
            )
        return records

    async def get_price_history(
        self,
        product_id: UUID,
        since: datetime,
    ) -> List[PriceHistoryRecord]:
        """Get price observations recorded at or after `since`, oldest first."""
        stmt = (
            select(PriceHistory.price, PriceHistory.recorded_at)
            .where(PriceHistory.product_id == product_id)
            .where(PriceHistory.recorded_at >= since)
            .order_by(PriceHistory.recorded_at.asc())
        )
        result = await self._session.execute(stmt)
        return [
            PriceHistoryRecord(price=row.price, recorded_at=row.recorded_at)
            for row in result.all()
        ]

    async def record_observation(
        self,
        product_id: UUID,
        store_id: UUID,
        price: Decimal,
        source: str,
        confidence: float,
        observed_at: datetime,
    ) -> None:
        """
        Store a price observation.

        The current price at the store is replaced and the observation is
        appended to price_history. Both writes share one savepoint.
        """
        stmt = insert(Price).values(
            product_id=product_id,
            store_id=store_id,
            price=price,
            sale_price=None,
            source=source,
            confidence=confidence,
            effective_date=observed_at,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_prices_product_store",
            set_={
                "price": stmt.excluded.price,
                "sale_price": None,
                "source": stmt.excluded.source,
                "confidence": stmt.excluded.confidence,
                "effective_date": stmt.excluded.effective_date,
                "expires_at": None,
            },
        )

        async with self._session.begin_nested():
            await self._session.execute(stmt)
            self._session.add(
                PriceHistory(
                    product_id=product_id,
                    store_id=store_id,
                    price=price,
                    source=source,
                    recorded_at=observed_at,
                )
            )
            await self._session.flush()

        logger.debug(
            "price_observation_recorded",
            product_id=str(product_id),
            store_id=str(store_id),
            price=str(price),
            source=source,
        )
