"""
Shopping Lists Repository
=========================

Read access to list_items. Lists are authored outside the pricing core.
"""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricecompare.db.models import ListItem
from pricecompare.models.catalog import ListItemRecord


class ShoppingListRepository:
    """Repository for shopping list reads."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_list_items(self, list_id: UUID) -> List[ListItemRecord]:
        """
        Get all items of a shopping list in insertion order.

        An unknown list yields an empty list.
        """
        stmt = (
            select(ListItem)
            .where(ListItem.list_id == list_id)
            .order_by(ListItem.created_at, ListItem.id)
        )
        result = await self._session.execute(stmt)
        return [ListItemRecord.model_validate(item) for item in result.scalars().all()]
