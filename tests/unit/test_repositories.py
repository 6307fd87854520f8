"""
Unit Tests for Database Repositories
====================================

Repositories run against a mocked AsyncSession; statements are compiled
with the PostgreSQL dialect where the SQL shape matters.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from pricecompare.db.models import ListItem, Price, PriceHistory, Product, Store
from pricecompare.db.repositories import (
    CatalogRepository,
    PriceRepository,
    ShoppingListRepository,
)
from pricecompare.errors import DatabaseError
from pricecompare.models.catalog import (
    CatalogProductIn,
    CatalogSource,
    ProductEnrichmentUpdate,
)


def scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def compiled(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


@pytest.fixture
def mock_session():
    """AsyncSession mock whose begin_nested() works as an async context manager."""
    session = AsyncMock()
    session.begin_nested = MagicMock()
    session.add = MagicMock()
    return session


class TestCatalogRepositoryReads:
    """Tests for catalog loading and product lookups."""

    @pytest.mark.asyncio
    async def test_list_products_orders_prices_newest_first(self, mock_session):
        now = datetime.now(timezone.utc)
        store = Store(id=uuid4(), name="Kroger #401", retailer="kroger")
        older = Price(
            id=uuid4(), store_id=store.id, store=store, price=Decimal("3.49"),
            source="local", confidence=Decimal("0.80"), effective_date=now - timedelta(days=7),
        )
        newer = Price(
            id=uuid4(), store_id=store.id, store=store, price=Decimal("3.29"),
            source="receipt", confidence=None, effective_date=now,
        )
        product = Product(id=uuid4(), name="Whole Milk", brand="Kroger", prices=[older, newer])

        result = MagicMock()
        result.scalars.return_value.all.return_value = [product]
        mock_session.execute.return_value = result

        products = await CatalogRepository(mock_session).list_products_with_prices(limit=50)

        assert len(products) == 1
        prices = products[0].prices
        assert [p.price for p in prices] == [Decimal("3.29"), Decimal("3.49")]
        assert prices[0].store_name == "Kroger #401"
        assert prices[0].retailer == "kroger"
        assert prices[0].confidence is None
        assert prices[1].confidence == 0.8

        sql = compiled(mock_session.execute.call_args.args[0])
        assert "ORDER BY products.name" in sql
        assert "LIMIT" in sql

    @pytest.mark.asyncio
    async def test_get_product_without_prices(self, mock_session):
        product = Product(id=uuid4(), name="Bread", upc="0123", prices=[])
        mock_session.execute.return_value = scalar_result(product)

        found = await CatalogRepository(mock_session).get_product(product.id)

        assert found.id == product.id
        assert found.upc == "0123"
        assert found.prices == []

    @pytest.mark.asyncio
    async def test_get_unknown_product(self, mock_session):
        mock_session.execute.return_value = scalar_result(None)

        assert await CatalogRepository(mock_session).get_product(uuid4()) is None

    @pytest.mark.asyncio
    async def test_name_lookup_uses_normalized_name(self, mock_session):
        mock_session.execute.return_value = scalar_result(None)

        await CatalogRepository(mock_session).find_product_id_by_name("  Whole   MILK ")

        stmt = mock_session.execute.call_args.args[0]
        params = stmt.compile(dialect=postgresql.dialect()).params
        assert "whole milk" in params.values()


class TestGetOrCreateProduct:
    """Tests for CatalogRepository.get_or_create_product."""

    @pytest.fixture
    def record(self):
        return CatalogProductIn(
            name="Great Value 2% Milk",
            upc="078742351865",
            source=CatalogSource.WALMART,
        )

    @pytest.mark.asyncio
    async def test_existing_upc(self, mock_session, record):
        existing_id = uuid4()
        mock_session.execute.return_value = scalar_result(existing_id)

        assert await CatalogRepository(mock_session).get_or_create_product(record) == (existing_id, False)
        assert mock_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_existing_name_without_upc(self, mock_session):
        existing_id = uuid4()
        mock_session.execute.return_value = scalar_result(existing_id)
        record = CatalogProductIn(name="Bananas", source=CatalogSource.SERPAPI)

        assert await CatalogRepository(mock_session).get_or_create_product(record) == (existing_id, False)
        assert mock_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_creates_new_product(self, mock_session, record):
        new_id = uuid4()
        mock_session.execute.side_effect = [
            scalar_result(None),
            scalar_result(None),
            scalar_result(new_id),
        ]

        assert await CatalogRepository(mock_session).get_or_create_product(record) == (new_id, True)

        insert_sql = compiled(mock_session.execute.call_args_list[2].args[0])
        assert "ON CONFLICT DO NOTHING" in insert_sql
        assert "RETURNING products.id" in insert_sql
        mock_session.begin_nested.assert_called_once()

    @pytest.mark.asyncio
    async def test_insert_race_resolves_to_existing(self, mock_session, record):
        winner_id = uuid4()
        mock_session.execute.side_effect = [
            scalar_result(None),
            scalar_result(None),
            scalar_result(None),
            scalar_result(winner_id),
        ]

        assert await CatalogRepository(mock_session).get_or_create_product(record) == (winner_id, False)

    @pytest.mark.asyncio
    async def test_unresolved_conflict_raises(self, mock_session, record):
        mock_session.execute.return_value = scalar_result(None)

        with pytest.raises(DatabaseError):
            await CatalogRepository(mock_session).get_or_create_product(record)

        assert mock_session.execute.await_count == 5


class TestCatalogRepositoryWrites:
    """Tests for price upserts and enrichment updates."""

    @pytest.mark.asyncio
    async def test_upsert_price_on_unique_pair(self, mock_session):
        await CatalogRepository(mock_session).upsert_price(
            product_id=uuid4(),
            store_id=uuid4(),
            price=Decimal("3.48"),
            sale_price=None,
            source="serpapi_walmart",
        )

        sql = compiled(mock_session.execute.call_args.args[0])
        assert "ON CONFLICT ON CONSTRAINT uq_prices_product_store DO UPDATE" in sql

    @pytest.mark.asyncio
    async def test_enrichment_nothing_to_write(self, mock_session):
        updated = await CatalogRepository(mock_session).update_product_enrichment(
            uuid4(), ProductEnrichmentUpdate()
        )

        assert updated is False
        mock_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enrichment_merges_attributes(self, mock_session):
        product_id = uuid4()
        mock_session.execute.return_value = scalar_result(product_id)

        updated = await CatalogRepository(mock_session).update_product_enrichment(
            product_id,
            ProductEnrichmentUpdate(brand="Blue Diamond", attributes={"nutri_score": "b"}),
        )

        assert updated is True
        sql = compiled(mock_session.execute.call_args.args[0])
        assert "products.attributes ||" in sql
        assert "category" not in sql.split("WHERE")[0]

    @pytest.mark.asyncio
    async def test_enrichment_failure_raises_database_error(self, mock_session):
        mock_session.execute.side_effect = RuntimeError("connection lost")

        with pytest.raises(DatabaseError):
            await CatalogRepository(mock_session).update_product_enrichment(
                uuid4(), ProductEnrichmentUpdate(brand="Kroger")
            )


class TestPriceRepository:
    """Tests for PriceRepository."""

    @pytest.mark.asyncio
    async def test_current_prices_filter_expired(self, mock_session):
        store = Store(id=uuid4(), name="Aldi", retailer=None)
        price = Price(
            id=uuid4(), store_id=store.id, price=Decimal("1.99"), sale_price=Decimal("1.49"),
            source="local", confidence=Decimal("0.90"), effective_date=datetime.now(timezone.utc),
        )
        result = MagicMock()
        result.all.return_value = [(price, store)]
        mock_session.execute.return_value = result

        records = await PriceRepository(mock_session).get_current_prices(uuid4())

        assert records[0].store_name == "Aldi"
        assert records[0].sale_price == Decimal("1.49")
        assert records[0].confidence == 0.9
        sql = compiled(mock_session.execute.call_args.args[0])
        assert "prices.expires_at IS NULL OR prices.expires_at >=" in sql
        assert "ORDER BY prices.effective_date DESC" in sql

    @pytest.mark.asyncio
    async def test_price_history(self, mock_session):
        recorded_at = datetime.now(timezone.utc)
        result = MagicMock()
        result.all.return_value = [SimpleNamespace(price=Decimal("2.50"), recorded_at=recorded_at)]
        mock_session.execute.return_value = result

        history = await PriceRepository(mock_session).get_price_history(
            uuid4(), since=recorded_at - timedelta(days=30)
        )

        assert history[0].price == Decimal("2.50")
        assert history[0].recorded_at == recorded_at

    @pytest.mark.asyncio
    async def test_record_observation_upserts_and_appends_history(self, mock_session):
        product_id, store_id = uuid4(), uuid4()
        observed_at = datetime.now(timezone.utc)

        await PriceRepository(mock_session).record_observation(
            product_id=product_id,
            store_id=store_id,
            price=Decimal("3.19"),
            source="receipt",
            confidence=0.9,
            observed_at=observed_at,
        )

        sql = compiled(mock_session.execute.call_args.args[0])
        assert "ON CONFLICT ON CONSTRAINT uq_prices_product_store DO UPDATE" in sql
        history = mock_session.add.call_args.args[0]
        assert isinstance(history, PriceHistory)
        assert history.product_id == product_id
        assert history.store_id == store_id
        assert history.recorded_at == observed_at
        mock_session.flush.assert_awaited_once()


class TestShoppingListRepository:
    @pytest.mark.asyncio
    async def test_items_mapped_in_order(self, mock_session):
        list_id, product_id = uuid4(), uuid4()
        rows = [
            ListItem(id=uuid4(), list_id=list_id, user_input="milk", matched_product_id=product_id, quantity=2),
            ListItem(id=uuid4(), list_id=list_id, user_input="saffron", quantity=None),
        ]
        result = MagicMock()
        result.scalars.return_value.all.return_value = rows
        mock_session.execute.return_value = result

        items = await ShoppingListRepository(mock_session).get_list_items(list_id)

        assert [i.user_input for i in items] == ["milk", "saffron"]
        assert items[0].matched_product_id == product_id
        assert items[1].effective_quantity == 1
