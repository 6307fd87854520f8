"""
API Route Tests
===============

HTTP-level tests for matching, price and product routes. The matcher and
aggregator dependencies are overridden with services wired to the
in-memory fakes from conftest; the lifespan (Redis, HTTP clients) is not
started.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from pricecompare.api.dependencies import get_price_aggregator, get_product_matcher
from pricecompare.api.main import create_app
from pricecompare.config import AggregationSettings, MatchingSettings
from pricecompare.models.catalog import ListItemRecord, PriceHistoryRecord
from pricecompare.services.aggregation import PriceAggregator
from pricecompare.services.matching import ProductMatcher


@pytest.fixture
def app():
    """Create FastAPI app instance."""
    return create_app()


@pytest.fixture
def matcher(fake_catalog):
    return ProductMatcher(fake_catalog, settings=MatchingSettings())


@pytest.fixture
def aggregator(fake_catalog, fake_prices, fake_lists):
    return PriceAggregator(
        catalog=fake_catalog,
        prices=fake_prices,
        lists=fake_lists,
        settings=AggregationSettings(),
    )


@pytest.fixture
def client(app, matcher, aggregator):
    """Test client with service dependencies overridden."""
    app.dependency_overrides[get_product_matcher] = lambda: matcher
    app.dependency_overrides[get_price_aggregator] = lambda: aggregator
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestMatchingRoutes:
    """Tests for POST /match and POST /catalog/products."""

    def test_match_items(self, client, fake_catalog, make_product, make_price):
        milk = make_product("2% Milk", brand="Great Value", prices=[make_price("3.48")])
        fake_catalog.products[milk.id] = milk

        response = client.post("/match", json={"items": ["milk 2%", "saffron"]})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["matched"][0]["product"]["id"] == str(milk.id)
        assert data["matched"][0]["price"] == "3.48"
        assert data["unmatched"] == ["saffron"]
        assert data["stats"]["total_items"] == 2
        assert "X-Request-ID" in response.headers

    def test_match_rejects_invalid_confidence(self, client):
        response = client.post("/match", json={"items": ["milk"], "min_confidence": 1.5})

        assert response.status_code == 422

    def test_save_products(self, client, fake_catalog):
        payload = {
            "products": [
                {"name": "Kroger Large Eggs", "upc": "0001111060933", "source": "kroger"},
                {"name": "kroger large eggs", "source": "kroger"},
            ]
        }

        response = client.post("/catalog/products", json=payload)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json() == {"created": 1}
        assert len(fake_catalog.products) == 1

    def test_save_products_validates_source(self, client):
        response = client.post(
            "/catalog/products",
            json={"products": [{"name": "Eggs", "source": "costco"}]},
        )

        assert response.status_code == 422


class TestPriceRoutes:
    """Tests for POST /prices/aggregate and GET /lists/{id}/comparison."""

    def test_aggregate_reports_every_id(self, client, fake_catalog, fake_prices, make_product, make_price):
        milk = make_product("Whole Milk")
        fake_catalog.products[milk.id] = milk
        fake_prices.current[milk.id] = [make_price("3.49"), make_price("2.99")]
        unknown = uuid4()

        response = client.post(
            "/prices/aggregate",
            json={"product_ids": [str(milk.id), str(unknown)]},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data["products"]) == 1
        product = data["products"][0]
        assert product["lowest_price"]["price"] == "2.99"
        assert product["average_price"] == "3.24"
        assert product["data_quality"] == "medium"
        assert data["lookups"] == [
            {"product_id": str(milk.id), "status": "found"},
            {"product_id": str(unknown), "status": "not_found"},
        ]

    def test_list_comparison(self, client, fake_catalog, fake_prices, fake_lists, make_product, make_price):
        store_id = uuid4()
        bread = make_product("Bread")
        fake_catalog.products[bread.id] = bread
        fake_prices.current[bread.id] = [make_price("2.00", store_id=store_id, store_name="Store A")]
        list_id = uuid4()
        fake_lists.items[list_id] = [
            ListItemRecord(id=uuid4(), user_input="bread", matched_product_id=bread.id, quantity=2)
        ]

        response = client.get(f"/lists/{list_id}/comparison")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["recommended_store"]["store_id"] == str(store_id)
        assert Decimal(data["recommended_store"]["total_cost"]) == Decimal("4.00")
        assert data["alternative_stores"] == []

    def test_list_fetch_failure_maps_to_502(self, client, fake_lists):
        fake_lists.error = ConnectionError("db down")
        list_id = uuid4()

        response = client.get(f"/lists/{list_id}/comparison")

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json() == {
            "error": "ListFetchError",
            "message": "Failed to fetch list items",
            "details": {"list_id": str(list_id)},
        }


class TestProductRoutes:
    """Tests for /products/{id} routes."""

    def test_enrich_without_product_info_source(self, client, fake_catalog, make_product):
        product = make_product("Milk", upc="0001111041700")
        fake_catalog.products[product.id] = product

        response = client.post(f"/products/{product.id}/enrich")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": False, "enriched": None}

    def test_trends(self, client, fake_prices):
        product_id = uuid4()
        recorded_at = datetime.now(timezone.utc) - timedelta(days=1)
        fake_prices.history[product_id] = [
            PriceHistoryRecord(price=Decimal("2.00"), recorded_at=recorded_at),
        ]

        response = client.get(f"/products/{product_id}/trends", params={"days": 7})

        assert response.status_code == status.HTTP_200_OK
        points = response.json()
        assert len(points) == 1
        assert points[0]["date"] == recorded_at.date().isoformat()

    @pytest.mark.parametrize("days", [0, 366])
    def test_trends_days_out_of_range(self, client, days):
        response = client.get(f"/products/{uuid4()}/trends", params={"days": days})

        assert response.status_code == 422

    def test_record_price(self, client, fake_prices):
        product_id, store_id = uuid4(), uuid4()

        response = client.post(
            f"/products/{product_id}/prices",
            json={"store_id": str(store_id), "price": "3.19", "confidence": 2.0, "source": "receipt"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json() == {"recorded": True}
        observation = fake_prices.observations[0]
        assert observation["confidence"] == 1.0
        assert observation["source"] == "receipt"
        assert observation["price"] == Decimal("3.19")

    def test_record_price_failure(self, client, fake_prices):
        fake_prices.error = ConnectionError("db down")

        response = client.post(
            f"/products/{uuid4()}/prices",
            json={"store_id": str(uuid4()), "price": "3.19"},
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_record_price_rejects_negative(self, client):
        response = client.post(
            f"/products/{uuid4()}/prices",
            json={"store_id": str(uuid4()), "price": "-1.00"},
        )

        assert response.status_code == 422


class TestHealthCheck:
    """Tests for GET /health."""

    def test_database_healthy_redis_not_initialized(self, app):
        session = AsyncMock()
        session_maker = MagicMock()
        session_maker.return_value.__aenter__.return_value = session

        with patch("pricecompare.api.main.get_session_maker", return_value=session_maker):
            response = TestClient(app).get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["checks"]["database"] == {"status": "healthy"}
        assert data["checks"]["redis"] == {"status": "not_initialized"}
        assert data["status"] == "degraded"
        session.execute.assert_awaited_once()

    def test_database_unhealthy(self, app):
        session_maker = MagicMock()
        session_maker.return_value.__aenter__.side_effect = ConnectionError("refused")

        with patch("pricecompare.api.main.get_session_maker", return_value=session_maker):
            response = TestClient(app).get("/health")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"]["status"] == "unhealthy"
