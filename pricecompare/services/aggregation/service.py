"""Price aggregation service.

Merges local price rows with external catalog API prices per product,
compares shopping list totals across stores, enriches products from
Open Food Facts and reports daily price trends.

Failure policy:
    - Unknown product: logged, reported as not_found
    - External source failure: logged, product degrades to the other sources
    - Local price query failure: logged, reported as error
    - Shopping list fetch failure: raised as ListFetchError
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID

import structlog

from pricecompare.config import AggregationSettings, get_aggregation_settings
from pricecompare.db.models import PriceSourceType
from pricecompare.errors import ListFetchError
from pricecompare.models.catalog import (
    CatalogProduct,
    ListItemRecord,
    PriceHistoryRecord,
    ProductEnrichmentUpdate,
    StorePriceRecord,
)
from pricecompare.models.external import NormalizedProduct
from pricecompare.models.pricing import (
    AggregatedPrice,
    ComparisonResult,
    EnrichmentResult,
    LookupStatus,
    PriceSource,
    PriceTrendPoint,
    ProductPriceLookup,
)
from pricecompare.services.aggregation.comparison import build_comparison
from pricecompare.services.aggregation.stats import summarize_prices
from pricecompare.services.aggregation.trends import daily_price_trends
from pricecompare.services.external.sources import ExternalPriceSource

logger = structlog.get_logger(__name__)

UNKNOWN_SOURCE = "unknown"


class ProductCatalog(Protocol):
    async def get_product(self, product_id: UUID) -> Optional[CatalogProduct]:
        ...

    async def update_product_enrichment(
        self, product_id: UUID, changes: ProductEnrichmentUpdate
    ) -> bool:
        ...


class PriceStore(Protocol):
    async def get_current_prices(
        self, product_id: UUID, now: Optional[datetime] = None
    ) -> List[StorePriceRecord]:
        ...

    async def get_price_history(
        self, product_id: UUID, since: datetime
    ) -> List[PriceHistoryRecord]:
        ...

    async def record_observation(
        self,
        product_id: UUID,
        store_id: UUID,
        price: Decimal,
        source: str,
        confidence: float,
        observed_at: datetime,
    ) -> None:
        ...


class ShoppingListReader(Protocol):
    async def get_list_items(self, list_id: UUID) -> List[ListItemRecord]:
        ...


class ProductInfoSource(Protocol):
    async def get_product_by_upc(self, upc: str) -> Optional[NormalizedProduct]:
        ...


class PriceAggregator:
    """Multi-source price aggregation.

    Attributes:
        catalog: Product metadata reads and enrichment writes
        prices: Current prices, observations and history
        lists: Shopping list item reads
        sources: External price sources, merged in order after local prices
        product_info: Open product database used for enrichment
        settings: Confidence defaults, quality tiers and limits
    """

    def __init__(
        self,
        catalog: ProductCatalog,
        prices: PriceStore,
        lists: ShoppingListReader,
        sources: Sequence[ExternalPriceSource] = (),
        product_info: Optional[ProductInfoSource] = None,
        settings: Optional[AggregationSettings] = None,
    ) -> None:
        self._catalog = catalog
        self._prices = prices
        self._lists = lists
        self._sources = list(sources)
        self._product_info = product_info
        self._settings = settings or get_aggregation_settings()
        self._log = logger.bind(component="PriceAggregator")

    def _local_price_sources(
        self,
        rows: Sequence[StorePriceRecord],
        now: datetime,
    ) -> Dict[str, PriceSource]:
        """Keep the most recent non-expired row per store (rows arrive newest first)."""
        by_store: Dict[str, PriceSource] = {}
        for row in rows:
            if row.store_id is None:
                continue
            if row.expires_at is not None and row.expires_at < now:
                continue
            store_key = str(row.store_id)
            if store_key in by_store:
                continue
            by_store[store_key] = PriceSource(
                source=row.source or UNKNOWN_SOURCE,
                price=row.sale_price or row.price,
                store_name=row.store_name,
                store_id=store_key,
                confidence=(
                    row.confidence
                    if row.confidence is not None
                    else self._settings.default_confidence
                ),
                last_updated=row.effective_date or now,
                is_on_sale=bool(row.sale_price),
            )
        return by_store

    async def _merge_external_prices(
        self,
        product: CatalogProduct,
        by_store: Dict[str, PriceSource],
    ) -> None:
        for source in self._sources:
            if not source.is_configured():
                continue

            try:
                results = await source.fetch(product)
            except Exception as e:
                self._log.warning(
                    "external_price_fetch_failed",
                    product_id=str(product.id),
                    source=source.source_tag,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            fetched_at = datetime.now(timezone.utc)
            for result in results:
                if result.price is None:
                    continue
                store_key = source.store_key(result)
                if store_key in by_store:
                    continue
                by_store[store_key] = PriceSource(
                    source=source.source_tag,
                    price=result.price.effective,
                    store_name=source.store_label,
                    store_id=store_key,
                    confidence=source.confidence,
                    last_updated=fetched_at,
                    is_on_sale=result.price.sale is not None,
                )

    async def get_product_prices(self, product_id: UUID) -> ProductPriceLookup:
        """Aggregate all current prices for one product.

        Returns:
            ProductPriceLookup tagged found / no_prices / not_found / error
        """
        log = self._log.bind(product_id=str(product_id))

        try:
            product = await self._catalog.get_product(product_id)
            if product is None:
                log.warning("product_not_found")
                return ProductPriceLookup(product_id=product_id, status=LookupStatus.NOT_FOUND)

            now = datetime.now(timezone.utc)
            rows = await self._prices.get_current_prices(product_id, now=now)
        except Exception as e:
            log.error(
                "product_prices_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return ProductPriceLookup(product_id=product_id, status=LookupStatus.ERROR)

        by_store = self._local_price_sources(rows, now)
        await self._merge_external_prices(product, by_store)

        prices = list(by_store.values())
        summary = summarize_prices(
            prices,
            now=now,
            high_min=self._settings.high_quality_min_sources,
            medium_min=self._settings.medium_quality_min_sources,
        )

        aggregated = AggregatedPrice(
            product_id=product.id,
            product_name=product.name,
            brand=product.brand,
            category=product.category,
            image_url=product.image_url,
            upc=product.upc,
            prices=prices,
            lowest_price=summary.lowest_price,
            average_price=summary.average_price,
            price_range=summary.price_range,
            data_quality=summary.data_quality,
            last_updated=summary.last_updated,
        )

        log.debug(
            "product_prices_aggregated",
            source_count=len(prices),
            data_quality=summary.data_quality.value,
        )
        return ProductPriceLookup(
            product_id=product_id,
            status=LookupStatus.FOUND if prices else LookupStatus.NO_PRICES,
            aggregated=aggregated,
        )

    async def lookup_prices(self, product_ids: Sequence[UUID]) -> List[ProductPriceLookup]:
        """Aggregate products one at a time, returning a status for every id."""
        lookups = []
        for product_id in product_ids:
            lookups.append(await self.get_product_prices(product_id))
        return lookups

    async def get_aggregated_prices(self, product_ids: Sequence[UUID]) -> List[AggregatedPrice]:
        """Aggregated prices for the ids that resolved; unknown or failed ids are omitted."""
        lookups = await self.lookup_prices(product_ids)
        return [lookup.aggregated for lookup in lookups if lookup.aggregated is not None]

    async def compare_shopping_list(self, list_id: UUID) -> ComparisonResult:
        """
        Compare the cost of a shopping list across stores.

        Raises:
            ListFetchError: If the list items cannot be loaded
        """
        log = self._log.bind(list_id=str(list_id))

        try:
            items = await self._lists.get_list_items(list_id)
        except Exception as e:
            log.error(
                "list_items_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ListFetchError(
                "Failed to fetch list items",
                details={"list_id": str(list_id)},
            ) from e

        product_ids = [item.matched_product_id for item in items if item.matched_product_id]
        products = await self.get_aggregated_prices(product_ids)

        result = build_comparison(
            products,
            items,
            max_alternatives=self._settings.max_alternative_stores,
        )

        log.info(
            "shopping_list_compared",
            item_count=len(items),
            matched_count=len(product_ids),
            recommended_store=result.recommended_store.store_id if result.recommended_store else None,
        )
        return result

    async def enrich_product_data(self, product_id: UUID) -> EnrichmentResult:
        """Fill brand, category, size, image and nutrition from Open Food Facts.

        Never raises; any missing input or failure yields success=False.
        """
        log = self._log.bind(product_id=str(product_id))

        if self._product_info is None:
            log.warning("enrichment_source_unavailable")
            return EnrichmentResult(success=False)

        try:
            product = await self._catalog.get_product(product_id)
        except Exception as e:
            log.error("enrichment_product_fetch_failed", error=str(e), error_type=type(e).__name__)
            return EnrichmentResult(success=False)

        if product is None or not product.upc:
            log.info("enrichment_skipped", reason="no_product" if product is None else "no_upc")
            return EnrichmentResult(success=False)

        try:
            enriched = await self._product_info.get_product_by_upc(product.upc)
            if enriched is None:
                log.info("enrichment_not_found", upc=product.upc)
                return EnrichmentResult(success=False)

            await self._catalog.update_product_enrichment(
                product_id,
                ProductEnrichmentUpdate(
                    brand=enriched.brand or product.name,
                    category=enriched.category,
                    size=enriched.size,
                    image_url=enriched.image_url,
                    attributes=self._enrichment_attributes(enriched),
                ),
            )
        except Exception as e:
            log.error("enrichment_failed", upc=product.upc, error=str(e), error_type=type(e).__name__)
            return EnrichmentResult(success=False)

        log.info("product_enriched", upc=product.upc)
        return EnrichmentResult(success=True, enriched=enriched)

    @staticmethod
    def _enrichment_attributes(enriched: NormalizedProduct) -> Dict[str, Any]:
        attributes: Dict[str, Any] = {}
        if enriched.nutrition is not None:
            attributes["nutrition"] = enriched.nutrition.model_dump(exclude_none=True)
        if enriched.attributes is not None:
            if enriched.attributes.nutri_score is not None:
                attributes["nutri_score"] = enriched.attributes.nutri_score
            if enriched.attributes.nova_group is not None:
                attributes["nova_group"] = enriched.attributes.nova_group
            if enriched.attributes.allergens:
                attributes["allergens"] = enriched.attributes.allergens
        return attributes

    async def get_price_trends(
        self,
        product_id: UUID,
        days: Optional[int] = None,
    ) -> List[PriceTrendPoint]:
        """Daily avg/min/max price over the last `days` days (default 30)."""
        if days is None:
            days = self._settings.default_trend_days
        since = datetime.now(timezone.utc) - timedelta(days=days)

        try:
            history = await self._prices.get_price_history(product_id, since)
        except Exception as e:
            self._log.error(
                "price_history_fetch_failed",
                product_id=str(product_id),
                days=days,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        return daily_price_trends(history)

    async def record_price_observation(
        self,
        product_id: UUID,
        store_id: UUID,
        price: Decimal,
        confidence: float,
        source: str = PriceSourceType.LOCAL.value,
        observed_at: Optional[datetime] = None,
    ) -> bool:
        """Store a crowdsourced or receipt price. Never raises.

        Confidence is clamped to [0, 1].
        """
        try:
            await self._prices.record_observation(
                product_id=product_id,
                store_id=store_id,
                price=price,
                source=source,
                confidence=min(max(confidence, 0.0), 1.0),
                observed_at=observed_at or datetime.now(timezone.utc),
            )
        except Exception as e:
            self._log.error(
                "price_observation_failed",
                product_id=str(product_id),
                store_id=str(store_id),
                source=source,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        self._log.info(
            "price_observation_recorded",
            product_id=str(product_id),
            store_id=str(store_id),
            source=source,
        )
        return True
