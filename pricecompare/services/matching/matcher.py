"""Local catalog product matching.

Resolves free-text shopping list lines to catalog products so that only
lines without a confident local match need an external API search.
Products discovered through external searches are written back to the
catalog with save_products_to_catalog.

Key Components:
    - CatalogStore: Protocol for the catalog persistence the matcher needs
    - ProductMatcher: Matching and catalog growth service
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence, Tuple
from uuid import UUID

import structlog

from pricecompare.config import MatchingSettings, get_matching_settings
from pricecompare.models.catalog import CatalogProduct, CatalogProductIn
from pricecompare.models.matching import (
    LocalProductMatch,
    MatchedProduct,
    MatchStats,
    ProductMatchResult,
)
from pricecompare.services.matching.scoring import calculate_match_score

logger = structlog.get_logger(__name__)


class CatalogStore(Protocol):
    """Catalog persistence used by ProductMatcher.

    Implemented by CatalogRepository; tests pass in-memory fakes.
    """

    async def list_products_with_prices(self, limit: int = 1000) -> List[CatalogProduct]:
        ...

    async def get_or_create_product(self, record: CatalogProductIn) -> Tuple[UUID, bool]:
        ...

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
        ...


class ProductMatcher:
    """Matches user items against the local catalog.

    Attributes:
        catalog: Catalog persistence
        settings: Matching thresholds and catalog load limit
    """

    def __init__(
        self,
        catalog: CatalogStore,
        settings: Optional[MatchingSettings] = None,
    ) -> None:
        self._catalog = catalog
        self._settings = settings or get_matching_settings()
        self._log = logger.bind(component="ProductMatcher")

    def _best_match(
        self,
        user_input: str,
        products: Sequence[CatalogProduct],
        min_confidence: float,
    ) -> Optional[LocalProductMatch]:
        best_product: Optional[CatalogProduct] = None
        best_score = 0.0

        for product in products:
            score = calculate_match_score(user_input, product.name, product.brand)
            # Strictly greater: on ties the first product in catalog order wins
            if score >= min_confidence and (best_product is None or score > best_score):
                best_product = product
                best_score = score

        if best_product is None:
            return None

        latest_price = best_product.prices[0] if best_product.prices else None
        return LocalProductMatch(
            user_input=user_input,
            product=MatchedProduct(
                id=best_product.id,
                name=best_product.name,
                brand=best_product.brand,
                upc=best_product.upc,
                size=best_product.size,
                image_url=best_product.image_url,
            ),
            price=latest_price.price if latest_price else None,
            sale_price=latest_price.sale_price if latest_price else None,
            store_id=latest_price.store_id if latest_price else None,
            store_name=latest_price.store_name if latest_price else None,
            confidence=best_score,
        )

    async def find_local_product_matches(
        self,
        user_items: List[str],
        store_id: Optional[UUID] = None,
        min_confidence: Optional[float] = None,
    ) -> ProductMatchResult:
        """Find the best local catalog product for each user item.

        Args:
            user_items: Free-text shopping list lines
            store_id: Accepted for API compatibility; the catalog is not
                narrowed to a single store
            min_confidence: Score threshold (defaults to MATCH_CONFIDENCE_THRESHOLD)

        Returns:
            ProductMatchResult; every item appears in exactly one of
            matched or unmatched. Never raises.
        """
        threshold = (
            min_confidence
            if min_confidence is not None
            else self._settings.confidence_threshold
        )

        try:
            products = await self._catalog.list_products_with_prices(
                limit=self._settings.catalog_limit
            )
        except Exception as e:
            self._log.error(
                "catalog_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
                item_count=len(user_items),
            )
            return ProductMatchResult.all_unmatched(user_items)

        if not products:
            self._log.info("catalog_empty", item_count=len(user_items))
            return ProductMatchResult.all_unmatched(user_items)

        self._log.info(
            "local_matching_started",
            product_count=len(products),
            item_count=len(user_items),
            threshold=threshold,
            store_id=str(store_id) if store_id else None,
        )

        matched: List[LocalProductMatch] = []
        unmatched: List[str] = []

        for user_input in user_items:
            match = self._best_match(user_input, products, threshold)
            if match is not None:
                matched.append(match)
                self._log.debug(
                    "item_matched",
                    user_input=user_input,
                    product_id=str(match.product.id),
                    product_name=match.product.name,
                    confidence=round(match.confidence, 2),
                )
            else:
                unmatched.append(user_input)
                self._log.debug(
                    "item_unmatched",
                    user_input=user_input,
                    threshold=threshold,
                )

        avg_confidence = (
            sum(m.confidence for m in matched) / len(matched) if matched else 0.0
        )

        self._log.info(
            "local_matching_completed",
            matched_count=len(matched),
            unmatched_count=len(unmatched),
        )

        return ProductMatchResult(
            matched=matched,
            unmatched=unmatched,
            stats=MatchStats(
                total_items=len(user_items),
                matched_count=len(matched),
                unmatched_count=len(unmatched),
                avg_confidence=round(avg_confidence, 2),
            ),
        )

    async def save_products_to_catalog(self, products: List[CatalogProductIn]) -> int:
        """Add externally discovered products to the local catalog.

        Existing products (same UPC, or same name ignoring case) are reused.
        When a record carries both price and store_id, the store's current
        price is upserted.

        Args:
            products: Normalized records from an external search

        Returns:
            Number of newly created products. Records that fail are logged
            and skipped; earlier records stay saved.
        """
        if not products:
            return 0

        saved_count = 0

        for record in products:
            try:
                product_id, created = await self._catalog.get_or_create_product(record)
            except Exception as e:
                self._log.error(
                    "catalog_product_save_failed",
                    name=record.name[:80],
                    upc=record.upc,
                    source=record.source.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if created:
                saved_count += 1

            if record.price and record.store_id:
                try:
                    await self._catalog.upsert_price(
                        product_id=product_id,
                        store_id=record.store_id,
                        price=record.price,
                        sale_price=record.sale_price or None,
                        source=record.source.price_source.value,
                    )
                except Exception as e:
                    self._log.warning(
                        "catalog_price_save_failed",
                        product_id=str(product_id),
                        store_id=str(record.store_id),
                        error=str(e),
                        error_type=type(e).__name__,
                    )

        if saved_count > 0:
            self._log.info("catalog_products_saved", saved_count=saved_count)

        return saved_count
