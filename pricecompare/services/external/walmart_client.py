"""
Walmart product search via SerpApi (engine=walmart).

Docs: https://serpapi.com/walmart-search-api
"""
from typing import Any, Dict, List, Optional

import httpx

from pricecompare.config import ExternalApiSettings, get_external_api_settings
from pricecompare.models.external import ExternalPrice, NormalizedProduct
from pricecompare.services.external.base import BaseApiClient, to_decimal
from pricecompare.services.external.search_cache import SearchCache

SEARCH_PATH = "/search"


class WalmartClient(BaseApiClient):
    """
    Async SerpApi client for Walmart search results.

    Search failures of any kind (transport, HTTP status, provider error
    payload) are logged and produce an empty result list.
    """

    api_name = "serpapi-walmart"

    def __init__(
        self,
        settings: Optional[ExternalApiSettings] = None,
        cache: Optional[SearchCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_external_api_settings()
        super().__init__(
            base_url=settings.serpapi_base_url,
            timeout=settings.http_timeout,
            transport=transport,
        )
        self._api_key = settings.serpapi_api_key
        self._cache = cache

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def search_products(self, query: str, limit: int = 10) -> List[NormalizedProduct]:
        """
        Search Walmart products by name.

        Args:
            query: Free-text product name
            limit: Maximum number of results returned

        Returns:
            Normalized products (possibly from cache), empty on any failure
        """
        if self._cache:
            cached = await self._cache.get(self.api_name, query)
            if cached:
                return cached[:limit]

        if not self.is_configured():
            self._log.warning("serpapi_not_configured")
            return []

        self._log.info("serpapi_search", query=query, limit=limit)
        try:
            response = await self._get(
                SEARCH_PATH,
                params={"engine": "walmart", "query": query, "api_key": self._api_key},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._log.error(
                "serpapi_search_failed",
                query=query,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        if data.get("error"):
            self._log.error("serpapi_provider_error", query=query, error=data["error"])
            return []

        results = [self.normalize_search_result(r) for r in data.get("organic_results") or []]
        self._log.debug("serpapi_search_completed", query=query, result_count=len(results))

        # Full result set is cached; callers get at most `limit`
        if self._cache and results:
            await self._cache.set(self.api_name, query, results)
        return results[:limit]

    @staticmethod
    def normalize_search_result(raw: Dict[str, Any]) -> NormalizedProduct:
        price = None
        offer = raw.get("primary_offer")
        if offer:
            offer_price = to_decimal(offer.get("offer_price"))
            was_price = to_decimal(offer.get("was_price"))
            regular = was_price or offer_price
            if regular is not None:
                price = ExternalPrice(
                    regular=regular,
                    sale=offer_price if was_price else None,
                )

        return NormalizedProduct(
            id=str(raw.get("us_item_id") or raw.get("product_id") or ""),
            upc=raw.get("upc"),
            name=raw.get("title") or "",
            image_url=raw.get("thumbnail"),
            price=price,
        )
