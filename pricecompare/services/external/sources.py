"""External price sources merged by the price aggregator.

Each source adapts one catalog API to a common shape: given a catalog
product, return the provider's matching products with prices. The
aggregator adds every priced result under a synthetic store key
"<store_key_prefix>-<provider id>".

Key Components:
    - ExternalPriceSource: Abstract base class for a provider
    - KrogerPriceSource: UPC lookup (requires the product's UPC)
    - WalmartPriceSource: Name search with a small result limit
"""
from abc import ABC, abstractmethod
from typing import List

from pricecompare.db.models import PriceSourceType
from pricecompare.models.catalog import CatalogProduct
from pricecompare.models.external import NormalizedProduct
from pricecompare.services.external.kroger_client import KrogerClient
from pricecompare.services.external.walmart_client import WalmartClient


class ExternalPriceSource(ABC):
    """Abstract base class for external price providers.

    Attributes:
        source_tag: Value written to PriceSource.source
        store_label: Display store name for merged prices
        store_key_prefix: Prefix of the synthetic store key
        confidence: Trust assigned to this provider's prices
    """

    source_tag: str
    store_label: str
    store_key_prefix: str

    def __init__(self, confidence: float) -> None:
        self.confidence = confidence

    def store_key(self, result: NormalizedProduct) -> str:
        return f"{self.store_key_prefix}-{result.id}"

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for the provider are available."""
        pass

    @abstractmethod
    async def fetch(self, product: CatalogProduct) -> List[NormalizedProduct]:
        """Fetch provider results for a catalog product.

        May raise; the aggregator isolates failures per product.
        """
        pass


class KrogerPriceSource(ExternalPriceSource):
    source_tag = PriceSourceType.KROGER_API.value
    store_label = "Kroger"
    store_key_prefix = "kroger"

    def __init__(self, client: KrogerClient, confidence: float = 1.0) -> None:
        super().__init__(confidence)
        self._client = client

    def is_configured(self) -> bool:
        return self._client.is_configured()

    async def fetch(self, product: CatalogProduct) -> List[NormalizedProduct]:
        if not product.upc:
            return []
        return await self._client.get_products_by_upc([product.upc])


class WalmartPriceSource(ExternalPriceSource):
    source_tag = PriceSourceType.SERPAPI_WALMART.value
    store_label = "Walmart"
    store_key_prefix = "walmart"

    def __init__(self, client: WalmartClient, confidence: float = 0.9, limit: int = 3) -> None:
        super().__init__(confidence)
        self._client = client
        self._limit = limit

    def is_configured(self) -> bool:
        return self._client.is_configured()

    async def fetch(self, product: CatalogProduct) -> List[NormalizedProduct]:
        return await self._client.search_products(product.name, limit=self._limit)
