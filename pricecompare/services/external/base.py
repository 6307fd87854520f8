"""Shared plumbing for third-party catalog API clients.

Each client owns an httpx.AsyncClient for its lifetime and is used as an
async context manager:

    async with OpenFoodFactsClient() as off:
        product = await off.get_product_by_upc("0 41570 05412 3")
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pricecompare.errors import ExternalApiError

logger = structlog.get_logger(__name__)

# Connection-level failures only; HTTP error statuses are handled by callers
http_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.ConnectTimeout)),
    reraise=True,
)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a JSON number to Decimal, None for missing or non-numeric values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class BaseApiClient:
    """Async HTTP client lifecycle shared by the catalog API clients.

    Attributes:
        api_name: Short name used in logs and search cache keys
    """

    api_name = "external"

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url: API root URL
            timeout: Read timeout in seconds
            headers: Default headers sent with every request
            transport: Custom transport (tests pass httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(connect=5.0, read=timeout, write=5.0, pool=5.0)
        self._headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._log = logger.bind(api=self.api_name, base_url=self.base_url)

    async def __aenter__(self):
        """Context manager entry - create async client."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport or httpx.AsyncHTTPTransport(retries=1),
            headers={"Accept": "application/json", **self._headers},
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close async client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, raising if not initialized."""
        if self._client is None:
            raise ExternalApiError(
                f"{type(self).__name__} not initialized. "
                f"Use 'async with {type(self).__name__}() as client:'"
            )
        return self._client

    @http_retry
    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.client.get(url, **kwargs)

    @http_retry
    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.client.post(url, **kwargs)
