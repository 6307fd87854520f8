"""
Kroger Products API Client

UPC lookup against the Kroger public API. Authenticates
with the OAuth2 client-credentials grant; the access token is cached on the
client until five minutes before it expires.

Docs: https://developer.kroger.com/reference
"""
import time
from typing import Any, Dict, List, Optional

import httpx

from pricecompare.config import ExternalApiSettings, get_external_api_settings
from pricecompare.errors import ExternalApiError, ExternalApiNotConfiguredError
from pricecompare.models.external import ExternalPrice, NormalizedProduct
from pricecompare.services.external.base import BaseApiClient, to_decimal

TOKEN_PATH = "/connect/oauth2/token"
TOKEN_SCOPE = "product.compact"
TOKEN_REFRESH_MARGIN_SECONDS = 300


class KrogerClient(BaseApiClient):
    """
    Async client for the Kroger products API.

    Usage:
        async with KrogerClient() as kroger:
            products = await kroger.get_products_by_upc(["0001111041700"])
    """

    api_name = "kroger"

    def __init__(
        self,
        settings: Optional[ExternalApiSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_external_api_settings()
        super().__init__(
            base_url=settings.kroger_base_url,
            timeout=settings.http_timeout,
            transport=transport,
        )
        self._client_id = settings.kroger_client_id
        self._client_secret = settings.kroger_client_secret
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def clear_token(self) -> None:
        self._access_token = None
        self._token_expires_at = 0.0

    async def _get_access_token(self) -> str:
        if (
            self._access_token
            and self._token_expires_at > time.monotonic() + TOKEN_REFRESH_MARGIN_SECONDS
        ):
            return self._access_token

        if not self.is_configured():
            raise ExternalApiNotConfiguredError("Kroger API credentials not configured")

        response = await self._post(
            TOKEN_PATH,
            data={"grant_type": "client_credentials", "scope": TOKEN_SCOPE},
            auth=(self._client_id, self._client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        if response.status_code != 200:
            self.clear_token()
            if response.status_code == 401:
                message = "Invalid Kroger credentials"
            elif response.status_code == 403:
                message = "Kroger API access denied"
            else:
                message = f"Kroger authentication failed (HTTP {response.status_code})"
            self._log.error(
                "kroger_auth_failed",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise ExternalApiError(message, details={"status_code": response.status_code})

        data = response.json()
        self._access_token = data["access_token"]
        self._token_expires_at = time.monotonic() + float(data.get("expires_in", 0))
        self._log.info("kroger_token_obtained", expires_in=data.get("expires_in"))
        return self._access_token

    async def _authorized_get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        token = await self._get_access_token()
        response = await self._get(
            path, params=params, headers={"Authorization": f"Bearer {token}"}
        )

        if response.status_code == 401:
            # Token revoked or expired early: refresh once
            self.clear_token()
            token = await self._get_access_token()
            response = await self._get(
                path, params=params, headers={"Authorization": f"Bearer {token}"}
            )

        if response.is_error:
            self._log.error(
                "kroger_request_failed",
                path=path,
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise ExternalApiError(
                f"Kroger API error on {path}: HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )

        return response.json()

    async def get_products_by_upc(self, upcs: List[str]) -> List[NormalizedProduct]:
        """
        Look up products by UPC.

        Raises:
            ExternalApiNotConfiguredError: If credentials are missing
            ExternalApiError: On authentication or HTTP errors
        """
        data = await self._authorized_get(
            "/products", params={"filter.productId": ",".join(upcs)}
        )
        return [self.normalize_product(p) for p in data.get("data") or []]

    @staticmethod
    def normalize_product(raw: Dict[str, Any]) -> NormalizedProduct:
        items = raw.get("items") or []
        item = items[0] if items else {}

        image_url = None
        for image in raw.get("images") or []:
            if image.get("perspective") == "front":
                for size in image.get("sizes") or []:
                    if size.get("size") in ("medium", "large"):
                        image_url = size.get("url")
                        break
                break

        price = None
        raw_price = item.get("price")
        regular = to_decimal(raw_price.get("regular")) if raw_price else None
        if regular is not None:
            promo = to_decimal(raw_price.get("promo"))
            price = ExternalPrice(
                regular=regular,
                sale=promo if promo and promo != regular else None,
            )

        categories = raw.get("categories") or []
        return NormalizedProduct(
            id=str(raw.get("productId") or raw.get("upc") or ""),
            upc=raw.get("upc"),
            name=raw.get("description") or "",
            brand=raw.get("brand"),
            category=categories[0] if categories else None,
            size=item.get("size"),
            image_url=image_url,
            price=price,
        )
