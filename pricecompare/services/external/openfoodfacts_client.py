"""
Open Food Facts API Client

Free, open product database used to enrich catalog products with brand,
category, images and nutrition facts.

Docs: https://world.openfoodfacts.org/data
"""
import re
from typing import Any, Dict, Optional

import httpx

from pricecompare.config import ExternalApiSettings, get_external_api_settings
from pricecompare.errors import ExternalApiError
from pricecompare.models.external import NormalizedProduct, Nutrition, ProductAttributes
from pricecompare.services.external.base import BaseApiClient

# Open Food Facts reports salt; sodium (mg per 100 g) = salt (g) * 400
SALT_TO_SODIUM = 400

_NON_DIGITS = re.compile(r"\D")


def _first_of_list(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


class OpenFoodFactsClient(BaseApiClient):
    """
    Async client for Open Food Facts product lookups.

    Usage:
        async with OpenFoodFactsClient() as off:
            product = await off.get_product_by_upc("041570054123")
    """

    api_name = "openfoodfacts"

    def __init__(
        self,
        settings: Optional[ExternalApiSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_external_api_settings()
        super().__init__(
            base_url=settings.openfoodfacts_base_url,
            timeout=settings.http_timeout,
            headers={"User-Agent": settings.openfoodfacts_user_agent},
            transport=transport,
        )

    async def get_product_by_upc(self, upc: str) -> Optional[NormalizedProduct]:
        """
        Fetch a product by barcode.

        Args:
            upc: Barcode; spaces, dashes and other non-digits are ignored

        Returns:
            Normalized product, or None when Open Food Facts does not know it

        Raises:
            ExternalApiError: On transport errors or unexpected HTTP statuses
        """
        clean_upc = _NON_DIGITS.sub("", upc)
        if not clean_upc:
            return None

        try:
            response = await self._get(f"/product/{clean_upc}.json")
        except httpx.HTTPError as e:
            self._log.error(
                "openfoodfacts_request_failed",
                upc=upc,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ExternalApiError(f"Open Food Facts lookup failed for {upc}: {e}") from e

        if response.status_code == 404:
            return None

        if response.is_error:
            self._log.error(
                "openfoodfacts_http_error",
                upc=upc,
                status_code=response.status_code,
            )
            raise ExternalApiError(
                f"Open Food Facts error for {upc}: HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )

        data = response.json()
        if data.get("status") != 1 or not data.get("product"):
            self._log.info("openfoodfacts_product_not_found", upc=upc)
            return None

        return self.normalize_product(data["product"])

    @staticmethod
    def normalize_product(raw: Dict[str, Any]) -> NormalizedProduct:
        nutrition = None
        nutriments = raw.get("nutriments")
        if nutriments:
            salt = nutriments.get("salt_100g")
            nutrition = Nutrition(
                calories=nutriments.get("energy-kcal_100g", nutriments.get("energy_kcal_100g")),
                fat=nutriments.get("fat_100g"),
                carbs=nutriments.get("carbohydrates_100g"),
                protein=nutriments.get("proteins_100g"),
                sugar=nutriments.get("sugars_100g"),
                fiber=nutriments.get("fiber_100g"),
                sodium=salt * SALT_TO_SODIUM if salt else None,
            )

        allergens = [a.strip() for a in (raw.get("allergens") or "").split(",") if a.strip()]

        return NormalizedProduct(
            id=str(raw.get("code") or ""),
            upc=raw.get("code"),
            name=raw.get("product_name") or "Unknown Product",
            brand=_first_of_list(raw.get("brands")),
            category=_first_of_list(raw.get("categories")),
            size=raw.get("quantity"),
            image_url=raw.get("image_front_url") or raw.get("image_url"),
            nutrition=nutrition,
            attributes=ProductAttributes(
                nutri_score=raw.get("nutriscore_grade"),
                nova_group=raw.get("nova_group"),
                allergens=allergens,
                ingredients=raw.get("ingredients_text"),
            ),
        )
