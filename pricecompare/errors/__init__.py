"""Error handling module."""
from pricecompare.errors.exceptions import (
    PriceCompareError,
    DatabaseError,
    ExternalApiError,
    ExternalApiNotConfiguredError,
    ListFetchError,
)

__all__ = [
    "PriceCompareError",
    "DatabaseError",
    "ExternalApiError",
    "ExternalApiNotConfiguredError",
    "ListFetchError",
]
