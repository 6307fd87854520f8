"""Custom exception hierarchy for matching and price aggregation errors."""
from typing import Any, Dict, Optional


class PriceCompareError(Exception):
    """Base exception for all price comparison errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Initialize error with message and optional structured details."""
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DatabaseError(PriceCompareError):
    """Raised when database operations fail."""
    pass


class ExternalApiError(PriceCompareError):
    """Raised when a third-party catalog API call fails."""
    pass


class ExternalApiNotConfiguredError(ExternalApiError):
    """Raised when an external API is used without credentials."""
    pass


class ListFetchError(PriceCompareError):
    """Raised when shopping list items cannot be loaded."""
    pass
