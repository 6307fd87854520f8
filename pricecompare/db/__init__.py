"""Database module."""
from pricecompare.db.base import (
    Base,
    UUIDMixin,
    TimestampMixin,
    get_engine,
    get_session_maker,
    get_session,
    dispose_engine,
)

__all__ = [
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    "get_engine",
    "get_session_maker",
    "get_session",
    "dispose_engine",
]
