"""Building database: conversations, packages, and amenity bookings."""

from __future__ import annotations

from ..config import CONCIERGE_DB_PATH
from .base import BookingRow, ConciergeStore, PackageRow
from .sqlite import SQLiteConciergeStore

_default_store: ConciergeStore | None = None


def get_default_store() -> ConciergeStore:
    """Return the process-wide SQLite store, opened on first use."""
    global _default_store
    if _default_store is None:
        _default_store = SQLiteConciergeStore(CONCIERGE_DB_PATH)
    return _default_store


__all__ = [
    "BookingRow",
    "ConciergeStore",
    "PackageRow",
    "SQLiteConciergeStore",
    "get_default_store",
]
