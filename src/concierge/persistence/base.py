"""Storage contract consumed by the concierge core."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ..models import Exchange


@dataclass
class PackageRow:
    package_id: str
    unit_number: str
    courier: str
    status: str
    created_at: str


@dataclass
class BookingRow:
    booking_id: str
    unit_number: str
    amenity: str
    booking_time: str
    created_at: str


class ConciergeStore(ABC):
    """Read/write surface used by the context assembler, tools, and recorder.

    Every method may raise StorageError; callers treat that as recoverable.
    """

    @abstractmethod
    async def fetch_recent_exchanges(self, session_id: str, limit: int) -> list[Exchange]:
        """Up to `limit` most recent exchanges for the session, oldest first."""
        ...

    @abstractmethod
    async def append_exchange(self, exchange: Exchange) -> None:
        ...

    @abstractmethod
    async def query_pending_packages(self, unit_number: str) -> list[PackageRow]:
        ...

    @abstractmethod
    async def update_packages_status(
        self,
        unit_number: str,
        new_status: str,
        from_status: str = "pending",
    ) -> int:
        """Move the unit's packages from `from_status` to `new_status`. Returns rows changed."""
        ...

    @abstractmethod
    async def insert_booking(
        self,
        unit_number: str,
        amenity: str,
        booking_time: str,
        created_at: datetime,
    ) -> BookingRow:
        ...
