"""SQLite building database: conversation history, packages, and amenity bookings."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from ..config import PACKAGE_STATUS_PENDING
from ..errors import StorageError
from ..models import Exchange, Turn
from .base import BookingRow, ConciergeStore, PackageRow


def _iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteConciergeStore(ConciergeStore):
    """SQLite-backed building database.

    One file holds three tables:
    - conversations: one row per persisted exchange (turns as JSON)
    - packages: deliveries per unit with a pending/picked_up status
    - bookings: amenity reservations, insert-only

    The connection is shared across threads and guarded by a lock; the async
    methods run the blocking work with asyncio.to_thread.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = str(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._create_schema()

    def _create_schema(self) -> None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                    conversation_id TEXT PRIMARY KEY,
                    session_id      TEXT NOT NULL,
                    unit_number     TEXT,
                    messages_json   TEXT NOT NULL,
                    created_at      TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_conversations_session_created
                ON conversations (session_id, created_at)
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS packages (
                    package_id  TEXT PRIMARY KEY,
                    unit_number TEXT NOT NULL,
                    courier     TEXT NOT NULL,
                    status      TEXT NOT NULL DEFAULT 'pending',
                    created_at  TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_packages_unit_status
                ON packages (unit_number, status)
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS bookings (
                    booking_id   TEXT PRIMARY KEY,
                    unit_number  TEXT NOT NULL,
                    amenity      TEXT NOT NULL,
                    booking_time TEXT NOT NULL,
                    created_at   TEXT NOT NULL
                )
                """
            )
            self._conn.commit()

    def _run(self, fn, *args: Any) -> Any:
        """Run fn under the lock, converting sqlite errors to StorageError."""
        with self._lock:
            try:
                return fn(self._conn.cursor(), *args)
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def fetch_recent_exchanges_sync(self, session_id: str, limit: int) -> List[Exchange]:
        def _query(cur: sqlite3.Cursor) -> List[sqlite3.Row]:
            cur.execute(
                """
                SELECT session_id, unit_number, messages_json, created_at
                FROM conversations
                WHERE session_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
                """,
                (session_id, limit),
            )
            return cur.fetchall()

        rows = self._run(_query)
        exchanges = [
            Exchange(
                session_id=row["session_id"],
                unit_number=row["unit_number"],
                turns=[Turn.model_validate(t) for t in json.loads(row["messages_json"])],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]
        exchanges.reverse()
        return exchanges

    def append_exchange_sync(self, exchange: Exchange) -> None:
        messages_json = json.dumps([t.model_dump(mode="json") for t in exchange.turns])

        def _insert(cur: sqlite3.Cursor) -> None:
            cur.execute(
                """
                INSERT INTO conversations (
                    conversation_id, session_id, unit_number, messages_json, created_at
                )
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    exchange.session_id,
                    exchange.unit_number,
                    messages_json,
                    _iso(exchange.created_at),
                ),
            )
            self._conn.commit()

        self._run(_insert)

    async def fetch_recent_exchanges(self, session_id: str, limit: int) -> list[Exchange]:
        return await asyncio.to_thread(self.fetch_recent_exchanges_sync, session_id, limit)

    async def append_exchange(self, exchange: Exchange) -> None:
        await asyncio.to_thread(self.append_exchange_sync, exchange)

    # ------------------------------------------------------------------
    # Packages
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_package(row: sqlite3.Row) -> PackageRow:
        return PackageRow(
            package_id=row["package_id"],
            unit_number=row["unit_number"],
            courier=row["courier"],
            status=row["status"],
            created_at=row["created_at"],
        )

    def add_package(
        self,
        unit_number: str,
        courier: str,
        status: str = PACKAGE_STATUS_PENDING,
    ) -> PackageRow:
        """Register a delivery (front-desk intake, seeding)."""
        package_id = str(uuid.uuid4())
        now = _iso_now()

        def _insert(cur: sqlite3.Cursor) -> None:
            cur.execute(
                """
                INSERT INTO packages (package_id, unit_number, courier, status, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (package_id, unit_number, courier, status, now),
            )
            self._conn.commit()

        self._run(_insert)
        return PackageRow(package_id, unit_number, courier, status, now)

    def query_packages_sync(self, unit_number: str, status: Optional[str] = None) -> List[PackageRow]:
        def _query(cur: sqlite3.Cursor) -> List[sqlite3.Row]:
            if status is None:
                cur.execute(
                    "SELECT * FROM packages WHERE unit_number = ? ORDER BY created_at, rowid",
                    (unit_number,),
                )
            else:
                cur.execute(
                    "SELECT * FROM packages WHERE unit_number = ? AND status = ? ORDER BY created_at, rowid",
                    (unit_number, status),
                )
            return cur.fetchall()

        return [self._row_to_package(r) for r in self._run(_query)]

    def update_packages_status_sync(self, unit_number: str, new_status: str, from_status: str) -> int:
        def _update(cur: sqlite3.Cursor) -> int:
            cur.execute(
                "UPDATE packages SET status = ? WHERE unit_number = ? AND status = ?",
                (new_status, unit_number, from_status),
            )
            self._conn.commit()
            return cur.rowcount

        return self._run(_update)

    async def query_pending_packages(self, unit_number: str) -> list[PackageRow]:
        return await asyncio.to_thread(self.query_packages_sync, unit_number, PACKAGE_STATUS_PENDING)

    async def update_packages_status(
        self,
        unit_number: str,
        new_status: str,
        from_status: str = PACKAGE_STATUS_PENDING,
    ) -> int:
        return await asyncio.to_thread(self.update_packages_status_sync, unit_number, new_status, from_status)

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def insert_booking_sync(
        self,
        unit_number: str,
        amenity: str,
        booking_time: str,
        created_at: datetime,
    ) -> BookingRow:
        row = BookingRow(
            booking_id=str(uuid.uuid4()),
            unit_number=unit_number,
            amenity=amenity,
            booking_time=booking_time,
            created_at=_iso(created_at),
        )

        def _insert(cur: sqlite3.Cursor) -> None:
            cur.execute(
                """
                INSERT INTO bookings (booking_id, unit_number, amenity, booking_time, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (row.booking_id, row.unit_number, row.amenity, row.booking_time, row.created_at),
            )
            self._conn.commit()

        self._run(_insert)
        return row

    def list_bookings(self, unit_number: str) -> List[BookingRow]:
        def _query(cur: sqlite3.Cursor) -> List[sqlite3.Row]:
            cur.execute(
                "SELECT * FROM bookings WHERE unit_number = ? ORDER BY created_at, rowid",
                (unit_number,),
            )
            return cur.fetchall()

        return [
            BookingRow(
                booking_id=r["booking_id"],
                unit_number=r["unit_number"],
                amenity=r["amenity"],
                booking_time=r["booking_time"],
                created_at=r["created_at"],
            )
            for r in self._run(_query)
        ]

    async def insert_booking(
        self,
        unit_number: str,
        amenity: str,
        booking_time: str,
        created_at: datetime,
    ) -> BookingRow:
        return await asyncio.to_thread(self.insert_booking_sync, unit_number, amenity, booking_time, created_at)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
