"""Freshness-tracking cache over a pluggable key-value store.

Entries are written with a fixed 600 second TTL. Expiry is logical only:
an expired entry stays readable so it can be served when the upstream
provider is failing.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import aiosqlite
from pydantic import BaseModel, ConfigDict, field_serializer, model_validator

from oddsfeed.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 600  # 10 minutes
CACHE_TTL = timedelta(seconds=CACHE_TTL_SECONDS)


def cache_key(sport: str, region: str, market: str) -> str:
    """Deterministic cache key for an odds request.

    Format: odds_{sport}_{region}_{market}

    Args:
        sport: Provider sport key (e.g., "soccer_epl")
        region: Bookmaker region (e.g., "us", "uk")
        market: Market key (e.g., "h2h")

    Returns:
        Cache key string
    """
    return f"odds_{sport}_{region}_{market}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(BaseModel):
    """Immutable snapshot of a raw upstream payload."""

    model_config = ConfigDict(frozen=True)

    key: str
    data: Any
    created_at: datetime
    expires_at: datetime

    @model_validator(mode="after")
    def check_ttl(self) -> "CacheEntry":
        """Reject entries whose expiry does not match the fixed TTL."""
        if self.expires_at - self.created_at != CACHE_TTL:
            raise ValueError(
                f"expires_at must be created_at + {CACHE_TTL_SECONDS}s for entry {self.key}"
            )
        return self

    @field_serializer("created_at", "expires_at")
    def serialize_dt(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()

    @classmethod
    def create(cls, key: str, data: Any, now: datetime) -> "CacheEntry":
        """Build an entry created at ``now`` that expires one TTL later."""
        return cls(key=key, data=data, created_at=now, expires_at=now + CACHE_TTL)

    def is_fresh_at(self, now: datetime) -> bool:
        """Check whether the entry is still within its TTL at ``now``."""
        return now < self.expires_at


class StoreError(Exception):
    """Raised by a cache store when the backend cannot be read or written."""

    def __init__(self, operation: str, key: str | None, details: str) -> None:
        self.operation = operation
        self.key = key
        self.details = details
        target = f" {key}" if key else ""
        super().__init__(f"Cache store {operation}{target} failed: {details}")


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store holding CacheEntry objects.

    Error Handling Contract:
    - StoreError: backend could not be read or written
    - get() returning None: no entry exists at the key
    """

    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry stored at key, or None if there is none."""
        ...

    async def set(self, key: str, entry: CacheEntry) -> None:
        """Store entry at key, replacing any existing entry."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...


class MemoryStore:
    """Process-local dict-backed store."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Memory store miss: {key}")
        return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry
        logger.debug(f"Memory store set: {key}")

    async def close(self) -> None:
        self._entries.clear()


class SQLiteStore:
    """Durable SQLite store with WAL mode.

    The connection is opened on first use and shared by every request
    afterwards.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize SQLite store with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self._db_path = Path(db_path).expanduser()
        self._conn: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SQLiteStore":
        """Build a store from settings, failing fast without a database path.

        Raises:
            ConfigurationError: If cache_db_path is empty.
        """
        if not settings.cache_db_path or not settings.cache_db_path.strip():
            raise ConfigurationError(
                "Cache store requires a database path. "
                "Set ODDSFEED_CACHE_DB_PATH or cache_db_path in the config file."
            )
        return cls(settings.cache_db_path)

    async def connect(self) -> None:
        """Open the connection and create the cache table.

        Concurrent callers share a single connection. A connection that
        fails during setup is closed before the error is raised.
        """
        async with self._connect_lock:
            if self._conn is not None:
                return

            conn: aiosqlite.Connection | None = None
            try:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = await aiosqlite.connect(str(self._db_path), timeout=30.0)

                # WAL lets readers proceed while a refresh is being written
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA synchronous=NORMAL")

                await conn.execute("""
                    CREATE TABLE IF NOT EXISTS odds_cache (
                        key TEXT PRIMARY KEY,
                        data TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        expires_at TEXT NOT NULL
                    )
                """)
                await conn.commit()
            except (aiosqlite.Error, OSError) as e:
                if conn is not None:
                    await self._close_quietly(conn)
                raise StoreError("connect", None, str(e)) from e

            self._conn = conn
        logger.info(f"SQLite cache store initialized at {self._db_path}")

    @staticmethod
    async def _close_quietly(conn: aiosqlite.Connection) -> None:
        try:
            await conn.close()
        except aiosqlite.Error as e:
            logger.warning(f"Failed to close half-open SQLite connection: {e}")

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.connect()
        assert self._conn is not None  # For mypy
        return self._conn

    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve entry from SQLite.

        Args:
            key: Cache key

        Returns:
            CacheEntry if found, None otherwise

        Raises:
            StoreError: If the database cannot be read or the row is corrupt.
        """
        conn = await self._connection()
        try:
            cursor = await conn.execute(
                "SELECT key, data, created_at, expires_at FROM odds_cache WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError("get", key, str(e)) from e

        if row is None:
            logger.debug(f"SQLite store miss: {key}")
            return None

        try:
            return CacheEntry(
                key=row[0],
                data=json.loads(row[1]),
                created_at=datetime.fromisoformat(row[2]),
                expires_at=datetime.fromisoformat(row[3]),
            )
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            raise StoreError("get", key, f"corrupt entry: {e}") from e

    async def set(self, key: str, entry: CacheEntry) -> None:
        """Store entry in SQLite, replacing any existing row.

        Raises:
            StoreError: If the database cannot be written.
        """
        conn = await self._connection()
        try:
            await conn.execute(
                """INSERT OR REPLACE INTO odds_cache (key, data, created_at, expires_at)
                   VALUES (?, ?, ?, ?)""",
                (
                    key,
                    json.dumps(entry.data),
                    entry.created_at.isoformat(),
                    entry.expires_at.isoformat(),
                ),
            )
            await conn.commit()
        except (aiosqlite.Error, TypeError, ValueError) as e:
            raise StoreError("set", key, str(e)) from e
        logger.debug(f"SQLite store set: {key}")

    async def close(self) -> None:
        """Close SQLite connection."""
        async with self._connect_lock:
            if self._conn:
                await self._conn.close()
                self._conn = None


class LookupStatus(Enum):
    """Freshness classification of a cache key."""

    FRESH = "fresh"
    STALE = "stale"
    ABSENT = "absent"


class CacheLookup:
    """Result of a single freshness-aware read."""

    def __init__(self, status: LookupStatus, entry: CacheEntry | None = None) -> None:
        """Initialize lookup result.

        Args:
            status: FRESH, STALE or ABSENT
            entry: The stored entry, None when ABSENT
        """
        self.status = status
        self.entry = entry

    @property
    def data(self) -> Any:
        """Stored payload regardless of freshness, None when absent."""
        return self.entry.data if self.entry is not None else None

    @property
    def is_fresh(self) -> bool:
        return self.status is LookupStatus.FRESH

    @classmethod
    def absent(cls) -> "CacheLookup":
        return cls(LookupStatus.ABSENT)


class FreshnessCache:
    """Timestamps store entries and answers freshness questions about them.

    Store failures never propagate: reads degrade to a miss and writes are
    dropped, both with a warning.
    """

    def __init__(
        self,
        store: CacheStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the cache over an explicitly constructed store.

        Args:
            store: Backing key-value store
            clock: Returns the current UTC time; defaults to the system clock
        """
        self._store = store
        self._clock = clock or _utcnow

    @property
    def store(self) -> CacheStore:
        return self._store

    async def lookup(self, key: str) -> CacheLookup:
        """Read key once and classify it as fresh, stale or absent.

        Args:
            key: Cache key

        Returns:
            CacheLookup; store failures are reported as ABSENT
        """
        try:
            entry = await self._store.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, treating as miss: {e}")
            return CacheLookup.absent()

        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return CacheLookup.absent()

        if entry.is_fresh_at(self._clock()):
            logger.debug(f"Cache hit: {key}")
            return CacheLookup(LookupStatus.FRESH, entry)

        logger.debug(f"Cache entry expired: {key}")
        return CacheLookup(LookupStatus.STALE, entry)

    async def is_valid(self, key: str) -> bool:
        """Check whether a fresh entry exists at key.

        Returns:
            True iff an entry exists and has not reached its expiry
        """
        result = await self.lookup(key)
        return result.is_fresh

    async def read(self, key: str) -> Any | None:
        """Return the stored value at key regardless of freshness.

        Returns:
            The payload, or None if absent or unreadable
        """
        result = await self.lookup(key)
        return result.data

    async def write(self, key: str, value: Any) -> None:
        """Store value at key with a new TTL window, replacing any prior entry.

        Failures are logged and dropped.
        """
        entry = CacheEntry.create(key, value, self._clock())
        try:
            await self._store.set(key, entry)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}, continuing without cache: {e}")
            return
        logger.debug(f"Cache set: {key} (expires {entry.expires_at.isoformat()})")


__all__ = [
    "CACHE_TTL_SECONDS",
    "cache_key",
    "CacheEntry",
    "CacheStore",
    "StoreError",
    "MemoryStore",
    "SQLiteStore",
    "LookupStatus",
    "CacheLookup",
    "FreshnessCache",
]
