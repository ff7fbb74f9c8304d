"""Test doubles and fixture loaders shared across test modules."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from oddsfeed.cache import CacheEntry

FIXTURES_DIR = Path(__file__).parent

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def load_fixture(name: str) -> Any:
    """Load a JSON fixture file."""
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


async def write_raw_row(
    db_path: Path, key: str, data: str, created_at: str, expires_at: str
) -> None:
    """Write a row straight into the SQLite cache table, bypassing validation."""
    async with aiosqlite.connect(str(db_path)) as conn:
        await conn.execute(
            """INSERT OR REPLACE INTO odds_cache (key, data, created_at, expires_at)
               VALUES (?, ?, ?, ?)""",
            (key, data, created_at, expires_at),
        )
        await conn.commit()


class FakeClock:
    """Controllable UTC clock for freshness tests."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FailingStore:
    """Store whose every operation raises."""

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or RuntimeError("store unavailable")
        self.get_calls = 0
        self.set_calls = 0

    async def get(self, key: str) -> CacheEntry | None:
        self.get_calls += 1
        raise self.exc

    async def set(self, key: str, entry: CacheEntry) -> None:
        self.set_calls += 1
        raise self.exc

    async def close(self) -> None:
        pass


class CountingUpstream:
    """Upstream stand-in that records calls and returns or raises on demand."""

    def __init__(self, result: Any = None, exc: Exception | None = None) -> None:
        self.result = result
        self.exc = exc
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.result


class GatedUpstream:
    """Upstream stand-in that blocks until the test releases it.

    Lets a test decide the order in which overlapping fetches complete.
    """

    def __init__(self, result: Any) -> None:
        self.result = result
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return self.result


class StubProvider:
    """In-memory provider recording every odds request."""

    def __init__(
        self,
        odds: list[dict[str, Any]] | None = None,
        sports: list[dict[str, Any]] | None = None,
        exc: Exception | None = None,
        credentials: bool = True,
    ) -> None:
        self.odds = odds or []
        self.sports = sports or []
        self.exc = exc
        self.credentials = credentials
        self.odds_calls: list[tuple[str, str, str]] = []
        self.sports_calls = 0

    @property
    def source_name(self) -> str:
        return "the_odds_api"

    def has_credentials(self) -> bool:
        return self.credentials

    async def fetch_sports(self) -> list[dict[str, Any]]:
        self.sports_calls += 1
        if self.exc:
            raise self.exc
        return self.sports

    async def fetch_odds(
        self, sport: str, region: str = "us", market: str = "h2h"
    ) -> list[dict[str, Any]]:
        self.odds_calls.append((sport, region, market))
        if self.exc:
            raise self.exc
        return self.odds

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass
