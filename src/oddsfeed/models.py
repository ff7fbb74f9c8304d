"""Pydantic models for upstream odds payloads and display shapes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PayloadSource(Enum):
    """Where a served payload came from."""

    CACHE = "cache"  # fresh cache hit, no upstream call
    UPSTREAM = "upstream"  # fetched from the provider and written to cache
    STALE_CACHE = "stale_cache"  # expired entry served after an upstream failure


# --- Upstream payload (The Odds API v4) ---


class _UpstreamModel(BaseModel):
    """Base for provider payloads; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore")


class Sport(_UpstreamModel):
    """An entry of the provider's sports list."""

    key: str
    group: str = ""
    title: str = ""
    description: str = ""
    active: bool = True
    has_outrights: bool = False


class Outcome(_UpstreamModel):
    name: str
    price: float | None = None
    point: float | None = None


class Market(_UpstreamModel):
    key: str
    last_update: str | None = None
    outcomes: list[Outcome] = []


class Bookmaker(_UpstreamModel):
    key: str
    title: str = ""
    last_update: str | None = None
    markets: list[Market] = []


class OddsEvent(_UpstreamModel):
    """A single fixture with the prices offered by each bookmaker."""

    id: str
    sport_key: str = ""
    sport_title: str = ""
    commence_time: str = ""
    home_team: str = ""
    away_team: str = ""
    bookmakers: list[Bookmaker] = []


# --- Display shapes ---


class Teams(BaseModel):
    home: str
    away: str


class OddsTriple(BaseModel):
    """Decimal prices for the three head-to-head outcomes."""

    home: float | None = None
    draw: float | None = None
    away: float | None = None


class TransformedOdds(BaseModel):
    """One event priced by a single (preferred or first) bookmaker."""

    id: str
    teams: Teams
    start_at: str
    odds: OddsTriple
    bookmaker: str


class BookmakerOdds(BaseModel):
    key: str
    title: str
    odds: OddsTriple


class MatchWithBookmakers(BaseModel):
    """One event with the prices of every bookmaker that lists it."""

    id: str
    teams: Teams
    start_at: str
    bookmakers: list[BookmakerOdds]


class OddsResponse(BaseModel):
    """Shaped odds plus where the underlying raw payload was served from."""

    items: list[TransformedOdds]
    source: PayloadSource

    @property
    def is_stale(self) -> bool:
        return self.source is PayloadSource.STALE_CACHE


class MatchesResponse(BaseModel):
    """Shaped matches plus where the underlying raw payload was served from."""

    items: list[MatchWithBookmakers]
    source: PayloadSource

    @property
    def is_stale(self) -> bool:
        return self.source is PayloadSource.STALE_CACHE


__all__ = [
    "PayloadSource",
    "Sport",
    "Outcome",
    "Market",
    "Bookmaker",
    "OddsEvent",
    "Teams",
    "OddsTriple",
    "TransformedOdds",
    "BookmakerOdds",
    "MatchWithBookmakers",
    "OddsResponse",
    "MatchesResponse",
]
