"""Request handling logic shared by every caller-facing surface."""

import logging

from oddsfeed.adapters.base import OddsProvider
from oddsfeed.cache import cache_key
from oddsfeed.config import ConfigurationError, Settings, get_settings
from oddsfeed.fetcher import CachedFetcher, FetchOutcome
from oddsfeed.models import MatchesResponse, OddsResponse, Sport
from oddsfeed.transform import (
    filter_soccer_leagues,
    transform_matches_with_bookmakers,
    transform_odds,
)

logger = logging.getLogger(__name__)


class InvalidRequestError(ValueError):
    """Raised when a request is missing a required parameter."""


class OddsService:
    """Validates requests, resolves raw payloads and shapes them.

    Raw provider responses are cached, never shaped ones, so the odds and
    matches views of the same sport/region/market share one cache entry.
    """

    def __init__(
        self,
        provider: OddsProvider,
        fetcher: CachedFetcher,
        settings: Settings | None = None,
    ) -> None:
        self._provider = provider
        self._fetcher = fetcher
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _require_credentials(self) -> None:
        """Fail before touching cache or upstream when the provider is unconfigured."""
        if not self._provider.has_credentials():
            raise ConfigurationError(
                self.settings.get_credential_error_message(self._provider.source_name)
            )

    async def _resolve_odds(
        self, sport: str, region: str | None, market: str | None
    ) -> FetchOutcome:
        sport = (sport or "").strip()
        if not sport:
            raise InvalidRequestError("sport parameter is required")
        self._require_credentials()

        region = region or self.settings.default_region
        market = market or self.settings.default_market
        key = cache_key(sport, region, market)

        outcome = await self._fetcher.fetch(
            key, lambda: self._provider.fetch_odds(sport, region, market)
        )
        logger.debug(f"Resolved {key} from {outcome.source.value}")
        return outcome

    async def get_odds(
        self,
        sport: str,
        region: str | None = None,
        market: str | None = None,
        bookmaker: str | None = None,
    ) -> OddsResponse:
        """Odds for each event of a sport, priced by one bookmaker.

        Args:
            sport: Provider sport key (required)
            region: Bookmaker region; defaults to settings.default_region
            market: Market key; defaults to settings.default_market
            bookmaker: Preferred bookmaker key or title

        Raises:
            InvalidRequestError: If sport is empty.
            ConfigurationError: If no API key is configured.
            UpstreamError: If the provider fails and nothing is cached.
        """
        outcome = await self._resolve_odds(sport, region, market)
        return OddsResponse(items=transform_odds(outcome.data, bookmaker), source=outcome.source)

    async def get_matches(
        self,
        sport: str,
        region: str | None = None,
        market: str | None = None,
    ) -> MatchesResponse:
        """Events of a sport with the odds of every bookmaker."""
        outcome = await self._resolve_odds(sport, region, market)
        return MatchesResponse(
            items=transform_matches_with_bookmakers(outcome.data), source=outcome.source
        )

    async def get_sports(self) -> list[Sport]:
        """Soccer leagues currently offered by the provider.

        The sports list is fetched live on every call.
        """
        self._require_credentials()
        raw_sports = await self._provider.fetch_sports()
        return filter_soccer_leagues(raw_sports)


__all__ = ["InvalidRequestError", "OddsService"]
