"""The Odds API (v4) client for sports lists and bookmaker odds."""

import logging
from typing import Any

import httpx

from oddsfeed.adapters.base import (
    UpstreamParseError,
    UpstreamTimeoutError,
    handle_http_status,
)
from oddsfeed.config import ConfigurationError, Settings, get_settings

logger = logging.getLogger(__name__)


class TheOddsAPIClient:
    """Client for The Odds API.

    Requires an API key (ODDSFEED_ODDS_API_KEY). A missing key raises
    ConfigurationError before any request is made. Responses are returned
    as raw decoded JSON so they can be cached unchanged.

    Attributes:
        source_name: "the_odds_api"
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the client.

        Args:
            settings: Settings to read credentials from; defaults to get_settings()
        """
        self._settings = settings
        self._client: httpx.AsyncClient | None = None

    @property
    def source_name(self) -> str:
        """Unique identifier for this provider."""
        return "the_odds_api"

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def base_url(self) -> str:
        return self.settings.odds_api_base_url.rstrip("/")

    def has_credentials(self) -> bool:
        return self.settings.has_odds_api_credentials()

    def _api_key(self) -> str:
        """Return the API key or fail before any I/O happens.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        if not self.has_credentials():
            raise ConfigurationError(self.settings.get_credential_error_message(self.source_name))
        return self.settings.odds_api_key.get_secret_value()  # type: ignore[union-attr]

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout),
                headers={"User-Agent": "oddsfeed/1.0"},
            )
        return self._client

    async def _get_json_list(self, path: str, params: dict[str, str]) -> list[dict[str, Any]]:
        """GET a provider endpoint whose body is a JSON array.

        Raises:
            ConfigurationError: If no API key is configured.
            UpstreamTimeoutError: On timeouts and connection failures.
            UpstreamAuthError / UpstreamRateLimitError / UpstreamHTTPError:
                On non-success status codes.
            UpstreamParseError: If the body is not a JSON array.
        """
        api_key = self._api_key()
        client = await self._get_client()
        url = f"{self.base_url}{path}"
        timeout = self.settings.request_timeout

        try:
            response = await client.get(url, params={"apiKey": api_key, **params})
        except httpx.TimeoutException as e:
            logger.warning(f"The Odds API timeout: {e}")
            raise UpstreamTimeoutError(self.source_name, timeout) from e
        except httpx.RequestError as e:
            logger.error(f"The Odds API request error: {e}")
            raise UpstreamTimeoutError(self.source_name, timeout) from e

        exc = handle_http_status(
            self.source_name, response.status_code, self._error_message(response)
        )
        if exc:
            logger.error(f"The Odds API HTTP error {response.status_code} for {path}")
            raise exc

        remaining = response.headers.get("x-requests-remaining")
        if remaining is not None:
            logger.debug(f"The Odds API requests remaining: {remaining}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamParseError(self.source_name, "Invalid JSON response") from e

        if not isinstance(data, list):
            raise UpstreamParseError(
                self.source_name, f"Expected a JSON array, got {type(data).__name__}"
            )
        return data

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        """Extract the provider's error message from a failed response."""
        if response.is_success:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return None

    async def fetch_sports(self) -> list[dict[str, Any]]:
        """Fetch every sport the provider covers.

        Returns:
            Raw list of sport objects.
        """
        logger.info("Fetching sports list from The Odds API")
        return await self._get_json_list("/sports", {})

    async def fetch_odds(
        self, sport: str, region: str = "us", market: str = "h2h"
    ) -> list[dict[str, Any]]:
        """Fetch odds for upcoming events of a sport.

        Args:
            sport: Provider sport key (e.g., "soccer_epl")
            region: Bookmaker region (e.g., "us", "uk", "eu")
            market: Market key (e.g., "h2h")

        Returns:
            Raw list of event objects with nested bookmakers.
        """
        logger.info(f"Fetching odds from The Odds API: {sport} ({region}, {market})")
        return await self._get_json_list(
            f"/sports/{sport}/odds", {"regions": region, "markets": market}
        )

    async def health_check(self) -> bool:
        """Check if The Odds API is reachable with the configured key.

        Returns:
            True if the sports endpoint responds, False otherwise.
        """
        try:
            await self.fetch_sports()
            return True
        except Exception as e:
            logger.warning(f"The Odds API health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("The Odds API client closed")


__all__ = ["TheOddsAPIClient"]
