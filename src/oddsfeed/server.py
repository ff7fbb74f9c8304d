"""FastMCP server exposing oddsfeed tools."""

import asyncio
import atexit
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastmcp import FastMCP

from oddsfeed.adapters import (
    TheOddsAPIClient,
    UpstreamAuthError,
    UpstreamError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)
from oddsfeed.cache import CacheStore, FreshnessCache, SQLiteStore
from oddsfeed.config import ConfigurationError, configure_logging, get_settings
from oddsfeed.fetcher import CachedFetcher
from oddsfeed.service import InvalidRequestError, OddsService

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("oddsfeed")

# Process-wide instances (initialized on first use)
_store: CacheStore | None = None
_provider: TheOddsAPIClient | None = None
_service: OddsService | None = None


def _get_store() -> CacheStore:
    global _store
    if _store is None:
        _store = SQLiteStore.from_settings(get_settings())
    return _store


def _get_provider() -> TheOddsAPIClient:
    global _provider
    if _provider is None:
        _provider = TheOddsAPIClient(get_settings())
    return _provider


def _get_service() -> OddsService:
    global _service
    if _service is None:
        fetcher = CachedFetcher(FreshnessCache(_get_store()))
        _service = OddsService(_get_provider(), fetcher, get_settings())
    return _service


async def _cleanup_resources() -> None:
    """Close the HTTP client and the cache store connection."""
    global _store, _provider, _service

    _service = None

    if _provider is not None:
        await _provider.close()
        _provider = None

    if _store is not None:
        await _store.close()
        _store = None

    logger.debug("All resources cleaned up")


def _atexit_cleanup() -> None:
    """Synchronous atexit handler that runs async cleanup."""
    try:
        loop = asyncio.get_event_loop()
        if loop.is_running():
            loop.create_task(_cleanup_resources())
        else:
            asyncio.run(_cleanup_resources())
    except Exception as e:
        # Don't let cleanup errors prevent shutdown
        logger.debug(f"Cleanup error (non-fatal): {e}")


atexit.register(_atexit_cleanup)


def _to_json(payload: Any) -> str:
    return json.dumps(payload, indent=2)


def _error(error: str, message: str) -> str:
    return _to_json({"error": error, "message": message})


def _error_for(exc: Exception, what: str) -> str:
    """Render a tool failure the way callers expect it."""
    if isinstance(exc, InvalidRequestError):
        return _error("Invalid request", str(exc))
    if isinstance(exc, ConfigurationError):
        return _error("Configuration error", str(exc))
    if isinstance(exc, UpstreamAuthError):
        return _error(f"Failed to fetch {what}", "The odds provider rejected the API key.")
    if isinstance(exc, UpstreamRateLimitError):
        return _error(f"Failed to fetch {what}", "The odds provider quota is exhausted.")
    if isinstance(exc, UpstreamTimeoutError):
        return _error(f"Failed to fetch {what}", "The odds provider did not respond in time.")
    if isinstance(exc, UpstreamError):
        return _error(f"Failed to fetch {what}", exc.message)
    return _error(f"Failed to fetch {what}", "Unknown error")


@mcp.tool()
async def sports() -> str:
    """List the soccer leagues the odds provider currently covers.

    Returns:
        JSON array of leagues with key, group, title, description, active
        and has_outrights. Use a league's key as the sport argument of the
        odds and matches tools.
    """
    try:
        leagues = await _get_service().get_sports()
        return _to_json([league.model_dump() for league in leagues])
    except (InvalidRequestError, ConfigurationError, UpstreamError) as e:
        logger.warning(f"Error fetching sports: {e}")
        return _error_for(e, "sports")
    except Exception as e:
        logger.exception(f"Unexpected error fetching sports: {e}")
        return _error_for(e, "sports")


@mcp.tool()
async def odds(
    sport: str,
    region: str | None = None,
    market: str | None = None,
    bookmaker: str | None = None,
) -> str:
    """Head-to-head odds for upcoming events of a league from one bookmaker.

    Args:
        sport: League key from the sports tool (e.g., 'soccer_epl')
        region: Bookmaker region ('us', 'uk', 'eu', 'au'). Defaults to 'us'.
        market: Market key. Defaults to 'h2h'.
        bookmaker: Preferred bookmaker key or title (e.g., 'draftkings').
            Falls back to the first listed bookmaker when not offered.

    Returns:
        JSON array of events with teams, start_at, odds (home/draw/away)
        and the bookmaker used.
    """
    try:
        response = await _get_service().get_odds(sport, region, market, bookmaker)
        if response.is_stale:
            logger.info(f"Served stale odds for {sport}")
        return _to_json([item.model_dump() for item in response.items])
    except (InvalidRequestError, ConfigurationError, UpstreamError) as e:
        logger.warning(f"Error in odds tool for {sport}: {e}")
        return _error_for(e, "odds")
    except Exception as e:
        logger.exception(f"Unexpected error in odds tool for {sport}: {e}")
        return _error_for(e, "odds")


@mcp.tool()
async def matches(
    sport: str,
    region: str | None = None,
    market: str | None = None,
) -> str:
    """Upcoming events of a league with the odds of every bookmaker.

    Args:
        sport: League key from the sports tool (e.g., 'soccer_epl')
        region: Bookmaker region ('us', 'uk', 'eu', 'au'). Defaults to 'us'.
        market: Market key. Defaults to 'h2h'.

    Returns:
        JSON array of events, each with a bookmakers list of key, title and
        home/draw/away odds.
    """
    try:
        response = await _get_service().get_matches(sport, region, market)
        if response.is_stale:
            logger.info(f"Served stale matches for {sport}")
        return _to_json([item.model_dump() for item in response.items])
    except (InvalidRequestError, ConfigurationError, UpstreamError) as e:
        logger.warning(f"Error in matches tool for {sport}: {e}")
        return _error_for(e, "matches")
    except Exception as e:
        logger.exception(f"Unexpected error in matches tool for {sport}: {e}")
        return _error_for(e, "matches")


def _config_status_allowed(key: str | None) -> bool:
    """Outside production anyone may ask; in production only the debug key holder."""
    settings = get_settings()
    if settings.environment.lower() != "production":
        return True
    if settings.debug_key is None or not key:
        return False
    expected = settings.debug_key.get_secret_value()
    return bool(expected) and hmac.compare_digest(key.encode(), expected.encode())


@mcp.tool()
async def config_status(key: str | None = None) -> str:
    """Report which settings are configured, with secrets masked.

    Args:
        key: Debug key. Required when the server runs with
            environment set to 'production'.

    Returns:
        JSON object with a status, a timestamp and the configuration state,
        or a Forbidden error when the debug key is missing or wrong.
    """
    if not _config_status_allowed(key):
        logger.warning("Refused config_status request without a valid debug key")
        return _to_json({"error": "Forbidden"})

    settings = get_settings()
    return _to_json({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": {
            "odds_api_key": "Set" if settings.has_odds_api_credentials() else "NOT SET",
            "odds_api_base_url": settings.odds_api_base_url,
            "cache_db_path": settings.cache_db_path or "NOT SET",
            "default_region": settings.default_region,
            "default_market": settings.default_market,
            "log_level": settings.log_level,
            "environment": settings.environment,
        },
    })


def main() -> None:
    """Run the oddsfeed MCP server."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting oddsfeed MCP server")
    mcp.run()


if __name__ == "__main__":
    main()
