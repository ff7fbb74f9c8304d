"""Upstream odds data providers."""

from oddsfeed.adapters.base import (
    OddsProvider,
    UpstreamAuthError,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamParseError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    handle_http_status,
)
from oddsfeed.adapters.odds_api import TheOddsAPIClient

__all__ = [
    "OddsProvider",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UpstreamParseError",
    "UpstreamAuthError",
    "UpstreamRateLimitError",
    "UpstreamHTTPError",
    "TheOddsAPIClient",
    "handle_http_status",
]
