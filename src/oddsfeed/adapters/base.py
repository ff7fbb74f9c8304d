"""Base protocol and error hierarchy for upstream odds providers.

This module defines the OddsProvider protocol that upstream clients
implement, along with a standardized error hierarchy. The fetcher treats
any of these errors as "upstream failed" and falls back to a cached entry
when one exists.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class OddsProvider(Protocol):
    """Protocol for upstream odds data providers.

    Error Handling Contract:
    - ConfigurationError: Credentials missing (raised before any I/O)
    - UpstreamTimeoutError: Network timeouts or connection failures
    - UpstreamAuthError: Credentials rejected
    - UpstreamRateLimitError: Request quota exhausted
    - UpstreamHTTPError: Any other non-success status
    - UpstreamParseError: Malformed response body
    """

    @property
    def source_name(self) -> str:
        """Unique identifier for this provider (e.g., 'the_odds_api')."""
        ...

    def has_credentials(self) -> bool:
        """Check whether the provider is configured to make requests."""
        ...

    async def fetch_sports(self) -> list[dict[str, Any]]:
        """Fetch the raw list of sports offered by the provider."""
        ...

    async def fetch_odds(
        self, sport: str, region: str = "us", market: str = "h2h"
    ) -> list[dict[str, Any]]:
        """Fetch raw odds for every upcoming event of a sport.

        Raises:
            UpstreamError: If the request fails for any reason.
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is reachable and responding."""
        ...

    async def close(self) -> None:
        """Release the HTTP client."""
        ...


class UpstreamError(Exception):
    """Base exception for all upstream provider errors.

    Attributes:
        source_name: The provider that raised this error.
        message: Human-readable error description.
    """

    def __init__(self, source_name: str, message: str) -> None:
        self.source_name = source_name
        self.message = message
        super().__init__(f"[{source_name}] {message}")


class UpstreamTimeoutError(UpstreamError):
    """Raised when the provider is unreachable or too slow."""

    def __init__(self, source_name: str, timeout_seconds: float | None = None) -> None:
        msg = "Request timed out"
        if timeout_seconds is not None:
            msg = f"Request timed out after {timeout_seconds}s"
        super().__init__(source_name, msg)
        self.timeout_seconds = timeout_seconds


class UpstreamParseError(UpstreamError):
    """Raised when a response body cannot be parsed.

    This typically indicates an API schema change or corruption.
    """

    def __init__(self, source_name: str, details: str | None = None) -> None:
        msg = "Failed to parse API response"
        if details:
            msg = f"Failed to parse API response: {details}"
        super().__init__(source_name, msg)
        self.details = details


class UpstreamAuthError(UpstreamError):
    """Raised when the provider rejects the API key.

    Callers should NOT retry without fixing credentials.
    """

    def __init__(self, source_name: str, details: str | None = None) -> None:
        msg = "Authentication failed"
        if details:
            msg = f"Authentication failed: {details}"
        super().__init__(source_name, msg)
        self.details = details


class UpstreamRateLimitError(UpstreamError):
    """Raised when the provider's request quota is exhausted."""

    def __init__(self, source_name: str) -> None:
        super().__init__(source_name, "Rate limit exceeded")


class UpstreamHTTPError(UpstreamError):
    """Raised for any other non-success HTTP status."""

    def __init__(self, source_name: str, status_code: int, details: str | None = None) -> None:
        msg = f"Unexpected HTTP status {status_code}"
        if details:
            msg = f"{msg}: {details}"
        super().__init__(source_name, msg)
        self.status_code = status_code


def handle_http_status(
    source_name: str, status_code: int, details: str | None = None
) -> UpstreamError | None:
    """Map an HTTP status code to the matching upstream error.

    Args:
        source_name: Provider name for the error
        status_code: HTTP status of the response
        details: Optional context (e.g., provider error message)

    Returns:
        None for 2xx responses, otherwise the exception to raise
    """
    if 200 <= status_code < 300:
        return None
    if status_code in (401, 403):
        return UpstreamAuthError(source_name, details or f"HTTP {status_code}")
    if status_code == 429:
        return UpstreamRateLimitError(source_name)
    return UpstreamHTTPError(source_name, status_code, details)


__all__ = [
    "OddsProvider",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UpstreamParseError",
    "UpstreamAuthError",
    "UpstreamRateLimitError",
    "UpstreamHTTPError",
    "handle_http_status",
]
