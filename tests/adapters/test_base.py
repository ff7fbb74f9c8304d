"""Tests for provider protocol and error hierarchy."""

from typing import Any

from oddsfeed.adapters import (
    OddsProvider,
    UpstreamAuthError,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamParseError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    handle_http_status,
)


class MockProvider:
    """A minimal provider that conforms to OddsProvider protocol."""

    @property
    def source_name(self) -> str:
        return "mock"

    def has_credentials(self) -> bool:
        return True

    async def fetch_sports(self) -> list[dict[str, Any]]:
        return []

    async def fetch_odds(
        self, sport: str, region: str = "us", market: str = "h2h"
    ) -> list[dict[str, Any]]:
        return []

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class IncompleteProvider:
    """Missing fetch_odds and friends."""

    @property
    def source_name(self) -> str:
        return "incomplete"


class TestOddsProviderProtocol:
    def test_isinstance_works_with_conforming_class(self) -> None:
        assert isinstance(MockProvider(), OddsProvider)

    def test_isinstance_rejects_incomplete_class(self) -> None:
        assert not isinstance(IncompleteProvider(), OddsProvider)


class TestErrorHierarchy:
    def test_all_errors_inherit_from_upstream_error(self) -> None:
        for error in (
            UpstreamTimeoutError("p"),
            UpstreamParseError("p"),
            UpstreamAuthError("p"),
            UpstreamRateLimitError("p"),
            UpstreamHTTPError("p", 500),
        ):
            assert isinstance(error, UpstreamError)
            assert error.source_name == "p"

    def test_message_includes_source_name(self) -> None:
        error = UpstreamError("the_odds_api", "boom")
        assert str(error) == "[the_odds_api] boom"
        assert error.message == "boom"

    def test_timeout_message_includes_duration(self) -> None:
        assert "15.0s" in str(UpstreamTimeoutError("p", 15.0))
        assert UpstreamTimeoutError("p").timeout_seconds is None

    def test_parse_error_details(self) -> None:
        error = UpstreamParseError("p", "Invalid JSON response")
        assert error.details == "Invalid JSON response"
        assert "Invalid JSON response" in str(error)


class TestHandleHttpStatus:
    def test_success_returns_none(self) -> None:
        assert handle_http_status("p", 200) is None
        assert handle_http_status("p", 204) is None

    def test_auth_statuses(self) -> None:
        assert isinstance(handle_http_status("p", 401), UpstreamAuthError)
        assert isinstance(handle_http_status("p", 403), UpstreamAuthError)

    def test_rate_limit(self) -> None:
        assert isinstance(handle_http_status("p", 429), UpstreamRateLimitError)

    def test_other_statuses(self) -> None:
        error = handle_http_status("p", 422, "Unknown sport")
        assert isinstance(error, UpstreamHTTPError)
        assert error.status_code == 422
        assert "Unknown sport" in str(error)
