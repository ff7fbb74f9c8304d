"""Tests for response shaping."""

from typing import Any

from oddsfeed.models import OddsTriple
from oddsfeed.transform import (
    filter_soccer_leagues,
    transform_matches_with_bookmakers,
    transform_odds,
)


class TestTransformOdds:
    """Tests for single-bookmaker shaping."""

    def test_defaults_to_first_bookmaker(self, odds_payload: list[dict[str, Any]]) -> None:
        result = transform_odds(odds_payload)

        assert len(result) == 2
        first = result[0]
        assert first.id == "e912304de2b2ce35b473ce2ecd3d1502"
        assert first.teams.home == "Arsenal"
        assert first.teams.away == "Chelsea"
        assert first.start_at == "2026-10-24T14:00:00Z"
        assert first.bookmaker == "DraftKings"
        assert first.odds == OddsTriple(home=1.95, draw=3.6, away=3.8)

    def test_preferred_bookmaker_by_key(self, odds_payload: list[dict[str, Any]]) -> None:
        result = transform_odds(odds_payload, "fanduel")
        assert result[0].bookmaker == "FanDuel"
        assert result[0].odds == OddsTriple(home=2.0, draw=3.5, away=3.7)

    def test_preferred_bookmaker_by_title_case_insensitive(
        self, odds_payload: list[dict[str, Any]]
    ) -> None:
        result = transform_odds(odds_payload, "FANDUEL")
        assert result[0].bookmaker == "FanDuel"

    def test_unknown_preference_falls_back_to_first(
        self, odds_payload: list[dict[str, Any]]
    ) -> None:
        result = transform_odds(odds_payload, "betmgm")
        assert result[0].bookmaker == "DraftKings"

    def test_missing_draw_is_none(self, odds_payload: list[dict[str, Any]]) -> None:
        second = transform_odds(odds_payload)[1]
        assert second.odds == OddsTriple(home=1.4, draw=None, away=7.5)

    def test_event_without_bookmakers(self) -> None:
        raw = [{
            "id": "x",
            "commence_time": "2026-10-24T14:00:00Z",
            "home_team": "A",
            "away_team": "B",
            "bookmakers": [],
        }]
        result = transform_odds(raw)
        assert result[0].bookmaker == "Unknown"
        assert result[0].odds == OddsTriple()

    def test_non_h2h_markets_ignored(self) -> None:
        raw = [{
            "id": "x",
            "home_team": "A",
            "away_team": "B",
            "bookmakers": [{
                "key": "bk",
                "title": "Book",
                "markets": [{
                    "key": "spreads",
                    "outcomes": [{"name": "A", "price": 1.9, "point": -1.5}],
                }],
            }],
        }]
        result = transform_odds(raw)
        assert result[0].odds == OddsTriple()
        assert result[0].bookmaker == "Book"

    def test_lowercase_draw_recognized(self) -> None:
        raw = [{
            "id": "x",
            "home_team": "A",
            "away_team": "B",
            "bookmakers": [{
                "key": "bk",
                "title": "Book",
                "markets": [{
                    "key": "h2h",
                    "outcomes": [{"name": "draw", "price": 3.1}],
                }],
            }],
        }]
        assert transform_odds(raw)[0].odds.draw == 3.1


class TestTransformMatchesWithBookmakers:
    """Tests for all-bookmaker shaping."""

    def test_lists_every_bookmaker(self, odds_payload: list[dict[str, Any]]) -> None:
        result = transform_matches_with_bookmakers(odds_payload)

        assert [bm.key for bm in result[0].bookmakers] == ["draftkings", "fanduel"]
        assert result[0].bookmakers[1].odds == OddsTriple(home=2.0, draw=3.5, away=3.7)
        assert [bm.title for bm in result[1].bookmakers] == ["FanDuel"]

    def test_same_payload_serves_both_shapes(self, odds_payload: list[dict[str, Any]]) -> None:
        """Shaping never mutates the raw payload."""
        snapshot = [dict(event) for event in odds_payload]
        transform_odds(odds_payload, "fanduel")
        transform_matches_with_bookmakers(odds_payload)
        assert odds_payload == snapshot


class TestFilterSoccerLeagues:
    def test_keeps_only_soccer(self, sports_payload: list[dict[str, Any]]) -> None:
        leagues = filter_soccer_leagues(sports_payload)
        assert [league.key for league in leagues] == ["soccer_epl", "soccer_spain_la_liga"]

    def test_empty_list(self) -> None:
        assert filter_soccer_leagues([]) == []
