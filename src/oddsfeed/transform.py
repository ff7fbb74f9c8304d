"""Reshape raw provider payloads into display shapes.

Every function here is pure. The same cached raw payload is fed to
different transforms depending on the caller.
"""

from typing import Any

from oddsfeed.models import (
    Bookmaker,
    BookmakerOdds,
    MatchWithBookmakers,
    OddsEvent,
    OddsTriple,
    Sport,
    Teams,
    TransformedOdds,
)

H2H_MARKET = "h2h"
DRAW_NAMES = ("Draw", "draw")


def _h2h_odds(bookmaker: Bookmaker | None, event: OddsEvent) -> OddsTriple:
    """Map a bookmaker's head-to-head outcomes onto home/draw/away."""
    if bookmaker is None:
        return OddsTriple()

    market = next((m for m in bookmaker.markets if m.key == H2H_MARKET), None)
    outcomes = market.outcomes if market is not None else []

    def price(names: tuple[str, ...]) -> float | None:
        outcome = next((o for o in outcomes if o.name in names), None)
        # Zero is not a valid decimal price
        return outcome.price if outcome is not None and outcome.price else None

    return OddsTriple(
        home=price((event.home_team,)),
        draw=price(DRAW_NAMES),
        away=price((event.away_team,)),
    )


def _select_bookmaker(event: OddsEvent, preferred: str | None) -> Bookmaker | None:
    """Pick the preferred bookmaker by key or title, else the first listed."""
    if preferred:
        preferred_lower = preferred.lower()
        for bookmaker in event.bookmakers:
            if bookmaker.key.lower() == preferred_lower or bookmaker.title.lower() == preferred_lower:
                return bookmaker
    return event.bookmakers[0] if event.bookmakers else None


def transform_odds(
    raw_data: list[dict[str, Any]], preferred_bookmaker: str | None = None
) -> list[TransformedOdds]:
    """Shape each event with the odds of a single bookmaker.

    Args:
        raw_data: Raw event list from the odds endpoint
        preferred_bookmaker: Bookmaker key or title to prefer (case-insensitive)

    Returns:
        One TransformedOdds per event, in input order
    """
    results = []
    for raw in raw_data:
        event = OddsEvent.model_validate(raw)
        bookmaker = _select_bookmaker(event, preferred_bookmaker)
        results.append(
            TransformedOdds(
                id=event.id,
                teams=Teams(home=event.home_team, away=event.away_team),
                start_at=event.commence_time,
                odds=_h2h_odds(bookmaker, event),
                bookmaker=bookmaker.title if bookmaker and bookmaker.title else "Unknown",
            )
        )
    return results


def transform_matches_with_bookmakers(raw_data: list[dict[str, Any]]) -> list[MatchWithBookmakers]:
    """Shape each event with the odds of every bookmaker that prices it."""
    results = []
    for raw in raw_data:
        event = OddsEvent.model_validate(raw)
        results.append(
            MatchWithBookmakers(
                id=event.id,
                teams=Teams(home=event.home_team, away=event.away_team),
                start_at=event.commence_time,
                bookmakers=[
                    BookmakerOdds(key=bm.key, title=bm.title, odds=_h2h_odds(bm, event))
                    for bm in event.bookmakers
                ],
            )
        )
    return results


def filter_soccer_leagues(raw_sports: list[dict[str, Any]]) -> list[Sport]:
    """Keep only sports whose group mentions soccer."""
    sports = [Sport.model_validate(raw) for raw in raw_sports]
    return [sport for sport in sports if "soccer" in sport.group.lower()]


__all__ = [
    "transform_odds",
    "transform_matches_with_bookmakers",
    "filter_soccer_leagues",
]
