"""Games fetcher: one query per run date, tolerant of sparse rows.

Unlike standings, a game row that cannot be reconciled is dropped with a
warning; an empty or absent games block simply means no games.
"""

import re
from datetime import date, datetime, timedelta
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from npb_sync.exceptions import ConfigurationError
from npb_sync.models.enums import GameStatus
from npb_sync.models.game import GameInput, ParsedGame
from npb_sync.models.team import Team
from npb_sync.normalization.team_resolver import TEAM_ALIASES, TeamResolver
from npb_sync.parsers.games_parser import parse_games
from npb_sync.scrapers.serpapi_client import SerpApiClient

DATE_FORMATS_WITH_YEAR = ("%b %d, %Y", "%B %d, %Y", "%Y-%m-%d", "%Y/%m/%d")
DATE_FORMATS_WITHOUT_YEAR = ("%b %d", "%B %d")

# Checked in order; first keyword contained in the status text wins
STATUS_KEYWORDS: Tuple[Tuple[GameStatus, Tuple[str, ...]], ...] = (
    (GameStatus.COMPLETED, ("completed", "final")),
    (GameStatus.POSTPONED, ("postponed", "delayed", "rain delay", "suspended", "cancelled", "canceled")),
    (GameStatus.IN_PROGRESS, ("in progress", "live", "playing")),
    (GameStatus.SCHEDULED, ("scheduled", "upcoming")),
)


def build_games_query(game_date: date) -> str:
    return f"NPB games {game_date.isoformat()}"


def normalize_status(status_text: Optional[str]) -> GameStatus:
    """Maps SerpApi status text to a ``GameStatus``; unrecognised text is UNKNOWN."""
    if not status_text or not status_text.strip():
        return GameStatus.SCHEDULED
    normalized = status_text.strip().lower()
    for status, keywords in STATUS_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return status
    # Inning markers such as "Top 5th" or "Bot 9"
    if re.match(r"^(top|bot|bottom|mid|end)\b", normalized):
        return GameStatus.IN_PROGRESS
    return GameStatus.UNKNOWN


def parse_game_date(text: Optional[str], run_date: date) -> date:
    """Parses SerpApi date text, falling back to the run date.

    Dates without a year ("Mar 27") take the run date's year.
    """
    if not text or not text.strip():
        return run_date
    cleaned = re.sub(r"^(mon|tue|wed|thu|fri|sat|sun)[a-z]*,?\s+", "", text.strip(), flags=re.I)
    lowered = cleaned.lower()
    if lowered == "today":
        return run_date
    if lowered == "tomorrow":
        return run_date + timedelta(days=1)
    if lowered == "yesterday":
        return run_date - timedelta(days=1)

    for fmt in DATE_FORMATS_WITH_YEAR:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    for fmt in DATE_FORMATS_WITHOUT_YEAR:
        try:
            # Parse with the year attached so Feb 29 is valid in leap years
            return datetime.strptime(f"{cleaned} {run_date.year}", f"{fmt} %Y").date()
        except ValueError:
            continue

    logger.warning(f'Could not parse game date "{text}"; using run date {run_date.isoformat()}')
    return run_date


def reconcile_games(
    parsed_games: Sequence[ParsedGame],
    run_date: date,
    teams: Sequence[Team],
    aliases: Mapping[str, str] = TEAM_ALIASES,
) -> List[GameInput]:
    """Maps parsed games to canonical team ids, skipping rows that cannot be mapped.

    Two rows with the same (date, home, away) key collapse into the later one.
    """
    resolver = TeamResolver(teams, aliases)
    games: Dict[Tuple[date, str, str], GameInput] = {}

    for parsed in parsed_games:
        home = resolver.match(parsed.home_team_name)
        away = resolver.match(parsed.away_team_name)
        if home is None or away is None:
            logger.warning(
                f'Skipping game: could not map teams "{parsed.home_team_name}" '
                f'or "{parsed.away_team_name}"'
            )
            continue
        if home.id == away.id:
            logger.warning(
                f'Skipping game: "{parsed.away_team_name}" @ "{parsed.home_team_name}" '
                f"resolves to the same team ({home.id})"
            )
            continue

        game = GameInput(
            date=parse_game_date(parsed.game_date, run_date),
            home_team_id=home.id,
            away_team_id=away.id,
            home_score=parsed.home_score,
            away_score=parsed.away_score,
            status=normalize_status(parsed.status_text),
            game_time=parsed.game_time,
            venue=parsed.venue_name,
        )
        if game.natural_key in games:
            logger.warning(
                f"Duplicate game {game.description} in one response (doubleheader?); keeping the later row"
            )
        games[game.natural_key] = game

    return list(games.values())


async def fetch_games(
    client: SerpApiClient,
    run_date: date,
    teams: Sequence[Team],
    aliases: Mapping[str, str] = TEAM_ALIASES,
) -> List[GameInput]:
    """Fetch and reconcile the games SerpApi lists for ``run_date``.

    Transport and upstream API errors still propagate; only missing data and
    unmappable rows are tolerated.
    """
    if not teams:
        raise ConfigurationError("No teams provided. Teams must be seeded before mapping games.")

    query = build_games_query(run_date)
    response = await client.search(query)
    parsed = parse_games(response, query)
    games = reconcile_games(parsed, run_date, teams, aliases)
    logger.info(f"[games] Mapped {len(games)} of {len(parsed)} parsed games for {run_date.isoformat()}")
    return games
