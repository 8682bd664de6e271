"""Parser for extracting games from SerpApi responses.

Defensive by design: game rows are sparse and their team fields come in
several shapes, so missing data yields fewer games rather than an error.
"""

import json
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from loguru import logger

from npb_sync.models.game import ParsedGame


class TeamPair(NamedTuple):
    away: str
    home: str
    away_score: Optional[int] = None
    home_score: Optional[int] = None


def _name(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _score(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip(), 10)
    return None


def teams_from_pair_array(row: Dict[str, Any]) -> Optional[TeamPair]:
    """``teams: [{name, score?}, {name, score?}]``; first entry is the away side."""
    teams = row.get("teams")
    if not isinstance(teams, list) or len(teams) < 2:
        return None
    away, home = teams[0], teams[1]
    if not isinstance(away, dict) or not isinstance(home, dict):
        return None
    away_name, home_name = _name(away.get("name")), _name(home.get("name"))
    if not away_name or not home_name:
        return None
    return TeamPair(
        away=away_name,
        home=home_name,
        away_score=_score(away.get("score")),
        home_score=_score(home.get("score")),
    )


def teams_from_named_objects(row: Dict[str, Any]) -> Optional[TeamPair]:
    """``home_team: {name}`` / ``away_team: {name}``."""
    home, away = row.get("home_team"), row.get("away_team")
    if not isinstance(home, dict) or not isinstance(away, dict):
        return None
    home_name, away_name = _name(home.get("name")), _name(away.get("name"))
    if not home_name or not away_name:
        return None
    return TeamPair(
        away=away_name,
        home=home_name,
        away_score=_score(away.get("score")),
        home_score=_score(home.get("score")),
    )


def teams_from_flat_fields(row: Dict[str, Any]) -> Optional[TeamPair]:
    """``home_team_name``/``away_team_name`` or ``homeTeam``/``awayTeam`` strings."""
    home_name = _name(row.get("home_team_name")) or _name(row.get("homeTeam"))
    away_name = _name(row.get("away_team_name")) or _name(row.get("awayTeam"))
    if not home_name or not away_name:
        return None
    return TeamPair(away=away_name, home=home_name)


TeamExtractor = Callable[[Dict[str, Any]], Optional[TeamPair]]

# Tried in order; the first strategy that yields both names wins
TEAM_EXTRACTORS: Tuple[TeamExtractor, ...] = (
    teams_from_pair_array,
    teams_from_named_objects,
    teams_from_flat_fields,
)


def extract_teams(row: Dict[str, Any]) -> Optional[TeamPair]:
    for extractor in TEAM_EXTRACTORS:
        pair = extractor(row)
        if pair is not None:
            return pair
    return None


def _date_time_parts(row: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    date_time = _name(row.get("date_time"))
    if not date_time:
        return None, None
    date_part, _, time_part = date_time.partition(" ")
    return date_part or None, time_part.strip() or None


def parse_games(response: Dict[str, Any], query: str) -> List[ParsedGame]:
    """Parse games from a SerpApi response.

    Returns an empty list when the response holds no games. Rows whose team
    names cannot be found in any known shape are skipped with a warning.
    """
    sports_results = response.get("sports_results")
    if not isinstance(sports_results, dict):
        logger.info(f'[Games Parser] No sports_results for "{query}"')
        return []

    rows = sports_results.get("games")
    if not isinstance(rows, list) or not rows:
        logger.info(f'[Games Parser] No games array for "{query}"')
        return []

    games: List[ParsedGame] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(
                f"[Games Parser] Skipping game at index {index}: not an object ({type(row).__name__})"
            )
            continue

        teams = extract_teams(row)
        if teams is None:
            logger.warning(
                f"[Games Parser] Skipping game at index {index}: missing team names. "
                f'Query: "{query}". Row: {json.dumps(row, ensure_ascii=False, default=str)}'
            )
            continue

        dt_date, dt_time = _date_time_parts(row)
        games.append(
            ParsedGame(
                home_team_name=teams.home,
                away_team_name=teams.away,
                game_date=_name(row.get("date")) or _name(row.get("game_date")) or dt_date,
                game_time=_name(row.get("time")) or _name(row.get("game_time")) or dt_time,
                venue_name=_name(row.get("venue"))
                or _name(row.get("venue_name"))
                or _name(row.get("stadium")),
                status_text=_name(row.get("status")) or _name(row.get("game_status")),
                home_score=teams.home_score,
                away_score=teams.away_score,
            )
        )

    logger.debug(f'[Games Parser] Parsed {len(games)} of {len(rows)} game rows for "{query}"')
    return games
