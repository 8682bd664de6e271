"""Parser for extracting standings from SerpApi responses.

Pure parsing and validation: no network, no store. Fails loudly on malformed
rows and reports preseason (rows without statistics) as a result, not an error.
"""

import json
import math
from typing import Any, Dict, List, Optional

from loguru import logger

from npb_sync.exceptions import EmptyStandingsError, MissingResultsError, RowParseError
from npb_sync.models.enums import League
from npb_sync.models.standing import (
    PRESEASON,
    ParsedStanding,
    ParsedStandings,
    ParseStandingsResult,
)

TEAM_QUERY_NOTE = (
    'Note: SerpApi requires team-based queries (e.g., "Yomiuri Giants standings 2026") '
    "for reliable sports_results."
)

# "No data" tokens used for the league leader's games-back column. The last one
# is an em dash that went through a UTF-8 -> cp1252 round trip.
GAMES_BACK_LEADER_TOKENS = frozenset({"-", "—", "–", "â€”"})


def _search_id(response: Dict[str, Any]) -> str:
    metadata = response.get("search_metadata")
    if isinstance(metadata, dict) and metadata.get("id"):
        return str(metadata["id"])
    return "unknown"


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_int(value: Any) -> int:
    """Parses a base-10 integer delivered as text (or already numeric)."""
    if isinstance(value, bool):
        raise ValueError(f"boolean is not a count: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return int(str(value).strip(), 10)


def parse_games_back(value: Any) -> float:
    """Parses the games-back column; the leader's "no data" token means 0."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        text = str(value).strip()
        if not text or text in GAMES_BACK_LEADER_TOKENS:
            return 0.0
        number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"games back must be finite, got {value!r}")
    return number


def parse_win_pct(value: Any) -> Optional[float]:
    """Parses a winning percentage such as ".566"; unparseable values become None."""
    if not _has_value(value):
        return None
    try:
        pct = float(str(value).strip())
    except ValueError:
        logger.debug(f"Ignoring unparseable win percentage: {value!r}")
        return None
    if not math.isfinite(pct):
        return None
    return pct


def _row_error(message: str, query: str, index: int, team: Optional[str]) -> RowParseError:
    team_part = f"Team: {team}" if team else "Team: <missing>"
    return RowParseError(
        f'{message} Query: "{query}". Row: {index}. {team_part}',
        query=query,
        row_index=index,
    )


def _parse_row(row: Any, index: int, query: str) -> ParsedStanding:
    if not isinstance(row, dict):
        raise _row_error("Invalid standings row: not an object.", query, index, None)

    team = row.get("team")
    team_name = team.get("name") if isinstance(team, dict) else None
    if not isinstance(team_name, str) or not team_name.strip():
        raise RowParseError(
            f'Invalid standings row: missing team name. Query: "{query}". '
            f"Row {index}: {json.dumps(row, ensure_ascii=False, default=str)}",
            query=query,
            row_index=index,
        )
    team_name = team_name.strip()

    for field, label in (("w", "wins"), ("l", "losses"), ("gb", "games back")):
        # A blank games-back cell is the leader, not a missing value
        if field == "gb" and isinstance(row.get(field), str):
            continue
        if not _has_value(row.get(field)):
            raise _row_error(
                f"Invalid standings row: missing {label} ({field}).", query, index, team_name
            )

    try:
        wins = parse_int(row["w"])
    except ValueError:
        raise _row_error(f'Invalid wins value: "{row["w"]}".', query, index, team_name)
    try:
        losses = parse_int(row["l"])
    except ValueError:
        raise _row_error(f'Invalid losses value: "{row["l"]}".', query, index, team_name)
    if wins < 0 or losses < 0:
        raise _row_error(
            f"Negative win/loss count ({wins}-{losses}).", query, index, team_name
        )
    try:
        games_back = parse_games_back(row["gb"])
    except ValueError:
        raise _row_error(
            f'Invalid games back value: "{row["gb"]}".', query, index, team_name
        )

    return ParsedStanding(
        team_name=team_name,
        wins=wins,
        losses=losses,
        win_pct=parse_win_pct(row.get("pct")),
        games_back=games_back,
        home_record=_optional_text(row.get("home")),
        away_record=_optional_text(row.get("away")),
        last_10=_optional_text(row.get("l10")),
        thumbnail=_optional_text(team.get("thumbnail")),
    )


def parse_standings(
    response: Dict[str, Any],
    query: str,
    league: Optional[League] = None,
) -> ParseStandingsResult:
    """Parse standings from a SerpApi response.

    Args:
        response: The raw SerpApi payload.
        query: The query that produced it, used in error messages.
        league: The league the query was anchored to, if any.

    Returns:
        ``ParsedStandings`` with one row per team, or ``PRESEASON`` when the
        standings table exists but no row carries wins and losses yet.

    Raises:
        MissingResultsError: no ``sports_results`` / ``sports_results.league``.
        EmptyStandingsError: the standings list is absent or empty.
        RowParseError: a row is missing a required field or has a bad number.
    """
    search_id = _search_id(response)
    league_msg = f"League: {league.value}. " if league else ""

    sports_results = response.get("sports_results")
    if not isinstance(sports_results, dict):
        raise MissingResultsError(
            f"No sports_results found in SerpApi response. {league_msg}"
            f'Query: "{query}". Search ID: {search_id}. '
            f"This usually means the query did not return sports data. {TEAM_QUERY_NOTE}",
            query=query,
            search_id=search_id,
        )

    league_block = sports_results.get("league")
    if not isinstance(league_block, dict):
        raise MissingResultsError(
            f"No league data found in SerpApi response. {league_msg}"
            f'Query: "{query}". Search ID: {search_id}.',
            query=query,
            search_id=search_id,
        )

    rows = league_block.get("standings")
    if not isinstance(rows, list) or not rows:
        raise EmptyStandingsError(
            f"No standings array found in SerpApi response or array is empty. {league_msg}"
            f'Query: "{query}". Search ID: {search_id}.',
            query=query,
            search_id=search_id,
        )

    has_stats = any(
        isinstance(row, dict) and _has_value(row.get("w")) and _has_value(row.get("l"))
        for row in rows
    )
    if not has_stats:
        logger.info(
            f'[SerpApi] {len(rows)} standings rows without statistics for "{query}": preseason'
        )
        return PRESEASON

    parsed: List[ParsedStanding] = [
        _parse_row(row, index, query) for index, row in enumerate(rows)
    ]
    logger.debug(f'Parsed {len(parsed)} standings rows for "{query}"')
    return ParsedStandings(rows=parsed)
