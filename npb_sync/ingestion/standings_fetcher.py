"""League-anchored standings fetcher.

SerpApi rarely returns ``sports_results`` for league-only queries such as
"NPB Central League standings 2026", but reliably does for a query anchored on
one well-known team of the league ("Yomiuri Giants standings 2026"), and that
result carries the whole league table. One anchored query runs per league.
"""

import asyncio
from types import MappingProxyType
from typing import List, Mapping, Sequence

from loguru import logger

from npb_sync.exceptions import (
    CardinalityError,
    ConfigurationError,
    DuplicateKeyError,
    PartitionMismatchError,
    UnresolvedNameError,
)
from npb_sync.models.enums import TEAMS_PER_LEAGUE, League
from npb_sync.models.standing import (
    PRESEASON,
    FetchStandingsResult,
    Preseason,
    ReconciledStandings,
    StandingInput,
)
from npb_sync.models.team import Team
from npb_sync.normalization.team_resolver import TEAM_ALIASES, TeamResolver
from npb_sync.parsers.standings_parser import parse_standings
from npb_sync.scrapers.serpapi_client import SerpApiClient

ANCHOR_TEAM_BY_LEAGUE: Mapping[League, str] = MappingProxyType(
    {
        League.CENTRAL: "Yomiuri Giants",
        League.PACIFIC: "Fukuoka SoftBank Hawks",
    }
)


def build_standings_query(league: League, season: int) -> str:
    return f"{ANCHOR_TEAM_BY_LEAGUE[league]} standings {season}"


async def fetch_league_standings(
    client: SerpApiClient,
    season: int,
    league: League,
    teams: Sequence[Team],
    aliases: Mapping[str, str] = TEAM_ALIASES,
) -> FetchStandingsResult:
    """Fetch and reconcile one league's standings.

    Rules:
    - one anchored query per league
    - preseason is returned as-is, without reconciliation
    - every team name must resolve; unresolved names are reported together
    - a team found in the other league's table is data corruption
    - exactly ``TEAMS_PER_LEAGUE`` rows
    """
    if not teams:
        raise ConfigurationError(
            "No teams provided. Teams must be seeded before mapping standings."
        )

    query = build_standings_query(league, season)
    response = await client.search(query)
    parsed = parse_standings(response, query, league)

    if isinstance(parsed, Preseason):
        logger.info(f"[standings] {league.display_name} {season}: preseason, no statistics yet")
        return PRESEASON

    resolver = TeamResolver(teams, aliases)
    standings: List[StandingInput] = []
    unmapped: List[str] = []

    for row in parsed.rows:
        team = resolver.match(row.team_name)
        if team is None:
            unmapped.append(row.team_name)
            continue

        if team.league != league:
            raise PartitionMismatchError(
                f'League mismatch: Team "{row.team_name}" (ID: {team.id}) belongs to '
                f"{team.league.value} league, but was found in {league.value} league standings. "
                f'Query: "{query}".'
            )

        standings.append(
            StandingInput(
                team_id=team.id,
                season=season,
                wins=row.wins,
                losses=row.losses,
                ties=0,
                games_back=row.games_back,
                pct=row.win_pct,
                league=league,
                home_record=row.home_record,
                away_record=row.away_record,
                last_10=row.last_10,
                thumbnail_url=row.thumbnail,
            )
        )

    if unmapped:
        raise UnresolvedNameError(
            unmapped,
            resolver.known_names,
            context=f'League: {league.value}. Query: "{query}".',
        )

    count = len(standings)
    if count != TEAMS_PER_LEAGUE:
        issue = "incomplete" if count < TEAMS_PER_LEAGUE else "duplicate or corrupted"
        raise CardinalityError(
            f"{league.display_name} returned {count} teams. "
            f"Expected exactly {TEAMS_PER_LEAGUE} teams. "
            f'This may indicate {issue} data from SerpApi. Query: "{query}".',
            expected=TEAMS_PER_LEAGUE,
            actual=count,
        )

    logger.info(f"[standings] Mapped {count} teams for {league.display_name} {season}")
    return ReconciledStandings(standings=standings)


def find_duplicate_keys(standings: Sequence[StandingInput]) -> List[str]:
    seen = set()
    duplicates: List[str] = []
    for standing in standings:
        if standing.natural_key in seen:
            duplicates.append(f"{standing.team_id}/{standing.season}")
        seen.add(standing.natural_key)
    return duplicates


async def fetch_all_standings(
    client: SerpApiClient,
    season: int,
    teams: Sequence[Team],
    aliases: Mapping[str, str] = TEAM_ALIASES,
) -> FetchStandingsResult:
    """Fetch both leagues concurrently and merge them.

    Any league reporting preseason makes the whole result preseason. Any
    failure aborts the merge: results from the other league are discarded.
    """
    leagues = list(League)
    logger.info(f"[standings] Fetching standings for {len(leagues)} leagues (season {season})")
    results = await asyncio.gather(
        *(fetch_league_standings(client, season, league, teams, aliases) for league in leagues)
    )

    if any(isinstance(result, Preseason) for result in results):
        return PRESEASON

    merged: List[StandingInput] = [s for result in results for s in result.standings]
    duplicates = find_duplicate_keys(merged)
    if duplicates:
        raise DuplicateKeyError(
            f"Duplicate team_id + season entries detected: {', '.join(duplicates)}. "
            f"Each team should appear exactly once per season.",
            keys=duplicates,
        )

    logger.info(
        "[standings] Fetched standings for both leagues: "
        + ", ".join(
            f"{league.display_name} {len(result.standings)}"
            for league, result in zip(leagues, results)
        )
    )
    return ReconciledStandings(standings=merged)
