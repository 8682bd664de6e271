"""One ingestion cycle: fetch, reconcile, validate, then write.

Nothing is written until both leagues and the games have been fetched and
validated; a failure anywhere aborts the cycle with the store untouched.
"""

import asyncio
from datetime import date
from typing import Dict, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field
from supabase import AsyncClient

from npb_sync.exceptions import TeamSeedError
from npb_sync.ingestion.games_fetcher import fetch_games
from npb_sync.ingestion.standings_fetcher import fetch_all_standings
from npb_sync.ingestion.validation import validate_games, validate_standings
from npb_sync.models.enums import TOTAL_TEAMS, StandingsStatus
from npb_sync.models.standing import Preseason, StandingInput
from npb_sync.models.team import Team
from npb_sync.scrapers.serpapi_client import SerpApiClient
from npb_sync.storage import supabase_client as store


class CycleCounts(BaseModel):
    games: int = 0
    standings: int = 0


class CycleResult(BaseModel):
    """Outcome of a successful cycle, shaped for the cron response."""

    success: bool = True
    date: date
    season: int
    standings_status: StandingsStatus
    counts: CycleCounts = Field(default_factory=CycleCounts)
    preseason_rows_touched: Optional[int] = None


def ensure_team_roster(teams: Sequence[Team]) -> None:
    if len(teams) != TOTAL_TEAMS:
        raise TeamSeedError(TOTAL_TEAMS, len(teams))


async def refresh_team_thumbnails(
    client: AsyncClient, standings: Sequence[StandingInput]
) -> int:
    """Side channel: cache the team logos SerpApi sends with standings rows."""
    results = await asyncio.gather(
        *(
            store.maybe_update_team_thumbnail(
                client,
                standing.team_id,
                standing.thumbnail_url,
                {"season": standing.season, "league": standing.league.value},
            )
            for standing in standings
            if standing.thumbnail_url
        )
    )
    return sum(1 for updated in results if updated)


async def run_daily_cycle(
    search_client: SerpApiClient,
    db: AsyncClient,
    run_date: date,
    season: int,
) -> CycleResult:
    """Run one full sync for ``run_date`` and ``season``.

    Raises any ``SyncError`` unchanged; the caller turns it into a failure
    response. Preseason standings are not an error: existing rows for the
    season get their timestamp bumped and no statistic is written.
    """
    logger.info(f"Starting daily cycle: date={run_date.isoformat()} season={season}")

    teams = await store.get_teams(db)
    ensure_team_roster(teams)

    standings_result, games = await asyncio.gather(
        fetch_all_standings(search_client, season, teams),
        fetch_games(search_client, run_date, teams),
    )

    standings: List[StandingInput] = []
    if not isinstance(standings_result, Preseason):
        standings = standings_result.standings
        validate_standings(standings)
    validate_games(games, teams)
    logger.info(f"Validation passed: {len(standings)} standings, {len(games)} games")

    result = CycleResult(
        date=run_date, season=season, standings_status=standings_result.status
    )
    if isinstance(standings_result, Preseason):
        result.preseason_rows_touched = await store.touch_standings(db, season)
    else:
        persisted = await store.upsert_standings(db, standings)
        result.counts.standings = len(persisted)
        updated = await refresh_team_thumbnails(db, standings)
        if updated:
            logger.info(f"Refreshed {updated} team thumbnails")

    persisted_games = await store.upsert_games(db, games)
    result.counts.games = len(persisted_games)

    logger.success(
        f"Daily cycle complete: standings={result.standings_status.value} "
        f"({result.counts.standings} rows), games={result.counts.games}"
    )
    return result


def summarize(result: CycleResult) -> Dict[str, object]:
    return result.model_dump(mode="json", exclude_none=True)
