# npb_sync/storage/supabase_client.py
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from postgrest import APIResponse
from postgrest.exceptions import APIError
from supabase import AsyncClient, create_async_client

from npb_sync.config.settings import settings
from npb_sync.exceptions import StorageError
from npb_sync.models.game import Game, GameInput
from npb_sync.models.standing import Standing, StandingInput
from npb_sync.models.team import Team
from npb_sync.utils.misc_utils import utc_now_iso

STANDINGS_TABLE = "standings"
GAMES_TABLE = "games"
TEAMS_TABLE = "teams"

# Natural keys backing the upserts; each must match a unique constraint in the database
STANDINGS_CONFLICT_COLUMNS = "team_id,season"
GAMES_CONFLICT_COLUMNS = "date,home_team_id,away_team_id"

THUMBNAIL_SOURCE = "serpapi"

# Module-level storage for the async client instance
_async_supabase_client: Optional[AsyncClient] = None


async def initialize_supabase(
    url: Optional[str] = None, key: Optional[str] = None
) -> AsyncClient:
    """Initializes the global ASYNC Supabase client and returns it."""
    global _async_supabase_client
    if _async_supabase_client:
        logger.debug("Async Supabase client already initialized.")
        return _async_supabase_client

    url = url or str(settings.supabase_url).rstrip("/")
    key = key or settings.supabase_write_key
    logger.debug(f"Attempting to initialize Async Supabase client with URL: {url}")

    try:
        client: AsyncClient = await create_async_client(url, key)
    except Exception as e:
        logger.exception(f"Failed to initialize Async Supabase client: {e}")
        raise StorageError(f"Failed to initialize Supabase client: {e}") from e

    _async_supabase_client = client
    logger.success("Async Supabase client initialized successfully.")
    return client


async def _execute(query: Any, description: str) -> APIResponse:
    """Runs a built query, turning every store failure into ``StorageError``."""
    try:
        return await query.execute()
    except APIError as e:
        logger.error(f"Supabase API error during {description}: {e.message}")
        logger.debug(f"Full APIError details: {e}")
        raise StorageError(f"Failed to {description}: {e.message}") from e
    except Exception as e:
        logger.exception(f"Unexpected error during {description}: {e}")
        raise StorageError(f"Failed to {description}: {e}") from e


# --- Teams (read-only reference data) ---


async def get_teams(client: AsyncClient) -> List[Team]:
    """Get all canonical teams, ordered by id."""
    response = await _execute(
        client.table(TEAMS_TABLE).select("*").order("id"), "get teams"
    )
    return [Team.model_validate(row) for row in response.data or []]


async def count_teams(client: AsyncClient) -> int:
    response = await _execute(
        client.table(TEAMS_TABLE).select("id", count="exact"), "count teams"
    )
    if response.count is not None:
        return response.count
    return len(response.data or [])


async def maybe_update_team_thumbnail(
    client: AsyncClient,
    team_id: str,
    thumbnail_url: Optional[str],
    context: Dict[str, Any],
) -> bool:
    """Refresh a team's cached thumbnail; auxiliary, so it never raises.

    Only writes when the stored URL is missing or different. Returns whether
    an update was written.
    """
    if not thumbnail_url or not thumbnail_url.strip():
        return False

    context_msg = ", ".join(f"{k}={v}" for k, v in context.items())
    try:
        current = await client.table(TEAMS_TABLE).select("thumbnail_url").eq(
            "id", team_id
        ).limit(1).execute()
        rows = current.data or []
        if rows and rows[0].get("thumbnail_url") == thumbnail_url:
            return False

        await client.table(TEAMS_TABLE).update(
            {
                "thumbnail_url": thumbnail_url,
                "thumbnail_source": THUMBNAIL_SOURCE,
                "thumbnail_updated_at": utc_now_iso(),
            }
        ).eq("id", team_id).execute()
        logger.debug(f"Updated thumbnail for team {team_id}")
        return True
    except APIError as e:
        logger.warning(
            f'Failed to update team thumbnail: Team ID "{team_id}" ({context_msg}). Error: {e.message}'
        )
    except Exception as e:
        logger.warning(
            f'Unexpected error updating team thumbnail: Team ID "{team_id}" ({context_msg}). Error: {e}'
        )
    return False


# --- Standings ---


def _standing_row(standing: StandingInput, updated_at: str) -> Dict[str, Any]:
    return {
        "team_id": standing.team_id,
        "season": standing.season,
        "wins": standing.wins,
        "losses": standing.losses,
        "ties": standing.ties,
        "games_back": standing.games_back,
        "pct": standing.pct,
        "league": standing.league.value,
        "home_record": standing.home_record,
        "away_record": standing.away_record,
        "last_10": standing.last_10,
        "updated_at": updated_at,
    }


async def upsert_standings(
    client: AsyncClient, standings: Sequence[StandingInput]
) -> List[Standing]:
    """Upserts standings in one batched call keyed by (team_id, season).

    Running it twice with the same input leaves the same rows, with a newer
    ``updated_at``.
    """
    if not standings:
        logger.debug(f"No data provided for upsert to table {STANDINGS_TABLE}. Skipping.")
        return []

    updated_at = utc_now_iso()
    rows = [_standing_row(s, updated_at) for s in standings]
    response = await _execute(
        client.table(STANDINGS_TABLE).upsert(rows, on_conflict=STANDINGS_CONFLICT_COLUMNS),
        "upsert standings",
    )
    persisted = [Standing.model_validate(row) for row in response.data or []]
    logger.success(f"Successfully upserted {len(persisted)} records to {STANDINGS_TABLE}.")
    return persisted


async def touch_standings(client: AsyncClient, season: int) -> int:
    """Preseason keepalive: bump ``updated_at`` on the season's rows, nothing else.

    Returns the number of rows touched; zero for a season with no rows yet.
    """
    response = await _execute(
        client.table(STANDINGS_TABLE)
        .update({"updated_at": utc_now_iso()})
        .eq("season", season),
        "touch standings",
    )
    touched = len(response.data or [])
    logger.info(f"Touched {touched} {STANDINGS_TABLE} rows for season {season} (preseason keepalive).")
    return touched


# --- Games ---


def _game_row(game: GameInput, updated_at: str) -> Dict[str, Any]:
    return {
        "date": game.date.isoformat(),
        "home_team_id": game.home_team_id,
        "away_team_id": game.away_team_id,
        "home_score": game.home_score,
        "away_score": game.away_score,
        "status": game.status.value,
        "game_time": game.game_time,
        "venue": game.venue,
        "updated_at": updated_at,
    }


async def upsert_games(client: AsyncClient, games: Sequence[GameInput]) -> List[Game]:
    """Upserts games in one batched call keyed by (date, home_team_id, away_team_id)."""
    if not games:
        logger.debug(f"No data provided for upsert to table {GAMES_TABLE}. Skipping.")
        return []

    updated_at = utc_now_iso()
    rows = [_game_row(g, updated_at) for g in games]
    response = await _execute(
        client.table(GAMES_TABLE).upsert(rows, on_conflict=GAMES_CONFLICT_COLUMNS),
        "upsert games",
    )
    persisted = [Game.model_validate(row) for row in response.data or []]
    logger.success(f"Successfully upserted {len(persisted)} records to {GAMES_TABLE}.")
    return persisted
