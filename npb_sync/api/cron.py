"""Scheduled-trigger HTTP endpoint.

``GET /cron/daily`` runs one sync cycle. The app refuses to start unless the
team table holds the full roster: teams are seeded by migration, never by
the sync.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncIterator, Optional
from zoneinfo import ZoneInfo

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger
from supabase import AsyncClient

from npb_sync.config.settings import settings
from npb_sync.exceptions import SyncError, TeamSeedError
from npb_sync.ingestion.pipeline import run_daily_cycle, summarize
from npb_sync.logging.setup import setup_logging
from npb_sync.models.enums import TOTAL_TEAMS
from npb_sync.scrapers.serpapi_client import SerpApiClient
from npb_sync.storage.supabase_client import count_teams, initialize_supabase


# A malformed date or season answers 400 with the {success, error} body
MIN_SEASON = 1936
MAX_SEASON = 2100


def today_local() -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


def parse_season(value: str) -> Optional[int]:
    """Returns the season year, or None when ``value`` is not a year in range."""
    try:
        season = int(value.strip())
    except ValueError:
        return None
    if not MIN_SEASON <= season <= MAX_SEASON:
        return None
    return season


def bad_request(message: str) -> JSONResponse:
    logger.warning(f"Rejected cron request: {message}")
    return JSONResponse(status_code=400, content={"success": False, "error": message})


def create_app(
    db: Optional[AsyncClient] = None,
    search_client: Optional[SerpApiClient] = None,
) -> FastAPI:
    """Build the cron app; ``db`` and ``search_client`` are created at startup when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        supabase = db or await initialize_supabase()
        team_count = await count_teams(supabase)
        if team_count != TOTAL_TEAMS:
            logger.critical("Teams validation failed. Server will not start.")
            raise TeamSeedError(TOTAL_TEAMS, team_count)
        logger.info(f"Teams validation passed: {team_count} teams found in database")

        app.state.db = supabase
        app.state.search_client = search_client or SerpApiClient()
        try:
            yield
        finally:
            if search_client is None:
                await app.state.search_client.close()

    app = FastAPI(title="npb-standings-sync", version="1.0.0", lifespan=lifespan)

    @app.get("/health")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/cron/daily")
    async def cron_daily(
        request: Request,
        date_param: Optional[str] = Query(None, alias="date"),
        season_param: Optional[str] = Query(None, alias="season"),
    ) -> JSONResponse:
        if date_param:
            try:
                run_date = date.fromisoformat(date_param)
            except ValueError:
                return bad_request(f"Invalid date format: {date_param}. Must be YYYY-MM-DD.")
        else:
            run_date = today_local()

        if season_param:
            run_season = parse_season(season_param)
            if run_season is None:
                return bad_request(
                    f"Invalid season: {season_param}. "
                    f"Must be a year between {MIN_SEASON} and {MAX_SEASON}."
                )
        else:
            run_season = run_date.year

        try:
            result = await run_daily_cycle(
                request.app.state.search_client,
                request.app.state.db,
                run_date,
                run_season,
            )
        except SyncError as e:
            logger.error(f"Daily cycle failed ({type(e).__name__}): {e}")
            return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
        except Exception as e:
            logger.exception("Unexpected error during daily cycle")
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": str(e) or type(e).__name__},
            )

        return JSONResponse(status_code=200, content=summarize(result))

    return app


def serve() -> None:
    """Serve the cron app with uvicorn (``npb-sync-serve``)."""
    setup_logging()
    uvicorn.run(
        "npb_sync.api.cron:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # uvicorn logs go through the loguru intercept handler
    )
