import sys
import asyncio
from datetime import date
from typing import Optional

# --- Settings/Logging ---
from npb_sync.logging.setup import setup_logging
from npb_sync.config.settings import settings

setup_logging()

from loguru import logger

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from npb_sync.api.cron import today_local
from npb_sync.exceptions import SyncError, TransportError
from npb_sync.ingestion.pipeline import CycleResult, run_daily_cycle
from npb_sync.scrapers.serpapi_client import SerpApiClient
from npb_sync.storage.supabase_client import initialize_supabase

from rich import print
from rich.panel import Panel

# Backoff between whole-cycle attempts
RETRY_WAIT = wait_exponential(multiplier=1, min=2, max=30)


def log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        f"Daily cycle attempt {retry_state.attempt_number} failed: "
        f"{retry_state.outcome.exception()}. Retrying..."
    )


async def run_cycle_with_retries(
    run_date: date, season: int, max_attempts: Optional[int] = None
) -> CycleResult:
    """Runs one daily cycle, retrying the whole cycle on transport errors only.

    The cycle writes nothing unless it succeeds, so a retry starts clean.
    """
    db = await initialize_supabase()
    search_client = SerpApiClient()
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts or settings.cycle_max_attempts),
        wait=RETRY_WAIT,
        retry=retry_if_exception_type(TransportError),
        before_sleep=log_retry,
        reraise=True,
    )
    try:
        return await retrying(run_daily_cycle, search_client, db, run_date, season)
    finally:
        await search_client.close()


async def main() -> int:
    """Main entry point: one sync for today's date and season."""
    run_date = today_local()
    season = run_date.year
    logger.info(f"Starting NPB sync for {run_date.isoformat()} (season {season})")

    try:
        result = await run_cycle_with_retries(run_date, season)
    except SyncError as e:
        logger.error(f"Sync failed ({type(e).__name__}): {e}")
        print(Panel(str(e), title="[red]NPB sync failed[/red]"))
        return 1

    lines = [
        f"Date: {result.date.isoformat()}",
        f"Season: {result.season}",
        f"Standings: {result.standings_status.value} ({result.counts.standings} rows)",
        f"Games: {result.counts.games} rows",
    ]
    if result.preseason_rows_touched is not None:
        lines.append(f"Preseason keepalive: {result.preseason_rows_touched} rows touched")
    print(Panel("\n".join(lines), title="[green]NPB sync complete[/green]"))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
