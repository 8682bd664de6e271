"""Shared fixtures: fake Supabase, fake SerpApi, and the canonical roster.

Settings are read at import time, so the required environment is set before
any ``npb_sync`` module loads.
"""

import os

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SERPAPI_KEY", "test-serpapi-key")

from typing import List

import pytest

from npb_sync.models.team import Team
from npb_sync.scrapers.serpapi_client import SerpApiClient

from tests.fakes import (
    CENTRAL_QUERY,
    CENTRAL_TABLE,
    GAMES_QUERY,
    PACIFIC_QUERY,
    PACIFIC_TABLE,
    FakeSerpApi,
    FakeSupabase,
    games_payload,
    make_teams,
    pair_game,
    standings_payload,
    table_rows,
    team_rows,
)


@pytest.fixture
def teams() -> List[Team]:
    return make_teams()


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase({"teams": team_rows()})


@pytest.fixture
def serpapi() -> FakeSerpApi:
    """A SerpApi with healthy standings for both leagues and two games."""
    return FakeSerpApi(
        {
            CENTRAL_QUERY: standings_payload(table_rows(CENTRAL_TABLE), "central-1"),
            PACIFIC_QUERY: standings_payload(table_rows(PACIFIC_TABLE), "pacific-1"),
            GAMES_QUERY: games_payload(
                [
                    pair_game("Hanshin Tigers", "Yomiuri Giants", 3, 2, status="Final", venue="Tokyo Dome"),
                    pair_game("Orix Buffaloes", "Fukuoka SoftBank Hawks", status="Scheduled", time="6:00 PM"),
                ]
            ),
        }
    )


@pytest.fixture
def search_client(serpapi: FakeSerpApi) -> SerpApiClient:
    return serpapi.client()
