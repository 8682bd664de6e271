"""Tests for the cron HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from npb_sync.api import cron
from npb_sync.api.cron import MAX_SEASON, MIN_SEASON, create_app, parse_season
from npb_sync.ingestion.standings_fetcher import build_standings_query
from npb_sync.models.enums import League
from npb_sync.storage import supabase_client as store

from tests.fakes import (
    CENTRAL_QUERY,
    CENTRAL_TABLE,
    PACIFIC_QUERY,
    PACIFIC_TABLE,
    RUN_DATE,
    FakeSupabase,
    preseason_rows,
    standings_payload,
    standings_row,
    table_rows,
    team_rows,
)


@pytest.fixture
def client(db, search_client):
    with TestClient(create_app(db=db, search_client=search_client)) as test_client:
        yield test_client


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestDaily:
    def test_success(self, client, db):
        response = client.get("/cron/daily", params={"date": "2025-06-01", "season": 2025})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "date": "2025-06-01",
            "season": 2025,
            "standings_status": "ok",
            "counts": {"games": 2, "standings": 12},
        }
        assert len(db.rows(store.STANDINGS_TABLE)) == 12

    def test_season_defaults_to_run_date_year(self, client, serpapi):
        response = client.get("/cron/daily", params={"date": "2025-06-01"})
        assert response.json()["season"] == 2025
        assert CENTRAL_QUERY in serpapi.queries

    def test_date_defaults_to_today_in_league_timezone(self, client, monkeypatch):
        monkeypatch.setattr(cron, "today_local", lambda: RUN_DATE)
        response = client.get("/cron/daily")
        assert response.status_code == 200
        assert response.json()["date"] == "2025-06-01"

    @pytest.mark.parametrize("bad_date", ["2025-13-01", "June 1", "20250601x"])
    def test_invalid_date(self, client, serpapi, bad_date):
        response = client.get("/cron/daily", params={"date": bad_date})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert bad_date in body["error"]
        assert serpapi.queries == []

    @pytest.mark.parametrize("bad_season", ["abc", "1800", "2101", "20.25"])
    def test_invalid_season(self, client, serpapi, db, bad_season):
        response = client.get("/cron/daily", params={"date": "2025-06-01", "season": bad_season})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert f"Invalid season: {bad_season}" in body["error"]
        assert serpapi.queries == []
        assert db.writes == []

    def test_season_overrides_run_date_year(self, client, serpapi):
        central_2024 = build_standings_query(League.CENTRAL, 2024)
        serpapi.replies[central_2024] = serpapi.replies[CENTRAL_QUERY]
        serpapi.replies[build_standings_query(League.PACIFIC, 2024)] = serpapi.replies[
            PACIFIC_QUERY
        ]

        response = client.get("/cron/daily", params={"date": "2025-06-01", "season": " 2024 "})

        assert response.status_code == 200
        assert response.json()["season"] == 2024
        assert central_2024 in serpapi.queries

    def test_preseason(self, client, serpapi):
        serpapi.replies[PACIFIC_QUERY] = standings_payload(preseason_rows(PACIFIC_TABLE))
        response = client.get("/cron/daily", params={"date": "2025-03-01"})

        assert response.status_code == 200
        body = response.json()
        assert body["standings_status"] == "preseason"
        assert body["counts"]["standings"] == 0
        assert body["preseason_rows_touched"] == 0

    def test_sync_failure_is_a_500_without_writes(self, client, serpapi, db):
        rows = table_rows(CENTRAL_TABLE)
        rows[0] = standings_row("Taiyo Whales", "85", "54", "-")
        serpapi.replies[CENTRAL_QUERY] = standings_payload(rows)

        response = client.get("/cron/daily", params={"date": "2025-06-01"})

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert "Taiyo Whales" in body["error"]
        assert "Available teams:" in body["error"]
        assert db.writes == []

    def test_unexpected_failure_is_a_500(self, client, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("event loop on fire")

        monkeypatch.setattr(cron, "run_daily_cycle", explode)
        response = client.get("/cron/daily", params={"date": "2025-06-01"})
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "event loop on fire"}


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2025", 2025),
        (" 2026 ", 2026),
        (str(MIN_SEASON), MIN_SEASON),
        (str(MAX_SEASON), MAX_SEASON),
        (str(MIN_SEASON - 1), None),
        ("abc", None),
        ("", None),
    ],
)
def test_parse_season(value, expected):
    assert parse_season(value) == expected


def test_refuses_to_start_without_full_roster(search_client):
    db = FakeSupabase({"teams": team_rows()[:11]})
    app = create_app(db=db, search_client=search_client)
    # The lifespan raises TeamSeedError; depending on the anyio version it may
    # arrive wrapped, so only the failure itself is asserted
    with pytest.raises(Exception):
        with TestClient(app):
            pass
    assert db.writes == []
