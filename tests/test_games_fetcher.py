"""Tests for the games fetcher: status/date normalization and reconciliation."""

from datetime import date

import httpx
import pytest

from npb_sync.exceptions import ConfigurationError, TransportError, UpstreamApiError
from npb_sync.ingestion.games_fetcher import (
    build_games_query,
    fetch_games,
    normalize_status,
    parse_game_date,
    reconcile_games,
)
from npb_sync.models.enums import GameStatus
from npb_sync.models.game import ParsedGame

from tests.fakes import GAMES_QUERY, RUN_DATE, FakeSerpApi, games_payload


def test_build_games_query():
    assert build_games_query(date(2025, 6, 1)) == "NPB games 2025-06-01"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Final", GameStatus.COMPLETED),
        ("Final/10", GameStatus.COMPLETED),
        ("Completed", GameStatus.COMPLETED),
        ("Postponed", GameStatus.POSTPONED),
        ("Rain delay", GameStatus.POSTPONED),
        ("Canceled", GameStatus.POSTPONED),
        ("Suspended", GameStatus.POSTPONED),
        ("Live", GameStatus.IN_PROGRESS),
        ("In Progress", GameStatus.IN_PROGRESS),
        ("Top 5th", GameStatus.IN_PROGRESS),
        ("Bot 9", GameStatus.IN_PROGRESS),
        ("Scheduled", GameStatus.SCHEDULED),
        ("Upcoming", GameStatus.SCHEDULED),
        (None, GameStatus.SCHEDULED),
        ("  ", GameStatus.SCHEDULED),
        ("Forfeit", GameStatus.UNKNOWN),
    ],
)
def test_normalize_status(text, expected):
    assert normalize_status(text) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Jun 1", date(2025, 6, 1)),
        ("Sun, Jun 1", date(2025, 6, 1)),
        ("June 2, 2025", date(2025, 6, 2)),
        ("Jun 2, 2024", date(2024, 6, 2)),
        ("2025-06-03", date(2025, 6, 3)),
        ("2025/06/04", date(2025, 6, 4)),
        ("Today", RUN_DATE),
        ("tomorrow", date(2025, 6, 2)),
        ("Yesterday", date(2025, 5, 31)),
        (None, RUN_DATE),
        ("", RUN_DATE),
        ("sometime soon", RUN_DATE),
    ],
)
def test_parse_game_date(text, expected):
    assert parse_game_date(text, RUN_DATE) == expected


def test_parse_game_date_leap_day_without_year():
    assert parse_game_date("Feb 29", date(2024, 3, 1)) == date(2024, 2, 29)


class TestReconcileGames:
    def test_maps_names_and_normalizes(self, teams):
        parsed = [
            ParsedGame(
                home_team_name="Yomiuri Giants",
                away_team_name="Hanshin",
                game_date="Jun 1",
                game_time="6:00 PM",
                venue_name="Tokyo Dome",
                status_text="Final",
                home_score=2,
                away_score=3,
            )
        ]
        [game] = reconcile_games(parsed, RUN_DATE, teams)

        assert game.natural_key == (RUN_DATE, "yomiuri-giants", "hanshin-tigers")
        assert game.status == GameStatus.COMPLETED
        assert (game.home_score, game.away_score) == (2, 3)
        assert game.venue == "Tokyo Dome"
        assert game.game_time == "6:00 PM"
        assert game.description == "hanshin-tigers @ yomiuri-giants (2025-06-01)"

    def test_unmappable_or_same_team_rows_skipped(self, teams):
        parsed = [
            ParsedGame(home_team_name="Yomiuri Giants", away_team_name="Seattle Mariners"),
            ParsedGame(home_team_name="Giants", away_team_name="Yomiuri Giants"),
            ParsedGame(home_team_name="Orix Buffaloes", away_team_name="Seibu Lions"),
        ]
        games = reconcile_games(parsed, RUN_DATE, teams)
        assert [(g.home_team_id, g.away_team_id) for g in games] == [
            ("orix-buffaloes", "saitama-seibu-lions")
        ]

    def test_duplicate_key_keeps_later_row(self, teams):
        parsed = [
            ParsedGame(home_team_name="Yomiuri Giants", away_team_name="Hanshin Tigers", game_time="1:00 PM"),
            ParsedGame(home_team_name="Yomiuri Giants", away_team_name="Hanshin Tigers", game_time="6:00 PM"),
        ]
        [game] = reconcile_games(parsed, RUN_DATE, teams)
        assert game.game_time == "6:00 PM"


class TestFetchGames:
    async def test_fetches_and_reconciles(self, teams, serpapi):
        games = await fetch_games(serpapi.client(), RUN_DATE, teams)

        assert serpapi.queries == [GAMES_QUERY]
        assert [g.natural_key for g in games] == [
            (RUN_DATE, "yomiuri-giants", "hanshin-tigers"),
            (RUN_DATE, "fukuoka-softbank-hawks", "orix-buffaloes"),
        ]
        assert [g.status for g in games] == [GameStatus.COMPLETED, GameStatus.SCHEDULED]

    async def test_no_games_is_empty(self, teams):
        serpapi = FakeSerpApi({GAMES_QUERY: games_payload([])})
        assert await fetch_games(serpapi.client(), RUN_DATE, teams) == []

    async def test_no_sports_results_is_empty(self, teams):
        assert await fetch_games(FakeSerpApi().client(), RUN_DATE, teams) == []

    async def test_no_teams(self):
        with pytest.raises(ConfigurationError):
            await fetch_games(FakeSerpApi().client(), RUN_DATE, [])

    async def test_transport_errors_propagate(self, teams):
        serpapi = FakeSerpApi({GAMES_QUERY: httpx.ConnectError})
        with pytest.raises(TransportError):
            await fetch_games(serpapi.client(), RUN_DATE, teams)

    async def test_upstream_errors_propagate(self, teams):
        serpapi = FakeSerpApi({GAMES_QUERY: {"error": "Your account has run out of searches."}})
        with pytest.raises(UpstreamApiError):
            await fetch_games(serpapi.client(), RUN_DATE, teams)
