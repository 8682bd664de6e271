"""Tests for the pre-write validation rules."""

import pytest

from npb_sync.exceptions import CardinalityError, DuplicateKeyError, IntegrityError
from npb_sync.ingestion.validation import validate_games, validate_standings
from npb_sync.models.enums import League
from npb_sync.models.game import GameInput
from npb_sync.models.standing import StandingInput

from tests.fakes import RUN_DATE, SEASON


def _standing(team, **overrides):
    fields = dict(
        team_id=team.id, season=SEASON, wins=10, losses=10, games_back=0.0, league=team.league
    )
    fields.update(overrides)
    return StandingInput(**fields)


@pytest.fixture
def standings(teams):
    return [_standing(team) for team in teams]


class TestValidateStandings:
    def test_full_table_passes(self, standings):
        validate_standings(standings)

    def test_too_few_rows(self, standings):
        with pytest.raises(CardinalityError) as exc_info:
            validate_standings(standings[:11])
        assert (exc_info.value.expected, exc_info.value.actual) == (12, 11)

    def test_unbalanced_leagues(self, standings):
        # 12 rows, but 7 Central and 5 Pacific
        standings[6] = standings[6].model_copy(update={"league": League.CENTRAL})
        with pytest.raises(CardinalityError) as exc_info:
            validate_standings(standings)
        assert "Central League" in str(exc_info.value)

    def test_duplicate_team_season(self, standings, teams):
        # Swap one Central team for a second Giants row; per-league counts still hold
        standings[1] = _standing(teams[0])
        with pytest.raises(DuplicateKeyError) as exc_info:
            validate_standings(standings)
        assert exc_info.value.keys == [("yomiuri-giants", SEASON)]
        assert "yomiuri-giants/2025" in str(exc_info.value)


def _game(home, away, **overrides):
    return GameInput(date=RUN_DATE, home_team_id=home, away_team_id=away, **overrides)


class TestValidateGames:
    def test_empty_is_fine(self, teams):
        validate_games([], teams)

    def test_valid_games(self, teams):
        validate_games(
            [
                _game("yomiuri-giants", "hanshin-tigers"),
                _game("hanshin-tigers", "yomiuri-giants"),
                _game("orix-buffaloes", "chiba-lotte-marines"),
            ],
            teams,
        )

    def test_unknown_team(self, teams):
        with pytest.raises(IntegrityError) as exc_info:
            validate_games([_game("yomiuri-giants", "kintetsu-buffaloes")], teams)
        assert "kintetsu-buffaloes" in str(exc_info.value)

    def test_same_team_both_sides(self, teams):
        with pytest.raises(IntegrityError):
            validate_games([_game("yomiuri-giants", "yomiuri-giants")], teams)

    def test_duplicate_natural_key(self, teams):
        games = [
            _game("yomiuri-giants", "hanshin-tigers", game_time="1:00 PM"),
            _game("yomiuri-giants", "hanshin-tigers", game_time="6:00 PM"),
        ]
        with pytest.raises(DuplicateKeyError):
            validate_games(games, teams)
