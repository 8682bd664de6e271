"""Pre-persistence validation for reconciled record sets.

Pure functions: no logging, no I/O. Each check raises on the first violation
with the offending counts or keys in the message.
"""

from collections import Counter
from typing import Iterable, List, Sequence

from npb_sync.exceptions import CardinalityError, DuplicateKeyError, IntegrityError
from npb_sync.models.enums import TEAMS_PER_LEAGUE, TOTAL_TEAMS, League
from npb_sync.models.game import GameInput
from npb_sync.models.standing import StandingInput
from npb_sync.models.team import Team


def _duplicates(keys: Iterable[object]) -> List[object]:
    return [key for key, count in Counter(keys).items() if count > 1]


def validate_standings(standings: Sequence[StandingInput]) -> None:
    """Validate standings before they are written.

    Rules:
    - exactly ``TOTAL_TEAMS`` rows
    - exactly ``TEAMS_PER_LEAGUE`` rows per league
    - unique (team_id, season)
    """
    if len(standings) != TOTAL_TEAMS:
        raise CardinalityError(
            f"Expected exactly {TOTAL_TEAMS} standings rows, got {len(standings)}",
            expected=TOTAL_TEAMS,
            actual=len(standings),
        )

    per_league = Counter(standing.league for standing in standings)
    for league in League:
        if per_league[league] != TEAMS_PER_LEAGUE:
            raise CardinalityError(
                f"Expected exactly {TEAMS_PER_LEAGUE} {league.display_name} teams, "
                f"got {per_league[league]}",
                expected=TEAMS_PER_LEAGUE,
                actual=per_league[league],
            )

    duplicates = _duplicates(standing.natural_key for standing in standings)
    if duplicates:
        labels = ", ".join(f"{team_id}/{season}" for team_id, season in duplicates)
        raise DuplicateKeyError(
            f"Duplicate team_id + season entries detected: {labels}", keys=duplicates
        )


def validate_games(games: Sequence[GameInput], teams: Sequence[Team]) -> None:
    """Looser checks for games: known teams, distinct sides, unique natural keys.

    No count is enforced; the number of games varies day to day.
    """
    known_ids = {team.id for team in teams}
    for game in games:
        unknown = [tid for tid in (game.home_team_id, game.away_team_id) if tid not in known_ids]
        if unknown:
            raise IntegrityError(
                f"Game {game.description} references unknown team id(s): {', '.join(unknown)}"
            )
        if game.home_team_id == game.away_team_id:
            raise IntegrityError(f"Game {game.description} has the same home and away team")

    duplicates = _duplicates(game.natural_key for game in games)
    if duplicates:
        labels = ", ".join(f"{d.isoformat()}/{home}/{away}" for d, home, away in duplicates)
        raise DuplicateKeyError(
            f"Duplicate date + home + away game entries detected: {labels}", keys=duplicates
        )
