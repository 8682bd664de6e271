from datetime import date, datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, computed_field

from .enums import GameStatus


class ParsedGame(BaseModel):
    """A game row as read from SerpApi; every field is raw text."""

    model_config = ConfigDict(frozen=True)

    home_team_name: str
    away_team_name: str
    game_date: Optional[str] = None
    game_time: Optional[str] = None
    venue_name: Optional[str] = None
    status_text: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None


class GameInput(BaseModel):
    """A reconciled game, keyed by date and matchup."""

    date: date
    home_team_id: str
    away_team_id: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: GameStatus = GameStatus.SCHEDULED
    game_time: Optional[str] = None
    venue: Optional[str] = None

    @property
    def natural_key(self) -> Tuple[date, str, str]:
        # Start time is not part of the key: a doubleheader collapses into one row
        return (self.date, self.home_team_id, self.away_team_id)

    @computed_field  # type: ignore[misc]
    @property
    def description(self) -> str:
        """A human-readable description of the game."""
        return f"{self.away_team_id} @ {self.home_team_id} ({self.date.isoformat()})"


class Game(GameInput):
    """A game row as stored in Supabase."""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
