from datetime import datetime
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .enums import League, StandingsStatus


class ParsedStanding(BaseModel):
    """One standings row as read from SerpApi, before team reconciliation."""

    model_config = ConfigDict(frozen=True)

    team_name: str
    wins: int
    losses: int
    win_pct: Optional[float] = None
    games_back: float = 0.0
    home_record: Optional[str] = None
    away_record: Optional[str] = None
    last_10: Optional[str] = None
    thumbnail: Optional[str] = None


class StandingInput(BaseModel):
    """A reconciled standings record, ready for validation and upsert."""

    team_id: str
    season: int
    wins: int
    losses: int
    ties: int = 0  # SerpApi never reports ties
    games_back: float
    pct: Optional[float] = None
    league: League
    home_record: Optional[str] = None
    away_record: Optional[str] = None
    last_10: Optional[str] = None
    # Only used for the team thumbnail side channel, never persisted
    thumbnail_url: Optional[str] = Field(None, exclude=True)

    @property
    def natural_key(self) -> Tuple[str, int]:
        return (self.team_id, self.season)


class Standing(StandingInput):
    """A standings row as stored in Supabase."""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Preseason(BaseModel):
    """Standings exist upstream but carry no statistics yet."""

    model_config = ConfigDict(frozen=True)

    status: Literal[StandingsStatus.PRESEASON] = StandingsStatus.PRESEASON


class ParsedStandings(BaseModel):
    status: Literal[StandingsStatus.OK] = StandingsStatus.OK
    rows: List[ParsedStanding]


class ReconciledStandings(BaseModel):
    status: Literal[StandingsStatus.OK] = StandingsStatus.OK
    standings: List[StandingInput]


PRESEASON = Preseason()

ParseStandingsResult = Union[ParsedStandings, Preseason]
FetchStandingsResult = Union[ReconciledStandings, Preseason]
