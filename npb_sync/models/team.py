# npb_sync/models/team.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .enums import League


class Team(BaseModel):
    """A canonical NPB team, seeded out of band and read-only for the sync."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str  # Japanese display name
    name_en: str
    league: League
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None
    thumbnail_source: Optional[str] = None
    thumbnail_updated_at: Optional[datetime] = None
