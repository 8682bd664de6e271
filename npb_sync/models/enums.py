from enum import Enum


class League(str, Enum):
    CENTRAL = "central"
    PACIFIC = "pacific"

    @property
    def display_name(self) -> str:
        return f"{self.value.capitalize()} League"


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    POSTPONED = "postponed"
    UNKNOWN = "unknown"


class StandingsStatus(str, Enum):
    OK = "ok"
    PRESEASON = "preseason"


# Fixed NPB roster shape
TEAMS_PER_LEAGUE = 6
TOTAL_TEAMS = TEAMS_PER_LEAGUE * len(League)
