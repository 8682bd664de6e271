from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from loguru import logger

from npb_sync.exceptions import UnresolvedNameError
from npb_sync.models.team import Team

# Upstream shorthand -> canonical English name. Small and explicit: only add an
# entry when a real SerpApi name fails the matching strategies below.
TEAM_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        # Central League
        "Yomiuri": "Yomiuri Giants",
        "Giants": "Yomiuri Giants",
        "Tokyo Giants": "Yomiuri Giants",
        "Hanshin": "Hanshin Tigers",
        "Tigers": "Hanshin Tigers",
        "Chunichi": "Chunichi Dragons",
        "Dragons": "Chunichi Dragons",
        "Yakult": "Tokyo Yakult Swallows",
        "Swallows": "Tokyo Yakult Swallows",
        "Hiroshima": "Hiroshima Toyo Carp",
        "Carp": "Hiroshima Toyo Carp",
        "DeNA": "Yokohama DeNA BayStars",
        "BayStars": "Yokohama DeNA BayStars",
        # Pacific League
        "SoftBank": "Fukuoka SoftBank Hawks",
        "Hawks": "Fukuoka SoftBank Hawks",
        "Lotte": "Chiba Lotte Marines",
        "Marines": "Chiba Lotte Marines",
        "Rakuten": "Tohoku Rakuten Golden Eagles",
        "Eagles": "Tohoku Rakuten Golden Eagles",
        "Seibu": "Saitama Seibu Lions",
        "Lions": "Saitama Seibu Lions",
        "Nippon-Ham": "Hokkaido Nippon-Ham Fighters",
        "Nippon Ham": "Hokkaido Nippon-Ham Fighters",
        "Fighters": "Hokkaido Nippon-Ham Fighters",
        "Orix": "Orix Buffaloes",
        "Buffaloes": "Orix Buffaloes",
    }
)

MIN_TOKEN_LENGTH = 3
MIN_TOKEN_OVERLAP = 2


class TeamResolver:
    """Maps SerpApi team names to canonical team ids.

    Strategies run in order and the first match wins: exact English name,
    case-insensitive name, substring containment either way, token overlap,
    then the explicit alias table. Never guesses: no match raises.
    """

    def __init__(
        self, teams: Sequence[Team], aliases: Mapping[str, str] = TEAM_ALIASES
    ):
        self.teams = tuple(teams)
        self.aliases: Mapping[str, str] = MappingProxyType(dict(aliases))
        self._by_lower_alias: Dict[str, str] = {
            alias.lower(): name for alias, name in self.aliases.items()
        }

    @property
    def known_names(self) -> List[str]:
        return [team.name_en for team in self.teams]

    def resolve(self, name: str) -> str:
        """Returns the team id for ``name`` or raises ``UnresolvedNameError``."""
        team = self.match(name)
        if team is None:
            raise UnresolvedNameError([name], self.known_names)
        return team.id

    def match(self, name: str) -> Optional[Team]:
        normalized = (name or "").strip()
        if not normalized:
            return None
        lowered = normalized.lower()

        for team in self.teams:
            if team.name_en == normalized:
                return team

        for team in self.teams:
            if team.name_en.lower() == lowered:
                return team

        for team in self.teams:
            team_lower = team.name_en.lower()
            if team_lower in lowered or lowered in team_lower:
                logger.debug(f'Resolved "{name}" to {team.id} by containment')
                return team

        team = self._match_tokens(lowered)
        if team is not None:
            logger.debug(f'Resolved "{name}" to {team.id} by token overlap')
            return team

        canonical = self.aliases.get(normalized) or self._by_lower_alias.get(lowered)
        if canonical:
            for team in self.teams:
                if team.name_en == canonical:
                    logger.debug(f'Resolved "{name}" to {team.id} via alias "{canonical}"')
                    return team
            logger.warning(
                f'Alias "{normalized}" maps to "{canonical}", but no team with that name_en is loaded'
            )
        return None

    def _match_tokens(self, lowered: str) -> Optional[Team]:
        tokens = [t for t in lowered.split() if len(t) >= MIN_TOKEN_LENGTH]
        if len(tokens) < MIN_TOKEN_OVERLAP:
            return None
        for team in self.teams:
            team_tokens = team.name_en.lower().split()
            overlap = [
                token
                for token in tokens
                if any(tt in token or token in tt for tt in team_tokens)
            ]
            if len(overlap) >= MIN_TOKEN_OVERLAP:
                return team
        return None


def resolve_team_id(
    name: str, teams: Sequence[Team], aliases: Mapping[str, str] = TEAM_ALIASES
) -> str:
    return TeamResolver(teams, aliases).resolve(name)
