"""Static NBA team directory (nba_api ships it, no network needed)."""
from functools import lru_cache
from typing import Dict, List, Optional

from nba_api.stats.static import teams


@lru_cache(maxsize=1)
def _teams_by_abbreviation() -> Dict[str, dict]:
    return {team['abbreviation']: team for team in teams.get_teams()}


def all_team_ids() -> List[int]:
    return sorted(team['id'] for team in _teams_by_abbreviation().values())


def team_id_for(abbreviation: Optional[str]) -> Optional[int]:
    """NBA team ID for an abbreviation, None for anything unknown."""
    if not abbreviation:
        return None
    team = _teams_by_abbreviation().get(abbreviation.upper())
    return team['id'] if team else None
