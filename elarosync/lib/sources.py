"""
elarostats sync - Upstream Sources

One function per upstream endpoint. Each takes an UpstreamClient and returns
plain records (dicts); mapping to destination rows happens elsewhere.

    NBA Stats   playergamelogs / teamgamelogs (bulk, one call per entity type)
    pbpstats    get-totals, get-game-logs, live scoreboard and live game payloads
    databallr   player_stats_with_metrics
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from elarosync.config.settings import API_CONFIG, DATABALLR_CONFIG, NBA_STATS_HEADERS
from elarosync.lib.errors import UpstreamError
from elarosync.lib.http import UpstreamClient, rows_from_result_set
from elarosync.lib.log import log
from elarosync.lib.transforms import team_abbr, team_score

GAME_LOG_ENDPOINTS = {
    'Player': 'playergamelogs',
    'Team': 'teamgamelogs',
}

LIVE_RESULT_TYPES = ('team', 'player', 'game-flow')

_PREGAME_TIME = re.compile(r'\d:\d{2}\s*(am|pm)', re.IGNORECASE)


# ============================================================================
# NBA STATS
# ============================================================================

def fetch_nba_game_logs(client: UpstreamClient, entity_type: str,
                        season: str, season_type: str) -> List[Dict[str, Any]]:
    """Every game log row for every player (or team) in a season, in one request."""
    endpoint = GAME_LOG_ENDPOINTS[entity_type]
    url = f"{API_CONFIG['nba_stats_base']}/{endpoint}"
    params = {
        'Season': season,
        'SeasonType': season_type,
        'LeagueID': API_CONFIG['league_id'],
    }
    log(f"  GET {url} ({season}, {season_type})")
    payload = client.get_json(url, endpoint, params=params, headers=NBA_STATS_HEADERS)
    records = rows_from_result_set(payload)
    log(f"  Got {len(records)} {entity_type.lower()} game log rows")
    return records


# ============================================================================
# PBPSTATS
# ============================================================================

def _multi_row_table(payload: Any, label: str) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    records = payload.get('multi_row_table_data') or []
    if not isinstance(records, list):
        raise UpstreamError(label, None, f"Unexpected multi_row_table_data: {type(records).__name__}")
    return records


def fetch_pbp_totals(client: UpstreamClient, entity_type: str,
                     season: str, season_type: str) -> List[Dict[str, Any]]:
    """
    Season totals for every player or team.

    Raises:
        UpstreamError: the response carries no rows
    """
    url = f"{API_CONFIG['pbpstats_base']}/get-totals/nba"
    label = f"{entity_type} totals"
    params = {'Season': season, 'SeasonType': season_type, 'Type': entity_type}
    log(f"Fetching {label} from pbpstats...")
    records = _multi_row_table(client.get_json(url, label, params=params), label)
    if not records:
        raise UpstreamError(label, None, f"No data returned for {entity_type}")
    log(f"  Got {len(records)} rows")
    return records


def fetch_pbp_game_logs(client: UpstreamClient, entity_type: str, entity_id: int,
                        season: str, season_type: str) -> List[Dict[str, Any]]:
    """Game logs of one player or team. An entity without games yields []."""
    url = f"{API_CONFIG['pbpstats_base']}/get-game-logs/nba"
    params = {
        'Season': season,
        'SeasonType': season_type,
        'EntityType': entity_type,
        'EntityId': entity_id,
    }
    label = f"{entity_type} {entity_id} game logs"
    return _multi_row_table(client.get_json(url, label, params=params), label)


# ============================================================================
# DATABALLR
# ============================================================================

def fetch_databallr_players(client: UpstreamClient, year: int,
                            min_minutes: Optional[int] = None,
                            limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Player metrics for one season; the body is either a list or {data: [...]}."""
    params = {
        'year': year,
        'playoffs': DATABALLR_CONFIG['playoffs'],
        'min_minutes': min_minutes or DATABALLR_CONFIG['min_minutes'],
        'limit': limit or DATABALLR_CONFIG['limit'],
        'order_by': DATABALLR_CONFIG['order_by'],
        'order_direction': DATABALLR_CONFIG['order_direction'],
    }
    log(f"Fetching from databallr (year={year})...")
    body = client.get_json(API_CONFIG['databallr_base'], 'databallr players', params=params)

    if isinstance(body, list):
        players = body
    elif isinstance(body, dict) and isinstance(body.get('data'), list):
        players = body['data']
    else:
        raise UpstreamError('databallr players', None, 'Unexpected response shape')

    log(f"  Got {len(players)} players")
    return players


# ============================================================================
# PBPSTATS LIVE
# ============================================================================

@dataclass
class ParsedGame:
    """One scoreboard entry with its status flags resolved."""

    game_id: str
    time: str
    home_abbr: str
    home_score: int
    away_abbr: str
    away_score: int
    is_live: bool
    is_final: bool
    is_pregame: bool
    raw: Dict[str, Any]

    @property
    def matchup(self) -> str:
        return f"{self.away_abbr} @ {self.home_abbr}"


def parse_team_field(value) -> tuple:
    """'PHX 41' -> ('PHX', 41)."""
    return team_abbr(value) or '', team_score(value)


def is_final_time(time_text: Optional[str]) -> bool:
    return (time_text or '').strip().lower().startswith('final')


def parse_game(game: Dict[str, Any], has_live_games: bool) -> ParsedGame:
    home_abbr, home_score = parse_team_field(game.get('home'))
    away_abbr, away_score = parse_team_field(game.get('away'))
    time_text = (game.get('time') or '').strip()

    has_started = home_score > 0 or away_score > 0
    is_final = is_final_time(time_text)
    is_scheduled = bool(_PREGAME_TIME.search(time_text))
    # 0-0 at tip-off is live, so this keys on the clock text rather than the score
    is_live = has_live_games and not is_final and not is_scheduled

    return ParsedGame(
        game_id=str(game.get('gameid', '')),
        time=time_text,
        home_abbr=home_abbr,
        home_score=home_score,
        away_abbr=away_abbr,
        away_score=away_score,
        is_live=is_live,
        is_final=is_final,
        is_pregame=not has_started and not is_final and not is_live,
        raw=game,
    )


def parse_scoreboard(payload: Dict[str, Any]) -> List[ParsedGame]:
    games = (payload or {}).get('game_data') or []
    has_live_games = bool((payload or {}).get('live_games'))
    return [parse_game(game, has_live_games) for game in games]


def fetch_todays_games(client: UpstreamClient) -> Dict[str, Any]:
    """Raw scoreboard payload: {live_games, game_data: [{gameid, time, home, away}]}."""
    url = f"{API_CONFIG['pbpstats_base']}/live/games/nba"
    return client.get_json(url, "today's games")


def fetch_live_game(client: UpstreamClient, game_id: str, result_type: str) -> Dict[str, Any]:
    """Live payload of one game: team box score, player box score or game flow."""
    if result_type not in LIVE_RESULT_TYPES:
        raise ValueError(f"Unknown live result type: {result_type}")
    url = f"{API_CONFIG['pbpstats_base']}/live/game/{game_id}/{result_type}"
    return client.get_json(url, f"{result_type} for {game_id}")
