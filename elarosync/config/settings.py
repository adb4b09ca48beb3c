"""
elarostats sync - Runtime Configuration

Environment, upstream endpoints, retry and batching settings.
config = data, lib = code: nothing in here talks to the network.
"""
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

from elarosync.lib.errors import ConfigError

load_dotenv()


# ============================================================================
# UPSTREAM APIS
# ============================================================================

API_CONFIG = {
    'nba_stats_base': 'https://stats.nba.com/stats',
    'pbpstats_base': 'https://api.pbpstats.com',
    'databallr_base': 'https://api.databallr.com/api/supabase/player_stats_with_metrics',
    'league_id': '00',
    'timeout_default': int(os.getenv('API_TIMEOUT', '60')),
}

# stats.nba.com answers 403 without browser-like headers
NBA_STATS_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    ),
    'Referer': 'https://www.nba.com/',
    'Accept': 'application/json, text/plain, */*',
    'Accept-Language': 'en-US,en;q=0.9',
    'Origin': 'https://www.nba.com',
    'Connection': 'keep-alive',
}

RETRY_CONFIG = {
    'max_retries': 3,
    'delays': [10, 30, 60],
    'fallback_delay': 60,
}


# ============================================================================
# SYNC BEHAVIOUR
# ============================================================================

SYNC_CONFIG = {
    'batch_size': 100,
    'per_entity_delay': 0.3,
    'entity_cache_ttl': int(os.getenv('ENTITY_CACHE_TTL', '900')),
    'live_poll_interval': 30,
    'select_page_size': 1000,
}

DATABALLR_CONFIG = {
    'playoffs': '0',
    'min_minutes': 50,
    'limit': 500,
    'order_by': 'dpm',
    'order_direction': 'desc',
}


# ============================================================================
# NBA SEASON
# ============================================================================

def get_current_season_year() -> int:
    """Ending year of the current season (2026 for 2025-26)."""
    now = datetime.now()
    return now.year + 1 if now.month > 8 else now.year


def get_current_season() -> str:
    """Current season string, e.g. '2025-26'."""
    year = get_current_season_year()
    return f"{year - 1}-{str(year)[-2:]}"


def season_for_date(value) -> str:
    """Season a calendar date belongs to (games from September on open the next season)."""
    year = value.year + 1 if value.month > 8 else value.year
    return f"{year - 1}-{str(year)[-2:]}"


SEASON_TYPES = ['Regular Season', 'Playoffs', 'PlayIn']

NBA_CONFIG = {
    'current_season': get_current_season(),
    'current_season_year': get_current_season_year(),
    'default_season_type': 'Regular Season',
    'timezone': 'America/New_York',
    # Before this local hour the scoreboard still shows the previous night's slate
    'scoreboard_rollover_hour': 6,
}


# ============================================================================
# DESTINATION STORE
# ============================================================================

BACKENDS = ['supabase', 'postgres', 'memory']

REQUIRED_ENV = {
    'supabase': ['SUPABASE_URL', 'SUPABASE_SERVICE_KEY'],
    'postgres': ['DATABASE_URL'],
    'memory': [],
}


@dataclass(frozen=True)
class Settings:
    backend: str
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    database_url: Optional[str] = None
    timeout: int = API_CONFIG['timeout_default']


def load_settings(backend: Optional[str] = None) -> Settings:
    """
    Resolve the destination backend and its credentials from the environment.

    Raises ConfigError when a required variable is missing, before any
    network activity happens.
    """
    backend = backend or os.getenv('SYNC_BACKEND', 'supabase')
    if backend not in BACKENDS:
        raise ConfigError(f"Unknown backend '{backend}' (expected one of: {', '.join(BACKENDS)})")

    missing = [name for name in REQUIRED_ENV[backend] if not os.getenv(name)]
    if missing:
        raise ConfigError(f"Missing required env vars: {' and '.join(missing)}")

    return Settings(
        backend=backend,
        supabase_url=(os.getenv('SUPABASE_URL') or '').rstrip('/') or None,
        supabase_key=os.getenv('SUPABASE_SERVICE_KEY') or None,
        database_url=os.getenv('DATABASE_URL') or None,
    )
