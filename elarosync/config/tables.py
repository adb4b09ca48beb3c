"""
elarostats sync - Destination Table Configuration

Single source of truth for every sync target: destination table, conflict
key, and how each column is read from the upstream record.

Column spec keys:
    type            SQL type used for schema DDL
    nullable        False for NOT NULL columns (default True)
    field           upstream field name
    transform       named converter from lib.transforms (default: value as-is)
    default         value used when the field is absent (default None)
    difference      [a, b] -> a - b, both zero-defaulted
    context         value supplied by the job (season, season_type, year, ...)
    default_context context value used when `field` is absent
    derived         {'metric': name, 'inputs': {arg: field or [fields]}}
                    inputs are zero-defaulted; 'prefer_field' takes the upstream
                    value when present

raw_data (JSONB) and synced_at (TIMESTAMPTZ) are added to every target.
"""


# ============================================================================
# SHARED COLUMN GROUPS
# ============================================================================

def _shooting_efficiency(fgm, fg3m, fga, fta, pts, prefer_efg=None, prefer_ts=None):
    efg = {'metric': 'efg_pct', 'inputs': {'fgm': fgm, 'fg3m': fg3m, 'fga': fga}}
    ts = {'metric': 'ts_pct', 'inputs': {'pts': pts, 'fga': fga, 'fta': fta}}
    if prefer_efg:
        efg['prefer_field'] = prefer_efg
    if prefer_ts:
        ts['prefer_field'] = prefer_ts
    return {
        'efg_pct': {'type': 'REAL', 'derived': efg},
        'ts_pct': {'type': 'REAL', 'derived': ts},
    }


_SEASON_KEYS = {
    'season': {'type': 'TEXT', 'nullable': False, 'context': 'season'},
    'season_type': {'type': 'TEXT', 'nullable': False, 'context': 'season_type'},
}


def _nba_stats_game_log(id_field, include_player_only):
    """Columns for stats.nba.com playergamelogs / teamgamelogs rows."""
    columns = {
        'entity_id': {'type': 'BIGINT', 'nullable': False, 'field': id_field, 'transform': 'parse_id'},
        'game_id': {'type': 'TEXT', 'nullable': False, 'field': 'GAME_ID', 'transform': 'safe_str'},
        **_SEASON_KEYS,
        'date': {'type': 'DATE', 'field': 'GAME_DATE', 'transform': 'safe_str'},
        'opponent': {'type': 'TEXT', 'field': 'MATCHUP', 'transform': 'safe_str'},
        'points': {'type': 'INTEGER', 'field': 'PTS', 'transform': 'safe_int', 'default': 0},
        'rebounds': {'type': 'INTEGER', 'field': 'REB', 'transform': 'safe_int'},
        'assists': {'type': 'INTEGER', 'field': 'AST', 'transform': 'safe_int'},
        'steals': {'type': 'INTEGER', 'field': 'STL', 'transform': 'safe_int'},
        'turnovers': {'type': 'INTEGER', 'field': 'TOV', 'transform': 'safe_int'},
        'fg2m': {'type': 'INTEGER', 'difference': ['FGM', 'FG3M']},
        'fg2a': {'type': 'INTEGER', 'difference': ['FGA', 'FG3A']},
        'fg3m': {'type': 'INTEGER', 'field': 'FG3M', 'transform': 'safe_int', 'default': 0},
        'fg3a': {'type': 'INTEGER', 'field': 'FG3A', 'transform': 'safe_int', 'default': 0},
        'ft_points': {'type': 'INTEGER', 'field': 'FTM', 'transform': 'safe_int', 'default': 0},
        'fta': {'type': 'INTEGER', 'field': 'FTA', 'transform': 'safe_int', 'default': 0},
        **_shooting_efficiency('FGM', 'FG3M', 'FGA', 'FTA', 'PTS'),
    }
    if include_player_only:
        columns['blocks'] = {'type': 'INTEGER', 'field': 'BLK', 'transform': 'safe_int'}
        columns['minutes'] = {'type': 'REAL', 'field': 'MIN', 'transform': 'safe_float'}
        columns['plus_minus'] = {'type': 'REAL', 'field': 'PLUS_MINUS', 'transform': 'safe_float'}
    return columns


def _pbp_game_log():
    """Columns for pbpstats get-game-logs rows (one entity per request)."""
    return {
        'entity_id': {'type': 'BIGINT', 'nullable': False, 'context': 'entity_id'},
        'game_id': {'type': 'TEXT', 'nullable': False, 'field': 'GameId', 'transform': 'safe_str'},
        **_SEASON_KEYS,
        'date': {'type': 'DATE', 'field': 'Date', 'transform': 'safe_str'},
        'opponent': {'type': 'TEXT', 'field': 'Opponent', 'transform': 'safe_str'},
        'points': {'type': 'INTEGER', 'field': 'Points', 'transform': 'safe_int', 'default': 0},
        'rebounds': {'type': 'INTEGER', 'field': 'Rebounds', 'transform': 'safe_int'},
        'assists': {'type': 'INTEGER', 'field': 'Assists', 'transform': 'safe_int'},
        'steals': {'type': 'INTEGER', 'field': 'Steals', 'transform': 'safe_int'},
        'blocks': {'type': 'INTEGER', 'field': 'Blocks', 'transform': 'safe_int'},
        'turnovers': {'type': 'INTEGER', 'field': 'Turnovers', 'transform': 'safe_int'},
        'minutes': {'type': 'REAL', 'field': 'Minutes', 'transform': 'safe_float'},
        'fg2m': {'type': 'INTEGER', 'field': 'FG2M', 'transform': 'safe_int', 'default': 0},
        'fg2a': {'type': 'INTEGER', 'field': 'FG2A', 'transform': 'safe_int', 'default': 0},
        'fg3m': {'type': 'INTEGER', 'field': 'FG3M', 'transform': 'safe_int', 'default': 0},
        'fg3a': {'type': 'INTEGER', 'field': 'FG3A', 'transform': 'safe_int', 'default': 0},
        'ft_points': {'type': 'INTEGER', 'field': 'FtPoints', 'transform': 'safe_int', 'default': 0},
        'fta': {'type': 'INTEGER', 'field': 'FTA', 'transform': 'safe_int', 'default': 0},
        'plus_minus': {'type': 'REAL', 'field': 'PlusMinus', 'transform': 'safe_float'},
        **_shooting_efficiency(['FG2M', 'FG3M'], 'FG3M', ['FG2A', 'FG3A'], 'FTA', 'Points'),
    }


def _pbp_totals_common():
    return {
        'entity_id': {'type': 'BIGINT', 'nullable': False, 'field': 'EntityId', 'transform': 'parse_id'},
        'season': {'type': 'TEXT', 'nullable': False, 'context': 'season'},
        'season_type': {'type': 'TEXT', 'nullable': False, 'context': 'season_type', 'transform': 'season_type'},
        'name': {'type': 'TEXT', 'field': 'Name', 'transform': 'safe_str'},
        'team_abbreviation': {'type': 'TEXT', 'field': 'TeamAbbreviation', 'transform': 'safe_str'},
        'games_played': {'type': 'INTEGER', 'field': 'GamesPlayed', 'transform': 'safe_int'},
        'minutes': {'type': 'REAL', 'field': 'Minutes', 'transform': 'safe_float'},
        'points': {'type': 'INTEGER', 'field': 'Points', 'transform': 'safe_int'},
        'assists': {'type': 'INTEGER', 'field': 'Assists', 'transform': 'safe_int'},
        'rebounds': {'type': 'INTEGER', 'field': 'Rebounds', 'transform': 'safe_int'},
        'steals': {'type': 'INTEGER', 'field': 'Steals', 'transform': 'safe_int'},
        'blocks': {'type': 'INTEGER', 'field': 'Blocks', 'transform': 'safe_int'},
        'turnovers': {'type': 'INTEGER', 'field': 'Turnovers', 'transform': 'safe_int'},
        'fg2m': {'type': 'INTEGER', 'field': 'FG2M', 'transform': 'safe_int'},
        'fg2a': {'type': 'INTEGER', 'field': 'FG2A', 'transform': 'safe_int'},
        'fg3m': {'type': 'INTEGER', 'field': 'FG3M', 'transform': 'safe_int'},
        'fg3a': {'type': 'INTEGER', 'field': 'FG3A', 'transform': 'safe_int'},
        'ft_points': {'type': 'INTEGER', 'field': 'FtPoints', 'transform': 'safe_int'},
        'fta': {'type': 'INTEGER', 'field': 'FTA', 'transform': 'safe_int'},
        'plus_minus': {'type': 'REAL', 'field': 'PlusMinus', 'transform': 'safe_float'},
        'off_poss': {'type': 'INTEGER', 'field': 'OffPoss', 'transform': 'safe_int'},
        'def_poss': {'type': 'INTEGER', 'field': 'DefPoss', 'transform': 'safe_int'},
        **_shooting_efficiency(['FG2M', 'FG3M'], 'FG3M', ['FG2A', 'FG3A'], 'FTA', 'Points',
                               prefer_efg='EfgPct', prefer_ts='TsPct'),
    }


# ============================================================================
# SYNC TARGETS
# ============================================================================

TABLES_CONFIG = {
    'player_game_logs': {
        'table': 'player_game_logs',
        'conflict_keys': ['entity_id', 'game_id'],
        'columns': _nba_stats_game_log('PLAYER_ID', include_player_only=True),
    },
    'team_game_logs': {
        'table': 'team_game_logs',
        'conflict_keys': ['entity_id', 'game_id'],
        'columns': _nba_stats_game_log('TEAM_ID', include_player_only=False),
    },
    'player_game_logs_pbp': {
        'table': 'player_game_logs',
        'conflict_keys': ['entity_id', 'game_id'],
        'columns': _pbp_game_log(),
    },
    'team_game_logs_pbp': {
        'table': 'team_game_logs',
        'conflict_keys': ['entity_id', 'game_id'],
        'columns': _pbp_game_log(),
    },
    'pbp_player_totals': {
        'table': 'pbp_player_totals',
        'conflict_keys': ['entity_id', 'season', 'season_type'],
        'columns': {
            **_pbp_totals_common(),
            'team_id': {'type': 'BIGINT', 'field': 'TeamId', 'transform': 'parse_id'},
            'usage': {'type': 'REAL', 'field': 'Usage', 'transform': 'safe_float'},
        },
    },
    'pbp_team_totals': {
        'table': 'pbp_team_totals',
        'conflict_keys': ['entity_id', 'season', 'season_type'],
        'columns': {
            **_pbp_totals_common(),
            'at_rim_fgm': {'type': 'INTEGER', 'field': 'AtRimFGM', 'transform': 'safe_int'},
            'at_rim_fga': {'type': 'INTEGER', 'field': 'AtRimFGA', 'transform': 'safe_int'},
            'short_mid_range_fgm': {'type': 'INTEGER', 'field': 'ShortMidRangeFGM', 'transform': 'safe_int'},
            'short_mid_range_fga': {'type': 'INTEGER', 'field': 'ShortMidRangeFGA', 'transform': 'safe_int'},
            'long_mid_range_fgm': {'type': 'INTEGER', 'field': 'LongMidRangeFGM', 'transform': 'safe_int'},
            'long_mid_range_fga': {'type': 'INTEGER', 'field': 'LongMidRangeFGA', 'transform': 'safe_int'},
            'off_rebounds': {'type': 'INTEGER', 'field': 'OffRebounds', 'transform': 'safe_int'},
            'def_rebounds': {'type': 'INTEGER', 'field': 'DefRebounds', 'transform': 'safe_int'},
            'opponent_points': {'type': 'INTEGER', 'field': 'OpponentPoints', 'transform': 'safe_int'},
            'net_rating': {
                'type': 'REAL',
                'derived': {
                    'metric': 'net_rating',
                    'inputs': {'pts': 'Points', 'opp_pts': 'OpponentPoints',
                               'off_poss': 'OffPoss', 'def_poss': 'DefPoss'},
                },
            },
        },
    },
    'player_stats': {
        'table': 'player_stats',
        'conflict_keys': ['nba_id'],
        'columns': {
            'nba_id': {'type': 'BIGINT', 'nullable': False, 'field': 'nba_id', 'transform': 'parse_id'},
            'name': {'type': 'TEXT', 'nullable': False, 'field': 'Name', 'transform': 'safe_str'},
            'short_name': {'type': 'TEXT', 'field': 'ShortName', 'transform': 'safe_str'},
            'team_id': {'type': 'BIGINT', 'field': 'TeamId', 'transform': 'parse_id'},
            'team_abbreviation': {'type': 'TEXT', 'field': 'TeamAbbreviation', 'transform': 'safe_str'},
            'pos2': {'type': 'TEXT', 'field': 'Pos2', 'transform': 'safe_str'},
            'year': {'type': 'INTEGER', 'nullable': False, 'field': 'year', 'transform': 'safe_int',
                     'default_context': 'year'},
            'games_played': {'type': 'INTEGER', 'field': 'GamesPlayed', 'transform': 'safe_int'},
            'minutes': {'type': 'REAL', 'field': 'Minutes', 'transform': 'safe_float'},
            'mpg': {'type': 'REAL', 'field': 'MPG', 'transform': 'safe_float'},
            'ts_pct': {'type': 'REAL', 'field': 'TS_pct', 'transform': 'safe_float'},
            'three_p_perc': {'type': 'REAL', 'field': '3P_PERC', 'transform': 'safe_float'},
            'ft_perc': {'type': 'REAL', 'field': 'FT_PERC', 'transform': 'safe_float'},
            'dpm': {'type': 'REAL', 'field': 'dpm', 'transform': 'safe_float'},
            'o_dpm': {'type': 'REAL', 'field': 'o_dpm', 'transform': 'safe_float'},
            'd_dpm': {'type': 'REAL', 'field': 'd_dpm', 'transform': 'safe_float'},
            'three_year_rapm': {'type': 'REAL', 'field': 'three_year_rapm', 'transform': 'safe_float'},
            'pts75': {'type': 'REAL', 'field': 'Pts75', 'transform': 'safe_float'},
            'offensive_archetype': {'type': 'TEXT', 'field': 'Offensive Archetype', 'transform': 'safe_str'},
        },
    },
    'game_stats': {
        'table': 'game_stats',
        'conflict_keys': ['game_id'],
        'columns': {
            'game_id': {'type': 'TEXT', 'nullable': False, 'field': 'gameid', 'transform': 'safe_str'},
            'game_date': {'type': 'DATE', 'context': 'game_date'},
            'home_team_abbr': {'type': 'TEXT', 'nullable': False, 'field': 'home', 'transform': 'team_abbr'},
            'away_team_abbr': {'type': 'TEXT', 'nullable': False, 'field': 'away', 'transform': 'team_abbr'},
            'home_score': {'type': 'INTEGER', 'field': 'home', 'transform': 'team_score'},
            'away_score': {'type': 'INTEGER', 'field': 'away', 'transform': 'team_score'},
            'team_data': {'type': 'JSONB', 'context': 'team_data'},
            'player_data': {'type': 'JSONB', 'context': 'player_data'},
            'game_flow_data': {'type': 'JSONB', 'context': 'game_flow_data'},
        },
    },
    'team_records': {
        'table': 'team_records',
        'conflict_keys': ['team_abbr', 'season'],
        'columns': {
            'team_abbr': {'type': 'TEXT', 'nullable': False, 'field': 'team', 'transform': 'safe_str'},
            'season': {'type': 'TEXT', 'nullable': False, 'context': 'season'},
            'team_id': {'type': 'BIGINT', 'field': 'team_id', 'transform': 'parse_id'},
            'wins': {'type': 'INTEGER', 'nullable': False, 'field': 'wins', 'transform': 'safe_int', 'default': 0},
            'losses': {'type': 'INTEGER', 'nullable': False, 'field': 'losses', 'transform': 'safe_int', 'default': 0},
            'home_wins': {'type': 'INTEGER', 'field': 'home_wins', 'transform': 'safe_int', 'default': 0},
            'home_losses': {'type': 'INTEGER', 'field': 'home_losses', 'transform': 'safe_int', 'default': 0},
            'away_wins': {'type': 'INTEGER', 'field': 'away_wins', 'transform': 'safe_int', 'default': 0},
            'away_losses': {'type': 'INTEGER', 'field': 'away_losses', 'transform': 'safe_int', 'default': 0},
            'last10_wins': {'type': 'INTEGER', 'field': 'last10_wins', 'transform': 'safe_int', 'default': 0},
            'last10_losses': {'type': 'INTEGER', 'field': 'last10_losses', 'transform': 'safe_int', 'default': 0},
            'streak': {'type': 'TEXT', 'field': 'streak', 'transform': 'safe_str'},
        },
    },
}

# Tables the per-entity game log sync reads known IDs from
ENTITY_SOURCES = {
    'Player': {'totals_table': 'pbp_player_totals', 'target': 'player_game_logs_pbp'},
    'Team': {'totals_table': 'pbp_team_totals', 'target': 'team_game_logs_pbp'},
}
