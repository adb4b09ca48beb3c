"""Tests for schema DDL generation."""
from elarosync.lib.schema import collect_tables, generate_schema_ddl


def test_every_destination_table_is_created():
    ddl = generate_schema_ddl()
    for table in ('player_game_logs', 'team_game_logs', 'pbp_player_totals', 'pbp_team_totals',
                  'player_stats', 'game_stats', 'team_records'):
        assert f"CREATE TABLE IF NOT EXISTS {table} (" in ddl


def test_conflict_keys_become_unique_constraints():
    ddl = generate_schema_ddl()
    assert 'CONSTRAINT player_game_logs_conflict_key UNIQUE (entity_id, game_id)' in ddl
    assert 'CONSTRAINT pbp_team_totals_conflict_key UNIQUE (entity_id, season, season_type)' in ddl
    assert 'CONSTRAINT team_records_conflict_key UNIQUE (team_abbr, season)' in ddl


def test_metadata_columns_on_every_table():
    ddl = generate_schema_ddl()
    assert ddl.count('  raw_data JSONB') == len(collect_tables())
    assert ddl.count('  synced_at TIMESTAMPTZ NOT NULL DEFAULT now()') == len(collect_tables())


def test_shared_tables_merge_columns():
    tables = collect_tables()
    team_logs = tables['team_game_logs']
    assert team_logs['writers'] == 2
    assert 'minutes' in team_logs['columns']
    assert 'entity_id' in team_logs['columns']

    ddl = generate_schema_ddl()
    assert '  minutes REAL NULL' in ddl
    assert '  entity_id BIGINT NOT NULL' in ddl


def test_index_names():
    ddl = generate_schema_ddl()
    assert ('CREATE INDEX IF NOT EXISTS idx_player_game_logs_entity_id_season_season_type '
            'ON player_game_logs (entity_id, season, season_type);') in ddl
    assert 'CREATE INDEX IF NOT EXISTS idx_game_stats_game_date ON game_stats (game_date);' in ddl
