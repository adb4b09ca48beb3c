"""End-to-end tests for the job entry points (fake HTTP, in-memory store)."""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import make_response
from elarosync.jobs import print_schema, sync_entity_gamelogs, sync_games, sync_gamelogs
from elarosync.jobs import sync_pbpstats, sync_players, sync_records


@pytest.fixture
def use_store(monkeypatch, memory_store):
    monkeypatch.setattr('elarosync.jobs.common.create_store', lambda settings: memory_store)
    return memory_store


EASTERN = ZoneInfo('America/New_York')


def result_set(headers, rows):
    return {'resultSets': [{'headers': headers, 'rowSet': rows}]}


class TestConfiguration:

    def test_missing_supabase_env_exits_before_network(self, monkeypatch, client, session, capsys):
        monkeypatch.delenv('SUPABASE_URL', raising=False)
        monkeypatch.delenv('SUPABASE_SERVICE_KEY', raising=False)
        assert sync_pbpstats.main(['--backend', 'supabase'], client=client) == 1
        assert session.calls == []
        assert 'Missing required env vars: SUPABASE_URL and SUPABASE_SERVICE_KEY' in capsys.readouterr().err

    def test_missing_database_url(self, monkeypatch, client):
        monkeypatch.delenv('DATABASE_URL', raising=False)
        assert sync_players.main(['2026', '--backend', 'postgres'], client=client) == 1


class TestGameLogs:

    def test_bulk_sync(self, use_store, client, session):
        session.add('playergamelogs', make_response(200, result_set(
            ['PLAYER_ID', 'GAME_ID', 'PTS', 'FGM', 'FGA', 'FG3M', 'FG3A', 'FTA'],
            [[201939, '0022500001', 14, 5, 10, 2, 6, 4], [2544, '0022500001', 20, 8, 16, 1, 3, 4]],
        )))
        session.add('teamgamelogs', make_response(200, result_set(
            ['TEAM_ID', 'GAME_ID', 'PTS'], [[1610612744, '0022500001', 118]],
        )))

        assert sync_gamelogs.main(['2025-26', 'Regular Season', '--dry-run'], client=client) == 0
        assert len(use_store.rows('player_game_logs')) == 2
        assert use_store.rows('team_game_logs')[0]['entity_id'] == 1610612744
        assert use_store.rows('player_game_logs')[0]['efg_pct'] == 0.6

    def test_bulk_failure_aborts(self, use_store, client, session):
        session.add('playergamelogs', make_response(400, reason='Bad Request'))
        session.add('teamgamelogs', make_response(200, result_set(['TEAM_ID', 'GAME_ID'], [])))

        assert sync_gamelogs.main(['2025-26', '--dry-run'], client=client) == 1
        assert session.calls_to('teamgamelogs') == []
        assert use_store.upsert_calls == []


class TestEntityGameLogs:

    def test_per_entity_continues_after_failure(self, use_store, client, session):
        use_store.upsert('pbp_team_totals', [
            {'entity_id': 1610612737, 'season': '2025-26', 'season_type': 'Regular Season'},
            {'entity_id': 1610612738, 'season': '2025-26', 'season_type': 'Regular Season'},
        ], 'entity_id,season,season_type')
        session.add('get-game-logs',
                    make_response(404, reason='Not Found'),
                    make_response(200, {'multi_row_table_data': [{'GameId': '0022500001', 'Points': 101}]}))

        code = sync_entity_gamelogs.main(['2025-26', 'Regular Season', '--entity', 'Team', '--dry-run'],
                                         client=client)
        assert code == 0
        rows = use_store.rows('team_game_logs')
        assert [row['entity_id'] for row in rows] == [1610612738]

    def test_malformed_entity_keeps_earlier_rows(self, use_store, client, session):
        use_store.upsert('pbp_team_totals', [
            {'entity_id': 1610612737, 'season': '2025-26', 'season_type': 'Regular Season'},
            {'entity_id': 1610612738, 'season': '2025-26', 'season_type': 'Regular Season'},
        ], 'entity_id,season,season_type')
        session.add('get-game-logs',
                    make_response(200, {'multi_row_table_data': [{'GameId': '0022500001', 'Points': 101}]}),
                    make_response(200, {'multi_row_table_data': ['not-a-record']}))

        code = sync_entity_gamelogs.main(['2025-26', 'Regular Season', '--entity', 'Team', '--dry-run'],
                                         client=client)
        assert code == 0
        assert [row['entity_id'] for row in use_store.rows('team_game_logs')] == [1610612737]

    def test_escaped_season_type_matches_totals(self, use_store, client, session):
        session.add('get-totals', make_response(200, {'multi_row_table_data': [
            {'EntityId': '203999', 'Name': 'Nikola Jokic', 'Points': 2000},
        ]}))
        session.add('get-game-logs', make_response(200, {'multi_row_table_data': [
            {'GameId': '0022500001', 'Points': 31},
        ]}))
        args = ['2025-26', 'Regular+Season', '--dry-run']

        assert sync_pbpstats.main(args, client=client) == 0
        assert sync_entity_gamelogs.main(args + ['--entity', 'Player'], client=client) == 0

        logs = use_store.rows('player_game_logs')
        assert [row['entity_id'] for row in logs] == [203999]
        assert logs[0]['season_type'] == 'Regular Season'
        assert session.calls_to('get-game-logs')[0]['params']['SeasonType'] == 'Regular Season'


class TestPbpstats:

    def test_totals_sync(self, use_store, client, session):
        session.add('get-totals', make_response(200, {'multi_row_table_data': [
            {'EntityId': '1610612760', 'Name': 'Oklahoma City', 'Points': 4800, 'OpponentPoints': 4300,
             'OffPoss': 4000, 'DefPoss': 4000},
        ]}))
        assert sync_pbpstats.main(['2025-26', 'Regular+Season', '--dry-run'], client=client) == 0
        team = use_store.rows('pbp_team_totals')[0]
        assert team['season_type'] == 'Regular Season'
        assert team['net_rating'] == 12.5
        assert len(use_store.rows('pbp_player_totals')) == 1


class TestGames:

    SCOREBOARD = {'live_games': 1, 'game_data': [
        {'gameid': '0022500001', 'time': 'Final', 'home': 'PHX 110', 'away': 'ORL 99'},
        {'gameid': '0022500002', 'time': 'Final   ', 'home': 'BOS 101', 'away': 'NYK 104'},
        {'gameid': '0022500003', 'time': 'Final', 'home': 'DEN 120', 'away': 'UTA 99'},
        {'gameid': '0022500004', 'time': 'Q3 4:12', 'home': 'LAL 70', 'away': 'LAC 68'},
    ]}

    def test_syncs_new_final_games(self, use_store, client, session):
        use_store.upsert('game_stats', [{'game_id': '0022500001'}], 'game_id')
        session.add('live/games/nba', make_response(200, self.SCOREBOARD))
        session.add('/live/game/0022500002/', make_response(200, {'status': 'Final', 'game_data': {}}))
        session.add('/live/game/0022500003/', make_response(404, reason='Not Found'))

        assert sync_games.main(['--dry-run'], client=client) == 0

        saved = {row['game_id']: row for row in use_store.rows('game_stats')}
        assert set(saved) == {'0022500001', '0022500002'}
        game = saved['0022500002']
        assert (game['home_team_abbr'], game['home_score']) == ('BOS', 101)
        assert (game['away_team_abbr'], game['away_score']) == ('NYK', 104)
        assert game['team_data'] == {'status': 'Final', 'game_data': {}}
        assert game['game_date'] is not None
        assert session.calls_to('/live/game/0022500001/') == []
        assert session.calls_to('/live/game/0022500004/') == []

    def test_every_game_failing_exits_nonzero(self, use_store, client, session):
        session.add('live/games/nba', make_response(200, {'live_games': 0, 'game_data': [
            {'gameid': '0022500002', 'time': 'Final', 'home': 'BOS 101', 'away': 'NYK 104'},
        ]}))
        session.add('/live/game/', make_response(404, reason='Not Found'))
        assert sync_games.main(['--dry-run'], client=client) == 1

    def test_scoreboard_date_rolls_back_before_dawn(self):
        assert sync_games.scoreboard_date(datetime(2026, 1, 16, 4, 30, tzinfo=timezone.utc)) == '2026-01-15'
        assert sync_games.scoreboard_date(datetime(2026, 1, 16, 5, 59, tzinfo=EASTERN)) == '2026-01-15'
        assert sync_games.scoreboard_date(datetime(2026, 1, 16, 6, 0, tzinfo=EASTERN)) == '2026-01-16'
        assert sync_games.scoreboard_date(datetime(2026, 1, 15, 23, 45, tzinfo=EASTERN)) == '2026-01-15'

    def test_no_final_games(self, use_store, client, session):
        session.add('live/games/nba', make_response(200, {'live_games': 0, 'game_data': []}))
        assert sync_games.main(['--dry-run'], client=client) == 0
        assert use_store.upsert_calls == []


class TestRecords:

    def test_records_from_cached_games(self, use_store, client):
        use_store.upsert('game_stats', [
            {'game_id': '1', 'game_date': '2026-01-01', 'home_team_abbr': 'BOS', 'away_team_abbr': 'NYK',
             'home_score': 110, 'away_score': 100},
            {'game_id': '2', 'game_date': '2026-01-03', 'home_team_abbr': 'NYK', 'away_team_abbr': 'BOS',
             'home_score': 95, 'away_score': 101},
            {'game_id': '3', 'game_date': '2025-03-01', 'home_team_abbr': 'NYK', 'away_team_abbr': 'BOS',
             'home_score': 120, 'away_score': 90},
        ], 'game_id')

        assert sync_records.main(['2025-26', '--dry-run'], client=client) == 0

        records = {row['team_abbr']: row for row in use_store.rows('team_records')}
        assert (records['BOS']['wins'], records['BOS']['losses']) == (2, 0)
        assert records['BOS']['streak'] == 'W2'
        assert records['BOS']['team_id'] == 1610612738
        assert records['NYK']['streak'] == 'L2'
        assert records['NYK']['season'] == '2025-26'


def test_print_schema(capsys):
    assert print_schema.main([]) == 0
    assert 'CREATE TABLE IF NOT EXISTS game_stats (' in capsys.readouterr().out
