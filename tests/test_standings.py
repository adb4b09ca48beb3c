"""Tests for team records and streaks."""
from elarosync.lib.standings import GameResult, compute_team_records, streak_label, summarize_results

W, L = True, False


def game(game_id, game_date, home, away, home_score, away_score):
    return GameResult(game_id, game_date, home, away, home_score, away_score)


class TestStreak:

    def test_win_streak(self):
        assert streak_label([W, W, L, W, W, W]) == 'W3'

    def test_loss_streak(self):
        assert streak_label([L, L]) == 'L2'

    def test_single_game(self):
        assert streak_label([L]) == 'L1'

    def test_no_games(self):
        record = summarize_results('BOS', [])
        assert (record.wins, record.losses) == (0, 0)
        assert record.streak == 'W0'
        assert record.win_pct is None


class TestSummarize:

    def test_last_ten_uses_most_recent_games(self):
        results = [L] * 5 + [W] * 8 + [L] * 2
        record = summarize_results('OKC', results)
        assert (record.wins, record.losses) == (8, 7)
        assert (record.last10_wins, record.last10_losses) == (8, 2)
        assert record.streak == 'L2'


class TestComputeTeamRecords:

    def test_splits_and_streaks(self):
        games = [
            game('3', '2026-01-05', 'BOS', 'NYK', 99, 104),
            game('1', '2026-01-01', 'BOS', 'NYK', 110, 100),
            game('2', '2026-01-03', 'NYK', 'BOS', 95, 101),
        ]
        records = compute_team_records(games)

        bos = records['BOS']
        assert (bos.wins, bos.losses) == (2, 1)
        assert (bos.home_wins, bos.home_losses) == (1, 1)
        assert (bos.away_wins, bos.away_losses) == (1, 0)
        assert bos.streak == 'L1'

        nyk = records['NYK']
        assert (nyk.wins, nyk.losses) == (1, 2)
        assert (nyk.home_wins, nyk.home_losses) == (0, 1)
        assert (nyk.away_wins, nyk.away_losses) == (1, 1)
        assert nyk.streak == 'W1'

    def test_ties_are_skipped(self):
        records = compute_team_records([
            game('1', '2026-01-01', 'LAL', 'LAC', 100, 100),
            game('2', '2026-01-02', 'LAL', 'LAC', 90, 80),
        ])
        assert (records['LAL'].wins, records['LAL'].losses) == (1, 0)
        assert (records['LAC'].wins, records['LAC'].losses) == (0, 1)

    def test_no_games(self):
        assert compute_team_records([]) == {}

    def test_to_record(self):
        record = compute_team_records([game('1', '2026-01-01', 'DEN', 'UTA', 120, 99)])['DEN']
        assert record.to_record(1610612743) == {
            'team': 'DEN', 'team_id': 1610612743, 'wins': 1, 'losses': 0,
            'home_wins': 1, 'home_losses': 0, 'away_wins': 0, 'away_losses': 0,
            'last10_wins': 1, 'last10_losses': 0, 'streak': 'W1',
        }

    def test_from_game_stats_row(self):
        result = GameResult.from_row({'game_id': '0022500001', 'game_date': '2026-01-01',
                                      'home_team_abbr': 'MIA', 'away_team_abbr': 'ORL',
                                      'home_score': 108, 'away_score': None})
        assert result.away_score == 0
        assert result.winner == 'MIA'
