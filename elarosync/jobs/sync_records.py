"""
Rebuild team win/loss records and streaks from cached games.

Reads game_stats, keeps the games of one season, and upserts one team_records
row per team.

Usage:
    elarosync-records [season]
"""
import sys
from datetime import date
from typing import List

from elarosync.config.settings import NBA_CONFIG, season_for_date
from elarosync.jobs.common import build_parser, run_job
from elarosync.lib.log import log
from elarosync.lib.mapper import get_sync_target
from elarosync.lib.orchestrator import SyncRun
from elarosync.lib.standings import GameResult, compute_team_records
from elarosync.lib.teams import team_id_for

GAME_COLUMNS = ['game_id', 'game_date', 'home_team_abbr', 'away_team_abbr', 'home_score', 'away_score']


def load_season_games(store, season: str) -> List[GameResult]:
    games = []
    for row in store.select('game_stats', columns=GAME_COLUMNS, order=['game_date', 'game_id']):
        game_date = row.get('game_date')
        if not game_date:
            continue
        if isinstance(game_date, str):
            game_date = date.fromisoformat(game_date[:10])
        if season_for_date(game_date) == season:
            games.append(GameResult.from_row(row))
    return games


def team_record_rows(games: List[GameResult]) -> List[dict]:
    return [record.to_record(team_id_for(team))
            for team, record in compute_team_records(games).items()]


def sync_records(args, store, client) -> int:
    run = SyncRun(store, 'team records')
    run.begin(args.season)
    games = load_season_games(store, args.season)
    log(f"Found {len(games)} cached game(s) for {args.season}")
    run.sync_bulk(
        'team records',
        lambda: team_record_rows(games),
        get_sync_target('team_records'),
        {'season': args.season},
    )
    return run.finish()


def main(argv=None, client=None) -> int:
    parser = build_parser('Compute team records from cached games')
    parser.add_argument('season', nargs='?', default=NBA_CONFIG['current_season'],
                        help='Season, e.g. 2025-26 (default: current season)')
    return run_job(sync_records, parser, argv, client)


if __name__ == '__main__':
    sys.exit(main())
