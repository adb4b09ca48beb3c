"""
Sync per-game logs for every NBA player and team from the NBA Stats API.

Two requests in total: playergamelogs and teamgamelogs each return every
game log of the season in one response.

Usage:
    elarosync-gamelogs [season] [season_type]
"""
import sys

from elarosync.jobs.common import add_season_arguments, build_parser, run_job
from elarosync.lib.mapper import get_sync_target
from elarosync.lib.orchestrator import SyncRun
from elarosync.lib.sources import fetch_nba_game_logs

PHASES = [
    ('Player', 'player_game_logs'),
    ('Team', 'team_game_logs'),
]


def sync_gamelogs(args, store, client) -> int:
    run = SyncRun(store, 'game logs')
    run.begin(f"{args.season}, {args.season_type}")
    context = {'season': args.season, 'season_type': args.season_type}

    for entity_type, target_name in PHASES:
        run.sync_bulk(
            f"{entity_type.lower()} game logs",
            lambda entity_type=entity_type: fetch_nba_game_logs(
                client, entity_type, args.season, args.season_type),
            get_sync_target(target_name),
            context,
        )
    return run.finish()


def main(argv=None, client=None) -> int:
    parser = build_parser('Sync NBA Stats player and team game logs')
    add_season_arguments(parser)
    return run_job(sync_gamelogs, parser, argv, client)


if __name__ == '__main__':
    sys.exit(main())
