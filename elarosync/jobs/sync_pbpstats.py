"""
Sync season totals for every player and team from pbpstats.

Usage:
    elarosync-pbpstats [season] [season_type]
"""
import sys

from elarosync.jobs.common import add_season_arguments, build_parser, run_job
from elarosync.lib.mapper import get_sync_target
from elarosync.lib.orchestrator import SyncRun
from elarosync.lib.sources import fetch_pbp_totals

PHASES = [
    ('Player', 'pbp_player_totals'),
    ('Team', 'pbp_team_totals'),
]


def sync_pbpstats(args, store, client) -> int:
    run = SyncRun(store, 'pbpstats')
    run.begin(f"{args.season}, {args.season_type}")
    context = {'season': args.season, 'season_type': args.season_type}

    for entity_type, target_name in PHASES:
        run.sync_bulk(
            f"{entity_type} totals",
            lambda entity_type=entity_type: fetch_pbp_totals(
                client, entity_type, args.season, args.season_type),
            get_sync_target(target_name),
            context,
        )
    return run.finish()


def main(argv=None, client=None) -> int:
    parser = build_parser('Sync pbpstats player and team totals')
    add_season_arguments(parser)
    return run_job(sync_pbpstats, parser, argv, client)


if __name__ == '__main__':
    sys.exit(main())
