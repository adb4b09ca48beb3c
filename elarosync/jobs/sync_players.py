"""
Sync player metrics (DPM, RAPM, archetypes) from databallr.

databallr returns every qualifying player of a season in one request.

Usage:
    elarosync-players [year]
"""
import sys
from datetime import datetime

from elarosync.jobs.common import build_parser, run_job
from elarosync.lib.mapper import get_sync_target
from elarosync.lib.orchestrator import SyncRun
from elarosync.lib.sources import fetch_databallr_players


def sync_players(args, store, client) -> int:
    run = SyncRun(store, 'player')
    run.begin(f"year: {args.year}")
    run.sync_bulk(
        'databallr players',
        lambda: fetch_databallr_players(client, args.year),
        get_sync_target('player_stats'),
        {'year': args.year},
    )
    return run.finish()


def main(argv=None, client=None) -> int:
    parser = build_parser('Sync databallr player metrics')
    parser.add_argument('year', nargs='?', type=int, default=datetime.now().year,
                        help='Season year (default: current calendar year)')
    return run_job(sync_players, parser, argv, client)


if __name__ == '__main__':
    sys.exit(main())
