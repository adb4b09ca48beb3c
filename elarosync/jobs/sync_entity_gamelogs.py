"""
Sync game logs one player or team at a time from pbpstats.

Entity IDs come from the synced totals tables (run elarosync-pbpstats first).
A failing entity is skipped and reported; re-running fills the gaps.

Usage:
    elarosync-entity-gamelogs [season] [season_type] [--entity Player|Team]
"""
import sys

from elarosync.config.settings import SYNC_CONFIG
from elarosync.config.tables import ENTITY_SOURCES
from elarosync.jobs.common import add_season_arguments, build_parser, run_job
from elarosync.lib.cache import TTLCache, known_entity_ids
from elarosync.lib.log import log
from elarosync.lib.mapper import get_sync_target
from elarosync.lib.orchestrator import SyncRun
from elarosync.lib.sources import fetch_pbp_game_logs


def sync_entity_gamelogs(args, store, client, cache=None) -> int:
    cache = cache or TTLCache(SYNC_CONFIG['entity_cache_ttl'])
    run = SyncRun(store, 'entity game logs')
    run.begin(f"{args.season}, {args.season_type}")
    context = {'season': args.season, 'season_type': args.season_type}

    entity_types = [args.entity] if args.entity else list(ENTITY_SOURCES)
    for entity_type in entity_types:
        ids = known_entity_ids(store, entity_type, args.season, args.season_type, cache)
        if not ids:
            log(f"No known {entity_type.lower()} IDs for {args.season} {args.season_type}. "
                f"Run elarosync-pbpstats first.", "WARN")
            continue
        run.sync_per_entity(
            f"{entity_type} game logs",
            ids,
            lambda entity_id, entity_type=entity_type: fetch_pbp_game_logs(
                client, entity_type, entity_id, args.season, args.season_type),
            get_sync_target(ENTITY_SOURCES[entity_type]['target']),
            context,
        )
    return run.finish()


def main(argv=None, client=None) -> int:
    parser = build_parser('Sync pbpstats game logs per player / team')
    add_season_arguments(parser)
    parser.add_argument('--entity', choices=list(ENTITY_SOURCES),
                        help='Only sync this entity type (default: both)')
    return run_job(sync_entity_gamelogs, parser, argv, client)


if __name__ == '__main__':
    sys.exit(main())
