"""Shared CLI plumbing for the sync jobs."""
import argparse
from typing import Callable, List, Optional

from elarosync.config.settings import BACKENDS, NBA_CONFIG, load_settings
from elarosync.lib.errors import ConfigError, SyncError
from elarosync.lib.http import UpstreamClient
from elarosync.lib.log import log
from elarosync.lib.store import create_store
from elarosync.lib.transforms import season_type


def build_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument('--backend', choices=BACKENDS,
                        help='Destination store (default: SYNC_BACKEND or supabase)')
    parser.add_argument('--dry-run', action='store_true',
                        help='Fetch and map everything, keep rows in memory only')
    return parser


def add_season_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('season', nargs='?', default=NBA_CONFIG['current_season'],
                        help="Season, e.g. 2025-26 (default: current season)")
    parser.add_argument('season_type', nargs='?', default=NBA_CONFIG['default_season_type'],
                        type=season_type,
                        help="Season type, 'Regular Season' or 'Regular+Season' (default: 'Regular Season')")


def open_store(args: argparse.Namespace):
    """Store for the parsed flags. Raises ConfigError before any network call."""
    backend = 'memory' if getattr(args, 'dry_run', False) else getattr(args, 'backend', None)
    return create_store(load_settings(backend))


def close_store(store) -> None:
    close = getattr(store, 'close', None)
    if close is not None:
        close()


def run_job(job: Callable[[argparse.Namespace, object, UpstreamClient], int],
            parser: argparse.ArgumentParser, argv: Optional[List[str]] = None,
            client: Optional[UpstreamClient] = None) -> int:
    """
    Parse args, open the store and run job(args, store, client).

    Returns the process exit code: the job's own code, or 1 for a
    configuration error or an aborted phase.
    """
    args = parser.parse_args(argv)
    try:
        store = open_store(args)
    except ConfigError as e:
        log(str(e), "ERROR")
        return 1

    try:
        return job(args, store, client or UpstreamClient())
    except SyncError as e:
        log(f"Sync failed: {e}", "ERROR")
        return 1
    finally:
        close_store(store)
