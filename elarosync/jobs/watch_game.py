"""
Follow one live game from the terminal until it goes final.

Prints the team box score line on every poll (default every 30s) and stops
on a final status or Ctrl-C.

Usage:
    elarosync-watch GAME_ID [--interval SECONDS]
"""
import argparse
import sys

from elarosync.config.settings import SYNC_CONFIG
from elarosync.lib.errors import UpstreamError
from elarosync.lib.http import UpstreamClient
from elarosync.lib.log import log
from elarosync.lib.poller import LiveGamePoller, payload_is_final
from elarosync.lib.sources import fetch_live_game


def describe(payload) -> str:
    """Status line of a live payload, e.g. 'Q3 4:12' or 'Final'."""
    if not isinstance(payload, dict):
        return "[no data]"
    status = str(payload.get('status') or '?').strip()
    teams = payload.get('game_data')
    if isinstance(teams, dict) and teams:
        return f"[{status}] {len(teams)} section(s)"
    return f"[{status}]"


def build_poller(client: UpstreamClient, interval: float) -> LiveGamePoller:
    return LiveGamePoller(
        lambda game_id: fetch_live_game(client, game_id, 'team'),
        interval=interval,
        is_final=payload_is_final,
    )


def main(argv=None, client=None) -> int:
    parser = argparse.ArgumentParser(description='Poll a live game until it is final')
    parser.add_argument('game_id', help='pbpstats / NBA game ID')
    parser.add_argument('--interval', type=float, default=SYNC_CONFIG['live_poll_interval'],
                        help='Seconds between polls (default: 30)')
    args = parser.parse_args(argv)

    poller = build_poller(client or UpstreamClient(), args.interval)
    errors = []

    def on_error(e: UpstreamError):
        errors.append(e)
        log(f"Poll failed: {e}", "WARN")

    handle = poller.start(args.game_id, lambda payload: log(describe(payload)), on_error=on_error)
    try:
        while not handle.wait(1.0):
            pass
    except KeyboardInterrupt:
        log("Stopping...")
        handle.cancel()
        return 0

    final = poller.cache.get(args.game_id)
    if final is None:
        return 1
    log(f"Final: {describe(final)}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
