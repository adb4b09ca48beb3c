"""
Cache completed games from pbpstats live endpoints into game_stats.

Runs after the night's games end. Games already in game_stats are skipped, so
re-running is cheap. For each new final game three payloads are stored: team
box score, player box score and game flow.

The scoreboard carries no date, so game_date is the US Eastern scoreboard day
at sync time. Runs before NBA_CONFIG["scoreboard_rollover_hour"] (6 AM ET)
count as the previous night, which covers an after-midnight cron slot. A run
later in the morning stamps the previous night's games with the new day.

Usage:
    elarosync-games
"""
import sys
from datetime import datetime, timedelta
from typing import List, Set
from zoneinfo import ZoneInfo

from elarosync.config.settings import NBA_CONFIG
from elarosync.jobs.common import build_parser, run_job
from elarosync.lib.errors import MappingError, StoreError, UpstreamError
from elarosync.lib.log import log
from elarosync.lib.mapper import get_sync_target, map_record
from elarosync.lib.orchestrator import SyncRun
from elarosync.lib.sources import ParsedGame, fetch_live_game, fetch_todays_games, parse_scoreboard


def scoreboard_date(now=None) -> str:
    """Scoreboard day in US Eastern time; final games are stamped with it."""
    tz = ZoneInfo(NBA_CONFIG['timezone'])
    local = (now or datetime.now(tz)).astimezone(tz)
    if local.hour < NBA_CONFIG['scoreboard_rollover_hour']:
        local -= timedelta(days=1)
    return local.date().isoformat()


def already_synced_ids(store, game_ids: List[str]) -> Set[str]:
    """IDs of games already cached; a failed lookup is treated as none cached."""
    try:
        rows = store.select('game_stats', columns=['game_id'], filters={'game_id': game_ids})
    except StoreError as e:
        log(f"Could not check existing game_stats rows: {e.message}", "WARN")
        return set()
    return {str(row['game_id']) for row in rows}


def sync_game(run: SyncRun, client, game: ParsedGame, game_date: str) -> None:
    log(f"  Fetching {game.matchup} ({game.game_id})...")
    context = {
        'game_date': game_date,
        'team_data': fetch_live_game(client, game.game_id, 'team'),
        'player_data': fetch_live_game(client, game.game_id, 'player'),
        'game_flow_data': fetch_live_game(client, game.game_id, 'game-flow'),
    }
    target = get_sync_target('game_stats')
    row = map_record(target, game.raw, context=context, now=run.clock())
    run.upsert(target, [row])
    log(f"  Saved {game.matchup}")


def sync_games(args, store, client, now=None) -> int:
    run = SyncRun(store, 'game stats')
    run.begin()

    log("Fetching games from pbpstats...")
    scoreboard = fetch_todays_games(client)
    game_date = scoreboard_date(now)
    final_games = [game for game in parse_scoreboard(scoreboard) if game.is_final]

    if not final_games:
        log("No completed games found. Nothing to sync.")
        return run.finish()
    log(f"Found {len(final_games)} completed game(s).")

    synced = already_synced_ids(store, [game.game_id for game in final_games])
    to_sync = [game for game in final_games if game.game_id not in synced]
    if not to_sync:
        log("All completed games are already cached. Nothing to do.")
        return run.finish()
    log(f"Syncing {len(to_sync)} new game(s) ({len(synced)} already cached)")

    for index, game in enumerate(to_sync):
        if index > 0 and run.entity_delay:
            run.sleep(run.entity_delay)
        try:
            sync_game(run, client, game, game_date)
        except (UpstreamError, StoreError, MappingError) as e:
            log(f"  Failed to sync {game.game_id}: {e}", "ERROR")
            run.record(failed=1, failures=[game.game_id])
            continue
        run.record(succeeded=1)

    return run.finish()


def main(argv=None, client=None) -> int:
    parser = build_parser('Cache completed games from pbpstats')
    return run_job(sync_games, parser, argv, client)


if __name__ == '__main__':
    sys.exit(main())
