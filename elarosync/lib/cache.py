"""
In-process TTL cache.

Entries are passed in explicitly (no module-level singleton), so every job and
every test owns its own cache and its own clock.
"""
import threading
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from elarosync.config.tables import ENTITY_SOURCES
from elarosync.lib.log import log
from elarosync.lib.teams import all_team_ids

_MISSING = object()


class TTLCache:
    """
    Key -> value with a fixed time-to-live.

    Args:
        ttl_seconds: Lifetime of an entry; None keeps entries until invalidated
        clock: Monotonic clock, injectable for tests
    """

    def __init__(self, ttl_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[Hashable, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _expires_at(self) -> Optional[float]:
        if self.ttl_seconds is None:
            return None
        return self.clock() + self.ttl_seconds

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            value, expires_at = entry
            if expires_at is not None and self.clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self._expires_at())

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Cached value, or loader() stored under key. Loader errors are not cached."""
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def purge_expired(self) -> None:
        with self._lock:
            now = self.clock()
            expired = [key for key, (_, expires_at) in self._entries.items()
                       if expires_at is not None and now >= expires_at]
            for key in expired:
                del self._entries[key]

    def __len__(self) -> int:
        """Number of live entries."""
        self.purge_expired()
        return len(self._entries)


# ============================================================================
# KNOWN ENTITY IDS
# ============================================================================

def known_entity_ids(store, entity_type: str, season: str, season_type: str,
                     cache: Optional[TTLCache] = None) -> List[int]:
    """
    Entity IDs already synced into the totals table for a season.

    Teams fall back to the static NBA team list when the totals table has no
    rows yet.
    """
    if entity_type not in ENTITY_SOURCES:
        raise ValueError(f"Unknown entity type: {entity_type}")

    def load():
        table = ENTITY_SOURCES[entity_type]['totals_table']
        rows = store.select(table, columns=['entity_id'],
                            filters={'season': season, 'season_type': season_type},
                            order=['entity_id'])
        ids = sorted({int(row['entity_id']) for row in rows if row.get('entity_id') is not None})
        if not ids and entity_type == 'Team':
            log(f"  {table} has no rows for {season} {season_type}, using the static team list", "WARN")
            ids = all_team_ids()
        return ids

    if cache is None:
        return load()
    return cache.get_or_load((entity_type, season, season_type), load)
