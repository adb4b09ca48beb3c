"""Chunked upserts into a destination store."""
from typing import Any, Dict, List, Sequence, Union

from elarosync.config.settings import SYNC_CONFIG
from elarosync.lib.errors import StoreError
from elarosync.lib.log import log
from elarosync.lib.mapper import normalize_conflict_keys


def chunked(rows: Sequence[Any], size: int) -> List[Sequence[Any]]:
    if size < 1:
        raise ValueError("batch size must be positive")
    return [rows[i:i + size] for i in range(0, len(rows), size)]


def upsert_batch(store, table: str, rows: List[Dict[str, Any]],
                 conflict_keys: Union[str, Sequence[str]],
                 batch_size: int = SYNC_CONFIG['batch_size']) -> int:
    """
    Upsert rows in consecutive chunks, in order.

    Args:
        store: Destination store (upsert(table, rows, conflict_keys))
        table: Destination table name
        rows: Mapped rows
        conflict_keys: Conflict column(s), list or comma-joined string
        batch_size: Rows per request

    Returns:
        Number of rows written

    Raises:
        StoreError: a chunk was rejected. Later chunks are not attempted,
            chunks before it stay committed.
    """
    conflict_spec = normalize_conflict_keys(conflict_keys)
    total = len(rows)
    if total == 0:
        log(f"[{table}] Nothing to upsert")
        return 0

    start = 0
    for chunk in chunked(rows, batch_size):
        end = start + len(chunk)
        try:
            store.upsert(table, list(chunk), conflict_spec)
        except StoreError as e:
            log(f"[{table}] Upsert of rows {start + 1}–{end} failed: {e.message}", "ERROR")
            raise
        except Exception as e:
            log(f"[{table}] Upsert of rows {start + 1}–{end} failed: {e}", "ERROR")
            raise StoreError(table, str(e)) from e
        log(f"[{table}] Upserted rows {start + 1}–{end} of {total}")
        start = end
    return total
