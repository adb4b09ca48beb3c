"""
elarostats sync - Sync Orchestration

A SyncRun ties fetch -> map -> upsert together for one job and keeps the
tallies the exit code is derived from.

    bulk phases        any failure aborts the job
    per-entity loops   an entity's upstream failure is logged and skipped
"""
import time
import traceback
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from elarosync.config.settings import SYNC_CONFIG
from elarosync.lib.errors import MappingError, StoreError, SyncError, UpstreamError
from elarosync.lib.log import log, log_banner, progress
from elarosync.lib.mapper import SyncTarget, map_records, utc_now
from elarosync.lib.upsert import upsert_batch


def handle_sync_error(e: Exception, operation_name: str) -> None:
    """Log a failure with a short diagnosis; traceback only for unexpected errors."""
    error_type = type(e).__name__
    error_msg = str(e)

    if isinstance(e, UpstreamError) and e.status == 429:
        diagnosis = "Rate limited - wait before re-running"
    elif isinstance(e, UpstreamError) and e.status is not None and e.status >= 500:
        diagnosis = "Upstream server error persisted through every retry"
    elif 'timed out' in error_msg.lower() or 'timeout' in error_msg.lower():
        diagnosis = "API timeout - consider raising API_TIMEOUT or checking upstream status"
    elif isinstance(e, StoreError):
        diagnosis = f"Destination rejected the write - {e.message}"
    elif isinstance(e, MappingError):
        diagnosis = f"Upstream record shape changed - {error_msg}"
    else:
        diagnosis = f"{error_type}: {error_msg[:200]}"

    log(f"Failed {operation_name}: {diagnosis}", "ERROR")

    if not isinstance(e, SyncError):
        log(traceback.format_exc().rstrip(), "ERROR")


class SyncRun:
    """
    Per-job tally of succeeded and failed entities plus rows written per table.

    Args:
        store: Destination store
        name: Job name used in the banner and summary
        batch_size: Rows per upsert request
        entity_delay: Seconds to wait between per-entity requests
        sleep: Sleep function, injectable for tests
        clock: UTC clock stamped into synced_at
    """

    def __init__(self, store, name: str,
                 batch_size: int = SYNC_CONFIG['batch_size'],
                 entity_delay: float = SYNC_CONFIG['per_entity_delay'],
                 sleep: Callable[[float], None] = time.sleep,
                 clock=utc_now):
        self.store = store
        self.name = name
        self.batch_size = batch_size
        self.entity_delay = entity_delay
        self.sleep = sleep
        self.clock = clock
        self.succeeded = 0
        self.failed = 0
        self.failures: List[str] = []
        self.rows_written: Dict[str, int] = OrderedDict()
        self.started_at = time.monotonic()

    def begin(self, subtitle: Optional[str] = None) -> None:
        title = f"elarostats {self.name} sync"
        log_banner(f"{title} ({subtitle})" if subtitle else title)

    def upsert(self, target: SyncTarget, rows: List[Dict[str, Any]]) -> int:
        written = upsert_batch(self.store, target.table, rows, target.conflict_spec,
                               batch_size=self.batch_size)
        self.rows_written[target.table] = self.rows_written.get(target.table, 0) + written
        return written

    def record(self, succeeded: int = 0, failed: int = 0, failures: Iterable[str] = ()) -> None:
        """Add outcomes from a job that runs its own loop."""
        self.succeeded += succeeded
        self.failed += failed
        self.failures.extend(failures)

    # ------------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------------

    def sync_bulk(self, label: str, fetch: Callable[[], List[Dict[str, Any]]],
                  target: SyncTarget, context: Optional[Mapping[str, Any]] = None) -> int:
        """
        Fetch every record in one request, map, upsert.

        Any failure is logged and re-raised, aborting the job.
        """
        log(f"Fetching {label}...")
        try:
            records = fetch()
            rows = map_records(target, records, context=context, clock=self.clock)
            written = self.upsert(target, rows)
        except Exception as e:
            handle_sync_error(e, f"syncing {label}")
            self.failed += 1
            raise
        self.succeeded += 1
        log(f"  {label}: {written} rows upserted into {target.table}")
        return written

    def sync_per_entity(self, label: str, entity_ids: List[Any],
                        fetch_one: Callable[[Any], List[Dict[str, Any]]],
                        target: SyncTarget,
                        context: Optional[Mapping[str, Any]] = None,
                        context_key: str = 'entity_id') -> int:
        """
        One request per entity, sleeping entity_delay between requests.

        An entity whose request fails upstream, or whose records cannot be
        mapped, is counted as failed and the loop moves on. Rows from every
        successful entity are upserted together afterwards; a store failure
        there aborts.
        """
        base_context = dict(context or {})
        rows: List[Dict[str, Any]] = []
        total = len(entity_ids)
        ok = failed = 0
        log(f"Fetching {label} for {total} entities...")

        for index, entity_id in enumerate(progress(entity_ids, label, total=total)):
            if index > 0 and self.entity_delay:
                self.sleep(self.entity_delay)
            try:
                records = fetch_one(entity_id)
                entity_context = dict(base_context, **{context_key: entity_id})
                rows.extend(map_records(target, records, context=entity_context, clock=self.clock))
            except (UpstreamError, MappingError) as e:
                failed += 1
                self.failed += 1
                self.failures.append(str(entity_id))
                log(f"  {label} {entity_id}: {e}", "WARN")
                continue
            ok += 1
            self.succeeded += 1

        log(f"  {label}: {ok} entities fetched, {failed} failed, {len(rows)} rows mapped")
        return self.upsert(target, rows)

    # ------------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------------

    @property
    def exit_code(self) -> int:
        if self.failed > 0 and self.succeeded == 0:
            return 1
        return 0

    def finish(self) -> int:
        """Log the summary and return the process exit code."""
        elapsed = time.monotonic() - self.started_at
        log("=" * 70)
        log(f"Done - {self.succeeded} succeeded, {self.failed} failed ({elapsed:.1f}s)")
        for table, count in self.rows_written.items():
            log(f"  {table}: {count} rows")

        if self.failed:
            shown = ', '.join(self.failures[:5])
            more = f" (+{len(self.failures) - 5} more)" if len(self.failures) > 5 else ''
            log(f"{self.failed} item(s) failed{': ' + shown + more if shown else ''}. "
                f"Re-run the job to fill the gaps.", "WARN")
        return self.exit_code
