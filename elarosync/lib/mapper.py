"""
elarostats sync - Row Mapping

Turns one upstream record into the row shape of a destination table, driven
entirely by TABLES_CONFIG. The wall clock is the only impure input and can be
injected.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from elarosync.config.tables import TABLES_CONFIG
from elarosync.lib.errors import MappingError
from elarosync.lib.stats import METRICS
from elarosync.lib.transforms import RawRecord, execute_transform

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC, so string order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _as_number(value: float) -> Union[int, float]:
    return int(value) if float(value).is_integer() else value


def normalize_conflict_keys(conflict_keys: Union[str, Sequence[str]]) -> str:
    """['entity_id', 'game_id'] or 'entity_id, game_id' -> 'entity_id,game_id'."""
    if isinstance(conflict_keys, str):
        parts = conflict_keys.split(',')
    else:
        parts = list(conflict_keys)
    keys = [part.strip() for part in parts if part and part.strip()]
    if not keys:
        raise ValueError("At least one conflict key column is required")
    return ','.join(keys)


# ============================================================================
# COLUMN RESOLUTION
# ============================================================================

def _resolve_derived(spec: Dict[str, Any], record: RawRecord) -> Optional[float]:
    prefer = spec.get('prefer_field')
    if prefer and record.has(prefer):
        return record.value(prefer, 'safe_float')

    metric = spec['metric']
    if metric not in METRICS:
        raise ValueError(f"Unknown derived metric: {metric}")
    func, arg_names = METRICS[metric]
    inputs = spec['inputs']
    return func(**{arg: record.number(inputs[arg]) for arg in arg_names})


def resolve_column(spec: Dict[str, Any], record: RawRecord, context: Mapping[str, Any]) -> Any:
    """Value of one destination column for one record."""
    if 'derived' in spec:
        return _resolve_derived(spec['derived'], record)

    if 'difference' in spec:
        minuend, subtrahend = spec['difference']
        return _as_number(record.difference(minuend, subtrahend))

    if 'context' in spec:
        value = context.get(spec['context'])
        if value is not None and spec.get('transform'):
            value = execute_transform(value, spec['transform'])
        return value

    value = record.value(spec['field'], spec.get('transform'), spec.get('default'))
    if value is None and 'default_context' in spec:
        value = context.get(spec['default_context'])
    return value


# ============================================================================
# SYNC TARGET
# ============================================================================

@dataclass(frozen=True)
class SyncTarget:
    """One destination table plus the recipe for filling it."""

    name: str
    table: str
    conflict_keys: Tuple[str, ...]
    columns: Mapping[str, Dict[str, Any]] = field(repr=False)

    @property
    def conflict_spec(self) -> str:
        return normalize_conflict_keys(self.conflict_keys)

    @property
    def required_columns(self) -> List[str]:
        return [name for name, spec in self.columns.items() if spec.get('nullable', True) is False]

    def map(self, record: Dict[str, Any], context: Optional[Mapping[str, Any]] = None,
            now: Optional[datetime] = None) -> Dict[str, Any]:
        return map_record(self, record, context=context, now=now)


def map_record(target: SyncTarget, record: Dict[str, Any],
               context: Optional[Mapping[str, Any]] = None,
               now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Map one upstream record to a destination row.

    Args:
        target: Destination description
        record: Upstream record (open mapping of field -> JSON value)
        context: Job-level values (season, season_type, year, payloads, ...)
        now: Timestamp for synced_at (default: current UTC time)

    Returns:
        Row with every configured column plus raw_data and synced_at

    Raises:
        MappingError: the record is not a mapping, or a NOT NULL column
            resolved to None
    """
    context = context or {}
    if not isinstance(record, dict):
        raise MappingError(
            f"{target.table}: upstream record must be a mapping, got {type(record).__name__}"
        )
    raw = RawRecord(record)

    row = {}
    for column, spec in target.columns.items():
        row[column] = resolve_column(spec, raw, context)

    missing = [column for column in target.required_columns if row[column] is None]
    if missing:
        raise MappingError(
            f"{target.table}: record is missing required column(s) {', '.join(missing)}"
        )

    row['raw_data'] = record
    row['synced_at'] = format_timestamp(now or utc_now())
    return row


def map_records(target: SyncTarget, records: Sequence[Dict[str, Any]],
                context: Optional[Mapping[str, Any]] = None,
                clock: Clock = utc_now) -> List[Dict[str, Any]]:
    """Map a list of records with one shared synced_at stamp per call."""
    now = clock()
    return [map_record(target, record, context=context, now=now) for record in records]


def get_sync_target(name: str) -> SyncTarget:
    """Build the SyncTarget for a TABLES_CONFIG entry."""
    if name not in TABLES_CONFIG:
        raise ValueError(f"No sync target named '{name}'")
    config = TABLES_CONFIG[name]
    return SyncTarget(
        name=name,
        table=config['table'],
        conflict_keys=tuple(config['conflict_keys']),
        columns=config['columns'],
    )
