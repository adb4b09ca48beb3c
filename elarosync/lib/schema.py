"""
Destination schema DDL, generated from TABLES_CONFIG.

Targets that share a table (NBA Stats and pbpstats game logs) are merged: the
table gets the union of their columns, and a column is NOT NULL only when
every target writing the table declares it NOT NULL.
"""
from collections import OrderedDict
from typing import Dict, List

from elarosync.config.tables import TABLES_CONFIG

METADATA_COLUMNS = OrderedDict([
    ('raw_data', 'JSONB'),
    ('synced_at', "TIMESTAMPTZ NOT NULL DEFAULT now()"),
])

# Extra lookup indexes beyond the conflict key
TABLE_INDEXES = {
    'player_game_logs': ['(entity_id, season, season_type)', 'date'],
    'team_game_logs': ['(entity_id, season, season_type)', 'date'],
    'pbp_player_totals': ['team_id'],
    'game_stats': ['game_date'],
}


def collect_tables() -> Dict[str, dict]:
    """table -> {'conflict_keys': [...], 'columns': {name: (type, not_null)}}"""
    tables: Dict[str, dict] = OrderedDict()
    for target in TABLES_CONFIG.values():
        table = tables.setdefault(target['table'], {
            'conflict_keys': list(target['conflict_keys']),
            'columns': OrderedDict(),
            'writers': 0,
        })
        if table['conflict_keys'] != list(target['conflict_keys']):
            raise ValueError(f"Targets writing {target['table']} disagree on the conflict key")
        table['writers'] += 1
        for name, spec in target['columns'].items():
            not_null = spec.get('nullable', True) is False
            if name in table['columns']:
                col_type, seen_not_null, count = table['columns'][name]
                table['columns'][name] = (col_type, seen_not_null and not_null, count + 1)
            else:
                table['columns'][name] = (spec['type'], not_null, 1)
    return tables


def generate_table_ddl(table_name: str, table: dict) -> List[str]:
    statements = [f"-- {table_name.upper()} TABLE", f"CREATE TABLE IF NOT EXISTS {table_name} ("]

    column_defs = []
    for name, (col_type, not_null, count) in table['columns'].items():
        nullable = 'NOT NULL' if not_null and count == table['writers'] else 'NULL'
        column_defs.append(f"  {name} {col_type} {nullable}")
    for name, definition in METADATA_COLUMNS.items():
        column_defs.append(f"  {name} {definition}")

    conflict = ', '.join(table['conflict_keys'])
    column_defs.append(f"  CONSTRAINT {table_name}_conflict_key UNIQUE ({conflict})")

    statements.append(',\n'.join(column_defs))
    statements.append(");")

    for idx in TABLE_INDEXES.get(table_name, []):
        if idx.startswith('('):
            idx_name = f"idx_{table_name}_{'_'.join(idx.strip('()').replace(' ', '').split(','))}"
            statements.append(f"CREATE INDEX IF NOT EXISTS {idx_name} ON {table_name} {idx};")
        else:
            statements.append(f"CREATE INDEX IF NOT EXISTS idx_{table_name}_{idx} ON {table_name} ({idx});")
    statements.append("")
    return statements


def generate_schema_ddl() -> str:
    """Complete CREATE TABLE / CREATE INDEX script for every destination table."""
    statements = []
    for table_name, table in collect_tables().items():
        statements.extend(generate_table_ddl(table_name, table))
    return '\n'.join(statements)
