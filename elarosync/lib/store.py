"""
elarostats sync - Destination Stores

Every store offers the same two primitives:
    upsert(table, rows, conflict_keys)  insert or update on the conflict key
    select(table, columns, filters, order)  read rows back (known IDs, cached games)

SupabaseStore talks PostgREST over HTTPS, PostgresStore writes with psycopg2,
MemoryStore backs --dry-run and the tests.
"""
import copy
import json
from typing import Any, Dict, List, Optional, Sequence

import psycopg2
import requests
from psycopg2.extras import Json, RealDictCursor, execute_values

from elarosync.config.settings import SYNC_CONFIG, Settings
from elarosync.lib.errors import ConfigError, StoreError
from elarosync.lib.log import log
from elarosync.lib.mapper import normalize_conflict_keys


def quote_column(col_name: str) -> str:
    """Quote column names that need quoting (start with digit or have special chars)."""
    if col_name[0].isdigit() or not col_name.replace('_', '').isalnum():
        return f'"{col_name}"'
    return col_name


class SupabaseStore:
    """Supabase (PostgREST) store authenticated with the service key."""

    def __init__(self, base_url: str, api_key: str, timeout: int = 60, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            'apikey': api_key,
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    def _request(self, method, table, params=None, json_body=None, extra_headers=None):
        headers = dict(self.headers)
        headers.update(extra_headers or {})
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = self.session.request(
                method, url, headers=headers, params=params, json=json_body, timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(table, str(e)) from e

        if not response.ok:
            raise StoreError(table, self._error_detail(response))
        return response

    @staticmethod
    def _error_detail(response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return f"{response.status_code} {response.text}".strip()
        if isinstance(payload, dict) and payload.get('message'):
            return payload['message']
        return json.dumps(payload)

    def upsert(self, table: str, rows: List[Dict[str, Any]], conflict_keys: str) -> None:
        if not rows:
            return
        self._request(
            'POST', table,
            params={'on_conflict': normalize_conflict_keys(conflict_keys)},
            json_body=rows,
            extra_headers={'Prefer': 'resolution=merge-duplicates,return=minimal'},
        )

    def select(self, table: str, columns: Sequence[str] = ('*',),
               filters: Optional[Dict[str, Any]] = None,
               order: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """Read rows, following PostgREST range pagination until a short page."""
        page_size = SYNC_CONFIG['select_page_size']
        params = {'select': ','.join(columns)}
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                params[column] = f"in.({','.join(str(v) for v in value)})"
            else:
                params[column] = f"eq.{value}"
        if order:
            params['order'] = ','.join(f"{column}.asc" for column in order)

        rows = []
        offset = 0
        while True:
            response = self._request(
                'GET', table, params=params,
                extra_headers={'Range-Unit': 'items', 'Range': f"{offset}-{offset + page_size - 1}"},
            )
            page = response.json() if response.text else []
            rows.extend(page)
            if len(page) < page_size:
                return rows
            offset += page_size


class PostgresStore:
    """Direct Postgres store: execute_values upserts, one commit per chunk."""

    def __init__(self, dsn: str, connect=psycopg2.connect):
        self.dsn = dsn
        self._connect = connect
        self.conn = None

    def connection(self):
        if self.conn is None or self.conn.closed:
            self.conn = self._connect(self.dsn, application_name='elarosync')
        return self.conn

    def close(self):
        if self.conn is not None and not self.conn.closed:
            self.conn.close()
        self.conn = None

    @staticmethod
    def _adapt(value):
        if isinstance(value, (dict, list)):
            return Json(value)
        return value

    def upsert(self, table: str, rows: List[Dict[str, Any]], conflict_keys: str) -> None:
        """
        Bulk UPSERT using execute_values with ON CONFLICT.

        A failing chunk is rolled back on its own; earlier commits stay.
        """
        if not rows:
            return
        conflict_columns = normalize_conflict_keys(conflict_keys).split(',')
        columns = list(rows[0].keys())
        update_columns = [c for c in columns if c not in conflict_columns]

        cols_str = ', '.join(quote_column(c) for c in columns)
        conflict_str = ', '.join(quote_column(c) for c in conflict_columns)
        update_str = ', '.join(f"{quote_column(c)} = EXCLUDED.{quote_column(c)}" for c in update_columns)
        query = f"""
            INSERT INTO {table} ({cols_str})
            VALUES %s
            ON CONFLICT ({conflict_str})
            DO UPDATE SET {update_str}
        """
        data = [tuple(self._adapt(row.get(c)) for c in columns) for row in rows]

        conn = self.connection()
        try:
            with conn.cursor() as cursor:
                execute_values(cursor, query, data, page_size=len(data))
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise StoreError(table, str(e).strip()) from e

    def select(self, table: str, columns: Sequence[str] = ('*',),
               filters: Optional[Dict[str, Any]] = None,
               order: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        cols_str = ', '.join(c if c == '*' else quote_column(c) for c in columns)
        query = f"SELECT {cols_str} FROM {table}"
        params = []
        clauses = []
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                clauses.append(f"{quote_column(column)} = ANY(%s)")
                params.append(list(value))
            else:
                clauses.append(f"{quote_column(column)} = %s")
                params.append(value)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        if order:
            query += " ORDER BY " + ", ".join(quote_column(c) for c in order)

        conn = self.connection()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                rows = [dict(row) for row in cursor.fetchall()]
            conn.commit()
            return rows
        except psycopg2.Error as e:
            conn.rollback()
            raise StoreError(table, str(e).strip()) from e

    def execute_ddl(self, ddl: str) -> None:
        conn = self.connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(ddl)
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            raise StoreError('schema', str(e).strip()) from e


class MemoryStore:
    """Dict-backed store with the same upsert semantics, for dry runs and tests."""

    def __init__(self):
        self.tables: Dict[str, Dict[tuple, Dict[str, Any]]] = {}
        self.upsert_calls: List[tuple] = []

    def upsert(self, table: str, rows: List[Dict[str, Any]], conflict_keys: str) -> None:
        keys = normalize_conflict_keys(conflict_keys).split(',')
        self.upsert_calls.append((table, len(rows), ','.join(keys)))
        stored = self.tables.setdefault(table, {})
        for row in rows:
            missing = [k for k in keys if k not in row]
            if missing:
                raise StoreError(table, f"row has no value for conflict column(s) {', '.join(missing)}")
            key = tuple(row[k] for k in keys)
            merged = dict(stored.get(key, {}))
            merged.update(copy.deepcopy(row))
            stored[key] = merged

    def select(self, table: str, columns: Sequence[str] = ('*',),
               filters: Optional[Dict[str, Any]] = None,
               order: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        rows = list(self.tables.get(table, {}).values())
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                allowed = set(value)
                rows = [r for r in rows if r.get(column) in allowed]
            else:
                rows = [r for r in rows if r.get(column) == value]
        if order:
            rows.sort(key=lambda r: tuple('' if r.get(c) is None else r.get(c) for c in order))
        if '*' in columns:
            return [dict(r) for r in rows]
        return [{c: r.get(c) for c in columns} for r in rows]

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return list(self.tables.get(table, {}).values())


def create_store(settings: Settings):
    """Store for the configured backend."""
    if settings.backend == 'supabase':
        return SupabaseStore(settings.supabase_url, settings.supabase_key, timeout=settings.timeout)
    if settings.backend == 'postgres':
        return PostgresStore(settings.database_url)
    if settings.backend == 'memory':
        log("Dry run: rows are kept in memory and discarded at exit", "WARN")
        return MemoryStore()
    raise ConfigError(f"Unknown backend '{settings.backend}'")
