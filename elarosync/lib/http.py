"""
elarostats sync - HTTP access to upstream APIs

GET with a fixed backoff schedule for transient statuses, plus helpers for
turning NBA Stats result sets into keyed records.
"""
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from elarosync.config.settings import API_CONFIG, RETRY_CONFIG
from elarosync.lib.errors import UpstreamError
from elarosync.lib.log import log


def is_transient(status: int, retry_on_rate_limit: bool = True) -> bool:
    """Server errors always; 429 only for APIs that rate-limit with it."""
    return status >= 500 or (retry_on_rate_limit and status == 429)


def backoff_delay(attempt: int, delays: Sequence[float], fallback: float) -> float:
    """Delay before retry number attempt+1; anything past the schedule uses the fallback."""
    if attempt < len(delays):
        return delays[attempt]
    return fallback


def fetch_with_retry(
    url: str,
    label: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    max_retries: Optional[int] = None,
    delays: Optional[Sequence[float]] = None,
    retry_on_rate_limit: bool = True,
    timeout: Optional[int] = None,
    session: Optional[Any] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    GET url, retrying transient failures on a fixed schedule.

    Args:
        url: Endpoint URL
        label: Human-readable name used in warnings and errors
        params: Query parameters
        headers: Request headers
        max_retries: Retries after the first attempt (default RETRY_CONFIG, 3 -> 4 attempts)
        delays: Seconds to wait before each retry (default 10/30/60, 60 for extra attempts)
        retry_on_rate_limit: Treat 429 as transient
        timeout: Per-request timeout in seconds
        session: Object with a requests-compatible get() (default: requests module)
        sleep: Sleep function, injectable for tests

    Returns:
        The successful response

    Raises:
        UpstreamError: non-transient status, exhausted retries, or a network error
            raised by the HTTP client (network errors are not retried)
    """
    max_retries = RETRY_CONFIG['max_retries'] if max_retries is None else max_retries
    delays = RETRY_CONFIG['delays'] if delays is None else delays
    timeout = timeout or API_CONFIG['timeout_default']
    http = session or requests

    for attempt in range(max_retries + 1):
        try:
            response = http.get(url, params=params, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            raise UpstreamError(label, None, str(e)) from e

        if 200 <= response.status_code < 300:
            return response

        status = response.status_code
        reason = getattr(response, 'reason', '') or ''
        if is_transient(status, retry_on_rate_limit) and attempt < max_retries:
            delay = backoff_delay(attempt, delays, RETRY_CONFIG['fallback_delay'])
            log(f"  {label}: {status} {reason} - retrying in {delay}s "
                f"(attempt {attempt + 1}/{max_retries})...", "WARN")
            sleep(delay)
            continue

        raise UpstreamError(label, status, reason)

    # range() always ends in a return or a raise
    raise UpstreamError(label, None, 'exhausted retries')


class UpstreamClient:
    """
    Shared session, headers and retry settings for one job run.

    Jobs build one client and hand it to every source function, so tests can
    swap the session and sleep in a single place.
    """

    def __init__(self, session=None, headers=None, timeout=None,
                 max_retries=None, delays=None, sleep=time.sleep):
        self.session = session or requests.Session()
        self.headers = dict(headers or {})
        self.timeout = timeout or API_CONFIG['timeout_default']
        self.max_retries = max_retries
        self.delays = delays
        self.sleep = sleep

    def get(self, url, label, params=None, headers=None, retry_on_rate_limit=True):
        merged = dict(self.headers)
        merged.update(headers or {})
        return fetch_with_retry(
            url, label,
            params=params,
            headers=merged or None,
            max_retries=self.max_retries,
            delays=self.delays,
            retry_on_rate_limit=retry_on_rate_limit,
            timeout=self.timeout,
            session=self.session,
            sleep=self.sleep,
        )

    def get_json(self, url, label, params=None, headers=None, retry_on_rate_limit=True):
        response = self.get(url, label, params=params, headers=headers,
                            retry_on_rate_limit=retry_on_rate_limit)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(label, response.status_code, f"invalid JSON body: {e}") from e


def row_to_record(headers: List[str], row: List[Any]) -> Dict[str, Any]:
    """Key one rowSet row by the result set headers."""
    return dict(zip(headers, row))


def rows_from_result_set(payload: Dict[str, Any], index: int = 0) -> List[Dict[str, Any]]:
    """
    Project an NBA Stats response ({resultSets: [{headers, rowSet}]}) into records.

    A missing or empty row set yields an empty list.
    """
    result_sets = payload.get('resultSets') or []
    if len(result_sets) <= index:
        return []
    result_set = result_sets[index] or {}
    headers = result_set.get('headers') or []
    rows = result_set.get('rowSet') or []
    return [row_to_record(headers, row) for row in rows]
