"""Shared fixtures: fake HTTP sessions, in-memory store, frozen clock."""
import json
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from elarosync.lib.http import UpstreamClient
from elarosync.lib.store import MemoryStore

FROZEN_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_response(status=200, body=None, reason=None):
    """Mock with the parts of requests.Response the code reads."""
    response = Mock()
    response.status_code = status
    response.ok = 200 <= status < 400
    response.reason = reason if reason is not None else ('OK' if status < 400 else 'Error')
    if isinstance(body, (dict, list)):
        response.text = json.dumps(body)
        response.json.return_value = body
    elif body is None:
        response.text = ''
        response.json.side_effect = ValueError('No JSON object could be decoded')
    else:
        response.text = body
        response.json.side_effect = ValueError('Expecting value')
    return response


class RoutedSession:
    """
    Session whose get() answers by URL substring.

    Each route holds a list of responses consumed in order (the last one
    repeats), or an exception to raise.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def add(self, fragment, *responses):
        self.routes[fragment] = list(responses)

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({'url': url, 'params': params, 'headers': headers})
        for fragment, responses in self.routes.items():
            if fragment in url:
                outcome = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError(f"Unexpected GET {url}")

    def calls_to(self, fragment):
        return [call for call in self.calls if fragment in call['url']]


@pytest.fixture
def frozen_clock():
    return lambda: FROZEN_NOW


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def session():
    return RoutedSession()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def client(session, sleeps):
    return UpstreamClient(session=session, sleep=sleeps.append)
