"""Tests for the live-game poller."""
import threading
from unittest.mock import Mock

from elarosync.lib.cache import TTLCache
from elarosync.lib.errors import UpstreamError
from elarosync.lib.poller import LiveGamePoller, payload_is_final

LIVE = {'status': 'Q3 4:12', 'game_data': {}}
FINAL = {'status': 'Final               ', 'game_data': {}}


class TestPollOnce:

    def test_final_payload_is_cached_forever(self):
        fetch = Mock(return_value=FINAL)
        poller = LiveGamePoller(fetch, interval=0)
        assert poller.poll_once('0022500001') == FINAL
        assert poller.poll_once('0022500001') == FINAL
        fetch.assert_called_once_with('0022500001')

    def test_live_payload_is_refetched(self):
        fetch = Mock(side_effect=[LIVE, FINAL])
        poller = LiveGamePoller(fetch, interval=0)
        assert poller.poll_once('g') == LIVE
        assert poller.poll_once('g') == FINAL
        assert fetch.call_count == 2

    def test_in_flight_request_is_not_duplicated(self):
        entered = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch(key):
            calls.append(key)
            entered.set()
            release.wait(5)
            return LIVE

        poller = LiveGamePoller(slow_fetch, interval=0)
        poller._last['g'] = {'status': 'Q2 1:00'}
        worker = threading.Thread(target=poller.poll_once, args=('g',))
        worker.start()
        assert entered.wait(5)

        assert poller.poll_once('g') == {'status': 'Q2 1:00'}
        release.set()
        worker.join(5)
        assert calls == ['g']
        assert poller.last_value('g') == LIVE

    def test_fetch_errors_propagate_and_release_the_key(self):
        fetch = Mock(side_effect=[UpstreamError('team for g', 502), LIVE])
        poller = LiveGamePoller(fetch, interval=0)
        try:
            poller.poll_once('g')
        except UpstreamError:
            pass
        assert poller.poll_once('g') == LIVE

    def test_injected_cache_is_used(self):
        cache = TTLCache()
        cache.set('g', FINAL)
        fetch = Mock()
        assert LiveGamePoller(fetch, cache=cache).poll_once('g') == FINAL
        fetch.assert_not_called()


class TestStart:

    def test_polls_until_final(self):
        fetch = Mock(side_effect=[LIVE, LIVE, FINAL])
        updates = []
        handle = LiveGamePoller(fetch, interval=0.01).start('g', updates.append)
        assert handle.wait(5)
        assert updates == [LIVE, LIVE, FINAL]

    def test_cancel_stops_polling(self):
        fetch = Mock(return_value=LIVE)
        first = threading.Event()
        handle = LiveGamePoller(fetch, interval=60).start('g', lambda payload: first.set())
        assert first.wait(5)
        handle.cancel(timeout=5)
        assert handle.cancelled
        assert not handle.is_alive()
        assert fetch.call_count == 1

    def test_errors_go_to_callback_and_polling_continues(self):
        fetch = Mock(side_effect=[UpstreamError('team for g', 503), FINAL])
        errors, updates = [], []
        handle = LiveGamePoller(fetch, interval=0.01).start('g', updates.append, on_error=errors.append)
        assert handle.wait(5)
        assert len(errors) == 1
        assert updates == [FINAL]


def test_payload_is_final():
    assert payload_is_final(FINAL)
    assert payload_is_final({'status': 'final/OT'})
    assert not payload_is_final(LIVE)
    assert not payload_is_final(None)
