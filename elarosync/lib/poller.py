"""
elarostats sync - Live Game Poller

Polls one game's live payload on a fixed interval until it is final.
Finished games never change, so their payloads are cached without expiry and
served without another request.
"""
import threading
from typing import Any, Callable, Dict, Hashable, Optional

from elarosync.config.settings import SYNC_CONFIG
from elarosync.lib.cache import TTLCache
from elarosync.lib.errors import UpstreamError
from elarosync.lib.log import log
from elarosync.lib.sources import is_final_time


def payload_is_final(payload: Any) -> bool:
    """A live payload is final when its status text starts with 'final'."""
    if not isinstance(payload, dict):
        return False
    return is_final_time(payload.get('status'))


class PollHandle:
    """Running poll loop; cancel() stops it before the next tick."""

    def __init__(self, key: Hashable, thread: threading.Thread, stop_event: threading.Event):
        self.key = key
        self.thread = thread
        self._stop_event = stop_event

    def cancel(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self.thread is not threading.current_thread():
            self.thread.join(timeout)

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def is_alive(self) -> bool:
        return self.thread.is_alive()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop ends; True if it did within timeout."""
        self.thread.join(timeout)
        return not self.thread.is_alive()


class LiveGamePoller:
    """
    Args:
        fetch: key -> payload (one upstream request)
        interval: Seconds between polls
        is_final: payload -> bool; final payloads are cached and end polling
        cache: Cache for final payloads (default: never expires)
    """

    def __init__(self, fetch: Callable[[Hashable], Any],
                 interval: float = SYNC_CONFIG['live_poll_interval'],
                 is_final: Callable[[Any], bool] = payload_is_final,
                 cache: Optional[TTLCache] = None):
        self.fetch = fetch
        self.interval = interval
        self.is_final = is_final
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=None)
        self._lock = threading.Lock()
        self._in_flight: Dict[Hashable, bool] = {}
        self._last: Dict[Hashable, Any] = {}

    def last_value(self, key: Hashable) -> Any:
        return self._last.get(key)

    def poll_once(self, key: Hashable) -> Any:
        """
        Current payload for key.

        A cached final payload is returned without a request. While a fetch
        for the same key is already running, the last known payload is
        returned instead of starting another.
        """
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        with self._lock:
            if self._in_flight.get(key):
                return self._last.get(key)
            self._in_flight[key] = True

        try:
            payload = self.fetch(key)
        finally:
            with self._lock:
                self._in_flight[key] = False

        self._last[key] = payload
        if self.is_final(payload):
            self.cache.set(key, payload)
        return payload

    def start(self, key: Hashable, on_update: Callable[[Any], None],
              on_error: Optional[Callable[[Exception], None]] = None) -> PollHandle:
        """
        Poll key in a background thread, every interval seconds.

        on_update gets each payload. An UpstreamError is passed to on_error
        (or logged) and polling continues on the next tick. The loop ends
        after a final payload or when the handle is cancelled.
        """
        stop_event = threading.Event()

        def run():
            while not stop_event.is_set():
                try:
                    payload = self.poll_once(key)
                except UpstreamError as e:
                    if on_error is not None:
                        on_error(e)
                    else:
                        log(f"Live poll for {key} failed: {e}", "WARN")
                else:
                    if payload is not None and not stop_event.is_set():
                        on_update(payload)
                    if payload is not None and self.is_final(payload):
                        return
                stop_event.wait(self.interval)

        thread = threading.Thread(target=run, name=f"live-poll-{key}", daemon=True)
        handle = PollHandle(key, thread, stop_event)
        thread.start()
        return handle
