"""In-memory per-key response cache with TTL and single-flight fetching."""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass

from .coordinator import CancelToken
from .models import CACHE_TTL_SECONDS, CANCELLED, Err, FetchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: FetchResult
    created_at: float


@dataclass(frozen=True)
class _Flight:
    future: Future
    token: CancelToken | None

    @property
    def abandoned(self) -> bool:
        return self.token is not None and self.token.cancelled


def _is_cancelled(result: FetchResult) -> bool:
    return isinstance(result, Err) and result.cancelled


class KeyedCache:
    """Maps a key (a GitHub owner) to its last fetch result for a fixed TTL.

    Concurrent callers for the same missing or expired key share one
    underlying fetch. Cancelled results are handed back to whoever waited
    for them but never stored.
    """

    def __init__(self, ttl: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._flights: dict[str, _Flight] = {}
        self.hits = 0
        self.fetches = 0

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is not None and self._clock() - entry.created_at < self.ttl:
            return entry
        return None

    def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], FetchResult],
        token: CancelToken | None = None,
    ) -> FetchResult:
        """Return the cached value for `key`, fetching it if missing or expired.

        `token` marks the fetch as belonging to a cancellable request: once it
        is cancelled, later callers stop joining that fetch and start their own.
        """
        while True:
            with self._lock:
                entry = self._live_entry(key)
                if entry is not None:
                    self.hits += 1
                    logger.debug("cache hit for %s", key)
                    return entry.value

                flight = self._flights.get(key)
                owner = flight is None or flight.abandoned
                if owner:
                    flight = _Flight(Future(), token)
                    self._flights[key] = flight
                    self.fetches += 1

            if owner:
                return self._run(key, flight, fetcher)

            logger.debug("joining in-flight fetch for %s", key)
            result = flight.future.result()
            if not _is_cancelled(result):
                return result
            if token is not None and token.cancelled:
                return result
            # The fetch we joined was superseded; try again as a fresh caller

    def _run(self, key: str, flight: _Flight, fetcher: Callable[[], FetchResult]) -> FetchResult:
        logger.debug("cache miss for %s, fetching", key)
        try:
            result = fetcher()
        except BaseException as e:
            with self._lock:
                if self._flights.get(key) is flight:
                    del self._flights[key]
            flight.future.set_exception(e)
            raise

        with self._lock:
            current = self._flights.get(key) is flight
            if current:
                del self._flights[key]
            if flight.abandoned:
                logger.debug("discarding result for %s from a cancelled request", key)
                result = CANCELLED
            elif current and not _is_cancelled(result):
                self._entries[key] = CacheEntry(key, result, self._clock())
        flight.future.set_result(result)
        return result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
