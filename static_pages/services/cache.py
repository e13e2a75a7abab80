from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from static_pages.validators import validate_cache_key, validate_positive_duration


logger = logging.getLogger(__name__)

T = TypeVar("T")


class RefreshError(Exception):
    """Raised when the refresh function for a cache key fails."""

    def __init__(self, key: str, message: str):
        super().__init__(f"Refresh of '{key}' failed: {message}")
        self.key = key


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    key: str
    value: T
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        # An entry is already expired at exactly expires_at
        return now < self.expires_at


class _Flight:
    """An in-flight refresh that concurrent callers can wait on."""

    def __init__(self, started_at: float):
        self.started_at = started_at
        # Event.wait measures real time, independent of the cache clock
        self.wall_started = time.monotonic()
        self.waiters = 0
        self.done = threading.Event()
        self.value: Any = None
        self.error: RefreshError | None = None

    def succeed(self, value: Any) -> None:
        self.value = value
        self.done.set()

    def fail(self, error: RefreshError) -> None:
        if self.done.is_set():
            return
        self.error = error
        self.done.set()


class TimedCache:
    """Thread-safe keyed TTL cache with single-flight refresh.

    Each key holds at most one value produced by a caller-supplied refresh
    function. While a key is being refreshed, callers that already have a
    (stale) value to fall back on get it immediately; callers with nothing to
    fall back on wait for the refresh in flight instead of starting another.

    A failed revalidation keeps the previous entry and serves it again. A
    failed first fetch raises RefreshError to the refresher and all waiters.
    """

    def __init__(
        self,
        refresh_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if refresh_timeout is not None:
            refresh_timeout = validate_positive_duration(refresh_timeout, "Refresh timeout")
        self.refresh_timeout = refresh_timeout
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._flights: dict[str, _Flight] = {}
        self._lock = threading.Lock()

    def get(self, key: str, ttl_seconds: float, refresh: Callable[[], T]) -> T:
        """Return the value for ``key``, calling ``refresh`` if it has expired.

        Args:
            key: Stable identifier of the cached value
            ttl_seconds: Lifetime of a freshly refreshed value
            refresh: Zero-argument callable producing the value

        Raises:
            RefreshError: The refresh failed and no previous value exists
            ValidationError: ``key`` or ``ttl_seconds`` is invalid
        """
        key = validate_cache_key(key)
        ttl_seconds = validate_positive_duration(ttl_seconds, "TTL")

        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(now):
                return entry.value

            flight = self._flights.get(key)
            if flight is not None and self._is_overdue(flight, now):
                logger.warning(
                    "Refresh of %s exceeded %ss, abandoning it", key, self.refresh_timeout
                )
                del self._flights[key]
                flight.fail(RefreshError(key, f"timed out after {self.refresh_timeout}s"))
                flight = None

            if flight is None:
                flight = _Flight(started_at=now)
                self._flights[key] = flight
                is_refresher = True
            elif entry is not None:
                # Stale-while-revalidate: someone else is already refreshing
                return entry.value
            else:
                flight.waiters += 1
                is_refresher = False

        if is_refresher:
            return self._refresh(key, ttl_seconds, refresh, flight)
        return self._wait(key, flight)

    def peek(self, key: str) -> Optional[CacheEntry[Any]]:
        """Return the stored entry for ``key`` (fresh or stale) without refreshing."""
        with self._lock:
            return self._entries.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or every entry when ``key`` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    # Internal helpers -------------------------------------------

    def _is_overdue(self, flight: _Flight, now: float) -> bool:
        if self.refresh_timeout is None:
            return False
        return now - flight.started_at >= self.refresh_timeout

    def _refresh(self, key: str, ttl_seconds: float, refresh: Callable[[], T], flight: _Flight) -> T:
        try:
            value = refresh()
        except Exception as exc:
            error = RefreshError(key, f"{type(exc).__name__}: {exc}")
            error.__cause__ = exc
            with self._lock:
                if self._flights.get(key) is flight:
                    del self._flights[key]
                stale = self._entries.get(key)
            flight.fail(error)

            if stale is not None:
                logger.warning("Refresh of %s failed, serving stale value: %s", key, exc)
                return stale.value
            logger.error("Initial fetch of %s failed: %s", key, exc)
            raise error
        except BaseException as exc:
            # Interrupts propagate, but waiters must not be left blocked
            error = RefreshError(key, f"interrupted by {type(exc).__name__}")
            with self._lock:
                if self._flights.get(key) is flight:
                    del self._flights[key]
            flight.fail(error)
            raise

        with self._lock:
            if self._flights.get(key) is flight:
                del self._flights[key]
                self._entries[key] = CacheEntry(
                    key=key,
                    value=value,
                    expires_at=flight.started_at + ttl_seconds,
                )
                logger.info("Refreshed %s, valid for %ss", key, ttl_seconds)
            else:
                logger.warning("Discarding late result of abandoned refresh of %s", key)
        flight.succeed(value)
        return value

    def _wait(self, key: str, flight: _Flight) -> Any:
        timeout = None
        if self.refresh_timeout is not None:
            # The bound counts from the start of the refresh, not from arrival
            elapsed = time.monotonic() - flight.wall_started
            timeout = max(0.0, self.refresh_timeout - elapsed)

        if not flight.done.wait(timeout=timeout):
            error = RefreshError(key, f"timed out after {self.refresh_timeout}s")
            with self._lock:
                if self._flights.get(key) is flight:
                    del self._flights[key]
            flight.fail(error)

        if flight.error is not None:
            raise flight.error
        return flight.value
