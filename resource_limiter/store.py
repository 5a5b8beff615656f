"""
Counter Stores

A counter store atomically increments a key and returns the new count. The
first increment creates the key with a TTL of one window; later increments
inside the window leave that TTL alone, so every attempt in the window lands
in the same bucket.
"""

import fnmatch
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

import redis

from .config import get_redis_client
from .errors import StoreUnavailable
from .keys import key_pattern

logger = logging.getLogger(__name__)


class CounterStore(ABC):
    """Interface the limiter needs from a shared counter service."""

    @abstractmethod
    def incr_and_get(self, key: str, window_seconds: int) -> int:
        """
        Increment key and return the count after the increment.

        Raises:
            StoreUnavailable: If the store cannot be reached or times out
        """
        raise NotImplementedError

    @abstractmethod
    def ttl(self, key: str) -> Optional[int]:
        """Seconds until key expires, or None if it does not exist or never expires."""
        raise NotImplementedError

    @abstractmethod
    def clear(self, pattern: Optional[str] = None) -> int:
        """Delete counters matching pattern (all counters by default). Returns how many were deleted."""
        raise NotImplementedError


class RedisCounterStore(CounterStore):
    """
    Counter store backed by Redis.

    SET NX EX and INCR run inside one MULTI/EXEC block, so the key is never
    left without a TTL and concurrent callers never lose an increment.
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        self._client = client if client is not None else get_redis_client()

    @property
    def client(self) -> redis.Redis:
        return self._client

    # Stores wrapping the same client count into the same place
    def __eq__(self, other):
        if not isinstance(other, RedisCounterStore):
            return NotImplemented
        return self._client is other._client

    def __hash__(self):
        return hash(id(self._client))

    def incr_and_get(self, key: str, window_seconds: int) -> int:
        try:
            with self._client.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=window_seconds, nx=True)
                pipe.incr(key)
                _, count = pipe.execute()
        except redis.RedisError as e:
            logger.error("rate_limit.store_unavailable", extra={"key": key, "error": str(e)})
            raise StoreUnavailable(key, str(e)) from e
        return int(count)

    def ttl(self, key: str) -> Optional[int]:
        try:
            remaining = self._client.ttl(key)
        except redis.RedisError as e:
            raise StoreUnavailable(key, str(e)) from e
        # -2: no such key, -1: key without expiry
        if remaining is None or remaining < 0:
            return None
        return int(remaining)

    def clear(self, pattern: Optional[str] = None) -> int:
        pattern = pattern or key_pattern()
        deleted = 0
        try:
            for key in self._client.scan_iter(match=pattern):
                deleted += self._client.delete(key)
        except redis.RedisError as e:
            raise StoreUnavailable(pattern, str(e)) from e
        return deleted


class MemoryCounterStore(CounterStore):
    """
    Single-process counter store.

    Useful for tests and local runs. Counters are not shared between
    processes, so each worker enforces its own limits. Expired counters are
    purged at most once every purge_interval seconds, on increment.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, purge_interval: float = 60):
        self._clock = clock
        self._lock = threading.Lock()
        self._purge_interval = purge_interval
        self._last_purge = clock()
        # key -> (count, expires_at)
        self._counters: Dict[str, Tuple[int, float]] = {}

    def size(self) -> int:
        """Number of counters held, expired ones included until the next purge."""
        return len(self._counters)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._counters.items() if now >= expires_at]
        for key in expired:
            del self._counters[key]
        self._last_purge = now

    def incr_and_get(self, key: str, window_seconds: int) -> int:
        now = self._clock()
        with self._lock:
            if now - self._last_purge >= self._purge_interval:
                self._purge_expired(now)
            record = self._counters.get(key)
            if record is None or now >= record[1]:
                record = (0, now + window_seconds)
            count = record[0] + 1
            self._counters[key] = (count, record[1])
            return count

    def ttl(self, key: str) -> Optional[int]:
        now = self._clock()
        with self._lock:
            record = self._counters.get(key)
            if record is None or now >= record[1]:
                return None
            return int(record[1] - now)

    def keys(self, pattern: Optional[str] = None):
        """Live counter keys matching pattern."""
        pattern = pattern or key_pattern()
        now = self._clock()
        with self._lock:
            return [
                key for key, (_, expires_at) in self._counters.items()
                if now < expires_at and fnmatch.fnmatchcase(key, pattern)
            ]

    def clear(self, pattern: Optional[str] = None) -> int:
        pattern = pattern or key_pattern()
        with self._lock:
            doomed = [key for key in self._counters if fnmatch.fnmatchcase(key, pattern)]
            for key in doomed:
                del self._counters[key]
        return len(doomed)
