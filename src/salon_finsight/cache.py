# Salon FinSight - Financial analytics & reconciliation engine for service businesses
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Query cache for snapshot providers.

Dashboards load the same collections many times within a few seconds
(one request per panel). ``QueryCache`` sits between a provider and its
storage and offers two guarantees:

- a value loaded less than ``ttl_seconds`` ago is returned as-is,
- concurrent requests for the same key share a single in-flight load.

The cache is an explicit object injected into the provider that uses it.
Analytics code never sees it: it only receives already-resolved
snapshots, which keeps it testable against plain fixtures.

Failed loads are never cached; the exception is raised to the caller
that ran the load and to every caller waiting on it.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5.0


@dataclass
class CacheEntry:
    """One cache slot: the last value, its expiry and an optional in-flight load."""

    value: Any = None
    expires_at: float = 0.0
    has_value: bool = False
    inflight: Optional[Future] = None


class QueryCache:
    """TTL cache with in-flight de-duplication, keyed by strings."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("Cache TTL cannot be negative.")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the fresh cached value for ``key``, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.has_value:
                return None
            if self._clock() >= entry.expires_at:
                entry.has_value = False
                entry.value = None
                return None
            return entry.value

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        """
        Return the cached value for ``key`` or load it.

        If another thread is already loading ``key``, wait for its result
        instead of running ``loader`` a second time.
        """
        with self._lock:
            entry = self._entries.setdefault(key, CacheEntry())
            if entry.has_value and self._clock() < entry.expires_at:
                return entry.value
            if entry.inflight is not None:
                future = entry.inflight
                owner = False
            else:
                future = Future()
                entry.inflight = future
                owner = True

        if not owner:
            logger.debug("Joining in-flight load for %s", key)
            return future.result()

        try:
            value = loader()
        except BaseException as exc:
            with self._lock:
                current = self._entries.get(key)
                if current is not None and current.inflight is future:
                    current.inflight = None
            future.set_exception(exc)
            raise

        with self._lock:
            current = self._entries.get(key)
            # An invalidation during the load drops the entry; do not resurrect it.
            if current is not None and current.inflight is future:
                current.value = value
                current.has_value = True
                current.expires_at = self._clock() + self.ttl_seconds
                current.inflight = None
        future.set_result(value)
        logger.debug("Loaded %s", key)
        return value

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        """Drop every entry whose key starts with ``prefix``."""
        with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for e in self._entries.values() if e.has_value)
