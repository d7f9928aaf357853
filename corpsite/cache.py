"""
Process-wide query cache with invalidation notifications.

Entries are keyed by query identity. Invalidation marks an entry stale and
tells subscribers; it never drops the data, so readers can keep showing the
last good result while a re-fetch runs.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional

from corpsite.realtime import ChangeEvent
from corpsite.store import BLOGS_TABLE, CONTACT_MESSAGES_TABLE

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]
InvalidationCallback = Callable[[QueryKey], None]

BLOGS_KEY: QueryKey = ("blogs",)
CONTACT_MESSAGES_KEY: QueryKey = ("contact-messages",)

TABLE_QUERY_KEYS: Dict[str, QueryKey] = {
    BLOGS_TABLE: BLOGS_KEY,
    CONTACT_MESSAGES_TABLE: CONTACT_MESSAGES_KEY,
}


@dataclass
class CacheEntry:
    data: Any = None
    error: Optional[Exception] = None
    stale: bool = True
    fetching: bool = False
    updated_at: Optional[float] = None

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None


class QueryCache:
    def __init__(self):
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self._subscribers: Dict[QueryKey, list[InvalidationCallback]] = {}
        self._lock = threading.RLock()

    def get(self, key: QueryKey) -> Optional[CacheEntry]:
        """Return a snapshot of the entry, or None if the key was never stored."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return CacheEntry(
                data=entry.data,
                error=entry.error,
                stale=entry.stale,
                fetching=entry.fetching,
                updated_at=entry.updated_at,
            )

    def set(self, key: QueryKey, data: Any) -> None:
        with self._lock:
            entry = self._entries.setdefault(key, CacheEntry())
            entry.data = data
            entry.error = None
            entry.stale = False
            entry.fetching = False
            entry.updated_at = time.time()

    def set_error(self, key: QueryKey, error: Exception) -> None:
        with self._lock:
            entry = self._entries.setdefault(key, CacheEntry())
            entry.error = error
            entry.fetching = False

    def mark_fetching(self, key: QueryKey) -> None:
        with self._lock:
            self._entries.setdefault(key, CacheEntry()).fetching = True

    def invalidate(self, key: QueryKey) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                entry.stale = True
            callbacks = list(self._subscribers.get(key, ()))
        logger.info("Invalidated query %s (%d observers)", key, len(callbacks))
        for callback in callbacks:
            try:
                callback(key)
            except Exception:
                logger.exception("Invalidation observer failed for %s", key)

    def subscribe(
        self, key: QueryKey, callback: InvalidationCallback
    ) -> Callable[[], None]:
        with self._lock:
            self._subscribers.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(key, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._subscribers.clear()


class InvalidationDispatcher:
    """Maps change-feed events to cache invalidations via a static table registry."""

    def __init__(
        self,
        cache: QueryCache,
        registry: Optional[Dict[str, QueryKey]] = None,
    ):
        self.cache = cache
        self.registry = registry if registry is not None else TABLE_QUERY_KEYS

    def key_for(self, table: str) -> Optional[QueryKey]:
        return self.registry.get(table)

    def handle(self, event: ChangeEvent) -> None:
        key = self.key_for(event.table)
        if key is None:
            logger.warning("No query registered for table %s", event.table)
            return
        logger.info(
            "Change on %s (%s %s)", event.table, event.kind.value, event.record_id
        )
        self.cache.invalidate(key)
