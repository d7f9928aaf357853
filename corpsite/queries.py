"""
Generic read, mutation and realtime-subscription helpers over the query cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar

from corpsite.cache import InvalidationDispatcher, QueryCache, QueryKey
from corpsite.notifications import Notification, Notifier
from corpsite.realtime import ChangeEvent, ChangeFeed, FeedSubscription

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class QueryResult(Generic[T]):
    data: list[T] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[Exception] = None


class ReadQuery(Generic[T]):
    """
    Cached read of a whole collection.

    `result()` serves fresh cached data, fetching first when the entry is
    absent or stale. A failed fetch keeps the previous data and reports the
    error alongside it.

    Route handlers read lazily: an invalidated entry is re-fetched by the
    next request's `result()`. `mount()` is for long-lived observers that want a
    refresh on every invalidation instead.
    """

    def __init__(
        self, cache: QueryCache, key: QueryKey, fetch: Callable[[], list[T]]
    ):
        self.cache = cache
        self.key = key
        self.fetch = fetch
        self._unsubscribe: Optional[Callable[[], None]] = None

    def _snapshot(self) -> QueryResult[T]:
        entry = self.cache.get(self.key)
        if entry is None:
            return QueryResult(is_loading=True)
        return QueryResult(
            data=list(entry.data or []),
            is_loading=entry.fetching and not entry.has_data,
            error=entry.error,
        )

    def result(self) -> QueryResult[T]:
        entry = self.cache.get(self.key)
        if entry is None or entry.stale:
            return self.refetch()
        return self._snapshot()

    def refetch(self) -> QueryResult[T]:
        self.cache.mark_fetching(self.key)
        try:
            data = self.fetch()
        except Exception as exc:
            logger.error("Error fetching %s: %s", self.key, exc)
            self.cache.set_error(self.key, exc)
        else:
            logger.info("Fetched %d rows for %s", len(data), self.key)
            self.cache.set(self.key, data)
        return self._snapshot()

    @property
    def is_mounted(self) -> bool:
        return self._unsubscribe is not None

    def mount(self) -> None:
        """Keep the entry fresh: re-fetch as soon as the key is invalidated."""
        if self._unsubscribe is None:
            self._unsubscribe = self.cache.subscribe(
                self.key, lambda _key: self.refetch()
            )

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


class Mutation(Generic[R]):
    """
    One write operation against a single entity type.

    Success invalidates the entity's read key and emits `success`; failure
    emits `failure` and re-raises for the caller.
    """

    def __init__(
        self,
        cache: QueryCache,
        key: QueryKey,
        notifier: Notifier,
        success: Notification,
        failure: Notification,
        name: str,
    ):
        self.cache = cache
        self.key = key
        self.notifier = notifier
        self.success = success
        self.failure = failure
        self.name = name

    def run(self, operation: Callable[[], R]) -> R:
        try:
            result = operation()
        except Exception as exc:
            logger.error("%s error: %s", self.name, exc)
            self.notifier.notify(
                self.failure.title, self.failure.description, self.failure.variant
            )
            raise
        self.cache.invalidate(self.key)
        self.notifier.notify(
            self.success.title, self.success.description, self.success.variant
        )
        return result


class RealtimeSubscription:
    """Invalidates one table's query on every change event for that table."""

    def __init__(
        self, feed: ChangeFeed, dispatcher: InvalidationDispatcher, table: str
    ):
        self.feed = feed
        self.dispatcher = dispatcher
        self.table = table
        self._subscription: Optional[FeedSubscription] = None

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def _on_event(self, event: ChangeEvent) -> None:
        self.dispatcher.handle(event)

    def start(self) -> "RealtimeSubscription":
        if self._subscription is None:
            logger.info("Setting up real-time subscription for %s", self.table)
            self._subscription = self.feed.subscribe(self.table, self._on_event)
        return self

    def stop(self) -> None:
        if self._subscription is not None:
            logger.info("Cleaning up real-time subscription for %s", self.table)
            self._subscription.unsubscribe()
            self._subscription = None

    def __enter__(self) -> "RealtimeSubscription":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()
