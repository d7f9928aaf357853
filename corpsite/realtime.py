"""
Change feed abstraction.

Supports an in-process feed for tests/local runs and a Redis pub/sub
implementation for production. Events are signals ("something changed in
this table"), never deltas to merge.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    kind: ChangeKind
    record_id: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "table": self.table,
            "kind": self.kind.value,
            "record_id": self.record_id,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "ChangeEvent":
        return cls(
            table=payload["table"],
            kind=ChangeKind(payload["kind"]),
            record_id=payload.get("record_id"),
        )


ChangeCallback = Callable[[ChangeEvent], None]


class FeedSubscription(Protocol):
    def unsubscribe(self) -> None:
        ...


class ChangeFeed(Protocol):
    """Row-level change notifications per table."""

    def subscribe(self, table: str, callback: ChangeCallback) -> FeedSubscription:
        ...

    def publish(self, event: ChangeEvent) -> None:
        ...


@dataclass(eq=False)
class _LocalSubscription:
    feed: "InMemoryChangeFeed"
    table: str
    callback: ChangeCallback
    active: bool = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self.feed._remove(self)


@dataclass
class InMemoryChangeFeed:
    """Synchronous in-process feed for testing/dev."""

    subscriptions: list[_LocalSubscription] = field(default_factory=list)
    published: list[ChangeEvent] = field(default_factory=list)

    def __post_init__(self):
        self._lock = threading.Lock()

    def subscribe(self, table: str, callback: ChangeCallback) -> _LocalSubscription:
        subscription = _LocalSubscription(feed=self, table=table, callback=callback)
        with self._lock:
            self.subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: _LocalSubscription) -> None:
        with self._lock:
            if subscription in self.subscriptions:
                self.subscriptions.remove(subscription)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            self.published.append(event)
            targets = [s for s in self.subscriptions if s.table == event.table]
        for subscription in targets:
            try:
                subscription.callback(event)
            except Exception:
                logger.exception(
                    "Change callback failed for %s %s", event.table, event.kind.value
                )

    def reset(self) -> None:
        with self._lock:
            self.subscriptions.clear()
            self.published.clear()


@dataclass
class _RedisSubscription:
    pubsub: "redis.client.PubSub"
    thread: "redis.client.PubSubWorkerThread"
    channel: str
    active: bool = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self.thread.stop()
        try:
            self.pubsub.unsubscribe(self.channel)
            self.pubsub.close()
        except redis_exceptions.ConnectionError:
            logger.warning("Redis connection lost while unsubscribing %s", self.channel)


@dataclass
class RedisChangeFeed:
    """Redis-backed feed using one pub/sub channel per table."""

    url: str
    channel_prefix: str = "corpsite:changes"
    poll_interval: float = 0.5

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def channel_for(self, table: str) -> str:
        return f"{self.channel_prefix}:{table}"

    def publish(self, event: ChangeEvent) -> None:
        try:
            self.client.publish(
                self.channel_for(event.table), json.dumps(event.as_dict())
            )
        except redis_exceptions.ConnectionError:
            # A dropped event only delays the next refresh.
            logger.exception("Failed to publish change event for %s", event.table)
            self.client = redis.Redis.from_url(self.url)

    def subscribe(self, table: str, callback: ChangeCallback) -> _RedisSubscription:
        channel = self.channel_for(table)

        def handle(message: dict) -> None:
            try:
                payload = json.loads(message["data"])
                event = ChangeEvent.from_dict(payload)
            except (ValueError, KeyError, TypeError):
                logger.warning("Dropping malformed change message on %s", channel)
                return
            try:
                callback(event)
            except Exception:
                logger.exception("Change callback failed for %s", channel)

        pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(**{channel: handle})
        thread = pubsub.run_in_thread(sleep_time=self.poll_interval, daemon=True)
        logger.info("Subscribed to change feed channel %s", channel)
        return _RedisSubscription(pubsub=pubsub, thread=thread, channel=channel)
