import unittest

from corpsite.cache import (
    BLOGS_KEY,
    CONTACT_MESSAGES_KEY,
    InvalidationDispatcher,
    QueryCache,
)
from corpsite.errors import StoreError
from corpsite.notifications import DESTRUCTIVE, Notification, Notifier
from corpsite.queries import Mutation, ReadQuery, RealtimeSubscription
from corpsite.realtime import ChangeEvent, ChangeKind, InMemoryChangeFeed


class FakeFetch:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return list(result)


class QueryCacheTests(unittest.TestCase):
    def setUp(self):
        self.cache = QueryCache()

    def test_set_and_get(self):
        self.assertIsNone(self.cache.get(BLOGS_KEY))
        self.cache.set(BLOGS_KEY, [1, 2])
        entry = self.cache.get(BLOGS_KEY)
        self.assertEqual(entry.data, [1, 2])
        self.assertFalse(entry.stale)
        self.assertTrue(entry.has_data)

    def test_invalidate_marks_stale_and_notifies_only_that_key(self):
        seen = []
        self.cache.subscribe(BLOGS_KEY, seen.append)
        self.cache.subscribe(CONTACT_MESSAGES_KEY, lambda key: seen.append(("other", key)))
        self.cache.set(BLOGS_KEY, [1])

        self.cache.invalidate(BLOGS_KEY)
        self.assertEqual(seen, [BLOGS_KEY])
        entry = self.cache.get(BLOGS_KEY)
        self.assertTrue(entry.stale)
        self.assertEqual(entry.data, [1])

    def test_unsubscribe(self):
        seen = []
        unsubscribe = self.cache.subscribe(BLOGS_KEY, seen.append)
        unsubscribe()
        self.cache.invalidate(BLOGS_KEY)
        self.assertEqual(seen, [])

    def test_failing_observer_does_not_block_others(self):
        seen = []

        def broken(key):
            raise RuntimeError("observer bug")

        self.cache.subscribe(BLOGS_KEY, broken)
        self.cache.subscribe(BLOGS_KEY, seen.append)
        self.cache.invalidate(BLOGS_KEY)
        self.assertEqual(seen, [BLOGS_KEY])

    def test_set_error_keeps_data(self):
        self.cache.set(BLOGS_KEY, ["kept"])
        error = StoreError("down")
        self.cache.set_error(BLOGS_KEY, error)
        entry = self.cache.get(BLOGS_KEY)
        self.assertEqual(entry.data, ["kept"])
        self.assertIs(entry.error, error)


class ReadQueryTests(unittest.TestCase):
    def setUp(self):
        self.cache = QueryCache()

    def test_fetches_once_until_invalidated(self):
        fetch = FakeFetch(["a", "b"])
        query = ReadQuery(self.cache, BLOGS_KEY, fetch)

        self.assertEqual(query.result().data, ["a", "b"])
        self.assertEqual(query.result().data, ["a", "b"])
        self.assertEqual(fetch.calls, 1)

        self.cache.invalidate(BLOGS_KEY)
        query.result()
        self.assertEqual(fetch.calls, 2)

    def test_invalidation_and_refetch_of_unchanged_data_is_idempotent(self):
        query = ReadQuery(self.cache, BLOGS_KEY, FakeFetch(["x", "y", "z"]))
        before = query.result().data
        self.cache.invalidate(BLOGS_KEY)
        self.cache.invalidate(BLOGS_KEY)
        after = query.result().data
        self.assertEqual(before, after)

    def test_failure_keeps_previous_data(self):
        error = StoreError("network down")
        query = ReadQuery(self.cache, BLOGS_KEY, FakeFetch(["a"], error))
        self.assertEqual(query.result().data, ["a"])

        result = query.refetch()
        self.assertIs(result.error, error)
        self.assertEqual(result.data, ["a"])
        self.assertFalse(result.is_loading)

    def test_first_fetch_failure(self):
        query = ReadQuery(self.cache, BLOGS_KEY, FakeFetch(StoreError("boom")))
        result = query.result()
        self.assertEqual(result.data, [])
        self.assertIsInstance(result.error, StoreError)

    def test_success_after_failure_clears_error(self):
        query = ReadQuery(self.cache, BLOGS_KEY, FakeFetch(StoreError("boom"), ["ok"]))
        self.assertIsNotNone(query.result().error)
        result = query.refetch()
        self.assertIsNone(result.error)
        self.assertEqual(result.data, ["ok"])

    def test_mounted_query_refetches_on_invalidation(self):
        fetch = FakeFetch(["v1"], ["v2"])
        query = ReadQuery(self.cache, BLOGS_KEY, fetch)
        query.result()
        query.mount()
        self.assertTrue(query.is_mounted)

        self.cache.invalidate(BLOGS_KEY)
        self.assertEqual(fetch.calls, 2)
        self.assertEqual(self.cache.get(BLOGS_KEY).data, ["v2"])
        self.assertFalse(self.cache.get(BLOGS_KEY).stale)

        query.unmount()
        self.cache.invalidate(BLOGS_KEY)
        self.assertEqual(fetch.calls, 2)


class MutationTests(unittest.TestCase):
    def setUp(self):
        self.cache = QueryCache()
        self.cache.set(BLOGS_KEY, ["old"])
        self.notifier = Notifier()
        self.mutation = Mutation(
            self.cache,
            BLOGS_KEY,
            self.notifier,
            Notification("Done", "It worked."),
            Notification("Error", "It failed.", DESTRUCTIVE),
            "Test mutation",
        )

    def test_success_invalidates_and_notifies(self):
        self.assertEqual(self.mutation.run(lambda: "row"), "row")
        self.assertTrue(self.cache.get(BLOGS_KEY).stale)
        self.assertEqual([n.title for n in self.notifier.notifications], ["Done"])

    def test_failure_notifies_and_reraises(self):
        def fail():
            raise StoreError("constraint violated")

        with self.assertRaises(StoreError):
            self.mutation.run(fail)
        self.assertFalse(self.cache.get(BLOGS_KEY).stale)
        notification = self.notifier.notifications[0]
        self.assertEqual(notification.title, "Error")
        self.assertEqual(notification.variant, DESTRUCTIVE)


class RealtimeSubscriptionTests(unittest.TestCase):
    def setUp(self):
        self.cache = QueryCache()
        self.feed = InMemoryChangeFeed()
        self.dispatcher = InvalidationDispatcher(self.cache)

    def test_events_invalidate_only_their_table(self):
        self.cache.set(BLOGS_KEY, [1])
        self.cache.set(CONTACT_MESSAGES_KEY, [2])
        with RealtimeSubscription(self.feed, self.dispatcher, "blogs") as subscription:
            self.assertTrue(subscription.active)
            self.feed.publish(ChangeEvent("contact_messages", ChangeKind.INSERT, "m1"))
            self.assertFalse(self.cache.get(BLOGS_KEY).stale)

            self.feed.publish(ChangeEvent("blogs", ChangeKind.DELETE, "b1"))
            self.assertTrue(self.cache.get(BLOGS_KEY).stale)
            # The payload is never merged into the cached data.
            self.assertEqual(self.cache.get(BLOGS_KEY).data, [1])

        self.assertFalse(subscription.active)
        self.assertEqual(self.feed.subscriptions, [])

    def test_stop_releases_subscription(self):
        subscription = RealtimeSubscription(self.feed, self.dispatcher, "blogs").start()
        subscription.stop()
        subscription.stop()
        self.cache.set(BLOGS_KEY, [1])
        self.feed.publish(ChangeEvent("blogs", ChangeKind.UPDATE, "b1"))
        self.assertFalse(self.cache.get(BLOGS_KEY).stale)

    def test_dispatcher_ignores_unknown_tables(self):
        self.dispatcher.handle(ChangeEvent("users", ChangeKind.INSERT, "u1"))
        self.assertIsNone(self.cache.get(BLOGS_KEY))


if __name__ == "__main__":
    unittest.main()
