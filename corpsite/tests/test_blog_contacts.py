import unittest
from datetime import datetime, timezone

from corpsite.blog import (
    PLACEHOLDER_IMAGE,
    BlogData,
    BlogMutations,
    blog_card,
    blog_detail,
    format_date,
    published_posts,
    read_time,
    split_featured,
    watch_blogs,
)
from corpsite.cache import BLOGS_KEY, CONTACT_MESSAGES_KEY, QueryCache
from corpsite.contacts import (
    ContactData,
    ContactMutations,
    message_detail,
    reply_mailto,
    reply_subject,
    unread_count,
    watch_contacts,
)
from corpsite.errors import RowNotFoundError
from corpsite.notifications import DESTRUCTIVE, Notifier
from corpsite.realtime import InMemoryChangeFeed
from corpsite.schemas import (
    BlogPost,
    BlogPostCreate,
    BlogPostUpdate,
    ContactMessage,
    ContactMessageCreate,
)
from corpsite.store import BLOGS_TABLE, CONTACT_MESSAGES_TABLE, InMemoryStoreClient


def make_post(**fields):
    row = {"id": "p1", "title": "Title", "author": "Team"}
    row.update(fields)
    return BlogPost.from_row(row)


class BlogViewTests(unittest.TestCase):
    def test_format_date(self):
        self.assertEqual(format_date(datetime(2025, 1, 5, tzinfo=timezone.utc)), "January 5, 2025")
        self.assertEqual(format_date(None), "No date")

    def test_read_time(self):
        self.assertEqual(read_time(None), "1 min read")
        self.assertEqual(read_time("one two three"), "1 min read")
        self.assertEqual(read_time(" ".join(["word"] * 201)), "2 min read")

    def test_card_defaults(self):
        card = blog_card(make_post(tags=["a", "b", "c", "d"]))
        self.assertEqual(card["excerpt"], "No excerpt available")
        self.assertEqual(card["badge"], "General")
        self.assertEqual(card["image_url"], PLACEHOLDER_IMAGE)
        self.assertEqual(card["date"], "No date")
        self.assertEqual(card["tags"], ["a", "b", "c"])
        self.assertEqual(blog_card(make_post(category="Cloud"), featured=True)["badge"], "Featured")

    def test_detail_paragraphs_and_seo_fallbacks(self):
        detail = blog_detail(make_post(content="first\nsecond", excerpt="short"))
        self.assertEqual(detail["paragraphs"], ["first", "second"])
        self.assertIsNone(detail["empty_content"])
        self.assertEqual(detail["seo"]["title"], "Title")
        self.assertEqual(detail["seo"]["description"], "short")

        empty = blog_detail(make_post())
        self.assertEqual(empty["empty_content"], "No content available.")

    def test_detail_share_payload(self):
        share = blog_detail(make_post(excerpt="short"), "https://akacorptech.example/")["share"]
        self.assertEqual(share["title"], "Title")
        self.assertEqual(share["text"], "short")
        self.assertEqual(share["url"], "https://akacorptech.example/blog/p1")

    def test_published_filter_and_featured_split(self):
        posts = [
            make_post(id="1", status="published", featured=True),
            make_post(id="2", status="draft", featured=True),
            make_post(id="3", status="published"),
            make_post(id="4"),
        ]
        visible = published_posts(posts)
        self.assertEqual([p.id for p in visible], ["1", "3"])
        featured, regular = split_featured(visible)
        self.assertEqual([p.id for p in featured], ["1"])
        self.assertEqual([p.id for p in regular], ["3"])

    def test_malformed_optional_fields_are_tolerated(self):
        post = make_post(featured="yes", tags="cloud, devops", published_at="not a date")
        self.assertFalse(post.is_featured)
        self.assertEqual(post.tags, ["cloud", "devops"])
        self.assertIsNone(post.published_at)


class BlogDataTests(unittest.TestCase):
    def setUp(self):
        self.feed = InMemoryChangeFeed()
        self.store = InMemoryStoreClient(feed=self.feed)
        self.cache = QueryCache()
        self.notifier = Notifier()
        self.mutations = BlogMutations(self.store, self.cache, self.notifier)

    def test_create_update_delete_notify_and_invalidate(self):
        data = BlogData(self.store, self.cache)
        self.assertEqual(data.posts().data, [])

        post = self.mutations.create_blog(BlogPostCreate(title="Hello", author="Team"))
        self.assertEqual(post.status, "draft")
        self.assertTrue(self.cache.get(BLOGS_KEY).stale)
        self.assertEqual([p.id for p in data.posts().data], [post.id])

        updated = self.mutations.update_blog(post.id, BlogPostUpdate(status="published"))
        self.assertEqual(updated.status, "published")
        self.assertEqual(updated.title, "Hello")

        self.assertEqual(self.mutations.delete_blog(post.id), post.id)
        self.assertEqual(data.posts().data, [])
        self.assertEqual(
            [(n.title, n.variant) for n in self.notifier.notifications],
            [
                ("Blog Created!", "default"),
                ("Blog Updated!", "default"),
                ("Blog Deleted", DESTRUCTIVE),
            ],
        )

    def test_deleting_missing_post_leaves_cache_untouched(self):
        self.mutations.create_blog(BlogPostCreate(title="Keep", author="Team"))
        data = BlogData(self.store, self.cache)
        before = data.posts().data

        with self.assertRaises(RowNotFoundError):
            self.mutations.delete_blog("missing")
        self.assertFalse(self.cache.get(BLOGS_KEY).stale)
        self.assertEqual(data.posts().data, before)
        last = self.notifier.notifications[-1]
        self.assertEqual(last.title, "Error")
        self.assertEqual(last.description, "Failed to delete blog post. Please try again.")

    def test_malformed_row_is_skipped(self):
        self.store.insert(BLOGS_TABLE, {"title": "Good", "author": "Team"})
        self.store.insert(BLOGS_TABLE, {"title": None, "author": "Team"})
        result = BlogData(self.store, self.cache).posts()
        self.assertIsNone(result.error)
        self.assertEqual([p.title for p in result.data], ["Good"])

    def test_change_from_elsewhere_refreshes_cache(self):
        data = BlogData(self.store, self.cache)
        data.posts()
        with watch_blogs(self.feed, self.cache):
            # Written directly, as another admin session would.
            self.store.insert(BLOGS_TABLE, {"title": "Elsewhere", "author": "Other"})
            self.assertTrue(self.cache.get(BLOGS_KEY).stale)
        self.assertEqual([p.title for p in data.posts().data], ["Elsewhere"])


class ContactTests(unittest.TestCase):
    def setUp(self):
        self.feed = InMemoryChangeFeed()
        self.store = InMemoryStoreClient(feed=self.feed)
        self.cache = QueryCache()
        self.notifier = Notifier()
        self.mutations = ContactMutations(self.store, self.cache, self.notifier)

    def submit(self, subject="Project"):
        return self.mutations.create_message(
            ContactMessageCreate(
                name=" Asha ", email="asha@example.com", subject=subject, message="Hi"
            )
        )

    def test_submission_is_unread(self):
        message = self.submit()
        self.assertEqual(message.status, "unread")
        self.assertEqual(message.name, "Asha")
        self.assertEqual(self.notifier.notifications[0].title, "Message Sent!")

    def test_status_toggle_and_unread_count(self):
        data = ContactData(self.store, self.cache)
        first = self.submit("One")
        self.submit("Two")
        self.assertEqual(unread_count(data.messages().data), 2)

        read = self.mutations.update_message_status(first.id, "read")
        self.assertEqual(read.status, "read")
        self.assertEqual(unread_count(data.messages().data), 1)
        self.assertEqual(self.notifier.notifications[-1].title, "Status Updated")

    def test_malformed_row_is_skipped(self):
        self.submit("Kept")
        self.store.insert(
            CONTACT_MESSAGES_TABLE, {"name": "No email", "subject": "S", "message": "M"}
        )
        result = ContactData(self.store, self.cache).messages()
        self.assertIsNone(result.error)
        self.assertEqual([m.subject for m in result.data], ["Kept"])

    def test_delete_missing_message(self):
        with self.assertRaises(RowNotFoundError):
            self.mutations.delete_message("missing")
        self.assertEqual(
            self.notifier.notifications[-1].description,
            "Failed to delete message. Please try again.",
        )

    def test_realtime_invalidation(self):
        self.cache.set(CONTACT_MESSAGES_KEY, [])
        with watch_contacts(self.feed, self.cache):
            self.submit()
        self.assertTrue(self.cache.get(CONTACT_MESSAGES_KEY).stale)

    def test_reply_helpers(self):
        self.assertEqual(reply_subject("Hello"), "Re: Hello")
        self.assertEqual(reply_subject("Re: Hello"), "Re: Hello")
        self.assertEqual(
            reply_mailto("a@example.com", "Hello there"),
            "mailto:a@example.com?subject=Re%3A%20Hello%20there",
        )

    def test_message_detail(self):
        message = ContactMessage.from_row(
            {
                "id": 7,
                "name": "Asha",
                "email": "asha@example.com",
                "subject": "Quote",
                "message": "Hello",
                "status": "read",
                "created_at": "2025-03-01T10:00:00Z",
            }
        )
        detail = message_detail(message)
        self.assertEqual(detail["id"], "7")
        self.assertEqual(detail["date"], "2025-03-01")
        self.assertEqual(detail["toggle_status"], "unread")
        self.assertFalse(detail["unread"])


if __name__ == "__main__":
    unittest.main()
