"""
Blog posts: cached reads, admin mutations, realtime invalidation and the
view helpers the public blog pages use.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Iterable, Optional

from corpsite.cache import BLOGS_KEY, InvalidationDispatcher, QueryCache
from corpsite.content import PLACEHOLDER_IMAGE
from corpsite.errors import StoreError
from corpsite.notifications import DESTRUCTIVE, Notification, Notifier
from corpsite.queries import Mutation, QueryResult, ReadQuery, RealtimeSubscription
from corpsite.realtime import ChangeFeed
from corpsite.schemas import BlogPost, BlogPostCreate, BlogPostUpdate
from corpsite.store import BLOGS_TABLE, StoreClient

ORDER_BY = "published_at"
WORDS_PER_MINUTE = 200
RECENT_POSTS_LIMIT = 4

logger = logging.getLogger(__name__)


class BlogData:
    def __init__(self, store: StoreClient, cache: QueryCache):
        self.store = store
        self.query: ReadQuery[BlogPost] = ReadQuery(cache, BLOGS_KEY, self._fetch)

    def _fetch(self) -> list[BlogPost]:
        posts = []
        for row in self.store.select_all(BLOGS_TABLE, ORDER_BY):
            try:
                posts.append(BlogPost.from_row(row))
            except StoreError as exc:
                logger.warning("Skipping blogs row %s: %s", row.get("id"), exc)
        return posts

    def posts(self) -> QueryResult[BlogPost]:
        return self.query.result()

    def refetch(self) -> QueryResult[BlogPost]:
        return self.query.refetch()


def _failure(action: str) -> Notification:
    return Notification(
        "Error", f"Failed to {action} blog post. Please try again.", DESTRUCTIVE
    )


class BlogMutations:
    def __init__(self, store: StoreClient, cache: QueryCache, notifier: Notifier):
        self.store = store
        self.cache = cache
        self.notifier = notifier

    def _mutation(self, name: str, success: Notification, failure: Notification):
        return Mutation(self.cache, BLOGS_KEY, self.notifier, success, failure, name)

    def create_blog(self, payload: BlogPostCreate) -> BlogPost:
        mutation = self._mutation(
            "Create blog",
            Notification(
                "Blog Created!", "Your new blog post has been created successfully."
            ),
            _failure("create"),
        )
        row = mutation.run(
            lambda: self.store.insert(BLOGS_TABLE, payload.model_dump())
        )
        return BlogPost.from_row(row)

    def update_blog(self, post_id: str, payload: BlogPostUpdate) -> BlogPost:
        mutation = self._mutation(
            "Update blog",
            Notification("Blog Updated!", "Your blog post has been successfully updated."),
            _failure("update"),
        )
        row = mutation.run(
            lambda: self.store.update(BLOGS_TABLE, post_id, payload.changes())
        )
        return BlogPost.from_row(row)

    def delete_blog(self, post_id: str) -> str:
        mutation = self._mutation(
            "Delete blog",
            Notification(
                "Blog Deleted",
                "The blog post has been deleted successfully.",
                DESTRUCTIVE,
            ),
            _failure("delete"),
        )
        return mutation.run(lambda: self.store.delete(BLOGS_TABLE, post_id))


def watch_blogs(feed: ChangeFeed, cache: QueryCache) -> RealtimeSubscription:
    return RealtimeSubscription(feed, InvalidationDispatcher(cache), BLOGS_TABLE)


def published_posts(posts: Iterable[BlogPost]) -> list[BlogPost]:
    return [post for post in posts if post.status == "published"]


def split_featured(posts: Iterable[BlogPost]) -> tuple[list[BlogPost], list[BlogPost]]:
    featured, regular = [], []
    for post in posts:
        (featured if post.is_featured else regular).append(post)
    return featured, regular


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "No date"
    return f"{value:%B} {value.day}, {value.year}"


def read_time(content: Optional[str]) -> str:
    if not content:
        return "1 min read"
    words = len(content.split(" "))
    return f"{math.ceil(words / WORDS_PER_MINUTE)} min read"


def blog_card(post: BlogPost, featured: bool = False) -> dict:
    return {
        "id": post.id,
        "href": f"/blog/{post.id}",
        "title": post.title,
        "excerpt": post.excerpt or "No excerpt available",
        "author": post.author,
        "badge": "Featured" if featured else (post.category or "General"),
        "image_url": post.image_url or PLACEHOLDER_IMAGE,
        "date": format_date(post.published_at),
        "read_time": read_time(post.content),
        "tags": (post.tags or [])[:3],
    }


def blog_detail(post: BlogPost, site_url: str = "") -> dict:
    paragraphs = post.content.split("\n") if post.content else []
    return {
        "id": post.id,
        "title": post.title,
        "category": post.category or "General",
        "featured": post.is_featured,
        "excerpt": post.excerpt,
        "author": post.author,
        "image_url": post.image_url,
        "date": format_date(post.published_at),
        "read_time": read_time(post.content),
        "tags": post.tags or [],
        "paragraphs": paragraphs,
        "empty_content": None if paragraphs else "No content available.",
        "seo": {
            "title": post.seo_title or post.title,
            "description": post.seo_description or post.excerpt,
            "keywords": post.seo_keywords or [],
        },
        "share": {
            "title": post.title,
            "text": post.excerpt,
            "url": f"{site_url.rstrip('/')}/blog/{post.id}",
        },
    }


def admin_row(post: BlogPost) -> dict:
    return {
        "id": post.id,
        "title": post.title,
        "author": post.author,
        "status": post.status or "draft",
        "featured": post.is_featured,
        "category": post.category,
        "date": format_date(post.published_at),
        "updated": format_date(post.updated_at),
    }
