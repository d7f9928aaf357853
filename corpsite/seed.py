"""
Insert sample blog posts into the configured store.

Usage: python -m corpsite.seed --posts 6
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from corpsite.blog import BlogMutations
from corpsite.cache import QueryCache
from corpsite.dependencies import get_store_client
from corpsite.notifications import Notifier
from corpsite.schemas import BlogPostCreate
from corpsite.store import StoreClient

logger = logging.getLogger(__name__)

SAMPLE_POSTS = (
    {
        "title": "Why Every Business Needs a Cloud Strategy",
        "excerpt": "Cloud adoption is no longer optional. Here is how to plan it.",
        "content": "Moving to the cloud starts with an honest inventory.\nThen pick the workloads that benefit first.",
        "category": "Cloud & DevOps",
        "tags": ["cloud", "devops", "strategy"],
        "featured": True,
    },
    {
        "title": "Practical AI for Small Teams",
        "excerpt": "You do not need a research lab to ship useful machine learning.",
        "content": "Start with a narrow problem and a measurable outcome.",
        "category": "AI & Blockchain",
        "tags": ["ai", "machine learning"],
    },
    {
        "title": "Securing Your Web Application",
        "excerpt": "The checklist we run on every project before launch.",
        "content": "Patch dependencies, enforce TLS, audit authentication flows.",
        "category": "Cybersecurity",
        "tags": ["security", "web"],
    },
    {
        "title": "Native or Cross-Platform?",
        "excerpt": "Choosing the right mobile stack for your product.",
        "content": "Cross-platform frameworks cover most apps.\nNative still wins for heavy graphics.",
        "category": "Mobile Apps",
        "tags": ["mobile", "react native", "ios", "android"],
    },
)


def seed_posts(
    store: StoreClient,
    count: int,
    *,
    author: str = "AKACorpTech Team",
    published_only: bool = False,
    cache: Optional[QueryCache] = None,
) -> list[str]:
    mutations = BlogMutations(store, cache or QueryCache(), Notifier())
    created: list[str] = []
    for index in range(count):
        sample = SAMPLE_POSTS[index % len(SAMPLE_POSTS)]
        status = "published" if published_only or index % 3 != 2 else "draft"
        payload = BlogPostCreate(author=author, status=status, **sample)
        post = mutations.create_blog(payload)
        logger.info("Seeded %s post %s (%s)", status, post.id, post.title)
        created.append(post.id)
    return created


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed sample blog posts.")
    parser.add_argument("--posts", type=int, default=len(SAMPLE_POSTS))
    parser.add_argument("--author", default="AKACorpTech Team")
    parser.add_argument(
        "--published-only",
        action="store_true",
        help="Publish every sample post instead of leaving some as drafts.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    created = seed_posts(
        get_store_client(),
        args.posts,
        author=args.author,
        published_only=args.published_only,
    )
    print(f"Seeded {len(created)} posts")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
