"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from fastapi import Depends, Request

from corpsite.auth import AuthGate, AuthProvider, AuthSession, InMemoryAuthProvider
from corpsite.blog import BlogData, BlogMutations
from corpsite.cache import QueryCache
from corpsite.config import get_settings
from corpsite.contacts import ContactData, ContactMutations
from corpsite.errors import LoginRequired
from corpsite.notifications import Notifier
from corpsite.realtime import ChangeFeed, InMemoryChangeFeed, RedisChangeFeed
from corpsite.rest import RestAuthProvider, RestStoreClient
from corpsite.store import InMemoryStoreClient, SqlStoreClient, StoreClient

logger = logging.getLogger(__name__)

_store_client: StoreClient | None = None
_change_feed: ChangeFeed | None = None
_auth_provider: AuthProvider | None = None
_query_cache: QueryCache | None = None


def get_change_feed() -> ChangeFeed:
    global _change_feed
    if _change_feed:
        return _change_feed

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _change_feed = RedisChangeFeed(
            url=settings.redis_url,
            channel_prefix=settings.redis_channel_prefix,
        )
    else:
        _change_feed = InMemoryChangeFeed()
    return _change_feed


def get_store_client() -> StoreClient:
    """
    Return a singleton store client so in-memory rows persist across requests.
    """
    global _store_client
    if _store_client:
        return _store_client

    settings = get_settings()
    feed = get_change_feed()
    if settings.use_in_memory_backends:
        _store_client = InMemoryStoreClient(feed=feed)
    elif settings.backend_url:
        _store_client = RestStoreClient(
            settings.backend_url, settings.backend_api_key or "", feed=feed
        )
    elif settings.database_url:
        _store_client = SqlStoreClient(settings.database_url, feed=feed)
    else:
        _store_client = InMemoryStoreClient(feed=feed)
    logger.info("Using store client %s", type(_store_client).__name__)
    return _store_client


def get_auth_provider() -> AuthProvider:
    global _auth_provider
    if _auth_provider:
        return _auth_provider

    settings = get_settings()
    if settings.backend_url and not settings.use_in_memory_backends:
        _auth_provider = RestAuthProvider(
            settings.backend_url, settings.backend_api_key or ""
        )
    else:
        _auth_provider = InMemoryAuthProvider(
            auto_confirm=settings.auth_auto_confirm,
            session_ttl_seconds=settings.session_ttl_seconds,
        )
    return _auth_provider


def get_query_cache() -> QueryCache:
    global _query_cache
    if _query_cache is None:
        _query_cache = QueryCache()
    return _query_cache


def reset_backends() -> None:
    """Drop all singletons so the next request rebuilds them from settings."""
    global _store_client, _change_feed, _auth_provider, _query_cache
    _store_client = None
    _change_feed = None
    _auth_provider = None
    _query_cache = None


def get_notifier() -> Notifier:
    return Notifier()


def get_blog_data(
    store: StoreClient = Depends(get_store_client),
    cache: QueryCache = Depends(get_query_cache),
) -> BlogData:
    return BlogData(store, cache)


def get_contact_data(
    store: StoreClient = Depends(get_store_client),
    cache: QueryCache = Depends(get_query_cache),
) -> ContactData:
    return ContactData(store, cache)


def get_blog_mutations(
    store: StoreClient = Depends(get_store_client),
    cache: QueryCache = Depends(get_query_cache),
    notifier: Notifier = Depends(get_notifier),
) -> BlogMutations:
    return BlogMutations(store, cache, notifier)


def get_contact_mutations(
    store: StoreClient = Depends(get_store_client),
    cache: QueryCache = Depends(get_query_cache),
    notifier: Notifier = Depends(get_notifier),
) -> ContactMutations:
    return ContactMutations(store, cache, notifier)


def get_access_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(get_settings().session_cookie_name)


def get_admin_gate(
    access_token: Optional[str] = Depends(get_access_token),
    auth: AuthProvider = Depends(get_auth_provider),
) -> Iterator[AuthGate]:
    """Gate an admin route for the lifetime of the request."""
    with AuthGate(auth) as gate:
        if gate.open(access_token) is None:
            raise LoginRequired(gate.redirected_to or "/auth")
        yield gate


def require_admin_session(gate: AuthGate = Depends(get_admin_gate)) -> AuthSession:
    """
    Return the live session, or redirect to login if it ended while the
    request was being handled.
    """
    if not gate.is_authenticated or gate.session is None:
        raise LoginRequired(gate.redirected_to or "/auth")
    return gate.session
