"""
Admin panel routes. Every route here runs behind the session gate.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from corpsite.auth import AuthGate
from corpsite.blog import RECENT_POSTS_LIMIT, BlogData, BlogMutations, admin_row
from corpsite.contacts import (
    ContactData,
    ContactMutations,
    inbox_row,
    message_detail,
    unread_count,
)
from corpsite.dependencies import (
    get_admin_gate,
    get_blog_data,
    get_blog_mutations,
    get_contact_data,
    get_contact_mutations,
    get_notifier,
    require_admin_session,
)
from corpsite.errors import RowNotFoundError, StoreError
from corpsite.notifications import Notifier
from corpsite.schemas import (
    BlogPostCreate,
    BlogPostResponse,
    BlogPostUpdate,
    ContactMessageResponse,
    ContactStatusUpdate,
    DeletedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(get_admin_gate)])

TRY_AGAIN = "Please try again later"


def _store_failure(exc: StoreError, notifier: Notifier) -> HTTPException:
    status_code = 404 if isinstance(exc, RowNotFoundError) else 502
    return HTTPException(
        status_code=status_code,
        detail={"message": exc.message, "notifications": notifier.as_list()},
    )


def _require_confirmation(confirm: bool) -> None:
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail="Deletion must be confirmed with confirm=true",
        )


def _loading_value(is_loading: bool, value: int) -> str:
    return "..." if is_loading else str(value)


@router.get("/dashboard")
def dashboard(
    gate: AuthGate = Depends(get_admin_gate),
    blogs: BlogData = Depends(get_blog_data),
    contacts: ContactData = Depends(get_contact_data),
):
    posts = blogs.posts()
    messages = contacts.messages()
    published = sum(1 for p in posts.data if p.status == "published")
    drafts = sum(1 for p in posts.data if p.status == "draft")
    featured = sum(1 for p in posts.data if p.is_featured)
    unread = unread_count(messages.data)
    session = require_admin_session(gate)
    return {
        "user": {"email": session.user.email},
        "stats": [
            {
                "title": "Total Blog Posts",
                "value": _loading_value(posts.is_loading, len(posts.data)),
                "change": f"{published} published",
            },
            {
                "title": "Draft Posts",
                "value": _loading_value(posts.is_loading, drafts),
                "change": f"{featured} featured",
            },
            {
                "title": "Contact Messages",
                "value": _loading_value(messages.is_loading, len(messages.data)),
                "change": f"{unread} unread" if unread else "All read",
            },
        ],
        "quick_actions": [
            {"title": "Write New Blog Post", "href": "/admin/blogs"},
            {"title": "Manage Blogs", "href": "/admin/blogs"},
            {"title": "View Messages", "href": "/admin/contacts"},
            {"title": "Visit Website", "href": "/"},
        ],
        "recent_posts": [admin_row(p) for p in posts.data[:RECENT_POSTS_LIMIT]],
        "empty_posts": (
            None
            if posts.data
            else "No blog posts yet. Create your first post to get started!"
        ),
        "errors": [
            name
            for name, result in (("blogs", posts), ("contacts", messages))
            if result.error is not None
        ],
    }


@router.get("/blogs")
def list_blogs(
    blogs: BlogData = Depends(get_blog_data),
    gate: AuthGate = Depends(get_admin_gate),
):
    result = blogs.posts()
    require_admin_session(gate)
    if result.error is not None and not result.data:
        return JSONResponse(
            status_code=503,
            content={"error": {"message": "Error loading blog posts", "hint": TRY_AGAIN}},
        )
    return {
        "posts": [admin_row(p) for p in result.data],
        "total": len(result.data),
        "stale": result.error is not None,
    }


@router.post("/blogs", response_model=BlogPostResponse, status_code=201)
def create_blog(
    payload: BlogPostCreate,
    mutations: BlogMutations = Depends(get_blog_mutations),
    notifier: Notifier = Depends(get_notifier),
    gate: AuthGate = Depends(get_admin_gate),
):
    try:
        post = mutations.create_blog(payload)
    except StoreError as exc:
        raise _store_failure(exc, notifier)
    require_admin_session(gate)
    return BlogPostResponse(post=post, notifications=notifier.as_list())


@router.patch("/blogs/{post_id}", response_model=BlogPostResponse)
def update_blog(
    post_id: str,
    payload: BlogPostUpdate,
    mutations: BlogMutations = Depends(get_blog_mutations),
    notifier: Notifier = Depends(get_notifier),
    gate: AuthGate = Depends(get_admin_gate),
):
    try:
        post = mutations.update_blog(post_id, payload)
    except StoreError as exc:
        raise _store_failure(exc, notifier)
    require_admin_session(gate)
    return BlogPostResponse(post=post, notifications=notifier.as_list())


@router.delete("/blogs/{post_id}", response_model=DeletedResponse)
def delete_blog(
    post_id: str,
    confirm: bool = Query(False),
    mutations: BlogMutations = Depends(get_blog_mutations),
    notifier: Notifier = Depends(get_notifier),
    gate: AuthGate = Depends(get_admin_gate),
):
    _require_confirmation(confirm)
    try:
        deleted_id = mutations.delete_blog(post_id)
    except StoreError as exc:
        raise _store_failure(exc, notifier)
    require_admin_session(gate)
    return DeletedResponse(id=deleted_id, notifications=notifier.as_list())


@router.get("/contacts")
def list_contacts(
    selected: Optional[str] = Query(None),
    contacts: ContactData = Depends(get_contact_data),
    gate: AuthGate = Depends(get_admin_gate),
):
    result = contacts.messages()
    require_admin_session(gate)
    if result.error is not None and not result.data:
        return JSONResponse(
            status_code=503,
            content={
                "error": {"message": "Error loading messages", "hint": TRY_AGAIN}
            },
        )
    chosen = next((m for m in result.data if m.id == selected), None)
    return {
        "messages": [inbox_row(m) for m in result.data],
        "total": len(result.data),
        "unread": unread_count(result.data),
        "selected": message_detail(chosen) if chosen else None,
        "stale": result.error is not None,
    }


@router.patch("/contacts/{message_id}", response_model=ContactMessageResponse)
def update_contact_status(
    message_id: str,
    payload: ContactStatusUpdate,
    mutations: ContactMutations = Depends(get_contact_mutations),
    notifier: Notifier = Depends(get_notifier),
    gate: AuthGate = Depends(get_admin_gate),
):
    try:
        message = mutations.update_message_status(message_id, payload.status)
    except StoreError as exc:
        raise _store_failure(exc, notifier)
    require_admin_session(gate)
    return ContactMessageResponse(message=message, notifications=notifier.as_list())


@router.delete("/contacts/{message_id}", response_model=DeletedResponse)
def delete_contact(
    message_id: str,
    confirm: bool = Query(False),
    mutations: ContactMutations = Depends(get_contact_mutations),
    notifier: Notifier = Depends(get_notifier),
    gate: AuthGate = Depends(get_admin_gate),
):
    _require_confirmation(confirm)
    try:
        deleted_id = mutations.delete_message(message_id)
    except StoreError as exc:
        raise _store_failure(exc, notifier)
    require_admin_session(gate)
    return DeletedResponse(id=deleted_id, notifications=notifier.as_list())
