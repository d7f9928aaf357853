"""
Public site routes. Each page route returns the view model its page renders.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from corpsite import content
from corpsite.blog import (
    BlogData,
    blog_card,
    blog_detail,
    published_posts,
    split_featured,
)
from corpsite.config import Settings, get_settings
from corpsite.contacts import ContactMutations
from corpsite.dependencies import (
    get_blog_data,
    get_contact_mutations,
    get_notifier,
)
from corpsite.errors import StoreError
from corpsite.notifications import Notifier
from corpsite.schemas import ContactMessageCreate, ContactMessageResponse

logger = logging.getLogger(__name__)

router = APIRouter()

TRY_AGAIN = "Please try again later"


def page(body: dict) -> dict:
    return {**content.layout(), **body}


def error_page(message: str, status_code: int = 503) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=page({"error": {"message": message, "hint": TRY_AGAIN}}),
    )


@router.get("/")
def home():
    return page(content.home_page())


@router.get("/about")
def about():
    return page(content.about_page())


@router.get("/services")
def services():
    return page(content.services_page())


@router.get("/services/{slug}")
def service_detail(slug: str):
    service = content.get_service(slug)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return page(
        {
            "service": service.as_dict(),
            "consultation_url": content.whatsapp_link(
                f"Hi, I would like to discuss {service.title}"
            ),
        }
    )


@router.get("/portfolio")
def portfolio():
    return page(content.portfolio_page())


@router.get("/contact")
def contact():
    return page(content.contact_page())


@router.post("/contact", response_model=ContactMessageResponse, status_code=201)
def submit_contact(
    payload: ContactMessageCreate,
    mutations: ContactMutations = Depends(get_contact_mutations),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        message = mutations.create_message(payload)
    except StoreError as exc:
        raise HTTPException(
            status_code=502,
            detail={"message": exc.message, "notifications": notifier.as_list()},
        )
    return ContactMessageResponse(message=message, notifications=notifier.as_list())


@router.get("/blog")
def blog(data: BlogData = Depends(get_blog_data)):
    result = data.posts()
    if result.error is not None:
        return error_page("Error loading blog posts")
    featured, regular = split_featured(published_posts(result.data))
    return page(
        {
            "title": "Tech Insights & Innovation",
            "subtitle": (
                "Stay ahead with the latest trends in AI, blockchain, DevOps, and more. "
                "Coffee = Code Fuel, and knowledge is power."
            ),
            "featured": [blog_card(post, featured=True) for post in featured],
            "posts": [blog_card(post) for post in regular],
        }
    )


@router.get("/blog/{post_id}")
def blog_post(
    post_id: str,
    data: BlogData = Depends(get_blog_data),
    settings: Settings = Depends(get_settings),
):
    result = data.posts()
    post = next((p for p in result.data if p.id == post_id), None)
    if result.error is not None and post is None:
        return error_page("Article not found", status_code=404)
    # Unpublished posts are hidden here only; the store does not restrict reads.
    if post is None or not post.is_published:
        raise HTTPException(status_code=404, detail="Article not found")
    return page({"post": blog_detail(post, settings.site_url), "back": "/blog"})
