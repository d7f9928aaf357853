"""
FastAPI application entry point for the site service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from corpsite.admin_routes import router as admin_router
from corpsite.auth_routes import router as auth_router
from corpsite.blog import watch_blogs
from corpsite.config import get_settings
from corpsite.contacts import watch_contacts
from corpsite.dependencies import get_change_feed, get_query_cache
from corpsite.errors import AuthError, LoginRequired
from corpsite.notifications import Notifier
from corpsite.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    feed = get_change_feed()
    cache = get_query_cache()
    subscriptions = [watch_blogs(feed, cache).start(), watch_contacts(feed, cache).start()]
    app.state.realtime = subscriptions
    try:
        yield
    finally:
        for subscription in subscriptions:
            subscription.stop()


async def _login_required(request: Request, exc: LoginRequired):
    logger.info("No live session for %s, redirecting to %s", request.url.path, exc.redirect_to)
    return RedirectResponse(exc.redirect_to, status_code=303)


async def _auth_error(request: Request, exc: AuthError):
    logger.error("Auth provider error on %s: %s", request.url.path, exc.message)
    notifier = Notifier()
    notifier.destructive("Authentication Failed", exc.message)
    return JSONResponse(
        status_code=exc.status_code, content={"notifications": notifier.as_list()}
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(
        title=f"{settings.site_name} Site (FastAPI)",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(LoginRequired, _login_required)
    app.add_exception_handler(AuthError, _auth_error)
    app.include_router(router)
    app.include_router(auth_router)
    app.include_router(admin_router)

    @app.api_route(
        "/{path:path}",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        include_in_schema=False,
    )
    def not_found(path: str):
        raise HTTPException(status_code=404, detail="Page not found")

    return app


app = create_app()
