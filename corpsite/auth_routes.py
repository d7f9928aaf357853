"""
Login, registration and logout routes for the admin portal.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from corpsite.auth import DASHBOARD_PATH, LOGIN_PATH, AuthProvider
from corpsite.config import Settings, get_settings
from corpsite.dependencies import get_access_token, get_auth_provider, get_notifier
from corpsite.errors import AuthError
from corpsite.notifications import Notifier
from corpsite.schemas import AuthResponse, LoginPayload, SignupPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


def _failure(notifier: Notifier, title: str, message: str, status_code: int) -> JSONResponse:
    notifier.destructive(title, message or "An error occurred during authentication")
    body = AuthResponse(notifications=notifier.as_list())
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.get("")
def auth_page(
    access_token: Optional[str] = Depends(get_access_token),
    auth: AuthProvider = Depends(get_auth_provider),
    settings: Settings = Depends(get_settings),
):
    if auth.get_session(access_token) is not None:
        return RedirectResponse(DASHBOARD_PATH, status_code=303)
    return {
        "title": f"{settings.site_name} Admin Portal Access",
        "modes": {
            "login": {
                "heading": "Welcome Back",
                "description": "Sign in to access the admin dashboard",
                "fields": ["email", "password"],
                "action": f"{LOGIN_PATH}/login",
            },
            "signup": {
                "heading": "Create Account",
                "description": "Register for admin access",
                "fields": ["email", "password", "confirm_password"],
                "action": f"{LOGIN_PATH}/signup",
            },
        },
        "back": "/",
    }


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginPayload,
    auth: AuthProvider = Depends(get_auth_provider),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    try:
        session = auth.sign_in_with_password(str(payload.email), payload.password)
    except AuthError as exc:
        logger.error("Auth error: %s", exc.message)
        return _failure(notifier, "Authentication Failed", exc.message, 401)

    notifier.notify("Welcome back!", "Successfully logged in to admin panel.")
    body = AuthResponse(
        redirect_to=DASHBOARD_PATH,
        email=session.user.email,
        notifications=notifier.as_list(),
    )
    response = JSONResponse(content=body.model_dump())
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        httponly=True,
        samesite="lax",
        max_age=settings.session_ttl_seconds,
    )
    response.headers["X-Access-Token"] = session.access_token
    return response


@router.post("/signup", response_model=AuthResponse)
def signup(
    payload: SignupPayload,
    auth: AuthProvider = Depends(get_auth_provider),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    if payload.password != payload.confirm_password:
        return _failure(notifier, "Authentication Failed", "Passwords do not match", 400)
    try:
        user = auth.sign_up(
            str(payload.email),
            payload.password,
            redirect_to=settings.dashboard_redirect_url,
        )
    except AuthError as exc:
        logger.error("Auth error: %s", exc.message)
        return _failure(notifier, "Authentication Failed", exc.message, 400)

    notifier.notify(
        "Registration Successful!", "Please check your email to confirm your account."
    )
    # The form switches back to login mode with empty fields.
    return AuthResponse(
        redirect_to=LOGIN_PATH, email=user.email, notifications=notifier.as_list()
    )


@router.post("/logout", response_model=AuthResponse)
def logout(
    access_token: Optional[str] = Depends(get_access_token),
    auth: AuthProvider = Depends(get_auth_provider),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    try:
        auth.sign_out(access_token or "")
    except AuthError as exc:
        logger.error("Logout error: %s", exc.message)
        return _failure(notifier, "Logout failed", exc.message, exc.status_code)

    notifier.notify("Logged out successfully", "You have been signed out of the admin panel.")
    body = AuthResponse(redirect_to=LOGIN_PATH, notifications=notifier.as_list())
    response = JSONResponse(content=body.model_dump())
    response.delete_cookie(settings.session_cookie_name)
    return response
